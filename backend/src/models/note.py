"""Note model: tree links, block content, derived search text and edit lock."""
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.user import User


class Note(Base, TimestampMixin):
    """
    Note model - one node of the shared note tree.

    Lock fields are owned by services.lock_service, parent_id by NoteService.move,
    and content/content_text/keywords/title by the save path.
    """

    __tablename__ = "notes"
    __table_args__ = (
        CheckConstraint(
            "(lock_user_id IS NULL) = (lock_expires_at IS NULL)",
            name="ck_notes_lock_fields_paired",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    # Block document: {"blocks": [{"type": ..., "data": {...}}, ...]}
    content: Mapped[dict[str, Any]] = mapped_column(
        JSONB, nullable=False, default=dict, server_default=text("'{}'::jsonb"),
    )
    # Derived from content + keywords on every save; search only, never rendered
    content_text: Mapped[str] = mapped_column(
        Text, nullable=False, default="", server_default="",
    )
    keywords: Mapped[list[str]] = mapped_column(
        JSONB, nullable=False, default=list, server_default=text("'[]'::jsonb"),
    )
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    lock_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id"), nullable=True, default=None,
    )
    lock_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None, index=True,
    )

    owner: Mapped["User"] = relationship(back_populates="notes", foreign_keys=[owner_id])
    lock_user: Mapped["User | None"] = relationship(foreign_keys=[lock_user_id])

    @property
    def owner_username(self) -> str | None:
        """Owner's username when the owner relationship is loaded."""
        owner = self.__dict__.get("owner")
        return owner.username if owner is not None else None

    @property
    def lock_username(self) -> str | None:
        """Lock holder's username when the lock_user relationship is loaded."""
        lock_user = self.__dict__.get("lock_user")
        return lock_user.username if lock_user is not None else None
