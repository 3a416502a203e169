"""User model for storing registered users."""
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.note import Note


class User(Base, TimestampMixin):
    """User model - local accounts with bcrypt password hashes."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        comment="Stored trimmed and lower-cased, so uniqueness is case-insensitive",
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_admin: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false(),
    )

    notes: Mapped[list["Note"]] = relationship(
        back_populates="owner",
        foreign_keys="Note.owner_id",
        passive_deletes=True,
    )
