"""Pydantic schemas for note endpoints."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas.validators import normalize_keywords, normalize_title


class NoteCreate(BaseModel):
    """Schema for creating a new note."""

    title: str  # Required for notes
    parent_id: int | None = None
    content: dict[str, Any] = Field(
        default_factory=dict,
        description="Block document, e.g. {'blocks': [{'type': 'paragraph', 'data': {...}}]}",
    )
    keywords: list[Any] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        """Validate title is not empty."""
        return normalize_title(v)

    @field_validator("keywords", mode="before")
    @classmethod
    def normalize_keyword_list(cls, v: list[Any] | None) -> list[str]:
        """Trim keywords and drop empty and duplicate entries."""
        if v is None:
            return []
        return normalize_keywords(v)


class NoteUpdate(BaseModel):
    """
    Schema for saving a note.

    Omitted fields keep their stored values. Sending release_lock releases the
    caller's edit lock in the same transaction as the save.
    """

    title: str | None = None
    content: dict[str, Any] | None = None
    keywords: list[Any] | None = None
    release_lock: bool = Field(
        default=False,
        description="Release the caller's edit lock after a successful save.",
    )

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str | None) -> str | None:
        """Validate title is not empty (if provided)."""
        if v is None:
            return None
        return normalize_title(v)

    @field_validator("keywords", mode="before")
    @classmethod
    def normalize_keyword_list(cls, v: list[Any] | None) -> list[str] | None:
        """Normalize keywords if provided."""
        if v is None:
            return None
        return normalize_keywords(v)


class NoteMove(BaseModel):
    """Schema for re-parenting a note. A null parent_id moves the note to the root."""

    parent_id: int | None


class NoteResponse(BaseModel):
    """Full note including live lock status."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    parent_id: int | None
    title: str
    content: dict[str, Any]
    content_text: str
    keywords: list[str]
    owner_id: int
    owner_username: str | None = None
    created_at: datetime
    updated_at: datetime
    lock_user_id: int | None = None
    lock_username: str | None = None
    lock_expires_at: datetime | None = None


class NoteTreeNode(BaseModel):
    """Summary of a note inside the tree listing."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    parent_id: int | None
    title: str
    owner_username: str | None = None
    updated_at: datetime | None = None
    children: list["NoteTreeNode"] = Field(default_factory=list)


class NoteTreeResponse(BaseModel):
    """Forest of notes."""

    tree: list[NoteTreeNode]


class LockResponse(BaseModel):
    """Lock state returned by lock/unlock endpoints."""

    model_config = ConfigDict(from_attributes=True)

    note_id: int
    lock_user_id: int | None = None
    lock_username: str | None = None
    lock_expires_at: datetime | None = None


class NoteSearchResult(BaseModel):
    """One search hit."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    parent_id: int | None
    title: str
    keywords: list[str]
    updated_at: datetime
    owner_username: str | None = None
    match_fields: list[str]
    snippet: str


class NoteSearchResponse(BaseModel):
    """Paginated search results."""

    items: list[NoteSearchResult]
    total: int
    offset: int
    limit: int
    has_more: bool
