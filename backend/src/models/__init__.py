"""SQLAlchemy models."""
from models.base import Base, TimestampMixin
from models.user import User
from models.note import Note

__all__ = [
    "Base",
    "Note",
    "TimestampMixin",
    "User",
]
