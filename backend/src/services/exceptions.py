"""Shared exceptions for service layer operations."""
from datetime import datetime


class NoteNotFoundError(Exception):
    """Raised when a note referenced by another operation (e.g. a parent) does not exist."""

    def __init__(self, note_id: int) -> None:
        self.note_id = note_id
        super().__init__(f"Note not found: {note_id}")


class LockHeldError(Exception):
    """
    Raised when another user holds an unexpired edit lock on a note.

    Not a failure of the system: callers should show who is editing and let the
    user view read-only or retry later.
    """

    def __init__(
        self,
        note_id: int,
        holder_id: int | None,
        holder_name: str | None,
        expires_at: datetime | None,
    ) -> None:
        self.note_id = note_id
        self.holder_id = holder_id
        self.holder_name = holder_name
        self.expires_at = expires_at
        who = holder_name or "Another user"
        super().__init__(f"{who} is currently editing this note")


class NotLockHolderError(Exception):
    """Raised when releasing a lock the caller does not hold."""

    def __init__(self, note_id: int) -> None:
        self.note_id = note_id
        super().__init__("You do not hold the lock on this note")


class InvalidMoveError(Exception):
    """Raised when a re-parenting is rejected (self-parent, missing parent, cycle)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class CorruptHierarchyError(Exception):
    """
    Raised when the ancestor walk exceeds its step ceiling or revisits a note.

    Indicates a cycle already present in stored data, not a bad request.
    """

    def __init__(self, note_id: int) -> None:
        self.note_id = note_id
        super().__init__(f"Note hierarchy is corrupt above note {note_id}")


class UsernameTakenError(Exception):
    """Raised when registering a username that already exists."""

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__("Username already exists")


class InvalidCredentialsError(Exception):
    """Raised when a login does not match any user/password pair."""

    def __init__(self) -> None:
        super().__init__("Invalid username or password")
