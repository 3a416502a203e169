"""Translate lock and move service errors into structured HTTP errors."""
from fastapi import HTTPException, status

from services.exceptions import (
    CorruptHierarchyError,
    InvalidMoveError,
    LockHeldError,
    NotLockHolderError,
)


def lock_held_error(e: LockHeldError) -> HTTPException:
    """
    Build the 423 response for a note locked by someone else.

    The body names the holder so the client can show who is editing.
    """
    return HTTPException(
        status_code=status.HTTP_423_LOCKED,
        detail={
            "error": "lock_held",
            "message": str(e),
            "lock_user_id": e.holder_id,
            "lock_username": e.holder_name,
            "lock_expires_at": e.expires_at.isoformat() if e.expires_at else None,
        },
    )


def not_lock_holder_error(e: NotLockHolderError) -> HTTPException:
    """Build the 403 response for releasing a lock the caller does not hold."""
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"error": "not_lock_holder", "message": str(e)},
    )


def invalid_move_error(e: InvalidMoveError) -> HTTPException:
    """Build the 409 response for a rejected re-parenting."""
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={"error": "invalid_move", "message": str(e)},
    )


def corrupt_hierarchy_error(e: CorruptHierarchyError) -> HTTPException:
    """Build the 409 response for a move blocked by a stored cycle."""
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "error": "corrupt_hierarchy",
            "message": str(e),
            "note_id": e.note_id,
        },
    )
