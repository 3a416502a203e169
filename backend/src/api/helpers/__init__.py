"""API helper utilities."""
from api.helpers.lock_errors import (
    corrupt_hierarchy_error,
    invalid_move_error,
    lock_held_error,
    not_lock_holder_error,
)

__all__ = [
    "corrupt_hierarchy_error",
    "invalid_move_error",
    "lock_held_error",
    "not_lock_holder_error",
]
