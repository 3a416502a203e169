"""
Lease-based exclusive edit locks on notes.

A note is either unlocked (both lock fields null) or locked by one user until
lock_expires_at. Locks are never extended by the server on its own: clients
re-acquire (refresh) periodically while editing, and a client that stops
simply loses the lock when the lease runs out.

Expired locks are cleared lazily at the start of every lock-sensitive
operation. Acquire, refresh and release are each a single conditional UPDATE,
so the staleness check and the write happen in one atomic statement and two
concurrent acquires cannot both succeed.
"""
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from models.note import Note
from models.user import User
from services.exceptions import LockHeldError, NotLockHolderError

logger = logging.getLogger(__name__)


@dataclass
class LockStatus:
    """Live lock state of a note."""

    note_id: int
    lock_user_id: int | None = None
    lock_username: str | None = None
    lock_expires_at: datetime | None = None

    @property
    def is_locked(self) -> bool:
        """True while a user holds the lock."""
        return self.lock_user_id is not None

    def is_held_by(self, user_id: int) -> bool:
        """True when user_id is the current holder."""
        return self.lock_user_id == user_id


def current_time(now: datetime | None = None) -> datetime:
    """Return now, defaulting to the current UTC time."""
    return now if now is not None else datetime.now(UTC)


async def expire_stale_locks(db: AsyncSession, now: datetime | None = None) -> int:
    """
    Clear every lock whose lease has run out.

    Runs in a SAVEPOINT and never raises: a failed sweep is logged and the
    caller carries on, since the conditional writes below also treat expired
    leases as free.

    Returns:
        Number of locks cleared.
    """
    now = current_time(now)
    stmt = (
        update(Note)
        .where(Note.lock_expires_at.is_not(None), Note.lock_expires_at <= now)
        .values(lock_user_id=None, lock_expires_at=None)
        .execution_options(synchronize_session=False)
    )
    try:
        async with db.begin_nested():
            result = await db.execute(stmt)
    except SQLAlchemyError:
        logger.warning("Expired lock sweep failed", exc_info=True)
        return 0
    cleared = result.rowcount or 0
    if cleared:
        logger.info("Cleared %d expired note locks", cleared)
    return cleared


async def _load_status(
    db: AsyncSession, note_id: int, now: datetime,
) -> LockStatus | None:
    """Load lock state; a lease that has run out reads as unlocked even if not yet swept."""
    result = await db.execute(
        select(Note.id, Note.lock_user_id, Note.lock_expires_at, User.username)
        .outerjoin(User, User.id == Note.lock_user_id)
        .where(Note.id == note_id),
    )
    row = result.one_or_none()
    if row is None:
        return None
    if row.lock_expires_at is not None and row.lock_expires_at <= now:
        return LockStatus(note_id=row.id)
    return LockStatus(
        note_id=row.id,
        lock_user_id=row.lock_user_id,
        lock_username=row.username,
        lock_expires_at=row.lock_expires_at,
    )


async def get_lock_status(
    db: AsyncSession,
    note_id: int,
    now: datetime | None = None,
) -> LockStatus | None:
    """
    Get the live lock state of a note after clearing expired locks.

    Returns:
        The lock status, or None if the note does not exist.
    """
    now = current_time(now)
    await expire_stale_locks(db, now)
    return await _load_status(db, note_id, now)


async def acquire_lock(
    db: AsyncSession,
    note_id: int,
    user_id: int,
    now: datetime | None = None,
    lease_seconds: int | None = None,
) -> LockStatus | None:
    """
    Acquire or refresh the edit lock on a note for user_id.

    Succeeds when the note is unlocked, already held by user_id (the lease is
    renewed), or held under an expired lease.

    Args:
        db: Database session.
        note_id: Note to lock.
        user_id: User requesting the lock.
        now: Current time. Defaults to datetime.now(UTC).
        lease_seconds: Lease length. Defaults to LOCK_DURATION_SECONDS.

    Returns:
        The new lock status, or None if the note does not exist.

    Raises:
        LockHeldError: Another user holds an unexpired lock.
    """
    now = current_time(now)
    if lease_seconds is None:
        lease_seconds = get_settings().lock_duration_seconds
    await expire_stale_locks(db, now)

    expires_at = now + timedelta(seconds=lease_seconds)
    stmt = (
        update(Note)
        .where(
            Note.id == note_id,
            or_(
                Note.lock_user_id.is_(None),
                Note.lock_user_id == user_id,
                Note.lock_expires_at <= now,
            ),
        )
        .values(lock_user_id=user_id, lock_expires_at=expires_at)
        .returning(Note.id)
        .execution_options(synchronize_session=False)
    )
    # Second attempt covers a holder releasing between our UPDATE and SELECT
    for _ in range(2):
        result = await db.execute(stmt)
        if result.scalar_one_or_none() is not None:
            logger.debug("User %s locked note %s until %s", user_id, note_id, expires_at)
            return await _load_status(db, note_id, now)

        status = await _load_status(db, note_id, now)
        if status is None:
            return None
        if status.lock_user_id is not None:
            break
    logger.info(
        "Lock on note %s denied to user %s: held by user %s",
        note_id, user_id, status.lock_user_id,
    )
    raise LockHeldError(
        note_id, status.lock_user_id, status.lock_username, status.lock_expires_at,
    )


async def refresh_lock(
    db: AsyncSession,
    note_id: int,
    user_id: int,
    now: datetime | None = None,
    lease_seconds: int | None = None,
) -> LockStatus | None:
    """Renew the caller's lease. Same semantics as acquire_lock."""
    return await acquire_lock(db, note_id, user_id, now=now, lease_seconds=lease_seconds)


async def release_lock(
    db: AsyncSession,
    note_id: int,
    user_id: int,
    now: datetime | None = None,
) -> bool:
    """
    Release the caller's lock on a note.

    Returns:
        True if released, False if the note does not exist.

    Raises:
        NotLockHolderError: The caller does not hold the lock. Another user's
            lock is left untouched.
    """
    await expire_stale_locks(db, now)
    result = await db.execute(
        update(Note)
        .where(Note.id == note_id, Note.lock_user_id == user_id)
        .values(lock_user_id=None, lock_expires_at=None)
        .returning(Note.id)
        .execution_options(synchronize_session=False),
    )
    if result.scalar_one_or_none() is not None:
        logger.debug("User %s released lock on note %s", user_id, note_id)
        return True

    exists = await db.scalar(select(Note.id).where(Note.id == note_id))
    if exists is None:
        return False
    raise NotLockHolderError(note_id)


async def assert_can_save(
    db: AsyncSession,
    note_id: int,
    user_id: int,
    now: datetime | None = None,
) -> LockStatus | None:
    """
    Guard for the save path.

    A save is allowed when the note is unlocked or the caller holds the lock.
    The note row is locked FOR UPDATE so a concurrent acquire cannot slip in
    between this check and the save in the same transaction.

    Returns:
        The lock status, or None if the note does not exist.

    Raises:
        LockHeldError: Another user holds an unexpired lock.
    """
    now = current_time(now)
    await expire_stale_locks(db, now)
    result = await db.execute(
        select(Note.lock_user_id, Note.lock_expires_at)
        .where(Note.id == note_id)
        .with_for_update(),
    )
    row = result.one_or_none()
    if row is None:
        return None
    if row.lock_expires_at is None or row.lock_expires_at <= now:
        return LockStatus(note_id=note_id)
    if row.lock_user_id != user_id:
        status = await _load_status(db, note_id, now)
        raise LockHeldError(
            note_id, row.lock_user_id,
            status.lock_username if status else None,
            row.lock_expires_at,
        )
    return LockStatus(
        note_id=note_id,
        lock_user_id=row.lock_user_id,
        lock_expires_at=row.lock_expires_at,
    )
