"""Service layer for note CRUD, save and move operations."""
import logging
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from core.config import get_settings
from models.note import Note
from models.user import User
from schemas.note import NoteCreate, NoteUpdate
from services import lock_service
from services.content_indexer import build_content_text
from services.exceptions import CorruptHierarchyError, InvalidMoveError, NoteNotFoundError
from services.tree_service import TreeNode, build_tree, validate_move

logger = logging.getLogger(__name__)

# Advisory lock key shared by every move ("QNMV")
MOVE_LOCK_KEY = 0x514E4D56


def _hide_expired_lock(note: Note, now: datetime) -> None:
    """Present a lease that has run out as unlocked without writing to the row."""
    if note.lock_expires_at is not None and note.lock_expires_at <= now:
        for key in ("lock_user_id", "lock_expires_at", "lock_user"):
            set_committed_value(note, key, None)


class NoteService:
    """
    Note service with tree, save and move operations.

    Every lock-sensitive read starts with a lazy sweep of expired locks so an
    expired lease is never reported as held. Methods flush but never commit;
    the session dependency commits once per request.
    """

    async def get(
        self,
        db: AsyncSession,
        note_id: int,
        now: datetime | None = None,
    ) -> Note | None:
        """
        Get a note with owner and live lock holder loaded.

        Returns:
            The note, or None if not found.
        """
        now = lock_service.current_time(now)
        await lock_service.expire_stale_locks(db, now)
        return await self._load(db, note_id, now)

    async def _load(
        self, db: AsyncSession, note_id: int, now: datetime | None = None,
    ) -> Note | None:
        # populate_existing: lock fields may have changed via bulk UPDATEs in this session
        result = await db.execute(
            select(Note)
            .options(selectinload(Note.owner), selectinload(Note.lock_user))
            .where(Note.id == note_id)
            .execution_options(populate_existing=True),
        )
        note = result.scalar_one_or_none()
        if note is not None:
            _hide_expired_lock(note, lock_service.current_time(now))
        return note

    async def list_tree(self, db: AsyncSession, now: datetime | None = None) -> list[TreeNode]:
        """Return every note arranged as a forest."""
        await lock_service.expire_stale_locks(db, now)
        result = await db.execute(
            select(
                Note.id,
                Note.parent_id,
                Note.title,
                Note.updated_at,
                User.username.label("owner_username"),
            ).join(User, User.id == Note.owner_id),
        )
        return build_tree(result.all())

    async def create(
        self,
        db: AsyncSession,
        owner_id: int,
        data: NoteCreate,
    ) -> Note:
        """
        Create a new, unlocked note.

        Raises:
            NoteNotFoundError: parent_id does not reference an existing note.
        """
        if data.parent_id is not None:
            parent = await db.scalar(select(Note.id).where(Note.id == data.parent_id))
            if parent is None:
                raise NoteNotFoundError(data.parent_id)

        note = Note(
            owner_id=owner_id,
            parent_id=data.parent_id,
            title=data.title,
            content=data.content,
            keywords=data.keywords,
            content_text=build_content_text(data.content, data.keywords),
        )
        db.add(note)
        await db.flush()
        logger.info("User %s created note %s", owner_id, note.id)
        return await self._load(db, note.id)

    async def update(
        self,
        db: AsyncSession,
        note_id: int,
        user_id: int,
        data: NoteUpdate,
        now: datetime | None = None,
    ) -> Note | None:
        """
        Save a note's title, content and keywords.

        Allowed when the note is unlocked or user_id holds the lock. The search
        projection and updated_at are rewritten in the same flush as the content.

        Returns:
            The saved note, or None if not found.

        Raises:
            LockHeldError: Another user holds an unexpired lock.
        """
        status = await lock_service.assert_can_save(db, note_id, user_id, now)
        if status is None:
            return None
        note = await self._load(db, note_id, now)
        if note is None:
            return None

        if data.title is not None:
            note.title = data.title
        if data.content is not None:
            note.content = data.content
        if data.keywords is not None:
            note.keywords = data.keywords
        note.content_text = build_content_text(note.content, note.keywords)
        note.updated_at = func.clock_timestamp()
        await db.flush()

        if data.release_lock and status.is_held_by(user_id):
            await db.execute(
                update(Note)
                .where(Note.id == note_id, Note.lock_user_id == user_id)
                .values(lock_user_id=None, lock_expires_at=None)
                .execution_options(synchronize_session=False),
            )
        logger.info("User %s saved note %s", user_id, note_id)
        return await self._load(db, note_id, now)

    async def move(
        self,
        db: AsyncSession,
        note_id: int,
        new_parent_id: int | None,
    ) -> Note | None:
        """
        Re-parent a note after checking the move cannot create a cycle.

        The check walks ancestors over a single snapshot of all parent links.
        Moves are serialised by a transaction-scoped advisory lock taken before
        the snapshot, so two opposite moves cannot both pass the check.

        Returns:
            The moved note, or None if note_id does not exist.

        Raises:
            InvalidMoveError: Self-parenting, missing parent, or target is a descendant.
            CorruptHierarchyError: Stored parent links already contain a cycle.
        """
        # Held until commit/rollback; the snapshot below sees every earlier move
        await db.execute(select(func.pg_advisory_xact_lock(MOVE_LOCK_KEY)))
        result = await db.execute(select(Note.id, Note.parent_id))
        parent_links = {row.id: row.parent_id for row in result}
        if note_id not in parent_links:
            return None

        try:
            validate_move(
                parent_links, note_id, new_parent_id, get_settings().max_tree_depth,
            )
        except (InvalidMoveError, CorruptHierarchyError) as e:
            logger.info("Rejected move of note %s under %s: %s", note_id, new_parent_id, e)
            raise

        await db.execute(
            update(Note)
            .where(Note.id == note_id)
            .values(parent_id=new_parent_id)
            .execution_options(synchronize_session=False),
        )
        logger.info("Moved note %s under %s", note_id, new_parent_id)
        return await self._load(db, note_id)

    async def delete(self, db: AsyncSession, note_id: int) -> bool:
        """
        Delete a note and, through the parent foreign key cascade, its subtree.

        Returns:
            True if deleted, False if not found.
        """
        result = await db.execute(
            delete(Note)
            .where(Note.id == note_id)
            .returning(Note.id)
            .execution_options(synchronize_session=False),
        )
        if result.scalar_one_or_none() is None:
            return False
        logger.info("Deleted note %s and its subtree", note_id)
        return True
