"""Notes endpoints: tree, CRUD, edit locks, move and search."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user, get_settings
from api.helpers import (
    corrupt_hierarchy_error,
    invalid_move_error,
    lock_held_error,
    not_lock_holder_error,
)
from core.config import Settings
from models.user import User
from schemas.note import (
    LockResponse,
    NoteCreate,
    NoteMove,
    NoteResponse,
    NoteSearchResponse,
    NoteSearchResult,
    NoteTreeNode,
    NoteTreeResponse,
    NoteUpdate,
)
from services import lock_service
from services.exceptions import (
    CorruptHierarchyError,
    InvalidMoveError,
    LockHeldError,
    NoteNotFoundError,
    NotLockHolderError,
)
from services.note_service import NoteService
from services.search_service import search_notes
from services.utils import clamp_page

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notes", tags=["notes"])

note_service = NoteService()


def _note_not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Note not found")


@router.get("/tree", response_model=NoteTreeResponse)
async def get_tree(
    current_user: User = Depends(get_current_user),  # noqa: ARG001
    db: AsyncSession = Depends(get_async_session),
) -> NoteTreeResponse:
    """Get every note as a forest, siblings ordered by title."""
    roots = await note_service.list_tree(db)
    return NoteTreeResponse(tree=[NoteTreeNode.model_validate(root) for root in roots])


@router.post("/", response_model=NoteResponse, status_code=201)
async def create_note(
    data: NoteCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> NoteResponse:
    """Create a new note, optionally under an existing parent."""
    try:
        note = await note_service.create(db, current_user.id, data)
    except NoteNotFoundError:
        raise HTTPException(status_code=404, detail="Parent note not found")
    return NoteResponse.model_validate(note)


@router.get("/search", response_model=NoteSearchResponse)
async def search(
    q: str = Query(default="", description="Substring to look for (case-insensitive)"),
    limit: int = Query(default=20, ge=1, description="Page size (clamped to SEARCH_MAX_LIMIT)"),
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
    current_user: User = Depends(get_current_user),  # noqa: ARG001
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> NoteSearchResponse:
    """
    Search notes by title, content and keywords.

    - **q**: blank queries return an empty page
    - Results are ordered by most recently updated first
    - Each item reports `match_fields` and a `snippet` with the match wrapped in `<mark>`
    """
    hits, total = await search_notes(db, q, limit=limit, offset=offset)
    limit, offset = clamp_page(limit, offset, settings.search_max_limit)
    items = [NoteSearchResult.model_validate(hit) for hit in hits]
    return NoteSearchResponse(
        items=items,
        total=total,
        offset=offset,
        limit=limit,
        has_more=offset + len(items) < total,
    )


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: int,
    current_user: User = Depends(get_current_user),  # noqa: ARG001
    db: AsyncSession = Depends(get_async_session),
) -> NoteResponse:
    """Get a note with its live lock status (expired locks are never reported)."""
    note = await note_service.get(db, note_id)
    if note is None:
        raise _note_not_found()
    return NoteResponse.model_validate(note)


@router.put("/{note_id}", response_model=NoteResponse)
async def save_note(
    note_id: int,
    data: NoteUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> NoteResponse:
    """
    Save title, content and keywords.

    Rejected with 423 while another user holds the edit lock. Saving an
    unlocked note, or one locked by the caller, is allowed.
    """
    try:
        note = await note_service.update(db, note_id, current_user.id, data)
    except LockHeldError as e:
        raise lock_held_error(e)
    if note is None:
        raise _note_not_found()
    return NoteResponse.model_validate(note)


@router.post("/{note_id}/lock", response_model=LockResponse)
async def lock_note(
    note_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> LockResponse:
    """
    Acquire the edit lock, or renew the lease if the caller already holds it.

    Clients call this periodically while editing; a lock that is not renewed
    expires after LOCK_DURATION_SECONDS.
    """
    try:
        lock = await lock_service.acquire_lock(db, note_id, current_user.id)
    except LockHeldError as e:
        raise lock_held_error(e)
    if lock is None:
        raise _note_not_found()
    return LockResponse.model_validate(lock)


@router.post("/{note_id}/unlock", response_model=LockResponse)
async def unlock_note(
    note_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> LockResponse:
    """Release the caller's edit lock. Another user's lock is never cleared."""
    try:
        released = await lock_service.release_lock(db, note_id, current_user.id)
    except NotLockHolderError as e:
        raise not_lock_holder_error(e)
    if not released:
        raise _note_not_found()
    return LockResponse(note_id=note_id)


@router.post("/{note_id}/move", response_model=NoteResponse)
async def move_note(
    note_id: int,
    data: NoteMove,
    current_user: User = Depends(get_current_user),  # noqa: ARG001
    db: AsyncSession = Depends(get_async_session),
) -> NoteResponse:
    """Move a note under a new parent, or to the root with parent_id null."""
    try:
        note = await note_service.move(db, note_id, data.parent_id)
    except InvalidMoveError as e:
        raise invalid_move_error(e)
    except CorruptHierarchyError as e:
        logger.error("Stored note hierarchy contains a cycle above note %s", e.note_id)
        raise corrupt_hierarchy_error(e)
    if note is None:
        raise _note_not_found()
    return NoteResponse.model_validate(note)


@router.delete("/{note_id}", status_code=204)
async def delete_note(
    note_id: int,
    current_user: User = Depends(get_current_user),  # noqa: ARG001
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a note together with all of its descendants."""
    deleted = await note_service.delete(db, note_id)
    if not deleted:
        raise _note_not_found()
