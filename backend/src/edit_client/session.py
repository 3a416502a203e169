"""
Per-user, per-note editing session.

An EditSession owns everything a client needs while editing one note: the
lock it holds, the task that renews the lease, and whether editing is still
active. Each session is an explicit object so several can coexist in one
process without sharing timers or flags.
"""
import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from edit_client.api_client import api_get, api_post, api_put
from shared.api_errors import ParsedApiError, parse_http_error

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL_SECONDS = 60.0


class EditSessionError(Exception):
    """Raised when the API rejects a session operation."""

    def __init__(self, error: ParsedApiError) -> None:
        self.error = error
        super().__init__(error.message)

    @property
    def category(self) -> str:
        """Semantic error category (lock_held, not_found, ...)."""
        return self.error.category


@dataclass
class EditSession:
    """
    Editing session for one note.

    Usage:
        async with EditSession(client, token, note_id) as session:
            await session.save(title, content, keywords)

    start() acquires the lock and renews it every refresh_interval seconds
    (must be shorter than the server's lease); stop() cancels renewal and
    releases the lock.
    """

    client: httpx.AsyncClient
    token: str
    note_id: int
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL_SECONDS
    is_editing: bool = False
    lock_expires_at: str | None = None
    last_refresh_error: ParsedApiError | None = None
    _refresh_task: asyncio.Task | None = field(default=None, repr=False)

    @classmethod
    async def for_note(
        cls, client: httpx.AsyncClient, token: str, note_id: int,
    ) -> "EditSession":
        """Build a session that refreshes at the cadence the server advertises on /health."""
        try:
            health = await api_get(client, "/health", token)
        except httpx.HTTPStatusError as e:
            raise EditSessionError(parse_http_error(e)) from e
        interval = health.get("lock_refresh_interval_seconds")
        if not interval:
            interval = DEFAULT_REFRESH_INTERVAL_SECONDS
        return cls(client, token, note_id, refresh_interval=float(interval))

    @property
    def _path(self) -> str:
        return f"/notes/{self.note_id}"

    async def start(self) -> dict[str, Any]:
        """
        Acquire the edit lock and begin renewing it.

        Raises:
            EditSessionError: e.g. category "lock_held" with the holder in error.details.
        """
        lock = await self._lock()
        self.is_editing = True
        self.last_refresh_error = None
        self._refresh_task = asyncio.create_task(self._refresh_loop())
        return lock

    async def refresh(self) -> dict[str, Any]:
        """Renew the lease once."""
        return await self._lock()

    async def save(
        self,
        title: str | None = None,
        content: dict[str, Any] | None = None,
        keywords: list[str] | None = None,
        finish: bool = True,
    ) -> dict[str, Any]:
        """
        Save the note.

        With finish=True the server releases the lock as part of the save and
        the session stops editing.
        """
        payload: dict[str, Any] = {"release_lock": finish}
        if title is not None:
            payload["title"] = title
        if content is not None:
            payload["content"] = content
        if keywords is not None:
            payload["keywords"] = keywords
        try:
            note = await api_put(self.client, self._path, self.token, payload)
        except httpx.HTTPStatusError as e:
            raise EditSessionError(parse_http_error(e)) from e
        if finish:
            await self._cancel_refresh()
            self.is_editing = False
            self.lock_expires_at = None
        return note

    async def stop(self) -> None:
        """Stop renewing and release the lock. Release failures are logged, not raised."""
        if not self.is_editing:
            return
        await self._cancel_refresh()
        self.is_editing = False
        self.lock_expires_at = None
        try:
            await api_post(self.client, f"{self._path}/unlock", self.token)
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Releasing lock on note %s failed: %s", self.note_id, parse_http_error(e).message,
            )

    async def __aenter__(self) -> "EditSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def _lock(self) -> dict[str, Any]:
        try:
            lock = await api_post(self.client, f"{self._path}/lock", self.token)
        except httpx.HTTPStatusError as e:
            raise EditSessionError(parse_http_error(e)) from e
        self.lock_expires_at = lock.get("lock_expires_at")
        return lock

    async def _cancel_refresh(self) -> None:
        task, self._refresh_task = self._refresh_task, None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _refresh_loop(self) -> None:
        while self.is_editing:
            await asyncio.sleep(self.refresh_interval)
            try:
                await self.refresh()
            except EditSessionError as e:
                self.last_refresh_error = e.error
                if e.category in ("lock_held", "not_found", "auth"):
                    # The lease is gone; editing cannot continue
                    logger.warning(
                        "Lost edit lock on note %s: %s", self.note_id, e.error.message,
                    )
                    self.is_editing = False
                    self.lock_expires_at = None
                    return
                logger.warning("Refreshing lock on note %s failed: %s", self.note_id, e)
            except httpx.TransportError as e:
                logger.warning("Refreshing lock on note %s failed: %s", self.note_id, e)
