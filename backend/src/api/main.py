"""FastAPI application entry point."""
import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.routers import auth, health, notes, users
from core.config import get_settings
from db.session import get_session_factory
from services.content_indexer import backfill_content_text
from services.user_service import ensure_admin_exists
from tasks.expire_locks import sweep_forever

logger = logging.getLogger(__name__)


async def run_startup_maintenance() -> None:
    """Backfill missing search text and make sure an admin exists."""
    app_settings = get_settings()
    session_factory = get_session_factory()
    async with session_factory() as session:
        if app_settings.backfill_on_startup:
            await backfill_content_text(session)
        await ensure_admin_exists(session)
        await session.commit()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - startup and shutdown."""
    app_settings = get_settings()

    # Startup: derived data and admin invariant
    await run_startup_maintenance()

    # Startup: optional background sweep of expired locks
    sweep_task: asyncio.Task | None = None
    if app_settings.lock_sweep_interval_seconds > 0:
        sweep_task = asyncio.create_task(
            sweep_forever(get_session_factory(), app_settings.lock_sweep_interval_seconds),
        )

    yield

    # Shutdown: stop the sweep
    if sweep_task is not None:
        sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweep_task


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add security headers to response."""
        response = await call_next(request)
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking - API shouldn't be framed
        response.headers["X-Frame-Options"] = "DENY"
        return response


app_settings = get_settings()

app = FastAPI(
    title="QNotes API",
    description="Shared note tree with exclusive edit locks and substring search.",
    version="0.1.0",
    lifespan=lifespan,
)

# Security headers middleware (runs after CORS, adds headers to responses)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(notes.router)
