"""Fixtures shared by service tests that need real, separately committed transactions."""
import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker


@pytest.fixture
async def independent_session_factory(
    async_engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """
    Create a session factory for independent sessions.

    Unlike db_session fixture, these sessions are NOT bound to a shared transaction,
    so two of them contend for row and advisory locks exactly like two requests would.
    Tests using them must remove what they commit.
    """
    return async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
