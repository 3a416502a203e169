"""
Expired edit lock sweep.

Lazy expiry already hides expired locks from every lock-sensitive request;
this task clears them proactively, either once (cron) or in a loop started by
the app lifespan when LOCK_SWEEP_INTERVAL_SECONDS > 0.

Usage:
    python -m tasks.expire_locks
"""
import asyncio
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from services.lock_service import expire_stale_locks

logger = logging.getLogger(__name__)


async def run_expire_locks(
    db: AsyncSession | None = None,
    now: datetime | None = None,
) -> int:
    """
    Clear expired locks and commit.

    Args:
        db: Optional session. When omitted a session is opened from the app's factory.
        now: Current time for the expiry cutoff. Defaults to datetime.now(UTC).

    Returns:
        Number of locks cleared.
    """
    if db is not None:
        cleared = await expire_stale_locks(db, now)
        await db.commit()
        return cleared

    from db.session import async_session_factory  # noqa: PLC0415

    async with async_session_factory() as session:
        cleared = await expire_stale_locks(session, now)
        await session.commit()
    return cleared


async def sweep_forever(
    session_factory: async_sessionmaker[AsyncSession],
    interval_seconds: float,
) -> None:
    """Clear expired locks every interval_seconds until cancelled."""
    logger.info("Background lock sweep every %s seconds", interval_seconds)
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            async with session_factory() as session:
                await expire_stale_locks(session)
                await session.commit()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Background lock sweep failed")


def main() -> None:
    """Entry point for running the sweep as a script."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    cleared = asyncio.run(run_expire_locks())
    logger.info("Expired lock sweep complete: %d cleared", cleared)


if __name__ == "__main__":
    main()
