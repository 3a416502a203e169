"""
One-off backfill of the note search projection.

The app runs the same backfill at startup (BACKFILL_ON_STARTUP); this entry
point exists for deployments that disable it.

Usage:
    python -m tasks.backfill_content_text
"""
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from services.content_indexer import backfill_content_text

logger = logging.getLogger(__name__)


async def run_backfill(db: AsyncSession | None = None) -> int:
    """
    Backfill content_text and commit.

    Returns:
        Number of notes updated.
    """
    if db is not None:
        updated = await backfill_content_text(db)
        await db.commit()
        return updated

    from db.session import async_session_factory  # noqa: PLC0415

    async with async_session_factory() as session:
        updated = await backfill_content_text(session)
        await session.commit()
    return updated


def main() -> None:
    """Entry point for running the backfill as a script."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    updated = asyncio.run(run_backfill())
    logger.info("Backfill complete: %d notes updated", updated)


if __name__ == "__main__":
    main()
