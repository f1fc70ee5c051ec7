"""
meetsync — multi-platform sync worker.
Entry point: creates tables, then drains the sync log every tick until stopped.
"""
import asyncio
import logging
import signal
import sys

from meetsync.config import settings
from meetsync.models.base import AsyncSessionFactory, Base, engine
from meetsync.models.models import SyncLogEntry
from meetsync.services.sync_log_service import list_competitions_with_pending, run_sync_tick
from meetsync.services.sync_service import Change

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


async def create_tables() -> None:
    """Create all database tables on startup."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ready.")
    except Exception as e:
        logger.critical(
            "Cannot connect to database!\n"
            "   URL: %s\n"
            "   Error: %s\n\n"
            "   → Locally: start PostgreSQL or use SQLite "
            "(DATABASE_URL=sqlite+aiosqlite:///./meetsync.db)",
            settings.DATABASE_URL.split("@")[-1],   # hide credentials in log
            e,
        )
        sys.exit(1)


async def acknowledge_delivery(entry: SyncLogEntry, data: Change) -> bool:
    """
    Deliverer for single-store deployments: every platform reads the shared
    database directly, so an entry only needs acknowledging.
    """
    logger.debug(
        "Acknowledged %s %s → platform %s",
        data.entity_type, data.entity_id, entry.target_platform_id,
    )
    return True


async def sync_once(deliver=acknowledge_delivery) -> None:
    """One worker tick: one session and one commit per competition."""
    async with AsyncSessionFactory() as session:
        competitions = await list_competitions_with_pending(session)

    for competition_id in competitions:
        async with AsyncSessionFactory() as session:
            try:
                await run_sync_tick(
                    session, competition_id, deliver,
                    timeout=settings.SYNC_DELIVERY_TIMEOUT,
                )
                await session.commit()
            except Exception:
                await session.rollback()
                raise


async def main() -> None:
    logger.info("Starting meetsync worker…")
    await create_tables()

    config = settings.sync_config
    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def _handle_signal():
        logger.info("Received shutdown signal, stopping…")
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _handle_signal)
        except NotImplementedError:
            # Windows does not support add_signal_handler
            pass

    try:
        logger.info(
            "Worker is running (auto_sync=%s, interval=%dms). Press Ctrl+C to stop.",
            config.auto_sync, config.sync_interval_ms,
        )
        while not shutdown_event.is_set():
            if config.auto_sync:
                try:
                    await sync_once()
                except Exception:
                    logger.exception("Sync tick failed")
            try:
                await asyncio.wait_for(
                    shutdown_event.wait(), timeout=config.sync_interval_ms / 1000
                )
            except asyncio.TimeoutError:
                pass
    finally:
        logger.info("Shutting down…")
        await engine.dispose()
        logger.info("Shutdown complete.")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
