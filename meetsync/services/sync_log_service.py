"""
Sync log persistence — the append-only ledger behind dispatch and processing.

Entries are only ever inserted; the one permitted update is the `synced`
flag flipped by the processor, persisted when the caller commits.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meetsync.models.models import SyncLogEntry
from meetsync.services.platform_service import list_platforms
from meetsync.services.sync_service import Change, Deliver, SyncOutcome, dispatch, process_pending
from meetsync.validators import SyncConfig

logger = logging.getLogger(__name__)


async def record_sync_logs(
    session: AsyncSession,
    entries: Iterable[SyncLogEntry],
) -> List[SyncLogEntry]:
    """Append dispatched entries to the log (flushed, not committed)."""
    entries = list(entries)
    session.add_all(entries)
    await session.flush()
    return entries


async def list_sync_logs(
    session: AsyncSession,
    competition_id: str,
    synced: Optional[bool] = None,
) -> List[SyncLogEntry]:
    q = (
        select(SyncLogEntry)
        .where(SyncLogEntry.competition_id == competition_id)
        .order_by(SyncLogEntry.timestamp, SyncLogEntry.id)
    )
    if synced is not None:
        q = q.where(SyncLogEntry.synced.is_(synced))
    result = await session.execute(q)
    return list(result.scalars().all())


async def list_pending_sync_logs(
    session: AsyncSession,
    competition_id: str,
    target_platform_id: Optional[str] = None,
) -> List[SyncLogEntry]:
    """Unsynced entries, oldest first, optionally for a single target platform."""
    q = (
        select(SyncLogEntry)
        .where(
            SyncLogEntry.competition_id == competition_id,
            SyncLogEntry.synced.is_(False),
        )
        .order_by(SyncLogEntry.timestamp, SyncLogEntry.id)
    )
    if target_platform_id is not None:
        q = q.where(SyncLogEntry.target_platform_id == target_platform_id)
    result = await session.execute(q)
    return list(result.scalars().all())


async def list_competitions_with_pending(session: AsyncSession) -> List[str]:
    result = await session.execute(
        select(SyncLogEntry.competition_id)
        .where(SyncLogEntry.synced.is_(False))
        .distinct()
    )
    return list(result.scalars().all())


async def dispatch_change(
    session: AsyncSession,
    change: Change,
    competition_id: str,
    source_platform_id: str,
    config: SyncConfig,
) -> List[SyncLogEntry]:
    """Dispatch a change to the competition's registered platforms and log it."""
    platforms = await list_platforms(session, competition_id)
    entries = dispatch(change, competition_id, source_platform_id, platforms, config)
    if entries:
        await record_sync_logs(session, entries)
    return entries


async def run_sync_tick(
    session: AsyncSession,
    competition_id: str,
    deliver: Deliver,
    timeout: Optional[float] = None,
) -> SyncOutcome:
    """
    Drain the competition's pending entries once.
    Flipped `synced` flags are flushed; the caller commits.
    """
    pending = await list_pending_sync_logs(session, competition_id)
    if not pending:
        return SyncOutcome()

    outcome = await process_pending(pending, deliver, timeout=timeout)
    await session.flush()
    logger.info(
        "Sync tick for competition %s: %d processed, %d failed",
        competition_id, outcome.processed, outcome.failed,
    )
    return outcome
