"""
Sync dispatcher and processor.

Dispatch
--------
A local mutation (athlete edit, attempt result / declaration, order change)
becomes one SyncLogEntry per active platform other than the source — a star
broadcast, no relaying. Entries come back unsaved; writing them to the log
is the caller's job (see sync_log_service.record_sync_logs).

Processing
----------
Unsynced entries are parsed back into their change model and handed to an
injected `deliver(entry, data)` coroutine one at a time, in input order.
Success flips `synced`; a False result, an exception, a timeout or an
unparseable payload counts as failed and leaves the entry for a later tick.
There is no retry or backoff here.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError
from pydantic_core import to_jsonable_python

from meetsync.models.models import EntityType, SyncAction, SyncLogEntry, new_entry_id
from meetsync.validators import (
    AthleteChange,
    AttemptChange,
    OrderChange,
    PlatformInfo,
    SyncConfig,
    parse_sync_data,
    serialize_sync_data,
)

logger = logging.getLogger(__name__)

Change  = Union[AthleteChange, AttemptChange, OrderChange]
Deliver = Callable[[SyncLogEntry, Change], Awaitable[bool]]


@dataclass
class SyncOutcome:
    """Counters reported by one processing pass."""
    processed:  int       = 0
    failed:     int       = 0
    failed_ids: List[str] = field(default_factory=list)

    def _fail(self, entry_id: str) -> None:
        self.failed += 1
        self.failed_ids.append(entry_id)


@dataclass
class PlatformSyncStatus:
    """Per-platform view of the sync log."""
    platform_id:   str
    platform_name: str
    pending_syncs: int
    last_sync:     Optional[datetime]

    @property
    def is_synced(self) -> bool:
        return self.pending_syncs == 0


# ─────────────────────────── Change builders ──────────────────────────────────

def athlete_update_change(athlete: Mapping[str, Any]) -> AthleteChange:
    return AthleteChange(
        entity_id=str(athlete["id"]),
        action=SyncAction.UPDATE,
        payload=_json_payload(athlete),
    )


def attempt_result_change(attempt: Mapping[str, Any]) -> AttemptChange:
    return AttemptChange(
        entity_id=str(attempt["id"]),
        action=SyncAction.CREATE,
        payload=_json_payload(attempt),
    )


def attempt_declaration_change(attempt: Mapping[str, Any]) -> AttemptChange:
    """A declared next-attempt weight, before the referees judge it."""
    return AttemptChange(
        entity_id=str(attempt["id"]),
        action=SyncAction.UPDATE,
        payload=_json_payload(attempt),
        declaration=True,
    )


def order_change_change(order: Mapping[str, Any]) -> OrderChange:
    return OrderChange(
        entity_id="order_update",
        action=SyncAction.UPDATE,
        payload=_json_payload(order),
    )


def _json_payload(record: Mapping[str, Any]) -> dict:
    # datetimes and other rich values become their JSON form (ISO strings)
    return to_jsonable_python(dict(record))


def sync_type_for(change: Change) -> str:
    """Map a change to the sync_type column value."""
    return EntityType.SYNC_TYPES[change.entity_type]


# ─────────────────────────── Dispatch ─────────────────────────────────────────

def create_sync_log(
    competition_id: str,
    source_platform_id: str,
    target_platform_id: Optional[str],
    change: Change,
    timestamp: datetime,
) -> SyncLogEntry:
    """Build one unsaved, unsynced log entry for a change."""
    return SyncLogEntry(
        id=new_entry_id(),
        competition_id=competition_id,
        source_platform_id=source_platform_id,
        target_platform_id=target_platform_id,
        sync_type=sync_type_for(change),
        data=serialize_sync_data(change),
        synced=False,
        timestamp=timestamp,
    )


def should_dispatch(change: Change, config: SyncConfig) -> bool:
    if not config.auto_sync:
        return False
    if isinstance(change, AttemptChange):
        if change.declaration:
            return config.sync_declarations
        return config.sync_attempts
    return True


def dispatch(
    change: Change,
    competition_id: str,
    source_platform_id: str,
    all_platforms: Iterable[Any],
    config: SyncConfig,
    now: Optional[datetime] = None,
) -> List[SyncLogEntry]:
    """
    Fan a local change out to every other active platform.

    Parameters
    ----------
    change             : AthleteChange / AttemptChange / OrderChange
    all_platforms      : Platform rows, PlatformInfo models or dicts
    config             : explicit SyncConfig (no ambient settings are read)
    now                : timestamp stamped on every entry of this fan-out

    Returns
    -------
    Unsaved SyncLogEntry objects, one per target, in platform order.
    """
    if not should_dispatch(change, config):
        logger.debug(
            "Sync disabled for %s change %s, nothing dispatched",
            change.entity_type, change.entity_id,
        )
        return []

    timestamp = now or datetime.now(timezone.utc)
    entries: List[SyncLogEntry] = []
    for raw in all_platforms:
        platform = PlatformInfo.model_validate(raw)
        if platform.id == source_platform_id or not platform.active:
            continue
        entries.append(
            create_sync_log(competition_id, source_platform_id, platform.id, change, timestamp)
        )

    logger.info(
        "Dispatched %s %s from platform %s to %d platform(s)",
        change.entity_type, change.entity_id, source_platform_id, len(entries),
    )
    return entries


# ─────────────────────────── Processing ───────────────────────────────────────

async def process_pending(
    entries: Iterable[SyncLogEntry],
    deliver: Deliver,
    timeout: Optional[float] = None,
) -> SyncOutcome:
    """
    Deliver every unsynced entry, sequentially and in input order.

    `timeout` bounds each deliver() call in seconds; a timed-out delivery
    is counted as failed.
    """
    outcome = SyncOutcome()

    for entry in [e for e in entries if not e.synced]:
        try:
            data = parse_sync_data(entry.data)
        except ValidationError as e:
            logger.warning("Sync entry %s has a malformed payload: %s", entry.id, e)
            outcome._fail(entry.id)
            continue

        if sync_type_for(data) != entry.sync_type:
            logger.warning(
                "Sync entry %s is typed %s but carries a %s payload",
                entry.id, entry.sync_type, data.entity_type,
            )
            outcome._fail(entry.id)
            continue

        try:
            if timeout is None:
                delivered = await deliver(entry, data)
            else:
                delivered = await asyncio.wait_for(deliver(entry, data), timeout)
        except asyncio.TimeoutError:
            logger.warning("Delivery of sync entry %s timed out after %ss", entry.id, timeout)
            outcome._fail(entry.id)
            continue
        except Exception:
            logger.exception("Delivery of sync entry %s raised", entry.id)
            outcome._fail(entry.id)
            continue

        if delivered:
            entry.synced = True
            outcome.processed += 1
        else:
            logger.warning(
                "Delivery of sync entry %s to platform %s failed",
                entry.id, entry.target_platform_id,
            )
            outcome._fail(entry.id)

    return outcome


# ─────────────────────────── Status ───────────────────────────────────────────

def check_sync_status(
    platforms: Iterable[Any],
    entries: Iterable[SyncLogEntry],
) -> List[PlatformSyncStatus]:
    """
    Pending / last-synced summary per platform.
    An entry counts for a platform when it is either its source or its target.
    """
    entries = list(entries)
    statuses: List[PlatformSyncStatus] = []

    for raw in platforms:
        platform = PlatformInfo.model_validate(raw)
        related = [
            e for e in entries
            if e.source_platform_id == platform.id or e.target_platform_id == platform.id
        ]
        synced_times = [e.timestamp for e in related if e.synced]
        statuses.append(
            PlatformSyncStatus(
                platform_id=platform.id,
                platform_name=platform.name,
                pending_syncs=sum(1 for e in related if not e.synced),
                last_sync=max(synced_times) if synced_times else None,
            )
        )

    return statuses

