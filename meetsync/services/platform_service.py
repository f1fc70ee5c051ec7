"""
Platform registry — CRUD over scoring stations, plus per-platform activity stats.

Deleting a platform never cascades: athletes, attempts and sync log entries
keep the orphaned platform id, and the merge simply finds no name for it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy import func, or_, select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from meetsync.models.models import LiftType, Platform, SyncLogEntry
from meetsync.validators import AthleteRecord, AttemptRecord, PlatformInfo

logger = logging.getLogger(__name__)

_UPDATABLE = ("name", "location", "active")


@dataclass
class PlatformStats:
    """Activity snapshot of one platform."""
    platform_id:          str
    platform_name:        str
    total_athletes:       int
    athletes_in_progress: int
    athletes_completed:   int
    current_lift_type:    Optional[str]
    last_activity:        Optional[datetime]


# ── CRUD ──────────────────────────────────────────────────────────────────────

async def create_platform(
    session: AsyncSession,
    competition_id: str,
    name: str,
    location: Optional[str] = None,
    active: bool = True,
) -> Platform:
    platform = Platform(
        competition_id=competition_id,
        name=name,
        location=location,
        active=active,
    )
    session.add(platform)
    await session.flush()
    logger.info("Platform %s (%s) created for competition %s", platform.id, name, competition_id)
    return platform


async def get_platform(session: AsyncSession, platform_id: str) -> Optional[Platform]:
    return await session.get(Platform, platform_id)


async def list_platforms(session: AsyncSession, competition_id: str) -> List[Platform]:
    result = await session.execute(
        select(Platform)
        .where(Platform.competition_id == competition_id)
        .order_by(Platform.created_at, Platform.name)
    )
    return list(result.scalars().all())


async def update_platform(
    session: AsyncSession,
    platform_id: str,
    **fields: Any,
) -> Optional[Platform]:
    """
    Update name / location / active of a platform.
    Returns None if the platform does not exist; raises ValueError on other fields.
    """
    unknown = set(fields) - set(_UPDATABLE)
    if unknown:
        raise ValueError(f"Cannot update platform field(s): {', '.join(sorted(unknown))}")

    platform = await session.get(Platform, platform_id)
    if platform is None:
        return None
    for key, value in fields.items():
        setattr(platform, key, value)
    await session.flush()
    return platform


async def set_platform_active(
    session: AsyncSession,
    platform_id: str,
    active: bool,
) -> Optional[Platform]:
    """Pull a platform out of (or back into) sync without touching its history."""
    return await update_platform(session, platform_id, active=active)


async def count_pending_syncs(session: AsyncSession, platform_id: str) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(SyncLogEntry)
        .where(
            SyncLogEntry.synced.is_(False),
            or_(
                SyncLogEntry.source_platform_id == platform_id,
                SyncLogEntry.target_platform_id == platform_id,
            ),
        )
    )
    return int(result.scalar_one())


async def delete_platform(
    session: AsyncSession,
    platform_id: str,
    force: bool = False,
) -> Tuple[bool, str]:
    """
    Remove a platform from the registry.

    Returns (True, "") on success, (False, reason) when the platform is
    unknown or, without `force`, still has undelivered sync entries.
    """
    platform = await session.get(Platform, platform_id)
    if platform is None:
        return False, "Platform not found"

    pending = await count_pending_syncs(session, platform_id)
    if pending and not force:
        return False, f"Platform has {pending} pending sync entr{'y' if pending == 1 else 'ies'}"

    await session.execute(delete(Platform).where(Platform.id == platform_id))
    logger.info("Platform %s deleted (%d pending sync entries left)", platform_id, pending)
    return True, ""


# ── Stats ─────────────────────────────────────────────────────────────────────

def compute_platform_stats(
    platforms: Iterable[Any],
    athletes: Iterable[Any],
    attempts: Iterable[Any],
) -> List[PlatformStats]:
    """
    Per-platform progress from raw rows.

    An athlete belongs to the platform it is registered on. It is completed
    once its third deadlift attempt is recorded, in progress once any attempt
    is recorded. Current lift and last activity come from the newest attempt
    reported by the platform. Records that fail validation are ignored here;
    the merge reports them.
    """
    athlete_list = list(_valid(AthleteRecord, athletes))
    attempt_list = list(_valid(AttemptRecord, attempts))

    stats: List[PlatformStats] = []
    for platform in _valid(PlatformInfo, platforms):
        own_ids = {a.id for a in athlete_list if a.platform_id == platform.id}
        own_attempts = [a for a in attempt_list if a.athlete_id in own_ids]

        started   = {a.athlete_id for a in own_attempts}
        completed = {
            a.athlete_id for a in own_attempts
            if a.lift_type == LiftType.DEADLIFT and a.attempt_number == 3
        }

        reported = [a for a in attempt_list if a.platform_id == platform.id]
        latest = max(reported, key=lambda a: a.timestamp, default=None)

        stats.append(
            PlatformStats(
                platform_id=platform.id,
                platform_name=platform.name,
                total_athletes=len(own_ids),
                athletes_in_progress=len(started - completed),
                athletes_completed=len(completed),
                current_lift_type=latest.lift_type if latest else None,
                last_activity=latest.timestamp if latest else platform.created_at,
            )
        )
    return stats


def _valid(model, rows: Iterable[Any]) -> Iterable[Any]:
    for row in rows:
        try:
            yield model.model_validate(row)
        except ValidationError:
            logger.debug("Skipping invalid %s row in platform stats", model.__name__)
