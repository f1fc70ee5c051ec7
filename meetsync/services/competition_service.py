"""
Competition data service — athlete and attempt rows the merge reads from.

All functions receive an AsyncSession parameter and only flush; committing
is left to the caller.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meetsync.models.models import Athlete, Attempt, Platform


# ── Athletes ──────────────────────────────────────────────────────────────────

async def register_athlete(
    session: AsyncSession,
    competition_id: str,
    first_name: str,
    last_name: str,
    gender: str,
    weight_class: str,
    division: str,
    age_category: str,
    platform_id: Optional[str] = None,
    lot_number: Optional[int] = None,
    bodyweight: Optional[float] = None,
    athlete_id: Optional[str] = None,
) -> Athlete:
    athlete = Athlete(
        competition_id=competition_id,
        first_name=first_name,
        last_name=last_name,
        gender=gender,
        weight_class=weight_class,
        division=division,
        age_category=age_category,
        platform_id=platform_id,
        lot_number=lot_number,
        bodyweight=bodyweight,
    )
    if athlete_id is not None:
        athlete.id = athlete_id
    session.add(athlete)
    await session.flush()
    return athlete


async def list_athletes(session: AsyncSession, competition_id: str) -> List[Athlete]:
    result = await session.execute(
        select(Athlete)
        .where(Athlete.competition_id == competition_id)
        .order_by(Athlete.created_at, Athlete.id)
    )
    return list(result.scalars().all())


# ── Attempts ──────────────────────────────────────────────────────────────────

async def record_attempt(
    session: AsyncSession,
    athlete_id: str,
    lift_type: str,
    attempt_number: int,
    weight_kg: float,
    successful: bool,
    platform_id: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> Attempt:
    """
    Append an attempt reported by a platform.
    Existing rows for the same slot are never overwritten; the merge resolves them.
    """
    attempt = Attempt(
        athlete_id=athlete_id,
        lift_type=lift_type,
        attempt_number=attempt_number,
        weight_kg=weight_kg,
        successful=successful,
        platform_id=platform_id,
    )
    if timestamp is not None:
        attempt.timestamp = timestamp
    session.add(attempt)
    await session.flush()
    return attempt


async def list_attempts(session: AsyncSession, competition_id: str) -> List[Attempt]:
    """All attempts of a competition, oldest first (the merge's input order)."""
    result = await session.execute(
        select(Attempt)
        .join(Athlete, Attempt.athlete_id == Athlete.id)
        .where(Athlete.competition_id == competition_id)
        .order_by(Attempt.timestamp, Attempt.id)
    )
    return list(result.scalars().all())


async def load_snapshot(
    session: AsyncSession,
    competition_id: str,
) -> Tuple[List[Athlete], List[Attempt], List[Platform]]:
    """Read athletes, attempts and platforms of a competition in one go."""
    athletes = await list_athletes(session, competition_id)
    attempts = await list_attempts(session, competition_id)
    result = await session.execute(
        select(Platform).where(Platform.competition_id == competition_id)
    )
    platforms = list(result.scalars().all())
    return athletes, attempts, platforms
