"""
Shared pytest fixtures for meetsync tests.

Sets required environment variables BEFORE any meetsync module is imported so
that pydantic-settings and SQLAlchemy engine initialisation use safe test values.
"""
from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Dict, Optional

# ── Set env vars before any meetsync import ───────────────────────────────────
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# ── Third-party ───────────────────────────────────────────────────────────────
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# ── meetsync imports (safe after env vars are set) ────────────────────────────
from meetsync.models.base import Base

T0 = datetime(2026, 3, 14, 10, 0, 0, tzinfo=timezone.utc)


def at(minutes: float) -> datetime:
    """Timestamp `minutes` after the start of the test meet."""
    return T0 + timedelta(minutes=minutes)


# ── DB fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture
async def async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a fresh AsyncSession backed by an isolated in-memory SQLite database.
    Schema is created fresh for every test function; engine is always disposed
    on teardown, even if the test raises an exception.
    """
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with factory() as session:
            yield session
    finally:
        await engine.dispose()


# ── Record factories ──────────────────────────────────────────────────────────

def _athlete(
    athlete_id: str = "ath-1",
    first_name: str = "Anna",
    last_name: str = "Berg",
    gender: str = "F",
    weight_class: str = "-63",
    platform_id: Optional[str] = "plat-a",
    **overrides: Any,
) -> Dict[str, Any]:
    record = dict(
        id=athlete_id,
        competition_id="meet-1",
        platform_id=platform_id,
        first_name=first_name,
        last_name=last_name,
        gender=gender,
        weight_class=weight_class,
        division="open",
        age_category="open",
        created_at=T0,
    )
    record.update(overrides)
    return record


def _attempt(
    attempt_id: str,
    lift_type: str,
    attempt_number: int,
    weight_kg: float,
    successful: bool = True,
    athlete_id: str = "ath-1",
    platform_id: Optional[str] = "plat-a",
    minutes: float = 0,
) -> Dict[str, Any]:
    return dict(
        id=attempt_id,
        athlete_id=athlete_id,
        platform_id=platform_id,
        lift_type=lift_type,
        attempt_number=attempt_number,
        weight_kg=weight_kg,
        successful=successful,
        timestamp=at(minutes),
    )


def _platform(
    platform_id: str,
    name: str,
    active: bool = True,
) -> Dict[str, Any]:
    return dict(id=platform_id, competition_id="meet-1", name=name, active=active, created_at=T0)


@pytest.fixture
def make_athlete():
    """Factory fixture — returns a callable that builds an athlete dict."""
    return _athlete


@pytest.fixture
def make_attempt():
    """Factory fixture — returns a callable that builds an attempt dict."""
    return _attempt


@pytest.fixture
def platforms():
    """Two active platforms of the test meet."""
    return [_platform("plat-a", "Platform A"), _platform("plat-b", "Platform B")]


@pytest.fixture
def make_platform():
    return _platform
