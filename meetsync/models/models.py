"""
ORM models for the meetsync multi-platform results store.

Domain overview
---------------
Platform       — one physical scoring station of a competition
Athlete        — registered lifter, optionally owned by a platform
  └─ Attempt   — a judged lift attempt as reported by one platform
SyncLogEntry   — append-only change-propagation intent between platforms

Platform ids on Athlete / Attempt / SyncLogEntry are plain columns, not
foreign keys: deleting a platform leaves its history in place.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from meetsync.models.base import Base

# ─────────────────────────── Constants ────────────────────────────────────────

class LiftType:
    SQUAT    = "squat"
    BENCH    = "bench"
    DEADLIFT = "deadlift"

    ALL: tuple[str, ...] = (SQUAT, BENCH, DEADLIFT)

    LABELS: dict[str, str] = {
        SQUAT:    "Squat",
        BENCH:    "Bench",
        DEADLIFT: "Deadlift",
    }

    ATTEMPT_NUMBERS: tuple[int, ...] = (1, 2, 3)


class SyncType:
    ATHLETE_UPDATE = "athlete_update"
    ATTEMPT_RESULT = "attempt_result"
    ORDER_CHANGE   = "order_change"


class EntityType:
    ATHLETE = "athlete"
    ATTEMPT = "attempt"
    ORDER   = "order"

    # entity kind → sync_type written to the log
    SYNC_TYPES: dict[str, str] = {
        ATHLETE: SyncType.ATHLETE_UPDATE,
        ATTEMPT: SyncType.ATTEMPT_RESULT,
        ORDER:   SyncType.ORDER_CHANGE,
    }


class SyncAction:
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ConflictStrategy:
    LATEST          = "latest"           # newest timestamp wins
    SOURCE_PRIORITY = "source_priority"  # designated source wins
    MANUAL          = "manual"           # a human decides

    ALL: tuple[str, ...] = (LATEST, SOURCE_PRIORITY, MANUAL)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_entry_id() -> str:
    """Random UUID4 string used as primary key for platforms and sync log entries."""
    return str(uuid.uuid4())


# ─────────────────────────── Models ───────────────────────────────────────────

class Platform(Base):
    """A scoring station running part of a competition."""
    __tablename__ = "platforms"

    id:             Mapped[str]           = mapped_column(String(36), primary_key=True, default=new_entry_id)
    competition_id: Mapped[str]           = mapped_column(String(36), index=True)
    name:           Mapped[str]           = mapped_column(String(255))
    location:       Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    active:         Mapped[bool]          = mapped_column(Boolean, default=True)
    created_at:     Mapped[datetime]      = mapped_column(DateTime(timezone=True), default=_utcnow)


class Athlete(Base):
    """A lifter registered for a competition."""
    __tablename__ = "athletes"

    id:             Mapped[str]             = mapped_column(String(36), primary_key=True, default=new_entry_id)
    competition_id: Mapped[str]             = mapped_column(String(36), index=True)
    platform_id:    Mapped[Optional[str]]   = mapped_column(String(36), nullable=True)
    first_name:     Mapped[str]             = mapped_column(String(255))
    last_name:      Mapped[str]             = mapped_column(String(255))
    gender:         Mapped[str]             = mapped_column(String(5))        # "M" | "F"
    weight_class:   Mapped[str]             = mapped_column(String(20))       # e.g. "-93", "120+"
    division:       Mapped[str]             = mapped_column(String(50))
    age_category:   Mapped[str]             = mapped_column(String(50))
    lot_number:     Mapped[Optional[int]]   = mapped_column(Integer, nullable=True)
    bodyweight:     Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    created_at:     Mapped[datetime]        = mapped_column(DateTime(timezone=True), default=_utcnow)

    attempts: Mapped[List["Attempt"]] = relationship(
        back_populates="athlete", cascade="all, delete-orphan"
    )


class Attempt(Base):
    """
    A single judged lift attempt as reported by one platform.
    Two platforms may report the same (athlete, lift, attempt number) slot;
    the merge step decides which record wins.
    """
    __tablename__ = "attempts"

    id:             Mapped[str]           = mapped_column(String(36), primary_key=True, default=new_entry_id)
    athlete_id:     Mapped[str]           = mapped_column(ForeignKey("athletes.id", ondelete="CASCADE"), index=True)
    platform_id:    Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    lift_type:      Mapped[str]           = mapped_column(String(20))   # squat / bench / deadlift
    attempt_number: Mapped[int]           = mapped_column(Integer)      # 1, 2, 3
    weight_kg:      Mapped[float]         = mapped_column(Float)
    successful:     Mapped[bool]          = mapped_column(Boolean, default=False)
    timestamp:      Mapped[datetime]      = mapped_column(DateTime(timezone=True), default=_utcnow)

    athlete: Mapped["Athlete"] = relationship(back_populates="attempts")


class SyncLogEntry(Base):
    """
    One change-propagation intent from a source platform to a target.
    Immutable once written, except for `synced` (false → true on delivery).
    """
    __tablename__ = "platform_sync_logs"
    __table_args__ = (
        Index("ix_sync_logs_pending", "competition_id", "synced", "timestamp"),
    )

    id:                 Mapped[str]           = mapped_column(String(36), primary_key=True, default=new_entry_id)
    competition_id:     Mapped[str]           = mapped_column(String(36))
    source_platform_id: Mapped[str]           = mapped_column(String(36))
    target_platform_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    sync_type:          Mapped[str]           = mapped_column(String(30))   # SyncType.*
    data:               Mapped[str]           = mapped_column(Text)         # JSON SyncData
    synced:             Mapped[bool]          = mapped_column(Boolean, default=False)
    timestamp:          Mapped[datetime]      = mapped_column(DateTime(timezone=True), default=_utcnow)
