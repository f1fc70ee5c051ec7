from meetsync.models.base import Base, engine, AsyncSessionFactory
from meetsync.models.models import (
    Platform,
    Athlete,
    Attempt,
    SyncLogEntry,
    LiftType,
    SyncType,
    EntityType,
    SyncAction,
    ConflictStrategy,
    new_entry_id,
)

__all__ = [
    "Base",
    "engine",
    "AsyncSessionFactory",
    "Platform",
    "Athlete",
    "Attempt",
    "SyncLogEntry",
    "LiftType",
    "SyncType",
    "EntityType",
    "SyncAction",
    "ConflictStrategy",
    "new_entry_id",
]
