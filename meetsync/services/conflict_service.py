"""
Conflict resolver — picks the winner between two versions of one fact.

Strategies
----------
source_priority : remote always wins (the remote side is the designated source)
latest          : newer `timestamp` (fallback `updated_at`) wins; exact tie → local
manual          : no decision, returns None so a human can step in

Pure: the only clock consulted is the timestamps carried by the records.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from meetsync.models.models import ConflictStrategy


def resolve_conflict(local: Any, remote: Any, strategy: str) -> Optional[Any]:
    """
    Return the winning version of a contested record, or None under `manual`.

    `local` / `remote` may be mappings or objects exposing `timestamp`
    (or `updated_at`). Raises ValueError for an unknown strategy.
    """
    if strategy == ConflictStrategy.SOURCE_PRIORITY:
        return remote

    if strategy == ConflictStrategy.LATEST:
        local_ts  = record_timestamp(local)
        remote_ts = record_timestamp(remote)
        if remote_ts is not None and (local_ts is None or remote_ts > local_ts):
            return remote
        return local

    if strategy == ConflictStrategy.MANUAL:
        return None

    raise ValueError(f"Unknown conflict strategy: {strategy!r}")


def record_timestamp(record: Any) -> Optional[datetime]:
    """Read `timestamp` or `updated_at` from a mapping or object, as aware UTC."""
    for key in ("timestamp", "updated_at"):
        if isinstance(record, Mapping):
            value = record.get(key)
        else:
            value = getattr(record, key, None)
        if value is not None:
            return _coerce(value)
    return None


def _coerce(value: Any) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        raise TypeError(f"Unsupported timestamp value: {value!r}")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value
