"""
Record validation — Pydantic v2 models.

Every record that crosses a platform boundary (athlete rows, attempt rows,
sync-log payloads) is validated here before the merge or the processor
touches it. ORM rows validate directly thanks to `from_attributes=True`,
so the same models accept dicts from a payload and rows from the database.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, JsonValue, TypeAdapter, field_validator

LiftName     = Literal["squat", "bench", "deadlift"]
StrategyName = Literal["latest", "manual", "source_priority"]
ActionName   = Literal["create", "update", "delete"]


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are taken as UTC so they compare with aware ones
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ─────────────────────────── Configuration value ─────────────────────────────

class SyncConfig(BaseModel):
    """
    Synchronisation settings threaded through dispatcher and merger calls.

    Attributes
    ----------
    auto_sync           : master switch; off → dispatch is a no-op
    sync_interval_ms    : worker tick period
    conflict_resolution : "latest" | "manual" | "source_priority"
    sync_attempts       : propagate judged attempt results
    sync_declarations   : propagate declared (not yet judged) attempt weights
    """

    model_config = ConfigDict(frozen=True)

    auto_sync:           bool         = True
    sync_interval_ms:    int          = Field(default=5000, gt=0)
    conflict_resolution: StrategyName = "latest"
    sync_attempts:       bool         = True
    sync_declarations:   bool         = True


# ─────────────────────────── Domain records ──────────────────────────────────

class PlatformInfo(BaseModel):
    """The slice of a Platform row the dispatcher and merger need."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id:             str
    name:           str
    competition_id: Optional[str]      = None
    location:       Optional[str]      = None
    active:         bool               = True
    created_at:     Optional[datetime] = None

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v) if v is not None else None


class AthleteRecord(BaseModel):
    """Athlete identity as reported by one platform."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id:             str
    competition_id: Optional[str]   = None
    platform_id:    Optional[str]   = None
    first_name:     str
    last_name:      str
    gender:         Literal["M", "F"]
    weight_class:   str
    division:       str
    age_category:   str
    lot_number:     Optional[int]   = None
    bodyweight:     Optional[float] = None
    created_at:     datetime

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class AttemptRecord(BaseModel):
    """
    A judged attempt reported by one platform.

    The (athlete_id, lift_type, attempt_number) triple identifies the slot;
    several records may claim the same slot, which is a conflict.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id:             str
    athlete_id:     str
    platform_id:    Optional[str] = None
    platform_name:  Optional[str] = None
    lift_type:      LiftName
    attempt_number: int   = Field(ge=1, le=3)
    weight_kg:      float = Field(gt=0)
    successful:     bool
    timestamp:      datetime

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @property
    def slot(self) -> tuple[str, str, int]:
        return (self.athlete_id, self.lift_type, self.attempt_number)


# ─────────────────────────── Sync payloads ───────────────────────────────────

class _ChangeBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    entity_id: str
    action:    ActionName
    # JSON-native values only, so the log round trip is lossless
    payload:   Dict[str, JsonValue] = Field(default_factory=dict)


class AthleteChange(_ChangeBase):
    entity_type: Literal["athlete"] = "athlete"


class AttemptChange(_ChangeBase):
    entity_type: Literal["attempt"] = "attempt"
    # True for a declared weight not yet judged
    declaration: bool = False


class OrderChange(_ChangeBase):
    entity_type: Literal["order"] = "order"


SyncData = Annotated[
    Union[AthleteChange, AttemptChange, OrderChange],
    Field(discriminator="entity_type"),
]

_sync_data_adapter: TypeAdapter = TypeAdapter(SyncData)


def serialize_sync_data(data: Union[AthleteChange, AttemptChange, OrderChange]) -> str:
    """Serialize a change for the sync log `data` column."""
    return data.model_dump_json()


def parse_sync_data(raw: Union[str, bytes]) -> Union[AthleteChange, AttemptChange, OrderChange]:
    """
    Parse a sync log `data` column back into its change model.
    Raises pydantic.ValidationError on bad JSON or an unknown entity_type.
    """
    return _sync_data_adapter.validate_json(raw)
