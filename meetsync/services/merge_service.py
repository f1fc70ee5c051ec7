"""
Results merger for multi-platform competitions.

Algorithm
---------
1. Index platforms by id for name lookup (unknown id → no platform_name).
2. Validate every athlete / attempt record; bad ones are dropped with a
   MergeDiagnostic and the rest of the competition still merges.
3. Group attempts by athlete, then by (lift_type, attempt_number) slot.
   Byte-identical copies of one record (re-delivered by sync) collapse first.
4. A slot holding two or more records is a conflict:
     latest          → the record with the newest timestamp (first wins a tie)
     source_priority → the first record in input order
     manual          → no winner, the slot stays empty
5. Winning attempts are kept in attempt-number order per lift.
6. best_<lift> = heaviest successful winning attempt (0 if none).
7. total = best_squat + best_bench + best_deadlift.
8. last_updated = newest winning attempt, or the athlete's created_at.
9. One MergedResult per athlete, sorted by total DESC (stable).

The merge is a pure function of its inputs: identical input yields equal
output, and nothing is shared between calls.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from functools import reduce
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from meetsync.models.models import ConflictStrategy, LiftType
from meetsync.services.competition_service import load_snapshot
from meetsync.services.conflict_service import resolve_conflict
from meetsync.validators import AthleteRecord, AttemptRecord, PlatformInfo, SyncConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeDiagnostic:
    """Why a single input record was left out of the merge."""
    record_type: str             # "platform" | "athlete" | "attempt"
    record_id:   Optional[str]
    reason:      str


@dataclass(frozen=True)
class MergedResult:
    """One athlete's reconciled result across every platform."""
    athlete_id:    str
    athlete_name:  str
    gender:        str
    weight_class:  str
    division:      str
    age_category:  str
    platform_id:   Optional[str]
    platform_name: Optional[str]

    squat_attempts:    Tuple[AttemptRecord, ...]
    bench_attempts:    Tuple[AttemptRecord, ...]
    deadlift_attempts: Tuple[AttemptRecord, ...]

    best_squat:    float
    best_bench:    float
    best_deadlift: float
    total:         float

    has_conflicting_data: bool
    last_updated:         datetime
    rank:                 Optional[int] = None

    def attempts_for(self, lift_type: str) -> Tuple[AttemptRecord, ...]:
        return {
            LiftType.SQUAT:    self.squat_attempts,
            LiftType.BENCH:    self.bench_attempts,
            LiftType.DEADLIFT: self.deadlift_attempts,
        }[lift_type]

    def best_for(self, lift_type: str) -> float:
        return {
            LiftType.SQUAT:    self.best_squat,
            LiftType.BENCH:    self.best_bench,
            LiftType.DEADLIFT: self.best_deadlift,
        }[lift_type]


@dataclass
class MergeReport:
    results:     List[MergedResult]    = field(default_factory=list)
    diagnostics: List[MergeDiagnostic] = field(default_factory=list)

    @property
    def conflicted(self) -> List[MergedResult]:
        return detect_conflicts(self.results)


# ─────────────────────────── Main entry points ────────────────────────────────

def merge_results(
    athletes: Iterable[Any],
    attempts: Iterable[Any],
    platforms: Iterable[Any],
    conflict_strategy: str = ConflictStrategy.LATEST,
) -> MergeReport:
    """
    Merge every platform's attempts into one result per athlete.

    Parameters
    ----------
    athletes          : Athlete rows, AthleteRecord models or dicts
    attempts          : Attempt rows, AttemptRecord models or dicts
    platforms         : Platform rows, PlatformInfo models or dicts
    conflict_strategy : one of ConflictStrategy.*

    Returns
    -------
    MergeReport with results sorted by total DESC and the diagnostics of
    every dropped record.
    """
    if conflict_strategy not in ConflictStrategy.ALL:
        raise ValueError(f"Unknown conflict strategy: {conflict_strategy!r}")

    report = MergeReport()

    platform_names: Dict[str, str] = {}
    for raw in platforms:
        platform = _validate(PlatformInfo, raw, "platform", report)
        if platform is not None:
            platform_names[platform.id] = platform.name

    valid_athletes: List[AthleteRecord] = []
    seen: set[str] = set()
    for raw in athletes:
        athlete = _validate(AthleteRecord, raw, "athlete", report)
        if athlete is None:
            continue
        if athlete.id in seen:
            _drop(report, "athlete", athlete.id, "duplicate athlete record, first one kept")
            continue
        seen.add(athlete.id)
        valid_athletes.append(athlete)

    attempts_by_athlete: Dict[str, List[AttemptRecord]] = {}
    for raw in attempts:
        attempt = _validate(AttemptRecord, raw, "attempt", report)
        if attempt is None:
            continue
        if attempt.athlete_id not in seen:
            _drop(report, "attempt", attempt.id, f"unknown athlete {attempt.athlete_id}")
            continue
        if attempt.platform_id in platform_names:
            attempt = attempt.model_copy(
                update={"platform_name": platform_names[attempt.platform_id]}
            )
        attempts_by_athlete.setdefault(attempt.athlete_id, []).append(attempt)

    for athlete in valid_athletes:
        report.results.append(
            _merge_athlete(
                athlete,
                attempts_by_athlete.get(athlete.id, []),
                platform_names,
                conflict_strategy,
            )
        )

    report.results.sort(key=lambda r: -r.total)

    logger.info(
        "Merged %d athlete(s) with strategy=%s: %d conflicted, %d record(s) dropped",
        len(report.results), conflict_strategy,
        len(report.conflicted), len(report.diagnostics),
    )
    return report


async def merge_competition(
    session: AsyncSession,
    competition_id: str,
    config: SyncConfig,
) -> MergeReport:
    """
    Load a competition's athletes, attempts and platforms, then merge them
    with the strategy configured in `config.conflict_resolution`.
    """
    athletes, attempts, platforms = await load_snapshot(session, competition_id)
    return merge_results(athletes, attempts, platforms, config.conflict_resolution)


def detect_conflicts(results: Iterable[MergedResult]) -> List[MergedResult]:
    """Results that needed conflict resolution for at least one slot."""
    return [r for r in results if r.has_conflicting_data]


def has_multiple_platform_attempts(athlete_id: str, attempts: Iterable[Any]) -> bool:
    """True when the athlete's attempts were reported by more than one platform."""
    platform_ids = {
        _field(a, "platform_id")
        for a in attempts
        if _field(a, "athlete_id") == athlete_id
    }
    platform_ids.discard(None)
    return len(platform_ids) > 1


# ─────────────────────────── Internal helpers ─────────────────────────────────

def _merge_athlete(
    athlete: AthleteRecord,
    attempts: List[AttemptRecord],
    platform_names: Dict[str, str],
    strategy: str,
) -> MergedResult:
    by_lift, has_conflicts = _merge_attempts_by_lift(attempts, strategy)

    best = {lt: _best_attempt(by_lift[lt]) for lt in LiftType.ALL}
    winners = [a for lt in LiftType.ALL for a in by_lift[lt]]
    last_updated = max((a.timestamp for a in winners), default=athlete.created_at)

    return MergedResult(
        athlete_id=athlete.id,
        athlete_name=athlete.full_name,
        gender=athlete.gender,
        weight_class=athlete.weight_class,
        division=athlete.division,
        age_category=athlete.age_category,
        platform_id=athlete.platform_id,
        platform_name=platform_names.get(athlete.platform_id) if athlete.platform_id else None,
        squat_attempts=tuple(by_lift[LiftType.SQUAT]),
        bench_attempts=tuple(by_lift[LiftType.BENCH]),
        deadlift_attempts=tuple(by_lift[LiftType.DEADLIFT]),
        best_squat=best[LiftType.SQUAT],
        best_bench=best[LiftType.BENCH],
        best_deadlift=best[LiftType.DEADLIFT],
        total=best[LiftType.SQUAT] + best[LiftType.BENCH] + best[LiftType.DEADLIFT],
        has_conflicting_data=has_conflicts,
        last_updated=last_updated,
    )


def _merge_attempts_by_lift(
    attempts: List[AttemptRecord],
    strategy: str,
) -> Tuple[Dict[str, List[AttemptRecord]], bool]:
    slots: Dict[Tuple[str, int], List[AttemptRecord]] = {}
    for a in attempts:
        slots.setdefault((a.lift_type, a.attempt_number), []).append(a)

    by_lift: Dict[str, List[AttemptRecord]] = {lt: [] for lt in LiftType.ALL}
    has_conflicts = False

    for lt in LiftType.ALL:
        for number in LiftType.ATTEMPT_NUMBERS:
            candidates = _distinct(slots.get((lt, number), []))
            if not candidates:
                continue
            if len(candidates) == 1:
                by_lift[lt].append(candidates[0])
                continue

            has_conflicts = True
            winner = _pick_winner(candidates, strategy)
            if winner is not None:
                by_lift[lt].append(winner)

    return by_lift, has_conflicts


def _pick_winner(candidates: List[AttemptRecord], strategy: str) -> Optional[AttemptRecord]:
    if strategy == ConflictStrategy.LATEST:
        # resolve_conflict keeps `local` on a tie, so the earliest record wins ties
        return reduce(
            lambda current, other: resolve_conflict(current, other, ConflictStrategy.LATEST),
            candidates,
        )
    if strategy == ConflictStrategy.SOURCE_PRIORITY:
        return candidates[0]
    return None


def _distinct(records: List[AttemptRecord]) -> List[AttemptRecord]:
    out: List[AttemptRecord] = []
    for r in records:
        if r not in out:
            out.append(r)
    return out


def _best_attempt(attempts: List[AttemptRecord]) -> float:
    return max((a.weight_kg for a in attempts if a.successful), default=0.0)


def _validate(model, raw: Any, record_type: str, report: MergeReport):
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        reason = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        _drop(report, record_type, _field(raw, "id"), reason)
        return None


def _drop(report: MergeReport, record_type: str, record_id: Any, reason: str) -> None:
    record_id = str(record_id) if record_id is not None else None
    report.diagnostics.append(MergeDiagnostic(record_type, record_id, reason))
    logger.warning("Dropped %s %s from merge: %s", record_type, record_id, reason)


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)
