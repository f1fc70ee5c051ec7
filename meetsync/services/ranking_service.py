"""
Ranking assembler for merged multi-platform results.

Algorithm
---------
1. Optionally filter merged results by gender and / or weight class.
2. Sort by total DESC. The sort is stable, so athletes with equal totals
   keep their relative input order: the earlier one ranks higher.
3. Assign rank = position + 1: 1, 2, 3 … with no gaps and no shared places.

Ranking a list that is already filtered, sorted and ranked returns the same
ranks, so re-ranking is safe.

Category rankings
-----------------
One ranking per (gender, weight class) pair present in the results, ordered
M before F, then by weight-class limit ascending ("120+" after "-120").
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Tuple

from meetsync.models.models import LiftType
from meetsync.services.merge_service import MergedResult


@dataclass
class CategoryRanking:
    """Ranking for a single gender / weight-class category."""
    gender:       str
    weight_class: str
    results:      List[MergedResult] = field(default_factory=list)

    @property
    def category_display(self) -> str:
        return f"{self.weight_class} kg {self.gender}"


# ─────────────────────────── Main entry points ────────────────────────────────

def rank_results(
    results: Iterable[MergedResult],
    gender: Optional[str] = None,
    weight_class: Optional[str] = None,
) -> List[MergedResult]:
    """
    Filter, sort and rank merged results.

    Returns new MergedResult objects carrying `rank`; the input is untouched.
    """
    filtered = [
        r for r in results
        if (gender is None or r.gender == gender)
        and (weight_class is None or r.weight_class == weight_class)
    ]
    filtered.sort(key=lambda r: -r.total)
    return [replace(r, rank=i + 1) for i, r in enumerate(filtered)]


def compute_category_rankings(results: Iterable[MergedResult]) -> List[CategoryRanking]:
    """Rank every (gender, weight class) category present in the results."""
    groups: Dict[Tuple[str, str], List[MergedResult]] = {}
    for r in results:
        groups.setdefault((r.gender, r.weight_class), []).append(r)

    rankings = [
        CategoryRanking(gender=gender, weight_class=wc, results=rank_results(group))
        for (gender, wc), group in groups.items()
    ]
    rankings.sort(key=_category_sort_key)
    return rankings


# ─────────────────────────── Internal helpers ─────────────────────────────────

def _category_sort_key(ranking: CategoryRanking) -> tuple:
    gender_order = {"M": 0, "F": 1}
    gender_val   = gender_order.get(ranking.gender, 2)

    name = ranking.weight_class
    try:
        if name.endswith("+"):
            return (gender_val, float(name[:-1]) + 0.1, name)
        return (gender_val, float(name.lstrip("-")), name)
    except ValueError:
        return (gender_val, float("inf"), name)


# ─────────────────────────── Formatting helpers ───────────────────────────────

def format_total_breakdown(result: MergedResult) -> str:
    """
    Human-readable total breakdown for displays.
    Example: "Squat: 200 + Bench: 140 + Deadlift: 230 = 570 kg"
    """
    parts = []
    for lt in LiftType.ALL:
        best  = result.best_for(lt)
        label = LiftType.LABELS[lt]
        parts.append(f"{label}: {best:g}" if best else f"{label}: —")

    breakdown = " + ".join(parts) + f" = {result.total:g} kg"
    if result.has_conflicting_data:
        breakdown += " (conflicting platform data)"
    return breakdown
