"""
Unit tests — Ranking assembler (ranking_service.py).

Merged results are produced by merge_results from plain dicts, or built
directly where only the total matters. No database is required.
"""
from __future__ import annotations

from meetsync.services.merge_service import MergedResult, merge_results
from meetsync.services.ranking_service import (
    compute_category_rankings,
    format_total_breakdown,
    rank_results,
)
from tests.conftest import T0


def _result(
    athlete_id: str,
    total: float,
    gender: str = "M",
    weight_class: str = "-93",
    conflicting: bool = False,
) -> MergedResult:
    return MergedResult(
        athlete_id=athlete_id,
        athlete_name=athlete_id.title(),
        gender=gender,
        weight_class=weight_class,
        division="open",
        age_category="open",
        platform_id=None,
        platform_name=None,
        squat_attempts=(),
        bench_attempts=(),
        deadlift_attempts=(),
        best_squat=total,
        best_bench=0.0,
        best_deadlift=0.0,
        total=total,
        has_conflicting_data=conflicting,
        last_updated=T0,
    )


# ─────────────────────────── rank_results ─────────────────────────────────────

class TestRankResults:
    def test_ties_broken_by_input_order(self) -> None:
        ranked = rank_results([_result("a", 500), _result("b", 500), _result("c", 450)])
        assert [r.athlete_id for r in ranked] == ["a", "b", "c"]
        assert [r.rank for r in ranked] == [1, 2, 3]

    def test_tie_order_follows_input_not_name(self) -> None:
        ranked = rank_results([_result("zed", 500), _result("abe", 500)])
        assert [r.athlete_id for r in ranked] == ["zed", "abe"]

    def test_reranking_is_noop(self) -> None:
        once  = rank_results([_result("a", 500), _result("b", 500), _result("c", 450)])
        twice = rank_results(once)
        assert twice == once

    def test_unsorted_input_sorted_by_total_desc(self) -> None:
        ranked = rank_results([_result("c", 300), _result("a", 600), _result("b", 450)])
        assert [(r.athlete_id, r.rank) for r in ranked] == [("a", 1), ("b", 2), ("c", 3)]

    def test_ranks_have_no_gaps(self) -> None:
        ranked = rank_results([_result(str(i), t) for i, t in enumerate([5, 5, 5, 4, 4, 1])])
        assert [r.rank for r in ranked] == [1, 2, 3, 4, 5, 6]

    def test_filter_by_gender_and_weight_class(self) -> None:
        results = [
            _result("m93", 600, "M", "-93"),
            _result("m105", 700, "M", "-105"),
            _result("f63", 400, "F", "-63"),
            _result("m93b", 650, "M", "-93"),
        ]
        ranked = rank_results(results, gender="M", weight_class="-93")
        assert [(r.athlete_id, r.rank) for r in ranked] == [("m93b", 1), ("m93", 2)]

        women = rank_results(results, gender="F")
        assert [(r.athlete_id, r.rank) for r in women] == [("f63", 1)]

    def test_input_left_untouched(self) -> None:
        results = [_result("a", 500)]
        rank_results(results)
        assert results[0].rank is None

    def test_empty(self) -> None:
        assert rank_results([]) == []

    def test_ranks_merged_output(self, make_athlete, make_attempt, platforms) -> None:
        athletes = [make_athlete("ath-1"), make_athlete("ath-2", first_name="Bea")]
        attempts = [
            make_attempt("1", "squat", 1, 100.0, athlete_id="ath-1"),
            make_attempt("2", "squat", 1, 120.0, athlete_id="ath-2"),
        ]
        report = merge_results(athletes, attempts, platforms)
        ranked = rank_results(report.results, gender="F", weight_class="-63")
        assert [(r.athlete_id, r.rank) for r in ranked] == [("ath-2", 1), ("ath-1", 2)]


# ─────────────────────────── compute_category_rankings ────────────────────────

class TestCategoryRankings:
    def test_grouped_and_ordered(self) -> None:
        results = [
            _result("f", 400, "F", "-63"),
            _result("m-heavy", 800, "M", "120+"),
            _result("m-mid", 600, "M", "-93"),
            _result("m-top", 750, "M", "-120"),
            _result("m-mid2", 650, "M", "-93"),
        ]
        rankings = compute_category_rankings(results)

        assert [(c.gender, c.weight_class) for c in rankings] == [
            ("M", "-93"), ("M", "-120"), ("M", "120+"), ("F", "-63"),
        ]
        assert [(r.athlete_id, r.rank) for r in rankings[0].results] == [
            ("m-mid2", 1), ("m-mid", 2),
        ]
        assert rankings[0].category_display == "-93 kg M"

    def test_unparseable_weight_class_sorted_last(self) -> None:
        rankings = compute_category_rankings([
            _result("x", 500, "M", "open"),
            _result("y", 500, "M", "-74"),
        ])
        assert [c.weight_class for c in rankings] == ["-74", "open"]


# ─────────────────────────── Formatting ───────────────────────────────────────

class TestFormatTotalBreakdown:
    def test_breakdown(self, make_athlete, make_attempt, platforms) -> None:
        attempts = [
            make_attempt("s", "squat", 1, 200.0),
            make_attempt("b", "bench", 1, 140.0),
            make_attempt("d", "deadlift", 1, 230.0),
        ]
        result = merge_results([make_athlete()], attempts, platforms).results[0]
        assert format_total_breakdown(result) == (
            "Squat: 200 + Bench: 140 + Deadlift: 230 = 570 kg"
        )

    def test_missing_lift_and_conflict_marker(self) -> None:
        text = format_total_breakdown(_result("a", 100, conflicting=True))
        assert "Bench: —" in text
        assert "conflicting" in text
