from meetsync.services.conflict_service import resolve_conflict, record_timestamp
from meetsync.services.sync_service import (
    SyncOutcome, PlatformSyncStatus,
    athlete_update_change, attempt_result_change,
    attempt_declaration_change, order_change_change,
    create_sync_log, dispatch, process_pending, check_sync_status,
)
from meetsync.services.merge_service import (
    MergedResult, MergeDiagnostic, MergeReport,
    merge_results, merge_competition,
    detect_conflicts, has_multiple_platform_attempts,
)
from meetsync.services.ranking_service import (
    CategoryRanking, rank_results, compute_category_rankings, format_total_breakdown,
)
from meetsync.services.platform_service import (
    PlatformStats,
    create_platform, get_platform, list_platforms, update_platform,
    set_platform_active, delete_platform, compute_platform_stats,
)
from meetsync.services.competition_service import (
    register_athlete, list_athletes, record_attempt, list_attempts, load_snapshot,
)
from meetsync.services.sync_log_service import (
    record_sync_logs, list_sync_logs, list_pending_sync_logs,
    dispatch_change, run_sync_tick,
)

__all__ = [
    # conflict resolver
    "resolve_conflict", "record_timestamp",
    # dispatcher / processor
    "SyncOutcome", "PlatformSyncStatus",
    "athlete_update_change", "attempt_result_change",
    "attempt_declaration_change", "order_change_change",
    "create_sync_log", "dispatch", "process_pending", "check_sync_status",
    # merger
    "MergedResult", "MergeDiagnostic", "MergeReport",
    "merge_results", "merge_competition",
    "detect_conflicts", "has_multiple_platform_attempts",
    # ranking
    "CategoryRanking", "rank_results", "compute_category_rankings",
    "format_total_breakdown",
    # platform registry
    "PlatformStats",
    "create_platform", "get_platform", "list_platforms", "update_platform",
    "set_platform_active", "delete_platform", "compute_platform_stats",
    # competition data
    "register_athlete", "list_athletes", "record_attempt", "list_attempts",
    "load_snapshot",
    # sync log
    "record_sync_logs", "list_sync_logs", "list_pending_sync_logs",
    "dispatch_change", "run_sync_tick",
]
