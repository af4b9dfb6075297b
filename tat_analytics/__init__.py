# tat_sentinel/tat_analytics/__init__.py

"""
Initializes the tat_analytics package, making the TAT engine's functions and
result models available at the top level.

This __init__.py defines the public API for the package.
"""

# From durations.py
from .durations import STAGES, StageDuration, StageDurations, calculate_duration, calculate_stage_durations, calculate_tat, format_minutes

# From bucketing.py
from .bucketing import (
    Granularity,
    TimeBucket,
    build_buckets,
    effective_range,
    find_bucket,
    fixed_windows,
    normalize_range,
    resolve_period_range,
    select_granularity,
)

# From aggregation.py
from .aggregation import BucketAccumulator, aggregate_by_bucket, aggregate_by_window

# From scoring.py
from .scoring import TatStatus, calculate_tatx_score, evaluate_stage_statuses, format_tatx_score, get_tat_status, weighted_overall_score

# From statistics.py
from .statistics import PeriodStatistics, StageStatistic, StageStatistics, TatTrend, build_tat_trend, calculate_tat_statistics

# From targets.py
from .targets import TestCatalog, TestTarget, longest_target_tat, parse_tat_string, tat_string_to_minutes

# From tatx_analysis.py
from .tatx_analysis import TatxAnalysisResult, TatxAnalyzer, TestTatxSummary, analyze_tatx

# From efficiency.py
from .efficiency import EfficiencyStat, EfficiencyStatus, summarize_efficiency

# From overdue.py
from .overdue import find_overdue_tests

__all__ = [
    # Stage durations
    "STAGES",
    "StageDuration",
    "StageDurations",
    "calculate_duration",
    "calculate_stage_durations",
    "calculate_tat",
    "format_minutes",

    # Bucketing
    "Granularity",
    "TimeBucket",
    "build_buckets",
    "effective_range",
    "find_bucket",
    "fixed_windows",
    "normalize_range",
    "resolve_period_range",
    "select_granularity",

    # Aggregation
    "BucketAccumulator",
    "aggregate_by_bucket",
    "aggregate_by_window",

    # Scoring
    "TatStatus",
    "calculate_tatx_score",
    "evaluate_stage_statuses",
    "format_tatx_score",
    "get_tat_status",
    "weighted_overall_score",

    # Statistics facade
    "PeriodStatistics",
    "StageStatistic",
    "StageStatistics",
    "TatTrend",
    "build_tat_trend",
    "calculate_tat_statistics",

    # Targets and per-test analysis
    "TestCatalog",
    "TestTarget",
    "longest_target_tat",
    "parse_tat_string",
    "tat_string_to_minutes",
    "TatxAnalysisResult",
    "TatxAnalyzer",
    "TestTatxSummary",
    "analyze_tatx",

    # Dashboard KPIs
    "EfficiencyStat",
    "EfficiencyStatus",
    "summarize_efficiency",
    "find_overdue_tests",
]
