# tat_sentinel/tat_analytics/scoring.py
# TATx SCORE CALCULATOR - TARGET VS ACTUAL EFFICIENCY

"""
TATx Score = (target TAT / actual TAT) x 100.

Scores above 100% mean the work finished faster than target and are kept as
they are; the score is never clamped to 100.
"""

import logging
import math
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

import numpy as np

from config import settings
from .durations import STAGES, StageDurations

logger = logging.getLogger(__name__)


class TatStatus(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"


def _is_usable(value: Optional[float]) -> bool:
    return value is not None and not (isinstance(value, float) and math.isnan(value)) and value > 0


def calculate_tatx_score(target: float, actual: float) -> float:
    """Returns the uncapped TATx percentage, or 0.0 when either input is NaN or not positive."""
    try:
        target, actual = float(target), float(actual)
    except (TypeError, ValueError):
        return 0.0
    if not _is_usable(target) or not _is_usable(actual):
        return 0.0
    score = (target / actual) * 100
    return 0.0 if math.isnan(score) else score


def format_tatx_score(score: Optional[float]) -> str:
    if not _is_usable(score):
        return settings.NOT_AVAILABLE_LABEL
    return f"{score:.1f}%"


def weighted_overall_score(parts: Iterable[Tuple[float, int]]) -> float:
    """
    Count-weighted mean of subpopulation scores, e.g. routine vs urgent:
    ``(scoreA * countA + scoreB * countB) / (countA + countB)``.
    Subpopulations without samples are ignored; no samples at all gives 0.0.
    """
    pairs = [(score or 0.0, count) for score, count in parts if count and count > 0]
    if not pairs:
        return 0.0
    scores, counts = zip(*pairs)
    return float(np.average(scores, weights=counts))


def get_tat_status(actual_minutes: float, target_minutes: float, warning_overage_pct: Optional[float] = None) -> TatStatus:
    """Within target is a success; up to the configured overage (20% by default) is a warning."""
    if actual_minutes <= target_minutes:
        return TatStatus.SUCCESS
    if target_minutes <= 0:
        return TatStatus.DANGER
    limit = settings.EFFICIENCY.status_warning_overage_pct if warning_overage_pct is None else warning_overage_pct
    overage_pct = (actual_minutes - target_minutes) / target_minutes * 100
    return TatStatus.WARNING if overage_pct <= limit else TatStatus.DANGER


def evaluate_stage_statuses(durations: StageDurations) -> Dict[str, Optional[TatStatus]]:
    """Status of each measured stage against its configured target; unmeasured stages map to None."""
    targets = settings.STAGE_TARGET_MAP
    return {
        stage: get_tat_status(minutes, targets[stage]) if minutes > 0 else None
        for stage, minutes in ((s, getattr(durations, s)) for s in STAGES)
    }
