# tat_sentinel/tat_analytics/efficiency.py
# EFFICIENCY SUMMARY - HEADLINE TAT KPIs WITH THRESHOLD STATUSES

import logging
from enum import Enum
from typing import Any, List, Optional, Sequence

import pandas as pd
from pydantic import BaseModel

from config import settings
from tat_processing import decode_records
from .aggregation import round_half_up
from .durations import calculate_stage_durations, format_minutes

logger = logging.getLogger(__name__)


class EfficiencyStatus(str, Enum):
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class EfficiencyStat(BaseModel):
    label: str
    value: str
    trend: str = "-"
    status: EfficiencyStatus = EfficiencyStatus.GOOD


def _ceiling_status(value: float, good_max: float, warning_max: float) -> EfficiencyStatus:
    if value <= good_max:
        return EfficiencyStatus.GOOD
    return EfficiencyStatus.WARNING if value <= warning_max else EfficiencyStatus.CRITICAL


def _floor_status(value: float, good_min: float, warning_min: float) -> EfficiencyStatus:
    if value >= good_min:
        return EfficiencyStatus.GOOD
    return EfficiencyStatus.WARNING if value >= warning_min else EfficiencyStatus.CRITICAL


def _no_data_stats() -> List[EfficiencyStat]:
    no_data = settings.NO_DATA_LABEL
    return [
        EfficiencyStat(label="Average TAT", value=no_data),
        EfficiencyStat(label="On-Time Completion", value=no_data),
        EfficiencyStat(label="Delayed Samples", value=no_data),
        EfficiencyStat(label="Total Samples", value="0"),
    ]


def summarize_efficiency(records: Optional[Sequence[Any]], tz: Optional[str] = None) -> List[EfficiencyStat]:
    """
    Average total TAT, on-time completion rate, delayed count and sample count
    for samples with a measurable total TAT. Thresholds come from
    ``settings.EFFICIENCY``; an empty batch reports "No Data".
    """
    config = settings.EFFICIENCY
    totals = pd.Series(
        [calculate_stage_durations(r).total for r in decode_records(records, tz) if r.is_valid_sample],
        dtype="int64",
    )
    totals = totals[totals > 0]
    if totals.empty:
        logger.info("No samples with a measurable total TAT; efficiency summary has no data.")
        return _no_data_stats()

    average = float(totals.mean())
    on_time = int((totals <= config.on_time_target_minutes).sum())
    on_time_pct = on_time / len(totals) * 100
    delayed = len(totals) - on_time
    logger.debug(f"Efficiency over {len(totals)} samples: avg={average:.1f}m, on-time={on_time_pct:.1f}%, delayed={delayed}.")

    return [
        EfficiencyStat(
            label="Average TAT",
            value=format_minutes(round_half_up(average)),
            status=_ceiling_status(average, config.on_time_target_minutes, config.avg_tat_warning_minutes),
        ),
        EfficiencyStat(
            label="On-Time Completion",
            value=f"{round_half_up(on_time_pct)}%",
            status=_floor_status(on_time_pct, config.on_time_good_pct, config.on_time_warning_pct),
        ),
        EfficiencyStat(
            label="Delayed Samples",
            value=str(delayed),
            status=_ceiling_status(delayed, config.delayed_good_max, config.delayed_warning_max),
        ),
        EfficiencyStat(label="Total Samples", value=str(len(totals))),
    ]
