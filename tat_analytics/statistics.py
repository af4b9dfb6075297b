# tat_sentinel/tat_analytics/statistics.py
# STATISTICS FACADE - PERIOD STATISTICS AND TREND SERIES FOR DASHBOARD VIEWS

"""
Top-level entry points of the engine.

``calculate_tat_statistics`` produces the daily / weekly / monthly matrix of
average stage durations; ``build_tat_trend`` produces the per-bucket series
used for charting. Both are pure: they decode the supplied batch, compute,
and return a fresh result. ``now`` is a parameter so callers (and tests)
control the reporting clock.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from config import settings
from tat_processing import current_instant, decode_records, filter_valid_samples
from .aggregation import BucketAccumulator, aggregate_by_bucket, aggregate_by_window
from .bucketing import (Granularity, build_buckets, coerce_instant, effective_range,
                        fixed_windows, normalize_range, select_granularity)
from .durations import STAGES

logger = logging.getLogger(__name__)

# --- Pydantic Models for a Strong Output Contract ---

class StageStatistic(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current: str = settings.NO_DATA_LABEL
    raw_minutes: int = Field(0, alias="rawMinutes")
    count: int = 0


class StageStatistics(BaseModel):
    dispatch: StageStatistic = Field(default_factory=StageStatistic)
    collection: StageStatistic = Field(default_factory=StageStatistic)
    registration: StageStatistic = Field(default_factory=StageStatistic)
    processing: StageStatistic = Field(default_factory=StageStatistic)
    delivery: StageStatistic = Field(default_factory=StageStatistic)

    @classmethod
    def from_accumulator(cls, acc: BucketAccumulator) -> "StageStatistics":
        return cls.model_validate({stage: acc.cell(stage) for stage in STAGES})


class PeriodStatistics(BaseModel):
    daily: StageStatistics = Field(default_factory=StageStatistics)
    weekly: StageStatistics = Field(default_factory=StageStatistics)
    monthly: StageStatistics = Field(default_factory=StageStatistics)

    def to_payload(self) -> Dict[str, Any]:
        """The camelCase wire shape: ``{period: {stage: {current, rawMinutes, count}}}``."""
        return self.model_dump(by_alias=True)


class TatTrend(BaseModel):
    granularity: Granularity
    title: str
    rows: List[Dict[str, Any]] = Field(default_factory=list)

    def to_frame(self) -> pd.DataFrame:
        """Rows as a DataFrame indexed by bucket label, one column per stage."""
        if not self.rows:
            return pd.DataFrame(columns=["key", "samples", *STAGES])
        return pd.DataFrame(self.rows).set_index("label")


# --- Public API Functions ---

def calculate_tat_statistics(
    records: Optional[Sequence[Any]],
    date_range: Optional[Sequence[Any]] = None,
    now: Any = None,
    tz: Optional[str] = None,
) -> PeriodStatistics:
    """
    Averages each stage over the daily, weekly and monthly windows.

    Args:
        records: raw lifecycle record mappings in either wire schema.
        date_range: optional ``(start, end)``; each window is widened to whole
            days / Monday-start weeks / calendar months around it.
        now: reporting instant used when no range is given (defaults to the
            current time).
        tz: reporting timezone override.

    Returns:
        A ``PeriodStatistics``; cells without samples report "No Data".
    """
    decoded = decode_records(records, tz)
    valid = filter_valid_samples(decoded)
    logger.info(f"Calculating TAT statistics: {len(decoded)} records, {len(valid)} valid samples.")

    if not valid:
        return PeriodStatistics()

    windows = fixed_windows(current_instant() if now is None else coerce_instant(now, tz), date_range, tz)
    accumulators = aggregate_by_window(valid, windows)
    return PeriodStatistics.model_validate({
        period: StageStatistics.from_accumulator(acc) for period, acc in accumulators.items()
    })


def build_tat_trend(
    records: Optional[Sequence[Any]],
    date_range: Optional[Sequence[Any]] = None,
    tz: Optional[str] = None,
) -> TatTrend:
    """
    Buckets valid samples at a granularity chosen from the range length and
    averages each stage per bucket. Buckets span the part of the range the
    data actually covers; buckets without samples are omitted.
    """
    instant_range = normalize_range(date_range, tz)
    granularity = select_granularity(instant_range, tz)
    trend = TatTrend(granularity=granularity, title=granularity.chart_title)

    valid = filter_valid_samples(decode_records(records, tz))
    span = effective_range(instant_range, (r.instant_of_record for r in valid))
    if span is None:
        logger.info("No valid samples to build a TAT trend from.")
        return trend

    try:
        buckets = build_buckets(granularity, span[0], span[1], tz)
    except Exception as e:
        logger.error(f"Could not build {granularity.value} buckets for span {span}: {e}", exc_info=True)
        return trend
    trend.rows = aggregate_by_bucket(valid, buckets)
    logger.info(f"Built {granularity.value} TAT trend: {len(trend.rows)} of {len(buckets)} buckets have data.")
    return trend
