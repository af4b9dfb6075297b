# tat_sentinel/tat_analytics/aggregation.py
# AGGREGATOR - PER-STAGE SUMS AND COUNTS OVER BUCKETS AND FIXED WINDOWS

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from config import settings
from tat_processing import LifecycleRecord
from .bucketing import TimeBucket, find_bucket
from .durations import STAGES, StageDurations, calculate_stage_durations, format_minutes

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass
class BucketAccumulator:
    """Running (sum, count) per stage for one bucket or window; only legs > 0 are counted."""
    sums: Dict[str, int] = field(default_factory=lambda: dict.fromkeys(STAGES, 0))
    counts: Dict[str, int] = field(default_factory=lambda: dict.fromkeys(STAGES, 0))
    samples: int = 0

    def add(self, durations: StageDurations) -> None:
        self.samples += 1
        for stage, minutes in durations.stage_minutes().items():
            if minutes > 0:
                self.sums[stage] += minutes
                self.counts[stage] += 1

    def average(self, stage: str) -> int:
        count = self.counts[stage]
        return round_half_up(self.sums[stage] / count) if count else 0

    def averages(self) -> Dict[str, int]:
        return {stage: self.average(stage) for stage in STAGES}

    def cell(self, stage: str) -> Dict[str, Any]:
        """Formatted average, average minutes and sample count for one stage."""
        count = self.counts[stage]
        if not count:
            return {"current": settings.NO_DATA_LABEL, "rawMinutes": 0, "count": 0}
        average = self.average(stage)
        return {"current": format_minutes(average), "rawMinutes": average, "count": count}


def _eligible(records: Sequence[LifecycleRecord]) -> List[LifecycleRecord]:
    eligible = [r for r in records if r.is_valid_sample]
    skipped = len(records) - len(eligible)
    if skipped:
        logger.debug(f"Excluded {skipped} of {len(records)} records without lifecycle events beyond the request.")
    return eligible


def aggregate_by_bucket(records: Sequence[LifecycleRecord], buckets: Sequence[TimeBucket]) -> List[Dict[str, Any]]:
    """
    Accumulates valid records into the bucket containing their requested
    instant and returns one row per non-empty bucket, in bucket order:
    ``{"label", "key", "samples", <stage>: average minutes, ...}``.
    """
    starts = [b.start for b in buckets]
    accumulators: Dict[str, BucketAccumulator] = {}

    for record in _eligible(records):
        try:
            bucket = find_bucket(buckets, record.instant_of_record, starts)
            if bucket is None:
                continue
            accumulators.setdefault(bucket.key, BucketAccumulator()).add(calculate_stage_durations(record))
        except Exception as e:
            logger.error(f"Error bucketing record '{record.record_id}': {e}", exc_info=True)

    rows = []
    for bucket in buckets:
        acc = accumulators.get(bucket.key)
        if acc is None:
            continue
        rows.append({"label": bucket.label, "key": bucket.key, "samples": acc.samples, **acc.averages()})
    return rows


def aggregate_by_window(
    records: Sequence[LifecycleRecord], windows: Dict[str, TimeBucket]
) -> Dict[str, BucketAccumulator]:
    """Accumulates valid records into every window that contains their requested instant."""
    accumulators = {name: BucketAccumulator() for name in windows}

    for record in _eligible(records):
        try:
            durations: Optional[StageDurations] = None
            for name, window in windows.items():
                if window.contains(record.instant_of_record):
                    durations = durations or calculate_stage_durations(record)
                    accumulators[name].add(durations)
        except Exception as e:
            logger.error(f"Error aggregating record '{record.record_id}': {e}", exc_info=True)

    logger.debug("Window sample counts: " + ", ".join(f"{n}={a.samples}" for n, a in accumulators.items()))
    return accumulators
