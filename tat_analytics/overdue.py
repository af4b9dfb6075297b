# tat_sentinel/tat_analytics/overdue.py
# OVERDUE DETECTION - IN-PROCESS TESTS PAST THEIR TARGET TAT

import logging
from collections.abc import Mapping
from typing import Any, Iterable, List, Optional

from tat_processing import current_instant, first_populated, is_valid_instant, to_epoch_ms
from .bucketing import coerce_instant

logger = logging.getLogger(__name__)

_MS_PER_MINUTE = 60_000


def _target_minutes(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def find_overdue_tests(tracking_rows: Optional[Iterable[Mapping]], now: Any = None, tz: Optional[str] = None) -> List[str]:
    """
    Ids of test-tracking rows still in ``processing`` whose due time
    (``accessionDate`` + ``targetTATMinutes``) is before ``now``.
    Rows missing either field are skipped.
    """
    now_ms = current_instant() if now is None else coerce_instant(now, tz)
    overdue = []
    for row in tracking_rows or []:
        if not isinstance(row, Mapping) or str(row.get("status", "")).lower() != "processing":
            continue
        accession_ms = to_epoch_ms(row.get("accessionDate"), tz)
        target = _target_minutes(row.get("targetTATMinutes"))
        if not is_valid_instant(accession_ms) or target <= 0:
            continue
        if now_ms > accession_ms + target * _MS_PER_MINUTE:
            overdue.append(str(first_populated(row, ("id", "testTATTrackingId")) or ""))

    logger.info(f"Overdue check complete: {len(overdue)} processing tests past their target TAT.")
    return overdue
