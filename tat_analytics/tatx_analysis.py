# tat_sentinel/tat_analytics/tatx_analysis.py
# PER-TEST TATx ANALYSIS - TARGET ATTAINMENT BY TEST AND PRIORITY

import logging
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from config import settings
from tat_processing import LifecycleRecord, current_instant, decode_records, is_valid_instant
from .bucketing import coerce_instant, fixed_windows, resolve_period_range
from .durations import calculate_stage_durations
from .scoring import calculate_tatx_score, format_tatx_score, weighted_overall_score
from .targets import TestCatalog

logger = logging.getLogger(__name__)


# --- Pydantic Models for a Strong Output Contract ---

class TestTatxSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    __test__ = False

    test_id: str = Field(alias="testID")
    test_name: str = Field(alias="testName")
    normal_tat: float = Field(alias="normalTAT")
    urgent_tat: float = Field(alias="urgentTAT")
    normal_tests: int = Field(0, alias="normalTests")
    urgent_tests: int = Field(0, alias="urgentTests")
    average_normal_tat: str = Field(alias="averageNormalTAT")
    average_urgent_tat: str = Field(alias="averageUrgentTAT")
    normal_tatx_score: str = Field(alias="normalTatxScore")
    urgent_tatx_score: str = Field(alias="urgentTatxScore")
    overall_tatx_score: str = Field(alias="overallTatxScore")

    @property
    def sample_count(self) -> int:
        return self.normal_tests + self.urgent_tests


class TatxAnalysisResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_tests: int = Field(0, alias="totalTests")
    tests_month: Optional[int] = Field(None, alias="testsMonth")
    tests_week: Optional[int] = Field(None, alias="testsWeek")
    tests_today: Optional[int] = Field(None, alias="testsToday")
    unique_centers: int = Field(0, alias="uniqueCenters")
    centers_month: int = Field(0, alias="centersMonth")
    centers_week: int = Field(0, alias="centersWeek")
    centers_today: int = Field(0, alias="centersToday")
    tatx_score: str = Field(settings.NOT_AVAILABLE_LABEL, alias="tatxScore")
    tests: List[TestTatxSummary] = Field(default_factory=list, alias="testsModalData")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# --- Analysis Pipeline ---

class TatxAnalyzer:
    """
    Computes per-test TATx scores for a batch of lifecycle records.

    Steps run in order: filter to the named period, count samples and centers
    in the today / this-week / this-month windows, expand completed samples
    into one row per test, then score each test and the batch as a whole.
    """
    _COLUMNS = ["test_name", "test_id", "is_urgent", "tat_hours", "routine_target", "urgent_target", "target_hours"]

    def __init__(
        self,
        records: Optional[Sequence[Any]],
        catalog: Optional[TestCatalog] = None,
        period: str = "all",
        now: Any = None,
        selected_month: Any = None,
        tz: Optional[str] = None,
    ):
        self.tz = tz
        self.catalog = catalog or TestCatalog()
        self.period = period
        self.now = current_instant() if now is None else coerce_instant(now, tz)
        self.selected_month = selected_month
        self.records: List[LifecycleRecord] = decode_records(records, tz)
        self.result = TatxAnalysisResult()
        self.rows = pd.DataFrame(columns=self._COLUMNS)

    def _filter_period(self) -> 'TatxAnalyzer':
        period_range = resolve_period_range(self.period, self.now, self.selected_month, self.tz)
        dated = [r for r in self.records if is_valid_instant(r.instant_of_record)]
        if period_range is not None:
            start, end = period_range
            dated = [r for r in dated if start <= r.instant_of_record <= end]
        logger.debug(f"Period '{self.period}' keeps {len(dated)} of {len(self.records)} records.")
        self.records = dated
        self.result.total_tests = len(dated)
        return self

    def _count_windows(self) -> 'TatxAnalyzer':
        windows = fixed_windows(self.now, tz=self.tz)
        counts: Dict[str, int] = dict.fromkeys(windows, 0)
        centers: Dict[str, set] = {name: set() for name in windows}

        for record in self.records:
            for name, window in windows.items():
                # Open-ended: everything on or after the window start counts.
                if record.instant_of_record >= window.start:
                    counts[name] += 1
                    if record.center_name:
                        centers[name].add(record.center_name)

        self.result.unique_centers = len({r.center_name for r in self.records if r.center_name})
        self.result.centers_today = len(centers["daily"])
        self.result.centers_week = len(centers["weekly"])
        self.result.centers_month = len(centers["monthly"])
        if self.period == "all":
            self.result.tests_today = counts["daily"]
            self.result.tests_week = counts["weekly"]
            self.result.tests_month = counts["monthly"]
        return self

    def _test_names(self, record: LifecycleRecord) -> List[str]:
        if record.test_names:
            return list(record.test_names)
        if record.test_ids:
            return [", ".join(self.catalog.name_for(test_id) for test_id in record.test_ids)]
        return ["Unknown Test"]

    def _expand_test_rows(self) -> 'TatxAnalyzer':
        rows = []
        for record in self.records:
            if not (is_valid_instant(record.requested_at) and is_valid_instant(record.delivered_at)):
                continue
            try:
                total = calculate_stage_durations(record).total
                if total <= 0:
                    continue
                test_ids = list(record.test_ids) or ["unknown"]
                target = self.catalog.targets_for(test_ids)
                is_urgent = record.priority.is_urgent
                for index, name in enumerate(self._test_names(record)):
                    rows.append({
                        "test_name": name,
                        "test_id": test_ids[index] if index < len(test_ids) else test_ids[0],
                        "is_urgent": is_urgent,
                        "tat_hours": total / 60,
                        "routine_target": target.routine_hours,
                        "urgent_target": target.urgent_hours,
                        "target_hours": target.urgent_hours if is_urgent else target.routine_hours,
                    })
            except Exception as e:
                logger.error(f"Error scoring record '{record.record_id}': {e}", exc_info=True)
        if rows:
            self.rows = pd.DataFrame(rows, columns=self._COLUMNS)
        logger.info(f"Expanded {len(rows)} test rows from {len(self.records)} records in period '{self.period}'.")
        return self

    @staticmethod
    def _summarize_test(name: str, group: pd.DataFrame) -> TestTatxSummary:
        # Targets come from the first sample seen for the test name.
        routine_target = float(group["routine_target"].iloc[0])
        urgent_target = float(group["urgent_target"].iloc[0])
        routine = group.loc[~group["is_urgent"], "tat_hours"]
        urgent = group.loc[group["is_urgent"], "tat_hours"]

        routine_avg = float(routine.mean()) if len(routine) else 0.0
        urgent_avg = float(urgent.mean()) if len(urgent) else 0.0
        routine_score = calculate_tatx_score(routine_target, routine_avg) if len(routine) else 0.0
        urgent_score = calculate_tatx_score(urgent_target, urgent_avg) if len(urgent) else None
        overall = weighted_overall_score([(routine_score, len(routine)), (urgent_score or 0.0, len(urgent))])

        return TestTatxSummary(
            test_id=",".join(dict.fromkeys(group["test_id"])),
            test_name=name,
            normal_tat=routine_target,
            urgent_tat=urgent_target,
            normal_tests=len(routine),
            urgent_tests=len(urgent),
            average_normal_tat=f"{routine_avg:.1f}",
            average_urgent_tat=f"{urgent_avg:.1f}" if len(urgent) else settings.NOT_AVAILABLE_LABEL,
            normal_tatx_score=format_tatx_score(routine_score),
            urgent_tatx_score=format_tatx_score(urgent_score),
            overall_tatx_score=format_tatx_score(overall),
        )

    def _score_tests(self) -> 'TatxAnalyzer':
        if self.rows.empty:
            return self
        summaries = [self._summarize_test(name, group) for name, group in self.rows.groupby("test_name", sort=False)]
        self.result.tests = sorted(summaries, key=lambda s: s.sample_count, reverse=True)

        pooled_actual = float(self.rows["tat_hours"].sum())
        if pooled_actual > 0:
            self.result.tatx_score = format_tatx_score(
                calculate_tatx_score(float(self.rows["target_hours"].sum()), pooled_actual)
            )
        return self

    def run(self) -> TatxAnalysisResult:
        """Executes the full analysis and returns the result model."""
        logger.info(f"Starting TATx analysis over {len(self.records)} records (period '{self.period}').")
        (self._filter_period()
             ._count_windows()
             ._expand_test_rows()
             ._score_tests())
        logger.info(f"TATx analysis complete: {len(self.result.tests)} tests, overall score {self.result.tatx_score}.")
        return self.result


def analyze_tatx(
    records: Optional[Sequence[Any]],
    catalog: Optional[TestCatalog] = None,
    period: str = "all",
    now: Any = None,
    selected_month: Any = None,
    tz: Optional[str] = None,
) -> TatxAnalysisResult:
    """
    Public factory function to run per-test TATx analysis.

    Args:
        records: raw lifecycle record mappings.
        catalog: test definitions providing names and target hours; unknown
            tests use the configured 4 h / 2 h defaults.
        period: one of today, week, month, quarter, year, custom-month, all.
        now: reporting instant (defaults to the current time).
        selected_month: any instant inside the month used by ``custom-month``.
        tz: reporting timezone override.
    """
    analyzer = TatxAnalyzer(records, catalog, period, now, selected_month, tz)
    return analyzer.run()
