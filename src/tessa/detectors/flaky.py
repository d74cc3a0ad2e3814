"""Детектор flaky-тестов: тест то проходит, то падает."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from tessa.detectors.base import InsightThresholds, make_insight_id
from tessa.models.common import InsightType, Severity
from tessa.models.insights import FlakinessResult, Insight
from tessa.models.records import TestExecutionRecord
from tessa.services.flakiness_service import compute_flakiness
from tessa.services.grouping import ResultGroups, display_name
from tessa.utils.numbers import percent

logger = logging.getLogger(__name__)

_RECOMMENDATION = (
    "Review test for race conditions, timing issues, or environmental dependencies. "
    "Consider adding retry logic or stabilizing the test setup."
)


class FlakyTestDetector:
    """Инсайт ``flaky_test`` для каждой группы, признанной flaky.

    Группы короче ``flaky_min_runs`` прогонов не рассматриваются.
    """

    insight_type = InsightType.FLAKY_TEST

    def __init__(self, thresholds: InsightThresholds | None = None) -> None:
        self._thresholds = thresholds or InsightThresholds()

    def detect(
        self,
        groups: ResultGroups,
        records: Sequence[TestExecutionRecord],  # noqa: ARG002
    ) -> list[Insight]:
        insights: list[Insight] = []
        for key, group in groups.items():
            if len(group) < self._thresholds.flaky_min_runs:
                continue
            flakiness = compute_flakiness(group, self._thresholds)
            if not flakiness.is_flaky:
                continue
            insights.append(self._build_insight(key, group, flakiness))
        return insights

    def _severity(self, fail_rate: float) -> Severity:
        if fail_rate > self._thresholds.flaky_high_fail_rate:
            return Severity.HIGH
        if fail_rate > self._thresholds.flaky_medium_fail_rate:
            return Severity.MEDIUM
        return Severity.LOW

    def _build_insight(
        self,
        key: str,
        group: list[TestExecutionRecord],
        flakiness: FlakinessResult,
    ) -> Insight:
        name = display_name(group, key)
        return Insight(
            id=make_insight_id("flaky", key),
            type=self.insight_type,
            severity=self._severity(flakiness.fail_rate),
            title="Flaky Test Detected",
            description=(
                f'"{name}" has inconsistent results: '
                f"{percent(flakiness.pass_rate)}% pass rate over {flakiness.total_runs} runs"
            ),
            affected_tests=[name],
            occurrence_count=flakiness.total_runs,
            recommendation=_RECOMMENDATION,
            actionable=True,
            metadata={
                "pass_rate": flakiness.pass_rate,
                "fail_rate": flakiness.fail_rate,
                "total_runs": flakiness.total_runs,
                "trend": flakiness.trend.value,
            },
        )
