"""Детектор повторяющихся таймаутов."""

from __future__ import annotations

from collections.abc import Sequence

from tessa.detectors.base import InsightThresholds, make_insight_id
from tessa.detectors.error_scan import group_matching_failures
from tessa.models.common import InsightType, Severity
from tessa.models.insights import Insight
from tessa.models.records import TestExecutionRecord
from tessa.services.grouping import ResultGroups, display_name
from tessa.utils.error_patterns import truncate_pattern

_RECOMMENDATION = (
    "Consider increasing timeout values, checking for slow API responses, or adding "
    "explicit waits for elements. Verify that the application performance has not degraded."
)


class TimeoutPatternDetector:
    """Инсайт ``timeout_pattern`` по упавшим прогонам с таймаутом в тексте ошибки.

    При порогах по умолчанию ``low`` недостижим: порог эмиссии (2)
    совпадает с нижней границей ``medium``. Поведение зафиксировано
    тестом; менять без решения продукта не следует.
    """

    insight_type = InsightType.TIMEOUT_PATTERN

    def __init__(self, thresholds: InsightThresholds | None = None) -> None:
        self._thresholds = thresholds or InsightThresholds()

    def detect(
        self,
        groups: ResultGroups,  # noqa: ARG002
        records: Sequence[TestExecutionRecord],
    ) -> list[Insight]:
        timeout_errors = group_matching_failures(records, lambda flags: flags.timeout)

        insights: list[Insight] = []
        for key, errors in timeout_errors.items():
            count = len(errors)
            if count < self._thresholds.timeout_min_matches:
                continue

            name = display_name(errors, key)
            insights.append(
                Insight(
                    id=make_insight_id("timeout", key),
                    type=self.insight_type,
                    severity=self._severity(count),
                    title="Timeout Pattern Detected",
                    description=f'"{name}" has {count} timeout-related failures',
                    affected_tests=[name],
                    pattern=truncate_pattern(
                        errors[0].error_message, self._thresholds.pattern_max_length,
                    ),
                    occurrence_count=count,
                    recommendation=_RECOMMENDATION,
                    actionable=True,
                )
            )
        return insights

    def _severity(self, count: int) -> Severity:
        if count >= self._thresholds.timeout_high_matches:
            return Severity.HIGH
        if count >= self._thresholds.timeout_medium_matches:
            return Severity.MEDIUM
        return Severity.LOW
