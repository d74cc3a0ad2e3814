"""Детектор хрупких селекторов: элемент не найден, локатор не сработал."""

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
    "The selectors used in this test may be fragile. Consider using more stable "
    "selectors like data-testid, ARIA labels, or unique element identifiers."
)


class SelectorIssueDetector:
    """Инсайт ``selector_issue`` по повторяющимся ошибкам поиска элементов."""

    insight_type = InsightType.SELECTOR_ISSUE

    def __init__(self, thresholds: InsightThresholds | None = None) -> None:
        self._thresholds = thresholds or InsightThresholds()

    def detect(
        self,
        groups: ResultGroups,  # noqa: ARG002
        records: Sequence[TestExecutionRecord],
    ) -> list[Insight]:
        selector_errors = group_matching_failures(
            records,
            lambda flags: flags.selector_issue or flags.not_found,
        )

        insights: list[Insight] = []
        for key, errors in selector_errors.items():
            count = len(errors)
            if count < self._thresholds.selector_min_matches:
                continue

            name = display_name(errors, key)
            error_sample = truncate_pattern(
                errors[0].error_message, self._thresholds.pattern_max_length,
            )
            insights.append(
                Insight(
                    id=make_insight_id("selector", key),
                    type=self.insight_type,
                    severity=self._severity(count),
                    title="Selector Issue Pattern",
                    description=f'"{name}" has {count} failures related to element selectors',
                    affected_tests=[name],
                    pattern=error_sample,
                    occurrence_count=count,
                    recommendation=_RECOMMENDATION,
                    actionable=True,
                    metadata={"error_sample": error_sample},
                )
            )
        return insights

    def _severity(self, count: int) -> Severity:
        if count >= self._thresholds.selector_high_matches:
            return Severity.HIGH
        if count >= self._thresholds.selector_medium_matches:
            return Severity.MEDIUM
        return Severity.LOW
