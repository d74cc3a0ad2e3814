"""Детектор серии последовательных падений."""

from __future__ import annotations

from collections.abc import Sequence

from tessa.detectors.base import InsightThresholds, make_insight_id
from tessa.models.common import InsightType, Severity
from tessa.models.insights import Insight
from tessa.models.records import TestExecutionRecord
from tessa.services.grouping import ResultGroups, display_name, sort_most_recent_first
from tessa.utils.error_patterns import truncate_pattern

_RECOMMENDATION = (
    "This test requires immediate attention. Review the error pattern and check for "
    "recent code changes that may have caused the regression."
)


def consecutive_failures(records: Sequence[TestExecutionRecord]) -> int:
    """Длина серии падений от самого свежего прогона до первого не-failed."""
    streak = 0
    for record in sort_most_recent_first(records):
        if not record.is_failed:
            break
        streak += 1
    return streak


class RepeatedFailureDetector:
    """Инсайт ``repeated_failure``, если тест падает несколько раз подряд.

    Severity только ``high`` или ``medium``: порог эмиссии совпадает
    с нижней границей ``medium``.
    """

    insight_type = InsightType.REPEATED_FAILURE

    def __init__(self, thresholds: InsightThresholds | None = None) -> None:
        self._thresholds = thresholds or InsightThresholds()

    def detect(
        self,
        groups: ResultGroups,
        records: Sequence[TestExecutionRecord],  # noqa: ARG002
    ) -> list[Insight]:
        insights: list[Insight] = []
        for key, group in groups.items():
            streak = consecutive_failures(group)
            if streak < self._thresholds.repeated_min_streak:
                continue

            name = display_name(group, key)
            latest_error = sort_most_recent_first(group)[0].error_message
            severity = (
                Severity.HIGH
                if streak >= self._thresholds.repeated_high_streak
                else Severity.MEDIUM
            )
            insights.append(
                Insight(
                    id=make_insight_id("repeated", key),
                    type=self.insight_type,
                    severity=severity,
                    title="Repeated Test Failure",
                    description=f'"{name}" has failed {streak} times in a row',
                    affected_tests=[name],
                    pattern=truncate_pattern(latest_error, self._thresholds.pattern_max_length),
                    occurrence_count=streak,
                    recommendation=_RECOMMENDATION,
                    actionable=True,
                    metadata={"consecutive_failures": streak, "latest_error": latest_error},
                )
            )
        return insights
