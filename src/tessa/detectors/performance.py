"""Детектор регрессии производительности: свежие прогоны заметно медленнее старых."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import numpy as np

from tessa.detectors.base import InsightThresholds, make_insight_id
from tessa.models.common import InsightType, Severity
from tessa.models.insights import Insight
from tessa.models.records import TestExecutionRecord
from tessa.services.grouping import ResultGroups, display_name, sort_oldest_first
from tessa.utils.numbers import round_half_up

logger = logging.getLogger(__name__)

_RECOMMENDATION = (
    "Investigate recent code changes that may have impacted performance. "
    "Consider profiling the test to identify bottlenecks."
)


def split_durations(
    records: Sequence[TestExecutionRecord],
) -> tuple[np.ndarray, np.ndarray]:
    """Длительности в хронологическом порядке, разбитые пополам: (старые, свежие).

    Учитываются только прогоны с ``duration_ms``. Середина — ``n // 2``,
    нечётный остаток попадает в свежую половину.
    """
    durations = np.array(
        [r.duration_ms for r in sort_oldest_first(records) if r.duration_ms is not None],
        dtype=np.float64,
    )
    midpoint = len(durations) // 2
    return durations[:midpoint], durations[midpoint:]


class PerformanceRegressionDetector:
    """Инсайт ``performance_regression`` при росте средней длительности.

    Сравнивает среднюю длительность старой и свежей половины прогонов;
    срабатывает, только если рост больше порога и свежие прогоны
    длиннее ``regression_min_recent_ms``. Нулевая средняя база считается
    неограниченным ростом (severity ``high``).
    """

    insight_type = InsightType.PERFORMANCE_REGRESSION

    def __init__(self, thresholds: InsightThresholds | None = None) -> None:
        self._thresholds = thresholds or InsightThresholds()

    def detect(
        self,
        groups: ResultGroups,
        records: Sequence[TestExecutionRecord],  # noqa: ARG002
    ) -> list[Insight]:
        insights: list[Insight] = []
        min_samples = self._thresholds.regression_min_samples

        for key, group in groups.items():
            if len(group) < min_samples:
                continue

            historical, recent = split_durations(group)
            sample_count = len(historical) + len(recent)
            if sample_count < min_samples:
                continue

            historical_avg = float(historical.mean())
            recent_avg = float(recent.mean())
            if historical_avg <= 0:
                # Нулевая база: рост неограничен, решает только порог свежих прогонов
                logger.debug("Perf: %s has zero baseline duration", key)
                increase_percent = math.inf
            else:
                increase_percent = (recent_avg - historical_avg) / historical_avg * 100
            if (
                increase_percent <= self._thresholds.regression_min_increase_percent
                or recent_avg <= self._thresholds.regression_min_recent_ms
            ):
                continue

            name = display_name(group, key)
            insights.append(
                Insight(
                    id=make_insight_id("perf", key),
                    type=self.insight_type,
                    severity=self._severity(increase_percent),
                    title="Performance Regression",
                    description=_describe(name, increase_percent, historical_avg, recent_avg),
                    affected_tests=[name],
                    occurrence_count=sample_count,
                    recommendation=_RECOMMENDATION,
                    actionable=True,
                    metadata={
                        "historical_avg": historical_avg,
                        "recent_avg": recent_avg,
                        "increase_percent": (
                            increase_percent if math.isfinite(increase_percent) else None
                        ),
                    },
                )
            )
        return insights

    def _severity(self, increase_percent: float) -> Severity:
        if increase_percent > self._thresholds.regression_high_increase_percent:
            return Severity.HIGH
        if increase_percent > self._thresholds.regression_medium_increase_percent:
            return Severity.MEDIUM
        return Severity.LOW


def _describe(name: str, increase_percent: float, historical_avg: float, recent_avg: float) -> str:
    durations = f"({round_half_up(historical_avg)}ms -> {round_half_up(recent_avg)}ms)"
    if math.isinf(increase_percent):
        return f'"{name}" has no measurable baseline {durations}'
    return f'"{name}" is {round_half_up(increase_percent)}% slower than baseline {durations}'
