"""Контракт детектора закономерностей и общие пороги анализа."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from tessa.models.common import InsightType
from tessa.models.insights import Insight
from tessa.models.records import TestExecutionRecord
from tessa.services.grouping import ResultGroups


@dataclass(frozen=True)
class InsightThresholds:
    """Все пороги эвристик в одном месте.

    Детекторы не содержат «магических» литералов — только ссылки на поля
    этой структуры.
    """

    # Flakiness
    flaky_min_runs: int = 3
    flaky_rate_threshold: float = 0.20
    flaky_high_fail_rate: float = 0.5
    flaky_medium_fail_rate: float = 0.3

    # Flaky-test report: корзины flakiness score и порог «починенного» теста
    flaky_score_high: float = 0.4
    flaky_score_medium: float = 0.2
    fixed_min_passes: int = 3

    # Repeated failure
    repeated_min_streak: int = 3
    repeated_high_streak: int = 5

    # Selector issues
    selector_min_matches: int = 2
    selector_medium_matches: int = 3
    selector_high_matches: int = 5

    # Timeout patterns (low недостижим: порог эмиссии совпадает с medium)
    timeout_min_matches: int = 2
    timeout_medium_matches: int = 2
    timeout_high_matches: int = 4

    # Performance regression
    regression_min_samples: int = 5
    regression_min_increase_percent: float = 50.0
    regression_medium_increase_percent: float = 75.0
    regression_high_increase_percent: float = 100.0
    regression_min_recent_ms: float = 1000.0

    pattern_max_length: int = 200


@runtime_checkable
class Detector(Protocol):
    """Протокол одного прохода поиска закономерностей.

    Детектор получает уже сгруппированные записи и исходную выборку
    (некоторые детекторы сканируют падения без группировки) и возвращает
    список инсайтов одного типа. Детектор не должен изменять входные данные.

    Реализации:
    - FlakyTestDetector, RepeatedFailureDetector, SelectorIssueDetector,
      TimeoutPatternDetector, PerformanceRegressionDetector
    - Будущее: ErrorClusterDetector, CoverageGapDetector
    """

    insight_type: InsightType

    def detect(
        self,
        groups: ResultGroups,
        records: Sequence[TestExecutionRecord],
    ) -> list[Insight]:
        """Найти закономерности и вернуть инсайты."""
        ...


def make_insight_id(prefix: str, key: str) -> str:
    """Детерминированный ID инсайта: ``<prefix>-<ключ теста>``."""
    return f"{prefix}-{key}"
