"""Сервис инсайтов: запуск детекторов, ранжирование, сводка.

Порядок:
1. Записи без ключа теста отбрасываются (с предупреждением), остальные
   группируются по ключу один раз.
2. Каждый зарегистрированный детектор получает группы и исходную выборку.
3. Результаты объединяются и сортируются: severity (high → low), затем
   ``occurrence_count`` по убыванию, при равенстве: тип инсайта (порядок
   объявления ``InsightType``) и ``id``. Порядок детекторов на результат
   не влияет.

Дедупликации между типами нет: один тест может попасть в несколько
инсайтов разных типов.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence

from tessa.detectors.base import Detector, InsightThresholds
from tessa.detectors.flaky import FlakyTestDetector
from tessa.detectors.performance import PerformanceRegressionDetector
from tessa.detectors.repeated_failure import RepeatedFailureDetector
from tessa.detectors.selector import SelectorIssueDetector
from tessa.detectors.timeout import TimeoutPatternDetector
from tessa.models.common import InsightType, Severity
from tessa.models.insights import Insight, InsightSummary
from tessa.models.records import TestExecutionRecord
from tessa.services.grouping import group_results_by_test, partition_valid_records

logger = logging.getLogger(__name__)


def default_detectors(thresholds: InsightThresholds | None = None) -> list[Detector]:
    """Стандартный набор детекторов в фиксированном порядке."""
    thresholds = thresholds or InsightThresholds()
    return [
        FlakyTestDetector(thresholds),
        RepeatedFailureDetector(thresholds),
        SelectorIssueDetector(thresholds),
        TimeoutPatternDetector(thresholds),
        PerformanceRegressionDetector(thresholds),
    ]


_TYPE_ORDER: dict[InsightType, int] = {t: index for index, t in enumerate(InsightType)}


def rank_insights(insights: Iterable[Insight]) -> list[Insight]:
    """Самые срочные первыми, при равенстве — частые первыми.

    Ключ сортировки полный (тип, затем ``id``): результат не зависит
    от порядка входа.
    """
    return sorted(
        insights,
        key=lambda i: (i.severity.order, -i.occurrence_count, _TYPE_ORDER[i.type], i.id),
    )


def select_visible(
    insights: Sequence[Insight],
    *,
    dismissed_ids: Iterable[str] = (),
    max_insights: int | None = None,
) -> list[Insight]:
    """Убрать скрытые пользователем инсайты и обрезать список, сохраняя порядок."""
    dismissed = set(dismissed_ids)
    visible = [i for i in insights if i.id not in dismissed]
    if max_insights is not None:
        visible = visible[:max(max_insights, 0)]
    return visible


def summarize_insights(insights: Iterable[Insight]) -> InsightSummary:
    """Подсчитать инсайты по типам и severity (нулевые значения включены)."""
    insights = list(insights)
    type_counts = Counter(i.type for i in insights)
    severity_counts = Counter(i.severity for i in insights)
    return InsightSummary(
        total=len(insights),
        by_type={t: type_counts.get(t, 0) for t in InsightType},
        by_severity={s: severity_counts.get(s, 0) for s in Severity},
    )


class InsightService:
    """Генерирует ранжированный список инсайтов по истории прогонов.

    Сервис не хранит состояния между вызовами: каждый вызов —
    чистая функция от переданной выборки.
    """

    def __init__(
        self,
        detectors: Sequence[Detector] | None = None,
        thresholds: InsightThresholds | None = None,
    ) -> None:
        self._detectors = list(detectors) if detectors is not None else default_detectors(thresholds)

    @property
    def detectors(self) -> list[Detector]:
        return list(self._detectors)

    def generate_insights(self, records: Sequence[TestExecutionRecord]) -> list[Insight]:
        """Прогнать все детекторы и вернуть ранжированный список инсайтов.

        Пустая выборка → пустой список. Записи без ``test_id`` и ``name``
        пропускаются, анализ остальных продолжается.
        """
        if not records:
            return []

        valid, rejected = partition_valid_records(records)
        for exc in rejected:
            logger.warning("Skipping invalid record: %s", exc)

        groups = group_results_by_test(valid)

        all_insights: list[Insight] = []
        for detector in self._detectors:
            found = detector.detect(groups, valid)
            logger.debug(
                "Detector %s: %d insights",
                detector.insight_type.value,
                len(found),
            )
            all_insights.extend(found)

        ranked = rank_insights(all_insights)

        logger.info(
            "Analyzed %d records (%d tests, %d skipped): %d insights",
            len(valid),
            len(groups),
            len(rejected),
            len(ranked),
        )
        return ranked


def generate_insights(
    records: Sequence[TestExecutionRecord],
    thresholds: InsightThresholds | None = None,
) -> list[Insight]:
    """Сокращение для ``InsightService(thresholds=...).generate_insights(records)``."""
    return InsightService(thresholds=thresholds).generate_insights(records)
