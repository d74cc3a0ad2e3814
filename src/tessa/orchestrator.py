"""Общая логика анализа выборки — используется и CLI, и HTTP-сервером."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from tessa.config import Settings
from tessa.models.insights import (
    FailureBreakdown,
    FlakinessResult,
    FlakinessTrendPoint,
    FlakyTestReport,
    FlakyTestStats,
    Insight,
    InsightSummary,
)
from tessa.models.records import TestExecutionRecord
from tessa.services.failure_breakdown import build_failure_breakdown
from tessa.services.flakiness_service import FlakinessService
from tessa.services.grouping import partition_valid_records, sort_most_recent_first
from tessa.services.insight_service import (
    InsightService,
    select_visible,
    summarize_insights,
)

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Полный результат анализа выборки прогонов."""

    total_records: int
    analyzed_records: int
    skipped_records: int
    insights: list[Insight] = field(default_factory=list)
    total_insights: int = 0
    summary: InsightSummary = field(default_factory=InsightSummary)
    flaky_tests: list[FlakyTestReport] = field(default_factory=list)
    flaky_stats: FlakyTestStats = field(default_factory=FlakyTestStats)
    flakiness_trend: list[FlakinessTrendPoint] = field(default_factory=list)
    flakiness: dict[str, FlakinessResult] = field(default_factory=dict)
    failure_breakdown: FailureBreakdown = field(default_factory=FailureBreakdown)

    def to_dict(self) -> dict:
        """JSON-совместимое представление (enum → value, datetime → ISO)."""
        return {
            "total_records": self.total_records,
            "analyzed_records": self.analyzed_records,
            "skipped_records": self.skipped_records,
            "total_insights": self.total_insights,
            "insights": [i.model_dump(mode="json") for i in self.insights],
            "summary": self.summary.model_dump(mode="json"),
            "flaky_tests": [t.model_dump(mode="json") for t in self.flaky_tests],
            "flaky_stats": self.flaky_stats.model_dump(mode="json"),
            "flakiness_trend": [p.model_dump(mode="json") for p in self.flakiness_trend],
            "flakiness": {
                key: result.model_dump(mode="json")
                for key, result in self.flakiness.items()
            },
            "failure_breakdown": self.failure_breakdown.model_dump(mode="json"),
        }


def apply_window(
    records: Sequence[TestExecutionRecord],
    max_records: int,
) -> list[TestExecutionRecord]:
    """Оставить не более ``max_records`` самых свежих записей (порядок входа сохраняется)."""
    if len(records) <= max_records:
        return list(records)
    keep = {id(r) for r in sort_most_recent_first(records)[:max_records]}
    logger.info(
        "Input window: keeping %d most recent of %d records",
        max_records,
        len(records),
    )
    return [r for r in records if id(r) in keep]


def analyze_records(
    records: Sequence[TestExecutionRecord],
    settings: Settings,
    *,
    dismissed_ids: Iterable[str] = (),
    max_insights: int | None = None,
    flaky_only: bool = True,
) -> AnalysisResult:
    """Запустить полный анализ: инсайты → flaky-тесты → разбивка падений.

    Args:
        records: Записи о прогонах в любом порядке.
        settings: Настройки приложения (окно выборки, пороги).
        dismissed_ids: ID инсайтов, скрытых пользователем.
        max_insights: Переопределение ``settings.max_insights``.
        flaky_only: Включать в ``flaky_tests`` только flaky-тесты
            (``flaky_stats`` от флага не зависит).

    Returns:
        AnalysisResult; для пустого входа — пустые списки и словари.
    """
    windowed = apply_window(records, settings.max_records)
    valid, rejected = partition_valid_records(windowed)

    thresholds = settings.thresholds()
    insight_service = InsightService(thresholds=thresholds)
    flakiness_service = FlakinessService(thresholds)

    # Невалидные записи логируются сервисом инсайтов, остальные шаги получают valid
    ranked = insight_service.generate_insights(windowed)
    visible = select_visible(
        ranked,
        dismissed_ids=dismissed_ids,
        max_insights=max_insights if max_insights is not None else settings.max_insights,
    )

    reports = flakiness_service.analyze(valid)
    flaky_reports = [r for r in reports if r.flakiness.is_flaky]

    return AnalysisResult(
        total_records=len(records),
        analyzed_records=len(valid),
        skipped_records=len(rejected),
        insights=visible,
        total_insights=len(ranked),
        summary=summarize_insights(visible),
        flaky_tests=flaky_reports if flaky_only else reports,
        # Сводка всегда только по flaky-тестам, независимо от flaky_only
        flaky_stats=flakiness_service.summarize(flaky_reports),
        flakiness_trend=flakiness_service.weekly_trend(valid),
        flakiness=flakiness_service.compute_flakiness_map(valid),
        failure_breakdown=build_failure_breakdown(valid),
    )
