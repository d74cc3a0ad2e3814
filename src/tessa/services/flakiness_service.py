"""Оценка стабильности тестов: pass/fail rate, признак flaky, тренд.

``compute_flakiness`` — чистая функция над одной группой прогонов.
``FlakinessService`` строит по всей выборке карточки для страницы
flaky-тестов: средняя длительность, последние результаты, предполагаемые
причины и рекомендация. Там же сводка по корзинам flakiness score
и недельная динамика flaky/починенных тестов.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from tessa.detectors.base import InsightThresholds
from tessa.models.common import FlakinessTrend
from tessa.models.insights import (
    FlakinessResult,
    FlakinessTrendPoint,
    FlakyTestReport,
    FlakyTestStats,
    RootCause,
)
from tessa.models.records import TestExecutionRecord
from tessa.services.grouping import (
    display_name,
    group_results_by_test,
    partition_valid_records,
    sort_most_recent_first,
    stable_key,
)
from tessa.utils.error_patterns import classify_error

logger = logging.getLogger(__name__)

_DEFAULT_THRESHOLDS = InsightThresholds()

RECENT_RESULTS_LIMIT = 10
TREND_WEEKS = 8

_SUGGESTED_FIXES: dict[str, str] = {
    "timing": "Add explicit waits or increase timeout values for flaky operations",
    "network": "Implement retry logic for network requests or use mocking",
    "selector": "Use more stable selectors like data-testid attributes",
    "data": "Isolate test data with fixtures to ensure consistency",
    "external": "Mock external dependencies to reduce variability",
}
_DEFAULT_FIX = "Investigate test stability and add appropriate waits"


def _failure_rate(records: Sequence[TestExecutionRecord]) -> float:
    if not records:
        return 0.0
    return sum(1 for r in records if r.is_failed) / len(records)


def compute_trend(group: Sequence[TestExecutionRecord]) -> FlakinessTrend:
    """Сравнить долю падений в свежей и старой половине прогонов.

    Свежая половина — первые ``ceil(n / 2)`` прогонов после сортировки
    от новых к старым (нечётный остаток уходит в свежую половину).
    """
    if len(group) < 2:
        return FlakinessTrend.STABLE

    ordered = sort_most_recent_first(group)
    midpoint = math.ceil(len(ordered) / 2)
    recent_rate = _failure_rate(ordered[:midpoint])
    older_rate = _failure_rate(ordered[midpoint:])

    if recent_rate > older_rate:
        return FlakinessTrend.INCREASING
    if recent_rate < older_rate:
        return FlakinessTrend.DECREASING
    return FlakinessTrend.STABLE


def compute_flakiness(
    group: Sequence[TestExecutionRecord],
    thresholds: InsightThresholds = _DEFAULT_THRESHOLDS,
) -> FlakinessResult:
    """Посчитать метрики стабильности одной группы прогонов.

    В знаменатель входят все прогоны группы, включая skipped/pending/running,
    поэтому ``pass_rate + fail_rate`` может быть меньше 1.

    Ниже ``flaky_min_runs`` прогонов тест не признаётся flaky, а тренд —
    ``stable``; доли при этом всё равно считаются (для отображения).
    """
    total_runs = len(group)
    passed_count = sum(1 for r in group if r.is_passed)
    failed_count = sum(1 for r in group if r.is_failed)
    pass_rate = passed_count / total_runs if total_runs else 0.0
    fail_rate = failed_count / total_runs if total_runs else 0.0

    if total_runs < thresholds.flaky_min_runs:
        return FlakinessResult(
            pass_rate=pass_rate,
            fail_rate=fail_rate,
            total_runs=total_runs,
            passed_count=passed_count,
            failed_count=failed_count,
            is_flaky=False,
            trend=FlakinessTrend.STABLE,
        )

    return FlakinessResult(
        pass_rate=pass_rate,
        fail_rate=fail_rate,
        total_runs=total_runs,
        passed_count=passed_count,
        failed_count=failed_count,
        is_flaky=(
            pass_rate >= thresholds.flaky_rate_threshold
            and fail_rate >= thresholds.flaky_rate_threshold
        ),
        trend=compute_trend(group),
    )


def infer_root_causes(failed: Sequence[TestExecutionRecord]) -> list[RootCause]:
    """Предположить причины нестабильности по текстам ошибок упавших прогонов."""
    if not failed:
        return []

    flags = [classify_error(r.error_message) for r in failed]
    causes: list[RootCause] = []
    if any(f.timeout for f in flags):
        causes.append(
            RootCause(type="timing", description="Timeout during test execution", confidence=0.7)
        )
    if any(f.network_error for f in flags):
        causes.append(
            RootCause(type="network", description="Network-related failures", confidence=0.7)
        )
    if any(f.selector_issue for f in flags):
        causes.append(
            RootCause(type="selector", description="Element selection issues", confidence=0.7)
        )
    if not causes:
        causes.append(
            RootCause(type="state", description="Unknown state-related issues", confidence=0.5)
        )
    return causes


def suggest_fix(root_causes: Sequence[RootCause]) -> str | None:
    """Рекомендация по первой (основной) причине."""
    if not root_causes:
        return None
    return _SUGGESTED_FIXES.get(root_causes[0].type, _DEFAULT_FIX)


def summarize_flaky_tests(
    reports: Sequence[FlakyTestReport],
    thresholds: InsightThresholds = _DEFAULT_THRESHOLDS,
) -> FlakyTestStats:
    """Разложить карточки по корзинам flakiness score.

    ``high`` — score >= ``flaky_score_high``, ``medium`` — от
    ``flaky_score_medium`` до ``flaky_score_high``, остальное — ``low``.
    """
    if not reports:
        return FlakyTestStats()

    scores = [r.flakiness_score for r in reports]
    high = sum(1 for s in scores if s >= thresholds.flaky_score_high)
    medium = sum(
        1 for s in scores
        if thresholds.flaky_score_medium <= s < thresholds.flaky_score_high
    )
    return FlakyTestStats(
        total=len(scores),
        high=high,
        medium=medium,
        low=len(scores) - high - medium,
        avg_score=sum(scores) / len(scores),
    )


def weekly_flakiness_trend(
    records: Sequence[TestExecutionRecord],
    *,
    weeks: int = TREND_WEEKS,
    now: datetime | None = None,
    thresholds: InsightThresholds = _DEFAULT_THRESHOLDS,
) -> list[FlakinessTrendPoint]:
    """Недельная динамика за последние ``weeks`` недель, от старых к новым.

    Неделя — полуинтервал ``(week_end - 7 дней, week_end]``; последняя
    неделя заканчивается в ``now`` (по умолчанию — время самой свежей
    записи, чтобы результат зависел только от входа). Учитываются только
    passed/failed прогоны. Тест за неделю считается flaky, если у него есть
    и прохождения, и падения; починенным — если прохождений больше
    ``fixed_min_passes`` и нет падений.
    """
    valid, _ = partition_valid_records(records)
    runs = [r for r in valid if r.is_passed or r.is_failed]
    if now is None:
        now = max((r.created_at for r in valid), default=datetime.now(timezone.utc))
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    points: list[FlakinessTrendPoint] = []
    for offset in range(weeks - 1, -1, -1):
        week_end = now - timedelta(days=7 * offset)
        week_start = week_end - timedelta(days=7)

        passed: dict[str, int] = {}
        failed: dict[str, int] = {}
        for record in runs:
            if not week_start < record.created_at <= week_end:
                continue
            key = stable_key(record)
            counter = passed if record.is_passed else failed
            counter[key] = counter.get(key, 0) + 1

        keys = passed.keys() | failed.keys()
        points.append(
            FlakinessTrendPoint(
                week_start=week_start,
                week_end=week_end,
                label=f"{week_end:%b} {week_end.day}",
                flaky=sum(1 for k in keys if passed.get(k) and failed.get(k)),
                fixed=sum(
                    1 for k in keys
                    if passed.get(k, 0) > thresholds.fixed_min_passes and not failed.get(k)
                ),
            )
        )
    return points


class FlakinessService:
    """Строит метрики стабильности по всей выборке прогонов."""

    def __init__(self, thresholds: InsightThresholds | None = None) -> None:
        self._thresholds = thresholds or InsightThresholds()

    def compute_flakiness_map(
        self,
        records: Sequence[TestExecutionRecord],
    ) -> dict[str, FlakinessResult]:
        """Метрики по каждому тесту: ключ теста → ``FlakinessResult``.

        Записи без ключа пропускаются с предупреждением.
        """
        valid, rejected = partition_valid_records(records)
        _log_rejected(rejected)
        groups = group_results_by_test(valid)
        return {
            key: compute_flakiness(group, self._thresholds)
            for key, group in groups.items()
        }

    def analyze(
        self,
        records: Sequence[TestExecutionRecord],
        *,
        flaky_only: bool = False,
    ) -> list[FlakyTestReport]:
        """Карточки тестов, отсортированные по flakiness score (убывание)."""
        valid, rejected = partition_valid_records(records)
        _log_rejected(rejected)
        groups = group_results_by_test(valid)

        reports: list[FlakyTestReport] = []
        for key, group in groups.items():
            flakiness = compute_flakiness(group, self._thresholds)
            if flaky_only and not flakiness.is_flaky:
                continue
            reports.append(self._build_report(key, group, flakiness))

        reports.sort(key=lambda r: -r.flakiness_score)

        logger.info(
            "Flakiness: %d tests analyzed, %d flaky",
            len(groups),
            sum(1 for r in reports if r.flakiness.is_flaky),
        )
        return reports

    def summarize(self, reports: Sequence[FlakyTestReport]) -> FlakyTestStats:
        """Сводка по карточкам (см. ``summarize_flaky_tests``)."""
        return summarize_flaky_tests(reports, self._thresholds)

    def weekly_trend(
        self,
        records: Sequence[TestExecutionRecord],
        *,
        weeks: int = TREND_WEEKS,
        now: datetime | None = None,
    ) -> list[FlakinessTrendPoint]:
        return weekly_flakiness_trend(
            records, weeks=weeks, now=now, thresholds=self._thresholds,
        )

    @staticmethod
    def _build_report(
        key: str,
        group: list[TestExecutionRecord],
        flakiness: FlakinessResult,
    ) -> FlakyTestReport:
        ordered = sort_most_recent_first(group)
        durations = [r.duration_ms for r in group if r.duration_ms is not None]
        root_causes = infer_root_causes([r for r in group if r.is_failed])

        return FlakyTestReport(
            test_key=key,
            name=display_name(group, key),
            flakiness=flakiness,
            flakiness_score=flakiness.fail_rate,
            avg_duration_ms=sum(durations) / len(durations) if durations else None,
            recent_results=[r.is_passed for r in ordered[:RECENT_RESULTS_LIMIT]],
            last_run=ordered[0].created_at if ordered else None,
            root_causes=root_causes,
            suggested_fix=suggest_fix(root_causes),
        )


def _log_rejected(rejected: Sequence[Exception]) -> None:
    for exc in rejected:
        logger.warning("Skipping invalid record: %s", exc)
