"""Разбивка падений по категориям ошибок (timeout, element, network, ...)."""

from __future__ import annotations

from collections.abc import Sequence

from tessa.models.common import FailureCategory
from tessa.models.insights import FailureBreakdown, FailureCategoryStats
from tessa.models.records import TestExecutionRecord
from tessa.services.grouping import partition_valid_records, stable_key
from tessa.utils.error_patterns import categorize_failure
from tessa.utils.numbers import percent


def build_failure_breakdown(records: Sequence[TestExecutionRecord]) -> FailureBreakdown:
    """Распределить упавшие прогоны по категориям.

    Каждое падение попадает ровно в одну категорию. Категории без падений
    не выводятся; порядок — по числу падений (убывание), при равенстве —
    порядок объявления категорий.
    """
    valid, _ = partition_valid_records(records)
    failed = [r for r in valid if r.is_failed]
    if not failed:
        return FailureBreakdown()

    counts: dict[FailureCategory, int] = {c: 0 for c in FailureCategory}
    affected: dict[FailureCategory, list[str]] = {c: [] for c in FailureCategory}
    for record in failed:
        category = categorize_failure(record.error_message)
        counts[category] += 1
        key = stable_key(record)
        if key not in affected[category]:
            affected[category].append(key)

    total = len(failed)
    stats = [
        FailureCategoryStats(
            category=category,
            count=count,
            percentage=percent(count / total),
            affected_tests=affected[category],
        )
        for category, count in counts.items()
        if count > 0
    ]
    stats.sort(key=lambda s: -s.count)

    return FailureBreakdown(total_failures=total, categories=stats)
