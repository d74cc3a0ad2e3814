"""Общий проход «отфильтровать падения по тексту ошибки → сгруппировать по тесту»."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from tessa.models.insights import ErrorPatternFlags
from tessa.models.records import TestExecutionRecord
from tessa.services.grouping import ResultGroups, group_results_by_test
from tessa.utils.error_patterns import classify_error


def group_matching_failures(
    records: Sequence[TestExecutionRecord],
    predicate: Callable[[ErrorPatternFlags], bool],
) -> ResultGroups:
    """Сгруппировать по ключу теста только упавшие прогоны, чьи флаги прошли ``predicate``.

    Сканирует исходную выборку целиком, а не готовые группы: порядок
    внутри группы — порядок входа.
    """
    matching = [
        r for r in records
        if r.is_failed and predicate(classify_error(r.error_message))
    ]
    return group_results_by_test(matching)
