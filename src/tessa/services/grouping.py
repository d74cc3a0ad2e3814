"""Группировка прогонов по стабильному ключу теста."""

from __future__ import annotations

from collections.abc import Iterable

from tessa.exceptions import InvalidRecordError
from tessa.models.records import TestExecutionRecord

ResultGroups = dict[str, list[TestExecutionRecord]]


def stable_key(record: TestExecutionRecord) -> str:
    """Стабильный ключ теста: ``test_id``, а если он пуст — ``name``.

    Raises:
        InvalidRecordError: У записи нет ни ``test_id``, ни ``name``.
    """
    if record.test_id:
        return record.test_id
    if record.name:
        return record.name
    raise InvalidRecordError("record has neither test_id nor name")


def display_name(records: list[TestExecutionRecord], key: str) -> str:
    """Имя теста для карточек: имя первой записи группы или сам ключ."""
    if records and records[0].name:
        return records[0].name
    return key


def group_results_by_test(records: Iterable[TestExecutionRecord]) -> ResultGroups:
    """Разложить записи по ключу теста, сохраняя относительный порядок входа.

    Ни одна запись не теряется и не дублируется.

    Raises:
        InvalidRecordError: Встретилась запись без ключа (с индексом записи).
    """
    groups: ResultGroups = {}
    for index, record in enumerate(records):
        try:
            key = stable_key(record)
        except InvalidRecordError as exc:
            raise InvalidRecordError(str(exc), index=index) from exc
        groups.setdefault(key, []).append(record)
    return groups


def partition_valid_records(
    records: Iterable[TestExecutionRecord],
) -> tuple[list[TestExecutionRecord], list[InvalidRecordError]]:
    """Отделить записи с ключом от записей без ключа.

    Возвращает (валидные записи в исходном порядке, ошибки по отброшенным).
    """
    valid: list[TestExecutionRecord] = []
    rejected: list[InvalidRecordError] = []
    for index, record in enumerate(records):
        try:
            stable_key(record)
        except InvalidRecordError as exc:
            rejected.append(InvalidRecordError(str(exc), index=index))
            continue
        valid.append(record)
    return valid, rejected


def sort_most_recent_first(
    records: Iterable[TestExecutionRecord],
) -> list[TestExecutionRecord]:
    """Стабильная сортировка по ``created_at`` по убыванию."""
    return sorted(records, key=lambda r: r.created_at, reverse=True)


def sort_oldest_first(
    records: Iterable[TestExecutionRecord],
) -> list[TestExecutionRecord]:
    """Стабильная сортировка по ``created_at`` по возрастанию."""
    return sorted(records, key=lambda r: r.created_at)
