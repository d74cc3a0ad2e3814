"""Тесты разбивки падений по категориям ошибок."""

from __future__ import annotations

from tessa.models.common import FailureCategory
from tessa.services.failure_breakdown import build_failure_breakdown
from conftest import make_record


def test_breakdown_counts_each_failure_once() -> None:
    records = [
        make_record(test_id="t1", status="failed", error_message="Timeout 5000ms"),
        make_record(test_id="t1", status="failed", error_message="timed out"),
        make_record(test_id="t2", status="failed", error_message="element not found"),
        make_record(test_id="t2", status="failed", error_message="401 Unauthorized"),
        make_record(test_id="t3", status="failed", error_message=None),
        make_record(test_id="t3", status="passed", error_message="Timeout"),
    ]

    breakdown = build_failure_breakdown(records)

    assert breakdown.total_failures == 5
    assert [(s.category, s.count, s.percentage) for s in breakdown.categories] == [
        (FailureCategory.TIMEOUT, 2, 40),
        (FailureCategory.ELEMENT, 1, 20),
        (FailureCategory.AUTH, 1, 20),
        (FailureCategory.OTHER, 1, 20),
    ]
    timeout = breakdown.categories[0]
    assert timeout.affected_tests == ["t1"]
    assert timeout.affected_test_count == 1


def test_breakdown_without_failures_is_empty() -> None:
    breakdown = build_failure_breakdown([make_record(), make_record(test_id="t2")])

    assert breakdown.total_failures == 0
    assert breakdown.categories == []
    assert build_failure_breakdown([]).categories == []


def test_breakdown_skips_records_without_key() -> None:
    records = [
        make_record(test_id=None, name=None, status="failed", error_message="timeout"),
        make_record(status="failed", error_message="fetch failed"),
    ]

    breakdown = build_failure_breakdown(records)

    assert breakdown.total_failures == 1
    assert breakdown.categories[0].category is FailureCategory.NETWORK
    assert breakdown.categories[0].percentage == 100
