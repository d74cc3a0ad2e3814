"""Тесты полного анализа выборки: окно, скрытые инсайты, сериализация."""

from __future__ import annotations

import json
from datetime import timedelta

import pytest

from tessa.config import Settings
from tessa.models.common import FailureCategory
from tessa.orchestrator import analyze_records, apply_window
from conftest import BASE_TIME, make_history, make_record


@pytest.fixture
def settings(monkeypatch, tmp_path) -> Settings:
    monkeypatch.chdir(tmp_path)
    return Settings()


def _records():
    return [
        *make_history(["failed"] * 5, test_id="broken", error_message="Timeout 5000ms"),
        *make_history(["passed", "failed"] * 3, test_id="flaky", name="test_flaky"),
        make_record(test_id=None, name=None),
    ]


def test_analyze_records_full_result(settings) -> None:
    result = analyze_records(_records(), settings)

    assert result.total_records == 12
    assert result.analyzed_records == 11
    assert result.skipped_records == 1
    assert [i.id for i in result.insights] == [
        "repeated-broken",
        "timeout-broken",
        "flaky-flaky",
    ]
    assert result.total_insights == 3
    assert result.summary.total == 3
    assert [r.test_key for r in result.flaky_tests] == ["flaky"]
    assert set(result.flakiness) == {"broken", "flaky"}
    assert result.flakiness["broken"].is_flaky is False
    assert result.failure_breakdown.total_failures == 8
    assert [(s.category, s.percentage) for s in result.failure_breakdown.categories] == [
        (FailureCategory.TIMEOUT, 63),
        (FailureCategory.OTHER, 38),
    ]


def test_analyze_records_respects_dismissed_and_limit(settings) -> None:
    result = analyze_records(
        _records(),
        settings,
        dismissed_ids=["repeated-broken"],
        max_insights=1,
    )

    assert [i.id for i in result.insights] == ["timeout-broken"]
    assert result.total_insights == 3
    assert result.summary.total == 1


def test_analyze_records_all_tests_in_flaky_table(settings) -> None:
    result = analyze_records(_records(), settings, flaky_only=False)

    assert {r.test_key for r in result.flaky_tests} == {"broken", "flaky"}
    # сводка не зависит от flaky_only
    assert result.flaky_stats.total == 1


def test_analyze_records_empty_input(settings) -> None:
    result = analyze_records([], settings)

    assert result.total_records == 0
    assert result.insights == []
    assert result.flaky_tests == []
    assert result.flaky_stats.total == 0
    assert len(result.flakiness_trend) == 8
    assert result.flakiness == {}
    assert result.failure_breakdown.total_failures == 0


def test_apply_window_keeps_most_recent_in_input_order() -> None:
    records = [
        make_record(test_id=f"t{n}", created_at=BASE_TIME + timedelta(minutes=m))
        for n, m in enumerate([5, 1, 4, 2, 3])
    ]

    windowed = apply_window(records, 3)

    assert [r.test_id for r in windowed] == ["t0", "t2", "t4"]
    assert apply_window(records, 10) == records


def test_analyze_records_applies_window_from_settings(monkeypatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TESSA_MAX_RECORDS", "4")
    records = make_history(["failed"] * 3 + ["passed"] * 4)

    result = analyze_records(records, Settings())

    assert result.total_records == 7
    assert result.analyzed_records == 4
    assert result.insights == []


def test_to_dict_is_json_serializable(settings) -> None:
    data = analyze_records(_records(), settings).to_dict()

    decoded = json.loads(json.dumps(data))
    assert decoded["insights"][0]["severity"] == "high"
    assert decoded["insights"][0]["type"] == "repeated_failure"
    assert decoded["summary"]["by_type"]["coverage_gap"] == 0
    assert decoded["flaky_tests"][0]["last_run"].startswith("2026-03-01T12:05:00")
    assert decoded["flakiness"]["flaky"]["trend"] in {"increasing", "decreasing", "stable"}
    assert decoded["flaky_stats"]["high"] == 1
    assert decoded["flakiness_trend"][-1]["week_end"].startswith("2026-03-01T12:05:00")


def test_analyze_records_flaky_stats_and_weekly_trend(settings) -> None:
    result = analyze_records(_records(), settings)

    assert result.flaky_stats.total == 1
    assert result.flaky_stats.high == 1
    assert result.flaky_stats.avg_score == 0.5
    assert len(result.flakiness_trend) == 8
    # последняя неделя заканчивается на самой свежей записи выборки
    assert result.flakiness_trend[-1].week_end == BASE_TIME + timedelta(minutes=5)
    assert result.flakiness_trend[-1].flaky == 1
    assert result.flakiness_trend[-1].fixed == 0
    assert sum(p.flaky for p in result.flakiness_trend) == 1
