"""Тесты детекторов закономерностей: пороги срабатывания, severity, тексты."""

from __future__ import annotations

import pytest

from tessa.detectors.base import Detector, InsightThresholds
from tessa.detectors.flaky import FlakyTestDetector
from tessa.detectors.performance import PerformanceRegressionDetector, split_durations
from tessa.detectors.repeated_failure import RepeatedFailureDetector, consecutive_failures
from tessa.detectors.selector import SelectorIssueDetector
from tessa.detectors.timeout import TimeoutPatternDetector
from tessa.models.common import InsightType, Severity
from tessa.services.grouping import group_results_by_test
from conftest import make_history, make_record


def _detect(detector, records):
    return detector.detect(group_results_by_test(records), records)


@pytest.mark.parametrize(
    "detector_cls",
    [
        FlakyTestDetector,
        RepeatedFailureDetector,
        SelectorIssueDetector,
        TimeoutPatternDetector,
        PerformanceRegressionDetector,
    ],
)
def test_detectors_implement_protocol(detector_cls) -> None:
    detector = detector_cls()

    assert isinstance(detector, Detector)
    assert _detect(detector, []) == []


# ---------------------------------------------------------------------------
# FlakyTestDetector
# ---------------------------------------------------------------------------


def test_flaky_interleaved_history_is_medium() -> None:
    """fail_rate 0.5 не превышает порог high → medium."""
    records = make_history(["passed", "failed"] * 5)

    [insight] = _detect(FlakyTestDetector(), records)

    assert insight.id == "flaky-t1"
    assert insight.type is InsightType.FLAKY_TEST
    assert insight.severity is Severity.MEDIUM
    assert insight.title == "Flaky Test Detected"
    assert insight.description == (
        '"test_login" has inconsistent results: 50% pass rate over 10 runs'
    )
    assert insight.affected_tests == ["test_login"]
    assert insight.occurrence_count == 10
    # последний прогон упал: в свежей половине падений больше
    assert insight.metadata["trend"] == "increasing"


@pytest.mark.parametrize(
    ("statuses", "expected"),
    [
        (["failed", "failed", "failed", "passed", "passed"], Severity.HIGH),
        (["passed", "passed", "passed", "failed"], Severity.LOW),
    ],
)
def test_flaky_severity_bands(statuses, expected) -> None:
    [insight] = _detect(FlakyTestDetector(), make_history(statuses))

    assert insight.severity is expected


def test_flaky_ignores_short_and_stable_histories() -> None:
    records = [
        *make_history(["passed", "failed"], test_id="short"),
        *make_history(["passed"] * 10, test_id="green"),
        *make_history(["failed"] * 10, test_id="red"),
    ]

    assert _detect(FlakyTestDetector(), records) == []


# ---------------------------------------------------------------------------
# RepeatedFailureDetector
# ---------------------------------------------------------------------------


def test_consecutive_failures_counts_from_most_recent_run() -> None:
    # От старых к новым: F, P, F, F, F → серия из 3
    records = make_history(["failed", "passed", "failed", "failed", "failed"])

    assert consecutive_failures(records) == 3
    assert consecutive_failures(list(reversed(records))) == 3
    assert consecutive_failures(make_history(["failed", "passed"])) == 0
    assert consecutive_failures([]) == 0


def test_repeated_failure_streak_of_three_is_medium() -> None:
    records = make_history(
        ["failed", "passed", "failed", "failed", "failed"],
        error_message="AssertionError: expected 200, got 500",
    )

    [insight] = _detect(RepeatedFailureDetector(), records)

    assert insight.id == "repeated-t1"
    assert insight.severity is Severity.MEDIUM
    assert insight.occurrence_count == 3
    assert insight.description == '"test_login" has failed 3 times in a row'
    assert insight.pattern == "AssertionError: expected 200, got 500"


def test_repeated_failure_streak_of_five_is_high() -> None:
    [insight] = _detect(RepeatedFailureDetector(), make_history(["failed"] * 5))

    assert insight.severity is Severity.HIGH
    assert insight.occurrence_count == 5
    assert insight.pattern is None


def test_repeated_failure_short_streak_is_ignored() -> None:
    records = make_history(["failed", "failed", "failed", "passed", "failed", "failed"])

    assert _detect(RepeatedFailureDetector(), records) == []


def test_repeated_failure_truncates_long_error() -> None:
    records = make_history(["failed"] * 3, error_message="x" * 500)

    [insight] = _detect(RepeatedFailureDetector(), records)

    assert insight.pattern == "x" * 200
    assert insight.metadata["latest_error"] == "x" * 500


# ---------------------------------------------------------------------------
# SelectorIssueDetector
# ---------------------------------------------------------------------------


def test_selector_two_matches_is_low() -> None:
    records = [
        make_record(status="failed", error_message="element not found: #submit"),
        make_record(status="failed", error_message="Unable to locate button"),
        make_record(status="failed", error_message="AssertionError: wrong title"),
    ]

    [insight] = _detect(SelectorIssueDetector(), records)

    assert insight.id == "selector-t1"
    assert insight.severity is Severity.LOW
    assert insight.occurrence_count == 2
    assert insight.description == '"test_login" has 2 failures related to element selectors'
    assert insight.pattern == "element not found: #submit"


@pytest.mark.parametrize(("count", "expected"), [(3, Severity.MEDIUM), (5, Severity.HIGH)])
def test_selector_severity_bands(count, expected) -> None:
    records = make_history(["failed"] * count, error_message="locator timed out")

    [insight] = _detect(SelectorIssueDetector(), records)

    assert insight.severity is expected


def test_selector_ignores_passed_runs_and_single_match() -> None:
    records = [
        make_record(status="passed", error_message="element not found"),
        make_record(status="failed", error_message="element not found"),
    ]

    assert _detect(SelectorIssueDetector(), records) == []


# ---------------------------------------------------------------------------
# TimeoutPatternDetector
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("count", "expected"),
    [(2, Severity.MEDIUM), (3, Severity.MEDIUM), (4, Severity.HIGH), (6, Severity.HIGH)],
)
def test_timeout_severity_never_low_with_default_thresholds(count, expected) -> None:
    """Порог эмиссии совпадает с нижней границей medium."""
    records = make_history(["failed"] * count, error_message="Timeout 30000ms exceeded")

    [insight] = _detect(TimeoutPatternDetector(), records)

    assert insight.severity is expected
    assert insight.occurrence_count == count
    assert insight.description == f'"test_login" has {count} timeout-related failures'


def test_timeout_low_band_with_custom_thresholds() -> None:
    thresholds = InsightThresholds(timeout_medium_matches=3)
    records = make_history(["failed"] * 2, error_message="Navigation timed out")

    [insight] = _detect(TimeoutPatternDetector(thresholds), records)

    assert insight.severity is Severity.LOW


def test_timeout_pattern_is_first_matching_error() -> None:
    records = [
        make_record(status="failed", error_message="first: timed out"),
        make_record(status="failed", error_message="second: timeout"),
    ]

    [insight] = _detect(TimeoutPatternDetector(), records)

    assert insight.id == "timeout-t1"
    assert insight.pattern == "first: timed out"


def test_timeout_single_match_is_ignored() -> None:
    records = make_history(["failed", "failed"], error_message=None)
    records.append(make_record(status="failed", error_message="Timeout"))

    assert _detect(TimeoutPatternDetector(), records) == []


# ---------------------------------------------------------------------------
# PerformanceRegressionDetector
# ---------------------------------------------------------------------------


def test_split_durations_skips_missing_and_orders_chronologically() -> None:
    records = make_history(["passed"] * 5, durations=[100, None, 300, 400, 500])

    historical, recent = split_durations(list(reversed(records)))

    assert historical.tolist() == [100.0, 300.0]
    assert recent.tolist() == [400.0, 500.0]


def test_performance_regression_high() -> None:
    records = make_history(["passed"] * 5, durations=[500, 500, 1200, 1200, 1200])

    [insight] = _detect(PerformanceRegressionDetector(), records)

    assert insight.id == "perf-t1"
    assert insight.type is InsightType.PERFORMANCE_REGRESSION
    assert insight.severity is Severity.HIGH
    assert insight.occurrence_count == 5
    assert insight.description == (
        '"test_login" is 140% slower than baseline (500ms -> 1200ms)'
    )
    assert insight.metadata["historical_avg"] == 500.0
    assert insight.metadata["recent_avg"] == 1200.0


@pytest.mark.parametrize(
    ("recent", "expected"),
    [(1800, Severity.MEDIUM), (1600, Severity.LOW)],
)
def test_performance_regression_severity_bands(recent, expected) -> None:
    records = make_history(["passed"] * 5, durations=[1000, 1000, recent, recent, recent])

    [insight] = _detect(PerformanceRegressionDetector(), records)

    assert insight.severity is expected


@pytest.mark.parametrize(
    "durations",
    [
        [400, 400, 900, 900, 900],  # рост есть, но свежие прогоны быстрее 1 с
        [1000, 1000, 1400, 1400, 1400],  # рост 40%
        [500, None, 1200, None, 1200, 1200],  # меньше 5 замеров
    ],
)
def test_performance_regression_not_reported(durations) -> None:
    records = make_history(["passed"] * len(durations), durations=durations)

    assert _detect(PerformanceRegressionDetector(), records) == []


def test_performance_regression_zero_baseline_is_high() -> None:
    """Нулевая база: рост неограничен, в описании нет процента."""
    records = make_history(["passed"] * 6, durations=[0, 0, 0, 2000, 2000, 2000])

    [insight] = _detect(PerformanceRegressionDetector(), records)

    assert insight.severity is Severity.HIGH
    assert insight.occurrence_count == 6
    assert insight.description == '"test_login" has no measurable baseline (0ms -> 2000ms)'
    assert "inf" not in insight.description
    assert insight.metadata["increase_percent"] is None


def test_performance_regression_zero_baseline_below_floor_is_ignored() -> None:
    records = make_history(["passed"] * 6, durations=[0, 0, 0, 900, 900, 900])

    assert _detect(PerformanceRegressionDetector(), records) == []


def test_performance_regression_short_group_is_ignored() -> None:
    records = make_history(["passed"] * 4, durations=[100, 100, 5000, 5000])

    assert _detect(PerformanceRegressionDetector(), records) == []
