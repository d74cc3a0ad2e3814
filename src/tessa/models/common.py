"""Общие перечисления: статусы прогонов, severity, типы инсайтов."""

from __future__ import annotations

from enum import Enum


class TestStatus(str, Enum):
    """Статусы результата выполнения теста."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    PENDING = "pending"
    RUNNING = "running"


class Severity(str, Enum):
    """Срочность инсайта. ``order`` — ключ сортировки (самые срочные первыми)."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def order(self) -> int:
        return _SEVERITY_ORDER[self]


_SEVERITY_ORDER: dict[Severity, int] = {
    Severity.HIGH: 0,
    Severity.MEDIUM: 1,
    Severity.LOW: 2,
}


class InsightType(str, Enum):
    """Тип найденной закономерности.

    ``ERROR_CLUSTER`` и ``COVERAGE_GAP`` зарезервированы: детекторов для них
    пока нет, но значения уже участвуют в сводке по типам.
    """

    FLAKY_TEST = "flaky_test"
    REPEATED_FAILURE = "repeated_failure"
    SELECTOR_ISSUE = "selector_issue"
    TIMEOUT_PATTERN = "timeout_pattern"
    PERFORMANCE_REGRESSION = "performance_regression"
    ERROR_CLUSTER = "error_cluster"
    COVERAGE_GAP = "coverage_gap"


class FlakinessTrend(str, Enum):
    """Динамика доли падений: свежая половина прогонов против старой."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class FailureCategory(str, Enum):
    """Категория падения для разбивки ошибок по типам."""

    TIMEOUT = "timeout"
    ELEMENT = "element"
    NETWORK = "network"
    ASSERTION = "assertion"
    AUTH = "auth"
    OTHER = "other"
