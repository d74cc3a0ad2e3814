"""Общие фабрики и фикстуры для тестов tessa."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from tessa.models.common import InsightType, Severity
from tessa.models.common import TestStatus as Status
from tessa.models.insights import Insight
from tessa.models.records import TestExecutionRecord as Record

BASE_TIME = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_record(**overrides) -> Record:
    """Фабрика TestExecutionRecord с разумными дефолтами."""
    defaults: dict = {
        "test_id": "t1",
        "name": "test_login",
        "status": Status.PASSED,
        "created_at": BASE_TIME,
    }
    defaults.update(overrides)
    return Record.model_validate(defaults)


def make_history(
    statuses: list[str],
    *,
    test_id: str | None = "t1",
    name: str | None = "test_login",
    durations: list[int | None] | None = None,
    error_message: str | None = None,
    start: datetime = BASE_TIME,
) -> list[Record]:
    """История прогонов одного теста от старых к новым, шаг — 1 минута.

    ``error_message`` проставляется только упавшим прогонам.
    """
    records: list[Record] = []
    for i, status in enumerate(statuses):
        records.append(
            make_record(
                test_id=test_id,
                name=name,
                status=status,
                duration_ms=durations[i] if durations else None,
                error_message=error_message if status == "failed" else None,
                created_at=start + timedelta(minutes=i),
            )
        )
    return records


def make_insight(**overrides) -> Insight:
    """Фабрика Insight с разумными дефолтами."""
    defaults: dict = {
        "id": "flaky-t1",
        "type": InsightType.FLAKY_TEST,
        "severity": Severity.MEDIUM,
        "title": "Flaky Test Detected",
        "description": '"test_login" has inconsistent results',
        "affected_tests": ["test_login"],
        "occurrence_count": 10,
        "recommendation": "Stabilize the test",
    }
    defaults.update(overrides)
    return Insight.model_validate(defaults)
