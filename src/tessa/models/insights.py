"""Pydantic-модели результатов анализа: инсайты, flakiness, сводки."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tessa.models.common import (
    FailureCategory,
    FlakinessTrend,
    InsightType,
    Severity,
)


class ErrorPatternFlags(BaseModel):
    """Признаки, найденные в тексте ошибки. Флаги независимы друг от друга."""

    model_config = ConfigDict(frozen=True)

    selector_issue: bool = False
    timeout: bool = False
    not_found: bool = False
    network_error: bool = False
    assertion_error: bool = False


class Insight(BaseModel):
    """Найденная закономерность — одна карточка для ревьюера.

    ``id`` детерминирован (тип + ключ теста): повторная генерация по тем же
    данным даёт те же ID, что позволяет скрывать инсайты и сравнивать списки.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: InsightType
    severity: Severity
    title: str
    description: str
    affected_tests: list[str] = Field(min_length=1)
    pattern: str | None = Field(None, max_length=200)
    occurrence_count: int = Field(gt=0)
    recommendation: str
    actionable: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)


class FlakinessResult(BaseModel):
    """Метрики стабильности одного теста."""

    model_config = ConfigDict(frozen=True)

    pass_rate: float = Field(ge=0.0, le=1.0)
    fail_rate: float = Field(ge=0.0, le=1.0)
    total_runs: int = Field(ge=0)
    passed_count: int = 0
    failed_count: int = 0
    is_flaky: bool = False
    trend: FlakinessTrend = FlakinessTrend.STABLE


class RootCause(BaseModel):
    """Предполагаемая причина нестабильности теста."""

    type: str
    description: str
    confidence: float = Field(ge=0.0, le=1.0)


class FlakyTestReport(BaseModel):
    """Расширенная карточка теста для страницы flaky-тестов."""

    test_key: str
    name: str
    flakiness: FlakinessResult
    flakiness_score: float
    avg_duration_ms: float | None = None
    recent_results: list[bool] = Field(default_factory=list)
    last_run: datetime | None = None
    root_causes: list[RootCause] = Field(default_factory=list)
    suggested_fix: str | None = None


class InsightSummary(BaseModel):
    """Счётчики инсайтов по типам и severity."""

    total: int = 0
    by_type: dict[InsightType, int] = Field(default_factory=dict)
    by_severity: dict[Severity, int] = Field(default_factory=dict)


class FailureCategoryStats(BaseModel):
    """Одна строка разбивки падений по категориям."""

    category: FailureCategory
    count: int
    percentage: int
    affected_tests: list[str] = Field(default_factory=list)

    @property
    def affected_test_count(self) -> int:
        return len(self.affected_tests)


class FailureBreakdown(BaseModel):
    """Разбивка всех падений выборки по категориям ошибок."""

    total_failures: int = 0
    categories: list[FailureCategoryStats] = Field(default_factory=list)


class FlakyTestStats(BaseModel):
    """Сводка по flaky-тестам: корзины по flakiness score и средний score."""

    total: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    avg_score: float = 0.0


class FlakinessTrendPoint(BaseModel):
    """Одна неделя динамики: сколько тестов были flaky и сколько починены."""

    week_start: datetime
    week_end: datetime
    label: str
    flaky: int = 0
    fixed: int = 0
