"""Pydantic-модель входной записи о выполнении теста."""

from __future__ import annotations

import math
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tessa.models.common import TestStatus
from tessa.utils.numbers import round_half_up


class TestExecutionRecord(BaseModel):
    """Один прогон одного теста.

    Принимает и snake_case, и camelCase ключи (``testId``, ``durationMs``,
    ``errorMessage``, ``createdAt``). Модель неизменяема: движок анализа
    никогда не модифицирует входные записи.

    Некорректные ``duration_ms`` / ``error_message`` не приводят к ошибке
    валидации — поле просто считается отсутствующим. Дробная длительность
    (число или строка) округляется до целых миллисекунд.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    test_id: str | None = Field(None, alias="testId")
    name: str | None = None
    status: TestStatus
    duration_ms: int | None = Field(None, alias="durationMs")
    error_message: str | None = Field(None, alias="errorMessage")
    created_at: datetime = Field(alias="createdAt")

    @field_validator("status", mode="before")
    @classmethod
    def _lowercase_status(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("duration_ms", mode="before")
    @classmethod
    def _coerce_duration(cls, value: object) -> int | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            duration = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError, OverflowError):
            return None
        if not math.isfinite(duration) or duration < 0:
            return None
        return round_half_up(duration)

    @field_validator("error_message", mode="before")
    @classmethod
    def _coerce_error_message(cls, value: object) -> str | None:
        return value if isinstance(value, str) else None

    @field_validator("created_at")
    @classmethod
    def _ensure_timezone(cls, value: datetime) -> datetime:
        # naive считаем UTC: при сортировке naive и aware несравнимы
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_failed(self) -> bool:
        return self.status == TestStatus.FAILED

    @property
    def is_passed(self) -> bool:
        return self.status == TestStatus.PASSED
