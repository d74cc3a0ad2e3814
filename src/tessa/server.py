"""HTTP-сервер tessa — REST API для анализа истории прогонов тестов."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from tessa import __version__

logger = logging.getLogger(__name__)


# --- Модели запросов и ответов ---


class InsightsRequest(BaseModel):
    """Тело POST /api/v1/insights."""

    records: list[dict[str, Any]] = Field(default_factory=list)
    max_insights: int | None = Field(default=None, ge=1)
    dismissed_ids: list[str] = Field(default_factory=list)
    flaky_only: bool = True


class FlakinessRequest(BaseModel):
    """Тело POST /api/v1/flakiness."""

    records: list[dict[str, Any]] = Field(default_factory=list)


class AnalysisResponse(BaseModel):
    """JSON-ответ POST /api/v1/insights."""

    total_records: int
    analyzed_records: int
    skipped_records: int
    total_insights: int
    insights: list[dict[str, Any]]
    summary: dict[str, Any]
    flaky_tests: list[dict[str, Any]]
    flaky_stats: dict[str, Any]
    flakiness_trend: list[dict[str, Any]]
    flakiness: dict[str, dict[str, Any]]
    failure_breakdown: dict[str, Any]


class FlakinessResponse(BaseModel):
    """JSON-ответ POST /api/v1/flakiness."""

    tests: dict[str, dict[str, Any]]


class HealthResponse(BaseModel):
    """JSON-ответ GET /health."""

    status: str
    version: str


class ErrorResponse(BaseModel):
    """Стандартный ответ при ошибке."""

    detail: str


# --- Состояние приложения ---


class _AppState:
    """Долгоживущие объекты, разделяемые между запросами."""

    def __init__(self) -> None:
        self.settings: Any = None


_state = _AppState()


def _get_settings() -> Any:
    """Настройки из состояния; при запуске без lifespan — загрузить лениво."""
    if _state.settings is None:
        from tessa.config import Settings

        _state.settings = Settings()
    return _state.settings


# --- Lifespan ---


@asynccontextmanager
async def _lifespan(app: FastAPI):  # noqa: ARG001
    """Инициализация при старте, очистка при остановке."""
    from tessa.config import Settings
    from tessa.logging_config import setup_logging

    settings = Settings()
    setup_logging(settings.log_level)
    _state.settings = settings

    logger.info("tessa server v%s запускается", __version__)

    yield

    logger.info("tessa server останавливается")


# --- FastAPI ---


app = FastAPI(
    title="tessa",
    description="Анализ здоровья тестов — REST API",
    version=__version__,
    lifespan=_lifespan,
)


# --- Маршруты ---


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Проверка работоспособности сервера."""
    return HealthResponse(status="ok", version=__version__)


@app.post(
    "/api/v1/insights",
    response_model=AnalysisResponse,
    responses={
        422: {"model": ErrorResponse, "description": "Некорректный набор записей"},
    },
)
async def insights(request: InsightsRequest) -> dict[str, Any]:
    """Анализ выборки — эквивалент ``tessa <file> --output-format json``.

    Записи, не прошедшие валидацию или без ключа теста, пропускаются;
    их число возвращается в ``skipped_records``.
    """
    from tessa.exceptions import RecordSourceError
    from tessa.orchestrator import analyze_records
    from tessa.services.record_loader import parse_records

    try:
        records = parse_records(request.records, source="request")
    except RecordSourceError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    result = analyze_records(
        records,
        _get_settings(),
        dismissed_ids=request.dismissed_ids,
        max_insights=request.max_insights,
        flaky_only=request.flaky_only,
    )

    response = result.to_dict()
    # Записи, отброшенные ещё на валидации, тоже считаются пропущенными
    response["total_records"] = len(request.records)
    response["skipped_records"] += len(request.records) - len(records)
    return response


@app.post(
    "/api/v1/flakiness",
    response_model=FlakinessResponse,
    responses={
        422: {"model": ErrorResponse, "description": "Некорректный набор записей"},
    },
)
async def flakiness(request: FlakinessRequest) -> dict[str, Any]:
    """Метрики стабильности по каждому тесту, без порога по числу прогонов.

    Как и /api/v1/insights, анализирует не более ``max_records`` самых
    свежих записей.
    """
    from tessa.exceptions import RecordSourceError
    from tessa.orchestrator import apply_window
    from tessa.services.flakiness_service import FlakinessService
    from tessa.services.record_loader import parse_records

    try:
        records = parse_records(request.records, source="request")
    except RecordSourceError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    settings = _get_settings()
    service = FlakinessService(settings.thresholds())
    results = service.compute_flakiness_map(apply_window(records, settings.max_records))
    return {
        "tests": {key: r.model_dump(mode="json") for key, r in results.items()},
    }


def main() -> None:
    """Точка входа консольного скрипта tessa-server."""
    import sys

    from pydantic import ValidationError

    from tessa.config import Settings

    try:
        settings = Settings()
    except ValidationError as exc:
        print(f"Ошибка конфигурации: {exc}", file=sys.stderr)
        sys.exit(2)

    import uvicorn

    uvicorn.run(
        "tessa.server:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
