"""Загрузка записей о прогонах из JSON-файла или уже декодированного payload."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from tessa.exceptions import RecordSourceError
from tessa.models.records import TestExecutionRecord

logger = logging.getLogger(__name__)


def parse_records(payload: Any, *, source: str = "payload") -> list[TestExecutionRecord]:
    """Провалидировать записи из списка или объекта ``{"records": [...]}``.

    Записи, не прошедшие валидацию, пропускаются с предупреждением —
    одна битая запись не должна срывать анализ всей выборки.

    Raises:
        RecordSourceError: Верхний уровень payload не список и не объект
            с ключом ``records``.
    """
    if isinstance(payload, dict):
        payload = payload.get("records")
    if not isinstance(payload, list):
        raise RecordSourceError(
            source,
            "expected a JSON list of records or an object with a 'records' list",
        )

    records: list[TestExecutionRecord] = []
    for index, item in enumerate(payload):
        try:
            records.append(TestExecutionRecord.model_validate(item))
        except ValidationError as exc:
            logger.warning(
                "Skipping record #%d from %s: %d validation error(s): %s",
                index,
                source,
                exc.error_count(),
                exc.errors()[0]["msg"],
            )

    logger.info("Loaded %d of %d records from %s", len(records), len(payload), source)
    return records


def load_records(path: str | Path) -> list[TestExecutionRecord]:
    """Прочитать JSON-файл с записями о прогонах.

    Raises:
        RecordSourceError: Файл не читается, не является JSON
            или имеет неожиданную структуру.
    """
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RecordSourceError(str(path), f"cannot read file: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise RecordSourceError(str(path), f"invalid JSON: {exc}") from exc
    return parse_records(payload, source=str(path))
