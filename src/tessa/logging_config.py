"""Логирование tessa: один обработчик на корневом логгере для CLI и сервера.

Логгеры пакета именуются по модулям (``tessa.detectors.performance``,
``tessa.services.insight_service`` и т.д.). Сводка анализа пишется на INFO,
детали отдельных детекторов и пропущенных групп — на DEBUG, невалидные
записи — на WARNING.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Логгеры зависимостей, которые на INFO пишут по строке на каждый HTTP-запрос
_NOISY_LOGGERS = ("uvicorn.access", "httpx")


def setup_logging(level: str = "INFO", *, stream: TextIO | None = None) -> None:
    """Настроить корневой логгер для запуска tessa.

    Повторный вызов заменяет обработчик, а не добавляет второй: CLI и
    lifespan сервера могут вызвать настройку в одном процессе.

    Args:
        level: Имя уровня (DEBUG, INFO, WARNING, ERROR). Неизвестное имя
            заменяется на INFO с предупреждением в лог.
        stream: Куда писать; по умолчанию ``sys.stderr``, чтобы не
            смешивать лог с JSON-отчётом CLI в stdout.
    """
    numeric_level = logging.getLevelName(level.upper())
    unknown_level = not isinstance(numeric_level, int)
    if unknown_level:
        numeric_level = logging.INFO

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    if unknown_level:
        logging.getLogger("tessa").warning("Unknown log level %r, using INFO", level)
