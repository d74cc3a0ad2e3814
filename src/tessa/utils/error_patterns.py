"""Эвристическая классификация текста ошибки по ключевым словам.

Поиск подстрок без учёта регистра, без regex.
Таблицы ключевых слов — единственный источник правды для классификации.
"""

from __future__ import annotations

from tessa.models.common import FailureCategory
from tessa.models.insights import ErrorPatternFlags

SELECTOR_KEYWORDS: tuple[str, ...] = (
    "selector",
    "locator",
    "element",
    "xpath",
    "css selector",
)
TIMEOUT_KEYWORDS: tuple[str, ...] = ("timeout", "timed out", "exceeded")
NOT_FOUND_KEYWORDS: tuple[str, ...] = (
    "not found",
    "could not find",
    "unable to locate",
    "no such element",
)
NETWORK_KEYWORDS: tuple[str, ...] = ("network", "fetch", "connection", "econnrefused")
ASSERTION_KEYWORDS: tuple[str, ...] = ("assertion", "expect", "assert", "should")

# Разбивка по категориям: первая совпавшая категория побеждает
_CATEGORY_KEYWORDS: tuple[tuple[FailureCategory, tuple[str, ...]], ...] = (
    (FailureCategory.TIMEOUT, ("timeout", "timed out")),
    (FailureCategory.ELEMENT, ("element", "selector", "not found")),
    (FailureCategory.NETWORK, ("network", "fetch", "connection")),
    (FailureCategory.ASSERTION, ("assert", "expect", "should")),
    (FailureCategory.AUTH, ("auth", "login", "permission", "unauthorized")),
)


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def classify_error(error_message: str | None) -> ErrorPatternFlags:
    """Выставить флаги категорий для текста ошибки.

    Пустой или отсутствующий текст даёт все флаги ``False``.
    """
    if not error_message:
        return ErrorPatternFlags()

    text = error_message.lower()
    return ErrorPatternFlags(
        selector_issue=_contains_any(text, SELECTOR_KEYWORDS),
        timeout=_contains_any(text, TIMEOUT_KEYWORDS),
        not_found=_contains_any(text, NOT_FOUND_KEYWORDS),
        network_error=_contains_any(text, NETWORK_KEYWORDS),
        assertion_error=_contains_any(text, ASSERTION_KEYWORDS),
    )


def categorize_failure(error_message: str | None) -> FailureCategory:
    """Отнести падение ровно к одной категории (timeout > element > ... > other)."""
    text = (error_message or "").lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if _contains_any(text, keywords):
            return category
    return FailureCategory.OTHER


def truncate_pattern(text: str | None, max_length: int = 200) -> str | None:
    """Обрезать пример ошибки до ``max_length`` символов. Пустая строка → None."""
    if not text:
        return None
    return text[:max_length]
