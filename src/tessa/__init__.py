"""tessa — анализ здоровья тестов: flaky-тесты, повторяющиеся падения, регрессии."""

__version__ = "0.1.0"
