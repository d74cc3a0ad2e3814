"""Точка входа CLI tessa."""

from __future__ import annotations

import argparse
import logging
import sys

from tessa import __version__
from tessa.utils.numbers import percent

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tessa",
        description="Анализ истории прогонов тестов: flaky-тесты, серии падений, регрессии",
    )
    parser.add_argument(
        "records_file",
        nargs="?",
        help="JSON-файл со списком записей о прогонах",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Уровень логирования (переопределяет TESSA_LOG_LEVEL)",
    )
    parser.add_argument(
        "--output-format",
        choices=["text", "json"],
        default="text",
        help="Формат вывода (по умолчанию: text)",
    )
    parser.add_argument(
        "--max-insights",
        type=int,
        default=None,
        help="Макс. инсайтов в выводе (переопределяет TESSA_MAX_INSIGHTS)",
    )
    parser.add_argument(
        "--all-tests",
        action="store_true",
        help="Показывать в таблице стабильности все тесты, а не только flaky",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"tessa {__version__}",
    )
    return parser


def run(args: argparse.Namespace) -> int:
    """Собрать зависимости и запустить анализ. Возвращает код выхода."""
    # Отложенные импорты: --help не тянет pydantic и numpy
    from pydantic import ValidationError

    from tessa.config import Settings
    from tessa.exceptions import ConfigurationError, TessaError
    from tessa.logging_config import setup_logging
    from tessa.orchestrator import analyze_records
    from tessa.services.record_loader import load_records

    # 1. Загрузка настроек
    try:
        overrides: dict[str, object] = {}
        if args.max_insights is not None:
            overrides["max_insights"] = args.max_insights
        settings = Settings(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        print(f"Ошибка конфигурации: {exc}", file=sys.stderr)
        return 2

    # 2. Настройка логирования
    setup_logging(args.log_level or settings.log_level)

    # 3. Входной файл
    if not args.records_file:
        logger.error("Не указан файл с записями. Использование: tessa <records.json>")
        return 2

    # 4. Анализ
    try:
        records = load_records(args.records_file)
        result = analyze_records(records, settings, flaky_only=not args.all_tests)
    except ConfigurationError as exc:
        logger.error("Ошибка конфигурации: %s", exc)
        return 2
    except TessaError as exc:
        logger.error("Ошибка: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Прервано пользователем")
        return 130

    # 5. Вывод отчёта
    if args.output_format == "json":
        import json

        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        _print_text_report(result)

    return 0


def _print_text_report(result: AnalysisResult) -> None:  # noqa: F821
    """Вывод человекочитаемого отчёта в stdout."""

    print()
    print("=== Отчёт о здоровье тестов ===")
    print(
        f"Записей: {result.total_records}"
        f" | Проанализировано: {result.analyzed_records}"
        f" | Пропущено: {result.skipped_records}"
        f" | Инсайтов: {result.total_insights}"
    )
    print(" | ".join(
        f"{s.value}: {count}" for s, count in result.summary.by_severity.items()
    ))
    print()

    _print_insights(result.insights)
    _print_flaky_tests(result.flaky_tests, result.flaky_stats)
    _print_flakiness_trend(result.flakiness_trend)
    _print_failure_breakdown(result.failure_breakdown)


def _print_insights(insights: list[Insight]) -> None:  # noqa: F821
    """Инсайты — каждый в своей рамке."""
    if not insights:
        print("Проблем не найдено: все тесты стабильны.")
        print()
        return

    for i, insight in enumerate(insights, 1):
        lines = [
            f"#{i} [{insight.severity.value.upper()}] {insight.title}",
            _normalize_single_line(insight.description),
        ]
        if insight.pattern:
            pattern = _normalize_single_line(insight.pattern)
            if len(pattern) > 120:
                pattern = pattern[:117] + "..."
            lines.append(f"Пример: {pattern}")
        lines.append(f"Тесты: {', '.join(insight.affected_tests)}")
        lines.append(f"-> {insight.recommendation}")

        for line in _render_box(lines):
            print(line)
        print()


def _print_flaky_tests(
    reports: list[FlakyTestReport],  # noqa: F821
    stats: FlakyTestStats,  # noqa: F821
) -> None:
    """Таблица стабильности тестов со сводкой по flaky score."""
    if not reports:
        return

    print(f"=== Стабильность тестов ({len(reports)}) ===")
    if stats.total:
        print(
            f"  flaky: {stats.total}"
            f" | high: {stats.high} | medium: {stats.medium} | low: {stats.low}"
            f" | avg score: {percent(stats.avg_score)}%"
        )
    for report in reports:
        flakiness = report.flakiness
        recent = "".join("." if passed else "F" for passed in report.recent_results)
        print(
            f"  {report.name}: pass {percent(flakiness.pass_rate)}%"
            f" | runs {flakiness.total_runs}"
            f" | trend {flakiness.trend.value}"
            f" | recent {recent}"
        )
        if report.suggested_fix:
            print(f"            {report.suggested_fix}")
    print()


def _print_flakiness_trend(points: list[FlakinessTrendPoint]) -> None:  # noqa: F821
    """Недельная динамика flaky/починенных тестов (если есть хоть одна ненулевая неделя)."""
    if not any(p.flaky or p.fixed for p in points):
        return

    print("=== Динамика по неделям ===")
    for point in points:
        print(f"  {point.label:<7} flaky: {point.flaky:>3} | fixed: {point.fixed:>3}")
    print()


def _print_failure_breakdown(breakdown: FailureBreakdown) -> None:  # noqa: F821
    """Разбивка падений по категориям."""
    if not breakdown.total_failures:
        return

    print(f"=== Падения по категориям ({breakdown.total_failures}) ===")
    for stats in breakdown.categories:
        print(
            f"  {stats.category.value:<10} {stats.count:>4} ({stats.percentage}%)"
            f" | тестов: {stats.affected_test_count}"
        )
    print()


def _normalize_single_line(value: str) -> str:
    """Схлопнуть переводы строк/табуляцию в одну строку для рамочного вывода."""
    return " ".join(value.replace("\t", " ").split())


def _render_box(lines: list[str]) -> list[str]:
    """Отрендерить список строк в Unicode-рамку."""
    if not lines:
        return []

    width = max(len(line) for line in lines)
    top = f"╔{'═' * (width + 2)}╗"
    bottom = f"╚{'═' * (width + 2)}╝"
    body = [f"║ {line.ljust(width)} ║" for line in lines]

    return [top, *body, bottom]


def main() -> None:
    """Синхронная точка входа для CLI."""
    parser = build_parser()
    args = parser.parse_args()
    sys.exit(run(args))


if __name__ == "__main__":
    main()
