"""Конфигурация приложения, загружаемая из переменных окружения."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tessa.detectors.base import InsightThresholds


class Settings(BaseSettings):
    """Конфигурация приложения tessa.

    Все значения задаются через переменные окружения с префиксом ``TESSA_``
    или через файл ``.env`` в рабочей директории. Обязательных полей нет.
    """

    model_config = SettingsConfigDict(
        env_prefix="TESSA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Уровень логирования")

    server_host: str = Field(default="0.0.0.0", description="Хост для HTTP-сервера")
    server_port: int = Field(default=8091, ge=1, le=65535, description="Порт для HTTP-сервера")

    max_records: int = Field(
        default=500, ge=1,
        description="Окно анализа: сколько самых свежих записей брать из входа",
    )
    max_insights: int = Field(default=10, ge=1, description="Макс. инсайтов в выводе")

    flaky_rate_threshold: float = Field(
        default=0.20, gt=0.0, le=1.0,
        description="Мин. доля и прохождений, и падений, чтобы тест считался flaky",
    )
    flaky_min_runs: int = Field(default=3, ge=1, description="Мин. прогонов для оценки flakiness")
    repeated_failure_min_streak: int = Field(
        default=3, ge=1,
        description="Мин. длина серии падений подряд для инсайта repeated_failure",
    )
    regression_min_increase_percent: float = Field(
        default=50.0, ge=0.0,
        description="Мин. рост средней длительности (%) для инсайта performance_regression",
    )
    regression_min_recent_ms: float = Field(
        default=1000.0, ge=0.0,
        description="Мин. средняя длительность свежих прогонов (мс) для performance_regression",
    )

    def thresholds(self) -> InsightThresholds:
        """Пороги детекторов с учётом переопределений из окружения."""
        return InsightThresholds(
            flaky_rate_threshold=self.flaky_rate_threshold,
            flaky_min_runs=self.flaky_min_runs,
            repeated_min_streak=self.repeated_failure_min_streak,
            regression_min_increase_percent=self.regression_min_increase_percent,
            regression_min_recent_ms=self.regression_min_recent_ms,
        )
