"""
CaseCast Configuration.

Pydantic Settings v2 — loads from .env, environment variables.
"""

from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORPUS_PATH = str(Path(__file__).parent / "data" / "scenario_corpus.json")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────────────
    app_name: str = "CaseCast"
    app_version: str = "1.0.0"
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    # ── API ───────────────────────────────────────────────────────────────
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8010, alias="API_PORT")
    api_prefix: str = "/api/v1"
    allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        alias="CORS_ORIGINS",
    )

    # ── Logging ──────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="console", alias="LOG_FORMAT")

    # ── Trend Store ──────────────────────────────────────────────────────
    trend_store_backend: str = Field(
        default="file", alias="TREND_STORE_BACKEND",
        description="file | memory | sql",
    )
    trend_store_path: str = Field(default="tmp/risk-trends.json", alias="TREND_STORE_PATH")
    database_url: str = Field(
        default="sqlite:///./casecast.db",
        alias="DATABASE_URL",
    )

    # Trend windows
    trend_spike_window_hours: int = Field(default=24, alias="TREND_SPIKE_WINDOW_HOURS")
    trend_spike_threshold: int = Field(default=3, alias="TREND_SPIKE_THRESHOLD")
    trend_cumulative_threshold: int = Field(default=6, alias="TREND_CUMULATIVE_THRESHOLD")

    # ── External Generator (LLM) ─────────────────────────────────────────
    external_generator_enabled: bool = Field(default=True, alias="EXTERNAL_GENERATOR_ENABLED")
    anthropic_api_key: str = Field(default="", alias="ANTHROPIC_API_KEY")
    llm_model: str = Field(default="claude-haiku-4-5-20251001", alias="LLM_MODEL")
    llm_max_tokens: int = Field(default=1200, alias="LLM_MAX_TOKENS")
    external_generator_timeout_seconds: float = Field(
        default=8.0, alias="EXTERNAL_GENERATOR_TIMEOUT_SECONDS",
    )
    generator_failure_threshold: int = Field(default=3, alias="GENERATOR_FAILURE_THRESHOLD")
    generator_recovery_seconds: float = Field(default=60.0, alias="GENERATOR_RECOVERY_SECONDS")

    # ── Recommendations ──────────────────────────────────────────────────
    scenario_corpus_path: str = Field(default=DEFAULT_CORPUS_PATH, alias="SCENARIO_CORPUS_PATH")

    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses an async driver."""
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("sqlite://"):
            url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return url


settings = Settings()
