# ai_visibility/core/config.py
from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings, loaded from environment variables and/or .env file.
    """

    # Environment settings
    APP_NAME: str = "AI Visibility Report Engine"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # AI platform API keys (empty means "not configured")
    OPENAI_API_KEY: str = Field(default="", repr=False)
    ANTHROPIC_API_KEY: str = Field(default="", repr=False)
    GOOGLE_AI_API_KEY: str = Field(default="", repr=False)
    PERPLEXITY_API_KEY: str = Field(default="", repr=False)

    # Optional per-platform overrides of the static defaults
    OPENAI_MODEL: Optional[str] = None
    ANTHROPIC_MODEL: Optional[str] = None
    GOOGLE_AI_MODEL: Optional[str] = None
    PERPLEXITY_MODEL: Optional[str] = None
    OPENAI_BASE_URL: Optional[str] = None
    ANTHROPIC_BASE_URL: Optional[str] = None
    GOOGLE_AI_BASE_URL: Optional[str] = None
    PERPLEXITY_BASE_URL: Optional[str] = None
    OPENAI_TIMEOUT: Optional[float] = None
    ANTHROPIC_TIMEOUT: Optional[float] = None
    GOOGLE_AI_TIMEOUT: Optional[float] = None
    PERPLEXITY_TIMEOUT: Optional[float] = None

    # Report generation settings
    REPORT_DEFAULT_QUERY_COUNT: int = Field(
        default=10, description="Queries generated per report when not specified"
    )
    REPORT_INTER_QUERY_DELAY_SECONDS: float = Field(
        default=1.0, description="Pause between consecutive queries"
    )
    REPORT_PROVIDER_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Deadline for a single provider call when the platform sets none",
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("REPORT_DEFAULT_QUERY_COUNT")
    @classmethod
    def _positive_query_count(cls, value: int) -> int:
        if value < 1:
            raise ValueError("REPORT_DEFAULT_QUERY_COUNT must be at least 1")
        return value

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() in ("development", "dev", "local", "test")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


settings = Settings()
