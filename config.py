"""
Configuration settings for the nuquiz core.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///nuquiz.db",
        description="SQLAlchemy connection string (PostgreSQL in production)",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements to the log",
    )

    # ========================================
    # Quiz Generation
    # ========================================
    quiz_default_question_count: int = Field(
        default=10,
        ge=1,
        description="Questions per session when the caller does not specify",
    )
    quiz_num_distractors: int = Field(
        default=4,
        ge=0,
        description="num_distractors passed to the question generator",
    )
    quiz_seed_multiplier: int = Field(
        default=1000,
        ge=1,
        description="Per-question seed = session_id * multiplier + question index",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
