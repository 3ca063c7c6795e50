"""
Configuration settings for studypace.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
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
    # Storage
    # ========================================
    state_db_path: Path = Field(
        default=Path.home() / ".studypace" / "state.db",
        description="SQLite file holding sessions, observations and review log",
    )

    # ========================================
    # Review Scheduling
    # ========================================
    review_initial_delay_hours: float = Field(
        default=2.0,
        gt=0,
        description="Delay between logging a session and its first review",
    )
    retention_stability_reviewed_days: float = Field(
        default=14.0,
        gt=0,
        description="Forgetting-curve stability for sessions reviewed at least once",
    )
    retention_stability_unreviewed_days: float = Field(
        default=4.0,
        gt=0,
        description="Forgetting-curve stability for never-reviewed sessions",
    )

    # ========================================
    # Performance Prediction
    # ========================================
    effort_subintervals: int = Field(
        default=2000,
        ge=2000,
        description="Trapezoidal subintervals for the effort index",
    )
    burden_subintervals: int = Field(
        default=50,
        ge=50,
        description="Trapezoidal subintervals for the mental burden arc length",
    )
    default_target_delta: float = Field(
        default=10.0,
        description="Target additional score (h3) when the caller gives none",
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
