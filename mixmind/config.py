"""
Configuration settings for the MixMind learning scheduler.

Uses Pydantic Settings for environment variable management with .env file support.
All variables carry the MIXMIND_ prefix (e.g. MIXMIND_BANDIT_EPSILON=0.2).
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MIXMIND_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    database_url: str = Field(
        default="sqlite+aiosqlite:///data/mixmind.db",
        description="SQLAlchemy async connection string for progress and bandit state",
    )
    catalog_path: str | None = Field(
        default=None,
        description="JSON content catalog (bundled seed catalog when unset)",
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

    # ========================================
    # Session Planning
    # ========================================
    session_minutes: float = Field(
        default=5.0,
        description="Default target session length in minutes",
    )
    recent_review_days: int = Field(
        default=7,
        description="Due items overdue by at most this many days count as recent reviews",
    )
    older_review_days: int = Field(
        default=14,
        description="Due items overdue by more than this are dropped from planning",
    )

    # ========================================
    # Exercise-Type Bandit
    # ========================================
    bandit_epsilon: float = Field(
        default=0.1,
        description="Exploration probability for new users",
    )
    reward_optimal_ms: int = Field(
        default=5000,
        description="Response time earning full time-efficiency reward",
    )
    reward_max_ms: int = Field(
        default=30000,
        description="Response time at which time-efficiency reward reaches zero",
    )

    # ========================================
    # Difficulty Adaptation
    # ========================================
    target_success_rate: float = Field(
        default=0.8,
        description="Success rate used when recommending item difficulty",
    )

    def get_scheduler_config(self) -> dict[str, Any]:
        """Get session scheduling configuration as a dictionary."""
        return {
            "session_minutes": self.session_minutes,
            "epsilon": self.bandit_epsilon,
            "recent_review_days": self.recent_review_days,
            "older_review_days": self.older_review_days,
            "reward_optimal_ms": self.reward_optimal_ms,
            "reward_max_ms": self.reward_max_ms,
            "target_success_rate": self.target_success_rate,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
