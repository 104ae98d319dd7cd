"""
Configuration settings for exam-vocab-boost.

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
        env_prefix="EVB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".exam-vocab-boost",
        description="Directory holding the local state database",
    )
    catalog_dir: Path | None = Field(
        default=None,
        description="Content catalog directory (None uses the packaged seed data)",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Drill Sessions
    # ========================================
    items_per_session: int = Field(
        default=20,
        description="Items presented in one drill session",
    )
    drill_duration_seconds: int = Field(
        default=600,
        description="Time box for one drill session (10 minutes)",
    )
    diagnostic_usage_items: int = Field(
        default=15,
        description="Usage items asked during the diagnostic",
    )
    progress_history_limit: int = Field(
        default=30,
        ge=1,
        description="Per-category accuracy points kept in progress history",
    )

    # ========================================
    # Adaptive Selection
    # ========================================
    diagnostic_weight: float = Field(
        default=0.3,
        description="Weight of the diagnostic in combined weakness",
    )
    session_weight: float = Field(
        default=0.7,
        description="Weight of recent drill sessions in combined weakness",
    )
    selection_jitter: float = Field(
        default=0.3,
        description="Upper bound of the random jitter added to item weights",
    )
    category_cap_divisor: int = Field(
        default=3,
        description="Per-category cap is ceil(count / divisor)",
    )
    recent_window: int = Field(
        default=5,
        description="Sessions listed as recent and fed to adaptive drills",
    )
    readiness_window: int = Field(
        default=10,
        description="Sessions used for readiness and top weaknesses",
    )

    # ========================================
    # Paywall
    # ========================================
    free_drill_sessions: int = Field(
        default=1,
        description="Drill sessions available on the free tier",
    )

    # ========================================
    # Cloud Sync
    # ========================================
    sync_base_url: str = Field(
        default="http://127.0.0.1:3000",
        description="Base URL of the sync API (push/pull endpoints)",
    )
    sync_timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout for sync requests",
    )

    # ========================================
    # Helper Methods
    # ========================================
    @property
    def state_db_path(self) -> Path:
        """Location of the SQLite state database."""
        return self.data_dir / "state.db"

    def selector_config(self):
        """Build the item selector configuration from these settings."""
        from src.adaptive.selector import SelectorConfig

        return SelectorConfig(
            jitter=self.selection_jitter,
            category_cap_divisor=self.category_cap_divisor,
            diagnostic_weight=self.diagnostic_weight,
            session_weight=self.session_weight,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
