"""Application configuration via environment variables.

All settings are loaded from environment variables (or .env file) using
Pydantic BaseSettings. Game timing, scoring thresholds and submission
limits are tunables here, never literals in the services.
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_VERSION = "0.1.0"


class Settings(BaseSettings):
    """Central configuration for the verdict game service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- API ---
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_prefix: str = "/api"
    debug: bool = False

    # --- Redis ---
    redis_url: str = "redis://localhost:6379/0"

    # --- Hosting platform ---
    platform_api_url: str = "http://localhost:9000"
    platform_api_token: str = ""
    platform_timeout_seconds: float = 10.0

    # --- Case timing ---
    case_open_minutes: int = Field(default=4, ge=1)
    reveal_delay_minutes: int = Field(default=1, ge=0)
    cycle_minutes: int = Field(default=5, ge=1)
    # Shorter than the open window; several snapshots land inside each case.
    snapshot_interval_minutes: int = Field(default=1, ge=1)
    timezone: str = "UTC"
    reveal_scan_limit: int = 200

    # --- Scoring ---
    influence_threshold_pct: float = 3.0

    # --- Submissions ---
    min_submission_length: int = 30
    max_submission_length: int = 600
    max_submissions_per_day: int = 3
    max_label_length: int = 30

    # --- Minigame ---
    minigame_score_cap: int = 9999

    # --- Leaderboards / archive ---
    leaderboard_size: int = 10
    weekly_leaderboard_size: int = 15
    archive_default_rounds: int = 24
    archive_max_rounds: int = 100

    # --- Scheduler ---
    scheduler_enabled: bool = False
    scheduler_communities: list[str] = Field(default_factory=list)
    scheduler_tick_seconds: int = Field(default=30, ge=1)
    internal_api_token: str = ""

    # --- Logging ---
    log_level: str = "INFO"
    log_format: str = "json"

    @model_validator(mode="after")
    def _check_snapshot_cadence(self) -> Settings:
        if self.snapshot_interval_minutes >= self.case_open_minutes:
            msg = (
                f"snapshot_interval_minutes ({self.snapshot_interval_minutes}) must be shorter "
                f"than case_open_minutes ({self.case_open_minutes})"
            )
            raise ValueError(msg)
        return self

    @property
    def open_window_ms(self) -> int:
        return self.case_open_minutes * 60_000

    @property
    def reveal_delay_ms(self) -> int:
        return self.reveal_delay_minutes * 60_000
