"""
Configuration Management for Local Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The engine itself has no hidden knobs; everything tunable is listed below
and validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """
    Main ledger settings.

    Loads configuration from LEDGER_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Storage
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the snapshot file"
    )
    snapshot_filename: str = Field(
        default="finance_wise_data_v2.json",
        min_length=1,
        description="Name of the snapshot file inside data_dir"
    )
    save_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a snapshot write is attempted before giving up"
    )

    # Ledger behaviour
    notification_history_limit: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Maximum number of notification entries kept (newest first)"
    )
    currency: str = Field(
        default="INR",
        description="Currency code used for new snapshots"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Log level for the ledger loggers"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (False = human-readable console output)"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Only accept standard logging level names."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @property
    def snapshot_path(self) -> Path:
        """Full path of the snapshot file."""
        return self.data_dir / self.snapshot_filename


@lru_cache()
def get_settings() -> LedgerSettings:
    """
    Get ledger settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return LedgerSettings()
