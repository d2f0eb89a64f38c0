"""
Configuration Management for Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every setting can be overridden with an EXPENSE_TRACKER_* environment
variable or a line in the local .env file.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """
    Main ledger settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Storage
    storage_backend: str = Field(
        default="json_file",
        pattern="^(memory|json_file)$",
        description="Key-value storage backend for the ledger"
    )
    data_dir: Path = Field(
        default=Path.home() / ".expense_tracker",
        description="Directory holding the persisted ledger keys"
    )
    save_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a failed file write is attempted"
    )

    # Backup export
    export_dir: Path = Field(
        default=Path.home() / ".expense_tracker" / "exports",
        description="Where backup documents are written"
    )
    backup_filename_prefix: str = Field(
        default="ExpenseTracker",
        min_length=1,
        description="Prefix of exported backup file names"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum log level for structured logs"
    )
    json_logs: bool = Field(
        default=True,
        description="Render logs as JSON (False renders for a console)"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache()
def get_settings() -> LedgerSettings:
    """
    Get ledger settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return LedgerSettings()
