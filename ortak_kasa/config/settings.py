"""
Configuration Management for Ortak Kasa

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage locations, backup cadence and the defaults used when new groups
are created all live in one place and are validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Where the document blob and the backups are written."""

    model_config = SettingsConfigDict(
        env_prefix="ORTAK_KASA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path.home() / ".ortak_kasa",
        description="Directory holding the persisted document blob"
    )
    storage_key: str = Field(
        default="telefon_harcama_gruplari_v1",
        min_length=1,
        description="Well-known key the document is stored under"
    )
    backup_dir: Optional[Path] = Field(
        default=None,
        description="Directory for automatic backups (defaults to <data_dir>/backups)"
    )
    auto_backup_interval_days: int = Field(
        default=7,
        ge=1,
        description="Days that must elapse between two automatic backups"
    )
    export_filename_prefix: str = Field(
        default="harcama_gruplari",
        description="Prefix of exported/backup file names"
    )

    @field_validator('storage_key')
    @classmethod
    def validate_storage_key(cls, v: str) -> str:
        """The key doubles as a file name, so path separators are not allowed."""
        if "/" in v or "\\" in v:
            raise ValueError(f"Storage key must not contain path separators: {v}")
        return v

    @property
    def resolved_backup_dir(self) -> Path:
        """Backup directory with the default applied."""
        return self.backup_dir or self.data_dir / "backups"


class AppSettings(BaseSettings):
    """
    Defaults applied by the ledger engine.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="ORTAK_KASA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    default_group_color: str = Field(
        default="slate",
        description="Palette tag given to newly created groups"
    )
    new_group_name: str = Field(
        default="Yeni Grup",
        description="Name given to newly created groups"
    )
    seed_group_values: str = Field(
        default="150,300",
        description="Comma-separated values of the groups created on first load"
    )

    @property
    def seed_values_list(self) -> list[float]:
        """Get seed group values as a list of numbers."""
        return [float(v) for v in self.seed_group_values.split(",") if v.strip()]


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()
