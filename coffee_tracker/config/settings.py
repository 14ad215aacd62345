"""
Configuration Management for Coffee Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage classes never read the environment themselves; the factory
builds explicit config objects from these settings and passes them in.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from coffee_tracker.services.storage.github_contents import (
    GITHUB_API_URL,
    RemoteStoreConfig,
)


class CsvStoreSettings(BaseSettings):
    """Local CSV file storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="COFFEE_CSV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    path: Path = Field(
        default=Path("data") / "coffee-expenses.csv",
        description="Path of the CSV file holding all expenses"
    )


class GitHubSettings(BaseSettings):
    """Remote snapshot storage configuration (GitHub contents API)."""

    model_config = SettingsConfigDict(
        env_prefix="GITHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    token: SecretStr = Field(
        ...,
        description="GitHub token with contents read/write permission"
    )
    owner: str = Field(
        ...,
        min_length=1,
        description="Repository owner"
    )
    repo: str = Field(
        ...,
        min_length=1,
        description="Repository name"
    )
    path: str = Field(
        default="data/coffee-expenses.json",
        description="Path of the JSON file inside the repository"
    )
    branch: Optional[str] = Field(
        default=None,
        description="Branch to commit to (repository default if unset)"
    )
    api_url: str = Field(
        default=GITHUB_API_URL,
        description="API base URL (override for GitHub Enterprise)"
    )

    def to_store_config(self) -> RemoteStoreConfig:
        """Build the explicit config object the remote store takes."""
        return RemoteStoreConfig(
            owner=self.owner,
            repo=self.repo,
            path=self.path,
            credential=self.token,
            branch=self.branch,
            api_url=self.api_url,
        )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    storage_backend: Literal["csv", "github"] = Field(
        default="csv",
        description="Which storage backend to use"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Log level for structured logs"
    )

    @field_validator("storage_backend", mode="before")
    @classmethod
    def normalize_backend(cls, v: str) -> str:
        return v.strip().lower() if isinstance(v, str) else v

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_mode else self.log_level.upper()


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

    # Note: These are loaded lazily so the CSV backend works without GitHub settings

    @property
    def csv_store(self) -> CsvStoreSettings:
        return CsvStoreSettings()

    @property
    def github(self) -> GitHubSettings:
        return GitHubSettings()

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


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with "<name>_error"
    entries for the ones that failed. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("app", "csv_store", "github"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
