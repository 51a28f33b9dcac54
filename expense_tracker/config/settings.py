"""
Configuration Management for Personal Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Both processes (the record service and the client) read their own
settings group, so one .env file can configure a whole local setup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """Remote record service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_SERVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    host: str = Field(
        default="127.0.0.1",
        description="Interface the service binds to"
    )
    port: int = Field(
        default=3001,
        ge=1,
        le=65535,
        description="Port the service listens on"
    )
    data_dir: str = Field(
        default="./data",
        description="Directory holding the backing file (created on demand)"
    )
    data_file: str = Field(
        default="expenses.json",
        description="Name of the JSON backing file"
    )
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )
    write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts made to rewrite the backing file before giving up"
    )

    @property
    def data_path(self) -> Path:
        """Full path of the backing file."""
        return Path(self.data_dir) / self.data_file

    @property
    def cors_origins_list(self) -> list[str]:
        """Get allowed origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


class ClientSettings(BaseSettings):
    """Client-side (local store + sync) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_CLIENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_base: str = Field(
        default="http://localhost:3001",
        description="Base URL of the remote record service"
    )
    probe_interval_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Seconds between connectivity probes"
    )
    probe_timeout_seconds: float = Field(
        default=3.0,
        gt=0,
        description="Timeout for a single reachability probe"
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for CRUD requests to the record service"
    )
    offline_after_failures: int = Field(
        default=2,
        ge=1,
        le=20,
        description="Consecutive probe failures before the online signal drops"
    )
    local_db_url: str = Field(
        default="sqlite:///./data/local_store.db",
        description="SQLAlchemy URL of the local record store"
    )

    @field_validator('api_base')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Paths are joined as f"{api_base}/expenses"."""
        return v.rstrip("/")


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

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON lines instead of console output"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


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
    def server(self) -> ServerSettings:
        return ServerSettings()

    @property
    def client(self) -> ClientSettings:
        return ClientSettings()

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

    Returns a dict of {setting_name: is_valid}, plus
    "<name>_error" entries describing what failed.
    """
    results = {}
    settings = get_settings()

    for name in ("server", "client", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
