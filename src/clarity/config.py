"""Centralized configuration management for the Clarity Finance backend.

This module provides a Pydantic Settings-based configuration system that
consolidates provider credentials, server options, storage selection and rate
limits, with environment variable integration and validation.

Environment variables are loaded with the CLARITY_ prefix. For nested configs,
use double underscores: CLARITY_SERVER__PORT=8080. The variable names used by
the original Express/Vite deployment (PLAID_CLIENT_ID, VITE_SUPABASE_URL,
TEST_MODE, ...) are honored as well.
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

DEFAULT_DEV_ORIGINS: tuple[str, ...] = (
    "http://localhost:5173",
    "http://localhost:5174",
    "http://localhost:5175",
    "http://localhost:5176",
)


class PlaidConfig(BaseModel):
    """Plaid API configuration (server-side only)."""

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(default="", description="Plaid client ID")
    secret: str = Field(default="", description="Plaid secret key")
    environment: Literal["sandbox", "development", "production"] = Field(
        default="sandbox", description="Plaid environment"
    )
    client_name: str = Field(
        default="Clarity Finance", description="Name shown in the Plaid Link UI"
    )
    products: tuple[str, ...] = Field(default=("transactions",))
    country_codes: tuple[str, ...] = Field(default=("US",))
    language: str = Field(default="en")


class SupabaseConfig(BaseModel):
    """Supabase project configuration used for auth and persistence."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(default="", description="Supabase project URL")
    anon_key: str = Field(default="", description="Supabase anon (public) key")
    service_role_key: str | None = Field(
        default=None, description="Service role key used for writes when present"
    )
    table: str = Field(default="transactions", description="Transactions table")


class StorageConfig(BaseModel):
    """Selects where transactions are persisted."""

    model_config = ConfigDict(frozen=True)

    backend: Literal["supabase", "duckdb"] = Field(
        default="supabase", description="Persistence backend"
    )
    duckdb_path: Path = Field(
        default=Path("data/duckdb/clarity.duckdb"),
        description="Path to the local DuckDB database file",
    )

    @field_validator("duckdb_path")
    @classmethod
    def validate_database_path(cls, v: Path) -> Path:
        """Ensure database path has correct extension."""
        if not str(v).endswith((".db", ".duckdb")):
            raise ValueError("Database path must end with .db or .duckdb")
        return v


class RateLimitRule(BaseModel):
    """A single sliding-window limit: at most ``max_requests`` per ``window_seconds``."""

    model_config = ConfigDict(frozen=True)

    max_requests: int = Field(..., ge=1)
    window_seconds: int = Field(..., ge=1)


class RateLimitConfig(BaseModel):
    """Rate limit rules, one per endpoint class."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=True)
    global_limit: RateLimitRule = Field(
        default=RateLimitRule(max_requests=100, window_seconds=15 * 60)
    )
    auth_limit: RateLimitRule = Field(
        default=RateLimitRule(max_requests=5, window_seconds=15 * 60)
    )
    plaid_limit: RateLimitRule = Field(
        default=RateLimitRule(max_requests=10, window_seconds=60)
    )
    db_limit: RateLimitRule = Field(
        default=RateLimitRule(max_requests=5, window_seconds=60)
    )
    slow_down_after: int = Field(
        default=50, ge=1, description="Requests per global window before delaying"
    )
    slow_down_delay_ms: int = Field(default=500, ge=0)
    slow_down_max_delay_ms: int = Field(default=5000, ge=0)


class ServerConfig(BaseModel):
    """HTTP server settings."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(default="0.0.0.0")  # noqa: S104
    port: int = Field(default=3001, ge=1, le=65535)
    environment: Literal["development", "production"] = Field(
        default="development", description="Deployment environment"
    )
    frontend_url: str | None = Field(
        default=None, description="Allowed frontend origin in production"
    )
    cors_origins: tuple[str, ...] = Field(default=DEFAULT_DEV_ORIGINS)
    cors_origin_regex: str | None = Field(default=None)
    static_dir: Path | None = Field(
        default=None, description="Built frontend directory to serve, if any"
    )
    max_save_transactions: int = Field(
        default=1000, ge=1, description="Largest accepted save-transactions batch"
    )
    test_mode: bool = Field(
        default=False, description="Bypass token validation with a fixed identity"
    )
    test_user_id: str | None = Field(default=None)

    @property
    def is_production(self) -> bool:
        """Whether the server runs in production."""
        return self.environment == "production"

    def allowed_origins(self) -> list[str]:
        """Origins accepted by CORS for the current environment."""
        if self.is_production:
            return [self.frontend_url] if self.frontend_url else []
        return list(self.cors_origins)


class LoggingConfig(BaseModel):
    """Log level and optional rotating log file."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_to_file: bool = Field(default=False, description="Enable file logging")
    log_file_path: Path = Field(
        default=Path("logs/clarity.log"), description="Path to log file"
    )
    max_file_size_mb: int = Field(
        default=50, ge=1, le=1000, description="Maximum log file size in MB"
    )
    backup_count: int = Field(
        default=5, ge=1, le=50, description="Number of log file backups to keep"
    )


def _flag(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


def legacy_sections(environ: Mapping[str, str]) -> dict[str, Any]:
    """Map the unprefixed variables of the Node deployment onto settings sections.

    Args:
        environ: Variable names and values to read from

    Returns:
        dict: Partial ``plaid``, ``supabase`` and ``server`` sections; a
        section is omitted when none of its variables are set
    """
    sections: dict[str, dict[str, Any]] = {"plaid": {}, "supabase": {}, "server": {}}

    plaid = sections["plaid"]
    if client_id := environ.get("PLAID_CLIENT_ID"):
        plaid["client_id"] = client_id
    if secret := environ.get("PLAID_SECRET"):
        plaid["secret"] = secret
    if environ.get("PLAID_ENV") in ("sandbox", "development", "production"):
        plaid["environment"] = environ["PLAID_ENV"]

    supabase = sections["supabase"]
    if url := environ.get("VITE_SUPABASE_URL") or environ.get("SUPABASE_URL"):
        supabase["url"] = url
    anon_key = environ.get("VITE_SUPABASE_ANON_KEY") or environ.get("SUPABASE_ANON_KEY")
    if anon_key:
        supabase["anon_key"] = anon_key
    if service_role_key := environ.get("SUPABASE_SERVICE_ROLE_KEY"):
        supabase["service_role_key"] = service_role_key

    server = sections["server"]
    if port := environ.get("PORT"):
        server["port"] = int(port)
    if environ.get("NODE_ENV") == "production":
        server["environment"] = "production"
    if frontend_url := environ.get("FRONTEND_URL"):
        server["frontend_url"] = frontend_url
    if (test_mode := environ.get("TEST_MODE")) is not None:
        server["test_mode"] = _flag(test_mode)
    if test_user_id := environ.get("TEST_USER_ID"):
        server["test_user_id"] = test_user_id

    return {name: values for name, values in sections.items() if values}


class LegacyEnvironmentSource(PydanticBaseSettingsSource):
    """Settings source for ``PLAID_*``, ``VITE_SUPABASE_*``, ``PORT`` and friends.

    Reads the process environment and the ``.env`` file; process variables win.
    """

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        # Values are produced for whole sections in __call__
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        env_file = self.config.get("env_file")
        file_values = dotenv_values(env_file) if env_file else {}
        environ = {k: v for k, v in file_values.items() if v is not None}
        environ.update(os.environ)
        return legacy_sections(environ)


class ClaritySettings(BaseSettings):
    """Settings for the API server and CLI.

    Sources in priority order: keyword arguments, ``CLARITY_*`` variables,
    ``CLARITY_*`` entries in ``.env``, then the unprefixed variable names of the
    Node deployment. Sources are merged field by field, so ``PORT`` and
    ``CLARITY_SERVER__STATIC_DIR`` can be combined.
    """

    plaid: PlaidConfig = Field(default_factory=PlaidConfig)
    supabase: SupabaseConfig = Field(default_factory=SupabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CLARITY_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            LegacyEnvironmentSource(settings_cls),
            file_secret_settings,
        )

    def validate_required_credentials(self) -> None:
        """Validate that required provider credentials are present.

        Raises:
            ValueError: If any required credential is missing
        """
        errors: list[str] = []

        if not self.plaid.client_id:
            errors.append("PLAID_CLIENT_ID is required")
        if not self.plaid.secret:
            errors.append("PLAID_SECRET is required")

        needs_supabase = self.storage.backend == "supabase" or not self.server.test_mode
        if needs_supabase:
            if not self.supabase.url:
                errors.append("VITE_SUPABASE_URL is required")
            if not self.supabase.anon_key:
                errors.append("VITE_SUPABASE_ANON_KEY is required")

        if self.server.test_mode and not self.server.test_user_id:
            errors.append("TEST_USER_ID is required when TEST_MODE is enabled")

        if errors:
            raise ValueError(f"Missing required configuration: {', '.join(errors)}")


# Global settings instance - lazy loaded
_settings: ClaritySettings | None = None


def get_settings() -> ClaritySettings:
    """Get the cached settings instance.

    Returns:
        ClaritySettings: The configuration instance

    Raises:
        ValueError: If the configuration is invalid
    """
    global _settings

    if _settings is not None:
        return _settings

    try:
        _settings = ClaritySettings()
    except Exception as e:
        raise ValueError(f"Configuration error: {e}") from e
    return _settings


def reload_settings() -> ClaritySettings:
    """Discard the cached settings and read the environment again.

    Returns:
        ClaritySettings: The reloaded configuration instance
    """
    clear_settings_cache()
    return get_settings()


def clear_settings_cache() -> None:
    """Drop the cached settings instance."""
    global _settings
    _settings = None
