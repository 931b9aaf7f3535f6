"""Logging setup shared by the API server and the CLI.

Everything logs through the root logger: console output on stderr, an
optional size-rotated log file, and uvicorn's own loggers routed into the same
handlers so server and application lines share one format.
"""

import logging
import os
import sys
from dataclasses import dataclass, replace
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

SERVER_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CLI_FORMAT = "%(message)s"

# Chatty HTTP clients used by the Plaid and Supabase SDKs
NOISY_LOGGERS: dict[str, int] = {
    "urllib3": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "hpack": logging.WARNING,
    "plaid": logging.INFO,
}

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


@dataclass
class LoggingConfig:
    """Where and how verbosely to log."""

    level: str = "INFO"
    log_to_file: bool = False
    log_file_path: Path = Path("logs/clarity.log")
    max_file_size_mb: int = 50
    backup_count: int = 5
    force_reconfigure: bool = False

    @classmethod
    def from_environment(cls) -> "LoggingConfig":
        """Read ``LOG_*`` variables; file logging stays off unless requested.

        Returns:
            LoggingConfig: Configuration loaded from environment
        """
        return cls(
            level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_to_file=os.getenv("LOG_TO_FILE", "false").lower() == "true",
            log_file_path=Path(os.getenv("LOG_FILE_PATH", "logs/clarity.log")),
            max_file_size_mb=int(os.getenv("LOG_MAX_FILE_SIZE_MB", "50")),
            backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5")),
        )

    @classmethod
    def from_settings(cls, settings: Any, **overrides: Any) -> "LoggingConfig":
        """Mirror the ``logging`` section of ``ClaritySettings``.

        Args:
            settings: A ``clarity.config.LoggingConfig`` settings section
            **overrides: Field values replacing those from ``settings``

        Returns:
            LoggingConfig: The equivalent runtime configuration
        """
        config = cls(
            level=settings.level,
            log_to_file=settings.log_to_file,
            log_file_path=Path(settings.log_file_path),
            max_file_size_mb=settings.max_file_size_mb,
            backup_count=settings.backup_count,
        )
        return replace(config, **overrides) if overrides else config


def _console_handler(cli_mode: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(CLI_FORMAT if cli_mode else SERVER_FORMAT))
    return handler


def _file_handler(config: LoggingConfig) -> logging.Handler:
    config.log_file_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        config.log_file_path,
        maxBytes=config.max_file_size_mb * 1024 * 1024,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(SERVER_FORMAT))
    return handler


def route_uvicorn_logs() -> None:
    """Drop uvicorn's own handlers so its records reach the root handlers."""
    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True


def setup_logging(
    config: LoggingConfig | None = None,
    cli_mode: bool = False,
    verbose: bool = False,
) -> None:
    """Configure the root logger.

    Args:
        config: Logging configuration; read from ``LOG_*`` variables if None
        cli_mode: Print bare messages on the console instead of timestamped lines
        verbose: Log at DEBUG regardless of the configured level
    """
    config = config or LoggingConfig.from_environment()
    level = logging.DEBUG if verbose else getattr(logging, config.level)

    handlers = [_console_handler(cli_mode)]
    if config.log_to_file:
        handlers.append(_file_handler(config))

    logging.basicConfig(level=level, handlers=handlers, force=config.force_reconfigure)

    for name, noisy_level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(noisy_level)
    route_uvicorn_logs()


def get_log_config_summary() -> dict[str, Any]:
    """Describe the active root logger alongside the environment configuration.

    Returns:
        dict: Level, handler types and file settings
    """
    config = LoggingConfig.from_environment()
    root = logging.getLogger()
    return {
        "level": logging.getLevelName(root.level),
        "handlers": [type(h).__name__ for h in root.handlers],
        "log_to_file": config.log_to_file,
        "log_file_path": str(config.log_file_path),
    }
