"""
Configuration management for http-watcher.

Handles environment variables and command-line overrides, and provides
default settings with validation for the watcher, coalescer and HTTP server.
"""

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Logging level enumeration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class WatcherConfig(BaseSettings):
    """
    Startup configuration for http-watcher.

    Built once by the command line entry point and passed explicitly to the
    components that need it. Every field can also be supplied through an
    ``HTTP_WATCHER_*`` environment variable.
    """

    model_config = SettingsConfigDict(
        env_prefix="HTTP_WATCHER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === HTTP Server Configuration ===
    port: int = Field(default=8000, ge=1, le=65535, description="Listen port for HTTP and the push channel")
    private: bool = Field(default=False, description="Only listen on the loopback interface")

    # === Watching Configuration ===
    root_dir: Path = Field(
        default=Path("."), description="Watched root directory, also the root of the static file server"
    )
    ignores: str = Field(default="", description="Comma-separated regex patterns of paths to ignore")
    window_seconds: float = Field(
        default=0.1, ge=0.01, le=5.0, description="Length of the event coalescing window in seconds"
    )

    # === Reload Configuration ===
    delay: float = Field(default=0.0, ge=0.0, description="Delay in seconds before the browser reloads")

    # === Logging Configuration ===
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_file: Path | None = Field(default=None, description="Log file path (stderr if None)")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log message format"
    )

    @field_validator('root_dir')
    @classmethod
    def resolve_root_dir(cls, v: Path) -> Path:
        """Resolve the root directory to an absolute path."""
        return Path(v).expanduser().resolve()

    @property
    def bind_host(self) -> str:
        """Interface address the server binds to."""
        return "127.0.0.1" if self.private else "0.0.0.0"

    def get_ignore_patterns(self) -> list[str]:
        """Split the ignores option into its non-empty patterns."""
        return [pattern for pattern in self.ignores.split(",") if pattern]

    def get_log_config(self) -> dict[str, Any]:
        """Get logging configuration dictionary."""
        config = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"standard": {"format": self.log_format}},
            "handlers": {
                "default": {
                    "level": self.log_level.value,
                    "formatter": "standard",
                    "class": "logging.StreamHandler" if not self.log_file else "logging.FileHandler",
                }
            },
            "loggers": {
                "http_watcher": {"handlers": ["default"], "level": self.log_level.value, "propagate": False},
                "uvicorn": {"handlers": ["default"], "level": self.log_level.value, "propagate": False},
                "uvicorn.access": {"handlers": ["default"], "level": "WARNING", "propagate": False},
            },
        }

        if self.log_file:
            config["handlers"]["default"]["filename"] = str(self.log_file)

        return config
