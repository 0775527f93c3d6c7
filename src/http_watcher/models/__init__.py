"""Data models and exceptions for the watcher."""

from http_watcher.models.events import ChangeEvent, ChangeKind
from http_watcher.models.exceptions import (
    BaseError,
    ConfigurationError,
    InitializationError,
    MonitoringError,
)

__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "BaseError",
    "ConfigurationError",
    "InitializationError",
    "MonitoringError",
]
