"""
Data models for filesystem change notifications.

A ChangeEvent lives for at most one coalescing window: it is produced by the
watchdog adapter, buffered by the coalescer and discarded at the next flush.
"""

import os
import time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChangeKind(str, Enum):
    """Kind of filesystem notification."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    MOVED = "moved"


class ChangeEvent(BaseModel):
    """
    One raw filesystem change notification.

    Paths are stored absolute and normalized so that events for the same file
    collapse onto one key regardless of how the watcher spelled the path.
    """

    path: str = Field(..., min_length=1, description="Absolute normalized path of the changed entry")
    kind: ChangeKind = Field(..., description="Kind of change reported by the watcher")
    timestamp: float = Field(default_factory=time.time, description="Arrival time (epoch seconds)")

    model_config = ConfigDict(frozen=True)

    @field_validator('path')
    @classmethod
    def normalize_path(cls, v: str) -> str:
        """Make the path absolute and collapse redundant separators."""
        return os.path.normpath(os.path.abspath(v))

    @property
    def base_name(self) -> str:
        """Base filename of the changed path."""
        return os.path.basename(self.path)

    def __str__(self) -> str:
        return f"ChangeEvent({self.kind.value}: {self.path})"
