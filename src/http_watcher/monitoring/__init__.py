"""
Monitoring package for filesystem change detection.

This package turns raw watchdog notifications into coalesced reload ticks:
ignore rules, the directory watch set, the event coalescer and the
coordinator that wires them together.
"""

from .coalescer import EventCoalescer
from .file_watcher import ChangeEventHandler
from .ignore import IgnoreRuleSet, is_temp_file
from .reload_coordinator import ReloadCoordinator
from .watch_set import WatchSetManager

__all__ = [
    "ChangeEventHandler",
    "EventCoalescer",
    "IgnoreRuleSet",
    "ReloadCoordinator",
    "WatchSetManager",
    "is_temp_file",
]
