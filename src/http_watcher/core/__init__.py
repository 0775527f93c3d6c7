"""Core contracts shared by the watcher and the server."""

from http_watcher.core.interfaces import IReloadBroadcaster, ReloadClient

__all__ = [
    "IReloadBroadcaster",
    "ReloadClient",
]
