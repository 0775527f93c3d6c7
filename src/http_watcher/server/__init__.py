"""HTTP server and push channel."""

from http_watcher.server.registry import ClientRegistry, ReloadBroadcaster

__all__ = [
    "ClientRegistry",
    "ReloadBroadcaster",
]
