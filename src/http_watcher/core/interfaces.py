"""
Abstract interfaces for the watcher components.

These interfaces define the contracts between the coalescing pipeline and the
push transport, so either side can be replaced in tests.
"""

from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable


@runtime_checkable
class ReloadClient(Protocol):
    """
    A connected browser client on the push channel.

    Starlette's ``WebSocket`` satisfies this protocol as-is.
    """

    async def send_text(self, data: str) -> None:
        """Push a text message to the client."""
        ...

    async def close(self, code: int = 1000) -> None:
        """Close the connection."""
        ...


class IReloadBroadcaster(ABC):
    """Interface for pushing a reload signal to every connected client."""

    @abstractmethod
    async def notify(self) -> int:
        """
        Send the reload signal to all registered clients.

        Returns:
            Number of clients that received the signal
        """
        pass
