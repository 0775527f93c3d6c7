"""
Client registry and reload broadcaster.

Clients are notified once and then dropped: a browser that reloads opens a
new connection and registers again, so no "already notified" state is kept.
"""

import asyncio
import logging
from uuid import UUID, uuid4

from http_watcher.core.interfaces import IReloadBroadcaster, ReloadClient

logger = logging.getLogger(__name__)


class ClientRegistry:
    """
    Set of currently connected clients, keyed by a stable id.

    All mutations, including the iterate-and-clear of a broadcast, run under
    one lock so a registration can never interleave with a broadcast.
    """

    def __init__(self):
        self._clients: dict[UUID, ReloadClient] = {}
        self._lock = asyncio.Lock()

    async def register(self, client: ReloadClient) -> UUID:
        """
        Add a client whose handshake has completed.

        Args:
            client: Open client connection

        Returns:
            Id to pass to ``unregister`` when the client goes away
        """
        client_id = uuid4()
        async with self._lock:
            self._clients[client_id] = client
        logger.debug("Client %s registered (%d connected)", client_id, len(self._clients))
        return client_id

    async def unregister(self, client_id: UUID) -> bool:
        """
        Remove a client that disconnected on its own.

        Args:
            client_id: Id returned by ``register``

        Returns:
            True if the client was still registered
        """
        async with self._lock:
            removed = self._clients.pop(client_id, None) is not None
        if removed:
            logger.debug("Client %s disconnected", client_id)
        return removed

    async def broadcast(self, message: str) -> int:
        """
        Send a message to every client, close them, and empty the registry.

        A client that fails to receive the message is logged and skipped.

        Args:
            message: Text message to push

        Returns:
            Number of clients that received the message
        """
        delivered = 0
        async with self._lock:
            for client_id, client in self._clients.items():
                try:
                    await client.send_text(message)
                    delivered += 1
                except Exception as e:
                    logger.warning("Failed to notify client %s: %s", client_id, e)
                try:
                    await client.close()
                except Exception as e:
                    logger.debug("Failed to close client %s: %s", client_id, e)
            self._clients.clear()
        return delivered

    def client_ids(self) -> list[UUID]:
        """Get the ids of the registered clients in registration order."""
        return list(self._clients)

    def __len__(self) -> int:
        return len(self._clients)


class ReloadBroadcaster(IReloadBroadcaster):
    """Pushes the reload instruction, carrying the configured delay, to all clients."""

    def __init__(self, registry: ClientRegistry, delay_seconds: float = 0.0):
        self.registry = registry
        self.delay_seconds = delay_seconds

    @property
    def reload_message(self) -> str:
        """Reload delay in milliseconds, as read by the browser script."""
        return str(self.delay_seconds * 1000)

    async def notify(self) -> int:
        delivered = await self.registry.broadcast(self.reload_message)
        logger.info("Reload signal sent to %d client(s)", delivered)
        return delivered
