"""
Reload coordinator wiring the watcher pipeline together.

Owns the configuration, ignore rules, watch set, observer, coalescer and
client registry for one watched root, and starts and stops them as a unit.
"""

import asyncio
import contextlib
import logging
from typing import Any

from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from http_watcher.config.settings import WatcherConfig
from http_watcher.models.events import ChangeEvent
from http_watcher.models.exceptions import MonitoringError
from http_watcher.monitoring.coalescer import EventCoalescer
from http_watcher.monitoring.file_watcher import ChangeEventHandler
from http_watcher.monitoring.ignore import IgnoreRuleSet
from http_watcher.monitoring.watch_set import WatchSetManager
from http_watcher.server.registry import ClientRegistry, ReloadBroadcaster

logger = logging.getLogger(__name__)


class ReloadCoordinator:
    """
    Context object for a running watcher.

    Built once at startup from the configuration and handed to the HTTP
    application, which registers clients on ``registry``.
    """

    def __init__(
        self,
        config: WatcherConfig,
        ignore_rules: IgnoreRuleSet | None = None,
        registry: ClientRegistry | None = None,
        observer: BaseObserver | None = None,
    ):
        """
        Initialize the reload coordinator.

        Args:
            config: Watcher configuration
            ignore_rules: Optional rule set (built from ``config.ignores`` if not provided)
            registry: Optional client registry (created if not provided)
            observer: Optional watchdog observer (created if not provided)
        """
        self.config = config
        if ignore_rules is None:
            ignore_rules = IgnoreRuleSet(config.get_ignore_patterns(), root=config.root_dir)
        self.ignore_rules = ignore_rules
        self.registry = registry if registry is not None else ClientRegistry()
        self.broadcaster = ReloadBroadcaster(self.registry, delay_seconds=config.delay)

        self.observer = observer if observer is not None else Observer()
        self.handler = ChangeEventHandler(self._submit)
        self.watch_set = WatchSetManager(self.observer, self.handler, self.ignore_rules)
        self.coalescer = EventCoalescer(
            watch_set=self.watch_set,
            ignore_rules=self.ignore_rules,
            broadcaster=self.broadcaster,
            window_seconds=config.window_seconds,
        )

        self._task: asyncio.Task | None = None

    def _submit(self, event: ChangeEvent) -> None:
        self.coalescer.submit(event)

    async def start(self) -> None:
        """
        Seed the watch set, start the observer and the coalescing loop.

        Raises:
            MonitoringError: If the watcher cannot be started
        """
        if self.is_running:
            logger.debug("Coordinator already running")
            return

        root = self.config.root_dir
        try:
            if self.ignore_rules.patterns:
                logger.info("Ignore patterns: %s", ", ".join(self.ignore_rules.patterns))

            self.coalescer.bind_loop(asyncio.get_running_loop())
            self.watch_set.initialize(root)

            if not self.observer.is_alive():
                self.observer.start()

            self._task = asyncio.create_task(self.coalescer.run(), name="http-watcher-coalescer")
            logger.info("Watching %s for changes", root)

        except MonitoringError:
            raise
        except Exception as e:
            logger.error("Failed to start watching %s: %s", root, e)
            raise MonitoringError(
                f"Failed to start watching: {e}",
                path=str(root),
                operation="start",
                underlying_error=e,
            ) from e

    async def stop(self) -> None:
        """Stop the coalescing loop and release every watch."""
        if not self.is_running:
            logger.debug("Coordinator not running, nothing to stop")
            return

        logger.info("Stopping watcher: %s", self.get_status())

        task, self._task = self._task, None
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        await self.coalescer.cancel_broadcasts()

        try:
            self.watch_set.clear()
            if self.observer.is_alive():
                self.observer.stop()
                self.observer.join(timeout=5.0)
        except Exception as e:
            logger.error("Error stopping watcher: %s", e)
            raise MonitoringError("Failed to stop watcher", operation="stop", underlying_error=e) from e

    @property
    def is_running(self) -> bool:
        """Check whether the coalescing loop is active."""
        return self._task is not None and not self._task.done()

    def get_status(self) -> dict[str, Any]:
        """
        Summarize the watcher state.

        Returns:
            Dictionary with the root, watch set size, client count and settings
        """
        return {
            "root_dir": str(self.config.root_dir),
            "watched_directories": len(self.watch_set),
            "connected_clients": len(self.registry),
            "pending_events": self.coalescer.pending_count,
            "window_seconds": self.coalescer.window_seconds,
            "delay_seconds": self.broadcaster.delay_seconds,
        }
