"""
Event coalescer turning raw change events into reload ticks.

Raw events are buffered per path over a fixed window. At every window
boundary the buffer is drained, and if anything qualifying changed the
broadcaster is triggered once for the whole window.
"""

import asyncio
import logging
import os
import stat

from http_watcher.core.interfaces import IReloadBroadcaster
from http_watcher.models.events import ChangeEvent, ChangeKind
from http_watcher.monitoring.ignore import IgnoreRuleSet, is_temp_file
from http_watcher.monitoring.watch_set import WatchSetManager

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 0.1


class EventCoalescer:
    """
    Buffers, filters and deduplicates raw change events.

    The pending buffer and the watch set are only touched from the task
    running ``run``; other threads hand events over through ``submit``.
    """

    def __init__(
        self,
        watch_set: WatchSetManager,
        ignore_rules: IgnoreRuleSet,
        broadcaster: IReloadBroadcaster,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
    ):
        """
        Initialize the coalescer.

        Args:
            watch_set: Watch-set manager updated on directory creation/deletion
            ignore_rules: Rules excluding paths from the buffer
            broadcaster: Triggered once per window with qualifying changes
            window_seconds: Length of the coalescing window
        """
        self.watch_set = watch_set
        self.ignore_rules = ignore_rules
        self.broadcaster = broadcaster
        self.window_seconds = window_seconds

        self._pending: dict[str, ChangeEvent] = {}
        self._queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._broadcast_tasks: set[asyncio.Task] = set()

    def bind_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Attach the event loop that ``submit`` schedules onto."""
        self._loop = loop

    def submit(self, event: ChangeEvent) -> None:
        """
        Queue a raw event from any thread.

        Args:
            event: Raw change event from the watcher
        """
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.warning("No event loop bound, dropping %s", event)
            return
        try:
            loop.call_soon_threadsafe(self._queue.put_nowait, event)
        except RuntimeError:
            # loop closed between the check and the call during shutdown
            logger.debug("Event loop closed, dropping %s", event)

    def handle_event(self, event: ChangeEvent) -> None:
        """
        Apply one raw event to the current window.

        Args:
            event: Raw change event
        """
        path = event.path

        if event.kind is ChangeKind.DELETED:
            self.watch_set.remove(path)
            if self._qualifies(path):
                self._pending[path] = event
            return

        try:
            info = os.lstat(path)
        except OSError as e:
            logger.debug("Dropping event for %s: %s", path, e)
            return

        if stat.S_ISDIR(info.st_mode):
            # new or changed directory: watch it, but it never triggers a reload
            self.watch_set.add(path)
        elif self._qualifies(path):
            self._pending[path] = event

    def flush(self) -> list[str]:
        """
        Drain the buffer at a window boundary.

        Returns:
            Sorted paths that changed during the window
        """
        pending, self._pending = self._pending, {}
        return sorted(path for path in pending if not is_temp_file(path))

    async def run(self) -> None:
        """
        Drive the coalescing windows until cancelled.

        Waits on whichever comes first, the next raw event or the next window
        boundary.
        """
        loop = asyncio.get_running_loop()
        if self._loop is None:
            self._loop = loop

        deadline = loop.time() + self.window_seconds
        while True:
            timeout = deadline - loop.time()
            if timeout <= 0:
                self._close_window()
                deadline += self.window_seconds
                if deadline <= loop.time():
                    # fell behind by a full window; re-anchor instead of bursting
                    deadline = loop.time() + self.window_seconds
                continue

            try:
                event = await asyncio.wait_for(self._queue.get(), timeout=timeout)
            except asyncio.TimeoutError:
                continue

            try:
                self.handle_event(event)
            except Exception as e:
                logger.error("Error handling %s: %s", event, e)

    async def cancel_broadcasts(self) -> None:
        """Cancel broadcasts still in flight and wait for them to finish."""
        tasks = list(self._broadcast_tasks)
        if not tasks:
            return
        logger.debug("Cancelling %d pending broadcast(s)", len(tasks))
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._broadcast_tasks.difference_update(tasks)

    @property
    def pending_count(self) -> int:
        """Number of paths buffered in the current window."""
        return len(self._pending)

    def _qualifies(self, path: str) -> bool:
        return not is_temp_file(path) and not self.ignore_rules.should_ignore(path)

    def _close_window(self) -> None:
        changed = self.flush()
        if not changed:
            return

        logger.info("%d file(s) changed: %s", len(changed), ", ".join(changed))
        task = asyncio.create_task(self._broadcast())
        self._broadcast_tasks.add(task)
        task.add_done_callback(self._broadcast_tasks.discard)

    async def _broadcast(self) -> None:
        try:
            await self.broadcaster.notify()
        except Exception as e:
            logger.error("Reload broadcast failed: %s", e)
