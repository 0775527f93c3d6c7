"""
Watchdog adapter producing raw change events.

Translates watchdog notifications into ChangeEvent records and hands them to
a sink (the coalescer's ``submit``) from the observer thread.
"""

import logging
import os
from collections.abc import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler

from http_watcher.models.events import ChangeEvent, ChangeKind

logger = logging.getLogger(__name__)

# watchdog event types that carry a change; opened/closed_no_write are noise
_KIND_BY_EVENT_TYPE = {
    "created": ChangeKind.CREATED,
    "modified": ChangeKind.MODIFIED,
    "closed": ChangeKind.MODIFIED,
    "deleted": ChangeKind.DELETED,
}


class ChangeEventHandler(FileSystemEventHandler):
    """
    Watchdog handler forwarding every relevant notification.

    No filtering happens here: directories, hidden files and ignored paths
    are all forwarded, and the coalescer decides what they mean.
    """

    def __init__(self, sink: Callable[[ChangeEvent], None]):
        """
        Initialize the handler.

        Args:
            sink: Thread-safe callable receiving each translated event
        """
        super().__init__()
        self.sink = sink

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Translate a watchdog event and forward it to the sink."""
        try:
            if event.event_type == "moved":
                # A rename removes the old name and creates the new one
                self._emit(event.src_path, ChangeKind.DELETED)
                self._emit(getattr(event, "dest_path", ""), ChangeKind.MOVED)
                return

            kind = _KIND_BY_EVENT_TYPE.get(event.event_type)
            if kind is not None:
                self._emit(event.src_path, kind)
        except Exception as e:
            logger.error("Error handling %s event for %s: %s", event.event_type, event.src_path, e)

    def _emit(self, path: str | bytes, kind: ChangeKind) -> None:
        path = os.fsdecode(path)
        if not path:
            return
        change = ChangeEvent(path=path, kind=kind)
        logger.debug("Raw event: %s", change)
        self.sink(change)
