"""Unit tests for the watchdog event adapter."""

from unittest.mock import Mock

import pytest
from http_watcher.models import ChangeKind
from http_watcher.monitoring import ChangeEventHandler
from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    FileClosedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileOpenedEvent,
)


class TestChangeEventHandler:
    """Test cases for ChangeEventHandler."""

    @pytest.fixture
    def sink(self):
        return Mock()

    @pytest.fixture
    def handler(self, sink):
        return ChangeEventHandler(sink)

    def emitted(self, sink):
        return [(call.args[0].kind, call.args[0].path) for call in sink.call_args_list]

    @pytest.mark.parametrize(
        "event, kind",
        [
            (FileCreatedEvent("/site/a.txt"), ChangeKind.CREATED),
            (FileModifiedEvent("/site/a.txt"), ChangeKind.MODIFIED),
            (FileDeletedEvent("/site/a.txt"), ChangeKind.DELETED),
            (FileClosedEvent("/site/a.txt"), ChangeKind.MODIFIED),
        ],
    )
    def test_file_events_translated(self, handler, sink, event, kind):
        """Test translation of file events into change events."""
        handler.dispatch(event)

        assert self.emitted(sink) == [(kind, "/site/a.txt")]

    def test_directory_events_forwarded(self, handler, sink):
        """Test that directory events are forwarded for watch-set maintenance."""
        handler.dispatch(DirCreatedEvent("/site/images"))
        handler.dispatch(DirDeletedEvent("/site/old"))

        assert self.emitted(sink) == [
            (ChangeKind.CREATED, "/site/images"),
            (ChangeKind.DELETED, "/site/old"),
        ]

    def test_move_becomes_delete_and_move(self, handler, sink):
        """Test that a rename removes the old name and reports the new one."""
        handler.dispatch(FileMovedEvent("/site/draft.html", "/site/index.html"))

        assert self.emitted(sink) == [
            (ChangeKind.DELETED, "/site/draft.html"),
            (ChangeKind.MOVED, "/site/index.html"),
        ]

    def test_opened_events_ignored(self, handler, sink):
        """Test that open notifications carry no change."""
        handler.dispatch(FileOpenedEvent("/site/a.txt"))

        sink.assert_not_called()

    def test_bytes_paths_decoded(self, handler, sink):
        """Test that byte paths from watchdog are decoded."""
        handler.dispatch(FileModifiedEvent(b"/site/a.txt"))

        assert self.emitted(sink) == [(ChangeKind.MODIFIED, "/site/a.txt")]

    def test_sink_errors_do_not_propagate(self, sink, handler):
        """Test that a failing sink does not break the observer thread."""
        sink.side_effect = RuntimeError("loop closed")

        handler.dispatch(FileModifiedEvent("/site/a.txt"))

        sink.assert_called_once()
