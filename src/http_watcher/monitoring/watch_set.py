"""
Watch-set management for the watched directory tree.

Every directory is watched individually (non-recursively), so ignored
subtrees are never observed and directories created or deleted at runtime
can be added or dropped one by one.
"""

import logging
import os

from watchdog.events import FileSystemEventHandler
from watchdog.observers.api import BaseObserver, ObservedWatch

from http_watcher.models.exceptions import MonitoringError
from http_watcher.monitoring.ignore import IgnoreRuleSet

logger = logging.getLogger(__name__)


def _normalize(path: str) -> str:
    return os.path.normpath(os.path.abspath(path))


class WatchSetManager:
    """
    Maintains the set of directories under observation.

    The manager is driven from a single task (the coalescer), so the
    underlying mapping needs no locking.
    """

    def __init__(self, observer: BaseObserver, handler: FileSystemEventHandler, ignore_rules: IgnoreRuleSet):
        """
        Initialize the watch-set manager.

        Args:
            observer: Watchdog observer that owns the watches
            handler: Event handler attached to every watch
            ignore_rules: Rules deciding which directories are skipped
        """
        self.observer = observer
        self.handler = handler
        self.ignore_rules = ignore_rules

        self._watches: dict[str, ObservedWatch] = {}

    def initialize(self, root_dir: str | os.PathLike) -> set[str]:
        """
        Seed the watch set with a recursive walk from the root directory.

        Ignored directories are pruned together with their whole subtree.
        Entries that cannot be read are logged and skipped.

        Args:
            root_dir: Root of the watched tree

        Returns:
            The set of watched directory paths

        Raises:
            MonitoringError: If the root does not exist or is not a directory
        """
        root = _normalize(os.fspath(root_dir))
        if not os.path.isdir(root):
            raise MonitoringError(f"Root is not a directory: {root}", path=root, operation="initialize")

        # The root itself is always watched, even if its own name looks hidden
        if not self._schedule(root):
            raise MonitoringError(f"Cannot monitor root directory: {root}", path=root, operation="initialize")

        self._walk(root)

        logger.info("Watching %d directories under %s", len(self._watches), root)
        return set(self._watches)

    def add(self, path: str) -> bool:
        """
        Start watching a directory discovered at runtime.

        Subdirectories already inside it (a tree moved or copied in, or
        created in one go) are watched too, with the same pruning as the
        initial walk.

        Args:
            path: Directory path

        Returns:
            True if a new watch was added
        """
        path = _normalize(path)
        if path in self._watches or self.ignore_rules.should_ignore(path):
            return False
        if not self._schedule(path):
            return False
        self._walk(path)
        return True

    def remove(self, path: str) -> bool:
        """
        Stop watching a directory, typically after it was deleted.

        Watches on its subdirectories are dropped as well. Unknown paths are
        ignored, so this can be called for every deletion event without
        checking what the path used to be.

        Args:
            path: Directory path

        Returns:
            True if a watch was removed
        """
        path = _normalize(path)
        prefix = os.path.join(path, "")
        stale = [p for p in self._watches if p == path or p.startswith(prefix)]
        for watched in stale:
            self._unschedule(watched)
        return bool(stale)

    def clear(self) -> None:
        """Drop every watch."""
        for path in list(self._watches):
            self._unschedule(path)

    def is_watched(self, path: str) -> bool:
        """Check whether a directory is in the watch set."""
        return _normalize(path) in self._watches

    def watched_paths(self) -> list[str]:
        """Get the sorted list of watched directories."""
        return sorted(self._watches)

    def __len__(self) -> int:
        return len(self._watches)

    def _schedule(self, path: str) -> bool:
        try:
            self._watches[path] = self.observer.schedule(self.handler, path, recursive=False)
        except OSError as e:
            logger.warning("Failed to monitor dir %s: %s", path, e)
            return False
        logger.debug("Monitoring dir %s", path)
        return True

    def _unschedule(self, path: str) -> None:
        watch = self._watches.pop(path)
        try:
            self.observer.unschedule(watch)
        except (KeyError, OSError) as e:
            # the emitter may already have stopped on its own
            logger.debug("Unschedule of %s failed: %s", path, e)
        logger.info("Stopped monitoring dir %s", path)

    def _walk(self, top: str) -> None:
        """Watch every directory below ``top``, pruning ignored and unwatchable subtrees."""

        def on_walk_error(error: OSError) -> None:
            logger.warning("Skipping unreadable entry %s: %s", error.filename, error.strerror or error)

        for dirpath, dirnames, _filenames in os.walk(top, topdown=True, onerror=on_walk_error):
            kept = []
            for name in dirnames:
                path = os.path.join(dirpath, name)
                if path in self._watches:
                    kept.append(name)
                    continue
                if self.ignore_rules.should_ignore(path):
                    logger.info("Ignoring directory %s", path)
                    continue
                if self._schedule(path):
                    kept.append(name)
            # prune ignored and unwatchable subtrees
            dirnames[:] = kept
