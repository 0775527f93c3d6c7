"""
Ignore rules for the directory walk and the change event stream.

A path is ignored when it matches one of the user-supplied regular
expressions, or when its base name marks it as a hidden file or an editor
lock/temp file.
"""

import logging
import os
import re
from collections.abc import Iterable

logger = logging.getLogger(__name__)

HIDDEN_PREFIX = "."
TEMP_FILE_MARKER = "#"


def is_temp_file(path: str) -> bool:
    """Check whether the base filename carries the editor temp-file marker."""
    return TEMP_FILE_MARKER in os.path.basename(path)


class IgnoreRuleSet:
    """
    Compiled set of ignore rules.

    The rule set is immutable once built, so ``should_ignore`` can be called
    from the observer threads and the event loop without locking.
    """

    def __init__(self, patterns: Iterable[str] = (), root: str | os.PathLike | None = None):
        """
        Compile the given patterns.

        Args:
            patterns: Regular expressions searched in the path. Empty entries
                are skipped; entries that fail to compile are dropped with a
                warning.
            root: Watched root. When given, patterns see paths under it
                relative to the root, so the root's own ancestors never match.
        """
        compiled = []
        for pattern in patterns:
            if not pattern:
                continue
            try:
                compiled.append(re.compile(pattern))
            except re.error as e:
                logger.warning("Dropping ignore pattern %r, it does not compile: %s", pattern, e)
        self._compiled: tuple[re.Pattern[str], ...] = tuple(compiled)
        self.root: str | None = os.path.normpath(os.path.abspath(root)) if root is not None else None

    @classmethod
    def from_string(cls, ignores: str, root: str | os.PathLike | None = None) -> "IgnoreRuleSet":
        """Build a rule set from a comma-separated pattern list."""
        return cls(ignores.split(","), root=root)

    @property
    def patterns(self) -> list[str]:
        """Source strings of the patterns that compiled."""
        return [p.pattern for p in self._compiled]

    def relative_path(self, path: str) -> str:
        """
        Get the form of ``path`` the patterns are matched against.

        Paths under the root become root-relative (the root itself is
        ``"."``); anything else is returned unchanged.
        """
        if self.root is None:
            return path
        rel = os.path.relpath(path, self.root)
        if rel == os.pardir or rel.startswith(os.pardir + os.sep):
            return path
        return rel

    def should_ignore(self, path: str) -> bool:
        """
        Decide whether a path is excluded from watching and notification.

        Args:
            path: Path of a file or directory

        Returns:
            True if the path matches an ignore pattern, or its base name is a
            hidden file or an editor lock file
        """
        target = self.relative_path(path)
        # the root itself is never matched by a pattern
        if target != os.curdir:
            for pattern in self._compiled:
                if pattern.search(target):
                    return True

        base = os.path.basename(path)
        # hidden files and emacs lock files
        if len(base) > 1 and base.startswith((HIDDEN_PREFIX, TEMP_FILE_MARKER)):
            return True

        return False

    def __repr__(self) -> str:
        return f"IgnoreRuleSet(patterns={self.patterns}, root={self.root!r})"
