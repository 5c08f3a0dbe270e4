"""Process-wide reference count for hiding the hardware cursor.

Every live region acquires the guard while it animates. The cursor is
hidden on the first acquire and shown again only when the last holder
releases, so overlapping or back-to-back regions never leave it hidden.
If the interpreter exits while the count is non-zero, an ``atexit`` hook
writes the show-cursor sequence straight to stdout.
"""

from __future__ import annotations

import atexit
import logging
import sys

from prism.cursor import SHOW_CURSOR
from prism.terminal import Terminal

logger = logging.getLogger(__name__)


class CursorGuard:
    """Acquire/release counter guarding cursor visibility."""

    def __init__(self) -> None:
        self._count = 0
        self._terminal: Terminal | None = None

    @property
    def count(self) -> int:
        return self._count

    def acquire(self, terminal: Terminal) -> None:
        if self._count == 0:
            atexit.register(self._restore_on_exit)
            self._terminal = terminal
            terminal.hide_cursor()
        self._count += 1

    def release(self) -> None:
        if self._count == 0:
            return
        self._count -= 1
        if self._count == 0:
            atexit.unregister(self._restore_on_exit)
            terminal, self._terminal = self._terminal, None
            if terminal is not None:
                terminal.show_cursor()

    def reset(self) -> None:
        """Drop all holders without writing anything."""
        if self._count:
            atexit.unregister(self._restore_on_exit)
        self._count = 0
        self._terminal = None

    def _restore_on_exit(self) -> None:
        if self._count > 0:
            logger.debug("restoring cursor at exit (%d holders)", self._count)
            sys.stdout.write(SHOW_CURSOR)
            sys.stdout.flush()


cursor_guard = CursorGuard()
