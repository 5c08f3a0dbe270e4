"""Buffered streaming text (token-by-token output, subprocess pipes).

Chunks are buffered and split on newlines; complete lines are emitted one
at a time, the trailing partial line is held. Standalone on a terminal the
partial line is shown inline and replaced as it grows. Attached to a
:class:`prism.layout.Layout` every line goes through ``layout.print`` so the
active zone stays pinned beneath the text.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from prism.cursor import CLEAR_LINE, CR
from prism.style import s
from prism.terminal import Terminal, get_terminal

if TYPE_CHECKING:
    from prism.layout import Layout

logger = logging.getLogger(__name__)


class Stream:
    def __init__(
        self,
        *,
        layout: Layout | None = None,
        prefix: str = "",
        style: Callable[[str], str] | None = None,
        terminal: Terminal | None = None,
        tty: bool | None = None,
    ) -> None:
        self._terminal = terminal or get_terminal()
        self._layout = layout
        self._interactive = self._terminal.is_tty if tty is None else tty
        self._prefix = prefix
        self._style = style
        self._buffer = ""
        self._closed = False
        self._has_partial = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def _passthrough(self) -> bool:
        return not self._interactive and self._layout is None

    def set_prefix(self, prefix: str) -> None:
        self._prefix = prefix

    # -- line handling --------------------------------------------------------

    def _format(self, line: str) -> str:
        content = self._prefix + line
        return self._style(content) if self._style else content

    def _emit(self, text: str) -> None:
        if self._layout is not None:
            self._layout.print(text)
        else:
            self._terminal.write(f"{text}\n")

    def _clear_partial(self) -> None:
        if self._layout is None and self._has_partial:
            self._terminal.write(CR + CLEAR_LINE)
            self._has_partial = False

    def _show_partial(self) -> None:
        if self._layout is not None or not self._buffer:
            return
        self._terminal.write(CR + CLEAR_LINE + self._format(self._buffer))
        self._has_partial = True

    def _flush_buffer(self) -> None:
        if not self._buffer:
            return
        self._clear_partial()
        self._emit(self._format(self._buffer))
        self._buffer = ""

    # -- public ---------------------------------------------------------------

    def write(self, data: str) -> None:
        """Append *data*; every complete line is emitted immediately."""
        if self._closed or not data:
            return
        if self._passthrough:
            self._terminal.write(data)
            return

        self._buffer += data
        last_newline = self._buffer.rfind("\n")
        if last_newline == -1:
            self._show_partial()
            return

        complete = self._buffer[:last_newline]
        self._buffer = self._buffer[last_newline + 1 :]
        self._clear_partial()
        for line in complete.split("\n"):
            self._emit(self._format(line))
        self._show_partial()

    def flush(self) -> None:
        """Emit the held partial line as a complete line."""
        if self._closed or self._passthrough:
            return
        self._flush_buffer()

    def done(self, final_text: str | None = None) -> None:
        self._finish(final_text)

    def fail(self, error_text: str | None = None) -> None:
        self._finish(s.red(error_text) if error_text else None)

    def _finish(self, text: str | None) -> None:
        if self._closed:
            return
        self._closed = True
        if not self._passthrough:
            self._flush_buffer()
        if text:
            self._emit(text)
        logger.debug("stream closed")


def stream(**options) -> Stream:
    """Create a standalone :class:`Stream`."""
    return Stream(**options)
