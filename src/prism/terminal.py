"""Terminal abstraction for raw-mode stdin/stdout interaction.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal`` backed by
``sys.stdin``/``sys.stdout``: raw-mode toggling through :mod:`termios`, an
asyncio reader that hands each stdin chunk to a callback, and the column
query every render path consults before drawing.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import termios
from typing import Callable, Protocol, TypeVar

from prism.config import PrismConfig, stdout_is_tty
from prism.cursor import CLEAR_SCREEN, HIDE_CURSOR, SHOW_CURSOR
from prism.utils import strip_ansi

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for terminal I/O operations."""

    @property
    def is_tty(self) -> bool: ...

    @property
    def columns(self) -> int: ...

    def write(self, data: str) -> None: ...

    def start(self, on_input: Callable[[str], None]) -> None: ...

    def stop(self) -> None: ...

    async def read_text(self) -> str: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...

    def clear_screen(self) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal backed by the process's standard streams.

    ``start`` puts stdin into raw mode (no echo, no line buffering, no
    signal keys) while keeping output post-processing, so ``"\\n"`` still
    returns the carriage. Write errors propagate: once output fails the
    on-screen state is unknown and nothing can be repaired.
    """

    def __init__(self, config: PrismConfig | None = None) -> None:
        self._config = config or PrismConfig.from_env()
        self._input_handler: Callable[[str], None] | None = None
        self._original_termios: list | None = None
        self._reader_active: bool = False

    # -- properties ---------------------------------------------------------

    @property
    def is_tty(self) -> bool:
        return stdout_is_tty(self._config)

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).columns
        except (ValueError, OSError):
            return self._config.fallback_columns

    # -- output ---------------------------------------------------------------

    def write(self, data: str) -> None:
        """Write *data* to stdout and flush immediately."""
        sys.stdout.write(data)
        sys.stdout.flush()

        if self._config.write_log:
            try:
                with open(self._config.write_log, "a", encoding="utf-8") as f:
                    f.write(data)
            except OSError as exc:
                logger.debug("write log %s unavailable: %s", self._config.write_log, exc)

    def hide_cursor(self) -> None:
        self.write(HIDE_CURSOR)

    def show_cursor(self) -> None:
        self.write(SHOW_CURSOR)

    def clear_screen(self) -> None:
        self.write(CLEAR_SCREEN)

    # -- input ----------------------------------------------------------------

    def start(self, on_input: Callable[[str], None]) -> None:
        """Enter raw mode and deliver each stdin chunk to *on_input*."""
        self._input_handler = on_input
        self.set_raw_mode(True)
        self._start_reader()

    def stop(self) -> None:
        """Stop reading and restore the previous terminal attributes."""
        self._remove_reader()
        self.set_raw_mode(False)
        self._input_handler = None

    def set_raw_mode(self, enable: bool) -> None:
        """Toggle raw mode on stdin; a no-op when stdin is not a terminal."""
        if not sys.stdin.isatty():
            return
        fd = sys.stdin.fileno()
        if enable:
            if self._original_termios is not None:
                return
            self._original_termios = termios.tcgetattr(fd)
            attrs = termios.tcgetattr(fd)
            attrs[0] &= ~(termios.BRKINT | termios.ICRNL | termios.INPCK | termios.ISTRIP | termios.IXON)
            attrs[2] |= termios.CS8
            attrs[3] &= ~(termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG)
            attrs[6][termios.VMIN] = 1
            attrs[6][termios.VTIME] = 0
            termios.tcsetattr(fd, termios.TCSAFLUSH, attrs)
            logger.debug("raw mode on")
        elif self._original_termios is not None:
            termios.tcsetattr(fd, termios.TCSADRAIN, self._original_termios)
            self._original_termios = None
            logger.debug("raw mode off")

    async def read_text(self) -> str:
        """Read all of stdin (piped, non-interactive mode)."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, sys.stdin.read)

    # -- private: stdin reading ---------------------------------------------

    def _start_reader(self) -> None:
        if self._reader_active:
            return
        loop = asyncio.get_running_loop()
        loop.add_reader(sys.stdin.fileno(), self._on_stdin_readable)
        self._reader_active = True

    def _remove_reader(self) -> None:
        if not self._reader_active:
            return
        try:
            loop = asyncio.get_running_loop()
            loop.remove_reader(sys.stdin.fileno())
        except RuntimeError:
            logger.debug("no running loop while removing stdin reader")
        self._reader_active = False

    def _on_stdin_readable(self) -> None:
        raw = os.read(sys.stdin.fileno(), 4096)
        if not raw:
            return
        if self._input_handler is not None:
            self._input_handler(raw.decode("utf-8", errors="replace"))


# ---------------------------------------------------------------------------
# Shared default
# ---------------------------------------------------------------------------

_default_terminal: ProcessTerminal | None = None


def get_terminal() -> ProcessTerminal:
    """Return the process-wide :class:`ProcessTerminal`."""
    global _default_terminal
    if _default_terminal is None:
        _default_terminal = ProcessTerminal()
    return _default_terminal


def pipe_aware(text: str, terminal: Terminal | None = None) -> str:
    """Strip escape sequences when *terminal* is not interactive."""
    terminal = terminal or get_terminal()
    return text if terminal.is_tty else strip_ansi(text)


async def read_until(terminal: Terminal, on_data: Callable[[str], T | None]) -> T:
    """Feed raw input chunks to *on_data* until it returns a value.

    The terminal is started for the duration of the call and stopped again
    however the call ends. An exception raised by *on_data* ends the read
    and propagates to the caller.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[T] = loop.create_future()

    stopped = False

    def stop() -> None:
        nonlocal stopped
        if not stopped:
            stopped = True
            terminal.stop()

    def on_input(data: str) -> None:
        if future.done():
            return
        try:
            result = on_data(data)
        except Exception as exc:
            stop()
            future.set_exception(exc)
            return
        if result is not None:
            stop()
            future.set_result(result)

    terminal.start(on_input)
    try:
        return await future
    finally:
        stop()
