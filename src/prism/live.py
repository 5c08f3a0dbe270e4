"""Live regions: animated output that freezes into scrollback.

``Activity`` is a single status line (spinner, message, optional elapsed
time and metrics); ``Section`` is a title line with items listed beneath
it. Both redraw in place on an asyncio timer until one of ``done``,
``fail``, ``warn``, ``info`` or ``stop`` freezes them. Frozen output is
written once and never touched again.

A region may carry a :class:`Footer`: lines drawn *below* the animated
content on every tick (typically a layout's pinned prompt). When the region
freezes it clears the footer along with its own content and calls
``footer.on_end`` so the owner can redraw it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Literal

from prism.cursor import CLEAR_TO_END, CR, cursor_up, line_rows
from prism.spinners import SPINNERS, get_spinner
from prism.style import s
from prism.terminal import Terminal, get_terminal
from prism.visibility import cursor_guard

logger = logging.getLogger(__name__)

ColorFn = Callable[[str], str]

_DEFAULT_INTERVAL_MS = 80


@dataclass
class Footer:
    """Content a live region draws beneath itself while it animates."""

    render: Callable[[], list[str]]
    on_end: Callable[[], None]


def format_time(ms: int) -> str:
    """Human-readable duration: ``850ms``, ``4.2s``, ``3m 5s``, ``1h 2m``."""
    if ms < 1000:
        return f"{ms}ms"
    if ms < 60_000:
        return f"{ms / 1000:.1f}s"
    if ms < 3_600_000:
        return f"{ms // 60_000}m {(ms % 60_000) // 1000}s"
    return f"{ms // 3_600_000}h {(ms % 3_600_000) // 60_000}m"


# ---------------------------------------------------------------------------
# Block renderer
# ---------------------------------------------------------------------------


class Block:
    """Redraws a run of lines in place, tracking how many rows it drew.

    After every draw the cursor rests on the row just below the content,
    with the footer (if any) drawn underneath it.
    """

    def __init__(self, terminal: Terminal, footer: Footer | None = None) -> None:
        self._terminal = terminal
        self._footer = footer
        self.height = 0

    def _erase(self, out: list[str]) -> None:
        out.append(cursor_up(self.height))
        out.append(CR + CLEAR_TO_END)

    def render(self, lines: list[str], above: str = "") -> None:
        columns = self._terminal.columns
        out: list[str] = []
        self._erase(out)
        out.append(above)
        out.extend(f"{line}\n" for line in lines)

        if self._footer is not None:
            footer_lines = self._footer.render()
            out.extend(f"{line}\n" for line in footer_lines)
            out.append(cursor_up(sum(line_rows(line, columns) for line in footer_lines)))

        self._terminal.write("".join(out))
        self.height = sum(line_rows(line, columns) for line in lines)

    def freeze(self, lines: list[str]) -> None:
        out: list[str] = []
        self._erase(out)
        out.extend(f"{line}\n" for line in lines)
        self._terminal.write("".join(out))
        self.height = 0


# ---------------------------------------------------------------------------
# LiveRegion base
# ---------------------------------------------------------------------------


class LiveRegion(ABC):
    """Shared lifecycle: animate on a timer, then freeze exactly once."""

    def __init__(
        self,
        *,
        interval_ms: int,
        footer: Footer | None,
        terminal: Terminal | None,
        tty: bool | None,
    ) -> None:
        self._terminal = terminal or get_terminal()
        self._interactive = self._terminal.is_tty if tty is None else tty
        self._interval = interval_ms / 1000
        self._footer = footer
        self._frame_index = 0
        self._start_time = time.monotonic()
        self._frozen = False
        self._timer_handle: asyncio.TimerHandle | None = None
        self._block: Block | None = None

    # -- properties ---------------------------------------------------------

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def interactive(self) -> bool:
        return self._interactive

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self._start_time) * 1000)

    # -- hooks for subclasses -----------------------------------------------

    @abstractmethod
    def _current_message(self) -> str: ...

    @abstractmethod
    def _build_lines(self) -> list[str]: ...

    @abstractmethod
    def _build_final_lines(self, icon: str, message: str, color: ColorFn) -> list[str]: ...

    def _static_final_line(self, icon: str, message: str) -> str:
        return f"{icon} {message}"

    # -- animation ------------------------------------------------------------

    def _begin(self) -> None:
        cursor_guard.acquire(self._terminal)
        self._block = Block(self._terminal, self._footer)
        self.tick()
        self._schedule_next()

    def _schedule_next(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop: the region redraws only on explicit updates
            return
        self._timer_handle = loop.call_later(self._interval, self._on_timer)

    def _on_timer(self) -> None:
        self._timer_handle = None
        if self._frozen:
            return
        self.tick()
        self._schedule_next()

    def tick(self) -> None:
        """Draw the current frame (plus footer) and advance the animation."""
        if self._frozen or self._block is None:
            return
        self._block.render(self._build_lines())
        self._frame_index += 1

    def _write_static(self, line: str) -> None:
        self._terminal.write(f"{line}\n")

    def print_above(self, text: str) -> None:
        """Write *text* into scrollback directly above the animated content."""
        if self._frozen or self._block is None:
            self._write_static(text)
            return
        self._block.render(self._build_lines(), above=f"{text}\n")

    # -- freezing -------------------------------------------------------------

    def done(self, message: str | None = None) -> None:
        self._end("✓", self._current_message() if message is None else message, s.green)

    def fail(self, message: str | None = None) -> None:
        self._end("✗", self._current_message() if message is None else message, s.red)

    def warn(self, message: str | None = None) -> None:
        self._end("⚠", self._current_message() if message is None else message, s.yellow)

    def info(self, message: str | None = None) -> None:
        self._end("ℹ", self._current_message() if message is None else message, s.blue)

    def stop(self, icon: str, message: str, color: ColorFn | None = None) -> None:
        self._end(icon, message, color or s.white)

    def _end(self, icon: str, message: str, color: ColorFn) -> None:
        if self._frozen:
            return
        self._frozen = True
        if self._timer_handle is not None:
            self._timer_handle.cancel()
            self._timer_handle = None

        if self._block is not None:
            self._block.freeze(self._build_final_lines(icon, message, color))
            cursor_guard.release()
        else:
            self._write_static(self._static_final_line(icon, message))
        logger.debug("%s frozen after %dms", type(self).__name__, self.elapsed_ms)

        if self._footer is not None:
            self._footer.on_end()


# ---------------------------------------------------------------------------
# Activity
# ---------------------------------------------------------------------------


class Activity(LiveRegion):
    """Single-line live status: icon, message, elapsed time, metrics.

    ``icon`` is a spinner name from :data:`prism.spinners.SPINNERS` or any
    static string; ``metrics`` is called on every tick and shown dimmed
    after the message::

        ⠹ Downloading… (4.2s · 12 MB)
    """

    def __init__(
        self,
        text: str,
        *,
        icon: str | None = None,
        timer: bool = False,
        color: ColorFn | None = None,
        metrics: Callable[[], str] | None = None,
        footer: Footer | None = None,
        terminal: Terminal | None = None,
        tty: bool | None = None,
    ) -> None:
        if icon is None or icon in SPINNERS:
            spinner = get_spinner(icon)
            frames, interval_ms = spinner.frames, spinner.interval_ms
        else:
            frames, interval_ms = (icon,), _DEFAULT_INTERVAL_MS

        super().__init__(interval_ms=interval_ms, footer=footer, terminal=terminal, tty=tty)
        self._frames = frames
        self._message = text
        self._timer = timer
        self._color = color or s.cyan
        self._metrics = metrics

        if self._interactive:
            self._begin()
        else:
            self._write_static(text)

    def update(self, text: str) -> None:
        """Replace the message; shown on the next tick."""
        if self._frozen:
            return
        self._message = text
        if not self._interactive:
            self._write_static(text)

    def _current_message(self) -> str:
        return self._message

    def _meta(self, include_metrics: bool) -> str:
        parts: list[str] = []
        if self._timer:
            parts.append(format_time(self.elapsed_ms))
        if include_metrics and self._metrics is not None:
            parts.append(self._metrics())
        if not parts:
            return ""
        return s.dim(f" ({' · '.join(parts)})")

    def _build_lines(self) -> list[str]:
        frame = self._color(self._frames[self._frame_index % len(self._frames)])
        return [f"{frame} {self._message}{self._meta(include_metrics=True)}"]

    def _build_final_lines(self, icon: str, message: str, color: ColorFn) -> list[str]:
        return [f"{color(icon)} {message}{self._meta(include_metrics=False)}"]


# ---------------------------------------------------------------------------
# Section
# ---------------------------------------------------------------------------


class Section(LiveRegion):
    """Multi-line live block: animated title with items listed beneath.

    ::

          ⠋ Reading 2 files…
          ⎿  src/box.py
          ⎿  src/style.py

    Items can be added one at a time or replaced wholesale with ``body``.
    With ``collapse_on_done`` only the title line survives freezing.
    """

    def __init__(
        self,
        title: str,
        *,
        spinner: str | None = None,
        color: ColorFn | None = None,
        indent: int = 2,
        connector: str = "⎿",
        timer: bool = False,
        collapse_on_done: bool = False,
        footer: Footer | None = None,
        terminal: Terminal | None = None,
        tty: bool | None = None,
    ) -> None:
        spinner_def = get_spinner(spinner)
        super().__init__(
            interval_ms=spinner_def.interval_ms, footer=footer, terminal=terminal, tty=tty
        )
        self._frames = spinner_def.frames
        self._title = title
        self._items: list[str] = []
        self._color = color or s.cyan
        self._pad = " " * indent
        self._connector = connector
        self._timer = timer
        self._collapse_on_done = collapse_on_done

        if self._interactive:
            self._begin()
        else:
            self._write_static(f"{self._pad}{title}")

    @property
    def items(self) -> list[str]:
        return list(self._items)

    def update(self, title: str) -> None:
        """Replace the title; shown on the next tick."""
        if self._frozen:
            return
        self._title = title
        if not self._interactive:
            self._write_static(f"{self._pad}{title}")

    def add(self, line: str) -> None:
        """Append one item and redraw immediately."""
        if self._frozen:
            return
        self._items.append(line)
        if self._interactive:
            self.tick()
        else:
            self._write_static(self._item_line(line, styled=False))

    def body(self, content: str) -> None:
        """Replace all items with the lines of *content*."""
        if self._frozen:
            return
        self._items = content.split("\n")
        if self._interactive:
            self.tick()
        else:
            for line in self._items:
                self._write_static(self._item_line(line, styled=False))

    def _current_message(self) -> str:
        return self._title

    def _item_line(self, item: str, styled: bool = True) -> str:
        connector = s.dim(self._connector) if styled else self._connector
        return f"{self._pad}{connector}  {item}"

    def _timer_suffix(self) -> str:
        if not self._timer:
            return ""
        return s.dim(f" {format_time(self.elapsed_ms)}")

    def _build_lines(self) -> list[str]:
        icon = self._color(self._frames[self._frame_index % len(self._frames)])
        lines = [f"{self._pad}{icon} {self._title}{self._timer_suffix()}"]
        lines.extend(self._item_line(item) for item in self._items)
        return lines

    def _build_final_lines(self, icon: str, message: str, color: ColorFn) -> list[str]:
        self._title = message
        lines = [f"{self._pad}{color(icon)} {message}{self._timer_suffix()}"]
        if not self._collapse_on_done:
            lines.extend(self._item_line(item) for item in self._items)
        return lines

    def _static_final_line(self, icon: str, message: str) -> str:
        return f"{self._pad}{icon} {message}"


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------


def activity(text: str, **options) -> Activity:
    """Create and start an :class:`Activity`."""
    return Activity(text, **options)


def section(title: str, **options) -> Section:
    """Create and start a :class:`Section`."""
    return Section(title, **options)


def create_live_region(
    kind: Literal["single-line", "multi-line"],
    text: str,
    **options,
) -> LiveRegion:
    """Create a live region of the given *kind*."""
    if kind == "single-line":
        return Activity(text, **options)
    if kind == "multi-line":
        return Section(text, **options)
    raise ValueError(f"unknown live region kind: {kind!r}")
