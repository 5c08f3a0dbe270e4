"""Inline timers: a stopwatch that logs laps and a live countdown."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from prism.live import ColorFn, Footer, LiveRegion, format_time
from prism.style import s
from prism.terminal import Terminal, get_terminal


@dataclass(frozen=True)
class Reading:
    """A stopwatch reading in whole milliseconds."""

    ms: int
    formatted: str


class Stopwatch:
    """Measures time from creation; ``lap`` and ``done`` also print a line.

    ::

        ⏱ build
          ⏱ compile 1.2s
        ⏱ build 3.4s
    """

    def __init__(
        self,
        label: str | None = None,
        *,
        terminal: Terminal | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._terminal = terminal or get_terminal()
        self._label = label
        self._clock = clock
        self._start = clock()
        self._stopped_at: float | None = None
        self.laps: list[tuple[str, int]] = []
        if label:
            self._terminal.write(f"{s.dim('⏱')} {label}\n")

    def elapsed(self) -> Reading:
        end = self._clock() if self._stopped_at is None else self._stopped_at
        ms = round((end - self._start) * 1000)
        return Reading(ms, format_time(ms))

    def stop(self) -> Reading:
        """Freeze the reading; later calls report the same time."""
        if self._stopped_at is None:
            self._stopped_at = self._clock()
        return self.elapsed()

    def done(self, message: str | None = None) -> Reading:
        reading = self.stop()
        display = message or self._label or "Done"
        self._terminal.write(f"{s.green('⏱')} {display} {s.dim(reading.formatted)}\n")
        return reading

    def lap(self, label: str | None = None) -> Reading:
        reading = self.elapsed()
        display = label or f"lap {len(self.laps) + 1}"
        self.laps.append((display, reading.ms))
        self._terminal.write(f"  {s.dim('⏱')} {display} {s.dim(reading.formatted)}\n")
        return reading


def stopwatch(label: str | None = None, *, terminal: Terminal | None = None) -> Stopwatch:
    return Stopwatch(label, terminal=terminal)


class Countdown(LiveRegion):
    """Live remaining-time line that counts down to zero::

        ⏳ Retrying in 4.0s

    Reaching zero freezes it as ``✓ <label> complete`` and calls
    *on_complete*; ``cancel`` freezes it as ``⏹ <label> cancelled``. On a
    non-interactive terminal only the final line is written.
    """

    def __init__(
        self,
        seconds: float,
        label: str = "",
        *,
        interval_ms: int = 1000,
        color: ColorFn | None = None,
        on_complete: Callable[[], None] | None = None,
        footer: Footer | None = None,
        terminal: Terminal | None = None,
        tty: bool | None = None,
    ) -> None:
        super().__init__(interval_ms=interval_ms, footer=footer, terminal=terminal, tty=tty)
        self._label = label
        self._step_ms = interval_ms
        self._remaining_ms = round(seconds * 1000)
        self._color = color or s.yellow
        self._on_complete = on_complete

        if self._remaining_ms <= 0:
            self._complete()
        elif self._interactive:
            self._begin()
        else:
            self._schedule_next()

    @property
    def remaining_ms(self) -> int:
        return max(0, self._remaining_ms)

    def cancel(self) -> None:
        self._end("⏹", self._noted("cancelled"), s.dim)

    def _noted(self, note: str) -> str:
        return f"{self._label} {s.dim(note)}" if self._label else s.dim(note)

    def _complete(self) -> None:
        if self._frozen:
            return
        self._end("✓", self._noted("complete"), s.green)
        if self._on_complete is not None:
            self._on_complete()

    def _on_timer(self) -> None:
        self._timer_handle = None
        if self._frozen:
            return
        self._remaining_ms -= self._step_ms
        if self._remaining_ms <= 0:
            self._complete()
            return
        self.tick()
        self._schedule_next()

    def _current_message(self) -> str:
        return self._label

    def _build_lines(self) -> list[str]:
        parts = [self._color("⏳"), self._label, s.bold(format_time(self.remaining_ms))]
        return [" ".join(part for part in parts if part)]

    def _build_final_lines(self, icon: str, message: str, color: ColorFn) -> list[str]:
        return [f"{color(icon)} {message}"]


def countdown(seconds: float, label: str = "", **options) -> Countdown:
    """Start a :class:`Countdown`; needs a running event loop to advance."""
    return Countdown(seconds, label, **options)
