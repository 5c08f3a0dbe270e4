"""Two-zone layout: scrolling output above, a pinned active zone below.

The active zone is drawn by a renderer callable and redrawn in place;
everything passed to :meth:`Layout.print` or :meth:`Layout.write` lands in
normal scrollback above it. Every change follows the same protocol: erase
the active zone, write the new output, redraw the active zone, all in a
single terminal write.

Live regions created through :meth:`Layout.activity` and
:meth:`Layout.section` take over the active zone as their footer: the zone
is erased, the region draws it beneath its own animation on every tick, and
when the region freezes the layout redraws the zone in its normal place.
"""

from __future__ import annotations

import atexit
import logging
from dataclasses import dataclass
from typing import Callable, Sequence, TypeVar, Union

from prism.cursor import CLEAR_TO_END, CR, cursor_up, line_rows, move_to
from prism.editor import Action, RenderRequest
from prism.live import Activity, Footer, LiveRegion, Section
from prism.stream import Stream
from prism.terminal import Terminal, get_terminal

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=LiveRegion)


@dataclass
class ActiveFrame:
    """What an active-zone renderer draws.

    ``cursor`` is ``(line_index, column)`` within ``lines``; the column may
    exceed the terminal width, in which case it lands on a wrapped row of
    that line. Without a cursor it rests below the last line.
    """

    lines: list[str]
    cursor: tuple[int, int] | None = None


RenderResult = Union[ActiveFrame, Sequence[str]]
Renderer = Callable[[], RenderResult]


def _as_frame(result: RenderResult) -> ActiveFrame:
    if isinstance(result, ActiveFrame):
        return result
    return ActiveFrame(list(result))


class Layout:
    """Coordinates the output zone and the pinned active zone.

    Once closed every method is a no-op, except the live-region and stream
    constructors, which fall back to plain unmanaged output.
    """

    def __init__(
        self,
        terminal: Terminal | None = None,
        on_close: Callable[[], None] | None = None,
        tty: bool | None = None,
    ) -> None:
        self._terminal = terminal or get_terminal()
        self._interactive = self._terminal.is_tty if tty is None else tty
        self._on_close = on_close

        self._renderer: Renderer | None = None
        self._prev_height = 0
        self._prev_cursor_row = 0
        self._write_buffer = ""
        self._closed = False
        self._live_depth = 0
        self._live_regions: list[LiveRegion] = []

        if self._interactive:
            atexit.register(self._erase_on_exit)

    # -- properties ---------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def interactive(self) -> bool:
        return self._interactive

    @property
    def live_depth(self) -> int:
        """Number of live regions currently drawing the active zone."""
        return self._live_depth

    @property
    def height(self) -> int:
        """Rows the active zone occupied when it was last drawn."""
        return self._prev_height

    # -- drawing --------------------------------------------------------------

    def _erase_sequence(self) -> str:
        if self._prev_height == 0:
            return ""
        return cursor_up(self._prev_cursor_row) + CR + CLEAR_TO_END

    def _draw_sequence(self) -> tuple[str, int, int]:
        """Render the active zone; returns ``(output, height, cursor_row)``."""
        if self._renderer is None:
            return "", 0, 0
        frame = _as_frame(self._renderer())
        columns = self._terminal.columns

        out = [f"{line}\n" for line in frame.lines]
        rows = [line_rows(line, columns) for line in frame.lines]
        height = sum(rows)

        if frame.cursor is None or not frame.lines:
            return "".join(out), height, height

        line_index, col = frame.cursor
        line_index = max(0, min(line_index, len(frame.lines) - 1))
        if columns > 0:
            sub_row, col = divmod(col, columns)
        else:
            sub_row = 0
        cursor_row = sum(rows[:line_index]) + sub_row
        out.append(move_to(height, 0, cursor_row, col))
        return "".join(out), height, cursor_row

    def _redraw(self, output: str = "") -> None:
        """Erase the active zone, write *output*, then draw the zone again."""
        drawn, height, cursor_row = self._draw_sequence()
        data = self._erase_sequence() + output + drawn
        if data:
            self._terminal.write(data)
        self._prev_height = height
        self._prev_cursor_row = cursor_row

    def _erase(self) -> None:
        erase = self._erase_sequence()
        if erase:
            self._terminal.write(erase)
        self.reset_tracking()

    def reset_tracking(self) -> None:
        """Forget the drawn active zone (after the screen was cleared)."""
        self._prev_height = 0
        self._prev_cursor_row = 0

    def _erase_on_exit(self) -> None:
        if self._prev_height > 0:
            self._terminal.write(self._erase_sequence())

    # -- active zone ----------------------------------------------------------

    def set_active(self, renderer: Renderer | None) -> None:
        """Install *renderer* and draw it; ``None`` erases the active zone.

        While a live region owns the zone only the renderer is swapped; the
        region draws the new one on its next tick.
        """
        if self._closed or not self._interactive:
            return
        if self._live_depth > 0:
            self._renderer = renderer
            return
        if renderer is None:
            self._erase()
            self._renderer = None
            return
        self._renderer = renderer
        self._redraw()

    def refresh(self) -> None:
        """Redraw the active zone with the current renderer."""
        if self._closed or not self._interactive or self._renderer is None:
            return
        if self._live_depth > 0:
            return
        self._redraw()

    # -- output zone ----------------------------------------------------------

    def print(self, text: str) -> None:
        """Write *text* and a newline into scrollback above the active zone."""
        if self._closed:
            return
        if not self._interactive:
            self._terminal.write(f"{text}\n")
            return
        if self._live_depth > 0 and self._live_regions:
            self._live_regions[-1].print_above(text)
            return
        self._redraw(f"{text}\n")

    def write(self, data: str) -> None:
        """Stream *data*; complete lines are printed, the remainder is held."""
        if self._closed or not data:
            return
        if not self._interactive:
            self._terminal.write(data)
            return

        self._write_buffer += data
        last_newline = self._write_buffer.rfind("\n")
        if last_newline == -1:
            return
        complete = self._write_buffer[:last_newline]
        self._write_buffer = self._write_buffer[last_newline + 1 :]
        self.print(complete)

    def close(self, message: str | None = None) -> None:
        """Erase the active zone for good and write an optional last line."""
        if self._closed:
            return
        self._closed = True

        if self._interactive:
            self._terminal.write(self._erase_sequence() + (f"{message}\n" if message else ""))
            atexit.unregister(self._erase_on_exit)
        elif message:
            self._terminal.write(f"{message}\n")

        self.reset_tracking()
        self._renderer = None
        self._write_buffer = ""
        logger.debug("layout closed")

        if self._on_close is not None:
            self._on_close()

    # -- live regions ---------------------------------------------------------

    def _create_footer(self) -> Footer:
        self._erase()
        self._live_depth += 1

        def render() -> list[str]:
            if self._renderer is None:
                return []
            return _as_frame(self._renderer()).lines

        def on_end() -> None:
            self._live_depth -= 1
            self._live_regions = [r for r in self._live_regions if not r.frozen]
            if self._live_depth == 0 and not self._closed:
                self._redraw()

        return Footer(render=render, on_end=on_end)

    def _managed(self) -> bool:
        return self._interactive and not self._closed

    def activity(self, text: str, **options) -> Activity:
        """Start an :class:`Activity` drawn above the active zone."""
        if not self._managed():
            if not self._interactive:
                options.setdefault("tty", False)
            return Activity(text, terminal=self._terminal, **options)
        return self._start_managed(
            lambda footer: Activity(text, footer=footer, terminal=self._terminal, tty=True, **options)
        )

    def section(self, title: str, **options) -> Section:
        """Start a :class:`Section` drawn above the active zone."""
        if not self._managed():
            if not self._interactive:
                options.setdefault("tty", False)
            return Section(title, terminal=self._terminal, **options)
        return self._start_managed(
            lambda footer: Section(title, footer=footer, terminal=self._terminal, tty=True, **options)
        )

    def _start_managed(self, create: Callable[[Footer], R]) -> R:
        footer = self._create_footer()
        try:
            region = create(footer)
        except Exception:
            # The region never started, so it will never end the footer
            self._live_depth -= 1
            if self._live_depth == 0:
                self._redraw()
            raise
        if not region.frozen:
            self._live_regions.append(region)
        return region

    def stream(self, **options) -> Stream:
        """Create a :class:`Stream` whose lines are printed through this layout."""
        if self._closed:
            return Stream(terminal=self._terminal, **options)
        return Stream(layout=self, terminal=self._terminal, tty=self._interactive, **options)


def create_layout(
    terminal: Terminal | None = None,
    on_close: Callable[[], None] | None = None,
    tty: bool | None = None,
) -> Layout:
    return Layout(terminal=terminal, on_close=on_close, tty=tty)


# ---------------------------------------------------------------------------
# Editor integration
# ---------------------------------------------------------------------------


class LayoutRenderStrategy:
    """Draws an input line inside a layout's active zone.

    The zone shows the ``above`` lines, the prompt line and the ``below``
    lines; only the prompt line is editable. When the input resolves the
    whole zone is erased rather than frozen, and a submitted line is printed
    to scrollback as prompt plus text.
    """

    def __init__(
        self,
        layout: Layout,
        above: Sequence[Callable[[], str]] = (),
        below: Sequence[Callable[[], str]] = (),
    ) -> None:
        self._layout = layout
        self._above = list(above)
        self._below = list(below)
        self._request: RenderRequest | None = None

    def frame(self) -> ActiveFrame:
        above = [fn() for fn in self._above]
        below = [fn() for fn in self._below]
        request = self._request
        if request is None:
            return ActiveFrame(above + below)
        cursor = (len(above), request.prompt_width + request.before_cursor_width)
        return ActiveFrame(above + [request.line] + below, cursor)

    def render(self, request: RenderRequest) -> None:
        self._request = request
        self._layout.set_active(self.frame)

    def finish(self, action: Action, request: RenderRequest) -> None:
        self._request = None
        self._layout.set_active(None)
        if action == "submit" and request.visible_text.strip():
            self._layout.print(request.prompt_text + request.visible_text)

    def reset(self) -> None:
        self._layout.reset_tracking()
