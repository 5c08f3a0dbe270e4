"""Line editor: an editable input line with history and completion.

An :class:`InputSession` owns the buffer, the cursor and the history
position, and reacts to :class:`prism.keys.KeyEvent` values. It never
writes to the terminal itself: every redraw becomes a
:class:`RenderRequest` handed to a :class:`RenderStrategy`. The default
strategy draws the prompt line in place, wrapping at the terminal width;
:class:`prism.layout.LayoutRenderStrategy` instead feeds the request into a
layout's pinned zone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Literal, Protocol, Union

from prism.cursor import CLEAR_TO_END, CR, cursor_down, cursor_up, move_to, target_position, visual_rows
from prism.keys import Key, KeyEvent, matches, parse_key
from prism.style import s
from prism.terminal import Terminal, get_terminal, read_until
from prism.utils import visible_width

logger = logging.getLogger(__name__)

PromptFn = Union[str, Callable[[], str]]
CompletionFn = Callable[[str, str], list[str]]
Action = Literal["submit", "cancel", "eof"]

MAX_HINT_CANDIDATES = 8
DEFAULT_HISTORY_SIZE = 500


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


class History:
    """Bounded most-recent-first list of submitted lines.

    Blank lines and repeats of the most recent entry are not recorded.
    """

    def __init__(self, max_size: int = DEFAULT_HISTORY_SIZE, entries: list[str] | None = None) -> None:
        self.max_size = max_size
        self._entries: list[str] = list(entries or [])[:max_size]

    def push(self, entry: str) -> bool:
        """Record *entry*; returns ``False`` if it was skipped."""
        if not entry.strip():
            return False
        if self._entries and self._entries[0] == entry:
            return False
        self._entries.insert(0, entry)
        del self._entries[self.max_size :]
        return True

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> str:
        return self._entries[index]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)


# ---------------------------------------------------------------------------
# Options / results
# ---------------------------------------------------------------------------


@dataclass
class InputOptions:
    prompt: PromptFn = ""
    initial: str = ""
    history: History | None = None
    completion: CompletionFn | None = None
    mask: str | None = None
    prompt_color: Callable[[str], str] | None = None
    # Ctrl+C on a non-empty line clears it instead of resolving
    clear_on_cancel: bool = False
    strategy: RenderStrategy | None = None


@dataclass(frozen=True)
class InputResult:
    action: Action
    value: str = ""


@dataclass(frozen=True)
class RenderRequest:
    """Snapshot of everything needed to draw the input line.

    ``prompt_text`` is already styled; ``prompt_width`` is its visible width.
    ``cursor_index`` indexes into ``visible_text`` (which is masked when a
    mask character is configured).
    """

    visible_text: str
    cursor_index: int
    prompt_text: str
    prompt_width: int
    hint: str | None = None

    @property
    def before_cursor_width(self) -> int:
        return visible_width(self.visible_text[: self.cursor_index])

    @property
    def hint_text(self) -> str:
        return s.dim(f"  {self.hint}") if self.hint else ""

    @property
    def line(self) -> str:
        return self.prompt_text + self.visible_text + self.hint_text

    @property
    def total_width(self) -> int:
        hint_width = visible_width(f"  {self.hint}") if self.hint else 0
        return self.prompt_width + visible_width(self.visible_text) + hint_width


# ---------------------------------------------------------------------------
# Render strategies
# ---------------------------------------------------------------------------


class RenderStrategy(Protocol):
    """Low-level drawing step of an input session."""

    def render(self, request: RenderRequest) -> None:
        """Erase the previous drawing and draw *request*."""
        ...

    def finish(self, action: Action, request: RenderRequest) -> None:
        """Leave the drawing in its final state when the line resolves."""
        ...

    def reset(self) -> None:
        """Forget the previous drawing (the screen was cleared)."""
        ...


class DefaultRenderStrategy:
    """Draws the prompt line directly on the terminal.

    ``_cursor_row`` is the row within the drawn block where the cursor was
    left; the next erase moves up exactly that many rows, so it is updated
    only after a complete draw.
    """

    def __init__(self, terminal: Terminal) -> None:
        self._terminal = terminal
        self._cursor_row = 0
        self._rows = 1

    def render(self, request: RenderRequest) -> None:
        columns = self._terminal.columns
        content_rows = visual_rows(request.total_width, columns)
        row, col = target_position(request.prompt_width, request.before_cursor_width, columns)
        # A cursor at an exact multiple of the width sits on a row of its own
        num_rows = max(content_rows, row + 1)

        out = [
            cursor_up(self._cursor_row),
            CR + CLEAR_TO_END,
            request.line,
            "\n" * (num_rows - content_rows),
            move_to(num_rows - 1, 0, row, col),
        ]
        self._terminal.write("".join(out))
        self._cursor_row = row
        self._rows = num_rows

    def finish(self, action: Action, request: RenderRequest) -> None:
        self._terminal.write(cursor_down(self._rows - 1 - self._cursor_row) + "\r\n")
        self.reset()

    def reset(self) -> None:
        self._cursor_row = 0
        self._rows = 1


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def resolve_prompt(prompt: PromptFn) -> str:
    return prompt() if callable(prompt) else prompt


def word_at_cursor(buffer: str, cursor: int) -> tuple[str, int]:
    """The space-delimited word ending at *cursor* and its start index."""
    start = cursor
    while start > 0 and buffer[start - 1] != " ":
        start -= 1
    return buffer[start:cursor], start


def common_prefix(strings: list[str]) -> str:
    """Longest common prefix of *strings*."""
    if not strings:
        return ""
    prefix = strings[0]
    for candidate in strings[1:]:
        while not candidate.startswith(prefix):
            prefix = prefix[:-1]
            if not prefix:
                return ""
    return prefix


def format_candidates(candidates: list[str], limit: int = MAX_HINT_CANDIDATES) -> str:
    hint = ", ".join(candidates[:limit])
    if len(candidates) > limit:
        hint += f", +{len(candidates) - limit} more"
    return hint


# ---------------------------------------------------------------------------
# InputSession
# ---------------------------------------------------------------------------


class InputSession:
    """State machine behind one prompt; see the module docstring.

    Feed raw chunks to :meth:`handle_input` (or decoded events to
    :meth:`handle_key`); each returns an :class:`InputResult` once the line
    is submitted, cancelled or closed with end-of-input, else ``None``.
    """

    def __init__(
        self,
        options: InputOptions,
        strategy: RenderStrategy,
        terminal: Terminal | None = None,
    ) -> None:
        self._options = options
        self._strategy = strategy
        self._terminal = terminal or get_terminal()
        self._prompt_color = options.prompt_color or s.cyan

        self.buffer: str = options.initial
        self.cursor: int = len(self.buffer)
        self.result: InputResult | None = None

        self._history = options.history
        self._history_index = -1
        self._saved_draft = ""

    # -- rendering ------------------------------------------------------------

    def request(self, hint: str | None = None) -> RenderRequest:
        prompt = resolve_prompt(self._options.prompt)
        mask = self._options.mask
        if mask:
            visible, cursor_index = mask * len(self.buffer), len(mask) * self.cursor
        else:
            visible, cursor_index = self.buffer, self.cursor
        return RenderRequest(
            visible_text=visible,
            cursor_index=cursor_index,
            prompt_text=self._prompt_color(prompt),
            prompt_width=visible_width(prompt),
            hint=hint,
        )

    def render(self, hint: str | None = None) -> None:
        self._strategy.render(self.request(hint))

    # -- cursor movement ------------------------------------------------------

    def move_left(self) -> None:
        if self.cursor > 0:
            self.cursor -= 1

    def move_right(self) -> None:
        if self.cursor < len(self.buffer):
            self.cursor += 1

    def move_home(self) -> None:
        self.cursor = 0

    def move_end(self) -> None:
        self.cursor = len(self.buffer)

    def _word_start(self) -> int:
        pos = self.cursor
        while pos > 0 and self.buffer[pos - 1] == " ":
            pos -= 1
        while pos > 0 and self.buffer[pos - 1] != " ":
            pos -= 1
        return pos

    def _word_end(self) -> int:
        pos = self.cursor
        while pos < len(self.buffer) and self.buffer[pos] != " ":
            pos += 1
        while pos < len(self.buffer) and self.buffer[pos] == " ":
            pos += 1
        return pos

    def word_left(self) -> None:
        self.cursor = self._word_start()

    def word_right(self) -> None:
        self.cursor = self._word_end()

    # -- editing --------------------------------------------------------------

    def insert(self, text: str) -> None:
        self.buffer = self.buffer[: self.cursor] + text + self.buffer[self.cursor :]
        self.cursor += len(text)

    def backspace(self) -> None:
        if self.cursor > 0:
            self.buffer = self.buffer[: self.cursor - 1] + self.buffer[self.cursor :]
            self.cursor -= 1

    def delete_forward(self) -> None:
        if self.cursor < len(self.buffer):
            self.buffer = self.buffer[: self.cursor] + self.buffer[self.cursor + 1 :]

    def delete_word_back(self) -> None:
        start = self._word_start()
        self.buffer = self.buffer[:start] + self.buffer[self.cursor :]
        self.cursor = start

    def delete_word_forward(self) -> None:
        end = self._word_end()
        self.buffer = self.buffer[: self.cursor] + self.buffer[end:]

    def clear_before(self) -> None:
        self.buffer = self.buffer[self.cursor :]
        self.cursor = 0

    def clear_after(self) -> None:
        self.buffer = self.buffer[: self.cursor]

    # -- history --------------------------------------------------------------

    def history_up(self) -> None:
        if not self._history:
            return
        if self._history_index == -1:
            self._saved_draft = self.buffer
        if self._history_index < len(self._history) - 1:
            self._history_index += 1
            self.buffer = self._history[self._history_index]
            self.cursor = len(self.buffer)

    def history_down(self) -> None:
        if self._history is None or self._history_index == -1:
            return
        self._history_index -= 1
        if self._history_index == -1:
            self.buffer = self._saved_draft
        else:
            self.buffer = self._history[self._history_index]
        self.cursor = len(self.buffer)

    # -- completion -----------------------------------------------------------

    def complete(self) -> str | None:
        """Complete the word under the cursor; returns a hint to display.

        One candidate replaces the word. Several candidates insert their
        common prefix when it extends the word, and are listed in the hint.
        """
        if self._options.completion is None:
            return None
        word, start = word_at_cursor(self.buffer, self.cursor)
        candidates = self._options.completion(word, self.buffer)

        if not candidates:
            return None

        if len(candidates) == 1:
            self.buffer = self.buffer[:start] + candidates[0] + self.buffer[self.cursor :]
            self.cursor = start + len(candidates[0])
            return None

        prefix = common_prefix(candidates)
        if len(prefix) > len(word):
            self.buffer = self.buffer[:start] + prefix + self.buffer[self.cursor :]
            self.cursor = start + len(prefix)
        return format_candidates(candidates)

    # -- resolution -----------------------------------------------------------

    def _resolve(self, action: Action) -> InputResult:
        self._strategy.finish(action, self.request())
        self.result = InputResult(action, self.buffer if action == "submit" else "")
        logger.debug("input session resolved: %s", action)
        return self.result

    def _clear_line(self) -> None:
        self._strategy.finish("cancel", self.request())
        self.buffer = ""
        self.cursor = 0
        self._history_index = -1
        self.render()

    # -- key dispatch ---------------------------------------------------------

    def handle_input(self, data: str) -> InputResult | None:
        return self.handle_key(parse_key(data))

    def handle_key(self, event: KeyEvent) -> InputResult | None:  # noqa: C901
        if self.result is not None:
            return self.result

        if matches(event, Key.enter):
            if self._history is not None:
                self._history.push(self.buffer)
            return self._resolve("submit")

        if matches(event, "c", ctrl=True):
            if self._options.clear_on_cancel and self.buffer:
                self._clear_line()
                return None
            return self._resolve("cancel")

        if matches(event, "d", ctrl=True):
            if not self.buffer:
                return self._resolve("eof")
            self.delete_forward()
            self.render()
            return None

        if matches(event, Key.tab):
            if self._options.completion is not None:
                hint = self.complete()
                self.render(hint)
            return None

        if matches(event, "l", ctrl=True):
            self._terminal.clear_screen()
            self._strategy.reset()
            self.render()
            return None

        edit = self._edit_for(event)
        if edit is not None:
            edit()
            self.render()
            return None

        if event.is_printable and not event.literal.startswith("\x1b") and event.literal[0] >= " ":
            # Pasted line breaks flatten to spaces in a single-line editor
            text = event.literal.replace("\r\n", " ").replace("\r", " ").replace("\n", " ")
            self.insert(text)
            self.render()
        return None

    def _edit_for(self, event: KeyEvent) -> Callable[[], None] | None:  # noqa: C901
        name = event.name
        if event.ctrl and not event.meta:
            return {
                "a": self.move_home,
                "e": self.move_end,
                "h": self.backspace,
                "w": self.delete_word_back,
                "u": self.clear_before,
                "k": self.clear_after,
                Key.left: self.word_left,
                Key.right: self.word_right,
            }.get(name)
        if event.meta:
            return {
                "b": self.word_left,
                "f": self.word_right,
                "d": self.delete_word_forward,
                Key.backspace: self.delete_word_back,
            }.get(name)
        return {
            Key.up: self.history_up,
            Key.down: self.history_down,
            Key.left: self.move_left,
            Key.right: self.move_right,
            Key.home: self.move_home,
            Key.end: self.move_end,
            Key.backspace: self.backspace,
            Key.delete: self.delete_forward,
        }.get(name)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


async def start_input_session(
    options: InputOptions,
    terminal: Terminal | None = None,
) -> InputResult:
    """Run one interactive input session until it resolves.

    Only one session may read the terminal at a time.
    """
    terminal = terminal or get_terminal()
    strategy = options.strategy or DefaultRenderStrategy(terminal)
    session = InputSession(options, strategy, terminal)
    session.render()
    # Errors from user callbacks (completion, prompt) end the session
    return await read_until(terminal, session.handle_input)


async def read_line(
    prompt: PromptFn = "",
    *,
    default: str = "",
    history: History | None = None,
    completion: CompletionFn | None = None,
    mask: str | None = None,
    prompt_color: Callable[[str], str] | None = None,
    terminal: Terminal | None = None,
) -> str:
    """Read one line with full editing; ``""`` on cancel or end-of-input.

    When the terminal is not interactive the first line of stdin is used,
    falling back to *default*.
    """
    terminal = terminal or get_terminal()

    if not terminal.is_tty:
        text = resolve_prompt(prompt)
        if text:
            terminal.write(text)
        data = await terminal.read_text()
        first = data.split("\n", 1)[0].strip()
        return first or default

    result = await start_input_session(
        InputOptions(
            prompt=prompt,
            initial=default,
            history=history,
            completion=completion,
            mask=mask,
            prompt_color=prompt_color,
        ),
        terminal,
    )
    return result.value if result.action == "submit" else ""
