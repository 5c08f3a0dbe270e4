"""One-shot prompts: confirm, free text, password, single and multiple choice.

Each prompt draws a ``?`` question line, reads keys until it has an answer,
then rewrites itself as a ``✓`` line holding the answer. Choice lists redraw
in place with the cursor hidden and scroll through a fixed-size window.

Ctrl+C abandons a prompt: the line is closed off and :class:`Cancelled`
propagates to the caller. When the terminal is not interactive every prompt
prints its question once and returns its default without reading input.
"""

from __future__ import annotations

from typing import Callable, TypeVar, Union

from prism.cancel import Cancelled
from prism.cursor import CLEAR_LINE, CR
from prism.keys import Key, KeyEvent, matches, parse_key
from prism.live import Block
from prism.style import s
from prism.terminal import Terminal, get_terminal, read_until
from prism.visibility import cursor_guard

T = TypeVar("T")
ValidateFn = Callable[[str], Union[str, bool, None]]

DEFAULT_PAGE_SIZE = 7
PASSWORD_MASK = "●"


def _question(message: str) -> str:
    return f"{s.cyan('?')} {message}"


def _answered(message: str, answer: str) -> str:
    return f"{s.green('✓')} {message} {s.dim(answer)}"


def _is_interrupt(event: KeyEvent) -> bool:
    return matches(event, "c", ctrl=True)


def _typed_text(event: KeyEvent) -> str:
    """Printable text carried by *event*, with pasted line breaks removed."""
    if not event.is_printable or event.literal.startswith("\x1b") or event.literal[0] < " ":
        return ""
    return event.literal.replace("\r", "").replace("\n", "")


# ---------------------------------------------------------------------------
# Yes / no
# ---------------------------------------------------------------------------


async def confirm(
    message: str,
    *,
    default: bool | None = None,
    terminal: Terminal | None = None,
) -> bool:
    """Ask a yes/no question; Enter takes *default* (``False`` when unset)."""
    terminal = terminal or get_terminal()
    hint = s.dim(" (Y/n)" if default is True else " (y/N)")
    terminal.write(f"{_question(message)}{hint} ")

    if not terminal.is_tty:
        terminal.write("\n")
        return bool(default)

    def answer(value: bool) -> bool:
        terminal.write(f"{CR}{CLEAR_LINE}{_answered(message, 'yes' if value else 'no')}\n")
        return value

    def on_data(data: str) -> bool | None:
        event = parse_key(data)
        if _is_interrupt(event):
            terminal.write("\n")
            raise Cancelled("confirm cancelled")
        if matches(event, Key.enter):
            return answer(bool(default))
        if event.is_printable and event.literal.lower() in ("y", "n"):
            return answer(event.literal.lower() == "y")
        return None

    return await read_until(terminal, on_data)


# ---------------------------------------------------------------------------
# Free text
# ---------------------------------------------------------------------------


class _TextPrompt:
    """A single answer line; characters append, Backspace and Ctrl+U erase."""

    def __init__(
        self,
        message: str,
        terminal: Terminal,
        *,
        default: str = "",
        placeholder: str = "",
        validate: ValidateFn | None = None,
        mask: str | None = None,
    ) -> None:
        self._message = message
        self._terminal = terminal
        self._default = default
        self._placeholder = placeholder
        self._validate = validate
        self._mask = mask
        self.value = ""
        self.error: str | None = None

    def _display(self, value: str) -> str:
        if self._mask is None:
            return value
        return s.dim(self._mask * len(value)) if value else ""

    def render(self) -> None:
        if self.error is not None:
            line = f"{s.red('✗')} {self._message} {s.red(self.error)}"
        else:
            hint = s.dim(f" ({self._default})") if self._default else ""
            shown = self._display(self.value) if self.value else s.dim(self._placeholder)
            line = f"{_question(self._message)}{hint} {shown}"
        self._terminal.write(f"{CR}{CLEAR_LINE}{line}")

    def handle_input(self, data: str) -> str | None:
        event = parse_key(data)
        if _is_interrupt(event):
            self._terminal.write("\n")
            raise Cancelled("prompt cancelled")

        self.error = None
        if matches(event, Key.enter):
            result = self.value or self._default
            problem = self._validate(result) if self._validate is not None else None
            if isinstance(problem, str):
                self.error = problem
                self.render()
                return None
            shown = self._mask * len(result) if self._mask is not None else result
            self._terminal.write(f"{CR}{CLEAR_LINE}{_answered(self._message, shown)}\n")
            return result

        if matches(event, Key.backspace):
            self.value = self.value[:-1]
        elif matches(event, "u", ctrl=True):
            self.value = ""
        else:
            self.value += _typed_text(event)
        self.render()
        return None


async def ask(
    message: str,
    *,
    default: str = "",
    placeholder: str = "",
    validate: ValidateFn | None = None,
    terminal: Terminal | None = None,
) -> str:
    """Read a line of free text.

    An empty answer falls back to *default*. *validate* receives the answer
    and returns an error message to reject it; the message is shown in
    place of the prompt until the next key.
    """
    terminal = terminal or get_terminal()
    if not terminal.is_tty:
        hint = s.dim(f" ({default})") if default else ""
        terminal.write(f"{_question(message)}{hint}\n")
        return default

    prompt = _TextPrompt(message, terminal, default=default, placeholder=placeholder, validate=validate)
    prompt.render()
    return await read_until(terminal, prompt.handle_input)


async def password(message: str, *, terminal: Terminal | None = None) -> str:
    """Read a secret; each character is echoed as a dot."""
    terminal = terminal or get_terminal()
    if not terminal.is_tty:
        terminal.write(f"{_question(message)}\n")
        return ""

    prompt = _TextPrompt(message, terminal, mask=PASSWORD_MASK)
    prompt.render()
    return await read_until(terminal, prompt.handle_input)


# ---------------------------------------------------------------------------
# Choice lists
# ---------------------------------------------------------------------------


class _ChoiceList:
    """Highlighted position in a list, shown through a scrolling window."""

    def __init__(self, choices: list[str], page_size: int) -> None:
        if not choices:
            raise ValueError("a choice prompt needs at least one choice")
        self.choices = choices
        self.page_size = max(1, page_size)
        self.index = 0

    @property
    def current(self) -> str:
        return self.choices[self.index]

    @property
    def paged(self) -> bool:
        return len(self.choices) > self.page_size

    def move(self, delta: int) -> None:
        self.index = (self.index + delta) % len(self.choices)

    def window(self) -> range:
        """Indices of the visible rows, keeping the highlight near the middle."""
        count = len(self.choices)
        start = max(0, min(self.index - self.page_size // 2, count - self.page_size))
        return range(start, min(start + self.page_size, count))

    def handle_navigation(self, event: KeyEvent) -> bool:
        if matches(event, Key.up) or matches(event, "k"):
            self.move(-1)
        elif matches(event, Key.down) or matches(event, "j"):
            self.move(1)
        else:
            return False
        return True


async def _run_menu(
    terminal: Terminal,
    block: Block,
    render: Callable[[], list[str]],
    on_data: Callable[[str], T | None],
) -> T:
    cursor_guard.acquire(terminal)
    try:
        block.render(render())
        return await read_until(terminal, on_data)
    finally:
        cursor_guard.release()


async def select(
    message: str,
    choices: list[str],
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    terminal: Terminal | None = None,
) -> str:
    """Pick one of *choices* with the arrow keys (or ``j``/``k``) and Enter."""
    terminal = terminal or get_terminal()
    menu = _ChoiceList(choices, page_size)
    if not terminal.is_tty:
        terminal.write(f"{_question(message)}\n")
        return menu.current

    block = Block(terminal)

    def render() -> list[str]:
        lines = [f"{_question(message)} {s.dim('(↑/↓ to navigate, enter to select)')}"]
        for i in menu.window():
            if i == menu.index:
                lines.append(f"  {s.cyan('›')} {s.bold(choices[i])}")
            else:
                lines.append(f"    {s.dim(choices[i])}")
        if menu.paged:
            lines.append(s.dim(f"  ({menu.index + 1}/{len(choices)})"))
        return lines

    def on_data(data: str) -> str | None:
        event = parse_key(data)
        if _is_interrupt(event):
            block.freeze([])
            raise Cancelled("select cancelled")
        if matches(event, Key.enter):
            block.freeze([_answered(message, menu.current)])
            return menu.current
        if menu.handle_navigation(event):
            block.render(render())
        return None

    return await _run_menu(terminal, block, render, on_data)


async def multiselect(
    message: str,
    choices: list[str],
    *,
    minimum: int = 0,
    maximum: int | None = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    terminal: Terminal | None = None,
) -> list[str]:
    """Pick any number of *choices*; Space toggles, ``a`` toggles all.

    Enter is refused until at least *minimum* choices are picked, and no
    more than *maximum* can be picked. Picks are returned in list order.
    """
    terminal = terminal or get_terminal()
    menu = _ChoiceList(choices, page_size)
    if not terminal.is_tty:
        terminal.write(f"{_question(message)}\n")
        return []

    limit = len(choices) if maximum is None else maximum
    picked: set[int] = set()
    warning: list[str] = []
    block = Block(terminal)

    def render() -> list[str]:
        lines = [f"{_question(message)} {s.dim('(space to toggle, a for all, enter to confirm)')}"]
        for i in menu.window():
            pointer = s.cyan("›") if i == menu.index else " "
            checkbox = s.green("◉") if i in picked else s.dim("○")
            label = s.bold(choices[i]) if i == menu.index else choices[i]
            lines.append(f"  {pointer} {checkbox} {label}")
        if menu.paged:
            lines.append(s.dim(f"  ({menu.index + 1}/{len(choices)}, {len(picked)} selected)"))
        lines.extend(warning)
        return lines

    def on_data(data: str) -> list[str] | None:
        event = parse_key(data)
        if _is_interrupt(event):
            block.freeze([])
            raise Cancelled("multiselect cancelled")

        warning.clear()
        if matches(event, Key.enter):
            if len(picked) >= minimum:
                result = [choices[i] for i in sorted(picked)]
                block.freeze([_answered(message, ", ".join(result))])
                return result
            warning.append(s.red(f"  ✗ pick at least {minimum}"))
        elif matches(event, Key.space):
            if menu.index in picked:
                picked.discard(menu.index)
            elif len(picked) < limit:
                picked.add(menu.index)
        elif matches(event, "a"):
            full = len(picked) == min(limit, len(choices))
            picked.clear()
            if not full:
                picked.update(range(min(limit, len(choices))))
        elif not menu.handle_navigation(event):
            return None
        block.render(render())
        return None

    return await _run_menu(terminal, block, render, on_data)
