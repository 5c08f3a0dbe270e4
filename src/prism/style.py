"""Composable ANSI styling.

A :class:`Style` is an immutable list of ``(open, close)`` code pairs.
Attribute access returns a new style with one more pair appended, and
calling a style wraps text in all opens followed by the closes in reverse::

    s.bold.red("error")   # "\\x1b[1m\\x1b[31merror\\x1b[39m\\x1b[22m"

Styling is skipped entirely when colours are disabled (piped output or
``NO_COLOR``).
"""

from __future__ import annotations

from dataclasses import dataclass

from prism.config import colors_enabled


def _sgr(code: int | str) -> str:
    return f"\x1b[{code}m"


def _pair(open_code: int | str, close_code: int) -> property:
    def getter(self: Style) -> Style:
        return self.add(_sgr(open_code), _sgr(close_code))

    return property(getter)


@dataclass(frozen=True)
class Style:
    """Immutable style chain; see the module docstring."""

    codes: tuple[tuple[str, str], ...] = ()
    enabled: bool | None = None

    def add(self, open_seq: str, close_seq: str) -> Style:
        return Style(self.codes + ((open_seq, close_seq),), self.enabled)

    def __call__(self, text: str) -> str:
        enabled = colors_enabled() if self.enabled is None else self.enabled
        if not enabled or not self.codes:
            return text
        opens = "".join(o for o, _ in self.codes)
        closes = "".join(c for _, c in reversed(self.codes))
        return f"{opens}{text}{closes}"

    # Modifiers
    bold = _pair(1, 22)
    dim = _pair(2, 22)
    italic = _pair(3, 23)
    underline = _pair(4, 24)
    inverse = _pair(7, 27)
    strikethrough = _pair(9, 29)

    # Foreground colours
    black = _pair(30, 39)
    red = _pair(31, 39)
    green = _pair(32, 39)
    yellow = _pair(33, 39)
    blue = _pair(34, 39)
    magenta = _pair(35, 39)
    cyan = _pair(36, 39)
    white = _pair(37, 39)
    gray = _pair(90, 39)

    # Bright variants
    bright_red = _pair(91, 39)
    bright_green = _pair(92, 39)
    bright_yellow = _pair(93, 39)
    bright_blue = _pair(94, 39)
    bright_magenta = _pair(95, 39)
    bright_cyan = _pair(96, 39)
    bright_white = _pair(97, 39)

    # Background colours
    bg_black = _pair(40, 49)
    bg_red = _pair(41, 49)
    bg_green = _pair(42, 49)
    bg_yellow = _pair(43, 49)
    bg_blue = _pair(44, 49)
    bg_magenta = _pair(45, 49)
    bg_cyan = _pair(46, 49)
    bg_white = _pair(47, 49)

    def fg(self, r: int, g: int, b: int) -> Style:
        """Exact 24-bit foreground colour."""
        return self.add(_sgr(f"38;2;{r};{g};{b}"), _sgr(39))

    def bg(self, r: int, g: int, b: int) -> Style:
        """Exact 24-bit background colour."""
        return self.add(_sgr(f"48;2;{r};{g};{b}"), _sgr(49))

    def forced(self, enabled: bool = True) -> Style:
        """Copy of this style that ignores the environment's colour setting."""
        return Style(self.codes, enabled)


s = Style()
