"""Cursor arithmetic: logical text positions to physical terminal rows.

All functions are pure. Widths are column counts as measured by
:func:`prism.utils.visible_width`; a ``columns`` value of zero or less means
the terminal width is unknown and wrapping is ignored.
"""

from __future__ import annotations

import math

from prism.utils import visible_width

# ---------------------------------------------------------------------------
# Escape sequences
# ---------------------------------------------------------------------------

CR = "\r"
CLEAR_LINE = "\x1b[2K"
CLEAR_TO_END = "\x1b[J"
CLEAR_SCREEN = "\x1b[2J\x1b[H"
HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"


def cursor_up(n: int) -> str:
    return f"\x1b[{n}A" if n > 0 else ""


def cursor_down(n: int) -> str:
    return f"\x1b[{n}B" if n > 0 else ""


def cursor_right(n: int) -> str:
    return f"\x1b[{n}C" if n > 0 else ""


# ---------------------------------------------------------------------------
# Row / column math
# ---------------------------------------------------------------------------


def visual_rows(total_width: int, columns: int) -> int:
    """Rows a run of *total_width* columns occupies once wrapped (at least 1)."""
    if columns <= 0:
        return 1
    return max(1, math.ceil(total_width / columns))


def line_rows(line: str, columns: int) -> int:
    """Rows one logical line occupies, measuring its visible width."""
    return visual_rows(visible_width(line), columns)


def target_position(prompt_width: int, before_cursor_width: int, columns: int) -> tuple[int, int]:
    """Map a cursor offset in a wrapped prompt+text run to ``(row, col)``."""
    linear = prompt_width + before_cursor_width
    if columns <= 0:
        return 0, linear
    return linear // columns, linear % columns


def move_to(current_row: int, current_col: int, target_row: int, target_col: int) -> str:
    """Escape sequence moving the cursor from the current cell to the target.

    Only upward and rightward moves are emitted, preceded by a carriage
    return. Targets below the current row must be reached by writing
    newlines, since moving down into unwritten screen space is not portable.
    """
    out: list[str] = []
    if target_row < current_row:
        out.append(cursor_up(current_row - target_row))
    out.append(CR)
    out.append(cursor_right(target_col))
    return "".join(out)
