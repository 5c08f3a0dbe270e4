"""Raw keystroke decoding for terminal applications.

Turns one chunk of stdin data into a :class:`KeyEvent`. Control bytes decode
as ``ctrl+<letter>`` chords, ``ESC <char>`` as a meta (alt) chord, known
escape sequences through :data:`SPECIAL_KEYS`, and anything else passes
through as a literal key. Decoding never fails.
"""

from __future__ import annotations

from dataclasses import dataclass

ESC = "\x1b"

# ---------------------------------------------------------------------------
# Key helper object
# ---------------------------------------------------------------------------


class Key:
    """Named key constants used by :func:`parse_key`."""

    escape = "escape"
    enter = "enter"
    tab = "tab"
    space = "space"
    backspace = "backspace"
    delete = "delete"
    insert = "insert"
    home = "home"
    end = "end"
    page_up = "pageup"
    page_down = "pagedown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"

    f1 = "f1"
    f2 = "f2"
    f3 = "f3"
    f4 = "f4"
    f5 = "f5"
    f6 = "f6"
    f7 = "f7"
    f8 = "f8"
    f9 = "f9"
    f10 = "f10"
    f11 = "f11"
    f12 = "f12"


# ---------------------------------------------------------------------------
# Sequence table
# ---------------------------------------------------------------------------

# sequence -> (name, ctrl)
SPECIAL_KEYS: dict[str, tuple[str, bool]] = {
    "\r": (Key.enter, False),
    "\n": (Key.enter, False),
    "\t": (Key.tab, False),
    "\x7f": (Key.backspace, False),
    ESC: (Key.escape, False),
    " ": (Key.space, False),
    # Arrows
    "\x1b[A": (Key.up, False),
    "\x1b[B": (Key.down, False),
    "\x1b[C": (Key.right, False),
    "\x1b[D": (Key.left, False),
    "\x1bOA": (Key.up, False),
    "\x1bOB": (Key.down, False),
    "\x1bOC": (Key.right, False),
    "\x1bOD": (Key.left, False),
    # Ctrl+arrows (xterm and rxvt flavours)
    "\x1b[1;5A": (Key.up, True),
    "\x1b[1;5B": (Key.down, True),
    "\x1b[1;5C": (Key.right, True),
    "\x1b[1;5D": (Key.left, True),
    "\x1bOc": (Key.right, True),
    "\x1bOd": (Key.left, True),
    # Navigation
    "\x1b[H": (Key.home, False),
    "\x1b[F": (Key.end, False),
    "\x1bOH": (Key.home, False),
    "\x1bOF": (Key.end, False),
    "\x1b[1~": (Key.home, False),
    "\x1b[4~": (Key.end, False),
    "\x1b[2~": (Key.insert, False),
    "\x1b[3~": (Key.delete, False),
    "\x1b[5~": (Key.page_up, False),
    "\x1b[6~": (Key.page_down, False),
    # Function keys
    "\x1bOP": (Key.f1, False),
    "\x1bOQ": (Key.f2, False),
    "\x1bOR": (Key.f3, False),
    "\x1bOS": (Key.f4, False),
    "\x1b[15~": (Key.f5, False),
    "\x1b[17~": (Key.f6, False),
    "\x1b[18~": (Key.f7, False),
    "\x1b[19~": (Key.f8, False),
    "\x1b[20~": (Key.f9, False),
    "\x1b[21~": (Key.f10, False),
    "\x1b[23~": (Key.f11, False),
    "\x1b[24~": (Key.f12, False),
}

# Control bytes whose named meaning wins over the ctrl+<letter> reading.
_NAMED_CONTROL_BYTES = frozenset({"\r", "\n", "\t"})


# ---------------------------------------------------------------------------
# KeyEvent
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyEvent:
    """One decoded input chunk.

    ``literal`` is empty for non-printable keys (arrows, function keys,
    control chords); ``raw_sequence`` always holds the undecoded chunk.
    """

    name: str
    literal: str = ""
    ctrl: bool = False
    shift: bool = False
    meta: bool = False
    raw_sequence: str = ""

    @property
    def is_printable(self) -> bool:
        return bool(self.literal) and not self.ctrl and not self.meta


def _is_control_chord(data: str) -> bool:
    return len(data) == 1 and 1 <= ord(data) <= 26 and data not in _NAMED_CONTROL_BYTES


def _is_meta_chord(data: str) -> bool:
    return len(data) > 1 and data[0] == ESC and data[1] not in ("[", "O")


def _infer_shift(literal: str) -> bool:
    return literal != "" and literal == literal.upper() and literal != literal.lower()


def parse_key(data: str) -> KeyEvent:
    """Decode one raw input chunk into a :class:`KeyEvent`.

    Multi-key chunks (fast typing, pastes) are not split; an unrecognised
    chunk becomes a literal key whose name is the chunk itself.
    """
    if _is_control_chord(data):
        return KeyEvent(
            name=chr(ord(data) + 96),
            ctrl=True,
            raw_sequence=data,
        )

    if _is_meta_chord(data):
        char = data[1]
        # Alt+Backspace arrives as ESC DEL
        if char == "\x7f":
            return KeyEvent(name=Key.backspace, meta=True, raw_sequence=data)
        return KeyEvent(
            name=char,
            literal=char,
            shift=_infer_shift(char),
            meta=True,
            raw_sequence=data,
        )

    special = SPECIAL_KEYS.get(data)
    if special is not None:
        name, ctrl = special
        literal = " " if name == Key.space else ""
        return KeyEvent(name=name, literal=literal, ctrl=ctrl, raw_sequence=data)

    return KeyEvent(
        name=data,
        literal=data,
        shift=_infer_shift(data),
        raw_sequence=data,
    )


def matches(event: KeyEvent, name: str, *, ctrl: bool = False, meta: bool = False) -> bool:
    """Return ``True`` if *event* is *name* with exactly the given modifiers."""
    return event.name == name and event.ctrl == ctrl and event.meta == meta
