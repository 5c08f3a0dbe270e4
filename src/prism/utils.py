"""Text measurement for terminal output.

``visible_width`` reports how many columns a string occupies once printed,
ignoring embedded escape sequences and accounting for wide and zero-width
graphemes. ``strip_ansi`` removes escape sequences for piped output and
``get_segmenter`` splits text into grapheme clusters.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth


# ---------------------------------------------------------------------------
# Escape sequence patterns
# ---------------------------------------------------------------------------

_STRIP_RE = re.compile(
    r"\x1b\[[0-?]*[ -/]*[@-~]"               # CSI (SGR, cursor movement, erase)
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"     # OSC (hyperlinks, titles)
    r"|\x1b[_P^][^\x07\x1b]*(?:\x07|\x1b\\)"  # APC / DCS / PM
    r"|\x1b[@-Z\\-_]"                         # two-byte escapes
)

# ---------------------------------------------------------------------------
# Grapheme segmentation
# ---------------------------------------------------------------------------


class GraphemeSegmenter:
    """Splits text into user-perceived characters."""

    @staticmethod
    def segment(text: str) -> list[str]:
        return list(grapheme.graphemes(text))


_segmenter = GraphemeSegmenter()


def get_segmenter() -> GraphemeSegmenter:
    return _segmenter


# ---------------------------------------------------------------------------
# Width cache
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _remember(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


def strip_ansi(text: str) -> str:
    """Remove terminal escape sequences from *text*."""
    if "\x1b" not in text:
        return text
    return _STRIP_RE.sub("", text)


def _grapheme_width(g: str) -> int:
    """Column width of one grapheme cluster."""
    first = g[0]
    cp = ord(first)
    if cp < 0x20 or 0x7F <= cp <= 0x9F:
        return 0

    if len(g) > 1:
        # VS16, ZWJ sequences, skin tones and flags render as wide emoji
        for ch in g:
            code = ord(ch)
            if code in (0xFE0F, 0x200D) or 0x1F3FB <= code <= 0x1F3FF or 0x1F1E6 <= code <= 0x1F1FF:
                return 2
        category = unicodedata.category(first)
        if category.startswith("M") or category == "Cf":
            return 0

    return max(_wcwidth.wcwidth(first), 0)


def visible_width(text: str) -> int:
    """Return the number of terminal columns *text* occupies.

    Escape sequences are ignored and tabs count as three columns. Pure
    printable ASCII takes a fast path; other strings are measured per
    grapheme and cached.
    """
    if not text:
        return 0

    plain = strip_ansi(text).replace("\t", "   ")
    if not plain:
        return 0

    if plain.isascii() and plain.isprintable():
        return len(plain)

    cached = _width_cache.get(plain)
    if cached is not None:
        return cached

    return _remember(plain, sum(_grapheme_width(g) for g in _segmenter.segment(plain)))
