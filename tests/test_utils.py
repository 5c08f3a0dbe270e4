"""Tests for prism.utils -- terminal text measurement."""

from __future__ import annotations

from prism.utils import get_segmenter, strip_ansi, visible_width


# ---------------------------------------------------------------------------
# visible_width
# ---------------------------------------------------------------------------


class TestVisibleWidth:
    """Measure the visible terminal width of text."""

    def test_plain_ascii(self) -> None:
        assert visible_width("hello") == 5

    def test_empty_string(self) -> None:
        assert visible_width("") == 0

    def test_ansi_codes_do_not_count(self) -> None:
        assert visible_width("\x1b[1mhi\x1b[0m") == 2

    def test_wide_cjk_characters_count_as_two(self) -> None:
        assert visible_width("世界") == 4

    def test_combining_mark_is_zero_width(self) -> None:
        assert visible_width("é") == 1

    def test_emoji_with_variation_selector(self) -> None:
        assert visible_width("❤️") == 2

    def test_tab_counts_as_three(self) -> None:
        assert visible_width("a\tb") == 5

    def test_osc_hyperlink_is_invisible(self) -> None:
        link = "\x1b]8;;https://example.com\x07site\x1b]8;;\x07"
        assert visible_width(link) == 4

    def test_repeated_measurement_is_stable(self) -> None:
        assert visible_width("日本語") == visible_width("日本語") == 6


# ---------------------------------------------------------------------------
# strip_ansi
# ---------------------------------------------------------------------------


class TestStripAnsi:
    def test_removes_sgr(self) -> None:
        assert strip_ansi("\x1b[31mred\x1b[39m") == "red"

    def test_removes_cursor_movement(self) -> None:
        assert strip_ansi("\x1b[2A\r\x1b[Jdone") == "\rdone"

    def test_plain_text_unchanged(self) -> None:
        assert strip_ansi("plain") == "plain"


# ---------------------------------------------------------------------------
# get_segmenter
# ---------------------------------------------------------------------------


class TestSegmenter:
    def test_combining_sequence_is_one_grapheme(self) -> None:
        assert get_segmenter().segment("éa") == ["é", "a"]

    def test_flag_is_one_grapheme(self) -> None:
        assert get_segmenter().segment("🇯🇵!") == ["🇯🇵", "!"]
