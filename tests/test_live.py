"""Tests for prism.live -- activities, sections and footers."""

from __future__ import annotations

import asyncio
import re

import pytest

from prism.live import Activity, Footer, LiveRegion, Section, create_live_region, format_time
from prism.visibility import cursor_guard

from .virtual_terminal import VirtualTerminal

HIDE = "\x1b[?25l"
SHOW = "\x1b[?25h"
CLEAR = "\r\x1b[J"


def UP(n: int) -> str:
    return f"\x1b[{n}A"


class CountingFooter:
    def __init__(self, lines: list[str]) -> None:
        self.lines = lines
        self.ended = 0

    def footer(self) -> Footer:
        return Footer(render=lambda: list(self.lines), on_end=self.on_end)

    def on_end(self) -> None:
        self.ended += 1


# ---------------------------------------------------------------------------
# format_time
# ---------------------------------------------------------------------------


class TestFormatTime:
    @pytest.mark.parametrize(
        "ms, text",
        [(0, "0ms"), (850, "850ms"), (4200, "4.2s"), (185_000, "3m 5s"), (3_720_000, "1h 2m")],
    )
    def test_ranges(self, ms: int, text: str) -> None:
        assert format_time(ms) == text


# ---------------------------------------------------------------------------
# Activity (interactive)
# ---------------------------------------------------------------------------


class TestActivity:
    def test_first_frame_drawn_immediately(self) -> None:
        terminal = VirtualTerminal()
        Activity("Working", terminal=terminal, tty=True)
        assert terminal.output == HIDE + CLEAR + "⠋ Working\n"

    def test_done_freezes_with_check_mark(self) -> None:
        terminal = VirtualTerminal()
        work = Activity("Working", terminal=terminal, tty=True)
        terminal.clear_buffer()
        work.done("Finished")
        assert terminal.output == UP(1) + CLEAR + "✓ Finished\n" + SHOW
        assert work.frozen

    def test_done_defaults_to_current_message(self) -> None:
        terminal = VirtualTerminal()
        work = Activity("Working", terminal=terminal, tty=True)
        work.update("Almost")
        work.fail()
        assert "✗ Almost\n" in terminal.output

    def test_done_twice_writes_once(self) -> None:
        terminal = VirtualTerminal()
        work = Activity("Working", terminal=terminal, tty=True)
        work.done("ok")
        written = terminal.output
        work.done("again")
        work.fail("nope")
        assert terminal.output == written

    def test_tick_advances_frames(self) -> None:
        terminal = VirtualTerminal()
        work = Activity("Working", terminal=terminal, tty=True)
        work.tick()
        assert terminal.output.endswith(UP(1) + CLEAR + "⠙ Working\n")

    def test_static_icon(self) -> None:
        terminal = VirtualTerminal()
        Activity("Waiting", icon="→", terminal=terminal, tty=True)
        assert "→ Waiting\n" in terminal.output

    def test_metrics_shown_while_running_only(self) -> None:
        terminal = VirtualTerminal()
        work = Activity("Copying", metrics=lambda: "3 files", terminal=terminal, tty=True)
        assert "Copying (3 files)\n" in terminal.output
        terminal.clear_buffer()
        work.done()
        assert terminal.output == UP(1) + CLEAR + "✓ Copying\n" + SHOW

    def test_timer_suffix(self) -> None:
        terminal = VirtualTerminal()
        Activity("Timed", timer=True, terminal=terminal, tty=True)
        assert re.search(r"Timed \(\d+ms\)", terminal.output)

    def test_stop_with_custom_icon(self) -> None:
        terminal = VirtualTerminal()
        work = Activity("Working", terminal=terminal, tty=True)
        work.stop("■", "Stopped")
        assert "■ Stopped\n" in terminal.output

    def test_wrapped_line_erases_all_rows(self) -> None:
        terminal = VirtualTerminal(columns=10)
        work = Activity("x" * 15, terminal=terminal, tty=True)
        terminal.clear_buffer()
        work.tick()
        assert terminal.output.startswith(UP(2) + CLEAR)

    @pytest.mark.asyncio
    async def test_timer_ticks_until_frozen(self) -> None:
        terminal = VirtualTerminal()
        work = Activity("Spinning", terminal=terminal, tty=True)
        await asyncio.sleep(0.3)
        assert "⠙ Spinning" in terminal.output
        work.done()
        terminal.clear_buffer()
        await asyncio.sleep(0.2)
        assert terminal.output == ""


# ---------------------------------------------------------------------------
# Footer
# ---------------------------------------------------------------------------


class TestFooter:
    def test_footer_drawn_beneath_content(self) -> None:
        terminal = VirtualTerminal()
        owner = CountingFooter(["---"])
        Activity("Working", footer=owner.footer(), terminal=terminal, tty=True)
        assert terminal.output == HIDE + CLEAR + "⠋ Working\n---\n" + UP(1)

    def test_on_end_fires_exactly_once(self) -> None:
        terminal = VirtualTerminal()
        owner = CountingFooter(["---"])
        work = Activity("Working", footer=owner.footer(), terminal=terminal, tty=True)
        work.done("ok")
        work.done("ok")
        assert owner.ended == 1

    def test_freeze_clears_footer(self) -> None:
        terminal = VirtualTerminal()
        owner = CountingFooter(["---", "status"])
        work = Activity("Working", footer=owner.footer(), terminal=terminal, tty=True)
        terminal.clear_buffer()
        work.done("ok")
        assert terminal.output.startswith(UP(1) + CLEAR + "✓ ok\n")
        assert "---" not in terminal.output

    def test_on_end_fires_in_plain_mode(self) -> None:
        owner = CountingFooter(["---"])
        work = Activity("Working", footer=owner.footer(), terminal=VirtualTerminal(is_tty=False))
        work.done()
        assert owner.ended == 1

    def test_print_above_keeps_animation(self) -> None:
        terminal = VirtualTerminal()
        owner = CountingFooter(["---"])
        work = Activity("Working", footer=owner.footer(), terminal=terminal, tty=True)
        terminal.clear_buffer()
        work.print_above("log line")
        assert terminal.output == UP(1) + CLEAR + "log line\n⠙ Working\n---\n" + UP(1)


# ---------------------------------------------------------------------------
# Cursor visibility across regions
# ---------------------------------------------------------------------------


class TestCursorVisibility:
    def test_overlapping_regions_restore_once(self) -> None:
        terminal = VirtualTerminal()
        first = Activity("one", terminal=terminal, tty=True)
        second = Activity("two", terminal=terminal, tty=True)
        assert cursor_guard.count == 2
        first.done()
        assert terminal.cursor_visible is False
        second.done()
        assert terminal.cursor_visible is True
        assert cursor_guard.count == 0

    def test_plain_mode_never_touches_cursor(self) -> None:
        terminal = VirtualTerminal(is_tty=False)
        Activity("one", terminal=terminal).done()
        assert HIDE not in terminal.output
        assert cursor_guard.count == 0


# ---------------------------------------------------------------------------
# Plain (non-interactive) output
# ---------------------------------------------------------------------------


class TestPlainActivity:
    def test_one_line_per_transition(self) -> None:
        terminal = VirtualTerminal(is_tty=False)
        work = Activity("Start", terminal=terminal)
        work.update("Middle")
        work.done("End")
        assert terminal.output == "Start\nMiddle\n✓ End\n"


# ---------------------------------------------------------------------------
# Section
# ---------------------------------------------------------------------------


class TestSection:
    def test_items_listed_under_title(self) -> None:
        terminal = VirtualTerminal()
        sec = Section("Reading", terminal=terminal, tty=True)
        sec.add("a.py")
        assert terminal.output.endswith(UP(1) + CLEAR + "  ⠙ Reading\n  ⎿  a.py\n")
        assert sec.items == ["a.py"]

    def test_done_keeps_items(self) -> None:
        terminal = VirtualTerminal()
        sec = Section("Reading", terminal=terminal, tty=True)
        sec.add("a.py")
        sec.add("b.py")
        terminal.clear_buffer()
        sec.done("Read 2 files")
        assert terminal.output == UP(3) + CLEAR + "  ✓ Read 2 files\n  ⎿  a.py\n  ⎿  b.py\n" + SHOW

    def test_collapse_on_done(self) -> None:
        terminal = VirtualTerminal()
        sec = Section("Reading", collapse_on_done=True, terminal=terminal, tty=True)
        sec.add("a.py")
        terminal.clear_buffer()
        sec.done()
        assert terminal.output == UP(2) + CLEAR + "  ✓ Reading\n" + SHOW

    def test_body_replaces_items(self) -> None:
        terminal = VirtualTerminal()
        sec = Section("Output", indent=0, connector="|", terminal=terminal, tty=True)
        sec.add("old")
        sec.body("one\ntwo")
        assert sec.items == ["one", "two"]
        assert terminal.output.endswith("⠹ Output\n|  one\n|  two\n")

    def test_add_after_done_is_ignored(self) -> None:
        terminal = VirtualTerminal()
        sec = Section("Reading", terminal=terminal, tty=True)
        sec.done()
        written = terminal.output
        sec.add("late")
        assert terminal.output == written
        assert sec.items == []

    def test_plain_mode(self) -> None:
        terminal = VirtualTerminal(is_tty=False)
        sec = Section("Reading", terminal=terminal)
        sec.add("a.py")
        sec.warn("Partial")
        assert terminal.output == "  Reading\n  ⎿  a.py\n  ⚠ Partial\n"

    def test_plain_mode_update_writes_title(self) -> None:
        terminal = VirtualTerminal(is_tty=False)
        sec = Section("Reading", terminal=terminal)
        sec.update("Reading 2 files")
        sec.done()
        sec.update("ignored")
        assert terminal.output == "  Reading\n  Reading 2 files\n  ✓ Reading 2 files\n"


# ---------------------------------------------------------------------------
# create_live_region
# ---------------------------------------------------------------------------


class TestCreateLiveRegion:
    def test_kinds(self) -> None:
        terminal = VirtualTerminal(is_tty=False)
        assert isinstance(create_live_region("single-line", "a", terminal=terminal), Activity)
        assert isinstance(create_live_region("multi-line", "b", terminal=terminal), Section)

    def test_unknown_kind(self) -> None:
        with pytest.raises(ValueError):
            create_live_region("sideways", "x")  # type: ignore[arg-type]


class TestLiveRegionBase:
    def test_incomplete_subclass_cannot_be_created(self) -> None:
        class Partial(LiveRegion):
            def _current_message(self) -> str:
                return ""

        with pytest.raises(TypeError):
            Partial(interval_ms=80, footer=None, terminal=VirtualTerminal(is_tty=False), tty=False)
