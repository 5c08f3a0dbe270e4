"""prism: inline terminal input and live rendering without a full-screen UI."""

import logging

# Cancellation
from prism.cancel import Cancelled, CancelState, CancelToken

# Configuration
from prism.config import PrismConfig, colors_enabled, configure_logging, stdout_is_tty

# Cursor arithmetic
from prism.cursor import move_to, target_position, visual_rows

# Line editor
from prism.editor import (
    DefaultRenderStrategy,
    History,
    InputOptions,
    InputResult,
    InputSession,
    RenderRequest,
    RenderStrategy,
    read_line,
    start_input_session,
)

# Keyboard input
from prism.keys import Key, KeyEvent, matches, parse_key

# Two-zone layout
from prism.layout import ActiveFrame, Layout, LayoutRenderStrategy, create_layout

# Live regions
from prism.live import Activity, Footer, LiveRegion, Section, activity, create_live_region, format_time, section

# One-shot prompts
from prism.prompts import ask, confirm, multiselect, password, select

# Prompt loop
from prism.repl import Command, Frame, repl

# Animation frames
from prism.spinners import SPINNERS, SpinnerDef, get_spinner

# Streaming text
from prism.stream import Stream, stream

# Styling
from prism.style import Style, s

# Terminal
from prism.terminal import ProcessTerminal, Terminal, get_terminal, pipe_aware, read_until

# Timers
from prism.timers import Countdown, Reading, Stopwatch, countdown, stopwatch

# Utilities
from prism.utils import get_segmenter, strip_ansi, visible_width

# Cursor visibility
from prism.visibility import CursorGuard, cursor_guard

logging.getLogger("prism").addHandler(logging.NullHandler())

__all__ = [
    # Cancellation
    "CancelState",
    "CancelToken",
    "Cancelled",
    # Configuration
    "PrismConfig",
    "colors_enabled",
    "configure_logging",
    "stdout_is_tty",
    # Cursor arithmetic
    "move_to",
    "target_position",
    "visual_rows",
    # Line editor
    "DefaultRenderStrategy",
    "History",
    "InputOptions",
    "InputResult",
    "InputSession",
    "RenderRequest",
    "RenderStrategy",
    "read_line",
    "start_input_session",
    # Keyboard input
    "Key",
    "KeyEvent",
    "matches",
    "parse_key",
    # Two-zone layout
    "ActiveFrame",
    "Layout",
    "LayoutRenderStrategy",
    "create_layout",
    # Live regions
    "Activity",
    "Footer",
    "LiveRegion",
    "Section",
    "activity",
    "create_live_region",
    "format_time",
    "section",
    # One-shot prompts
    "ask",
    "confirm",
    "multiselect",
    "password",
    "select",
    # Prompt loop
    "Command",
    "Frame",
    "repl",
    # Animation frames
    "SPINNERS",
    "SpinnerDef",
    "get_spinner",
    # Streaming text
    "Stream",
    "stream",
    # Styling
    "Style",
    "s",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    "get_terminal",
    "pipe_aware",
    "read_until",
    # Timers
    "Countdown",
    "Reading",
    "Stopwatch",
    "countdown",
    "stopwatch",
    # Utilities
    "get_segmenter",
    "strip_ansi",
    "visible_width",
    # Cursor visibility
    "CursorGuard",
    "cursor_guard",
]
