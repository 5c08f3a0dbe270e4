"""Animation frame catalog for live regions."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SpinnerDef:
    frames: tuple[str, ...]
    interval_ms: int


def _def(frames: str | list[str], interval_ms: int) -> SpinnerDef:
    return SpinnerDef(tuple(frames), interval_ms)


SPINNERS: dict[str, SpinnerDef] = {
    # Classic
    "dots": _def("⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏", 80),
    "dots2": _def("⣾⣽⣻⢿⡿⣟⣯⣷", 80),
    "dots3": _def("⠋⠙⠚⠞⠖⠦⠴⠲⠳⠓", 80),
    "dots4": _def("⠄⠆⠇⠋⠙⠸⠰⠠⠐⠈", 80),
    "line": _def("-\\|/", 130),
    "pipe": _def("┤┘┴└├┌┬┐", 100),
    "simple_dots": _def([".  ", ".. ", "...", "   "], 400),
    "star": _def("✶✸✹✺✹✸", 100),
    "spark": _def("·✦✧✦", 150),
    # Geometric
    "arc": _def("◜◠◝◞◡◟", 100),
    "circle": _def("◐◓◑◒", 120),
    "square_spin": _def("◰◳◲◱", 120),
    "triangles": _def("◢◣◤◥", 120),
    "sectors": _def("◴◷◶◵", 120),
    "diamond": _def("◇◈◆◈", 200),
    # Block and shade
    "toggle": _def("▪▫", 300),
    "toggle2": _def("◼◻", 300),
    "blocks": _def("░▒▓█▓▒", 100),
    "blocks2": _def("▖▘▝▗", 100),
    "blocks3": _def("▌▀▐▄", 100),
    # Pulse
    "pulse": _def("·•●•", 150),
    "pulse2": _def("○◎●◎", 150),
    "breathe": _def(["  ∙  ", " ∙∙∙ ", "∙∙∙∙∙", " ∙∙∙ "], 200),
    "heartbeat": _def("♡♡♥♥♡♡  ", 150),
    # Bar and bounce
    "growing": _def("▏▎▍▌▋▊▉█▉▊▋▌▍▎", 80),
    "bounce": _def("⠁⠂⠄⡀⢀⠠⠐⠈", 120),
    "bouncing_ball": _def(
        [
            "( ●    )", "(  ●   )", "(   ●  )", "(    ● )", "(     ●)",
            "(    ● )", "(   ●  )", "(  ●   )", "( ●    )", "(●     )",
        ],
        80,
    ),
    # Arrows
    "arrows": _def("←↖↑↗→↘↓↙", 120),
    "arrow_pulse": _def(["▹▹▹▹▹", "►▹▹▹▹", "▹►▹▹▹", "▹▹►▹▹", "▹▹▹►▹", "▹▹▹▹►"], 120),
    # Waves
    "wave": _def("▁▂▃▄▅▆▇█▇▆▅▄▃▂", 80),
    "aesthetic": _def(["▱▱▱▱▱", "▰▱▱▱▱", "▰▰▱▱▱", "▰▰▰▱▱", "▰▰▰▰▱", "▰▰▰▰▰", "▱▱▱▱▱"], 150),
    "scanning": _def(["░░░░░", "▒░░░░", "░▒░░░", "░░▒░░", "░░░▒░", "░░░░▒", "░░░░░"], 100),
    # Hacker
    "binary": _def(["010010", "001101", "100110", "110011", "011001", "101100"], 100),
    "matrix": _def("ΞΣΦΨΩλμπ", 100),
    "braille_snake": _def("⠏⠛⠹⢸⣰⣤⣆⡇", 100),
    "orbit": _def("◯◎●◎", 200),
    # Emoji (terminal support varies)
    "moon": _def(["🌑", "🌒", "🌓", "🌔", "🌕", "🌖", "🌗", "🌘"], 200),
    "hourglass": _def(["⏳", "⌛"], 500),
}

DEFAULT_SPINNER = "dots"


def get_spinner(name: str | None) -> SpinnerDef:
    """Look up *name*, falling back to the default ``dots`` animation."""
    if name is None:
        return SPINNERS[DEFAULT_SPINNER]
    return SPINNERS.get(name, SPINNERS[DEFAULT_SPINNER])
