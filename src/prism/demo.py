"""Interactive showcase: a framed REPL whose commands drive live regions."""

from __future__ import annotations

import argparse
import asyncio
import time

from prism.cancel import Cancelled, CancelToken
from prism.config import configure_logging
from prism.layout import Layout
from prism.repl import Command, Frame, repl
from prism.spinners import SPINNERS
from prism.style import s
from prism.terminal import get_terminal

_started = time.monotonic()
_messages = 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="prism-demo", description="Inline terminal rendering demo")
    parser.add_argument("--no-frame", action="store_true", help="Plain prompt without the pinned frame")
    parser.add_argument("--prompt", default="❯ ", help="Prompt text")
    return parser.parse_args()


def _divider() -> str:
    return s.dim("─" * max(1, get_terminal().columns))


def _status() -> str:
    elapsed = int(time.monotonic() - _started)
    return s.dim(f"  {_messages} messages · {elapsed}s · /help for commands")


async def _scan(args: str, token: CancelToken, stage: Layout) -> None:
    section = stage.section("Scanning ports…", timer=True)
    for port in ("22/tcp ssh", "80/tcp http", "443/tcp https", "5432/tcp postgres"):
        await asyncio.sleep(0.5)
        if token.cancelled:
            section.fail("Scan interrupted")
            return
        section.add(port)
    section.done(f"Found {len(section.items)} open ports")


async def _build(args: str, token: CancelToken, stage: Layout) -> None:
    steps = 0
    work = stage.activity("Building…", timer=True, metrics=lambda: f"{steps}/5 steps")
    try:
        for _ in range(5):
            await asyncio.sleep(0.4)
            token.raise_if_cancelled()
            steps += 1
    except Cancelled:
        work.fail("Build cancelled")
        raise
    work.done("Build finished")


async def _type(args: str, token: CancelToken, stage: Layout) -> None:
    out = stage.stream(prefix="  ")
    for word in (args or "streaming text arrives a few characters at a time\nand wraps into lines").split(" "):
        out.write(word + " ")
        await asyncio.sleep(0.05)
    out.done(s.dim("  (end of stream)"))


def _spinners(args: str, token: CancelToken, stage: Layout) -> None:
    stage.print("  " + ", ".join(sorted(SPINNERS)))


def _echo(text: str, token: CancelToken, stage: Layout) -> str:
    global _messages
    _messages += 1
    return f"  {s.green('●')} {text}"


COMMANDS = {
    "scan": Command(_scan, "Live section with items"),
    "build": Command(_build, "Activity with timer and metrics"),
    "type": Command(_type, "Stream text through the layout", aliases=("t",)),
    "spinners": Command(_spinners, "List spinner names"),
}


def main() -> None:
    args = parse_args()
    configure_logging()
    frame = None if args.no_frame else Frame(above=[_divider], below=[_divider, _status])
    asyncio.run(
        repl(
            _echo,
            prompt=args.prompt,
            greeting=s.bold("  prism") + s.dim(" · inline input and live output"),
            commands=COMMANDS,
            frame=frame,
            on_exit=lambda: get_terminal().write(s.dim("bye\n")),
        )
    )


if __name__ == "__main__":
    main()
