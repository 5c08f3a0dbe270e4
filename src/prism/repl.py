"""Interactive prompt loop with slash commands.

Each cycle reads one line through :func:`prism.editor.start_input_session`
and dispatches it: exit words end the loop, ``/name args`` runs a command,
anything else goes to ``on_input``. Handlers run with a
:class:`prism.cancel.CancelToken` (first Ctrl+C requests cancellation, a
second one force-exits) and a :class:`prism.layout.Layout` as their stage,
so activities and sections they start stay above an optional pinned frame.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import signal
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Sequence, Union

from prism.cancel import Cancelled, CancelState, CancelToken
from prism.editor import CompletionFn, History, InputOptions, PromptFn, resolve_prompt, start_input_session
from prism.layout import Layout, LayoutRenderStrategy
from prism.style import s
from prism.terminal import Terminal, get_terminal

logger = logging.getLogger(__name__)

HandlerResult = Union[Awaitable[Any], Any]
CommandHandler = Callable[[str, CancelToken, Layout], HandlerResult]
InputHandler = Callable[[str, CancelToken, Layout], HandlerResult]


@dataclass
class Command:
    handler: CommandHandler
    description: str = ""
    aliases: Sequence[str] = ()
    hidden: bool = False


@dataclass
class Frame:
    """Lines pinned above and below the prompt while the loop runs."""

    above: list[Callable[[], str]] = field(default_factory=list)
    below: list[Callable[[], str]] = field(default_factory=list)


def split_command(text: str, prefix: str) -> tuple[str, str]:
    """``"/greet  bob"`` -> ``("greet", "bob")``."""
    rest = text[len(prefix) :]
    name, _, args = rest.partition(" ")
    return name, args.strip()


class _Repl:
    def __init__(
        self,
        on_input: InputHandler,
        *,
        prompt: PromptFn,
        greeting: str | None,
        commands: dict[str, Command] | None,
        command_prefix: str,
        exit_commands: Sequence[str],
        history: bool,
        history_size: int,
        completion: CompletionFn | None,
        before_prompt: Callable[[], None] | None,
        prompt_color: Callable[[str], str] | None,
        frame: Frame | None,
        terminal: Terminal | None,
    ) -> None:
        self.on_input = on_input
        self.prompt = prompt
        self.greeting = greeting
        self.commands = dict(commands or {})
        self.prefix = command_prefix
        self.exit_commands = {word.lower() for word in exit_commands}
        self.history = History(history_size) if history else None
        self.completion = completion
        self.before_prompt = before_prompt
        self.prompt_color = prompt_color or s.cyan
        self.frame = frame
        self.terminal = terminal or get_terminal()
        self.command_map = self._build_command_map()

    # -- commands -------------------------------------------------------------

    def _build_command_map(self) -> dict[str, tuple[str, Command]]:
        command_map: dict[str, tuple[str, Command]] = {}
        if not self.commands:
            return command_map
        for name, command in self.commands.items():
            command_map[name] = (name, command)
            for alias in command.aliases:
                command_map[alias] = (name, command)

        if "help" not in command_map:
            help_command = Command(self._help, "Show available commands", aliases=("h", "?"))
            command_map["help"] = ("help", help_command)
            for alias in help_command.aliases:
                command_map.setdefault(alias, ("help", help_command))
        return command_map

    def _help(self, args: str, token: CancelToken, stage: Layout) -> None:
        entries = [(name, c) for name, c in self.commands.items() if not c.hidden]
        if not entries:
            stage.print(s.dim("  No commands available."))
            return
        width = max(len(name) for name, _ in entries) + len(self.prefix) + 2
        lines = [""]
        for name, command in entries:
            aliases = ""
            if command.aliases:
                aliases = s.dim(" (" + ", ".join(self.prefix + a for a in command.aliases) + ")")
            lines.append(f"  {s.cyan((self.prefix + name).ljust(width))}{command.description}{aliases}")
        lines.append("")
        stage.print("\n".join(lines))

    def complete(self, word: str, line: str) -> list[str]:
        if line.startswith(self.prefix) and self.command_map:
            partial = word[len(self.prefix) :] if word.startswith(self.prefix) else word
            names = [name for name, (primary, c) in self.command_map.items() if name == primary and not c.hidden]
            return [self.prefix + name for name in names if name.startswith(partial)]
        if self.completion is not None:
            return self.completion(word, line)
        return []

    # -- dispatch -------------------------------------------------------------

    async def _call(self, handler: Callable[..., HandlerResult], args: str, stage: Layout) -> Any:
        token = CancelToken(on_force_exit=self._force_exit)
        installed = self._install_sigint(token, stage)
        try:
            result = handler(args, token, stage)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Cancelled:
            logger.debug("handler cancelled")
        except Exception as exc:
            logger.debug("handler failed", exc_info=True)
            stage.print(f"{s.red('✗')} {exc}")
        finally:
            if installed:
                asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)
        return None

    def _force_exit(self) -> None:
        self.terminal.write("\n")
        raise SystemExit(130)

    def _install_sigint(self, token: CancelToken, stage: Layout) -> bool:
        def on_sigint() -> None:
            if token.signal() is CancelState.CANCEL_REQUESTED:
                stage.print(s.dim("(interrupted - Ctrl+C again to force exit)"))

        try:
            asyncio.get_running_loop().add_signal_handler(signal.SIGINT, on_sigint)
        except (NotImplementedError, RuntimeError, ValueError):
            logger.debug("SIGINT handler unavailable")
            return False
        return True

    async def dispatch(self, text: str, stage: Layout) -> None:
        """Run one submitted line (a command or plain input)."""
        if text.startswith(self.prefix) and self.command_map:
            name, args = split_command(text, self.prefix)
            entry = self.command_map.get(name)
            if entry is not None:
                await self._call(entry[1].handler, args, stage)
                return
            stage.print(f"{s.red('✗')} Unknown command: {s.bold(self.prefix + name)}")
            stage.print(s.dim(f"  Type {self.prefix}help for available commands."))
            return

        output = await self._call(self.on_input, text, stage)
        if isinstance(output, str) and output:
            stage.print(output)

    # -- loops ----------------------------------------------------------------

    async def run_piped(self) -> None:
        stage = Layout(self.terminal, tty=False)
        if self.greeting:
            self.terminal.write(f"{self.greeting}\n")
        data = await self.terminal.read_text()
        for line in data.split("\n"):
            text = line.strip()
            if not text:
                continue
            if text.lower() in self.exit_commands:
                break
            await self.dispatch(text, stage)
        stage.close()

    def _pinned_frame(self, frame: Frame) -> Callable[[], list[str]]:
        def render() -> list[str]:
            return (
                [fn() for fn in frame.above]
                + [self.prompt_color(resolve_prompt(self.prompt))]
                + [fn() for fn in frame.below]
            )

        return render

    async def run_interactive(self) -> None:
        stage = Layout(self.terminal, tty=True)
        if self.greeting:
            self.terminal.write(f"{self.greeting}\n\n")

        cancel_count = 0
        try:
            while True:
                if self.before_prompt is not None:
                    self.before_prompt()

                strategy = None
                if self.frame is not None:
                    strategy = LayoutRenderStrategy(stage, self.frame.above, self.frame.below)
                result = await start_input_session(
                    InputOptions(
                        prompt=self.prompt,
                        history=self.history,
                        completion=self.complete,
                        prompt_color=self.prompt_color,
                        clear_on_cancel=True,
                        strategy=strategy,
                    ),
                    self.terminal,
                )

                if result.action == "eof":
                    break
                if result.action == "cancel":
                    cancel_count += 1
                    if cancel_count >= 2:
                        break
                    stage.print(s.dim("(press Ctrl+C again or Ctrl+D to exit)"))
                    continue
                cancel_count = 0

                text = result.value.strip()
                if not text:
                    continue
                if text.lower() in self.exit_commands:
                    break

                if self.frame is not None:
                    stage.set_active(self._pinned_frame(self.frame))
                try:
                    await self.dispatch(text, stage)
                finally:
                    stage.set_active(None)
        finally:
            stage.close()


async def repl(
    on_input: InputHandler,
    *,
    prompt: PromptFn = "> ",
    greeting: str | None = None,
    commands: dict[str, Command] | None = None,
    command_prefix: str = "/",
    exit_commands: Sequence[str] = ("exit", "quit"),
    history: bool = True,
    history_size: int = 500,
    completion: CompletionFn | None = None,
    before_prompt: Callable[[], None] | None = None,
    on_exit: Callable[[], None] | None = None,
    prompt_color: Callable[[str], str] | None = None,
    frame: Frame | None = None,
    terminal: Terminal | None = None,
) -> None:
    """Run a prompt loop until an exit word, Ctrl+D, or two Ctrl+C presses.

    ``on_input`` and command handlers are called as
    ``handler(args, token, stage)`` and may be plain functions or
    coroutines. A string returned from ``on_input`` is printed. When stdout
    is not a terminal, piped stdin is processed line by line instead.
    """
    loop = _Repl(
        on_input,
        prompt=prompt,
        greeting=greeting,
        commands=commands,
        command_prefix=command_prefix,
        exit_commands=exit_commands,
        history=history,
        history_size=history_size,
        completion=completion,
        before_prompt=before_prompt,
        prompt_color=prompt_color,
        frame=frame,
        terminal=terminal,
    )
    if loop.terminal.is_tty:
        await loop.run_interactive()
    else:
        await loop.run_piped()

    if on_exit is not None:
        on_exit()
