"""Tests for prism.repl -- the prompt loop."""

from __future__ import annotations

import asyncio
import os
import signal

import pytest

from prism.cancel import Cancelled, CancelState, CancelToken
from prism.layout import Layout
from prism.repl import Command, Frame, _Repl, repl, split_command

from .virtual_terminal import VirtualTerminal


def echo(text: str, token: CancelToken, stage: Layout) -> str:
    return f"got {text}"


async def feed(terminal: VirtualTerminal, data: str) -> None:
    """Wait until the loop is reading input, then type *data*."""
    for _ in range(1000):
        if terminal.started:
            terminal.simulate_input(data)
            return
        await asyncio.sleep(0.001)
    raise AssertionError("prompt never started reading input")


def make_repl(**options) -> _Repl:
    defaults = dict(
        prompt="> ",
        greeting=None,
        commands=None,
        command_prefix="/",
        exit_commands=("exit", "quit"),
        history=True,
        history_size=500,
        completion=None,
        before_prompt=None,
        prompt_color=None,
        frame=None,
        terminal=VirtualTerminal(),
    )
    defaults.update(options)
    return _Repl(echo, **defaults)


class TestSplitCommand:
    def test_name_and_args(self) -> None:
        assert split_command("/greet  bob", "/") == ("greet", "bob")

    def test_no_args(self) -> None:
        assert split_command("/help", "/") == ("help", "")

    def test_longer_prefix(self) -> None:
        assert split_command("::go now", "::") == ("go", "now")


class TestCompletion:
    def test_command_names_complete(self) -> None:
        loop = make_repl(commands={"greet": Command(echo, "Say hello", aliases=("g",))})
        assert loop.complete("/g", "/g") == ["/greet"]
        assert loop.complete("/", "/") == ["/greet", "/help"]

    def test_hidden_commands_not_offered(self) -> None:
        loop = make_repl(commands={"secret": Command(echo, hidden=True), "show": Command(echo)})
        assert loop.complete("/s", "/s") == ["/show"]

    def test_falls_back_to_user_completion(self) -> None:
        loop = make_repl(completion=lambda word, line: [word + "!"])
        assert loop.complete("hi", "hi") == ["hi!"]

    def test_nothing_without_completion(self) -> None:
        assert make_repl().complete("hi", "hi") == []


class TestPipedRepl:
    @pytest.mark.asyncio
    async def test_lines_dispatched_in_order(self) -> None:
        terminal = VirtualTerminal(is_tty=False, stdin_text="one\n\ntwo\n")
        await repl(echo, greeting="Welcome", terminal=terminal)
        assert terminal.output == "Welcome\ngot one\ngot two\n"

    @pytest.mark.asyncio
    async def test_exit_word_stops_processing(self) -> None:
        terminal = VirtualTerminal(is_tty=False, stdin_text="one\nQUIT\ntwo\n")
        exits: list[int] = []
        await repl(echo, terminal=terminal, on_exit=lambda: exits.append(1))
        assert terminal.output == "got one\n"
        assert exits == [1]

    @pytest.mark.asyncio
    async def test_commands_and_aliases(self) -> None:
        calls: list[str] = []

        def greet(args: str, token: CancelToken, stage: Layout) -> None:
            calls.append(args)
            stage.print(f"hello {args}")

        terminal = VirtualTerminal(is_tty=False, stdin_text="/greet bob\n/g amy\n")
        await repl(echo, commands={"greet": Command(greet, aliases=("g",))}, terminal=terminal)
        assert calls == ["bob", "amy"]
        assert terminal.output == "hello bob\nhello amy\n"

    @pytest.mark.asyncio
    async def test_async_handler(self) -> None:
        async def later(text: str, token: CancelToken, stage: Layout) -> str:
            await asyncio.sleep(0)
            return text.upper()

        terminal = VirtualTerminal(is_tty=False, stdin_text="abc\n")
        await repl(later, terminal=terminal)
        assert terminal.output == "ABC\n"

    @pytest.mark.asyncio
    async def test_unknown_command(self) -> None:
        terminal = VirtualTerminal(is_tty=False, stdin_text="/nope\n")
        await repl(echo, commands={"greet": Command(echo)}, terminal=terminal)
        assert terminal.output == "✗ Unknown command: /nope\n  Type /help for available commands.\n"

    @pytest.mark.asyncio
    async def test_prefix_is_plain_input_without_commands(self) -> None:
        terminal = VirtualTerminal(is_tty=False, stdin_text="/nope\n")
        await repl(echo, terminal=terminal)
        assert terminal.output == "got /nope\n"

    @pytest.mark.asyncio
    async def test_automatic_help(self) -> None:
        commands = {
            "greet": Command(echo, "Say hello", aliases=("g",)),
            "secret": Command(echo, "Hidden", hidden=True),
        }
        terminal = VirtualTerminal(is_tty=False, stdin_text="/?\n")
        await repl(echo, commands=commands, terminal=terminal)
        assert "  /greet  Say hello (/g)\n" in terminal.output
        assert "secret" not in terminal.output

    @pytest.mark.asyncio
    async def test_handler_error_is_printed(self) -> None:
        def broken(text: str, token: CancelToken, stage: Layout) -> None:
            raise ValueError("boom")

        terminal = VirtualTerminal(is_tty=False, stdin_text="x\ny\n")
        await repl(broken, terminal=terminal)
        assert terminal.output == "✗ boom\n✗ boom\n"

    @pytest.mark.asyncio
    async def test_cancelled_handler_is_silent(self) -> None:
        def stopped(text: str, token: CancelToken, stage: Layout) -> None:
            raise Cancelled()

        terminal = VirtualTerminal(is_tty=False, stdin_text="x\n")
        await repl(stopped, terminal=terminal)
        assert terminal.output == ""

    @pytest.mark.asyncio
    async def test_handler_gets_fresh_token(self) -> None:
        tokens: list[CancelToken] = []

        def record(text: str, token: CancelToken, stage: Layout) -> None:
            tokens.append(token)

        terminal = VirtualTerminal(is_tty=False, stdin_text="a\nb\n")
        await repl(record, terminal=terminal)
        assert len(tokens) == 2
        assert tokens[0] is not tokens[1]
        assert not any(t.cancelled for t in tokens)


class TestInteractiveRepl:
    @pytest.mark.asyncio
    async def test_ctrl_d_exits(self) -> None:
        terminal = VirtualTerminal()
        exits: list[int] = []
        task = asyncio.create_task(repl(echo, greeting="Hi", terminal=terminal, on_exit=lambda: exits.append(1)))
        await feed(terminal, "\x04")
        await asyncio.wait_for(task, timeout=1)
        assert terminal.output.startswith("Hi\n\n")
        assert exits == [1]
        assert not terminal.started

    @pytest.mark.asyncio
    async def test_submitted_line_dispatched(self) -> None:
        terminal = VirtualTerminal()
        task = asyncio.create_task(repl(echo, terminal=terminal))
        await feed(terminal, "hello")
        await feed(terminal, "\r")
        await feed(terminal, "\x04")
        await asyncio.wait_for(task, timeout=1)
        assert "got hello\n" in terminal.output

    @pytest.mark.asyncio
    async def test_exit_word(self) -> None:
        terminal = VirtualTerminal()
        task = asyncio.create_task(repl(echo, terminal=terminal))
        await feed(terminal, "exit")
        await feed(terminal, "\r")
        await asyncio.wait_for(task, timeout=1)
        assert "got exit" not in terminal.output

    @pytest.mark.asyncio
    async def test_two_ctrl_c_exit(self) -> None:
        terminal = VirtualTerminal()
        task = asyncio.create_task(repl(echo, terminal=terminal))
        await feed(terminal, "\x03")
        await feed(terminal, "\x03")
        await asyncio.wait_for(task, timeout=1)
        assert "(press Ctrl+C again or Ctrl+D to exit)\n" in terminal.output

    @pytest.mark.asyncio
    async def test_ctrl_c_clears_typed_line_first(self) -> None:
        seen: list[str] = []

        def record(text: str, token: CancelToken, stage: Layout) -> None:
            seen.append(text)

        terminal = VirtualTerminal()
        task = asyncio.create_task(repl(record, terminal=terminal))
        await feed(terminal, "draft")
        await feed(terminal, "\x03")
        await feed(terminal, "ok")
        await feed(terminal, "\r")
        await feed(terminal, "\x04")
        await asyncio.wait_for(task, timeout=1)
        assert seen == ["ok"]
        assert "(press Ctrl+C" not in terminal.output

    @pytest.mark.asyncio
    async def test_history_recalls_previous_line(self) -> None:
        seen: list[str] = []

        def record(text: str, token: CancelToken, stage: Layout) -> None:
            seen.append(text)

        terminal = VirtualTerminal()
        task = asyncio.create_task(repl(record, terminal=terminal))
        await feed(terminal, "first")
        await feed(terminal, "\r")
        await feed(terminal, "\x1b[A")
        await feed(terminal, "\r")
        await feed(terminal, "\x04")
        await asyncio.wait_for(task, timeout=1)
        assert seen == ["first", "first"]

    @pytest.mark.asyncio
    async def test_before_prompt_runs_each_cycle(self) -> None:
        calls: list[int] = []
        terminal = VirtualTerminal()
        task = asyncio.create_task(repl(echo, terminal=terminal, before_prompt=lambda: calls.append(1)))
        await feed(terminal, "a")
        await feed(terminal, "\r")
        await feed(terminal, "\x04")
        await asyncio.wait_for(task, timeout=1)
        assert calls == [1, 1]

    @pytest.mark.asyncio
    async def test_frame_pinned_while_handler_runs(self) -> None:
        heights: list[int] = []

        def record(text: str, token: CancelToken, stage: Layout) -> None:
            heights.append(stage.height)
            stage.print(f"ran {text}")

        frame = Frame(above=[lambda: "---"], below=[lambda: "status"])
        terminal = VirtualTerminal()
        task = asyncio.create_task(repl(record, terminal=terminal, frame=frame))
        await feed(terminal, "hi")
        await feed(terminal, "\r")
        await feed(terminal, "\x04")
        await asyncio.wait_for(task, timeout=1)
        assert heights == [3]
        assert "> hi\n" in terminal.output
        assert "ran hi\n---\n> \nstatus\n" in terminal.output


async def interrupt_self(token: CancelToken, state: CancelState) -> None:
    """Send this process SIGINT and wait for the token to reach *state*."""
    os.kill(os.getpid(), signal.SIGINT)
    for _ in range(100):
        if token.state is state:
            return
        await asyncio.sleep(0.01)
    raise AssertionError(f"token never reached {state}")


class TestInterrupts:
    @pytest.mark.asyncio
    async def test_first_interrupt_cancels_handler_and_loop_continues(self) -> None:
        states: list[CancelState] = []

        async def slow(text: str, token: CancelToken, stage: Layout) -> None:
            if text == "work":
                await interrupt_self(token, CancelState.CANCEL_REQUESTED)
            states.append(token.state)

        terminal = VirtualTerminal(is_tty=False, stdin_text="work\nnext\n")
        await repl(slow, terminal=terminal)
        assert states == [CancelState.CANCEL_REQUESTED, CancelState.RUNNING]
        assert terminal.output == "(interrupted - Ctrl+C again to force exit)\n"
        assert signal.getsignal(signal.SIGINT) is signal.default_int_handler

    @pytest.mark.asyncio
    async def test_second_interrupt_forces_exit(self, monkeypatch: pytest.MonkeyPatch) -> None:
        exits: list[int] = []
        monkeypatch.setattr(_Repl, "_force_exit", lambda self: exits.append(130))

        async def stuck(text: str, token: CancelToken, stage: Layout) -> None:
            await interrupt_self(token, CancelState.CANCEL_REQUESTED)
            await interrupt_self(token, CancelState.FORCE_EXIT)

        terminal = VirtualTerminal(is_tty=False, stdin_text="go\n")
        await repl(stuck, terminal=terminal)
        assert exits == [130]
        assert terminal.output.count("(interrupted") == 1

    def test_default_force_exit_status(self) -> None:
        terminal = VirtualTerminal()
        with pytest.raises(SystemExit) as info:
            make_repl(terminal=terminal)._force_exit()
        assert info.value.code == 130
        assert terminal.output == "\n"

    @pytest.mark.asyncio
    async def test_interrupt_notice_keeps_frame_pinned(self) -> None:
        async def interrupted(text: str, token: CancelToken, stage: Layout) -> None:
            await interrupt_self(token, CancelState.CANCEL_REQUESTED)

        frame = Frame(above=[lambda: "---"], below=[lambda: "status"])
        terminal = VirtualTerminal()
        task = asyncio.create_task(repl(interrupted, terminal=terminal, frame=frame))
        await feed(terminal, "hi")
        await feed(terminal, "\r")
        await feed(terminal, "\x04")
        await asyncio.wait_for(task, timeout=2)
        assert (
            "> hi\n---\n> \nstatus\n"
            + "\x1b[3A\r\x1b[J(interrupted - Ctrl+C again to force exit)\n---\n> \nstatus\n"
        ) in terminal.output
