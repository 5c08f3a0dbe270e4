"""Two-stage interruption for long-running command handlers.

The first interrupt only *requests* cancellation: the handler sees
``token.cancelled`` (or gets :class:`Cancelled` from
``raise_if_cancelled``) and winds down on its own. A second interrupt
while the same handler is still running forces the process to exit.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class CancelState(enum.Enum):
    RUNNING = "running"
    CANCEL_REQUESTED = "cancel_requested"
    FORCE_EXIT = "force_exit"


class Cancelled(Exception):
    """Raised inside a handler whose token has been cancelled."""


def _default_force_exit() -> None:
    raise SystemExit(130)


class CancelToken:
    def __init__(self, on_force_exit: Callable[[], None] | None = None) -> None:
        self._state = CancelState.RUNNING
        self._on_force_exit = on_force_exit or _default_force_exit
        self._event = asyncio.Event()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def state(self) -> CancelState:
        return self._state

    @property
    def cancelled(self) -> bool:
        return self._state is not CancelState.RUNNING

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Call *callback* when cancellation is first requested."""
        if self.cancelled:
            callback()
        else:
            self._callbacks.append(callback)

    def signal(self) -> CancelState:
        """Advance one stage and return the new state."""
        if self._state is CancelState.RUNNING:
            self._state = CancelState.CANCEL_REQUESTED
            logger.debug("cancellation requested")
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
            for callback in callbacks:
                callback()
        elif self._state is CancelState.CANCEL_REQUESTED:
            self._state = CancelState.FORCE_EXIT
            logger.debug("force exit")
            self._on_force_exit()
        return self._state

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise Cancelled()

    async def wait(self) -> None:
        """Block until cancellation is requested."""
        await self._event.wait()
