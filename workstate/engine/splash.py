"""Splash visibility and hung-load recovery.

Overlapping ``show`` calls share one splash and one escalation task and
are reference counted; the splash is dismissed only when every handle
has been disposed and its readiness awaitable has settled.

If the splash stays up past the recovery timeout, the user is offered a
choice between keeping waiting and clearing the workspace. The loop
alternates between two phases until one of them ends it:

    WAITING ──timeout──> PROMPT_OPEN ──keep waiting──> WAITING
                             │
                             └──clear workspace──> recovery command runs

Dismissal cancels the loop in either phase and disposes an open prompt.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Protocol

from .errors import DialogDisposedError
from .lifecycle import validate_splash_transition
from .models import EscalationPhase, SplashState

if TYPE_CHECKING:
    from .commands import CommandRegistry
    from .prompts import Dialog, PromptService

logger = logging.getLogger(__name__)

SPLASH_RECOVER_TIMEOUT = 12.0
SPLASH_FADE_DELAY = 0.5


class SplashView(Protocol):
    """The visual splash element owned by the host."""

    def show(self, light: bool) -> None: ...

    def fade(self) -> None: ...

    def remove(self) -> None: ...


class SplashHandle:
    """Returned by ``show``; dispose it once the caller no longer needs the splash."""

    def __init__(self, controller: SplashController, ready: asyncio.Future) -> None:
        self._controller = controller
        self._ready = ready
        self._disposed = False

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._controller._release_when_ready(self._ready)


class SplashController:
    """Reference-counted splash with a single shared escalation task."""

    def __init__(
        self,
        view: SplashView,
        commands: CommandRegistry,
        recovery_command: str,
        prompts: PromptService,
        timeout: float = SPLASH_RECOVER_TIMEOUT,
        fade_delay: float = SPLASH_FADE_DELAY,
    ) -> None:
        self._view = view
        self._commands = commands
        self._recovery_command = recovery_command
        self._prompts = prompts
        self.timeout = timeout
        self.fade_delay = fade_delay
        self.count = 0
        self._state = SplashState.HIDDEN
        self._phase: EscalationPhase | None = None
        self._escalation: asyncio.Task[None] | None = None
        self._dialog: Dialog | None = None
        self._removal: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> SplashState:
        return self._state

    @property
    def phase(self) -> EscalationPhase | None:
        return self._phase

    @property
    def escalation_armed(self) -> bool:
        return self._escalation is not None and not self._escalation.done()

    def _set_state(self, target: SplashState) -> None:
        if target is self._state:
            return
        validate_splash_transition(self._state, target)
        logger.debug("Splash %s -> %s", self._state.value, target.value)
        self._state = target

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def show(self, ready: Awaitable, light: bool = True) -> SplashHandle:
        """Show the splash until ``ready`` settles and the handle is disposed."""
        self.count += 1
        if self._removal is not None:
            self._removal.cancel()
            self._removal = None
        if self._state is SplashState.HIDDEN:
            self._set_state(SplashState.VISIBLE)
        self._view.show(light)
        self._arm()
        return SplashHandle(self, asyncio.ensure_future(ready))

    def _arm(self) -> None:
        # An open prompt re-arms the timer itself when the user keeps waiting.
        if self._phase is EscalationPhase.PROMPT_OPEN:
            return
        if self._escalation is not None:
            self._escalation.cancel()
        self._escalation = self._spawn(self._escalate())

    async def _escalate(self) -> None:
        try:
            while True:
                self._phase = EscalationPhase.WAITING
                await asyncio.sleep(self.timeout)
                if not self._commands.has_command(self._recovery_command):
                    return

                self._phase = EscalationPhase.PROMPT_OPEN
                self._set_state(SplashState.ESCALATED)
                dialog = self._prompts.recover_prompt()
                self._dialog = dialog
                try:
                    result = await dialog.launch()
                except DialogDisposedError:
                    return
                finally:
                    self._dialog = None

                if result.accept:
                    logger.warning("Splash recovery accepted; running %s", self._recovery_command)
                    task = self._spawn(self._commands.execute(self._recovery_command))
                    task.add_done_callback(_log_recovery_failure)
                    return
                dialog.dispose()
                self._set_state(SplashState.VISIBLE)
        finally:
            self._phase = None

    def _release_when_ready(self, ready: asyncio.Future) -> None:
        self._spawn(self._release(ready))

    async def _release(self, ready: asyncio.Future) -> None:
        # asyncio.wait does not raise if ``ready`` failed or was cancelled.
        await asyncio.wait([ready])
        if self.count == 0:
            return
        self.count -= 1
        if self.count == 0:
            self._dismiss()

    def _dismiss(self) -> None:
        if self._escalation is not None:
            self._escalation.cancel()
            self._escalation = None
        dialog, self._dialog = self._dialog, None
        if dialog is not None:
            dialog.dispose()
        self._phase = None
        self._set_state(SplashState.HIDDEN)
        self._view.fade()
        self._removal = self._spawn(self._remove_after_fade())

    async def _remove_after_fade(self) -> None:
        await asyncio.sleep(self.fade_delay)
        if self.count == 0:
            self._view.remove()
        self._removal = None

    async def aclose(self) -> None:
        """Cancel every pending timer and release task."""
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


def _log_recovery_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Splash recovery command failed: %s", exc)
