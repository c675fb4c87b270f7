"""Debounced, conflated workspace saves.

Every save request made while a conflation token is outstanding shares
that token, so any burst of state changes produces a single remote
write and every caller sees the same outcome.

State diagram:

    IDLE ──request──> PENDING ──timer fires──> FIRING ──write settles──> IDLE
                        │  ^                      │
                        └──┘ request re-arms      └──request──> next token, written
                             the timer                          once the current
                                                                write settles

A request made while a write is in flight opens the next token rather
than joining the one being written, since that snapshot is already taken.
At most one remote write is in flight.
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .models import SaveState, WorkspaceContext, WorkspaceRecord

if TYPE_CHECKING:
    from workstate.adapters.workspace_client import WorkspaceService

    from .state_db import StateDB

logger = logging.getLogger(__name__)

DEFAULT_SAVE_INTERVAL = 0.75


class SaveCoordinator:
    """Single-writer save pipeline for one window's state database."""

    def __init__(
        self,
        state: StateDB,
        workspaces: WorkspaceService,
        context: WorkspaceContext,
        interval: float = DEFAULT_SAVE_INTERVAL,
    ) -> None:
        self._state = state
        self._workspaces = workspaces
        self._context = context
        self.interval = interval
        self._token: asyncio.Future[None] | None = None
        self._firing: asyncio.Future[None] | None = None
        self._timer: asyncio.Task[None] | None = None
        self._status = SaveState.IDLE

    @property
    def status(self) -> SaveState:
        return self._status

    @property
    def pending(self) -> bool:
        """True while a conflation token is outstanding."""
        return self._token is not None

    def request_save(self, immediate: bool = False) -> asyncio.Future[None]:
        """Schedule a save and return the shared outcome of this window.

        ``immediate`` collapses the debounce delay to zero but still joins
        an outstanding token. A request made during a write gets the next
        token, written after the current one settles.
        """
        if self._token is None or self._token is self._firing:
            self._token = asyncio.get_running_loop().create_future()
            if self._firing is None:
                self._status = SaveState.PENDING

        if self._timer is not None:
            self._timer.cancel()

        delay = 0.0 if immediate else self.interval
        self._timer = asyncio.ensure_future(self._run_timer(delay))
        # Each caller gets its own view so one cancelled waiter can't
        # cancel the shared outcome for the others.
        return asyncio.shield(self._token)

    async def _run_timer(self, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
            while self._firing is not None:
                await asyncio.wait({self._firing})
        except asyncio.CancelledError:
            return
        if self._timer is asyncio.current_task():
            self._timer = None

        token = self._token
        if token is None or token.done():
            return
        await self._fire(token)

    async def _fire(self, token: asyncio.Future[None]) -> None:
        self._firing = token
        self._status = SaveState.FIRING
        workspace_id = self._context.workspace
        try:
            data = await self._state.to_json()
            record = WorkspaceRecord(id=workspace_id, data=data)
            await self._workspaces.save(workspace_id, record)
        except Exception as exc:
            logger.warning("Saving workspace (%s) failed: %s", workspace_id, exc)
            if not token.done():
                token.set_exception(exc)
                # Retrieved so an unawaited failure is not reported at GC.
                token.exception()
        else:
            logger.debug("Saved workspace %s (%d keys)", workspace_id, len(data))
            if not token.done():
                token.set_result(None)
        finally:
            self._firing = None
            if self._token is token:
                self._token = None
            self._status = SaveState.IDLE if self._token is None else SaveState.PENDING

    async def aclose(self) -> None:
        """Stop the timer and cancel a token that was never written.

        An in-flight write is left to finish. Flush with an immediate
        ``request_save`` first to keep pending changes.
        """
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        token = self._token
        if token is not None and token is not self._firing:
            self._token = None
            if not token.done():
                logger.debug("Dropping unsaved changes for %s", self._context.workspace)
                token.cancel()
            if self._firing is None:
                self._status = SaveState.IDLE
