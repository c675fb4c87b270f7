"""Load, clone, and reset the state database from URL routes.

The first route that reaches ``load_state`` (or ``reset_on_load``)
decides the one transform directive the state database will ever
receive:

    fetch succeeded          -> overwrite(fetched data)
    fetch failed / missing   -> cancel (keep local state)
    ?reset on the URL        -> clear

Only after a load has made that decision is the save coordinator
subscribed to state changes, so nothing is saved during bootstrap.
``?clone=<name>`` loads another workspace's data and saves it under
this window's workspace before navigating to the URL without ``clone``.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from . import url as urlext
from .errors import StorageClearError
from .lifecycle import validate_resolution_transition
from .models import (
    Location,
    ResolutionState,
    StateChange,
    TransformDirective,
    WorkspaceContext,
)
from .router import Router

if TYPE_CHECKING:
    from workstate.adapters.local_storage import LocalStorage
    from workstate.adapters.workspace_client import WorkspaceService

    from .commands import CommandRegistry
    from .save_coordinator import SaveCoordinator
    from .splash import SplashHandle
    from .state_db import StateDB
    from .transform import TransformGate

logger = logging.getLogger(__name__)


class CommandIDs:
    """Command ids registered by the orchestrator."""
    LOAD_STATE = "state:load"
    RECOVER_STATE = "state:recover"
    RESET = "state:reset"
    RESET_ON_LOAD = "state:reset-on-load"
    SAVE_STATE = "state:save"


# Lower rank routes first: reset-on-load must beat the catch-all load.
RESET_ON_LOAD_RANK = 10
LOAD_RANK = 20


class StateOrchestrator:
    """Owns the resolved flag and drives the transform gate."""

    def __init__(
        self,
        *,
        commands: CommandRegistry,
        router: Router,
        state: StateDB,
        gate: TransformGate,
        saver: SaveCoordinator,
        workspaces: WorkspaceService,
        storage: LocalStorage,
        context: WorkspaceContext,
        show_splash: Callable[[], SplashHandle] | None = None,
    ) -> None:
        self._commands = commands
        self._router = router
        self._state = state
        self._gate = gate
        self._saver = saver
        self._workspaces = workspaces
        self._storage = storage
        self._context = context
        self._show_splash = show_splash
        self._resolution = ResolutionState.UNRESOLVED

    @property
    def resolution(self) -> ResolutionState:
        return self._resolution

    @property
    def resolved(self) -> bool:
        return self._resolution is ResolutionState.RESOLVED

    def _transition(self, target: ResolutionState) -> None:
        validate_resolution_transition(self._resolution, target)
        logger.debug("State resolution %s -> %s", self._resolution.value, target.value)
        self._resolution = target

    def _supply(self, directive: TransformDirective) -> bool:
        """Supply the gate unless an earlier route already did."""
        if self.resolved:
            return False
        self._transition(ResolutionState.RESOLVED)
        self._gate.supply(directive)
        return True

    # ── Registration ──

    def register(self) -> None:
        commands = self._commands
        commands.add_command(CommandIDs.RECOVER_STATE, self.recover_state)
        commands.add_command(
            CommandIDs.SAVE_STATE,
            self.save_state,
            label=lambda: f"Save Workspace ({self._context.workspace})",
        )
        commands.add_command(CommandIDs.LOAD_STATE, self.load_state)
        commands.add_command(
            CommandIDs.RESET, self.reset, label="Reset Application State",
        )
        commands.add_command(CommandIDs.RESET_ON_LOAD, self.reset_on_load)

        self._router.register(
            CommandIDs.LOAD_STATE, urlext.LOAD_PATTERN, rank=LOAD_RANK,
        )
        self._router.register(
            CommandIDs.RESET_ON_LOAD,
            urlext.RESET_ON_LOAD_PATTERN,
            rank=RESET_ON_LOAD_RANK,
        )

    # ── Commands ──

    async def save_state(self, immediate: bool = False) -> None:
        await self._saver.request_save(immediate)

    async def recover_state(self, global_: bool = False) -> None:
        # Silent so the change listener does not schedule a save of its own.
        await self._state.clear(silent=True)

        if global_:
            try:
                self._storage.clear()
                logger.info("Cleared local storage")
            except StorageClearError as exc:
                logger.warning("Clearing local storage failed: %s", exc)
                # Debounced so the warning is visible before the host reloads.
                return await self.save_state()

        return await self.save_state(immediate=True)

    async def load_state(self, location: Location) -> Any:
        # Routing may dispatch this any number of times.
        if self.resolved:
            return None

        context = self._context
        workspace = context.workspace
        query = urlext.query_to_dict(location.search)
        clone: str | None = None
        if "clone" in query:
            clone = (
                context.default_workspace
                if query["clone"] == ""
                else urlext.join(context.base_url, context.workspaces_url, query["clone"])
            )
        source = clone or workspace

        if self._resolution is ResolutionState.UNRESOLVED:
            self._transition(ResolutionState.RESOLVING)

        try:
            saved = await self._workspaces.fetch(source)
        except Exception as exc:
            # The gate resolves whatever the fetch outcome; a missing
            # workspace is saved from the current local state below.
            logger.warning("Fetching workspace (%s) failed: %s", source, exc)
            self._supply(TransformDirective.cancel())
        else:
            self._supply(TransformDirective.overwrite(saved.data))

        if workspace:
            self._state.changed.connect(self._on_state_changed)

        if clone is not None:
            del query["clone"]
            url = location.path + urlext.dict_to_query(query) + location.hash
            await self.save_state(immediate=True)
            logger.info("Cloned workspace %s into %s", source, workspace)
            self._router.navigate(url, silent=True)
            return Router.stop

        await self.save_state(immediate=True)
        return None

    async def reset(self) -> None:
        # A load still waiting on its fetch would block the state clear.
        self._supply(TransformDirective.clear())
        try:
            await self.recover_state(global_=True)
        except Exception:
            logger.debug("Recovering state before reset failed", exc_info=True)
        self._router.reload()

    async def reset_on_load(self, location: Location) -> Any:
        query = urlext.query_to_dict(location.search)
        if "reset" not in query:
            return None

        loading = self._show_splash() if self._show_splash else None

        # A resolved gate cannot be un-resolved; only a reload resets it.
        if self.resolved:
            self._router.reload()
            return None

        self._supply(TransformDirective.clear())

        del query["reset"]
        clone = "clone" in query
        url = location.path + urlext.dict_to_query(query) + location.hash

        await self.recover_state()

        if clone:
            self._router.navigate(url, silent=True, hard=True)
        else:
            self._router.navigate(url, silent=True)
            if loading is not None:
                loading.dispose()
        return Router.stop

    # ── Lifecycle ──

    def _on_state_changed(self, sender: Any, change: StateChange) -> None:
        self._saver.request_save().add_done_callback(_log_save_failure)

    async def before_unload(self) -> None:
        """Silently drop this window's local state as the session closes."""
        self._state.changed.disconnect(self._on_state_changed)
        if not self._gate.resolved:
            return
        try:
            await self._state.clear(silent=True)
        except Exception:
            logger.debug("Clearing state on unload failed", exc_info=True)


def _log_save_failure(future: asyncio.Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.debug("Background workspace save failed: %s", exc)
