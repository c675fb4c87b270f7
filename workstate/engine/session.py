"""Session bootstrap: wires every component for one window.

Activation order mirrors what each piece depends on:

    splash ──> window resolver ──> state database (gated) ──> save coordinator
                                           │
                                           └──> orchestrator (commands + routes)

``StateSession.start`` routes the initial location, waits for the state
database to become readable, then settles ``restored`` so the splash can
go away.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from workstate.adapters.local_storage import LocalStorage

from .commands import CommandRegistry
from .config import StateConfig
from .models import WorkspaceContext
from .orchestrator import CommandIDs, StateOrchestrator
from .resolver import WindowResolver, resolve_window
from .router import Router
from .save_coordinator import SaveCoordinator
from .splash import SplashController, SplashHandle
from .state_db import StateDB
from .transform import TransformGate

if TYPE_CHECKING:
    from workstate.adapters.naming import NamingOracle
    from workstate.adapters.workspace_client import WorkspaceService

    from .prompts import PromptService
    from .splash import SplashView

logger = logging.getLogger(__name__)


@dataclass
class StateSession:
    """All per-window components, owned together."""

    context: WorkspaceContext
    commands: CommandRegistry
    router: Router
    resolver: WindowResolver
    storage: LocalStorage
    gate: TransformGate
    state: StateDB
    saver: SaveCoordinator
    orchestrator: StateOrchestrator
    splash: SplashController
    restored: asyncio.Future
    _loading: SplashHandle | None = field(default=None, repr=False)

    @property
    def workspace(self) -> str:
        return self.context.workspace

    async def start(self) -> None:
        """Route the initial location and mark the session restored."""
        try:
            await self.router.route()
            await self.state.ready()
        except asyncio.CancelledError:
            self.restored.cancel()
            raise
        except Exception as exc:
            if not self.restored.done():
                self.restored.set_exception(exc)
                self.restored.exception()
            raise
        finally:
            if self._loading is not None:
                self._loading.dispose()
                self._loading = None
        if not self.restored.done():
            self.restored.set_result(None)
        logger.info("Session restored for %s", self.workspace)

    async def save(self) -> None:
        await self.commands.execute(CommandIDs.SAVE_STATE, immediate=True)

    async def reset(self) -> None:
        await self.commands.execute(CommandIDs.RESET)

    async def close(self) -> None:
        """Window unload: flush pending saves, drop local state, release the name."""
        if self.saver.pending and self.gate.resolved:
            try:
                await self.saver.request_save(immediate=True)
            except Exception as exc:
                logger.warning("Final save of %s failed: %s", self.workspace, exc)
        await self.orchestrator.before_unload()
        await self.saver.aclose()
        await self.splash.aclose()
        await self.resolver.release()


async def create_session(
    url: str,
    config: StateConfig,
    *,
    oracle: NamingOracle,
    workspaces: WorkspaceService,
    prompts: PromptService,
    splash_view: SplashView,
    storage: LocalStorage | None = None,
    on_reload: Callable[[str], None] | None = None,
) -> StateSession:
    """Build a session for ``url``. Never returns if the window name conflicts.

    ``on_reload`` is connected before window resolution so the host also
    hears about the hard navigation of the redirect flow.
    """
    context = config.make_context()
    commands = CommandRegistry()
    router = Router(commands, base=config.base_url, url=url)
    if on_reload is not None:
        router.reloaded.connect(lambda _sender, request: on_reload(request))

    splash = SplashController(
        splash_view,
        commands,
        CommandIDs.RESET,
        prompts,
        timeout=config.splash_recover_timeout_seconds,
        fade_delay=config.splash_fade_seconds,
    )
    restored: asyncio.Future = asyncio.get_running_loop().create_future()
    loading = splash.show(restored)

    resolver = WindowResolver(oracle)
    await resolve_window(router, resolver, context, prompts)

    storage = storage or LocalStorage(config.local_storage_path)
    gate = TransformGate()
    state = StateDB(storage, context.namespace, resolver.name, gate)
    saver = SaveCoordinator(
        state, workspaces, context, interval=config.save_debounce_seconds,
    )
    orchestrator = StateOrchestrator(
        commands=commands,
        router=router,
        state=state,
        gate=gate,
        saver=saver,
        workspaces=workspaces,
        storage=storage,
        context=context,
        show_splash=lambda: splash.show(restored),
    )
    orchestrator.register()

    return StateSession(
        context=context,
        commands=commands,
        router=router,
        resolver=resolver,
        storage=storage,
        gate=gate,
        state=state,
        saver=saver,
        orchestrator=orchestrator,
        splash=splash,
        restored=restored,
        _loading=loading,
    )
