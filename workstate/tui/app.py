"""Workstate TUI: Textual host for one window's workspace session."""

from __future__ import annotations

import json
import logging
from typing import Any

from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.widgets import Footer, Header, Log, Static

from workstate.adapters.naming import LockFileNamingOracle, NamingOracle
from workstate.adapters.workspace_client import WorkspaceClient, WorkspaceService
from workstate.engine import url as urlext
from workstate.engine.config import StateConfig
from workstate.engine.models import StateChange
from workstate.engine.session import StateSession, create_session
from workstate.tui.prompts import TextualPromptService
from workstate.tui.widgets.splash import SplashOverlay, SplashOverlayView

logger = logging.getLogger(__name__)


class WorkstateApp(App[str | None]):
    """Shows the window's workspace and its state while keeping it saved.

    ``run()`` returns the URL to reopen when the session asked for a
    reload (reset, clone, or a switch to another workspace), or None when
    the user quit.
    """

    TITLE = "Workstate"

    CSS = """
    Screen {
        layers: base overlay;
    }
    #workspace-label {
        height: 1;
        padding: 0 1;
        background: $boost;
        text-style: bold;
    }
    #state-log {
        height: 1fr;
    }
    """

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
        ("ctrl+s", "save_workspace", "Save"),
        ("ctrl+r", "reset_state", "Reset"),
    ]

    def __init__(
        self,
        url: str,
        config: StateConfig,
        *,
        workspaces: WorkspaceService | None = None,
        oracle: NamingOracle | None = None,
    ) -> None:
        super().__init__()
        self.start_url = url
        self.state_config = config
        self.session: StateSession | None = None
        self._workspaces = workspaces
        self._owns_client = workspaces is None
        self._oracle = oracle
        self._closing = False

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical():
            yield Static("Resolving window...", id="workspace-label")
            yield Log(id="state-log")
        yield Footer()
        yield SplashOverlay(id="splash")

    def on_mount(self) -> None:
        self.run_worker(self._bootstrap(), group="session", exclusive=True)

    async def _bootstrap(self) -> None:
        if self._workspaces is None:
            self._workspaces = WorkspaceClient(
                self.state_config.server_url,
                timeout=self.state_config.request_timeout_seconds,
            )
        oracle = self._oracle or LockFileNamingOracle(self.state_config.windows_dir)
        try:
            session = await create_session(
                self.start_url,
                self.state_config,
                oracle=oracle,
                workspaces=self._workspaces,
                prompts=TextualPromptService(self),
                splash_view=SplashOverlayView(self.query_one("#splash", SplashOverlay)),
                on_reload=self._on_reload,
            )
        except Exception as exc:
            logger.exception("Session bootstrap failed for %s", self.start_url)
            self.notify(f"Could not open workspace: {exc}", severity="error")
            return

        self.session = session
        self.sub_title = session.workspace
        session.state.changed.connect(self._on_state_changed)
        try:
            await session.start()
        except Exception as exc:
            logger.exception("Session start failed for %s", session.workspace)
            self.notify(f"Restoring state failed: {exc}", severity="error")
            return
        await self._refresh_state()

    # ── State view ──

    def _on_state_changed(self, _sender: Any, _change: StateChange) -> None:
        self.run_worker(self._refresh_state(), group="refresh", exclusive=True)

    async def _refresh_state(self) -> None:
        session = self.session
        if session is None or self._closing:
            return
        contents = await session.state.to_json()
        label = self.query_one("#workspace-label", Static)
        label.update(
            f"{session.workspace}  [dim]{session.state.window_name}  "
            f"{len(contents)} key(s)[/dim]"
        )
        log = self.query_one("#state-log", Log)
        log.clear()
        for key in sorted(contents):
            log.write_line(f"{key} = {json.dumps(contents[key], sort_keys=True)}")

    # ── Lifecycle ──

    def _on_reload(self, request: str) -> None:
        target = urlext.join(self.state_config.base_url, request)
        logger.info("Session requested reload at %s", target)
        self.run_worker(self._shutdown(target), group="shutdown")

    async def _shutdown(self, result: str | None) -> None:
        if self._closing:
            return
        self._closing = True
        if self.session is not None:
            try:
                await self.session.close()
            except Exception:
                logger.exception("Closing session %s failed", self.session.workspace)
        if self._owns_client and isinstance(self._workspaces, WorkspaceClient):
            await self._workspaces.close()
        self.exit(result)

    # ── Actions ──

    def action_save_workspace(self) -> None:
        self.run_worker(self._save(), group="save")

    async def _save(self) -> None:
        if self.session is None:
            return
        try:
            await self.session.save()
        except Exception as exc:
            self.notify(f"Save failed: {exc}", severity="error")
            return
        self.notify(f"Saved {self.session.workspace}")

    def action_reset_state(self) -> None:
        if self.session is None:
            return
        self.run_worker(self.session.reset(), group="reset", exit_on_error=False)

    async def action_quit(self) -> None:
        await self._shutdown(None)
