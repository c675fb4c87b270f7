"""Prompt service backed by Textual modal screens.

Each dialog pushes its screen on ``launch`` and resolves when the screen
is dismissed. ``dispose`` pops a screen that is still open and fails a
pending ``launch`` with DialogDisposedError.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from textual.app import App
from textual.screen import Screen

from workstate.engine.errors import DialogDisposedError
from workstate.engine.models import DialogResult
from workstate.tui.screens.recover import RecoverPromptScreen
from workstate.tui.screens.redirect import WorkspaceRedirectScreen

logger = logging.getLogger(__name__)


class ScreenDialog:
    """One modal screen exposed through the Dialog protocol."""

    def __init__(
        self,
        app: App,
        factory: Callable[[], Screen],
        convert: Callable[[Any], DialogResult],
    ) -> None:
        self._app = app
        self._factory = factory
        self._convert = convert
        self._screen: Screen | None = None
        self._future: asyncio.Future[DialogResult] | None = None
        self._disposed = False

    async def launch(self) -> DialogResult:
        if self._disposed:
            raise DialogDisposedError()
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
            self._screen = self._factory()
            self._app.push_screen(self._screen, callback=self._on_dismiss)
        return await asyncio.shield(self._future)

    def _on_dismiss(self, value: Any) -> None:
        if self._future is not None and not self._future.done():
            self._future.set_result(self._convert(value))

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        if self._future is not None and not self._future.done():
            self._future.set_exception(DialogDisposedError())
            # Mark retrieved; launch may never be awaited again.
            self._future.exception()
        screen = self._screen
        if screen is not None and self._app.screen is screen:
            logger.debug("Disposing open dialog %s", type(screen).__name__)
            self._app.pop_screen()


class TextualPromptService:
    """PromptService for the terminal host."""

    def __init__(self, app: App) -> None:
        self._app = app

    def recover_prompt(self) -> ScreenDialog:
        return ScreenDialog(
            self._app,
            RecoverPromptScreen,
            lambda clear: DialogResult(accept=bool(clear)),
        )

    def redirect_prompt(self, warn: bool = False) -> ScreenDialog:
        return ScreenDialog(
            self._app,
            lambda: WorkspaceRedirectScreen(warn=warn),
            lambda value: DialogResult(accept=value is not None, value=value or None),
        )
