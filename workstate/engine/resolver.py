"""Window identity resolution.

The candidate name comes from the workspace segment of the current
route (``<workspaces_url><name>``) or, when absent, the default
workspace. A failure to claim it is fatal to the session: the user is
asked for a different workspace and the host navigates away.
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from . import url as urlext
from .errors import ConflictError, ResolutionError, WorkstateError
from .models import WorkspaceContext

if TYPE_CHECKING:
    from workstate.adapters.naming import NamingOracle

    from .prompts import PromptService
    from .router import Router

logger = logging.getLogger(__name__)


class WindowResolver:
    """Claims a unique window name from the naming oracle."""

    def __init__(self, oracle: NamingOracle) -> None:
        self._oracle = oracle
        self._name: str | None = None

    @property
    def name(self) -> str:
        if self._name is None:
            raise RuntimeError("Window name has not been resolved")
        return self._name

    @property
    def resolved(self) -> bool:
        return self._name is not None

    async def resolve(self, candidate: str) -> str:
        """Claim ``candidate``. Raises ConflictError or ResolutionError."""
        if self._name is not None:
            return self._name
        try:
            name = await self._oracle.claim(candidate)
        except ConflictError:
            raise
        except Exception as exc:
            raise ResolutionError(candidate, str(exc)) from exc
        self._name = name
        return name

    async def release(self) -> None:
        if self._name is None:
            return
        try:
            await self._oracle.release(self._name)
        except Exception:
            logger.debug("Releasing window name %s failed", self._name, exc_info=True)


def candidate_name(path: str, context: WorkspaceContext) -> str:
    """Window name implied by ``path``, or the default workspace."""
    workspace = urlext.workspace_from_path(path, context.workspaces_url)
    if not workspace:
        return context.default_workspace
    return urlext.join(context.base_url, context.workspaces_url, workspace)


async def resolve_window(
    router: Router,
    resolver: WindowResolver,
    context: WorkspaceContext,
    prompts: PromptService,
) -> WindowResolver:
    """Resolve the window for the router's location and publish it.

    On failure this runs the redirect flow and never returns.
    """
    candidate = candidate_name(router.current.path, context)
    try:
        await resolver.resolve(candidate)
    except WorkstateError as exc:
        logger.warning("Window resolution failed: %s", exc)
        await redirect(router, context, prompts)
    context.workspace = resolver.name
    logger.info("Resolved window %s", context.workspace)
    return resolver


async def redirect(
    router: Router,
    context: WorkspaceContext,
    prompts: PromptService,
) -> None:
    """Ask for a different workspace, navigate there, and never return."""
    warn = False
    while True:
        dialog = prompts.redirect_prompt(warn)
        try:
            result = await dialog.launch()
        finally:
            dialog.dispose()
        if result.value:
            break
        warn = True

    # Abandon this session altogether; the host restarts at the new URL.
    router.navigate(
        urlext.join(context.workspaces_url, result.value), hard=True, silent=True,
    )
    await asyncio.get_running_loop().create_future()
