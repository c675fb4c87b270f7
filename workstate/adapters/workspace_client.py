"""HTTP client for the remote workspace service.

Routes (see workstate.server.workspaces):

    GET  {server}/api/workspaces            -> {"workspaces": {"ids": [...], "values": [...]}}
    GET  {server}/api/workspaces/{id}       -> {"data": ..., "metadata": {"id": ...}}
    PUT  {server}/api/workspaces/{id}       <- {"data": ..., "metadata": {"id": ...}}

Workspace ids are window names such as ``/lab/workspaces/foo`` and are
percent-encoded into a single path segment.
"""
from __future__ import annotations

import logging
from typing import Any, Protocol
from urllib.parse import quote

import aiohttp

from workstate.engine.errors import FetchError, SaveError
from workstate.engine.models import WorkspaceRecord

logger = logging.getLogger(__name__)

API_PATH = "api/workspaces"


class WorkspaceService(Protocol):
    async def fetch(self, workspace_id: str) -> WorkspaceRecord: ...

    async def save(self, workspace_id: str, record: WorkspaceRecord) -> None: ...

    async def list(self) -> list[str]: ...


def workspace_url(server_url: str, workspace_id: str | None = None) -> str:
    base = server_url.rstrip("/") + "/" + API_PATH
    if workspace_id is None:
        return base
    return f"{base}/{quote(workspace_id, safe='')}"


class WorkspaceClient:
    """aiohttp-backed WorkspaceService."""

    def __init__(
        self,
        server_url: str,
        session: aiohttp.ClientSession | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._server_url = server_url
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> WorkspaceClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def fetch(self, workspace_id: str) -> WorkspaceRecord:
        session = await self._get_session()
        url = workspace_url(self._server_url, workspace_id)
        try:
            async with session.get(url) as resp:
                if resp.status == 404:
                    raise FetchError(workspace_id, "workspace does not exist", not_found=True)
                if resp.status >= 400:
                    raise FetchError(workspace_id, f"HTTP {resp.status}: {await resp.text()}")
                payload = await resp.json()
        except aiohttp.ClientError as exc:
            raise FetchError(workspace_id, f"{type(exc).__name__}: {exc}") from exc
        if not isinstance(payload, dict):
            raise FetchError(workspace_id, "malformed workspace payload")
        return WorkspaceRecord.from_dict(workspace_id, payload)

    async def save(self, workspace_id: str, record: WorkspaceRecord) -> None:
        session = await self._get_session()
        url = workspace_url(self._server_url, workspace_id)
        try:
            async with session.put(url, json=record.to_dict()) as resp:
                if resp.status >= 400:
                    raise SaveError(workspace_id, f"HTTP {resp.status}: {await resp.text()}")
        except aiohttp.ClientError as exc:
            raise SaveError(workspace_id, f"{type(exc).__name__}: {exc}") from exc
        logger.info("Saved workspace %s", workspace_id)

    async def list(self) -> list[str]:
        session = await self._get_session()
        url = workspace_url(self._server_url)
        try:
            async with session.get(url) as resp:
                resp.raise_for_status()
                payload = await resp.json()
        except aiohttp.ClientError as exc:
            raise FetchError("*", f"{type(exc).__name__}: {exc}") from exc
        workspaces = payload.get("workspaces", {}) if isinstance(payload, dict) else {}
        return list(workspaces.get("ids", []))
