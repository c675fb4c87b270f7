"""HTTP server for workspace records.

Reference implementation of the remote workspace service that
WorkspaceClient talks to. Records live on disk in a WorkspaceStore.

Usage:
    workstate serve [--host HOST] [--port PORT] [--root DIR]
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys
import time
import uuid
from json import JSONDecodeError
from pathlib import Path
from urllib.parse import unquote

from aiohttp import web

from workstate.engine.models import WorkspaceRecord
from workstate.shared.services.workspace_store import WorkspaceStore

logger = logging.getLogger(__name__)


class WorkspaceServer:
    """aiohttp application serving ``/api/workspaces``."""

    def __init__(
        self,
        root: Path,
        host: str = "127.0.0.1",
        port: int = 0,
    ) -> None:
        self._host = host
        self._port = port
        self._store = WorkspaceStore(root)
        self._app = web.Application(middlewares=[self._request_logging_middleware])
        self._setup_routes()
        logger.info(
            "WorkspaceServer init host=%s port=%s root=%s", host, port, self._store.root,
        )

    @property
    def app(self) -> web.Application:
        return self._app

    @property
    def store(self) -> WorkspaceStore:
        return self._store

    # ── Middleware ──

    @web.middleware
    async def _request_logging_middleware(self, request: web.Request, handler) -> web.StreamResponse:
        req_id = request.headers.get("x-request-id", str(uuid.uuid4())[:8])
        start = time.monotonic()
        try:
            response = await handler(request)
        except Exception:
            elapsed_ms = (time.monotonic() - start) * 1000
            logger.exception(
                "HTTP %s %s req=%s failed duration_ms=%.1f",
                request.method, request.path_qs, req_id, elapsed_ms,
            )
            raise
        elapsed_ms = (time.monotonic() - start) * 1000
        logger.info(
            "HTTP %s %s req=%s status=%s duration_ms=%.1f",
            request.method, request.path_qs, req_id,
            getattr(response, "status", "?"), elapsed_ms,
        )
        return response

    # ── Route setup ──

    def _setup_routes(self) -> None:
        r = self._app.router
        r.add_get("/health", self._handle_health)
        r.add_get("/api/workspaces", self._handle_list)
        r.add_get("/api/workspaces/{workspace_id:.+}", self._handle_get)
        r.add_put("/api/workspaces/{workspace_id:.+}", self._handle_put)
        r.add_delete("/api/workspaces/{workspace_id:.+}", self._handle_delete)

    @staticmethod
    def _workspace_id(request: web.Request) -> str:
        return unquote(request.match_info["workspace_id"])

    # ── Handlers ──

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})

    async def _handle_list(self, request: web.Request) -> web.Response:
        records = self._store.list_records()
        return web.json_response({
            "workspaces": {
                "ids": [r.id for r in records],
                "values": [r.to_dict() for r in records],
            }
        })

    async def _handle_get(self, request: web.Request) -> web.Response:
        workspace_id = self._workspace_id(request)
        record = self._store.load(workspace_id)
        if record is None:
            return web.json_response(
                {"error": f"Workspace not found: {workspace_id}"}, status=404,
            )
        return web.json_response(record.to_dict())

    async def _handle_put(self, request: web.Request) -> web.Response:
        workspace_id = self._workspace_id(request)
        try:
            body = await request.json()
        except JSONDecodeError:
            return web.json_response({"error": "Body must be JSON"}, status=400)
        if not isinstance(body, dict):
            return web.json_response({"error": "Workspace must be an object"}, status=400)

        if body.get("id", workspace_id) != workspace_id:
            return web.json_response(
                {"error": f"Workspace ID mismatch: {body.get('id')} != {workspace_id}"},
                status=400,
            )
        metadata = body.get("metadata") or {}
        if not isinstance(metadata, dict):
            return web.json_response({"error": "metadata must be an object"}, status=400)
        if metadata.get("id", workspace_id) != workspace_id:
            return web.json_response(
                {"error": f"Workspace metadata ID mismatch: {metadata.get('id')} != {workspace_id}"},
                status=400,
            )
        data = body.get("data")
        if data is not None and not isinstance(data, dict):
            return web.json_response({"error": "data must be an object"}, status=400)

        record = WorkspaceRecord(id=workspace_id, data=data or {}, metadata=dict(metadata))
        self._store.save(record)
        return web.json_response({"ok": True, "id": workspace_id})

    async def _handle_delete(self, request: web.Request) -> web.Response:
        workspace_id = self._workspace_id(request)
        if not self._store.delete(workspace_id):
            return web.json_response(
                {"error": f"Workspace not found: {workspace_id}"}, status=404,
            )
        return web.Response(status=204)

    # ── Lifecycle ──

    async def start(self) -> None:
        """Serve until cancelled, printing the bound port to stdout."""
        runner = web.AppRunner(self._app)
        await runner.setup()
        site = web.TCPSite(runner, self._host, self._port)
        await site.start()

        server = getattr(site, "_server", None)
        sockets = getattr(server, "sockets", None) or []
        if sockets:
            self._port = sockets[0].getsockname()[1]
        sys.stdout.write(json.dumps({"port": self._port}) + "\n")
        sys.stdout.flush()
        logger.info("Workspace server listening on %s:%d", self._host, self._port)

        try:
            await asyncio.Event().wait()
        except (KeyboardInterrupt, asyncio.CancelledError):
            logger.info("Workspace server shutting down")
        finally:
            await runner.cleanup()
