"""Workspace persistence for the reference workspace server.

Storage layout:
    {root}/{quoted workspace id}.json

Each file holds one workspace record: ``{"data": ..., "metadata": {"id": ...}}``.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import quote, unquote

from workstate.engine.models import WorkspaceRecord
from workstate.shared.services.durable_write import atomic_write_json, read_json

logger = logging.getLogger(__name__)

SUFFIX = ".json"


class WorkspaceStore:
    """Save and load workspace records as JSON files in one directory."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, workspace_id: str) -> Path:
        return self._root / f"{quote(workspace_id, safe='')}{SUFFIX}"

    def exists(self, workspace_id: str) -> bool:
        return self._path(workspace_id).exists()

    def load(self, workspace_id: str) -> WorkspaceRecord | None:
        payload = read_json(self._path(workspace_id))
        if not isinstance(payload, dict):
            return None
        return WorkspaceRecord.from_dict(workspace_id, payload)

    def save(self, record: WorkspaceRecord) -> Path:
        path = self._path(record.id)
        payload: dict[str, Any] = record.to_dict()
        payload["metadata"]["last_modified"] = datetime.now(timezone.utc).isoformat()
        atomic_write_json(path, payload)
        logger.debug("Wrote workspace %s to %s", record.id, path)
        return path

    def delete(self, workspace_id: str) -> bool:
        path = self._path(workspace_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    def list_ids(self) -> list[str]:
        return sorted(
            unquote(p.name[: -len(SUFFIX)])
            for p in self._root.glob(f"*{SUFFIX}")
            if not p.name.startswith(".")
        )

    def list_records(self) -> list[WorkspaceRecord]:
        records = []
        for workspace_id in self.list_ids():
            record = self.load(workspace_id)
            if record is not None:
                records.append(record)
        return records
