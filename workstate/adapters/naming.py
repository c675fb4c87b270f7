"""Naming oracle backed by per-window lock files.

A window name is claimed by creating ``<dir>/<quoted name>.lock`` holding
the owner's pid. A lock whose owner process is gone is stale and is
taken over; a lock held by any other live process is a conflict.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

from workstate.engine.errors import ConflictError

logger = logging.getLogger(__name__)


class NamingOracle(Protocol):
    async def claim(self, name: str) -> str: ...

    async def release(self, name: str) -> None: ...


def _pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


class LockFileNamingOracle:
    """Cross-process window name registry in a shared directory."""

    def __init__(self, directory: Path, pid: int | None = None) -> None:
        self._dir = Path(directory)
        self._pid = pid or os.getpid()

    def _lock_path(self, name: str) -> Path:
        return self._dir / f"{quote(name, safe='')}.lock"

    def _owner(self, path: Path) -> int | None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return int(data["pid"])
        except (OSError, ValueError, KeyError, TypeError):
            return None

    async def claim(self, name: str) -> str:
        """Claim ``name`` for this process. Raises ConflictError if held."""
        self._dir.mkdir(parents=True, exist_ok=True)
        path = self._lock_path(name)
        payload = json.dumps({"pid": self._pid, "name": name})
        try:
            fd = os.open(str(path), os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            owner = self._owner(path)
            if owner is not None and owner != self._pid and _pid_alive(owner):
                raise ConflictError(name, owner=f"pid {owner}")
            logger.info("Taking over stale window lock %s (owner=%s)", name, owner)
            path.write_text(payload, encoding="utf-8")
            return name
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
        logger.debug("Claimed window name %s", name)
        return name

    async def release(self, name: str) -> None:
        path = self._lock_path(name)
        if self._owner(path) == self._pid:
            path.unlink(missing_ok=True)
            logger.debug("Released window name %s", name)
