"""Crash-safe JSON files for local storage and the workspace store.

Writes go to a sibling temp file that is fsynced and renamed over the
target, so a reader sees either the old document or the new one. A
document that fails to parse is moved aside to ``<name>.corrupt`` so the
next write does not destroy the evidence.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CORRUPT_SUFFIX = ".corrupt"


def _sync_parent(path: Path) -> None:
    if not hasattr(os, "O_DIRECTORY"):
        return
    try:
        fd = os.open(path.parent, os.O_RDONLY | os.O_DIRECTORY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        logger.debug("Directory fsync unsupported for %s", path.parent)
    finally:
        os.close(fd)


def atomic_write_json(path: Path, payload: Any) -> None:
    """Replace ``path`` with ``payload`` as indented, key-sorted JSON.

    Serialisation happens before anything touches the disk, so a payload
    that is not JSON-serialisable leaves the old file in place.
    """
    document = json.dumps(payload, indent=2, sort_keys=True)
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            tmp.write(document)
            tmp.flush()
            os.fsync(tmp.fileno())
        except BaseException:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise
    try:
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
    _sync_parent(path)


def read_json(path: Path, default: Any = None) -> Any:
    """Load JSON from ``path``.

    A missing or unreadable file gives ``default``. A file that does not
    parse is renamed to ``<name>.corrupt`` and also gives ``default``.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return default
    except OSError as exc:
        logger.warning("Failed to read %s: %s", path, exc)
        return default
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        quarantine = path.with_name(path.name + CORRUPT_SUFFIX)
        logger.warning("Corrupt JSON in %s (%s); moved to %s", path, exc, quarantine.name)
        try:
            os.replace(path, quarantine)
        except OSError:
            logger.debug("Could not move %s aside", path, exc_info=True)
        return default
