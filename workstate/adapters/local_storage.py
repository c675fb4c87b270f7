"""Key-value storage primitive persisted to ~/.workstate/local_storage.json.

Plays the role a browser's local storage plays for a web client: string
keys and string values shared by every window of the same user, kept
across restarts. The state database namespaces its keys inside it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from workstate.adapters.signal import Signal
from workstate.engine.errors import StorageClearError
from workstate.shared.services.durable_write import atomic_write_json, read_json

logger = logging.getLogger(__name__)

FILENAME = "local_storage.json"


@dataclass(frozen=True)
class StorageEvent:
    """Key that changed; ``key`` is None when the whole storage was cleared."""
    key: str | None
    new_value: str | None


class LocalStorage:
    """Load and save string items, notifying ``changed`` on every write."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._items: dict[str, str] = {}
        self.changed: Signal[StorageEvent] = Signal(self)
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        data = read_json(self._path, default={})
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed local storage at %s", self._path)
            data = {}
        self._items = {
            str(k): v for k, v in data.items() if isinstance(v, str)
        }

    def _flush(self) -> None:
        atomic_write_json(self._path, self._items)

    def __len__(self) -> int:
        return len(self._items)

    def keys(self) -> list[str]:
        return list(self._items)

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value
        self._flush()
        self.changed.emit(StorageEvent(key, value))

    def remove_item(self, key: str) -> None:
        if self._items.pop(key, None) is None:
            return
        self._flush()
        self.changed.emit(StorageEvent(key, None))

    def remove_items(self, keys: list[str]) -> None:
        """Remove several keys with a single write."""
        removed = [k for k in keys if self._items.pop(k, None) is not None]
        if not removed:
            return
        self._flush()
        for key in removed:
            self.changed.emit(StorageEvent(key, None))

    def clear(self) -> None:
        """Remove every item. Raises StorageClearError if the file can't be written."""
        try:
            self._items = {}
            self._flush()
        except OSError as exc:
            self._load()
            raise StorageClearError(str(self._path), str(exc)) from exc
        self.changed.emit(StorageEvent(None, None))
