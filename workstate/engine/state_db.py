"""Local state database.

Namespaced JSON values kept in the key-value storage primitive under
``<window>:<namespace>:<id>``. Nothing is served until the transform
gate resolves; the directive it carries (overwrite, clear or cancel)
is applied exactly once before the first operation completes.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

from workstate.adapters.signal import Signal

from .models import ChangeType, StateChange, TransformType

if TYPE_CHECKING:
    from workstate.adapters.local_storage import LocalStorage

    from .transform import TransformGate

logger = logging.getLogger(__name__)


class StateDB:
    """Namespaced state store gated on an initial transform directive."""

    def __init__(
        self,
        storage: LocalStorage,
        namespace: str,
        window_name: str,
        transform: TransformGate | None = None,
    ) -> None:
        self._storage = storage
        self.namespace = namespace
        self.window_name = window_name
        self._prefix = f"{window_name}:{namespace}:"
        self._transform = transform
        self._ready: asyncio.Future[None] | None = None
        self.changed: Signal[StateChange] = Signal(self)

    # ── Readiness ──

    async def _apply_transform(self) -> None:
        if self._transform is None:
            return
        directive = await self._transform.wait()
        logger.debug(
            "Applying %s transform to state %s", directive.type.value, self._prefix,
        )
        if directive.type is TransformType.CLEAR:
            self._clear()
        elif directive.type is TransformType.OVERWRITE:
            self._overwrite(directive.contents or {})

    async def ready(self) -> None:
        """Suspend until the transform has been applied."""
        if self._ready is None:
            self._ready = asyncio.ensure_future(self._apply_transform())
        if not self._ready.done():
            await asyncio.shield(self._ready)
        else:
            self._ready.result()

    # ── Storage helpers ──

    def _keys(self) -> list[str]:
        return [k for k in self._storage.keys() if k.startswith(self._prefix)]

    def _read(self, key: str) -> Any:
        raw = self._storage.get_item(self._prefix + key)
        if raw is None:
            return None
        try:
            return json.loads(raw)["v"]
        except (json.JSONDecodeError, KeyError, TypeError):
            logger.warning("Discarding corrupt state value for %s", key)
            return None

    def _write(self, key: str, value: Any) -> None:
        self._storage.set_item(self._prefix + key, json.dumps({"v": value}))

    def _clear(self) -> None:
        self._storage.remove_items(self._keys())

    def _overwrite(self, contents: dict[str, Any]) -> None:
        self._clear()
        for key, value in contents.items():
            self._write(key, value)

    # ── Public API ──

    async def get(self, key: str) -> Any:
        await self.ready()
        return self._read(key)

    async def set(self, key: str, value: Any) -> None:
        await self.ready()
        self._write(key, value)
        self.changed.emit(StateChange(key, ChangeType.SAVE))

    async def remove(self, key: str) -> None:
        await self.ready()
        self._storage.remove_item(self._prefix + key)
        self.changed.emit(StateChange(key, ChangeType.REMOVE))

    async def list(self, namespace: str = "") -> dict[str, Any]:
        """Return every ``id -> value`` whose id starts with ``namespace``."""
        await self.ready()
        start = len(self._prefix)
        return {
            key[start:]: self._read(key[start:])
            for key in self._keys()
            if key[start:].startswith(namespace)
        }

    async def clear(self, silent: bool = False) -> None:
        """Remove all state for this window; ``silent`` suppresses ``changed``."""
        await self.ready()
        self._clear()
        if silent:
            return
        self.changed.emit(StateChange(None, ChangeType.CLEAR))

    async def to_json(self) -> dict[str, Any]:
        return await self.list()
