from __future__ import annotations

import asyncio
import json

import pytest

from workstate.adapters.local_storage import LocalStorage
from workstate.engine.models import ChangeType, StateChange, TransformDirective
from workstate.engine.state_db import StateDB
from workstate.engine.transform import TransformGate


def _storage(tmp_path) -> LocalStorage:
    return LocalStorage(tmp_path / "local_storage.json")


def _record(changes: list[StateChange]):
    def listener(_sender, change: StateChange) -> None:
        changes.append(change)
    return listener


@pytest.mark.asyncio
async def test_operations_wait_for_transform(tmp_path) -> None:
    gate = TransformGate()
    db = StateDB(_storage(tmp_path), "ns", "win", gate)

    pending = asyncio.ensure_future(db.get("layout"))
    await asyncio.sleep(0.01)
    assert not pending.done()

    gate.supply(TransformDirective.overwrite({"layout": {"main": ["a"]}}))
    assert await pending == {"main": ["a"]}


@pytest.mark.asyncio
async def test_overwrite_replaces_local_contents(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.set_item("win:ns:old", json.dumps({"v": 1}))
    storage.set_item("other:ns:keep", json.dumps({"v": 2}))

    gate = TransformGate()
    gate.supply(TransformDirective.overwrite({"new": 3}))
    db = StateDB(storage, "ns", "win", gate)

    assert await db.list() == {"new": 3}
    assert storage.get_item("other:ns:keep") is not None


@pytest.mark.asyncio
async def test_cancel_keeps_local_contents(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.set_item("win:ns:old", json.dumps({"v": "x"}))
    gate = TransformGate()
    gate.supply(TransformDirective.cancel())
    db = StateDB(storage, "ns", "win", gate)

    assert await db.to_json() == {"old": "x"}


@pytest.mark.asyncio
async def test_clear_transform_empties_window_state(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.set_item("win:ns:old", json.dumps({"v": "x"}))
    gate = TransformGate()
    gate.supply(TransformDirective.clear())
    db = StateDB(storage, "ns", "win", gate)

    assert await db.to_json() == {}
    assert len(storage) == 0


@pytest.mark.asyncio
async def test_transform_applied_once(tmp_path) -> None:
    gate = TransformGate()
    gate.supply(TransformDirective.overwrite({"a": 1}))
    db = StateDB(_storage(tmp_path), "ns", "win", gate)

    await db.set("b", 2)
    await db.ready()
    assert await db.to_json() == {"a": 1, "b": 2}


@pytest.mark.asyncio
async def test_changed_emitted_for_mutations(tmp_path) -> None:
    db = StateDB(_storage(tmp_path), "ns", "win")
    changes: list[StateChange] = []
    db.changed.connect(_record(changes))

    await db.set("a", 1)
    await db.remove("a")
    await db.clear()
    await db.clear(silent=True)

    assert changes == [
        StateChange("a", ChangeType.SAVE),
        StateChange("a", ChangeType.REMOVE),
        StateChange(None, ChangeType.CLEAR),
    ]


@pytest.mark.asyncio
async def test_list_filters_by_namespace_prefix(tmp_path) -> None:
    db = StateDB(_storage(tmp_path), "ns", "win")
    await db.set("layout:main", 1)
    await db.set("layout:side", 2)
    await db.set("settings", 3)

    assert await db.list("layout:") == {"layout:main": 1, "layout:side": 2}


@pytest.mark.asyncio
async def test_corrupt_value_reads_as_none(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.set_item("win:ns:bad", "not json")
    db = StateDB(storage, "ns", "win")

    assert await db.get("bad") is None
    assert await db.get("missing") is None
