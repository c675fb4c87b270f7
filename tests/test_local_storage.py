from __future__ import annotations

import asyncio
import json
from unittest.mock import patch

import pytest

from workstate.adapters.local_storage import LocalStorage, StorageEvent
from workstate.adapters.signal import Signal
from workstate.engine.errors import StorageClearError


def test_items_persist_across_instances(tmp_path) -> None:
    path = tmp_path / "local_storage.json"
    storage = LocalStorage(path)
    storage.set_item("a", "1")
    storage.set_item("b", "2")
    storage.remove_item("a")

    reopened = LocalStorage(path)
    assert reopened.keys() == ["b"]
    assert reopened.get_item("b") == "2"
    assert json.loads(path.read_text()) == {"b": "2"}


def test_malformed_file_is_ignored(tmp_path) -> None:
    path = tmp_path / "local_storage.json"
    path.write_text("[1, 2]")
    assert len(LocalStorage(path)) == 0


def test_changed_events(tmp_path) -> None:
    storage = LocalStorage(tmp_path / "s.json")
    events: list[StorageEvent] = []
    storage.changed.connect(lambda _sender, event: events.append(event))

    storage.set_item("a", "1")
    storage.remove_item("missing")
    storage.remove_items(["a", "missing"])
    storage.clear()

    assert events == [
        StorageEvent("a", "1"),
        StorageEvent("a", None),
        StorageEvent(None, None),
    ]


def test_clear_failure_keeps_items(tmp_path) -> None:
    storage = LocalStorage(tmp_path / "s.json")
    storage.set_item("a", "1")

    with patch(
        "workstate.adapters.local_storage.atomic_write_json",
        side_effect=PermissionError("read-only"),
    ):
        with pytest.raises(StorageClearError):
            storage.clear()

    assert storage.get_item("a") == "1"


def test_signal_connects_listener_once() -> None:
    signal: Signal[int] = Signal(sender="s")
    seen: list[tuple[str, int]] = []

    def listener(sender, value) -> None:
        seen.append((sender, value))

    assert signal.connect(listener) is True
    assert signal.connect(listener) is False
    signal.emit(1)
    assert seen == [("s", 1)]

    assert signal.disconnect(listener) is True
    assert signal.disconnect(listener) is False
    signal.emit(2)
    assert seen == [("s", 1)]


def test_failing_listener_does_not_block_others() -> None:
    signal: Signal[int] = Signal(sender=None)
    seen: list[int] = []

    def broken(_sender, _value) -> None:
        raise RuntimeError("boom")

    signal.connect(broken)
    signal.connect(lambda _sender, value: seen.append(value))
    signal.emit(7)
    assert seen == [7]


@pytest.mark.asyncio
async def test_signal_stream_yields_emissions() -> None:
    signal: Signal[str] = Signal(sender=None)
    received: list[str] = []

    async def consume() -> None:
        async for value in signal.stream():
            received.append(value)
            if len(received) == 2:
                return

    task = asyncio.ensure_future(consume())
    await asyncio.sleep(0)
    signal.emit("a")
    signal.emit("b")
    await asyncio.wait_for(task, timeout=1.0)
    assert received == ["a", "b"]
