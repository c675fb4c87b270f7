from __future__ import annotations

import asyncio

import pytest

from workstate.adapters.local_storage import LocalStorage
from workstate.engine.errors import SaveError
from workstate.engine.models import SaveState, WorkspaceContext, WorkspaceRecord
from workstate.engine.save_coordinator import SaveCoordinator
from workstate.engine.state_db import StateDB


class FakeWorkspaces:
    """Records saves; ``gate`` lets a test hold a write in flight."""

    def __init__(self) -> None:
        self.saves: list[tuple[str, WorkspaceRecord]] = []
        self.gate: asyncio.Event | None = None
        self.fail = False

    async def fetch(self, workspace_id: str) -> WorkspaceRecord:
        raise NotImplementedError

    async def save(self, workspace_id: str, record: WorkspaceRecord) -> None:
        self.saves.append((workspace_id, record))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise SaveError(workspace_id, "boom")

    async def list(self) -> list[str]:
        return []


def _make(tmp_path, interval: float = 0.05):
    storage = LocalStorage(tmp_path / "local_storage.json")
    state = StateDB(storage, "ns", "win")
    workspaces = FakeWorkspaces()
    context = WorkspaceContext(workspace="/lab/workspaces/foo")
    saver = SaveCoordinator(state, workspaces, context, interval=interval)
    return saver, state, workspaces


@pytest.mark.asyncio
async def test_burst_of_requests_produces_one_write(tmp_path) -> None:
    saver, state, workspaces = _make(tmp_path)
    await state.set("a", 1)

    futures = [saver.request_save() for _ in range(5)]
    assert saver.status is SaveState.PENDING
    assert saver.pending

    await asyncio.gather(*futures)
    assert len(workspaces.saves) == 1
    workspace_id, record = workspaces.saves[0]
    assert workspace_id == "/lab/workspaces/foo"
    assert record.data == {"a": 1}
    assert record.metadata == {"id": "/lab/workspaces/foo"}
    assert saver.status is SaveState.IDLE
    assert not saver.pending


@pytest.mark.asyncio
async def test_each_request_rearms_the_timer(tmp_path) -> None:
    saver, _state, workspaces = _make(tmp_path, interval=0.05)

    first = saver.request_save()
    await asyncio.sleep(0.03)
    second = saver.request_save()
    await asyncio.sleep(0.03)
    # 60ms after the first request but only 30ms after the re-arm.
    assert workspaces.saves == []

    await asyncio.gather(first, second)
    assert len(workspaces.saves) == 1


@pytest.mark.asyncio
async def test_immediate_skips_the_debounce(tmp_path) -> None:
    saver, _state, workspaces = _make(tmp_path, interval=10.0)

    await asyncio.wait_for(saver.request_save(immediate=True), timeout=1.0)
    assert len(workspaces.saves) == 1


@pytest.mark.asyncio
async def test_immediate_joins_outstanding_token(tmp_path) -> None:
    saver, _state, workspaces = _make(tmp_path, interval=10.0)

    debounced = saver.request_save()
    immediate = saver.request_save(immediate=True)
    await asyncio.wait_for(asyncio.gather(debounced, immediate), timeout=1.0)
    assert len(workspaces.saves) == 1


@pytest.mark.asyncio
async def test_request_during_write_is_saved_after_it(tmp_path) -> None:
    saver, state, workspaces = _make(tmp_path, interval=0.01)
    workspaces.gate = asyncio.Event()
    await state.set("a", 1)

    first = saver.request_save(immediate=True)
    await asyncio.sleep(0.02)
    assert saver.status is SaveState.FIRING

    await state.set("b", 2)
    follow_up = saver.request_save()
    await asyncio.sleep(0.03)
    # Still one write in flight; the next one waits for it.
    assert len(workspaces.saves) == 1
    assert saver.pending

    workspaces.gate.set()
    await asyncio.wait_for(asyncio.gather(first, follow_up), timeout=1.0)

    assert [record.data for _id, record in workspaces.saves] == [
        {"a": 1},
        {"a": 1, "b": 2},
    ]
    assert saver.status is SaveState.IDLE
    assert not saver.pending


@pytest.mark.asyncio
async def test_new_window_after_write_settles(tmp_path) -> None:
    saver, state, workspaces = _make(tmp_path, interval=0.01)

    await saver.request_save()
    await state.set("b", 2)
    await saver.request_save()

    assert len(workspaces.saves) == 2
    assert workspaces.saves[1][1].data == {"b": 2}


@pytest.mark.asyncio
async def test_failure_reaches_every_caller(tmp_path) -> None:
    saver, _state, workspaces = _make(tmp_path, interval=0.01)
    workspaces.fail = True

    first = saver.request_save()
    second = saver.request_save()
    results = await asyncio.gather(first, second, return_exceptions=True)

    assert all(isinstance(r, SaveError) for r in results)
    assert saver.status is SaveState.IDLE
    assert not saver.pending


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_cancel_shared_outcome(tmp_path) -> None:
    saver, _state, workspaces = _make(tmp_path, interval=0.02)

    abandoned = saver.request_save()
    kept = saver.request_save()
    abandoned.cancel()

    await kept
    assert len(workspaces.saves) == 1


@pytest.mark.asyncio
async def test_aclose_cancels_sleeping_timer(tmp_path) -> None:
    saver, _state, workspaces = _make(tmp_path, interval=0.02)

    saver.request_save()
    await saver.aclose()
    await asyncio.sleep(0.05)
    assert workspaces.saves == []
    assert not saver.pending


@pytest.mark.asyncio
async def test_aclose_cancels_unwritten_token(tmp_path) -> None:
    saver, _state, workspaces = _make(tmp_path, interval=10.0)

    waiter = saver.request_save()
    await saver.aclose()

    with pytest.raises(asyncio.CancelledError):
        await waiter
    assert workspaces.saves == []
    assert saver.status is SaveState.IDLE
