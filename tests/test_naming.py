from __future__ import annotations

import json
import os

import pytest

from workstate.adapters.naming import LockFileNamingOracle
from workstate.engine.errors import ConflictError

# Above any real pid_max, so never a live process.
DEAD_PID = 2**31 - 2


@pytest.mark.asyncio
async def test_claim_and_release(tmp_path) -> None:
    oracle = LockFileNamingOracle(tmp_path)
    assert await oracle.claim("/lab/workspaces/foo") == "/lab/workspaces/foo"

    locks = list(tmp_path.glob("*.lock"))
    assert len(locks) == 1
    assert json.loads(locks[0].read_text())["pid"] == os.getpid()

    await oracle.release("/lab/workspaces/foo")
    assert list(tmp_path.glob("*.lock")) == []


@pytest.mark.asyncio
async def test_live_owner_conflicts(tmp_path) -> None:
    mine = LockFileNamingOracle(tmp_path)
    other = LockFileNamingOracle(tmp_path, pid=DEAD_PID)
    await mine.claim("/lab")

    with pytest.raises(ConflictError):
        await other.claim("/lab")

    # Someone else's release leaves the lock alone.
    await other.release("/lab")
    assert len(list(tmp_path.glob("*.lock"))) == 1


@pytest.mark.asyncio
async def test_stale_lock_is_taken_over(tmp_path) -> None:
    dead = LockFileNamingOracle(tmp_path, pid=DEAD_PID)
    await dead.claim("/lab")

    mine = LockFileNamingOracle(tmp_path)
    assert await mine.claim("/lab") == "/lab"
    lock = next(tmp_path.glob("*.lock"))
    assert json.loads(lock.read_text())["pid"] == os.getpid()


@pytest.mark.asyncio
async def test_reclaim_by_same_process(tmp_path) -> None:
    oracle = LockFileNamingOracle(tmp_path)
    await oracle.claim("/lab")
    assert await oracle.claim("/lab") == "/lab"
