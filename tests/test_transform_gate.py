from __future__ import annotations

import asyncio

import pytest

from workstate.engine.models import TransformDirective, TransformType
from workstate.engine.transform import TransformGate


@pytest.mark.asyncio
async def test_wait_suspends_until_supplied() -> None:
    gate = TransformGate()
    waiter = asyncio.ensure_future(gate.wait())
    await asyncio.sleep(0)
    assert not waiter.done()
    assert gate.resolved is False
    assert gate.directive is None

    gate.supply(TransformDirective.overwrite({"a": 1}))
    directive = await waiter
    assert directive.type is TransformType.OVERWRITE
    assert directive.contents == {"a": 1}
    assert gate.resolved is True


@pytest.mark.asyncio
async def test_second_supply_raises() -> None:
    gate = TransformGate()
    gate.supply(TransformDirective.cancel())
    with pytest.raises(asyncio.InvalidStateError):
        gate.supply(TransformDirective.clear())
    assert (await gate.wait()).type is TransformType.CANCEL


@pytest.mark.asyncio
async def test_cancelled_reader_does_not_cancel_gate() -> None:
    gate = TransformGate()
    first = asyncio.ensure_future(gate.wait())
    second = asyncio.ensure_future(gate.wait())
    await asyncio.sleep(0)
    first.cancel()
    await asyncio.sleep(0)

    gate.supply(TransformDirective.clear())
    assert (await second).type is TransformType.CLEAR
    assert first.cancelled()


def test_overwrite_copies_contents() -> None:
    source = {"k": "v"}
    directive = TransformDirective.overwrite(source)
    source["k"] = "changed"
    assert directive.contents == {"k": "v"}
    assert TransformDirective.overwrite(None).contents == {}
