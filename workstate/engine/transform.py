"""Deferred transform gate.

A single-assignment future holding the transform directive that the
state database applies before serving its first read. The gate does
not guard against a second ``supply``; its one caller (the
orchestrator) owns that discipline and checks ``resolved`` first.
"""
from __future__ import annotations

import asyncio

from .models import TransformDirective


class TransformGate:
    """Once-cell of a TransformDirective."""

    def __init__(self) -> None:
        self._future: asyncio.Future[TransformDirective] = (
            asyncio.get_running_loop().create_future()
        )

    @property
    def resolved(self) -> bool:
        return self._future.done()

    @property
    def directive(self) -> TransformDirective | None:
        return self._future.result() if self._future.done() else None

    def supply(self, directive: TransformDirective) -> None:
        """Resolve the gate. A second call raises asyncio.InvalidStateError."""
        self._future.set_result(directive)

    async def wait(self) -> TransformDirective:
        if self._future.done():
            return self._future.result()
        # Shielded so a cancelled reader does not cancel the gate itself.
        return await asyncio.shield(self._future)
