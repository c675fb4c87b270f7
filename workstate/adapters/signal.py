"""Change notification bridging the state database to its listeners.

Listeners connected with ``connect`` run synchronously on ``emit``.
Async consumers (the terminal host, tests) can instead iterate
``stream()``, which queues emissions like an event bus.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[Any, T], None]


class Signal(Generic[T]):
    """Sender-bound notification with at-most-once listener registration."""

    def __init__(self, sender: Any, maxsize: int = 1000) -> None:
        self._sender = sender
        self._listeners: list[Listener] = []
        self._queues: list[asyncio.Queue[T]] = []
        self._maxsize = maxsize

    def connect(self, listener: Listener) -> bool:
        """Connect a listener. Returns False if it was already connected."""
        if listener in self._listeners:
            return False
        self._listeners.append(listener)
        return True

    def disconnect(self, listener: Listener) -> bool:
        if listener not in self._listeners:
            return False
        self._listeners.remove(listener)
        return True

    def disconnect_all(self) -> None:
        self._listeners.clear()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, args: T) -> None:
        """Notify listeners in connection order; a failing listener is logged."""
        for listener in list(self._listeners):
            try:
                listener(self._sender, args)
            except Exception:
                logger.exception("Signal listener %r failed", listener)
        for queue in list(self._queues):
            try:
                queue.put_nowait(args)
            except asyncio.QueueFull:
                logger.error(
                    "Signal queue full, dropping: %r (queue size: %d)",
                    args,
                    queue.qsize(),
                )

    async def stream(self) -> AsyncIterator[T]:
        """Yield emissions as they arrive until the consumer is cancelled."""
        queue: asyncio.Queue[T] = asyncio.Queue(maxsize=self._maxsize)
        self._queues.append(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._queues.remove(queue)
