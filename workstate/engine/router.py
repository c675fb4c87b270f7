"""URL router dispatching commands for the current location.

Rules are matched against ``path + search + hash`` and run one at a
time in ascending rank order (lower rank first). A command returning
``Router.stop`` short-circuits the remaining rules.

The router never leaves the process itself: hard navigations and
reloads are announced on ``reloaded`` and the host decides how to
restart the session.
"""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from workstate.adapters.signal import Signal

from . import url as urlext
from .commands import CommandRegistry
from .models import Location

logger = logging.getLogger(__name__)


class _Stop:
    def __repr__(self) -> str:
        return "Router.stop"


@dataclass(frozen=True)
class Rule:
    command: str
    pattern: re.Pattern[str]
    rank: int = 100


@dataclass(frozen=True)
class Navigation:
    """Emitted on ``navigated`` for every location change."""
    url: str
    silent: bool
    hard: bool


def parse_location(url: str, base: str = "/") -> Location:
    """Split ``url`` into a Location whose path is relative to ``base``."""
    parts = urlsplit(url)
    path = parts.path or "/"
    if base != "/" and path.startswith(base):
        path = "/" + path[len(base):].lstrip("/")
    return Location(
        path=path,
        search=f"?{parts.query}" if parts.query else "",
        hash=f"#{parts.fragment}" if parts.fragment else "",
    )


class Router:
    """Location-driven command dispatch."""

    stop = _Stop()

    def __init__(
        self,
        commands: CommandRegistry,
        base: str = "/",
        url: str = "/",
    ) -> None:
        self._commands = commands
        self.base = base
        self._current = parse_location(url, base)
        self._rules: list[Rule] = []
        self._route_task: asyncio.Task[None] | None = None
        self.history: list[str] = [self._current.request]
        self.navigated: Signal[Navigation] = Signal(self)
        self.routed: Signal[Location] = Signal(self)
        self.reloaded: Signal[str] = Signal(self)

    @property
    def current(self) -> Location:
        return self._current

    def register(self, command: str, pattern: re.Pattern[str] | str, rank: int = 100) -> Rule:
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        rule = Rule(command=command, pattern=compiled, rank=rank)
        self._rules.append(rule)
        return rule

    def unregister(self, rule: Rule) -> None:
        if rule in self._rules:
            self._rules.remove(rule)

    def navigate(self, url: str, *, silent: bool = False, hard: bool = False) -> None:
        """Move to ``url``; route it unless ``silent``, reload if ``hard``."""
        target = url if url.startswith(self.base) else urlext.join(self.base, url)
        location = parse_location(target, self.base)
        self.navigated.emit(Navigation(url=target, silent=silent, hard=hard))
        if location.request == self._current.request and not hard:
            return
        self._current = location
        self.history.append(location.request)
        if hard:
            self.reload()
            return
        if not silent:
            self._route_task = asyncio.ensure_future(self.route())

    def reload(self) -> None:
        """Ask the host to restart the session at the current location."""
        logger.info("Reloading at %s", self._current.request)
        self.reloaded.emit(self._current.request)

    async def route(self) -> None:
        """Run every matching rule for the current location in rank order."""
        current = self._current
        request = current.request
        queue = sorted(
            (rule for rule in self._rules if rule.pattern.search(request)),
            key=lambda rule: rule.rank,
        )
        for rule in queue:
            try:
                result = await self._commands.execute(rule.command, current)
            except Exception as exc:
                logger.warning("Routing %s to %s failed: %s", request, rule.command, exc)
                continue
            if result is Router.stop:
                logger.info(
                    "Routing %s was short-circuited by %s", request, rule.command,
                )
                break
        self.routed.emit(current)
