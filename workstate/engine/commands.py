"""Command registry: named operations invoked by routes, menus, or key bindings."""
from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .errors import CommandNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class Command:
    """A registered command."""

    id: str
    execute: Callable[..., Any]
    label: str | Callable[[], str] = ""

    def display_label(self) -> str:
        return self.label() if callable(self.label) else self.label


class CommandRegistry:
    """Dispatch table of commands keyed by id."""

    def __init__(self) -> None:
        self._commands: dict[str, Command] = {}

    def add_command(
        self,
        command_id: str,
        execute: Callable[..., Any],
        label: str | Callable[[], str] = "",
    ) -> Command:
        if command_id in self._commands:
            raise ValueError(f"Command already registered: {command_id}")
        command = Command(id=command_id, execute=execute, label=label)
        self._commands[command_id] = command
        return command

    def remove_command(self, command_id: str) -> None:
        self._commands.pop(command_id, None)

    def has_command(self, command_id: str) -> bool:
        return command_id in self._commands

    def label(self, command_id: str) -> str:
        command = self._commands.get(command_id)
        if command is None:
            raise CommandNotFoundError(command_id)
        return command.display_label()

    def list_commands(self) -> list[str]:
        return sorted(self._commands)

    async def execute(self, command_id: str, *args: Any, **kwargs: Any) -> Any:
        """Run a command, awaiting its result when it returns an awaitable."""
        command = self._commands.get(command_id)
        if command is None:
            raise CommandNotFoundError(command_id)
        logger.debug("Executing command %s", command_id)
        result = command.execute(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result
