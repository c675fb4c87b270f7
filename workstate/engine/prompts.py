"""User prompt capability consumed by the resolver and the splash.

Frontends implement PromptService; the terminal host does it with
Textual modal screens (see workstate.tui.prompts).
"""
from __future__ import annotations

from typing import Protocol

from .models import DialogResult


class Dialog(Protocol):
    """A blocking user choice.

    ``launch`` resolves with the user's answer, or raises
    DialogDisposedError when ``dispose`` is called first.
    """

    async def launch(self) -> DialogResult: ...

    def dispose(self) -> None: ...


class PromptService(Protocol):
    def recover_prompt(self) -> Dialog:
        """Ask whether to keep waiting (reject) or clear the workspace (accept)."""
        ...

    def redirect_prompt(self, warn: bool = False) -> Dialog:
        """Ask for a different workspace name; ``warn`` after an empty answer."""
        ...
