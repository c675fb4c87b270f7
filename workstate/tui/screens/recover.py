"""Recovery prompt modal, offered when loading takes too long.

Shown by the splash controller once the recovery timeout elapses while
the splash is still visible.  Clearing drops the window's local state
and reloads with empty state; waiting re-arms the timeout.

Returns True if the user chose to clear, False to keep waiting.
"""
from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static

_RESULT_MAP = {
    "btn-recover-clear": True,
    "btn-recover-wait": False,
}

_BUTTON_ORDER = ["btn-recover-wait", "btn-recover-clear"]


class RecoverPromptScreen(ModalScreen[bool]):
    """Modal dialog offering to clear the workspace after a slow load."""

    BINDINGS = [
        ("escape", "keep_waiting", "Keep Waiting"),
        ("c", "clear_workspace", "Clear Workspace"),
    ]

    _MOUNT_GUARD_SECONDS = 0.3

    CSS = """
    RecoverPromptScreen {
        align: center middle;
    }
    RecoverPromptScreen > Vertical {
        width: 64;
        height: auto;
        background: $surface;
        border: thick $warning;
        padding: 1 2;
    }
    RecoverPromptScreen Label {
        width: 100%;
        text-align: center;
        margin-bottom: 1;
    }
    RecoverPromptScreen Button {
        width: 100%;
        margin-top: 1;
    }
    """

    def compose(self) -> ComposeResult:
        with Vertical(id="recover-dialog"):
            yield Label("Loading...")
            yield Static(
                "The loading screen is taking a long time. "
                "Would you like to clear the workspace or keep waiting?",
                id="recover-body",
            )
            yield Button("[Esc] Keep Waiting", id="btn-recover-wait")
            yield Button(
                "[c] Clear Workspace", id="btn-recover-clear", variant="error",
            )

    def on_mount(self) -> None:
        import time

        self._mount_time = time.monotonic()
        try:
            self.query_one("#btn-recover-wait", Button).focus()
        except Exception:
            pass

    def _is_guarded(self) -> bool:
        import time

        elapsed = time.monotonic() - getattr(self, "_mount_time", 0)
        return elapsed < self._MOUNT_GUARD_SECONDS

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if self._is_guarded():
            return
        result = _RESULT_MAP.get(event.button.id or "")
        if result is not None:
            self.dismiss(result)

    def key_up(self) -> None:
        self._move_focus(-1)

    def key_down(self) -> None:
        self._move_focus(1)

    def _move_focus(self, direction: int) -> None:
        focused = self.focused
        try:
            current_idx = _BUTTON_ORDER.index(focused.id) if focused else -1
        except ValueError:
            return
        new_idx = (current_idx + direction) % len(_BUTTON_ORDER)
        self.query_one(f"#{_BUTTON_ORDER[new_idx]}", Button).focus()

    def action_keep_waiting(self) -> None:
        if self._is_guarded():
            return
        self.dismiss(False)

    def action_clear_workspace(self) -> None:
        if self._is_guarded():
            return
        self.dismiss(True)
