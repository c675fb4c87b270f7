"""Workspace redirect modal asking for a different workspace name.

Shown when the window name for the requested workspace is already
claimed by another window.  The caller keeps reopening the dialog with
``warn=True`` until a non-empty name comes back.

Returns the entered name, or None if the dialog was cancelled.
"""
from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static


class WorkspaceRedirectScreen(ModalScreen[str | None]):
    """Modal dialog collecting the workspace to switch to."""

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
    ]

    CSS = """
    WorkspaceRedirectScreen {
        align: center middle;
    }
    WorkspaceRedirectScreen > Vertical {
        width: 64;
        height: auto;
        background: $surface;
        border: thick $accent;
        padding: 1 2;
    }
    WorkspaceRedirectScreen Label {
        width: 100%;
        text-align: center;
        margin-bottom: 1;
    }
    WorkspaceRedirectScreen #redirect-warning {
        color: $error;
        margin-bottom: 1;
    }
    WorkspaceRedirectScreen Button {
        width: 100%;
        margin-top: 1;
    }
    """

    def __init__(self, warn: bool = False, **kwargs) -> None:
        super().__init__(**kwargs)
        self.warn = warn

    def compose(self) -> ComposeResult:
        with Vertical(id="redirect-dialog"):
            yield Label("Please use a different workspace.")
            yield Static(
                "This workspace is already open in another window.",
                id="redirect-body",
            )
            if self.warn:
                yield Static(
                    "A workspace name is required to continue.",
                    id="redirect-warning",
                )
            yield Input(placeholder="workspace name", id="redirect-input")
            yield Button("Switch Workspace", id="btn-redirect-ok", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#redirect-input", Input).focus()

    def _submit(self) -> None:
        value = self.query_one("#redirect-input", Input).value.strip()
        self.dismiss(value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self._submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-redirect-ok":
            self._submit()

    def action_cancel(self) -> None:
        self.dismiss(None)
