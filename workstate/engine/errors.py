"""Exception hierarchy for workspace state persistence.

One exception per failure mode. Fetch and storage-clear failures are
recovered locally by the orchestrator; save failures reach every
conflated waiter; naming conflicts end the session.
"""
from __future__ import annotations


class WorkstateError(Exception):
    """Base exception for all workspace state errors."""


class ConflictError(WorkstateError):
    """The window name is already claimed by another open session."""
    def __init__(self, name: str, owner: str | None = None):
        self.name = name
        self.owner = owner
        detail = f" (held by {owner})" if owner else ""
        super().__init__(f"Window name already in use: {name}{detail}")


class ResolutionError(WorkstateError):
    """The naming oracle failed for a reason other than a conflict."""
    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Failed to resolve window {name}: {reason}")


class FetchError(WorkstateError):
    """Workspace is missing or the remote store is unreachable."""
    def __init__(self, workspace_id: str, reason: str, *, not_found: bool = False):
        self.workspace_id = workspace_id
        self.reason = reason
        self.not_found = not_found
        super().__init__(f"Fetching workspace {workspace_id} failed: {reason}")


class SaveError(WorkstateError):
    """Remote workspace write failed."""
    def __init__(self, workspace_id: str, reason: str):
        self.workspace_id = workspace_id
        self.reason = reason
        super().__init__(f"Saving workspace {workspace_id} failed: {reason}")


class StorageClearError(WorkstateError):
    """Clearing locally persisted data failed."""
    def __init__(self, location: str, reason: str):
        self.location = location
        self.reason = reason
        super().__init__(f"Clearing local storage at {location} failed: {reason}")


class CommandNotFoundError(WorkstateError):
    """Requested command is not registered."""
    def __init__(self, command_id: str):
        self.command_id = command_id
        super().__init__(f"Command not registered: {command_id}")


class InvalidTransitionError(WorkstateError, ValueError):
    """A lifecycle transition outside the allowed table."""
    def __init__(self, current: str, target: str, allowed: list[str]):
        self.current = current
        self.target = target
        allowed_str = ", ".join(allowed) or "none (terminal)"
        super().__init__(
            f"Invalid state transition: {current} -> {target}. "
            f"Allowed from {current}: {allowed_str}"
        )


class DialogDisposedError(WorkstateError):
    """A prompt was disposed before the user answered it."""
