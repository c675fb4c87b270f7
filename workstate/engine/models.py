"""Core data models for workspace state persistence.

All dataclasses, enums, and type aliases. Single source of truth
to avoid circular imports.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TransformType(str, Enum):
    """How freshly fetched remote data reconciles with local state."""
    OVERWRITE = "overwrite"
    CANCEL = "cancel"
    CLEAR = "clear"


class ResolutionState(str, Enum):
    """Initial-load lifecycle. See lifecycle.py for transition rules."""
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"


class SaveState(str, Enum):
    """Save coordinator states."""
    IDLE = "idle"
    PENDING = "pending"
    FIRING = "firing"


class SplashState(str, Enum):
    """Splash visibility. See lifecycle.py for transition rules."""
    HIDDEN = "hidden"
    VISIBLE = "visible"
    ESCALATED = "escalated"


class EscalationPhase(str, Enum):
    """Phases of the recovery escalation loop."""
    WAITING = "waiting"
    PROMPT_OPEN = "prompt_open"


class ChangeType(str, Enum):
    SAVE = "save"
    REMOVE = "remove"
    CLEAR = "clear"


@dataclass(frozen=True)
class TransformDirective:
    """One-time instruction applied to the state database at startup."""
    type: TransformType
    contents: dict[str, Any] | None = None

    @classmethod
    def overwrite(cls, contents: dict[str, Any] | None) -> TransformDirective:
        return cls(TransformType.OVERWRITE, dict(contents or {}))

    @classmethod
    def cancel(cls) -> TransformDirective:
        return cls(TransformType.CANCEL)

    @classmethod
    def clear(cls) -> TransformDirective:
        return cls(TransformType.CLEAR)


@dataclass(frozen=True)
class StateChange:
    """Emitted by the state database for every non-silent mutation."""
    id: str | None
    type: ChangeType


@dataclass
class WorkspaceRecord:
    """The unit exchanged with the remote workspace service."""
    id: str
    data: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.metadata.setdefault("id", self.id)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "data": self.data, "metadata": dict(self.metadata)}

    @classmethod
    def from_dict(cls, workspace_id: str, payload: dict[str, Any]) -> WorkspaceRecord:
        data = payload.get("data")
        metadata = payload.get("metadata")
        return cls(
            id=workspace_id,
            data=data if isinstance(data, dict) else {},
            metadata=dict(metadata) if isinstance(metadata, dict) else {},
        )


@dataclass(frozen=True)
class Location:
    """Route location: what the router dispatches commands with."""
    path: str = "/"
    search: str = ""
    hash: str = ""

    @property
    def request(self) -> str:
        return self.path + self.search + self.hash


@dataclass(frozen=True)
class DialogResult:
    """Outcome of a user prompt."""
    accept: bool
    value: str | None = None


@dataclass
class WorkspaceContext:
    """Shared session configuration.

    ``workspace`` is empty until the window resolver publishes the
    resolved window identity.
    """
    base_url: str = "/"
    workspaces_url: str = "/lab/workspaces/"
    default_workspace: str = "/lab"
    namespace: str = "workstate"
    workspace: str = ""
