"""Workspace state persistence: window resolution, gated state and conflated saves."""
from .models import (
    ChangeType,
    DialogResult,
    EscalationPhase,
    Location,
    ResolutionState,
    SaveState,
    SplashState,
    StateChange,
    TransformDirective,
    TransformType,
    WorkspaceContext,
    WorkspaceRecord,
)
from .config import StateConfig
from .errors import (
    CommandNotFoundError,
    ConflictError,
    DialogDisposedError,
    FetchError,
    InvalidTransitionError,
    ResolutionError,
    SaveError,
    StorageClearError,
    WorkstateError,
)
from .commands import CommandRegistry
from .router import Router
from .transform import TransformGate
from .state_db import StateDB
from .save_coordinator import SaveCoordinator
from .resolver import WindowResolver, resolve_window
from .orchestrator import CommandIDs, StateOrchestrator
from .splash import SplashController, SplashHandle

__all__ = [
    # Models
    "ChangeType",
    "DialogResult",
    "EscalationPhase",
    "Location",
    "ResolutionState",
    "SaveState",
    "SplashState",
    "StateChange",
    "TransformDirective",
    "TransformType",
    "WorkspaceContext",
    "WorkspaceRecord",
    # Config
    "StateConfig",
    # Errors
    "CommandNotFoundError",
    "ConflictError",
    "DialogDisposedError",
    "FetchError",
    "InvalidTransitionError",
    "ResolutionError",
    "SaveError",
    "StorageClearError",
    "WorkstateError",
    # Components
    "CommandIDs",
    "CommandRegistry",
    "Router",
    "SaveCoordinator",
    "SplashController",
    "SplashHandle",
    "StateDB",
    "StateOrchestrator",
    "StateSession",
    "TransformGate",
    "WindowResolver",
    "create_session",
    "resolve_window",
    # Lazy imports
    "load_yaml_config",
]


def __getattr__(name: str):
    if name == "StateSession":
        from .session import StateSession
        return StateSession
    if name == "create_session":
        from .session import create_session
        return create_session
    if name == "load_yaml_config":
        from .yaml_config import load_yaml_config
        return load_yaml_config
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
