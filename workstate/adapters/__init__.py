"""Adapters package - collaborators the state engine talks to.

The change signal, the key-value storage primitive, the window naming
oracle, and the HTTP client of the remote workspace service.
"""
from __future__ import annotations

__all__ = [
    "LocalStorage",
    "LockFileNamingOracle",
    "Signal",
    "WorkspaceClient",
]

from workstate.adapters.signal import Signal
from workstate.adapters.local_storage import LocalStorage
from workstate.adapters.naming import LockFileNamingOracle
from workstate.adapters.workspace_client import WorkspaceClient
