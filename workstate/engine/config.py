"""Configuration loaded from environment variables.

All settings have sensible defaults. Override via WORKSTATE_* env vars
or a YAML file (see yaml_config.py).
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .models import WorkspaceContext

logger = logging.getLogger(__name__)


def _default_state_dir() -> str:
    return str(Path.home() / ".workstate")


@dataclass
class StateConfig:
    """Workspace state persistence configuration."""

    # URL layout of the host application.
    base_url: str = "/"
    workspaces_url: str = "/lab/workspaces/"
    # Window name used when the URL names no workspace.
    default_workspace: str = "/lab"
    # Namespace of the state database inside local storage.
    namespace: str = "workstate"

    # Remote workspace service.
    server_url: str = "http://127.0.0.1:8888/"
    request_timeout_seconds: float = 30.0

    # Local storage, window locks, and log files live here.
    state_dir: str = field(default_factory=_default_state_dir)

    # Quiet period that conflates workspace saves.
    save_debounce_seconds: float = 0.75
    # How long the splash may stay up before recovery is offered.
    splash_recover_timeout_seconds: float = 12.0
    splash_fade_seconds: float = 0.5

    log_level: str = "INFO"

    @property
    def state_path(self) -> Path:
        return Path(self.state_dir).expanduser()

    @property
    def local_storage_path(self) -> Path:
        return self.state_path / "local_storage.json"

    @property
    def windows_dir(self) -> Path:
        return self.state_path / "windows"

    @property
    def log_path(self) -> Path:
        return self.state_path / "logs" / "workstate.log"

    def make_context(self) -> WorkspaceContext:
        return WorkspaceContext(
            base_url=self.base_url,
            workspaces_url=self.workspaces_url,
            default_workspace=self.default_workspace,
            namespace=self.namespace,
        )

    @classmethod
    def from_env(cls) -> StateConfig:
        """Load configuration from WORKSTATE_* environment variables."""
        overrides = {
            k: v for k, v in os.environ.items() if k.startswith("WORKSTATE_")
        }
        if overrides:
            logger.info(
                "StateConfig.from_env: WORKSTATE_* env overrides: %s",
                ", ".join(f"{k}={v}" for k, v in sorted(overrides.items())),
            )
        else:
            logger.debug("StateConfig.from_env: no WORKSTATE_* env vars set, using defaults")

        defaults = cls()
        config = cls(
            base_url=os.getenv("WORKSTATE_BASE_URL", defaults.base_url),
            workspaces_url=os.getenv(
                "WORKSTATE_WORKSPACES_URL", defaults.workspaces_url
            ),
            default_workspace=os.getenv(
                "WORKSTATE_DEFAULT_WORKSPACE", defaults.default_workspace
            ),
            namespace=os.getenv("WORKSTATE_NAMESPACE", defaults.namespace),
            server_url=os.getenv("WORKSTATE_SERVER_URL", defaults.server_url),
            request_timeout_seconds=float(os.getenv(
                "WORKSTATE_REQUEST_TIMEOUT",
                str(defaults.request_timeout_seconds),
            )),
            state_dir=os.getenv("WORKSTATE_STATE_DIR", defaults.state_dir),
            save_debounce_seconds=float(os.getenv(
                "WORKSTATE_SAVE_DEBOUNCE", str(defaults.save_debounce_seconds)
            )),
            splash_recover_timeout_seconds=float(os.getenv(
                "WORKSTATE_SPLASH_RECOVER_TIMEOUT",
                str(defaults.splash_recover_timeout_seconds),
            )),
            splash_fade_seconds=float(os.getenv(
                "WORKSTATE_SPLASH_FADE", str(defaults.splash_fade_seconds)
            )),
            log_level=os.getenv("WORKSTATE_LOG_LEVEL", defaults.log_level),
        )
        logger.info(
            "StateConfig.from_env: server=%s workspaces_url=%s state_dir=%s",
            config.server_url, config.workspaces_url, config.state_dir,
        )
        return config
