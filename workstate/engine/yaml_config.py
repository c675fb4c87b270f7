"""YAML configuration loader.

Example YAML:
    state:
      server_url: http://127.0.0.1:8888/
      workspaces_url: /lab/workspaces/
      default_workspace: /lab
      save_debounce_seconds: 0.75
      splash_recover_timeout_seconds: 12

    server:
      host: 127.0.0.1
      port: 8888
      root: ~/.workstate/workspaces

Keys in ``state`` override the environment (StateConfig.from_env).
Unknown keys are logged and ignored.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .config import StateConfig

logger = logging.getLogger(__name__)


@dataclass
class ServerConfig:
    """Settings for ``workstate serve``."""
    host: str = "127.0.0.1"
    port: int = 8888
    root: str = "~/.workstate/workspaces"

    @property
    def root_path(self) -> Path:
        return Path(self.root).expanduser()


@dataclass
class WorkstateYamlConfig:
    """Parsed YAML file."""
    state: StateConfig = field(default_factory=StateConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ValueError(f"not a boolean: {value!r}")
    return bool(value)


def _coerce(value: Any, current: Any) -> Any:
    """Coerce a YAML scalar to the type of the dataclass default."""
    if isinstance(current, bool):
        return _coerce_bool(value)
    if isinstance(current, float):
        return float(value)
    if isinstance(current, int):
        return int(value)
    if isinstance(current, str):
        return str(value)
    return value


def _apply_section(target: Any, section: dict[str, Any], name: str) -> None:
    known = {f.name for f in fields(target)}
    for key, value in section.items():
        if key not in known:
            logger.warning("load_yaml_config: ignoring unknown key %s.%s", name, key)
            continue
        setattr(target, key, _coerce(value, getattr(target, key)))


def load_yaml_config(path: str | Path) -> WorkstateYamlConfig:
    """Load and parse a YAML config file on top of the environment config."""
    path = Path(path)
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error(
            "load_yaml_config: config file not found at %s (absolute path: %s)",
            path, path.absolute(),
        )
        raise
    except yaml.YAMLError as exc:
        logger.error("load_yaml_config: YAML parse error in %s: %s", path, exc)
        raise

    if not isinstance(raw, dict):
        raise ValueError(f"{path}: top level must be a mapping")

    logger.info(
        "Parsed YAML config %s, sections: %s",
        path.name, ", ".join(sorted(raw)) if raw else "(empty)",
    )

    config = WorkstateYamlConfig(state=StateConfig.from_env())
    for name in ("state", "server"):
        section = raw.get(name) or {}
        if not isinstance(section, dict):
            raise ValueError(f"{path}: section '{name}' must be a mapping")
        _apply_section(getattr(config, name), section, name)
    return config
