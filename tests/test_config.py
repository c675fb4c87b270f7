from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from workstate.engine.config import StateConfig
from workstate.engine.yaml_config import _coerce, load_yaml_config


def test_defaults() -> None:
    config = StateConfig()
    assert config.save_debounce_seconds == 0.75
    assert config.splash_recover_timeout_seconds == 12.0
    assert config.splash_fade_seconds == 0.5
    context = config.make_context()
    assert context.workspaces_url == "/lab/workspaces/"
    assert context.default_workspace == "/lab"
    assert context.workspace == ""


def test_paths_derive_from_state_dir(tmp_path) -> None:
    config = StateConfig(state_dir=str(tmp_path))
    assert config.local_storage_path == tmp_path / "local_storage.json"
    assert config.windows_dir == tmp_path / "windows"
    assert config.log_path == tmp_path / "logs" / "workstate.log"


def test_from_env_overrides() -> None:
    env = {
        "WORKSTATE_SERVER_URL": "http://remote:9000/",
        "WORKSTATE_SAVE_DEBOUNCE": "0.2",
        "WORKSTATE_SPLASH_RECOVER_TIMEOUT": "3",
        "WORKSTATE_WORKSPACES_URL": "/app/ws/",
    }
    with patch.dict(os.environ, env, clear=False):
        config = StateConfig.from_env()
    assert config.server_url == "http://remote:9000/"
    assert config.save_debounce_seconds == 0.2
    assert config.splash_recover_timeout_seconds == 3.0
    assert config.workspaces_url == "/app/ws/"


def _write(tmp_path: Path, payload) -> Path:
    path = tmp_path / "workstate.yaml"
    path.write_text(yaml.safe_dump(payload))
    return path


def test_yaml_sections_apply(tmp_path) -> None:
    path = _write(tmp_path, {
        "state": {"save_debounce_seconds": 2, "namespace": "custom", "bogus": 1},
        "server": {"port": "9999", "root": str(tmp_path / "ws")},
    })
    config = load_yaml_config(path)
    assert config.state.save_debounce_seconds == 2.0
    assert isinstance(config.state.save_debounce_seconds, float)
    assert config.state.namespace == "custom"
    assert config.server.port == 9999
    assert config.server.root_path == tmp_path / "ws"


def test_empty_yaml_gives_defaults(tmp_path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("")
    config = load_yaml_config(path)
    assert config.server.port == 8888


def test_yaml_rejects_non_mapping(tmp_path) -> None:
    with pytest.raises(ValueError):
        load_yaml_config(_write(tmp_path, [1, 2]))
    with pytest.raises(ValueError):
        load_yaml_config(_write(tmp_path, {"state": [1]}))


def test_missing_yaml_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_yaml_config(tmp_path / "nope.yaml")


def test_bool_strings_are_parsed() -> None:
    assert _coerce("false", True) is False
    assert _coerce("Off", True) is False
    assert _coerce("yes", False) is True
    assert _coerce(0, True) is False
    with pytest.raises(ValueError):
        _coerce("maybe", True)
