"""Tests for configuration and option loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from devbridge.config import DevBridgeConfig, DevServerOptions
from devbridge.runtime.config_loader import (
    load_config_mapping,
    load_dev_server_options,
    load_devbridge_config,
)


def test_default_config_when_source_missing() -> None:
    config = load_devbridge_config(None)

    assert config == DevBridgeConfig.default()
    assert config.delegate.module == "angular_devkit.build_angular"
    assert config.orchestrator_command == "nx run-many"


def test_config_from_toml_file(tmp_path: Path) -> None:
    path = tmp_path / "devbridge.toml"
    path.write_text(
        'orchestrator_command = "pnpm nx run-many"\n'
        "[delegate]\n"
        'module = "custom.engine"\n',
        encoding="utf-8",
    )

    config = load_devbridge_config(path)

    assert config.orchestrator_command == "pnpm nx run-many"
    assert config.delegate.module == "custom.engine"
    assert config.delegate.entry_point == "execute_dev_server_builder"


def test_config_from_inline_json() -> None:
    config = load_devbridge_config('{"bundle_free_executors": []}')

    assert config.bundle_free_executors == []


def test_unknown_delegate_key_rejected() -> None:
    with pytest.raises(ValidationError):
        load_devbridge_config({"delegate": {"modul": "typo"}})


def test_blank_delegate_module_rejected() -> None:
    with pytest.raises(ValidationError):
        load_devbridge_config({"delegate": {"module": "  "}})


def test_non_mapping_source_rejected() -> None:
    with pytest.raises(ValueError):
        load_config_mapping("[1, 2]")


def test_options_from_json_file_with_overrides(tmp_path: Path) -> None:
    path = tmp_path / "options.json"
    path.write_text(
        json.dumps({"buildTarget": "app:build", "port": 4200, "proxyConfig": "proxy.json"}),
        encoding="utf-8",
    )

    options = load_dev_server_options(path, port=4300, host=None, build_libs_from_source=False)

    assert options.port == 4300
    assert options.host == "localhost"
    assert options.build_libs_from_source is False
    assert options.to_delegate_dict()["proxyConfig"] == "proxy.json"


def test_browser_target_fallback() -> None:
    options = DevServerOptions.model_validate({"browserTarget": "app:build:production"})

    assert options.build_target == "app:build:production"
    assert "browserTarget" not in options.to_delegate_dict()


def test_build_target_required() -> None:
    with pytest.raises(ValidationError):
        load_dev_server_options(None, port=4300)


def test_delegate_dict_is_camel_case() -> None:
    options = load_dev_server_options(
        None, build_target="app:build", live_reload=False, build_libs_from_source=True
    )

    assert options.to_delegate_dict() == {
        "buildTarget": "app:build",
        "host": "localhost",
        "port": 4200,
        "liveReload": False,
        "open": False,
        "ssl": False,
        "watch": True,
    }
