"""Tests for bundler configuration hooks."""

from __future__ import annotations

from pathlib import Path

import pytest

from devbridge.graph import DependencyNode
from devbridge.runtime.coordination import (
    BuildCoordinationPlugin,
    build_coordination_command,
    create_bundler_config_factory,
    inject_coordination,
    is_bundler_executor,
    merge_configs,
    resolve_custom_file,
    resolve_index_html_transformer,
)
from devbridge.runtime.dependency_mode import DependencyMode, DependencySelection
from devbridge.runtime.errors import FileNotFound
from devbridge.runtime.targets import TargetReference

TARGET = TargetReference("app", "build")


def test_command_lists_only_workspace_dependencies() -> None:
    deps = [
        DependencyNode("a"),
        DependencyNode("b", external=True),
        DependencyNode("c"),
    ]
    config = {"mode": "development"}

    inject_coordination(config, deps, "serve")

    assert config["plugins"] == [
        BuildCoordinationPlugin("nx run-many --target=serve --projects=a,c")
    ]


def test_plugin_appended_after_existing_plugins() -> None:
    config = {"plugins": ["existing"]}

    inject_coordination(config, [DependencyNode("a")], "build", "pnpm nx run-many")

    assert config["plugins"][0] == "existing"
    assert config["plugins"][1].command == "pnpm nx run-many --target=build --projects=a"


def test_only_external_dependencies_skip_plugin() -> None:
    config = {"mode": "development"}

    result = inject_coordination(config, [DependencyNode("npm:rxjs", external=True)], "build")

    assert result is config
    assert "plugins" not in config


def test_empty_command_rejected() -> None:
    with pytest.raises(ValueError):
        build_coordination_command("build", [])


def test_bundle_free_executors() -> None:
    assert is_bundler_executor("@nx/angular:webpack-browser")
    assert not is_bundler_executor("@angular-devkit/build-angular:application")
    assert not is_bundler_executor("@nx/angular:browser-esbuild")
    assert is_bundler_executor("@nx/angular:browser-esbuild", bundle_free_executors=[])


def test_merge_configs_is_deep() -> None:
    merged = merge_configs(
        {"resolve": {"alias": {"a": 1}}, "plugins": ["p1"], "mode": "development"},
        {"resolve": {"alias": {"b": 2}}, "plugins": ["p2"], "mode": "production"},
    )

    assert merged == {
        "resolve": {"alias": {"a": 1, "b": 2}},
        "plugins": ["p1", "p2"],
        "mode": "production",
    }


def test_missing_custom_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFound) as excinfo:
        resolve_custom_file(tmp_path, "nonexistent.py", "Custom Bundler Config")

    message = str(excinfo.value)
    assert "Custom Bundler Config Not Found!" in message
    assert str(tmp_path / "nonexistent.py") in message


def test_custom_file_relative_to_workspace(tmp_path: Path) -> None:
    (tmp_path / "apps").mkdir()
    custom = tmp_path / "apps" / "bundler.py"
    custom.write_text("config = {}\n", encoding="utf-8")

    assert resolve_custom_file(tmp_path, "/apps/bundler.py", "Custom Bundler Config") == custom
    assert resolve_custom_file(tmp_path, None, "Custom Bundler Config") is None


def test_factory_injects_then_merges_custom_mapping(tmp_path: Path) -> None:
    custom = tmp_path / "bundler_mapping.py"
    custom.write_text(
        "config = {'plugins': ['custom'], 'devtool': 'source-map'}\n", encoding="utf-8"
    )
    selection = DependencySelection(
        mode=DependencyMode.SOURCE_BUILD,
        dependencies=[DependencyNode("lib-a"), DependencyNode("npm:rxjs", external=True)],
    )

    factory = create_bundler_config_factory(
        selection, "build", {"tsConfig": "gen.json"}, TARGET, custom_config_path=custom
    )
    result = factory({"mode": "development"})

    assert result["devtool"] == "source-map"
    assert result["plugins"] == [
        BuildCoordinationPlugin("nx run-many --target=build --projects=lib-a"),
        "custom",
    ]


def test_factory_calls_custom_callable(tmp_path: Path) -> None:
    custom = tmp_path / "bundler_callable.py"
    custom.write_text(
        "def config(base, options, target):\n"
        "    base['seen'] = (options['tsConfig'], str(target))\n"
        "    return base\n",
        encoding="utf-8",
    )
    selection = DependencySelection(mode=DependencyMode.ARTIFACT_CONSUMPTION)

    factory = create_bundler_config_factory(
        selection, "build", {"tsConfig": "apps/app/tsconfig.app.json"}, TARGET, custom
    )

    assert factory({}) == {"seen": ("apps/app/tsconfig.app.json", "app:build")}


def test_factory_without_customization_returns_base() -> None:
    selection = DependencySelection(mode=DependencyMode.ARTIFACT_CONSUMPTION)
    factory = create_bundler_config_factory(selection, "build", {}, TARGET)
    base = {"mode": "development"}

    assert factory(base) is base
    assert "plugins" not in base


def test_index_html_transformer_binds_target(tmp_path: Path) -> None:
    module = tmp_path / "index_transform.py"
    module.write_text(
        "def transform(target, index_html):\n"
        "    return index_html.replace('</head>', f'<meta name=\"t\" content=\"{target}\"></head>')\n",
        encoding="utf-8",
    )

    transform = resolve_index_html_transformer(module, TARGET)

    assert transform("<head></head>") == '<head><meta name="t" content="app:build"></head>'
