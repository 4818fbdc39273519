"""Shared fixtures: a small workspace with an app and three libraries."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

import pytest

from devbridge.graph import WorkspaceGraph, project_graph_from_dict
from devbridge.runtime.cache_directory import CachePaths
from devbridge.runtime.context import BuilderContext
from devbridge.runtime.targets import TargetReference

ENV_VARS = (
    "NX_CACHE_DIRECTORY",
    "NX_PROJECT_GRAPH_CACHE_DIRECTORY",
    "NX_TSCONFIG_PATH",
)


def _lib(name: str, root: str, package: str, buildable: bool = True) -> Dict[str, Any]:
    targets: Dict[str, Any] = {}
    if buildable:
        targets["build"] = {
            "executor": "@nx/angular:package",
            "options": {"outputPath": f"dist/{root}", "tsConfig": f"{root}/tsconfig.lib.json"},
        }
    return {
        "name": name,
        "type": "lib",
        "data": {
            "name": name,
            "root": root,
            "sourceRoot": f"{root}/src",
            "targets": targets,
            "metadata": {"js": {"packageName": package}},
        },
    }


def make_graph_data() -> Dict[str, Any]:
    """Serialized project graph used across tests.

    ``app`` depends on ``lib-a`` (which depends on ``lib-c``), on the
    non-buildable ``lib-d`` and on the external ``npm:rxjs``.
    """
    app_tsconfig = "apps/app/tsconfig.app.json"
    return {
        "nodes": {
            "app": {
                "name": "app",
                "type": "app",
                "data": {
                    "root": "apps/app",
                    "sourceRoot": "apps/app/src",
                    "targets": {
                        "build": {
                            "executor": "@angular-devkit/build-angular:browser",
                            "options": {
                                "tsConfig": app_tsconfig,
                                "outputPath": "dist/apps/app",
                                "aot": True,
                                "budgets": {"initial": "1mb", "anyComponentStyle": "2kb"},
                            },
                            "configurations": {
                                "production": {
                                    "optimization": True,
                                    "budgets": {"initial": "500kb"},
                                },
                                "development": {
                                    "optimization": False,
                                    "buildLibsFromSource": False,
                                },
                            },
                            "defaultConfiguration": "production",
                        },
                        "build-esbuild": {
                            "executor": "@nx/angular:browser-esbuild",
                            "options": {"tsConfig": app_tsconfig},
                        },
                        "serve": {
                            "executor": "@nx/angular:dev-server",
                            "options": {"buildTarget": "app:build"},
                        },
                    },
                },
            },
            "lib-a": _lib("lib-a", "libs/a", "@ws/a"),
            "lib-c": _lib("lib-c", "libs/c", "@ws/c"),
            "lib-d": _lib("lib-d", "libs/d", "@ws/d", buildable=False),
        },
        "externalNodes": {
            "npm:rxjs": {
                "name": "npm:rxjs",
                "type": "npm",
                "data": {"packageName": "rxjs", "version": "7.8.1"},
            },
        },
        "dependencies": {
            "app": [
                {"source": "app", "target": "lib-a", "type": "static"},
                {"source": "app", "target": "npm:rxjs", "type": "static"},
                {"source": "app", "target": "lib-d", "type": "static"},
            ],
            "lib-a": [{"source": "lib-a", "target": "lib-c", "type": "static"}],
            "lib-c": [],
            "lib-d": [],
        },
    }


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep cache/compiler environment overrides out of every test.

    Setting before deleting makes monkeypatch restore the original state
    even when a test publishes the variable itself.
    """
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture
def graph_data() -> Dict[str, Any]:
    return make_graph_data()


@pytest.fixture
def workspace(tmp_path: Path, graph_data: Dict[str, Any]) -> Path:
    """Workspace on disk with nx.json, compiler configs and a cached graph."""
    write_json(tmp_path / "nx.json", {"npmScope": "ws"})
    write_json(
        tmp_path / "tsconfig.base.json",
        {
            "compilerOptions": {
                "baseUrl": ".",
                "paths": {
                    "@ws/a": ["libs/a/src/index.ts"],
                    "@ws/d": ["libs/d/src/index.ts"],
                },
            }
        },
    )
    write_json(
        tmp_path / "apps" / "app" / "tsconfig.app.json",
        {"extends": "../../tsconfig.base.json", "compilerOptions": {"outDir": "../../dist/out-tsc"}},
    )
    write_json(tmp_path / ".nx" / "cache" / "project-graph.json", graph_data)
    return tmp_path


@pytest.fixture
def workspace_graph(graph_data: Dict[str, Any]) -> WorkspaceGraph:
    return project_graph_from_dict(graph_data)


@pytest.fixture
def builder_context(workspace: Path, workspace_graph: WorkspaceGraph) -> BuilderContext:
    return BuilderContext(
        workspace_root=workspace,
        current_directory=workspace,
        target=TargetReference(project="app", target="serve"),
        graph=workspace_graph,
        cache_paths=CachePaths.from_workspace(workspace, environ={}),
        logger=logging.getLogger("devbridge.tests.delegate"),
    )
