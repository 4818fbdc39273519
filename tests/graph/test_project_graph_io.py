"""Tests for reading the cached project graph."""

from pathlib import Path

import pytest

from devbridge.graph import ProjectType, WorkspaceGraph, read_cached_project_graph
from devbridge.runtime.errors import ProjectGraphUnavailable


def test_read_cached_project_graph(workspace: Path) -> None:
    graph = read_cached_project_graph(workspace / ".nx" / "cache")

    app = graph.get_project("app")
    assert app is not None
    assert app.root == "apps/app"
    assert app.project_type is ProjectType.APPLICATION
    assert app.targets["build"].default_configuration == "production"
    assert graph.get_project("lib-a").import_path == "@ws/a"
    assert graph.is_external("npm:rxjs")
    assert not graph.has_project("npm:rxjs")


def test_dependencies_are_transitive_and_tagged(workspace_graph: WorkspaceGraph) -> None:
    deps = workspace_graph.dependencies_of("app")

    assert [(dep.name, dep.external) for dep in deps] == [
        ("lib-a", False),
        ("npm:rxjs", True),
        ("lib-d", False),
        ("lib-c", False),
    ]
    assert deps[0].project is workspace_graph.get_project("lib-a")
    assert workspace_graph.dependencies_of("unknown") == []


def test_unknown_dependency_targets_are_skipped() -> None:
    graph = WorkspaceGraph(
        projects={},
        dependencies={"missing": ["also-missing"]},
    )

    assert graph.native_graph.number_of_edges() == 0


def test_missing_cache_raises(tmp_path: Path) -> None:
    with pytest.raises(ProjectGraphUnavailable) as excinfo:
        read_cached_project_graph(tmp_path)

    assert "project-graph.json" in str(excinfo.value)


def test_malformed_cache_raises(tmp_path: Path) -> None:
    (tmp_path / "project-graph.json").write_text("{oops", encoding="utf-8")

    with pytest.raises(ProjectGraphUnavailable):
        read_cached_project_graph(tmp_path)
