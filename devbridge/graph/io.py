"""Reader for the cached workspace project graph.

The project graph is built and written by the workspace tooling; this
module only reads ``project-graph.json`` from the project graph cache
directory and converts it into a ``WorkspaceGraph``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

from devbridge.graph.backend import WorkspaceGraph
from devbridge.graph.models import (
    ExternalNode,
    ProjectConfiguration,
    ProjectType,
    TargetDefinition,
)
from devbridge.runtime.errors import ProjectGraphUnavailable

logger = logging.getLogger("devbridge.graph.io")

PROJECT_GRAPH_FILE = "project-graph.json"


def _project_from_node(name: str, node: Mapping[str, Any]) -> ProjectConfiguration:
    data = node.get("data") or {}
    targets = {
        target_name: TargetDefinition.from_dict(target or {})
        for target_name, target in (data.get("targets") or {}).items()
    }
    metadata = data.get("metadata") or {}
    js_metadata = metadata.get("js") or {}
    return ProjectConfiguration(
        name=data.get("name") or name,
        root=data.get("root") or "",
        source_root=data.get("sourceRoot"),
        project_type=ProjectType.parse(node.get("type") or data.get("projectType")),
        targets=targets,
        import_path=js_metadata.get("packageName"),
    )


def _external_from_node(name: str, node: Mapping[str, Any]) -> ExternalNode:
    data = node.get("data") or {}
    return ExternalNode(
        name=name,
        package_name=data.get("packageName") or name.split(":", 1)[-1],
        version=data.get("version"),
    )


def project_graph_from_dict(data: Mapping[str, Any]) -> WorkspaceGraph:
    """Build a WorkspaceGraph from the serialized project graph.

    Args:
        data: Parsed ``project-graph.json`` content with ``nodes``,
            ``externalNodes`` and ``dependencies`` sections.

    Returns:
        WorkspaceGraph snapshot.
    """
    nodes = data.get("nodes") or {}
    external_nodes = data.get("externalNodes") or {}
    raw_dependencies = data.get("dependencies") or {}

    projects = {name: _project_from_node(name, node) for name, node in nodes.items()}
    externals = {
        name: _external_from_node(name, node) for name, node in external_nodes.items()
    }

    dependencies: Dict[str, List[str]] = {}
    for source, edges in raw_dependencies.items():
        dependencies[source] = [edge["target"] for edge in edges or [] if edge.get("target")]

    return WorkspaceGraph(projects, externals, dependencies)


def read_cached_project_graph(cache_directory: Union[str, Path]) -> WorkspaceGraph:
    """Read the cached project graph from ``cache_directory``.

    Args:
        cache_directory: Project graph cache directory.

    Returns:
        WorkspaceGraph snapshot.

    Raises:
        ProjectGraphUnavailable: If the file is missing or malformed.
    """
    path = Path(cache_directory) / PROJECT_GRAPH_FILE
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ProjectGraphUnavailable(
            path, "run a command that computes the project graph first"
        ) from exc
    except (OSError, ValueError) as exc:
        raise ProjectGraphUnavailable(path, str(exc)) from exc

    if not isinstance(data, dict):
        raise ProjectGraphUnavailable(path, "top-level value must be an object")

    logger.info("Loaded cached project graph from %s", path)
    return project_graph_from_dict(data)


__all__ = ["PROJECT_GRAPH_FILE", "project_graph_from_dict", "read_cached_project_graph"]
