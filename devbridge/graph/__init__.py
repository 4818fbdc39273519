"""Public graph API surface."""

from devbridge.graph.backend import WorkspaceGraph
from devbridge.graph.io import (
    PROJECT_GRAPH_FILE,
    project_graph_from_dict,
    read_cached_project_graph,
)
from devbridge.graph.models import (
    DependencyNode,
    ExternalNode,
    ProjectConfiguration,
    ProjectType,
    TargetDefinition,
)

__all__ = [
    "DependencyNode",
    "ExternalNode",
    "PROJECT_GRAPH_FILE",
    "ProjectConfiguration",
    "ProjectType",
    "TargetDefinition",
    "WorkspaceGraph",
    "project_graph_from_dict",
    "read_cached_project_graph",
]
