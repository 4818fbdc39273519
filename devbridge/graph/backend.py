"""Workspace graph backed by NetworkX.

Wraps a ``networkx.DiGraph`` whose nodes are project and external
package names and whose edges point from a dependent to its dependency.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional

import networkx as nx

from devbridge.graph.models import DependencyNode, ExternalNode, ProjectConfiguration

logger = logging.getLogger("devbridge.graph.backend")


class WorkspaceGraph:
    """Read-only snapshot of the workspace projects and their dependencies.

    The graph is assembled once by the loader and treated as immutable
    for the duration of a resolution.
    """

    def __init__(
        self,
        projects: Mapping[str, ProjectConfiguration],
        external_nodes: Optional[Mapping[str, ExternalNode]] = None,
        dependencies: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> None:
        """Initialize the snapshot.

        Args:
            projects: Project name to configuration.
            external_nodes: External node name to node.
            dependencies: Source node name to the names it depends on.
        """
        self._projects: Dict[str, ProjectConfiguration] = dict(projects)
        self._external_nodes: Dict[str, ExternalNode] = dict(external_nodes or {})
        self._graph = nx.DiGraph()

        for name in self._projects:
            self._graph.add_node(name, external=False)
        for name in self._external_nodes:
            self._graph.add_node(name, external=True)

        for source, targets in (dependencies or {}).items():
            for target in targets:
                if source == target:
                    continue
                if not (self._graph.has_node(source) and self._graph.has_node(target)):
                    logger.debug(
                        "Dependency %s -> %s points to an unknown node, skipping",
                        source,
                        target,
                    )
                    continue
                self._graph.add_edge(source, target)

        logger.debug(
            "Workspace graph initialized with %d projects, %d external nodes, %d edges",
            len(self._projects),
            len(self._external_nodes),
            self._graph.number_of_edges(),
        )

    @property
    def native_graph(self) -> nx.DiGraph:
        """Get native NetworkX graph for advanced operations.

        Returns:
            nx.DiGraph: Native graph instance.
        """
        return self._graph

    @property
    def projects(self) -> Mapping[str, ProjectConfiguration]:
        return self._projects

    def has_project(self, name: str) -> bool:
        return name in self._projects

    def get_project(self, name: str) -> Optional[ProjectConfiguration]:
        return self._projects.get(name)

    def is_external(self, name: str) -> bool:
        return name in self._external_nodes

    def dependencies_of(self, name: str) -> List[DependencyNode]:
        """Return every node ``name`` depends on, transitively.

        Nodes are ordered by breadth-first discovery so closer
        dependencies come first.

        Args:
            name: Project name.

        Returns:
            List of dependency nodes, internal and external.
        """
        if not self._graph.has_node(name):
            return []

        result: List[DependencyNode] = []
        for _, dep in nx.bfs_edges(self._graph, name):
            if dep in self._external_nodes:
                result.append(DependencyNode(name=dep, external=True))
            else:
                result.append(
                    DependencyNode(name=dep, external=False, project=self._projects[dep])
                )
        return result


__all__ = ["WorkspaceGraph"]
