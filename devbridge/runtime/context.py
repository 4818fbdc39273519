"""Builder context handed to the delegate engine.

The context is the single place the delegate can query workspace state
from. The effective options of the build target are stored on it by
reference, so a compiler-config path rewritten by the dependency mode
selector is observed both by the options passed to the delegate and by
any later ``get_target_options`` call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from devbridge.graph.backend import WorkspaceGraph
from devbridge.graph.models import TargetDefinition
from devbridge.runtime.cache_directory import CachePaths
from devbridge.runtime.layering import layer_options, select_configuration
from devbridge.runtime.targets import (
    TargetParseContext,
    TargetReference,
    resolve_target,
)


@dataclass
class BuilderContext:
    """Workspace state shared between devbridge and the delegate engine.

    Args:
        workspace_root: Absolute workspace root.
        current_directory: Directory the command runs from.
        target: The dev-server target being executed.
        graph: Cached workspace graph snapshot.
        cache_paths: Resolved cache directories.
        logger: Logger the delegate should report through.
        build_target: Resolved build target reference, set once resolved.
        build_target_options: Effective options of ``build_target``; the
            same object is handed to every consumer.
    """

    workspace_root: Path
    current_directory: Path
    target: TargetReference
    graph: WorkspaceGraph
    cache_paths: CachePaths
    logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger("devbridge.delegate")
    )
    build_target: Optional[TargetReference] = None
    build_target_options: Optional[Dict[str, Any]] = None

    def parse_context(self) -> TargetParseContext:
        """Return the parse context relative to the served project."""
        return TargetParseContext(
            graph=self.graph,
            workspace_root=self.workspace_root,
            current_directory=self.current_directory,
            project_name=self.target.project,
        )

    def _is_build_target(
        self, reference: TargetReference, definition: TargetDefinition
    ) -> bool:
        if self.build_target is None or self.build_target_options is None:
            return False
        if (reference.project, reference.target) != (
            self.build_target.project,
            self.build_target.target,
        ):
            return False
        return select_configuration(definition, reference.configuration) == (
            select_configuration(definition, self.build_target.configuration)
        )

    def get_target_options(
        self, target: Union[str, TargetReference]
    ) -> Dict[str, Any]:
        """Return effective options for ``target``.

        Any spelling of the build target that selects the same effective
        configuration answers with the shared options object; any other
        target is layered fresh from the workspace graph.

        Args:
            target: Target string or reference.

        Returns:
            Effective options.
        """
        ctx = self.parse_context()
        reference, definition = resolve_target(target, ctx)
        if self._is_build_target(reference, definition):
            return self.build_target_options

        return layer_options(
            definition, reference.configuration, target_name=reference.target
        )

    def get_builder_name_for_target(self, target: Union[str, TargetReference]) -> str:
        """Return the executor identifier of ``target``."""
        _, definition = resolve_target(target, self.parse_context())
        return definition.executor


__all__ = ["BuilderContext"]
