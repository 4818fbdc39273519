"""Target reference parsing and resolution against the workspace graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from devbridge.graph.backend import WorkspaceGraph
from devbridge.graph.models import TargetDefinition
from devbridge.runtime.errors import ProjectNotFound, TargetNotFound, TargetParseError
from devbridge.utils.path_utils import find_owning_root

logger = logging.getLogger("devbridge.runtime.targets")


@dataclass(frozen=True)
class TargetReference:
    """A concrete ``project:target[:configuration]`` triple."""

    project: str
    target: str
    configuration: Optional[str] = None

    def __str__(self) -> str:
        parts = [self.project, self.target]
        if self.configuration:
            parts.append(self.configuration)
        return ":".join(parts)


@dataclass(frozen=True)
class TargetParseContext:
    """Context used to fill in parts a target string leaves out.

    Attributes:
        graph: Workspace graph the reference is resolved against.
        workspace_root: Workspace root directory.
        current_directory: Directory the command runs from.
        project_name: Project currently being served, used when the
            string names only a target.
    """

    graph: WorkspaceGraph
    workspace_root: Path
    current_directory: Optional[Path] = None
    project_name: Optional[str] = None


def _default_project(ctx: TargetParseContext) -> Optional[str]:
    if ctx.project_name:
        return ctx.project_name
    if ctx.current_directory is None:
        return None
    return find_owning_root(
        ctx.current_directory,
        ctx.workspace_root,
        ((name, project.root) for name, project in ctx.graph.projects.items()),
    )


def parse_target_string(ref: str, ctx: TargetParseContext) -> TargetReference:
    """Parse ``ref`` into a TargetReference.

    A bare ``target`` belongs to the default project. Project names may
    themselves contain ``:``; the longest prefix naming a known project
    wins, otherwise the first segment is the project.

    Args:
        ref: Target string.
        ctx: Parse context.

    Returns:
        Parsed reference (the project is not checked for existence).

    Raises:
        TargetParseError: If the string is empty or cannot be split.
    """
    text = (ref or "").strip()
    if not text:
        raise TargetParseError("Target string must not be empty")

    segments = text.split(":")
    if any(not segment for segment in segments):
        raise TargetParseError(f"Invalid target string '{ref}'")

    if len(segments) == 1:
        project = _default_project(ctx)
        if not project:
            raise TargetParseError(
                f"Cannot determine the project for target '{ref}'; "
                "use the project:target[:configuration] form"
            )
        return TargetReference(project=project, target=segments[0])

    for split in range(len(segments) - 1, 0, -1):
        candidate = ":".join(segments[:split])
        if ctx.graph.has_project(candidate):
            rest = segments[split:]
            break
    else:
        candidate, rest = segments[0], segments[1:]

    if len(rest) > 2:
        raise TargetParseError(f"Invalid target string '{ref}'")

    return TargetReference(
        project=candidate,
        target=rest[0],
        configuration=rest[1] if len(rest) == 2 else None,
    )


def resolve_target(
    ref: Union[str, TargetReference], ctx: TargetParseContext
) -> Tuple[TargetReference, TargetDefinition]:
    """Resolve a target reference to its definition.

    Args:
        ref: Target string or already parsed reference.
        ctx: Parse context holding the workspace graph.

    Returns:
        Tuple of (parsed reference, raw target definition).

    Raises:
        ProjectNotFound: If the project is not in the graph.
        TargetNotFound: If the project does not declare the target.
    """
    parsed = ref if isinstance(ref, TargetReference) else parse_target_string(ref, ctx)

    project = ctx.graph.get_project(parsed.project)
    if project is None:
        raise ProjectNotFound(parsed.project)

    definition = project.targets.get(parsed.target)
    if definition is None:
        raise TargetNotFound(parsed.project, parsed.target)

    logger.debug("Resolved %s to executor %s", parsed, definition.executor)
    return parsed, definition


__all__ = [
    "TargetParseContext",
    "TargetReference",
    "parse_target_string",
    "resolve_target",
]
