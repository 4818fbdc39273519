"""Workspace graph data model.

These dataclasses describe the read-only snapshot of the workspace that
target resolution and dependency synthesis work on. Instances are built
by ``devbridge.graph.io`` from the cached project graph and are never
mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class ProjectType(str, Enum):
    """Kind of node stored in the workspace graph."""

    APPLICATION = "app"
    LIBRARY = "lib"
    E2E = "e2e"
    NPM = "npm"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ProjectType":
        try:
            return cls(value or cls.UNKNOWN.value)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class TargetDefinition:
    """A runnable target declared on a project.

    Attributes:
        executor: Executor identifier (``package:builder``).
        options: Base options.
        configurations: Named override layers.
        default_configuration: Configuration applied when none is named.
    """

    executor: str = ""
    options: Mapping[str, Any] = field(default_factory=dict)
    configurations: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    default_configuration: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TargetDefinition":
        """Build a target from its ``project.json`` representation."""
        return cls(
            executor=str(data.get("executor") or data.get("builder") or ""),
            options=dict(data.get("options") or {}),
            configurations={
                name: dict(overrides or {})
                for name, overrides in (data.get("configurations") or {}).items()
            },
            default_configuration=data.get("defaultConfiguration"),
        )


@dataclass(frozen=True)
class ProjectConfiguration:
    """A project of the workspace and the targets it declares.

    Attributes:
        name: Project name.
        root: Project root relative to the workspace root.
        source_root: Optional source root relative to the workspace root.
        project_type: Project kind.
        targets: Target name to definition.
        import_path: Module specifier other projects import this one by.
    """

    name: str
    root: str = ""
    source_root: Optional[str] = None
    project_type: ProjectType = ProjectType.UNKNOWN
    targets: Mapping[str, TargetDefinition] = field(default_factory=dict)
    import_path: Optional[str] = None

    def has_target(self, target: str) -> bool:
        return target in self.targets


@dataclass(frozen=True)
class ExternalNode:
    """A package-manager dependency living outside the workspace."""

    name: str
    package_name: str
    version: Optional[str] = None


@dataclass(frozen=True)
class DependencyNode:
    """A dependency of the project being served.

    Attributes:
        name: Project or external node name.
        external: True when the node lives outside the workspace and can
            never be rebuilt by the orchestrator.
        project: Project configuration for internal nodes.
    """

    name: str
    external: bool = False
    project: Optional[ProjectConfiguration] = None


__all__ = [
    "DependencyNode",
    "ExternalNode",
    "ProjectConfiguration",
    "ProjectType",
    "TargetDefinition",
]
