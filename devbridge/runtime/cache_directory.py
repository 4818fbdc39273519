"""Workspace cache directory resolution.

Two directories are resolved per workspace:

* the task cache directory, overridable through ``NX_CACHE_DIRECTORY`` or
  the ``cacheDirectory`` declared in ``nx.json``;
* the project graph cache directory, overridable only through
  ``NX_PROJECT_GRAPH_CACHE_DIRECTORY``.

Both are computed once at startup into an immutable ``CachePaths`` value
that is passed to every consumer.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from pydantic import ValidationError

from devbridge.config.schema import NxJsonConfiguration
from devbridge.utils.path_utils import absolute_path

logger = logging.getLogger("devbridge.runtime.cache_directory")

CACHE_DIRECTORY_ENV = "NX_CACHE_DIRECTORY"
PROJECT_GRAPH_CACHE_DIRECTORY_ENV = "NX_PROJECT_GRAPH_CACHE_DIRECTORY"

NX_JSON = "nx.json"
LEGACY_MARKER = "lerna.json"


def read_cache_directory_property(root: Union[str, Path]) -> Optional[str]:
    """Read the declared cache directory from ``<root>/nx.json``.

    Any failure to read, decode or validate the file is treated as the
    property being absent.

    Args:
        root: Workspace root.

    Returns:
        Declared cache directory, or None.
    """
    nx_json_path = Path(root) / NX_JSON
    try:
        data = json.loads(nx_json_path.read_text(encoding="utf-8"))
        nx_json = NxJsonConfiguration.model_validate(data)
    except (OSError, ValueError, ValidationError) as exc:
        logger.debug("Ignoring unreadable %s: %s", nx_json_path, exc)
        return None
    return nx_json.declared_cache_directory()


def default_cache_directory(root: Union[str, Path]) -> Path:
    """Compute the cache directory used when nothing is configured.

    Workspaces carrying a legacy ``lerna.json`` without ``nx.json`` have
    not opted into caching, so their cache lives inside
    ``node_modules/.cache`` instead of a new top-level ``.nx`` folder.

    Args:
        root: Workspace root.

    Returns:
        Default cache directory.
    """
    root = Path(root)
    if (root / LEGACY_MARKER).exists() and not (root / NX_JSON).exists():
        return root / "node_modules" / ".cache" / "nx"
    return root / ".nx" / "cache"


def resolve_cache_directory(
    root: Union[str, Path],
    environ: Optional[Mapping[str, str]] = None,
) -> Path:
    """Resolve the workspace cache directory.

    Precedence: environment override, ``nx.json`` property, default.

    Args:
        root: Workspace root.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Absolute cache directory path.
    """
    env = os.environ if environ is None else environ
    root = Path(root)

    from_env = env.get(CACHE_DIRECTORY_ENV)
    if from_env:
        logger.debug("Cache directory taken from %s", CACHE_DIRECTORY_ENV)
        return absolute_path(root, from_env)

    declared = read_cache_directory_property(root)
    if declared:
        logger.debug("Cache directory taken from %s", NX_JSON)
        return absolute_path(root, declared)

    return default_cache_directory(root)


def resolve_project_graph_cache_directory(
    root: Union[str, Path],
    environ: Optional[Mapping[str, str]] = None,
) -> Path:
    """Resolve the project graph cache directory.

    Args:
        root: Workspace root.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Absolute project graph cache directory path.
    """
    env = os.environ if environ is None else environ
    root = Path(root)
    from_env = env.get(PROJECT_GRAPH_CACHE_DIRECTORY_ENV)
    if from_env:
        return absolute_path(root, from_env)
    return default_cache_directory(root)


@dataclass(frozen=True)
class CachePaths:
    """Resolved cache locations for one workspace.

    Attributes:
        workspace_root: Absolute workspace root.
        cache_directory: Task cache directory.
        project_graph_cache_directory: Project graph cache directory.
    """

    workspace_root: Path
    cache_directory: Path
    project_graph_cache_directory: Path

    @classmethod
    def from_workspace(
        cls,
        root: Union[str, Path],
        environ: Optional[Mapping[str, str]] = None,
    ) -> "CachePaths":
        """Resolve both cache directories for ``root``."""
        workspace_root = Path(root).resolve()
        paths = cls(
            workspace_root=workspace_root,
            cache_directory=resolve_cache_directory(workspace_root, environ),
            project_graph_cache_directory=resolve_project_graph_cache_directory(
                workspace_root, environ
            ),
        )
        logger.info(
            "Cache directories resolved: cache=%s project-graph=%s",
            paths.cache_directory,
            paths.project_graph_cache_directory,
        )
        return paths


__all__ = [
    "CACHE_DIRECTORY_ENV",
    "PROJECT_GRAPH_CACHE_DIRECTORY_ENV",
    "CachePaths",
    "default_cache_directory",
    "read_cache_directory_property",
    "resolve_cache_directory",
    "resolve_project_graph_cache_directory",
]
