"""Bundler configuration hooks for coordinated dependency rebuilds.

When dependencies are served from their build outputs, the bundler gets a
``BuildCoordinationPlugin`` carrying a scoped rebuild command for the
in-workspace dependencies. Users may further customize the bundler
configuration and the index document through Python modules referenced
from the build target options.
"""

from __future__ import annotations

import functools
import hashlib
import importlib.util
import logging
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from devbridge.config.schema import DEFAULT_BUNDLE_FREE_EXECUTORS
from devbridge.graph.models import DependencyNode
from devbridge.runtime.dependency_mode import DependencyMode, DependencySelection
from devbridge.runtime.errors import FileNotFound
from devbridge.runtime.targets import TargetReference
from devbridge.utils.path_utils import join_path_fragments

logger = logging.getLogger("devbridge.runtime.coordination")

DEFAULT_ORCHESTRATOR_COMMAND = "nx run-many"

BundlerConfig = Dict[str, Any]
BundlerConfigFactory = Callable[[BundlerConfig], BundlerConfig]
IndexHtmlTransform = Callable[[str], str]


@dataclass(frozen=True)
class BuildCoordinationPlugin:
    """Bundler plugin that reruns ``command`` when dependency sources change.

    Watching and running the command is the bundler plugin runtime's job;
    devbridge only decides the command.
    """

    command: str
    name: str = "BuildCoordinationPlugin"


def is_bundler_executor(
    executor: str, bundle_free_executors: Optional[Iterable[str]] = None
) -> bool:
    """Return True when ``executor`` runs a bundler accepting plugins."""
    excluded = (
        DEFAULT_BUNDLE_FREE_EXECUTORS
        if bundle_free_executors is None
        else list(bundle_free_executors)
    )
    return executor not in excluded


def build_coordination_command(
    target_name: str,
    project_names: Sequence[str],
    orchestrator_command: str = DEFAULT_ORCHESTRATOR_COMMAND,
) -> str:
    """Format the scoped rebuild command.

    Raises:
        ValueError: If ``project_names`` is empty; the orchestrator reads
            an empty ``--projects`` as every project.
    """
    if not project_names:
        raise ValueError("Coordination command requires at least one project")
    return (
        f"{orchestrator_command} --target={target_name} "
        f"--projects={','.join(project_names)}"
    )


def inject_coordination(
    base_config: BundlerConfig,
    dependencies: Iterable[DependencyNode],
    target_name: str,
    orchestrator_command: str = DEFAULT_ORCHESTRATOR_COMMAND,
) -> BundlerConfig:
    """Append a coordination plugin for in-workspace dependencies.

    External dependencies are never part of the command. With no
    in-workspace dependency the config is returned untouched.

    Args:
        base_config: Bundler configuration (mutated in place).
        dependencies: Dependency set of the served project.
        target_name: Target the orchestrator runs for each dependency.
        orchestrator_command: Command prefix.

    Returns:
        The same configuration object.
    """
    workspace_dependencies = [dep.name for dep in dependencies if not dep.external]
    if not workspace_dependencies:
        logger.debug("No in-workspace dependencies; coordination plugin skipped")
        return base_config

    command = build_coordination_command(
        target_name, workspace_dependencies, orchestrator_command
    )
    plugins: List[Any] = base_config.setdefault("plugins", [])
    plugins.append(BuildCoordinationPlugin(command))
    logger.info("Installed build coordination plugin: %s", command)
    return base_config


def resolve_custom_file(
    workspace_root: Union[str, Path],
    configured: Optional[str],
    description: str,
) -> Optional[Path]:
    """Resolve a configured custom file relative to the workspace root.

    Args:
        workspace_root: Workspace root.
        configured: Path from the target options, or None.
        description: Human-readable file role used in errors.

    Returns:
        Absolute path, or None when nothing is configured.

    Raises:
        FileNotFound: If a path is configured but does not exist.
    """
    if not configured:
        return None
    path = join_path_fragments(workspace_root, configured)
    if not path.exists():
        raise FileNotFound(path, description)
    return path


@functools.lru_cache(maxsize=None)
def load_module_from_path(path: str) -> ModuleType:
    """Import a Python file as a module, once per path."""
    digest = hashlib.sha256(path.encode("utf-8")).hexdigest()[:12]
    spec = importlib.util.spec_from_file_location(f"devbridge_custom_{digest}", path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load module from {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    logger.debug("Loaded custom module %s", path)
    return module


def merge_configs(base: Mapping[str, Any], custom: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep-merge ``custom`` into a copy of ``base``.

    Mappings merge recursively, lists concatenate, anything else is
    replaced by the custom value.
    """
    merged: Dict[str, Any] = dict(base)
    for key, value in custom.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_configs(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            merged[key] = current + value
        else:
            merged[key] = value
    return merged


def merge_custom_bundler_config(
    base_config: BundlerConfig,
    path: Union[str, Path],
    options: Mapping[str, Any],
    target: TargetReference,
) -> BundlerConfig:
    """Apply a user bundler customization module.

    The module exposes ``config``: a callable receiving
    ``(base_config, options, target)`` or a mapping merged into the base.

    Raises:
        TypeError: If ``config`` is missing or of an unsupported type.
    """
    module = load_module_from_path(str(path))
    custom = getattr(module, "config", None)
    if callable(custom):
        return custom(base_config, options, target)
    if isinstance(custom, Mapping):
        return merge_configs(base_config, custom)
    raise TypeError(
        f"Custom bundler config {path} must define 'config' as a callable or mapping"
    )


def resolve_index_html_transformer(
    path: Union[str, Path], target: TargetReference
) -> IndexHtmlTransform:
    """Load ``transform(target, index_html)`` and bind the target."""
    module = load_module_from_path(str(path))
    transform = getattr(module, "transform", None)
    if not callable(transform):
        raise TypeError(f"Index transform file {path} must define a 'transform' function")

    def _transform(index_html: str) -> str:
        return transform(target, index_html)

    return _transform


def create_bundler_config_factory(
    selection: DependencySelection,
    target_name: str,
    build_target_options: Mapping[str, Any],
    target: TargetReference,
    custom_config_path: Optional[Path] = None,
    orchestrator_command: str = DEFAULT_ORCHESTRATOR_COMMAND,
) -> BundlerConfigFactory:
    """Build the callback the delegate invokes on every (re)build.

    The callback only reads the state captured here; the custom module
    load is memoized by ``load_module_from_path``.
    """

    def bundler_configuration(base_config: BundlerConfig) -> BundlerConfig:
        if selection.mode is DependencyMode.SOURCE_BUILD:
            inject_coordination(
                base_config, selection.dependencies, target_name, orchestrator_command
            )
        if custom_config_path is None:
            return base_config
        return merge_custom_bundler_config(
            base_config, custom_config_path, build_target_options, target
        )

    return bundler_configuration


__all__ = [
    "BuildCoordinationPlugin",
    "BundlerConfig",
    "BundlerConfigFactory",
    "DEFAULT_ORCHESTRATOR_COMMAND",
    "IndexHtmlTransform",
    "build_coordination_command",
    "create_bundler_config_factory",
    "inject_coordination",
    "is_bundler_executor",
    "load_module_from_path",
    "merge_configs",
    "merge_custom_bundler_config",
    "resolve_custom_file",
    "resolve_index_html_transformer",
]
