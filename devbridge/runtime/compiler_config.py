"""Temporary compiler configuration pointing dependencies at their build outputs.

When dependencies are rebuilt during a dev-server session, the served
application must import them from their build outputs instead of their
sources. This module writes a session-scoped compiler configuration that
extends the project's own one and remaps every buildable in-workspace
dependency's import path to its output directory.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union

from devbridge.graph.models import DependencyNode, ProjectConfiguration
from devbridge.runtime.context import BuilderContext
from devbridge.runtime.errors import SynthesisFailure
from devbridge.runtime.layering import layer_options
from devbridge.utils.path_utils import absolute_path, to_posix

logger = logging.getLogger("devbridge.runtime.compiler_config")

GENERATED_CONFIG_NAME = "tsconfig.generated.json"


@dataclass
class TempCompilerConfig:
    """A generated compiler configuration living for one build session.

    Attributes:
        path: Absolute path of the generated file.
        dependencies: Dependency set the file was generated for.
    """

    path: Path
    dependencies: List[DependencyNode] = field(default_factory=list)

    def discard(self) -> None:
        """Remove the generated file; missing files are ignored."""
        try:
            self.path.unlink()
            logger.debug("Discarded generated compiler config %s", self.path)
        except FileNotFoundError:
            pass

    def __enter__(self) -> "TempCompilerConfig":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.discard()


def _read_config(path: Path) -> Dict[str, Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data


def _collect_paths(path: Path, seen: Optional[Set[Path]] = None) -> Dict[str, List[str]]:
    """Collect ``compilerOptions.paths`` following relative ``extends`` chains."""
    seen = seen if seen is not None else set()
    resolved = path.resolve()
    if resolved in seen:
        return {}
    seen.add(resolved)

    data = _read_config(path)
    paths: Dict[str, List[str]] = {}

    parent = data.get("extends")
    if isinstance(parent, str) and parent.startswith("."):
        parent_path = (path.parent / parent)
        if parent_path.suffix != ".json":
            parent_path = parent_path.with_name(parent_path.name + ".json")
        paths.update(_collect_paths(parent_path, seen))

    own = (data.get("compilerOptions") or {}).get("paths") or {}
    paths.update({key: list(value) for key, value in own.items()})
    return paths


def dependency_output_path(
    project: ProjectConfiguration, target_name: str, workspace_root: Path
) -> Path:
    """Return where ``target_name`` of ``project`` writes its output."""
    output = None
    definition = project.targets.get(target_name)
    if definition is not None:
        output = layer_options(definition, target_name=target_name).get("outputPath")
    if not output:
        output = f"dist/{to_posix(project.root)}"
    return absolute_path(workspace_root, output)


def buildable_dependencies(
    context: BuilderContext, project_name: str, target_name: str
) -> List[DependencyNode]:
    """Return the dependency set for ``project_name``.

    In-workspace dependencies are kept only when they declare
    ``target_name``; external dependencies are always kept and tagged.
    """
    dependencies: List[DependencyNode] = []
    for dep in context.graph.dependencies_of(project_name):
        if dep.external:
            dependencies.append(dep)
        elif dep.project is not None and dep.project.has_target(target_name):
            dependencies.append(dep)
        else:
            logger.debug("Skipping non-buildable dependency %s", dep.name)
    return dependencies


def create_tmp_compiler_config(
    compiler_config_path: Union[str, Path],
    target_name: str,
    *,
    context: BuilderContext,
    project_name: Optional[str] = None,
) -> TempCompilerConfig:
    """Generate the session compiler configuration.

    Args:
        compiler_config_path: Current compiler configuration, relative to
            the workspace root or absolute.
        target_name: Build target whose outputs the dependencies provide.
        context: Builder context holding the graph and cache paths.
        project_name: Served project; defaults to the context target's.

    Returns:
        TempCompilerConfig with the generated path and dependency set.

    Raises:
        SynthesisFailure: If the original configuration cannot be read
            or the generated one cannot be written.
    """
    project_name = project_name or context.target.project
    source_path = absolute_path(context.workspace_root, compiler_config_path)
    project = context.graph.get_project(project_name)
    project_root = project.root if project is not None else project_name

    dependencies = buildable_dependencies(context, project_name, target_name)

    try:
        paths = _collect_paths(source_path)
        for dep in dependencies:
            if dep.external or dep.project is None:
                continue
            import_key = dep.project.import_path or dep.name
            output = to_posix(
                dependency_output_path(dep.project, target_name, context.workspace_root)
            )
            paths[import_key] = [output]
            paths[f"{import_key}/*"] = [f"{output}/*"]

        generated = {
            "extends": to_posix(source_path),
            "compilerOptions": {"paths": paths},
        }
        output_path = (
            context.cache_paths.cache_directory / "tmp" / project_root / GENERATED_CONFIG_NAME
        )
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(generated, indent=2), encoding="utf-8")
    except (OSError, ValueError) as exc:
        raise SynthesisFailure(source_path, str(exc)) from exc

    logger.info(
        "Generated compiler config %s for %d dependencies",
        output_path,
        len(dependencies),
    )
    return TempCompilerConfig(path=output_path, dependencies=dependencies)


__all__ = [
    "GENERATED_CONFIG_NAME",
    "TempCompilerConfig",
    "buildable_dependencies",
    "create_tmp_compiler_config",
    "dependency_output_path",
]
