"""Dependency mode selection for the build target.

With ``buildLibsFromSource`` set (the default) dependency libraries are
compiled from their sources as part of the application and the declared
compiler configuration is used as is. With it unset, dependency projects
are built into their own outputs and rebuilt on change; the application
then needs a generated compiler configuration mapping their import paths
to those outputs, whose path replaces ``tsConfig`` in the shared
effective options object.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from devbridge.graph.models import DependencyNode
from devbridge.runtime.compiler_config import TempCompilerConfig

logger = logging.getLogger("devbridge.runtime.dependency_mode")

COMPILER_CONFIG_OPTION = "tsConfig"
BUILD_LIBS_FROM_SOURCE_OPTION = "buildLibsFromSource"

# (compiler_config_path, target_name) -> generated config
CompilerConfigSynthesizer = Callable[[str, str], TempCompilerConfig]


class DependencyMode(Enum):
    """How dependency projects are provided to the build."""

    # Dependencies rebuilt into their outputs by the orchestrator.
    SOURCE_BUILD = "source-build"
    # Declared compiler config used unmodified.
    ARTIFACT_CONSUMPTION = "artifact-consumption"

    def __str__(self) -> str:
        return self.value


@dataclass
class DependencySelection:
    """Outcome of dependency mode selection.

    Attributes:
        mode: Selected mode.
        dependencies: Dependency set (empty for artifact consumption).
        compiler_config: Generated configuration for source builds.
    """

    mode: DependencyMode
    dependencies: List[DependencyNode] = field(default_factory=list)
    compiler_config: Optional[TempCompilerConfig] = None

    @property
    def internal_dependencies(self) -> List[DependencyNode]:
        return [dep for dep in self.dependencies if not dep.external]


def resolve_build_libs_from_source(
    effective: Dict[str, Any], user_choice: Optional[bool] = None
) -> bool:
    """Resolve ``buildLibsFromSource``: user choice, then options, then True."""
    if user_choice is not None:
        return user_choice
    declared = effective.get(BUILD_LIBS_FROM_SOURCE_OPTION)
    if declared is not None:
        return bool(declared)
    return True


def select_dependency_mode(
    effective: Dict[str, Any],
    target_name: str,
    synthesize: CompilerConfigSynthesizer,
    user_choice: Optional[bool] = None,
) -> DependencySelection:
    """Select the dependency mode and prepare the compiler configuration.

    A false ``buildLibsFromSource`` selects source-build mode, in which
    ``effective[COMPILER_CONFIG_OPTION]`` is rewritten in place so every
    holder of the same dictionary sees the generated path. Synthesis errors propagate.

    Args:
        effective: Effective build target options (mutated in place).
        target_name: Build target name passed to the synthesizer.
        synthesize: Compiler-config synthesis collaborator.
        user_choice: Explicit ``buildLibsFromSource`` flag, if any.

    Returns:
        DependencySelection.
    """
    if resolve_build_libs_from_source(effective, user_choice):
        logger.info("Compiling dependency libraries with the application sources")
        return DependencySelection(mode=DependencyMode.ARTIFACT_CONSUMPTION)

    generated = synthesize(str(effective[COMPILER_CONFIG_OPTION]), target_name)
    effective[COMPILER_CONFIG_OPTION] = str(generated.path)
    logger.info(
        "Rebuilding dependency projects into their outputs; compiler config %s", generated.path
    )
    return DependencySelection(
        mode=DependencyMode.SOURCE_BUILD,
        dependencies=list(generated.dependencies),
        compiler_config=generated,
    )


__all__ = [
    "BUILD_LIBS_FROM_SOURCE_OPTION",
    "COMPILER_CONFIG_OPTION",
    "CompilerConfigSynthesizer",
    "DependencyMode",
    "DependencySelection",
    "resolve_build_libs_from_source",
    "select_dependency_mode",
]
