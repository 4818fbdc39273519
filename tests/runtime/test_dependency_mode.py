"""Tests for dependency mode selection."""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

import pytest

from devbridge.graph import DependencyNode
from devbridge.runtime.compiler_config import TempCompilerConfig
from devbridge.runtime.dependency_mode import (
    DependencyMode,
    resolve_build_libs_from_source,
    select_dependency_mode,
)
from devbridge.runtime.errors import SynthesisFailure


class RecordingSynthesizer:
    """Synthesizer stub recording its calls."""

    def __init__(self, path: Path, dependencies: List[DependencyNode]) -> None:
        self.path = path
        self.dependencies = dependencies
        self.calls: List[Tuple[str, str]] = []

    def __call__(self, compiler_config_path: str, target_name: str) -> TempCompilerConfig:
        self.calls.append((compiler_config_path, target_name))
        return TempCompilerConfig(path=self.path, dependencies=self.dependencies)


@pytest.mark.parametrize(
    ("declared", "user_choice", "expected"),
    [
        (None, None, True),
        (False, None, False),
        (True, None, True),
        (True, False, False),
        (False, True, True),
    ],
)
def test_build_libs_from_source_precedence(declared, user_choice, expected) -> None:
    effective = {} if declared is None else {"buildLibsFromSource": declared}

    assert resolve_build_libs_from_source(effective, user_choice) is expected


def test_libraries_from_source_leave_options_untouched(tmp_path: Path) -> None:
    synthesize = RecordingSynthesizer(tmp_path / "gen.json", [])
    effective = {"tsConfig": "apps/app/tsconfig.app.json"}

    selection = select_dependency_mode(effective, "build", synthesize)

    assert selection.mode is DependencyMode.ARTIFACT_CONSUMPTION
    assert selection.dependencies == []
    assert synthesize.calls == []
    assert effective["tsConfig"] == "apps/app/tsconfig.app.json"


def test_prebuilt_libraries_rewrite_shared_options(tmp_path: Path) -> None:
    deps = [DependencyNode("a"), DependencyNode("b", external=True)]
    synthesize = RecordingSynthesizer(tmp_path / "gen.json", deps)
    effective = {"tsConfig": "apps/app/tsconfig.app.json", "buildLibsFromSource": False}
    alias = effective

    selection = select_dependency_mode(effective, "build", synthesize)

    assert selection.mode is DependencyMode.SOURCE_BUILD
    assert synthesize.calls == [("apps/app/tsconfig.app.json", "build")]
    assert alias["tsConfig"] == str(tmp_path / "gen.json")
    assert selection.dependencies == deps
    assert [dep.name for dep in selection.internal_dependencies] == ["a"]


def test_synthesis_failure_propagates() -> None:
    def failing(path: str, target: str) -> TempCompilerConfig:
        raise SynthesisFailure(path, "disk full")

    effective = {"tsConfig": "apps/app/tsconfig.app.json", "buildLibsFromSource": False}
    with pytest.raises(SynthesisFailure):
        select_dependency_mode(effective, "build", failing)

    assert effective["tsConfig"] == "apps/app/tsconfig.app.json"


def test_user_choice_false_requests_generated_config(tmp_path: Path) -> None:
    synthesize = RecordingSynthesizer(tmp_path / "gen.json", [DependencyNode("a")])
    effective = {"tsConfig": "apps/app/tsconfig.app.json", "buildLibsFromSource": True}

    selection = select_dependency_mode(effective, "build", synthesize, user_choice=False)

    assert selection.mode is DependencyMode.SOURCE_BUILD
    assert selection.compiler_config is not None
    assert effective["tsConfig"] == str(tmp_path / "gen.json")
