"""Configuration schema definitions using Pydantic for validation.

This module provides strongly-typed models for the dev-server options a
user passes on the command line, the subset of ``nx.json`` devbridge
reads, and devbridge's own delegate configuration. Using Pydantic ensures
configuration errors are caught early with clear error messages.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def to_camel(name: str) -> str:
    """Convert a snake_case option name to the camelCase wire name."""
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


DEFAULT_BUNDLE_FREE_EXECUTORS: List[str] = [
    "@angular-devkit/build-angular:application",
    "@angular-devkit/build-angular:browser-esbuild",
    "@nx/angular:browser-esbuild",
]


class DevServerOptions(BaseModel):
    """Options accepted by the dev-server command.

    Field names are snake_case in Python and camelCase on the wire, the
    same shape the delegate engine and ``project.json`` files use.

    Attributes:
        build_target: Target reference (``project:target[:configuration]``).
        browser_target: Legacy name for ``build_target``.
        build_libs_from_source: Explicit user choice for dependency mode.
        host: Host to listen on.
        port: Port to listen on.
        live_reload: Whether to reload the page on changes.
        open: Whether to open the browser.
        ssl: Whether to serve over HTTPS.
        watch: Whether to rebuild on change.
    """

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    build_target: Optional[str] = None
    browser_target: Optional[str] = None
    build_libs_from_source: Optional[bool] = None
    host: str = "localhost"
    port: int = Field(default=4200, ge=0, le=65535)
    live_reload: bool = True
    open: bool = False
    ssl: bool = False
    watch: bool = True

    @model_validator(mode="after")
    def _require_build_target(self) -> "DevServerOptions":
        """Fall back to the legacy ``browserTarget`` option."""
        if not self.build_target:
            self.build_target = self.browser_target
        if not self.build_target:
            raise ValueError("Either buildTarget or browserTarget must be provided")
        return self

    def to_delegate_dict(self) -> Dict[str, Any]:
        """Dump options in the camelCase shape the delegate accepts.

        ``browserTarget`` is never forwarded; the delegate adapter decides
        which key the installed engine understands.

        Returns:
            Options dictionary without unset optional values.
        """
        data = self.model_dump(by_alias=True, exclude_none=True)
        data.pop("browserTarget", None)
        data.pop("buildLibsFromSource", None)
        return data


class TasksRunnerOptions(BaseModel):
    """Options block of a tasks runner entry in ``nx.json``."""

    cache_directory: Optional[str] = Field(default=None, alias="cacheDirectory")

    model_config = {"extra": "allow", "populate_by_name": True}


class TasksRunner(BaseModel):
    """A single ``tasksRunnerOptions`` entry in ``nx.json``."""

    options: TasksRunnerOptions = Field(default_factory=TasksRunnerOptions)

    model_config = {"extra": "allow"}


class NxJsonConfiguration(BaseModel):
    """Subset of the workspace root configuration read by devbridge.

    Attributes:
        cache_directory: Declared cache directory.
        tasks_runner_options: Legacy per-runner options; ``default`` may
            carry a ``cacheDirectory``.
    """

    cache_directory: Optional[str] = Field(default=None, alias="cacheDirectory")
    tasks_runner_options: Dict[str, TasksRunner] = Field(
        default_factory=dict, alias="tasksRunnerOptions"
    )

    model_config = {"extra": "allow", "populate_by_name": True}

    def declared_cache_directory(self) -> Optional[str]:
        """Return the configured cache directory, preferring the top-level key."""
        if self.cache_directory:
            return self.cache_directory
        default_runner = self.tasks_runner_options.get("default")
        if default_runner is not None:
            return default_runner.options.cache_directory
        return None


class DelegateConfig(BaseModel):
    """Where to find the delegate build engine.

    Attributes:
        module: Importable module exposing the dev-server entry point.
        entry_point: Name of the entry point callable in ``module``.
        distribution: Installed distribution whose version gates options.
        logger_name: Logger the delegate writes its warnings to.
    """

    module: str = "angular_devkit.build_angular"
    entry_point: str = "execute_dev_server_builder"
    distribution: str = "angular-devkit-build-angular"
    logger_name: str = "angular_devkit"

    model_config = {"extra": "forbid"}

    @field_validator("module", "entry_point", "distribution")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Validate that identifiers are non-empty."""
        if not v or not v.strip():
            raise ValueError("delegate identifiers must not be empty")
        return v


class DevBridgeConfig(BaseModel):
    """Top-level devbridge configuration.

    Attributes:
        delegate: Delegate engine location.
        orchestrator_command: Command prefix used for coordinated rebuilds.
        bundle_free_executors: Executors that do not run a bundler and so
            never receive a bundler-config factory.
    """

    delegate: DelegateConfig = Field(default_factory=DelegateConfig)
    orchestrator_command: str = "nx run-many"
    bundle_free_executors: List[str] = Field(
        default_factory=lambda: list(DEFAULT_BUNDLE_FREE_EXECUTORS)
    )

    @classmethod
    def default(cls) -> "DevBridgeConfig":
        """Return configuration with built-in defaults."""
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DevBridgeConfig":
        """Create configuration from dictionary.

        Raises:
            ValidationError: If configuration is invalid.
        """
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump()
