"""Error hierarchy for dev-server target resolution and delegation.

Every error raised by devbridge itself derives from ``DevBridgeError`` so
the CLI can tell expected, descriptive failures apart from programming
errors. Errors raised by the delegate engine are never wrapped.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


# =============================================================================
# Custom Exception Hierarchy
# =============================================================================


class DevBridgeError(Exception):
    """Base class for fatal devbridge errors.

    These errors indicate that no valid build can be started and the
    process should terminate with a descriptive message.
    """

    pass


class ProjectGraphUnavailable(DevBridgeError):
    """Raised when the cached workspace project graph cannot be read."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        self.path = Path(path)
        super().__init__(
            f"No cached project graph is available at {self.path}: {reason}"
        )


class TargetParseError(DevBridgeError):
    """Raised when a target reference string is malformed."""

    pass


class ProjectNotFound(DevBridgeError):
    """Raised when a target reference names a project missing from the graph."""

    def __init__(self, project: str) -> None:
        self.project = project
        super().__init__(f"Cannot find project '{project}' in the workspace graph")


class TargetNotFound(DevBridgeError):
    """Raised when a project does not define the requested target."""

    def __init__(self, project: str, target: str) -> None:
        self.project = project
        self.target = target
        super().__init__(f"Cannot find target '{target}' for project '{project}'")


class ConfigurationNotFound(DevBridgeError):
    """Raised when a named configuration is missing on a target."""

    def __init__(self, target: str, configuration: str) -> None:
        self.target = target
        self.configuration = configuration
        super().__init__(
            f"Cannot find configuration '{configuration}' for target '{target}'"
        )


class FileNotFound(DevBridgeError):
    """Raised when a configured custom file does not exist on disk.

    The message always carries the configured path so users can fix the
    target options directly.
    """

    def __init__(self, path: Union[str, Path], description: str) -> None:
        self.path = Path(path)
        super().__init__(
            f"{description} Not Found!\n"
            f"Please ensure the configured path is correct: \n{self.path}"
        )


class SynthesisFailure(DevBridgeError):
    """Raised when the temporary compiler configuration cannot be generated."""

    def __init__(self, path: Union[str, Path], reason: Optional[str] = None) -> None:
        self.path = Path(path)
        message = f"Failed to generate compiler configuration from {self.path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


__all__ = [
    "DevBridgeError",
    "ProjectGraphUnavailable",
    "TargetParseError",
    "ProjectNotFound",
    "TargetNotFound",
    "ConfigurationNotFound",
    "FileNotFound",
    "SynthesisFailure",
]
