"""Version-gated adaptation of the options sent to the delegate engine.

Adaptations are expressed as a table of rules keyed by a predicate over
the installed delegate version and the build target executor. Every
matching rule is applied, in table order, to a copy of the options.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib import metadata
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from packaging.version import Version

logger = logging.getLogger("devbridge.runtime.delegate_adapter")

# Engine release that introduced the forceEsbuild option.
FORCE_ESBUILD_MIN_VERSION = Version("16.1.0")
FAST_BUILD_EXECUTOR = "@nx/angular:browser-esbuild"
FORCE_ESBUILD_WARNING = (
    "Warning: Forcing the use of the esbuild-based build system with third-party "
    "builders may cause unexpected behavior and/or build failures."
)

# Last major release that only understands browserTarget.
LEGACY_BUILD_TARGET_MAX_MAJOR = 17


@dataclass(frozen=True)
class AdaptationContext:
    """Inputs shared by all adaptation rules."""

    version: Version
    executor: str
    delegate_logger: logging.Logger


@dataclass(frozen=True)
class AdaptationRule:
    """A single version-gated option adaptation.

    Attributes:
        name: Rule identifier used in logs.
        applies: Predicate over (installed version, executor).
        apply: Mutates the options copy; may touch the delegate logger.
    """

    name: str
    applies: Callable[[Version, str], bool]
    apply: Callable[[Dict[str, Any], AdaptationContext], None]


class SuppressWarningFilter(logging.Filter):
    """Drop warning records whose message contains ``text``.

    Records at any other level, and warnings without the exact text,
    pass through unchanged.
    """

    def __init__(self, text: str) -> None:
        super().__init__()
        self.text = text

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno == logging.WARNING and self.text in record.getMessage():
            return False
        return True


def suppress_warning(target_logger: logging.Logger, text: str) -> SuppressWarningFilter:
    """Install a SuppressWarningFilter for ``text`` once per logger."""
    for existing in target_logger.filters:
        if isinstance(existing, SuppressWarningFilter) and existing.text == text:
            return existing
    warning_filter = SuppressWarningFilter(text)
    target_logger.addFilter(warning_filter)
    return warning_filter


def _force_esbuild(options: Dict[str, Any], ctx: AdaptationContext) -> None:
    options["forceEsbuild"] = True
    # The delegate warns about forced esbuild for every third-party builder.
    suppress_warning(ctx.delegate_logger, FORCE_ESBUILD_WARNING)


def _legacy_browser_target(options: Dict[str, Any], ctx: AdaptationContext) -> None:
    if "buildTarget" in options:
        options["browserTarget"] = options.pop("buildTarget")


DELEGATE_ADAPTATION_RULES: Sequence[AdaptationRule] = (
    AdaptationRule(
        name="force-esbuild",
        applies=lambda version, executor: (
            version >= FORCE_ESBUILD_MIN_VERSION and executor == FAST_BUILD_EXECUTOR
        ),
        apply=_force_esbuild,
    ),
    AdaptationRule(
        name="legacy-browser-target",
        applies=lambda version, executor: version.major <= LEGACY_BUILD_TARGET_MAX_MAJOR,
        apply=_legacy_browser_target,
    ),
)


def get_installed_version(distribution: str) -> Version:
    """Return the installed version of the delegate distribution.

    Raises:
        importlib.metadata.PackageNotFoundError: If it is not installed.
    """
    return Version(metadata.version(distribution))


def adapt_delegate_options(
    options: Mapping[str, Any],
    installed_version: Union[str, Version],
    executor: str,
    delegate_logger: Optional[logging.Logger] = None,
    rules: Sequence[AdaptationRule] = DELEGATE_ADAPTATION_RULES,
) -> Dict[str, Any]:
    """Adapt dev-server options to the installed delegate engine.

    Args:
        options: Normalized dev-server options (not mutated).
        installed_version: Installed delegate engine version.
        executor: Executor of the build target.
        delegate_logger: Logger handed to the delegate engine.
        rules: Adaptation table.

    Returns:
        Adapted copy of ``options``.
    """
    version = (
        installed_version
        if isinstance(installed_version, Version)
        else Version(installed_version)
    )
    ctx = AdaptationContext(
        version=version,
        executor=executor,
        delegate_logger=delegate_logger or logging.getLogger("devbridge.delegate"),
    )

    adapted: Dict[str, Any] = dict(options)
    for rule in rules:
        if rule.applies(version, executor):
            rule.apply(adapted, ctx)
            logger.debug("Applied delegate adaptation %s (version %s)", rule.name, version)
    return adapted


__all__ = [
    "AdaptationContext",
    "AdaptationRule",
    "DELEGATE_ADAPTATION_RULES",
    "FAST_BUILD_EXECUTOR",
    "FORCE_ESBUILD_MIN_VERSION",
    "FORCE_ESBUILD_WARNING",
    "LEGACY_BUILD_TARGET_MAX_MAJOR",
    "SuppressWarningFilter",
    "adapt_delegate_options",
    "get_installed_version",
    "suppress_warning",
]
