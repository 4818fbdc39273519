"""Option layering for target definitions.

Effective options are computed in three layers, lowest first:

    base options -> configuration overrides -> explicit caller values

Every layer replaces whole values key by key. Nested mappings are never
merged.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from devbridge.graph.models import TargetDefinition
from devbridge.runtime.errors import ConfigurationNotFound

logger = logging.getLogger("devbridge.runtime.layering")


def select_configuration(
    definition: TargetDefinition, configuration: Optional[str] = None
) -> Optional[str]:
    """Return the configuration name that applies, if any."""
    return configuration or definition.default_configuration


def layer_options(
    definition: TargetDefinition,
    configuration: Optional[str] = None,
    explicit: Optional[Mapping[str, Any]] = None,
    target_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Compute effective options for a target.

    Args:
        definition: Target definition.
        configuration: Configuration name; falls back to the target's
            default configuration.
        explicit: Caller values; keys set to None are ignored.
        target_name: Used in error messages only.

    Returns:
        A new options dictionary.

    Raises:
        ConfigurationNotFound: If the applicable configuration is missing.
    """
    name = select_configuration(definition, configuration)
    overrides: Mapping[str, Any] = {}
    if name:
        if name not in definition.configurations:
            raise ConfigurationNotFound(target_name or definition.executor, name)
        overrides = definition.configurations[name]

    effective: Dict[str, Any] = dict(definition.options)
    effective.update(overrides)
    if explicit:
        effective.update({k: v for k, v in explicit.items() if v is not None})

    logger.debug(
        "Layered %d option(s) with configuration %s", len(effective), name or "<none>"
    )
    return effective


__all__ = ["layer_options", "select_configuration"]
