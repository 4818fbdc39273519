"""Helpers for loading devbridge configuration from TOML/JSON sources.

This module provides two entry points sharing one source contract:

* ``load_devbridge_config`` -> DevBridgeConfig
* ``load_dev_server_options`` -> DevServerOptions

Accepted sources:

* None -> defaults (configuration only)
* dict -> validated directly
* Path / path-like string -> load .toml/.json from filesystem
* Inline JSON/TOML strings
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Union

from devbridge.config.schema import DevBridgeConfig, DevServerOptions, to_camel

logger = logging.getLogger("devbridge.runtime.config_loader")

ConfigSource = Union[str, Path, Dict[str, Any], None]


def _detect_format(text: str) -> str:
    stripped = text.lstrip()
    return "json" if stripped.startswith(("{", "[")) else "toml"


def load_config_mapping(source: Union[str, Path, Dict[str, Any]]) -> Dict[str, Any]:
    """Parse a configuration source into a plain mapping.

    Args:
        source: A dict, a filesystem path to a .toml/.json file, or an
            inline TOML/JSON string (auto-detected).

    Returns:
        Parsed mapping.

    Raises:
        ValueError: If the top-level value is not a mapping.
        TypeError: If the source type is unsupported.
    """
    if isinstance(source, dict):
        logger.debug("Loading configuration from provided dict")
        return source

    if not isinstance(source, (str, Path)):
        raise TypeError(f"Unsupported config source type: {type(source)!r}")

    path = Path(source)
    text: Optional[str] = None
    fmt: Optional[str] = None

    if path.exists():
        text = path.read_text(encoding="utf-8")
        suffix = path.suffix.lower()
        if suffix in {".toml", ".tml"}:
            fmt = "toml"
        elif suffix == ".json":
            fmt = "json"
        else:
            fmt = _detect_format(text)
        logger.info("Loading configuration from file: %s (fmt=%s)", path, fmt)
    else:
        text = str(source)
        fmt = _detect_format(text)
        logger.info("Loading configuration from inline %s string", fmt)

    if fmt == "json":
        data = json.loads(text)
    else:
        data = tomllib.loads(text)

    if not isinstance(data, dict):
        raise ValueError("Top-level configuration must be a mapping/dict")
    return data


def load_devbridge_config(source: ConfigSource) -> DevBridgeConfig:
    """Load DevBridgeConfig from various configuration sources.

    Args:
        source: None for built-in defaults, otherwise any source accepted
            by ``load_config_mapping``.

    Returns:
        DevBridgeConfig instance.
    """
    if source is None:
        logger.debug("No config source provided; using default DevBridgeConfig")
        return DevBridgeConfig.default()
    return DevBridgeConfig.from_dict(load_config_mapping(source))


def load_dev_server_options(
    source: ConfigSource, **overrides: Any
) -> DevServerOptions:
    """Load dev-server options, applying non-None keyword overrides last.

    Args:
        source: Options source, or None when everything comes from
            ``overrides``.
        **overrides: Explicit values keyed by snake_case or camelCase
            option names; they replace values from ``source``.

    Returns:
        Validated DevServerOptions.
    """
    data: Dict[str, Any] = dict(load_config_mapping(source)) if source is not None else {}
    for key, value in overrides.items():
        if value is not None:
            data[to_camel(key)] = value
    return DevServerOptions.model_validate(data)


__all__ = [
    "load_config_mapping",
    "load_devbridge_config",
    "load_dev_server_options",
]
