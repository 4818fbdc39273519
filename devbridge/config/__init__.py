"""Configuration schema and validation for devbridge."""

from .schema import (
    DEFAULT_BUNDLE_FREE_EXECUTORS,
    DelegateConfig,
    DevBridgeConfig,
    DevServerOptions,
    NxJsonConfiguration,
)

__all__ = [
    "DEFAULT_BUNDLE_FREE_EXECUTORS",
    "DelegateConfig",
    "DevBridgeConfig",
    "DevServerOptions",
    "NxJsonConfiguration",
]
