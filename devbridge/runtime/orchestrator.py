"""Dev-server orchestration.

The orchestrator prepares everything the delegate engine needs and then
hands control over to it:

    resolve build target -> layer options -> check custom files
    -> select dependency mode -> adapt delegate options
    -> load delegate (async) -> invoke

Preparation is synchronous and fails fast; the delegate module is only
imported once every check has passed. The delegate's result is returned
unmodified.
"""

from __future__ import annotations

import asyncio
import functools
import importlib
import inspect
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, MutableMapping, Optional, Union

from packaging.version import Version

from devbridge.config.schema import DevBridgeConfig, DevServerOptions
from devbridge.runtime.compiler_config import create_tmp_compiler_config
from devbridge.runtime.context import BuilderContext
from devbridge.runtime.coordination import (
    BundlerConfigFactory,
    IndexHtmlTransform,
    create_bundler_config_factory,
    is_bundler_executor,
    resolve_custom_file,
    resolve_index_html_transformer,
)
from devbridge.runtime.delegate_adapter import adapt_delegate_options, get_installed_version
from devbridge.runtime.dependency_mode import (
    BUILD_LIBS_FROM_SOURCE_OPTION,
    COMPILER_CONFIG_OPTION,
    CompilerConfigSynthesizer,
    DependencySelection,
    select_dependency_mode,
)
from devbridge.runtime.errors import DevBridgeError
from devbridge.runtime.layering import layer_options
from devbridge.runtime.targets import TargetReference, resolve_target

logger = logging.getLogger("devbridge.runtime.orchestrator")

ROOT_COMPILER_CONFIG_ENV = "NX_TSCONFIG_PATH"
ROOT_COMPILER_CONFIG_NAMES = ("tsconfig.base.json", "tsconfig.json")

CUSTOM_BUNDLER_CONFIG_DESCRIPTION = "Custom Webpack Config File"
INDEX_TRANSFORM_DESCRIPTION = "File containing Index File Transformer function"


def get_root_compiler_config_path(workspace_root: Union[str, Path]) -> Optional[Path]:
    """Return the workspace-wide compiler configuration, if any."""
    for name in ROOT_COMPILER_CONFIG_NAMES:
        candidate = Path(workspace_root) / name
        if candidate.exists():
            return candidate
    return None


def _custom_bundler_config_option(
    effective: Mapping[str, Any], build_ref: TargetReference
) -> Optional[str]:
    """Return ``customWebpackConfig.path`` from the build target options."""
    custom = effective.get("customWebpackConfig")
    if custom is None:
        return None
    if not isinstance(custom, Mapping):
        raise DevBridgeError(
            f"Build target '{build_ref}' option 'customWebpackConfig' must be an "
            f"object with a 'path' key, got {type(custom).__name__}"
        )
    return custom.get("path")


@dataclass
class DelegateInvocation:
    """Everything passed to the delegate entry point.

    Attributes:
        options: Adapted dev-server options.
        build_target: Resolved build target.
        executor: Executor of the build target.
        selection: Dependency mode selection.
        bundler_configuration: Bundler config factory, None for
            bundle-free executors.
        index_html: Optional index document transform.
    """

    options: Dict[str, Any]
    build_target: TargetReference
    executor: str
    selection: DependencySelection
    bundler_configuration: Optional[BundlerConfigFactory] = None
    index_html: Optional[IndexHtmlTransform] = None

    def transforms(self) -> Dict[str, Any]:
        transforms: Dict[str, Any] = {"bundler_configuration": self.bundler_configuration}
        if self.index_html is not None:
            transforms["index_html"] = self.index_html
        return transforms


@dataclass
class DevServerOrchestrator:
    """Prepares and launches one dev-server session.

    Args:
        options: Normalized dev-server options.
        context: Builder context shared with the delegate.
        config: devbridge configuration.
        synthesize: Compiler-config synthesizer; defaults to
            ``create_tmp_compiler_config`` bound to ``context``.
        installed_version: Delegate version; read from the installed
            distribution when omitted.
        environ: Environment receiving published variables.
    """

    options: DevServerOptions
    context: BuilderContext
    config: DevBridgeConfig = field(default_factory=DevBridgeConfig.default)
    synthesize: Optional[CompilerConfigSynthesizer] = None
    installed_version: Optional[Union[str, Version]] = None
    environ: MutableMapping[str, str] = field(default_factory=lambda: os.environ)
    invocation: Optional[DelegateInvocation] = field(default=None, init=False)
    _installed_filters: List[logging.Filter] = field(
        default_factory=list, init=False, repr=False
    )

    def _publish_root_compiler_config(self) -> None:
        root_config = get_root_compiler_config_path(self.context.workspace_root)
        if root_config is None:
            logger.warning(
                "No root compiler config found in %s", self.context.workspace_root
            )
            return
        self.environ[ROOT_COMPILER_CONFIG_ENV] = str(root_config)

    def _synthesizer(self) -> CompilerConfigSynthesizer:
        if self.synthesize is not None:
            return self.synthesize
        return functools.partial(create_tmp_compiler_config, context=self.context)

    def prepare(self) -> DelegateInvocation:
        """Resolve, layer, select and adapt without touching the delegate.

        Returns:
            The invocation that ``run`` hands to the delegate.

        Raises:
            DevBridgeError: For any resolution failure or missing file.
        """
        self._publish_root_compiler_config()
        ctx = self.context

        build_ref, definition = resolve_target(
            self.options.build_target, ctx.parse_context()
        )
        effective = layer_options(
            definition,
            build_ref.configuration,
            explicit={BUILD_LIBS_FROM_SOURCE_OPTION: self.options.build_libs_from_source},
            target_name=build_ref.target,
        )
        if not effective.get(COMPILER_CONFIG_OPTION):
            raise DevBridgeError(
                f"Build target '{build_ref}' does not declare a "
                f"'{COMPILER_CONFIG_OPTION}' option"
            )
        ctx.build_target = build_ref
        ctx.build_target_options = effective

        custom_config_path = resolve_custom_file(
            ctx.workspace_root,
            _custom_bundler_config_option(effective, build_ref),
            CUSTOM_BUNDLER_CONFIG_DESCRIPTION,
        )
        index_transform_path = resolve_custom_file(
            ctx.workspace_root,
            effective.get("indexFileTransformer"),
            INDEX_TRANSFORM_DESCRIPTION,
        )

        selection = select_dependency_mode(
            effective,
            build_ref.target,
            self._synthesizer(),
            self.options.build_libs_from_source,
        )

        version = self.installed_version or get_installed_version(
            self.config.delegate.distribution
        )
        existing_filters = list(ctx.logger.filters)
        delegate_options = adapt_delegate_options(
            self.options.to_delegate_dict(),
            version,
            definition.executor,
            delegate_logger=ctx.logger,
        )
        self._installed_filters = [
            f for f in ctx.logger.filters if f not in existing_filters
        ]

        bundler_configuration = None
        if is_bundler_executor(definition.executor, self.config.bundle_free_executors):
            bundler_configuration = create_bundler_config_factory(
                selection,
                build_ref.target,
                effective,
                ctx.target,
                custom_config_path=custom_config_path,
                orchestrator_command=self.config.orchestrator_command,
            )

        index_html = None
        if index_transform_path is not None:
            index_html = resolve_index_html_transformer(index_transform_path, ctx.target)

        self.invocation = DelegateInvocation(
            options=delegate_options,
            build_target=build_ref,
            executor=definition.executor,
            selection=selection,
            bundler_configuration=bundler_configuration,
            index_html=index_html,
        )
        logger.info(
            "Prepared dev-server for %s (executor=%s, mode=%s)",
            build_ref,
            definition.executor,
            selection.mode,
        )
        return self.invocation

    async def load_delegate(self) -> Callable[..., Any]:
        """Import the delegate module off the event loop and return its entry point."""
        delegate = self.config.delegate
        module = await asyncio.to_thread(importlib.import_module, delegate.module)
        logger.debug("Loaded delegate module %s", delegate.module)
        return getattr(module, delegate.entry_point)

    async def run(self) -> Any:
        """Prepare, load the delegate and invoke its dev-server entry point.

        Returns:
            Whatever the delegate returns (awaited when awaitable).
        """
        invocation = self.prepare()
        entry_point = await self.load_delegate()
        result = entry_point(invocation.options, self.context, invocation.transforms())
        if inspect.isawaitable(result):
            result = await result
        return result

    def close(self) -> None:
        """Release the session: warning filters and generated compiler config."""
        for installed in self._installed_filters:
            self.context.logger.removeFilter(installed)
        self._installed_filters = []
        if self.invocation is None:
            return
        generated = self.invocation.selection.compiler_config
        if generated is not None:
            generated.discard()


__all__ = [
    "DelegateInvocation",
    "DevServerOrchestrator",
    "ROOT_COMPILER_CONFIG_ENV",
    "get_root_compiler_config_path",
]
