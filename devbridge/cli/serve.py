"""Serve command implementation."""

# CLI must gracefully handle expected failures to present user-friendly errors.


import asyncio
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Any, Optional

from devbridge.graph.io import read_cached_project_graph
from devbridge.runtime.cache_directory import CachePaths
from devbridge.runtime.config_loader import load_dev_server_options, load_devbridge_config
from devbridge.runtime.context import BuilderContext
from devbridge.runtime.errors import DevBridgeError
from devbridge.runtime.orchestrator import DevServerOrchestrator
from devbridge.runtime.targets import TargetParseContext, TargetReference, parse_target_string

logger = logging.getLogger("devbridge.cli.serve")

RECOVERABLE_SERVE_ERRORS = (
    DevBridgeError,
    ImportError,
    json.JSONDecodeError,
    OSError,
    TypeError,
    ValueError,
)


def serve_command(args) -> int:
    """Execute serve command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        int: Exit code.
    """
    try:
        return _serve_command_impl(args)
    except KeyboardInterrupt:
        logger.warning("Dev server interrupted")
        return 130
    except RECOVERABLE_SERVE_ERRORS as e:
        # Print to stderr directly to ensure it's visible even if logging is broken
        print(f"\n{'=' * 70}", file=sys.stderr)
        print("FATAL ERROR in serve_command:", file=sys.stderr)
        print(f"{'=' * 70}", file=sys.stderr)
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        if getattr(args, "verbose", False):
            print("\nTraceback:", file=sys.stderr)
            traceback.print_exc(file=sys.stderr)
        print(f"{'=' * 70}\n", file=sys.stderr)
        return 1


def _serve_target(
    args, parse_ctx: TargetParseContext, build_target: str
) -> TargetReference:
    """Determine the dev-server target being executed."""
    project: Optional[str] = getattr(args, "project", None)
    if not project:
        project = parse_target_string(build_target, parse_ctx).project
    return TargetReference(project=project, target=getattr(args, "target", None) or "serve")


async def _run(orchestrator: DevServerOrchestrator) -> Any:
    result = await orchestrator.run()
    if hasattr(result, "__aiter__"):
        last = None
        async for output in result:
            logger.info("Dev server output: %s", output)
            last = output
        return last
    return result


def _serve_command_impl(args) -> int:
    """Internal implementation of serve command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        int: Exit code.
    """
    workspace_root = Path(getattr(args, "workspace_root", None) or Path.cwd()).resolve()
    current_directory = Path.cwd()
    logger.debug("=== devbridge serve ===")
    logger.debug("Workspace root: %s", workspace_root)
    logger.debug("Build target: %s", args.build_target)

    cache_paths = CachePaths.from_workspace(workspace_root)
    config = load_devbridge_config(getattr(args, "config", None))
    options = load_dev_server_options(
        getattr(args, "options", None),
        build_target=args.build_target,
        build_libs_from_source=getattr(args, "build_libs_from_source", None),
        host=getattr(args, "host", None),
        port=getattr(args, "port", None),
    )

    graph = read_cached_project_graph(cache_paths.project_graph_cache_directory)
    parse_ctx = TargetParseContext(
        graph=graph,
        workspace_root=workspace_root,
        current_directory=current_directory,
        project_name=getattr(args, "project", None),
    )
    context = BuilderContext(
        workspace_root=workspace_root,
        current_directory=current_directory,
        target=_serve_target(args, parse_ctx, options.build_target),
        graph=graph,
        cache_paths=cache_paths,
        logger=logging.getLogger(config.delegate.logger_name),
    )

    orchestrator = DevServerOrchestrator(options=options, context=context, config=config)
    try:
        result = asyncio.run(_run(orchestrator))
    finally:
        orchestrator.close()

    if isinstance(result, dict) and result.get("success") is False:
        logger.error("Dev server finished unsuccessfully: %s", result)
        return 1
    return 0
