"""CLI command to show the resolved workspace cache directories.

Other tooling (task runners, the project graph daemon) reads the same
locations, so this command is the quickest way to check which
precedence rule applied for a workspace.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from devbridge.runtime.cache_directory import (
    CACHE_DIRECTORY_ENV,
    PROJECT_GRAPH_CACHE_DIRECTORY_ENV,
    CachePaths,
)

logger = logging.getLogger("devbridge.cli.cache")


def cache_dir_command(args, console: Optional[Console] = None) -> int:
    """Execute cache directory inspection command.

    Args:
        args: Parsed command-line arguments.
        console: Rich console to print to (a new one when omitted).

    Returns:
        int: Exit code.
    """
    workspace_root = Path(getattr(args, "workspace_root", None) or Path.cwd())
    try:
        paths = CachePaths.from_workspace(workspace_root)
    except OSError as e:
        logger.error("Cache directory resolution failed: %s", e)
        return 1

    table = Table(title=f"Cache directories for {paths.workspace_root}")
    table.add_column("Cache")
    table.add_column("Path")
    table.add_column("Override")
    table.add_row("tasks", str(paths.cache_directory), CACHE_DIRECTORY_ENV)
    table.add_row(
        "project graph",
        str(paths.project_graph_cache_directory),
        PROJECT_GRAPH_CACHE_DIRECTORY_ENV,
    )

    (console or Console()).print(table)
    return 0
