"""Main CLI entry point for devbridge.

Provides commands: serve, cache-dir
"""

import argparse
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from devbridge.cli.cache import cache_dir_command
from devbridge.cli.serve import serve_command

logger = logging.getLogger("devbridge.cli")


def setup_logging(
    verbose: bool = False,
    console: Optional[Console] = None,
    log_file: Optional[str] = None,
) -> None:
    """Setup logging configuration with Rich integration.

    Args:
        verbose: Enable verbose logging.
        console: Rich Console instance for coordinated output (optional).
        log_file: Optional file receiving the same records.
    """
    if verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        log_time_format="[%H:%M:%S]",
    )
    handlers: list[logging.Handler] = [handler]
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(name)s] [%(levelname)s] %(message)s")
        )
        handlers.append(file_handler)

    # Configure root logger
    logging.basicConfig(
        level=level,
        format="[%(name)s] [%(levelname)s] %(message)s",
        handlers=handlers,
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        description="devbridge - Workspace dev-server orchestration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-file",
        help="Output log to file in addition to the console",
    )
    parser.add_argument(
        "--workspace-root",
        help="Workspace root directory (default: current directory)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Start the delegate dev server for a build target",
    )
    serve_parser.add_argument(
        "build_target",
        help="Build target to serve: project:target[:configuration]",
    )
    serve_parser.add_argument(
        "-p",
        "--project",
        help="Project being served (default: project of the build target)",
    )
    serve_parser.add_argument(
        "--target",
        default="serve",
        help="Name of the dev-server target being executed (default: serve)",
    )
    serve_parser.add_argument(
        "-c",
        "--config",
        help=(
            "Optional devbridge configuration. Can be a path to a TOML/JSON "
            "file or an inline TOML/JSON string. When omitted, built-in "
            "defaults are used."
        ),
    )
    serve_parser.add_argument(
        "--options",
        help="Dev-server options as a TOML/JSON file or inline string",
    )
    serve_parser.add_argument(
        "--build-libs-from-source",
        dest="build_libs_from_source",
        action=argparse.BooleanOptionalAction,
        default=None,
        help=(
            "Compile dependency libraries from source with the application "
            "(default); --no-build-libs-from-source serves their build outputs "
            "and rebuilds them on change"
        ),
    )
    serve_parser.add_argument("--host", help="Host to listen on")
    serve_parser.add_argument("--port", type=int, help="Port to listen on")

    # Cache directory command
    subparsers.add_parser(
        "cache-dir",
        help="Show the resolved workspace cache directories",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        int: Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose, log_file=args.log_file)

    if args.command == "serve":
        return serve_command(args)
    elif args.command == "cache-dir":
        return cache_dir_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
