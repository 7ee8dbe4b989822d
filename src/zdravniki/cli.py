"""Command-line interface for zdravniki.

Runs the merge pipeline, search and local file parsing from the terminal.

Usage:
    zdravniki doctors
    zdravniki doctors --format summary
    zdravniki search "novak" --type gp
    zdravniki file users --data-dir ./database
"""

import argparse
import asyncio
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Optional

from zdravniki import __version__
from zdravniki.config import settings
from zdravniki.pipeline.orchestrator import Orchestrator
from zdravniki.results import Failure

logger = logging.getLogger(__name__)

_executor = ThreadPoolExecutor(max_workers=1)


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser.

    Returns:
        Configured ArgumentParser with all commands and arguments.
    """
    parser = argparse.ArgumentParser(
        prog="zdravniki",
        description="zdravniki — doctor and institution data service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  zdravniki doctors
  zdravniki doctors --format summary
  zdravniki search "novak" --type gp
  zdravniki file users
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # doctors command
    doctors_parser = subparsers.add_parser(
        "doctors",
        help="Fetch, merge and print doctor records",
        description="Run the fetch-parse-merge pipeline against the upstream datasets",
    )
    doctors_parser.add_argument(
        "--format",
        type=str,
        choices=["json", "summary"],
        default="json",
        help="Output format (default: json)",
    )

    # search command
    search_parser = subparsers.add_parser(
        "search",
        help="Fuzzy search merged doctor records",
    )
    search_parser.add_argument(
        "query",
        type=str,
        help="Free-text query (name, institution, address)",
    )
    search_parser.add_argument(
        "--type",
        type=str,
        default=None,
        help="Restrict to one practice type (e.g. gp, ped, gyn, den)",
    )
    search_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help=f"Maximum matches (default: {settings.search_limit})",
    )

    # file command
    file_parser = subparsers.add_parser(
        "file",
        help="Parse a local compressed data file",
    )
    file_parser.add_argument(
        "file_id",
        type=str,
        help="Registered file id (e.g. users, products)",
    )
    file_parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help=f"Directory holding the files (default: ./{settings.data_dir})",
    )

    # version command
    subparsers.add_parser(
        "version",
        help="Show version information",
    )

    return parser


def _run_async(coro):
    """Run an async coroutine from synchronous CLI context.

    Spins up a new event loop in a dedicated thread to avoid conflicts
    with any existing event loop.
    """
    def _target():
        loop = asyncio.new_event_loop()
        try:
            return loop.run_until_complete(coro)
        finally:
            loop.close()

    future = _executor.submit(_target)
    return future.result()


def _print_failure(failure: Failure) -> int:
    print(json.dumps(failure.to_dict(), indent=2, default=str), file=sys.stderr)
    return 1


def _print_json(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _run_command(args: argparse.Namespace, handler) -> int:
    """Run a command handler with the shared error policy."""
    try:
        return handler(args)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except Exception as e:
        logger.error("Command %s failed: %s", args.command, e, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_doctors(args: argparse.Namespace) -> int:
    """Execute the doctors command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    orchestrator = Orchestrator()
    result = _run_async(orchestrator.get_merged())
    if result.is_error:
        return _print_failure(result)

    if args.format == "summary":
        _print_json(result.value.meta)
    else:
        _print_json(result.value.to_dict())
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    """Execute the search command."""
    orchestrator = Orchestrator()
    result = _run_async(
        orchestrator.search(args.query, practice_type=args.type, limit=args.limit)
    )
    if result.is_error:
        return _print_failure(result)

    _print_json(result.value.to_dict())
    return 0


def cmd_file(args: argparse.Namespace) -> int:
    """Execute the file command."""
    orchestrator = Orchestrator()
    data_dir = str(args.data_dir) if args.data_dir else None
    result = _run_async(orchestrator.get_data_file(args.file_id, base_dir=data_dir))
    if result.is_error:
        return _print_failure(result)

    _print_json(result.value.to_dict())
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    """Execute the version command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    print(f"zdravniki v{__version__}")
    print("Doctor and institution data service")
    print("https://github.com/sledilnik/zdravniki-data")
    return 0


_COMMANDS = {
    "doctors": cmd_doctors,
    "search": cmd_search,
    "file": cmd_file,
    "version": cmd_version,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    parser = create_parser()
    args = parser.parse_args(argv)

    # Route to command handler
    handler = _COMMANDS.get(args.command)
    if handler is None:
        # No command specified
        parser.print_help()
        return 0
    return _run_command(args, handler)


def cli_entry() -> None:
    """Console script entry point for setuptools."""
    sys.exit(main())


if __name__ == "__main__":
    cli_entry()
