"""command-verify - check the commands in your documentation.

Finds commands in Markdown files, classifies them (safe, conditional,
dangerous, unknown, skip), checks that their executables exist on this
machine, and caches the results so that only commands affected by new
commits are checked again. Nothing documented is ever executed.

Usage:
    command-verify              Verify the current repository
    command-verify --stats      Include cache statistics
    command-verify --json       Machine-readable output

Environment Variables:
    CMDVERIFY_LOG_LEVEL         Logging level (default: INFO)
    CMDVERIFY_LOG_FILE          Optional rotating log file
    CMDVERIFY_PROBE_TIMEOUT     PATH lookup timeout in seconds (default: 2)
    CMDVERIFY_GIT_TIMEOUT       Git command timeout in seconds (default: 15)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from . import __version__
from .errors import ConfigurationError, error_response
from .logging_setup import configure_logging
from .report import render_json, render_text
from .settings import settings
from .verification import run_verification

logger = logging.getLogger("cmdverify.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="command-verify",
        description="Verify the commands referenced in project documentation",
        epilog="""
Examples:
  command-verify                   Verify using cached results where possible
  command-verify --force           Discard the cache and verify everything
  command-verify --cwd ../other    Verify another repository
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Clear the cache before running",
    )
    parser.add_argument(
        "--silent",
        action="store_true",
        help="Suppress informational output (warnings and errors are still shown)",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Include cache statistics and changed files in the summary",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the summary and per-command results as JSON",
    )
    parser.add_argument(
        "--cwd",
        type=Path,
        default=None,
        help="Repository root (default: current directory)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.log_level.upper(),
        help=f"Logging level (default: {settings.log_level.upper()})",
    )
    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point. Returns the process exit status."""
    args = build_parser().parse_args(argv)

    # --json implies --silent: stdout carries only the JSON document.
    configure_logging(args.log_level, silent=args.silent or args.json)

    try:
        report = run_verification(args.cwd, force=args.force)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e.message)
        for hint in e.hints:
            logger.error("  Hint: %s", hint)
        if args.json:
            print(json.dumps(error_response(e).to_dict(), indent=2))
        return 1
    except Exception as e:
        logger.exception("Command verification failed")
        if args.json:
            print(json.dumps(error_response(e).to_dict(), indent=2))
        return 1

    if args.json:
        print(render_json(report))
    elif not args.silent:
        print(render_text(report, stats=args.stats))
    return 0


if __name__ == "__main__":
    sys.exit(main())
