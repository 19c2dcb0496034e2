"""
CLI Application - Argument parsing and mode dispatch for ``pulsegh``.
"""

import argparse
import logging
import sys

from pulsegh import __version__
from pulsegh.core.exceptions import ConfigError, PulseError

from .exit_codes import ExitCode
from .logging import setup_logging
from .output import Console


def create_parser() -> argparse.ArgumentParser:
    """
    Create the command-line argument parser for pulsegh.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="pulsegh",
        description="Keep a local snapshot of a GitHub workspace and detect drift",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Snapshot every open project and repository of an organization
  pulsegh --init --workspace acme

  # Snapshot selected projects and repositories
  pulsegh --init --workspace acme --project 1 --project 4 --repo api --repo web

  # Show what changed on GitHub since the last sync
  pulsegh --drift

  # Regenerate the snapshot (new projects are reported, not added)
  pulsegh --refresh

  # Fail a CI job when the snapshot is older than three days
  pulsegh --check-stale --max-age-days 3

  # Dump every item of project 1 as JSON
  pulsegh --items --project 1 --output json
        """,
    )

    modes = parser.add_argument_group("Modes")
    modes.add_argument("--init", action="store_true", help="Create the workspace snapshot")
    modes.add_argument("--refresh", action="store_true", help="Regenerate the snapshot and report drift")
    modes.add_argument("--drift", action="store_true", help="Report drift without writing")
    modes.add_argument(
        "--check-stale",
        action="store_true",
        help=f"Exit with code {int(ExitCode.STALE)} when the snapshot needs a refresh",
    )
    modes.add_argument("--items", action="store_true", help="Collect every item of one project")

    selection = parser.add_argument_group("Workspace selection")
    selection.add_argument(
        "--workspace",
        "-w",
        metavar="LOGIN",
        help="User or organization login (default: owner of the git origin remote)",
    )
    selection.add_argument(
        "--owner-kind",
        choices=["user", "organization"],
        help="Skip owner detection",
    )
    selection.add_argument(
        "--project",
        "-p",
        type=int,
        action="append",
        metavar="N",
        help="Project number (repeatable)",
    )
    selection.add_argument(
        "--repo",
        "-r",
        action="append",
        metavar="NAME",
        help="Repository name (repeatable)",
    )
    selection.add_argument(
        "--default-project",
        type=int,
        metavar="N",
        help="Project used when none is given",
    )

    tuning = parser.add_argument_group("Tuning")
    tuning.add_argument("--page-size", type=int, metavar="N", help="Items per request (1-100)")
    tuning.add_argument(
        "--max-age-days",
        type=int,
        metavar="DAYS",
        help="Staleness threshold (default: 7)",
    )
    tuning.add_argument("--timeout", type=float, metavar="SECONDS", help="HTTP request timeout")

    general = parser.add_argument_group("General")
    general.add_argument("--config-dir", metavar="DIR", help="Snapshot directory (default: .pulsegh)")
    general.add_argument("--config", "-c", metavar="FILE", help="YAML config file")
    general.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    general.add_argument("--quiet", "-q", action="store_true", help="Only errors and results")
    general.add_argument("--no-color", action="store_true", help="Disable colored output")
    general.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log format (default: text)",
    )
    general.add_argument("--log-file", metavar="PATH", help="Also write logs to this file")
    general.add_argument(
        "--output",
        "-o",
        choices=["text", "json"],
        default="text",
        help="Result format (default: text)",
    )
    general.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


MODES = ("init", "refresh", "drift", "check_stale", "items")


def main() -> int:
    """
    Main entry point for the pulsegh CLI.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args()

    selected = [mode for mode in MODES if getattr(args, mode)]
    if len(selected) != 1:
        parser.print_usage(sys.stderr)
        print(
            "pulsegh: error: choose exactly one of "
            "--init, --refresh, --drift, --check-stale, --items",
            file=sys.stderr,
        )
        return ExitCode.USAGE_ERROR

    log_level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    setup_logging(
        level=log_level,
        log_format=args.log_format,
        log_file=args.log_file,
        static_fields={"service": "pulsegh", "version": __version__},
        use_colors=False if args.no_color else None,
    )

    console = Console(
        color=not args.no_color,
        verbose=args.verbose,
        quiet=args.quiet,
        json_mode=args.output == "json",
    )

    from . import commands

    handlers = {
        "init": commands.run_init,
        "refresh": commands.run_refresh,
        "drift": commands.run_drift,
        "check_stale": commands.run_check_stale,
        "items": commands.run_items,
    }

    try:
        return handlers[selected[0]](console, args)

    except KeyboardInterrupt:
        console.print()
        console.warning("Interrupted by user")
        return ExitCode.SIGINT

    except ConfigError as e:
        console.error(str(e))
        for error in e.errors:
            console.error(error)
        console.flush_errors()
        return ExitCode.CONFIG_ERROR

    except PulseError as e:
        console.error(str(e))
        if args.verbose:
            logging.getLogger("pulsegh.cli").debug("Command failed", exc_info=True)
        console.flush_errors()
        return ExitCode.from_exception(e)


def run() -> None:
    """
    Entry point for the console script.

    Calls main() and exits with its return code.
    """
    sys.exit(main())


if __name__ == "__main__":
    run()
