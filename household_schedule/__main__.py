"""Command-line entry for household_schedule."""

from __future__ import annotations

import argparse
import sys
from typing import NoReturn

from . import run_server


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for household_schedule CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="household_schedule",
        description="Household schedule materialization server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m household_schedule                            # Serve on the default port (8080)
  python -m household_schedule --port 3000                # Serve on port 3000
  python -m household_schedule --data-file household.json # Serve a JSON snapshot
        """,
    )

    parser.add_argument(
        "--port",
        type=int,
        metavar="PORT",
        help="Port number for the web server (default: 8080, or HOUSEHOLD_SCHEDULE_WEB_PORT)",
    )
    parser.add_argument(
        "--data-file",
        dest="data_file",
        metavar="PATH",
        help="JSON snapshot of the tools' records (or HOUSEHOLD_SCHEDULE_DATA_FILE)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def main(argv: list[str] | None = None) -> NoReturn:
    """Run the household_schedule CLI."""
    parser = _create_parser()
    args = parser.parse_args(argv)
    run_server(args)
    sys.exit(0)


if __name__ == "__main__":
    main()
