"""Command line entry point: binsql <driver> <target> [-q SQL]"""

import argparse
import sys
from typing import List, Optional

from .app import run_interactive, run_non_interactive
from .config import Config
from .drivers import DriverKind
from .exceptions import BinsqlError
from .log import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="binsql",
        description="Terminal SQL console for SQLite, PostgreSQL, SQL Server and MySQL.",
    )
    parser.add_argument("-q", "--query", default="", help="SQL query to run in non-interactive mode")
    parser.add_argument("driver", choices=[k.value for k in DriverKind])
    parser.add_argument("target", help="database path (sqlite) or DSN")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    interactive = not args.query and sys.stdout.isatty()
    setup_logging(interactive)

    try:
        config = Config.from_env()
    except BinsqlError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if not interactive:
        return 0 if run_non_interactive(args.driver, args.target, args.query or None, config=config) else 1

    try:
        run_interactive(args.driver, args.target, config)
    except BinsqlError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0
