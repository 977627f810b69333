"""CLI entry point for pyTruthTree.

Usage::

    pytruthtree new   -t tree.json [--allow-open-branches]
    pytruthtree check -t tree.json [--json] [--nodes]
    pytruthtree show  -t tree.json [--feedback]
"""

from __future__ import annotations

import argparse
import logging
import sys

from pytruthtree._version import __version__


def _add_option_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--no-atomic-contradiction",
        action="store_true",
        help="Let closed terminators reference any statement and its negation",
    )
    parser.add_argument(
        "--allow-open-branches",
        action="store_true",
        help="Do not require every branch to be terminated",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the ``pytruthtree`` CLI."""
    parser = argparse.ArgumentParser(
        prog="pytruthtree",
        description="pyTruthTree — check first-order truth trees",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- new ---
    new_parser = subparsers.add_parser("new", help="Write an empty tree file")
    new_parser.add_argument("-t", "--tree", required=True, help="Path to JSON tree file")
    new_parser.add_argument("--force", action="store_true", help="Overwrite an existing file")
    new_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    _add_option_flags(new_parser)

    # --- check ---
    check_parser = subparsers.add_parser("check", help="Check whether a tree is correct")
    check_parser.add_argument("-t", "--tree", required=True, help="Path to JSON tree file")
    check_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    check_parser.add_argument("-q", "--quiet", action="store_true", help="Suppress output")
    check_parser.add_argument("--nodes", action="store_true", help="Report every node")
    _add_option_flags(check_parser)

    # --- show ---
    show_parser = subparsers.add_parser("show", help="Print a tree")
    show_parser.add_argument("-t", "--tree", required=True, help="Path to JSON tree file")
    show_parser.add_argument("--feedback", action="store_true", help="Print node feedback")
    _add_option_flags(show_parser)

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "new":
        from pytruthtree.cli.new import run_new
        return run_new(args)
    elif args.command == "check":
        from pytruthtree.cli.check import run_check
        return run_check(args)
    elif args.command == "show":
        from pytruthtree.cli.show import run_show
        return run_show(args)

    return 0


if __name__ == "__main__":
    sys.exit(main())
