"""``pytruthtree show`` subcommand — print a saved truth tree."""

from __future__ import annotations

import argparse
from pathlib import Path

from pytruthtree.cli.check import apply_option_overrides, load_tree
from pytruthtree.cli.exitcodes import EXIT_ERROR, EXIT_SUCCESS
from pytruthtree.cli.output import emit_error
from pytruthtree.errors import MalformedTreeError


def run_show(args: argparse.Namespace) -> int:
    """Execute the ``show`` subcommand."""
    tree = load_tree(Path(args.tree))
    if tree is None:
        return EXIT_ERROR
    apply_option_overrides(tree, args)

    try:
        print(tree.format_tree(feedback=args.feedback))
    except MalformedTreeError as e:
        emit_error(str(e))
        return EXIT_ERROR
    return EXIT_SUCCESS
