"""``pytruthtree new`` subcommand — write an empty truth tree."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from pytruthtree.cli.exitcodes import EXIT_ERROR, EXIT_SUCCESS
from pytruthtree.cli.output import emit_error, emit_json, new_tree_response
from pytruthtree.tree import TreeOptions, TruthTree

logger = logging.getLogger(__name__)


def run_new(args: argparse.Namespace) -> int:
    """Execute the ``new`` subcommand."""
    tree_path = Path(args.tree)
    json_mode = getattr(args, "json", False)

    if tree_path.exists() and not args.force:
        emit_error(
            f"Tree file {tree_path} already exists. Use --force to overwrite it.",
            json_mode=json_mode,
        )
        return EXIT_ERROR

    options = TreeOptions(
        require_atomic_contradiction=not args.no_atomic_contradiction,
        require_all_branches_terminated=not args.allow_open_branches,
    )
    tree = TruthTree.empty(options)

    try:
        tree.to_file(tree_path)
    except OSError as e:
        emit_error(str(e), json_mode=json_mode)
        return EXIT_ERROR

    if json_mode:
        emit_json(new_tree_response(str(tree_path), options.to_dict()))
    else:
        print(f"Created empty tree: {tree_path}")
    logger.info("Created tree %s", tree_path)
    return EXIT_SUCCESS
