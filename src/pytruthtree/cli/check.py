"""``pytruthtree check`` subcommand — evaluate a saved truth tree."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from pytruthtree.cli.exitcodes import (
    EXIT_ERROR,
    EXIT_INCORRECT,
    EXIT_MALFORMED,
    EXIT_SUCCESS,
)
from pytruthtree.cli.output import check_response, emit_error, emit_json, node_response
from pytruthtree.errors import MalformedTreeError, TreeFormatError
from pytruthtree.tree import TruthTree

logger = logging.getLogger(__name__)


def apply_option_overrides(tree: TruthTree, args: argparse.Namespace) -> None:
    """Relax tree options according to command-line flags."""
    if getattr(args, "no_atomic_contradiction", False):
        tree.options.require_atomic_contradiction = False
    if getattr(args, "allow_open_branches", False):
        tree.options.require_all_branches_terminated = False


def load_tree(
    tree_path: Path, *, json_mode: bool = False, quiet: bool = False
) -> TruthTree | None:
    """Load a tree file, reporting problems; None if it could not be loaded."""
    if not tree_path.exists():
        emit_error(f"Tree file {tree_path} does not exist.", json_mode=json_mode, quiet=quiet)
        return None
    try:
        return TruthTree.from_file(tree_path)
    except (OSError, TreeFormatError, MalformedTreeError) as e:
        emit_error(str(e), json_mode=json_mode, quiet=quiet)
        return None


def run_check(args: argparse.Namespace) -> int:
    """Execute the ``check`` subcommand."""
    tree_path = Path(args.tree)
    json_mode = getattr(args, "json", False)
    quiet = getattr(args, "quiet", False)
    show_nodes = getattr(args, "nodes", False)

    tree = load_tree(tree_path, json_mode=json_mode, quiet=quiet)
    if tree is None:
        return EXIT_ERROR
    apply_option_overrides(tree, args)

    result = tree.is_correct()

    nodes: list[dict] | None = None
    if show_nodes and not result.malformed:
        nodes = [node_response(tree.nodes[i]) for i in sorted(tree.nodes)]

    if json_mode:
        emit_json(check_response(result, str(tree_path), nodes))
    elif not quiet:
        print(result.message)
        for entry in nodes or []:
            mark = "ok" if entry["valid"] and entry["decomposed"] else "!!"
            print(f"  [{mark}] ({entry['id']}) {entry['text']}: {entry['feedback']}")

    logger.info("Checked %s: %s", tree_path, result.message)

    if result.malformed:
        return EXIT_MALFORMED
    return EXIT_SUCCESS if result.correct else EXIT_INCORRECT
