"""Structured JSON output for the pytruthtree CLI."""

from __future__ import annotations

import json
import logging
import sys

from pytruthtree.node import TruthTreeNode
from pytruthtree.tree import Correctness

logger = logging.getLogger(__name__)


def emit_json(data: dict) -> None:
    """Print compact single-line JSON to stdout."""
    print(json.dumps(data, separators=(",", ":"), ensure_ascii=False))


def node_response(node: TruthTreeNode) -> dict:
    """Build a per-node status dict."""
    validity = node.is_valid()
    decomposed = node.is_decomposed()
    d: dict = {
        "id": node.id,
        "text": node.text,
        "valid": validity.ok,
        "decomposed": decomposed.ok,
        "feedback": node.feedback(),
    }
    if validity.error is not None:
        d["valid_error"] = validity.error.value
    if decomposed.error is not None:
        d["decomposed_error"] = decomposed.error.value
    return d


def check_response(
    result: Correctness,
    tree_file: str,
    nodes: list[dict] | None = None,
) -> dict:
    """Build a check response dict."""
    if result.malformed:
        status = "MALFORMED"
    elif result.correct:
        status = "CORRECT"
    else:
        status = "INCORRECT"
    d: dict = {
        "status": status,
        "message": result.message,
        "tree_file": tree_file,
    }
    if nodes is not None:
        d["nodes"] = nodes
    return d


def new_tree_response(tree_file: str, options: dict) -> dict:
    """Build a new-tree response dict."""
    return {
        "action": "created_tree",
        "tree_file": tree_file,
        "options": options,
    }


def error_response(message: str) -> dict:
    """Build an error response dict."""
    return {"error": message}


def emit_error(message: str, *, json_mode: bool = False, quiet: bool = False) -> None:
    """Print an error message to stderr, or as JSON to stdout."""
    if quiet:
        return
    if json_mode:
        emit_json(error_response(message))
    else:
        print(f"Error: {message}", file=sys.stderr)
