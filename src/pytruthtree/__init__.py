"""pyTruthTree — construct and check first-order truth trees.

Public API::

    from pytruthtree import TruthTree, TruthTreeNode, TreeOptions, Correctness
    from pytruthtree import ErrorCode, Response, MalformedTreeError, TreeFormatError
    from pytruthtree import parse_statement, ParseError, Statement, Formula
"""

from pytruthtree._version import __version__
from pytruthtree.errors import (
    ErrorCode,
    MalformedTreeError,
    Response,
    TreeFormatError,
    resolve_error_code,
)
from pytruthtree.node import CLOSED_TERMINATOR, OPEN_TERMINATOR, TruthTreeNode
from pytruthtree.parser import ParseError, parse_statement
from pytruthtree.syntax import (
    And,
    Atomic,
    Biconditional,
    Conditional,
    Existence,
    Formula,
    Not,
    Or,
    Quantifier,
    Statement,
    Universal,
)
from pytruthtree.tree import Correctness, TreeOptions, TruthTree

__all__ = [
    "__version__",
    "TruthTree",
    "TruthTreeNode",
    "TreeOptions",
    "Correctness",
    "OPEN_TERMINATOR",
    "CLOSED_TERMINATOR",
    "ErrorCode",
    "Response",
    "MalformedTreeError",
    "TreeFormatError",
    "resolve_error_code",
    "parse_statement",
    "ParseError",
    "Statement",
    "Formula",
    "Atomic",
    "Not",
    "And",
    "Or",
    "Conditional",
    "Biconditional",
    "Quantifier",
    "Existence",
    "Universal",
]
