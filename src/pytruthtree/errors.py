"""Validation responses and error types.

Expected invalidity (a statement that is not yet justified, a branch that is
not yet closed) is reported through ``Response`` values carrying an
``ErrorCode``. Exceptions are reserved for trees whose representation is
corrupt and for serialized input that does not describe a tree.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Closed set of reasons a node is not (yet) valid or decomposed."""

    NOT_PARSABLE = "not_parsable"
    NOT_LOGICAL_CONSEQUENCE = "not_logical_consequence"
    INVALID_INSTANTIATION = "invalid_instantiation"
    EXISTENCE_INSTANTIATION_LENGTH = "existence_instantiation_length"
    OPEN_DECOMPOSED = "open_decomposed"
    OPEN_CONTRADICTION = "open_contradiction"
    OPEN_INVALID_ANCESTOR = "open_invalid_ancestor"
    CLOSED_REFERENCE_LENGTH = "closed_reference_length"
    CLOSED_REFERENCE_INVALID = "closed_reference_invalid"
    CLOSED_NOT_ATOMIC = "closed_not_atomic"
    CLOSED_NOT_ANCESTOR = "closed_not_ancestor"
    CLOSED_NOT_CONTRADICTION = "closed_not_contradiction"
    TERMINATOR_NOT_LAST = "terminator_not_last"
    REFERENCE_NOT_AFTER = "reference_not_after"
    INVALID_DECOMPOSITION = "invalid_decomposition"
    EXISTENCE_DECOMPOSE_LENGTH = "existence_decompose_length"
    UNIVERSAL_DECOMPOSE_LENGTH = "universal_decompose_length"
    UNIVERSAL_DOMAIN_NOT_DECOMPOSED = "universal_domain_not_decomposed"
    UNIVERSAL_VARIABLES_LENGTH = "universal_variables_length"

    @property
    def message(self) -> str:
        """The fixed user-facing message for this code."""
        return _MESSAGES[self]


_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.NOT_PARSABLE: "This statement is not parsable.",
    ErrorCode.NOT_LOGICAL_CONSEQUENCE: (
        "This statement is not a logical consequence of a "
        "statement that occurs before it."
    ),
    ErrorCode.INVALID_INSTANTIATION: (
        "This statement does not instantiate the statement it references"
    ),
    ErrorCode.EXISTENCE_INSTANTIATION_LENGTH: (
        "An existence statement must instantiate a new constant."
    ),
    ErrorCode.OPEN_DECOMPOSED: "An open terminator must reference no statements.",
    ErrorCode.OPEN_CONTRADICTION: "This branch contains a contradiction.",
    ErrorCode.OPEN_INVALID_ANCESTOR: "This branch contains an invalid statement.",
    ErrorCode.CLOSED_REFERENCE_LENGTH: (
        "A closing terminator must reference exactly two statements."
    ),
    ErrorCode.CLOSED_REFERENCE_INVALID: "The referenced statements must be valid.",
    ErrorCode.CLOSED_NOT_ATOMIC: (
        "The referenced statements must consist of a literal and its negation"
    ),
    ErrorCode.CLOSED_NOT_ANCESTOR: (
        "A closing terminator must only reference statements that occur before it."
    ),
    ErrorCode.CLOSED_NOT_CONTRADICTION: (
        "The referenced statements must consist of a statement and its negation"
    ),
    ErrorCode.TERMINATOR_NOT_LAST: (
        "No statements can occur in a branch after a terminator."
    ),
    ErrorCode.REFERENCE_NOT_AFTER: (
        "A statement must decompose into statements that occur after it."
    ),
    ErrorCode.INVALID_DECOMPOSITION: "This statement is not decomposed correctly.",
    ErrorCode.EXISTENCE_DECOMPOSE_LENGTH: (
        "An existence statement can only be decomposed once per branch."
    ),
    ErrorCode.UNIVERSAL_DECOMPOSE_LENGTH: (
        "A universal statement must be decomposed at least once."
    ),
    ErrorCode.UNIVERSAL_DOMAIN_NOT_DECOMPOSED: (
        "A universal statement must instantiate every variable "
        "in the universe of discourse."
    ),
    ErrorCode.UNIVERSAL_VARIABLES_LENGTH: (
        "Universals with multiple variables cannot be evaluated yet; "
        "please split into multiple universal statements."
    ),
}

UNKNOWN_ERROR_MESSAGE = "Unknown error code. Contact a developer :)"


def resolve_error_code(code: ErrorCode | str) -> str:
    """Map an error code (or its string value) to its user-facing message."""
    if isinstance(code, ErrorCode):
        return code.message
    try:
        return ErrorCode(code).message
    except ValueError:
        return UNKNOWN_ERROR_MESSAGE


@dataclass(frozen=True, slots=True)
class Response:
    """Outcome of a validity or decomposition check.

    ``Response()`` is success; ``Response(code)`` is failure with *code*.

    Attributes:
        error: The failure code, or None on success.
    """

    error: ErrorCode | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str | None:
        return None if self.error is None else self.error.message

    def __bool__(self) -> bool:
        return self.ok

    def __str__(self) -> str:
        return "ok" if self.error is None else self.error.value


VALID = Response()


class MalformedTreeError(RuntimeError):
    """Raised when a tree violates its representation invariants.

    This signals corruption (dangling ids, impossible parent links), never an
    ordinary incorrect proof.
    """


class TreeFormatError(ValueError):
    """Raised when serialized input does not describe a truth tree."""
