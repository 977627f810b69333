"""A single line of a truth tree branch.

Nodes live in a ``TruthTree`` arena and refer to one another by integer id.
Structural links (``parent``/``children``) give the shape of the tree;
logical links (``antecedent``/``decomposition``) record which statement
justifies which.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pytruthtree import validation
from pytruthtree.errors import MalformedTreeError, Response, TreeFormatError
from pytruthtree.syntax import Formula, Statement

if TYPE_CHECKING:
    from pytruthtree.tree import TruthTree

logger = logging.getLogger(__name__)

OPEN_TERMINATOR = "◯"
CLOSED_TERMINATOR = "×"
TERMINATORS = (OPEN_TERMINATOR, CLOSED_TERMINATOR)


@dataclass(frozen=True, slots=True)
class Own:
    """A universe stored on the node itself."""

    constants: tuple[Formula, ...] = ()


@dataclass(frozen=True, slots=True)
class Inherited:
    """Marker: the node's universe is identical to its parent's."""


INHERITED = Inherited()

UniverseState = Own | Inherited


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class TruthTreeNode:
    """One statement (or terminator) in a truth tree.

    Parameters:
        id: Identifier, unique within the owning tree.
        tree: The owning tree.

    Attributes:
        premise: Whether the node is a premise (valid without justification).
        parent: Id of the parent node, or None for the root.
        children: Ids of the child nodes, left to right.
        antecedent: Id of the node whose decomposition justifies this one.
        decomposition: Ids of the nodes this node decomposes into. For a
            terminator, the ids it references.
        universe_state: ``Own`` constants, or ``INHERITED`` to defer to the
            parent.
    """

    def __init__(self, id: int, tree: TruthTree) -> None:
        self.id = id
        self.tree = tree
        self._text = ""
        self._statement: Statement | None = None
        self.premise = False
        self.parent: int | None = None
        self.children: list[int] = []
        self.antecedent: int | None = None
        self.decomposition: set[int] = set()
        self.universe_state: UniverseState = INHERITED
        self._correct_decomposition: frozenset[int] | None = None

    def __repr__(self) -> str:
        return f"TruthTreeNode(id={self.id}, text={self._text!r})"

    # --- Text and statement ---

    @property
    def text(self) -> str:
        return self._text

    @text.setter
    def text(self, new_text: str) -> None:
        """Replace the text, re-parse it and invalidate dependent state."""
        was_terminator = self.is_terminator()
        self._text = new_text
        try:
            self._statement = self.tree.parse(new_text)
        except ValueError:
            self._statement = None
        self.tree.statement_changed(self.id, was_terminator)

    @property
    def statement(self) -> Statement | None:
        """The parsed statement, or None for empty or unparsable text."""
        return self._statement

    # --- Derived state ---

    @property
    def universe(self) -> tuple[Formula, ...]:
        """The constants introduced above (excluding) this node."""
        node = self
        seen = {node.id}
        while isinstance(node.universe_state, Inherited):
            if node.parent is None:
                logger.warning("Root node %d has no universe", node.id)
                return ()
            node = self._step_up(node, seen)
        return node.universe_state.constants

    @property
    def correct_decomposition(self) -> frozenset[int]:
        """Ids of referenced nodes forming a correct decomposition (memoized)."""
        if self._statement is None:
            return frozenset()
        if self._correct_decomposition is None:
            self._correct_decomposition = validation.derive_correct_decomposition(self)
        return self._correct_decomposition

    def invalidate_correct_decomposition(self) -> None:
        self._correct_decomposition = None

    # --- Classification ---

    def toggle_premise(self) -> None:
        self.premise = not self.premise

    def is_terminator(self) -> bool:
        return self._text.strip() in TERMINATORS

    def is_open_terminator(self) -> bool:
        return self._text.strip() == OPEN_TERMINATOR

    def is_closed_terminator(self) -> bool:
        return self._text.strip() == CLOSED_TERMINATOR

    # --- Checks ---

    def is_valid(self) -> Response:
        return validation.is_valid(self)

    def is_decomposed(self) -> Response:
        return validation.is_decomposed(self)

    def feedback(self) -> str:
        """Human-readable summary of this node's status."""
        validity = self.is_valid()
        if not validity:
            return validity.message  # type: ignore[return-value]
        decomposed = self.is_decomposed()
        if not decomposed:
            return decomposed.message  # type: ignore[return-value]

        if self.premise:
            return "This statement is a premise."
        if self.is_open_terminator():
            return "This open branch represents a valid assignment."
        if self.is_closed_terminator():
            return "This branch is successfully closed."
        return "This statement is a logical consequence and is decomposed correctly."

    # --- Navigation ---

    def ancestors(self) -> list[int]:
        """Ids of this node's ancestors, from the parent up to the root."""
        result: list[int] = []
        node = self
        seen = {node.id}
        while node.parent is not None:
            result.append(node.parent)
            node = self._step_up(node, seen)
        return result

    def ancestor_branch(self) -> set[int]:
        return set(self.ancestors())

    def is_ancestor_of(self, other_id: int) -> bool:
        """Return True if this node lies strictly above *other_id*."""
        node = self.tree.node(other_id)
        seen = {node.id}
        while node.parent is not None:
            node = self._step_up(node, seen)
            if node.id == self.id:
                return True
        return False

    def _step_up(self, node: TruthTreeNode, seen: set[int]) -> TruthTreeNode:
        """Return *node*'s parent, recording it in *seen*; a repeat is a cycle."""
        if node.parent in seen:
            raise MalformedTreeError(f"Parent links of node {self.id} form a cycle")
        seen.add(node.parent)  # type: ignore[arg-type]
        return self.tree.node(node.parent)  # type: ignore[arg-type]

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict, omitting defaulted fields."""
        d: dict = {
            "id": self.id,
            "text": self._text,
            "children": list(self.children),
            "decomposition": sorted(self.decomposition),
        }
        if self.premise:
            d["premise"] = True
        if self.parent is not None:
            d["parent"] = self.parent
        if self.antecedent is not None:
            d["antecedent"] = self.antecedent
        return d

    @classmethod
    def from_dict(cls, tree: TruthTree, data: Any) -> TruthTreeNode:
        """Deserialize a node (as produced by ``to_dict``) into *tree*."""
        if not isinstance(data, dict):
            raise TreeFormatError("TruthTreeNode.from_dict: node is not an object.")

        if not _is_int(data.get("id")):
            raise TreeFormatError("TruthTreeNode.from_dict: id not found.")
        node = cls(data["id"], tree)

        if not isinstance(data.get("text"), str):
            raise TreeFormatError("TruthTreeNode.from_dict: text not found.")

        children = data.get("children")
        if not (isinstance(children, list) and all(_is_int(c) for c in children)):
            raise TreeFormatError("TruthTreeNode.from_dict: children not found.")
        node.children = list(children)

        decomposition = data.get("decomposition")
        if not (
            isinstance(decomposition, list) and all(_is_int(d) for d in decomposition)
        ):
            raise TreeFormatError("TruthTreeNode.from_dict: decomposition not found.")
        node.decomposition = set(decomposition)

        # Optional fields of the wrong type are ignored
        if isinstance(data.get("premise"), bool):
            node.premise = data["premise"]
        if _is_int(data.get("parent")):
            node.parent = data["parent"]
        if _is_int(data.get("antecedent")):
            node.antecedent = data["antecedent"]

        node.text = data["text"]
        return node
