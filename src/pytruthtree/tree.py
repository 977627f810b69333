"""Truth trees: node arena, structural editing and whole-tree evaluation.

A ``TruthTree`` exclusively owns its nodes, addressed by stable integer ids.
Every mutation goes through the tree (or a node's ``text`` setter, which
reports back to the tree), so derived state is invalidated eagerly:

- a statement change clears the node's and its antecedent's cached correct
  decomposition and re-propagates the universe of discourse below the node;
- a structural edit clears every cached decomposition and re-propagates the
  universe from the edit point.

Serialized form (JSON)::

    {
      "nodes": [
        {"id": 0, "text": "P ∧ Q", "children": [1], "decomposition": [1, 2],
         "premise": true},
        {"id": 1, "text": "P", "children": [2], "decomposition": [],
         "parent": 0, "antecedent": 0},
        ...
      ],
      "options": {"requireAtomicContradiction": true,
                  "requireAllBranchesTerminated": true,
                  "lockedOptions": false}
    }
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pytruthtree.errors import MalformedTreeError, TreeFormatError
from pytruthtree.node import (
    CLOSED_TERMINATOR,
    INHERITED,
    OPEN_TERMINATOR,
    TERMINATORS,
    Own,
    TruthTreeNode,
)
from pytruthtree.parser import parse_statement
from pytruthtree.syntax import Formula, Statement

logger = logging.getLogger(__name__)

CORRECT_MESSAGE = "This tree is correct!"
INCORRECT_MESSAGE = "This tree is incorrect."
UNTERMINATED_MESSAGE = "Every branch must be terminated."
MALFORMED_MESSAGE = (
    "This tree is malformed -- please save this tree and contact a developer."
)

Parser = Callable[[str], Statement]


@dataclass
class TreeOptions:
    """Which truth tree conventions a tree enforces.

    Attributes:
        require_atomic_contradiction: Closed terminators must reference an
            atomic statement and its negation, not just any statement pair.
        require_all_branches_terminated: Every leaf must be a terminator for
            the tree to be correct.
        locked_options: Front ends should not let users change these options
            or premises.
    """

    require_atomic_contradiction: bool = True
    require_all_branches_terminated: bool = True
    locked_options: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {
            "requireAtomicContradiction": self.require_atomic_contradiction,
            "requireAllBranchesTerminated": self.require_all_branches_terminated,
            "lockedOptions": self.locked_options,
        }

    @classmethod
    def from_dict(cls, data: dict) -> TreeOptions:
        """Read options from their serialized form.

        Missing keys, and values that are not booleans, take defaults.
        """
        defaults = cls()

        def flag(key: str, default: bool) -> bool:
            value = data.get(key)
            return value if isinstance(value, bool) else default

        return cls(
            require_atomic_contradiction=flag(
                "requireAtomicContradiction", defaults.require_atomic_contradiction
            ),
            require_all_branches_terminated=flag(
                "requireAllBranchesTerminated",
                defaults.require_all_branches_terminated,
            ),
            locked_options=flag("lockedOptions", defaults.locked_options),
        )


@dataclass
class Correctness:
    """Result of evaluating a whole tree.

    Attributes:
        correct: Whether the tree is a correct truth tree.
        message: User-facing explanation.
        malformed: True when the tree's representation is corrupt, as opposed
            to merely incorrect.
    """

    correct: bool
    message: str
    malformed: bool = False


class TruthTree:
    """A truth tree: an arena of ``TruthTreeNode`` objects plus options.

    Parameters:
        options: Tree conventions (defaults to a fresh ``TreeOptions``).
        parse: Callable turning text into a statement, raising ``ValueError``
            for unparsable text.
    """

    OPEN_TERMINATOR = OPEN_TERMINATOR
    CLOSED_TERMINATOR = CLOSED_TERMINATOR
    TERMINATORS = TERMINATORS

    def __init__(
        self,
        options: TreeOptions | None = None,
        *,
        parse: Parser = parse_statement,
    ) -> None:
        self.nodes: dict[int, TruthTreeNode] = {}
        self.leaves: set[int] = set()
        self.options = options if options is not None else TreeOptions()
        self.parse = parse
        self.initialized = True
        self._root: int | None = None

    @classmethod
    def empty(
        cls, options: TreeOptions | None = None, *, parse: Parser = parse_statement
    ) -> TruthTree:
        """Return a tree holding a single empty root node."""
        tree = cls(options, parse=parse)
        root = TruthTreeNode(0, tree)
        root.universe_state = Own()
        tree.nodes[0] = root
        tree._root = 0
        tree.leaves.add(0)
        logger.debug("Created empty tree")
        return tree

    @property
    def root(self) -> int:
        if self._root is None:
            raise MalformedTreeError("Undefined root")
        return self._root

    def __len__(self) -> int:
        return len(self.nodes)

    # ------------------------------------------------------------------
    # Arena access and cache maintenance
    # ------------------------------------------------------------------

    def node(self, id: int) -> TruthTreeNode:
        """Return the node with *id*; an unknown id means the tree is corrupt."""
        try:
            return self.nodes[id]
        except KeyError:
            raise MalformedTreeError(f"Reference to missing node {id}") from None

    def get_node(self, id: int | None) -> TruthTreeNode | None:
        """Return the node with *id*, or None if there is no such node."""
        if id is None:
            return None
        return self.nodes.get(id)

    def invalidate_decomposition(self, id: int) -> None:
        """Drop the cached correct decomposition of node *id*."""
        node = self.nodes.get(id)
        if node is not None:
            node.invalidate_correct_decomposition()

    def invalidate_all(self) -> None:
        for node in self.nodes.values():
            node.invalidate_correct_decomposition()

    def statement_changed(self, id: int, was_terminator: bool = False) -> None:
        """React to node *id* receiving a new statement.

        The node's own decomposition and its antecedent's (which may or may
        not list this node as correct any more) are invalidated, and the
        universe below the node is recomputed. A node that became or stopped
        being a terminator loses its references.
        """
        if not self.initialized:
            return
        node = self.node(id)
        if node.is_terminator() != was_terminator:
            self._detach_references(node)
        self.invalidate_decomposition(id)
        if node.antecedent is not None:
            self.invalidate_decomposition(node.antecedent)
        logger.debug("Statement of node %d changed; decompositions invalidated", id)
        self._repropagate(id)

    def _detach_references(self, node: TruthTreeNode) -> None:
        """Drop every reference from or to *node* on both sides."""
        antecedent = self.get_node(node.antecedent)
        if antecedent is not None:
            antecedent.decomposition.discard(node.id)
            antecedent.invalidate_correct_decomposition()
        node.antecedent = None

        for referenced_id in node.decomposition:
            referenced = self.get_node(referenced_id)
            if referenced is not None and referenced.antecedent == node.id:
                referenced.antecedent = None
        node.decomposition.clear()
        logger.debug("Node %d changed kind; references dropped", node.id)

    # ------------------------------------------------------------------
    # Universe of discourse
    # ------------------------------------------------------------------

    def propagate_universe(
        self, id: int, universe: Sequence[Formula], changed: bool
    ) -> None:
        """Push *universe* down from node *id*, extending it with new constants.

        A node whose parent introduced nothing stores ``INHERITED`` instead of
        a copy of its parent's universe. The root always stores its own.
        """
        logger.debug("Propagating universe from node %d", id)
        seen: set[int] = set()
        stack: list[tuple[int, tuple[Formula, ...], bool]] = [
            (id, tuple(universe), changed)
        ]
        while stack:
            current_id, current_universe, current_changed = stack.pop()
            if current_id in seen:
                raise MalformedTreeError(f"Node {current_id} is reachable twice")
            seen.add(current_id)

            current = self.node(current_id)
            if current_changed or current.parent is None:
                current.universe_state = Own(current_universe)
            else:
                current.universe_state = INHERITED

            next_universe = current_universe
            introduced = False
            if current.statement is not None:
                new_constants = current.statement.get_new_constants(current_universe)
                if new_constants:
                    next_universe = current_universe + tuple(new_constants)
                    introduced = True

            for child_id in reversed(current.children):
                stack.append((child_id, next_universe, introduced))

    def _repropagate(self, id: int | None) -> None:
        """Recompute universes below node *id* (the whole tree for None)."""
        if id is None:
            self.propagate_universe(self.root, (), True)
            return
        node = self.node(id)
        self.propagate_universe(id, node.universe, isinstance(node.universe_state, Own))

    def _structure_changed(self, id: int | None) -> None:
        logger.debug("Structure changed; invalidating all decompositions")
        self.invalidate_all()
        self._repropagate(id)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def get_branch_head(self, id: int) -> int:
        """Return the id of the node that begins the branch containing *id*."""
        current = self.node(id)
        while current.parent is not None and len(self.node(current.parent).children) == 1:
            current = self.node(current.parent)
        return current.id

    def leftmost_node(self, root: int | None = None) -> TruthTreeNode | None:
        """Return the leftmost leaf below *root* (the whole tree by default)."""
        node = self.get_node(self._root if root is None else root)
        if node is None:
            return None
        while node.children:
            node = self.node(node.children[0])
        return node

    def rightmost_node(self, root: int | None = None) -> TruthTreeNode | None:
        """Return the rightmost leaf below *root* (the whole tree by default)."""
        node = self.get_node(self._root if root is None else root)
        if node is None:
            return None
        while node.children:
            node = self.node(node.children[-1])
        return node

    # ------------------------------------------------------------------
    # Text, premise and reference edits
    # ------------------------------------------------------------------

    def set_text(self, id: int, text: str) -> None:
        self.node(id).text = text

    def toggle_premise(self, id: int) -> None:
        self.node(id).toggle_premise()

    def add_reference(self, id: int, referenced_id: int) -> bool:
        """Link node *id* to node *referenced_id*.

        A terminator simply records the reference. Otherwise an ancestor
        becomes the node's antecedent, and a descendant joins the node's
        decomposition. Returns False when no legal link exists.
        """
        node = self.get_node(id)
        other = self.get_node(referenced_id)
        if node is None or other is None or id == referenced_id:
            logger.debug("Cannot reference node %s from node %s", referenced_id, id)
            return False

        if node.is_terminator():
            node.decomposition.add(referenced_id)
            return True

        # Terminators take part in references only as the referring side
        if other.is_terminator():
            logger.debug("Node %d cannot reference terminator %d", id, referenced_id)
            return False

        if other.is_ancestor_of(id):
            child, antecedent = node, other
        elif node.is_ancestor_of(referenced_id):
            child, antecedent = other, node
        else:
            logger.debug(
                "Nodes %d and %d do not share a branch; no reference made",
                id,
                referenced_id,
            )
            return False

        if child.antecedent is not None and child.antecedent != antecedent.id:
            previous = self.get_node(child.antecedent)
            if previous is not None:
                previous.decomposition.discard(child.id)
                previous.invalidate_correct_decomposition()

        child.antecedent = antecedent.id
        antecedent.decomposition.add(child.id)
        antecedent.invalidate_correct_decomposition()
        child.invalidate_correct_decomposition()
        logger.debug("Node %d now decomposes into node %d", antecedent.id, child.id)
        return True

    def remove_reference(self, id: int, referenced_id: int) -> bool:
        """Undo ``add_reference(id, referenced_id)``; False if there was no link."""
        node = self.get_node(id)
        other = self.get_node(referenced_id)
        if node is None or other is None:
            return False

        if node.is_terminator():
            if referenced_id not in node.decomposition:
                return False
            node.decomposition.discard(referenced_id)
            return True

        if node.antecedent == referenced_id:
            child, antecedent = node, other
        elif other.antecedent == id:
            child, antecedent = other, node
        else:
            return False

        child.antecedent = None
        antecedent.decomposition.discard(child.id)
        antecedent.invalidate_correct_decomposition()
        return True

    # ------------------------------------------------------------------
    # Structural edits
    # ------------------------------------------------------------------

    def _next_id(self) -> int:
        return max(self.nodes) + 1

    def add_node_before(self, child_id: int) -> int | None:
        """Insert a new node directly above *child_id*, in the same branch.

        Returns the new node's id, or None if *child_id* does not exist.
        """
        child = self.get_node(child_id)
        if child is None:
            logger.debug("add_node_before: no node %s", child_id)
            return None

        parent = self.get_node(child.parent)
        if parent is not None and child_id not in parent.children:
            raise MalformedTreeError(f"Parent of node {child_id} does not contain it")

        new_id = self._next_id()
        new_node = TruthTreeNode(new_id, self)
        new_node.parent = child.parent
        new_node.children = [child_id]
        self.nodes[new_id] = new_node

        if parent is not None:
            parent.children[parent.children.index(child_id)] = new_id
        child.parent = new_id

        if self._root == child_id:
            self._root = new_id
            new_node.universe_state = Own()

        logger.debug("Inserted node %d before node %d", new_id, child_id)
        self._structure_changed(new_node.parent)
        return new_id

    def add_node_after(self, parent_id: int, new_branch: bool = False) -> int | None:
        """Insert a new node below *parent_id*.

        With *new_branch*, the node starts a new branch under *parent_id* and
        the parent's id is returned, so several branches can be added in a
        row. Otherwise the node is spliced in directly below the parent,
        adopting its children, and the new node's id is returned.

        Returns None if *parent_id* does not exist.
        """
        parent = self.get_node(parent_id)
        if parent is None:
            logger.debug("add_node_after: no node %s", parent_id)
            return None

        new_id = self._next_id()
        new_node = TruthTreeNode(new_id, self)
        new_node.parent = parent_id
        self.nodes[new_id] = new_node

        if new_branch:
            parent.children.append(new_id)
            self.leaves.discard(parent_id)
            self.leaves.add(new_id)
            logger.debug("Added branch %d under node %d", new_id, parent_id)
            self._structure_changed(parent_id)
            return parent_id

        new_node.children = parent.children
        for child_id in new_node.children:
            self.node(child_id).parent = new_id
        parent.children = [new_id]

        if parent_id in self.leaves:
            self.leaves.discard(parent_id)
            self.leaves.add(new_id)

        logger.debug("Inserted node %d after node %d", new_id, parent_id)
        self._structure_changed(parent_id)
        return new_id

    def delete_node(self, id: int) -> int | None:
        """Delete a single node, splicing its children into its place.

        The root of a branch that splits further cannot be deleted, nor can
        the root of the tree unless it has exactly one child.

        Returns None if the node could not be deleted; otherwise the id of
        the node's sole child if it had one, else the id of its parent.
        """
        node = self.get_node(id)
        if node is None:
            logger.debug("delete_node: no node %s", id)
            return None

        if node.parent is None:
            if len(node.children) != 1:
                logger.debug("Refusing to delete root %d with %d children",
                             id, len(node.children))
                return None
            # The sole child becomes the new root
            new_root = self.node(node.children[0])
            new_root.parent = None
            self._root = new_root.id
        else:
            parent = self.node(node.parent)
            if len(parent.children) != 1:
                # The node heads one of several sibling branches
                if len(node.children) > 1:
                    logger.debug("Refusing to delete branch head %d with %d children",
                                 id, len(node.children))
                    return None
                index = parent.children.index(id)
                if len(node.children) == 1:
                    parent.children[index] = node.children[0]
                    self.node(node.children[0]).parent = node.parent
                else:
                    del parent.children[index]
                    self.leaves.discard(id)
            else:
                parent.children = list(node.children)
                for child_id in node.children:
                    self.node(child_id).parent = node.parent
                if not node.children:
                    self.leaves.discard(id)
                    self.leaves.add(parent.id)

        # Nothing may keep referring to the deleted node
        for other in self.nodes.values():
            other.decomposition.discard(id)
            if other.antecedent == id:
                other.antecedent = None

        del self.nodes[id]
        logger.debug("Deleted node %d", id)
        self._structure_changed(node.parent)

        if len(node.children) == 1:
            return node.children[0]
        return node.parent

    def delete_branch(self, id: int) -> int | None:
        """Delete node *id* and everything below it.

        Returns the id of the deleted head's parent, or None if *id* does not
        exist or is the root of the tree.
        """
        head = self.get_node(id)
        if head is None or head.parent is None:
            return None

        # Reversed pre-order visits every node after all of its descendants
        order: list[int] = []
        stack = [id]
        while stack:
            current = stack.pop()
            order.append(current)
            stack.extend(self.node(current).children)

        for node_id in reversed(order):
            if self.delete_node(node_id) is None:
                raise MalformedTreeError(f"Could not delete node {node_id} in branch {id}")
        return head.parent

    # ------------------------------------------------------------------
    # Whole-tree evaluation
    # ------------------------------------------------------------------

    def is_correct(self) -> Correctness:
        """Determine whether this truth tree is correct."""
        if not self.check_representation():
            return Correctness(False, MALFORMED_MESSAGE, malformed=True)
        try:
            result = self._evaluate()
        except MalformedTreeError as e:
            logger.error("Malformed tree: %s", e)
            return Correctness(False, MALFORMED_MESSAGE, malformed=True)
        logger.debug("Tree evaluated: %s", result.message)
        return result

    def _evaluate(self) -> Correctness:
        has_valid_open_terminator = False

        for node in sorted(self.nodes.values(), key=lambda n: n.id):
            if not node.is_valid():
                return Correctness(False, INCORRECT_MESSAGE)

            if node.id in self.leaves:
                if self.options.require_all_branches_terminated:
                    if not node.is_terminator():
                        return Correctness(False, UNTERMINATED_MESSAGE)
                elif node.is_open_terminator():
                    has_valid_open_terminator = True

        # A satisfied open branch is enough; never set when all branches
        # must be terminated
        if has_valid_open_terminator:
            return Correctness(True, CORRECT_MESSAGE)

        for leaf_id in self.leaves:
            if not self.node(leaf_id).is_terminator():
                return Correctness(False, UNTERMINATED_MESSAGE)

        return Correctness(True, CORRECT_MESSAGE)

    def check_representation(self) -> bool:
        """Check the representation invariants.

        - exactly one root, reaching every node exactly once;
        - parent and children links agree;
        - every reference names an existing node;
        - antecedents are strict ancestors and list their dependents;
        - ``leaves`` is exactly the set of childless nodes.
        """
        roots = [n.id for n in self.nodes.values() if n.parent is None]
        if roots != [self._root]:
            logger.debug("Representation: roots %s, expected [%s]", roots, self._root)
            return False

        reached: set[int] = set()
        stack = [self._root]
        while stack:
            current_id = stack.pop()
            current = self.nodes.get(current_id)
            if current is None or current_id in reached:
                logger.debug("Representation: node %s missing or reached twice",
                             current_id)
                return False
            reached.add(current_id)
            for child_id in current.children:
                child = self.nodes.get(child_id)
                if child is None or child.parent != current_id:
                    logger.debug("Representation: bad child link %d -> %s",
                                 current_id, child_id)
                    return False
                stack.append(child_id)
        if len(reached) != len(self.nodes):
            logger.debug("Representation: %d node(s) unreachable",
                         len(self.nodes) - len(reached))
            return False

        for node in self.nodes.values():
            if any(ref not in self.nodes for ref in node.decomposition):
                logger.debug("Representation: node %d references a missing node", node.id)
                return False

            # Terminator references are not back-linked
            if node.is_terminator():
                continue

            if node.antecedent is not None:
                antecedent = self.nodes.get(node.antecedent)
                if antecedent is None or node.id not in antecedent.decomposition:
                    logger.debug("Representation: node %d not in its antecedent's "
                                 "decomposition", node.id)
                    return False
                if not antecedent.is_ancestor_of(node.id):
                    logger.debug("Representation: antecedent of node %d is not an "
                                 "ancestor", node.id)
                    return False

            for decomposed_id in node.decomposition:
                if self.nodes[decomposed_id].antecedent != node.id:
                    logger.debug("Representation: node %d does not point back to %d",
                                  decomposed_id, node.id)
                    return False

        if self.leaves != {n.id for n in self.nodes.values() if not n.children}:
            logger.debug("Representation: leaf set out of date")
            return False

        return True

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def format_tree(self, *, feedback: bool = False) -> str:
        """Render the tree as indented text.

        A branch continues at the same depth; each split indents its
        branches by one level. A blank line follows each leaf.
        """
        lines: list[str] = []
        stack = [(self.root, 0)]
        while stack:
            current_id, depth = stack.pop()
            current = self.node(current_id)

            line = "    " * depth + f"({current_id}) {current.text}"
            if current.premise:
                line += "\t(premise)"
            if feedback:
                line += f"\t[{current.feedback()}]"
            lines.append(line)

            if not current.children:
                lines.append("")
            elif len(current.children) == 1:
                stack.append((current.children[0], depth))
            else:
                for child_id in reversed(current.children):
                    stack.append((child_id, depth + 1))
        return "\n".join(lines)

    def print_tree(self) -> None:
        print(self.format_tree())

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "nodes": [self.nodes[i].to_dict() for i in sorted(self.nodes)],
            "options": self.options.to_dict(),
        }

    def serialize(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Any, *, parse: Parser = parse_statement) -> TruthTree:
        """Deserialize from a dict (as produced by ``to_dict``)."""
        if not isinstance(data, dict):
            raise TreeFormatError("TruthTree.from_dict: This file is not a JSON object.")

        raw_nodes = data.get("nodes")
        if not (isinstance(raw_nodes, list) and raw_nodes):
            raise TreeFormatError("TruthTree.from_dict: The tree is empty.")

        raw_options = data.get("options")
        if raw_options is None:
            raw_options = {}
        if not isinstance(raw_options, dict):
            raise TreeFormatError("TruthTree.from_dict: options must be an object.")

        tree = cls(TreeOptions.from_dict(raw_options), parse=parse)
        tree.initialized = False

        try:
            for raw_node in raw_nodes:
                node = TruthTreeNode.from_dict(tree, raw_node)
                if node.id in tree.nodes:
                    raise TreeFormatError(f"Duplicate node id {node.id}.")
                if not node.children:
                    tree.leaves.add(node.id)

                # Only the root lacks a parent
                if node.parent is None:
                    if tree._root is not None:
                        raise TreeFormatError("Tree has multiple roots.")
                    tree._root = node.id

                tree.nodes[node.id] = node

            if tree._root is None:
                raise TreeFormatError("Tree has no root.")
        except TreeFormatError as e:
            raise TreeFormatError(
                f"TruthTree.from_dict: The tree does not match the format: {e}"
            ) from e

        tree.propagate_universe(tree.root, (), True)
        tree.initialized = True
        logger.debug("Loaded tree: %d nodes, root %d", len(tree.nodes), tree.root)
        return tree

    @classmethod
    def deserialize(cls, text: str, *, parse: Parser = parse_statement) -> TruthTree:
        """Deserialize from a JSON string (as produced by ``serialize``)."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise TreeFormatError(f"TruthTree.deserialize: This file is not in JSON: {e}") from e
        return cls.from_dict(data, parse=parse)

    def to_file(self, path: str | Path) -> None:
        """Write the tree to a JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        logger.debug("Saved tree to %s", path)

    @classmethod
    def from_file(cls, path: str | Path, *, parse: Parser = parse_statement) -> TruthTree:
        """Load a tree from a JSON file."""
        try:
            with open(path, encoding="utf-8") as f:
                text = f.read()
        except UnicodeDecodeError as e:
            raise TreeFormatError(
                f"TruthTree.from_file: This file is not UTF-8 text: {e}"
            ) from e
        logger.debug("Loaded tree from %s", path)
        return cls.deserialize(text, parse=parse)
