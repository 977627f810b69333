"""Validity and decomposition checks for truth tree nodes.

A node is *valid* when its presence in the tree is justified:

    premise            always valid
    empty text         vacuously valid
    consequence        a member of its antecedent's correct decomposition,
                       or a proper instantiation of a quantified antecedent
    open terminator ◯  every statement above it is valid and decomposed, and
                       the branch holds no literal together with its negation
    closed terminator × references exactly two ancestors forming a
                       literal/negation pair

A node is *decomposed* when its decomposition obligation is discharged in
every open branch (a branch ending in a valid-looking open terminator) that
contains it. Quantifiers have dedicated rules: an existential is instantiated
exactly once per branch with a fresh constant, and a universal is instantiated
for every assignment drawn from the branch's universe of discourse.

Functions here never raise for expected invalidity; they return a
``Response``. ``MalformedTreeError`` escapes only from corrupt trees.
"""

from __future__ import annotations

import logging
from itertools import product
from typing import TYPE_CHECKING

from pytruthtree.errors import VALID, ErrorCode, MalformedTreeError, Response
from pytruthtree.syntax import Atomic, Existence, Not, Quantifier, Universal

if TYPE_CHECKING:
    from pytruthtree.node import TruthTreeNode

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Validity
# ----------------------------------------------------------------------


def is_valid(node: TruthTreeNode) -> Response:
    """Determine whether *node* is a justified line of its branch."""
    if node.is_terminator():
        if node.children:
            return Response(ErrorCode.TERMINATOR_NOT_LAST)
        if node.is_open_terminator():
            return _open_terminator_valid(node)
        return _closed_terminator_valid(node)

    statement = node.statement
    if statement is None:
        # Unparsed text is fine only when there is no text at all
        if not node.text.strip():
            return VALID
        return Response(ErrorCode.NOT_PARSABLE)

    if node.premise:
        return VALID

    antecedent = node.tree.get_node(node.antecedent)
    if antecedent is None or antecedent.statement is None:
        return Response(ErrorCode.NOT_LOGICAL_CONSEQUENCE)

    if antecedent.id not in node.ancestor_branch():
        return Response(ErrorCode.NOT_LOGICAL_CONSEQUENCE)

    quantifier = antecedent.statement
    if isinstance(quantifier, Quantifier):
        if not quantifier.symbolized().equals(statement):
            return Response(ErrorCode.INVALID_INSTANTIATION)
        if isinstance(quantifier, Existence):
            new_constants = statement.get_new_constants(node.universe)
            if len(new_constants) != len(quantifier.variables):
                return Response(ErrorCode.EXISTENCE_INSTANTIATION_LENGTH)
        return VALID

    if node.id in antecedent.correct_decomposition:
        return VALID
    return Response(ErrorCode.NOT_LOGICAL_CONSEQUENCE)


def _open_terminator_valid(node: TruthTreeNode) -> Response:
    if node.decomposition:
        return Response(ErrorCode.OPEN_DECOMPOSED)

    # Complements of the literals seen so far on the way up
    complements: set[str] = set()
    tree = node.tree

    for ancestor_id in node.ancestors():
        ancestor = tree.node(ancestor_id)
        statement = ancestor.statement

        if statement is not None and statement.is_literal():
            if str(statement) in complements:
                return Response(ErrorCode.OPEN_CONTRADICTION)
            if isinstance(statement, Not):
                complements.add(str(statement.operand))
            else:
                complements.add(str(Not(statement)))

        if not ancestor.is_valid():
            return Response(ErrorCode.OPEN_INVALID_ANCESTOR)
        if not ancestor.is_decomposed():
            return Response(ErrorCode.OPEN_INVALID_ANCESTOR)

    return VALID


def _closed_terminator_valid(node: TruthTreeNode) -> Response:
    if len(node.decomposition) != 2:
        return Response(ErrorCode.CLOSED_REFERENCE_LENGTH)

    tree = node.tree
    references = sorted(node.decomposition)
    statements = [tree.node(ref).statement for ref in references]

    for first, second in (statements, statements[::-1]):
        if first is None or second is None:
            return Response(ErrorCode.CLOSED_REFERENCE_INVALID)

        if isinstance(first, Not) and first.operand == second:
            if tree.options.require_atomic_contradiction and not isinstance(
                second, Atomic
            ):
                return Response(ErrorCode.CLOSED_NOT_ATOMIC)

            branch = node.ancestor_branch()
            if any(ref not in branch for ref in references):
                return Response(ErrorCode.CLOSED_NOT_ANCESTOR)
            return VALID

    return Response(ErrorCode.CLOSED_NOT_CONTRADICTION)


# ----------------------------------------------------------------------
# Correct decomposition
# ----------------------------------------------------------------------


def derive_correct_decomposition(node: TruthTreeNode) -> frozenset[int]:
    """Compute the ids of referenced nodes that form a correct decomposition.

    Starting from each referenced node whose parent is not itself referenced,
    every branch under that parent is walked down to its next split. The
    referenced statements met on each walk form one branch; the collected
    branches are then matched against ``statement.has_decomposition``.
    """
    statement = node.statement
    if statement is None:
        return frozenset()

    tree = node.tree
    result: set[int] = set()
    visited: set[int] = set()

    for member_id in sorted(node.decomposition):
        if member_id in visited:
            continue

        member = tree.node(member_id)
        if member.parent is None:
            raise MalformedTreeError(
                f"The result of a decomposition has no parent. See node {member_id}"
            )

        if member.parent in node.decomposition:
            visited.add(member_id)
            continue

        branches: list[list] = []
        branch_ids: list[int] = []
        correct = True

        for child_id in tree.node(member.parent).children:
            if child_id in visited:
                raise MalformedTreeError(
                    f"Reached an already visited node in child branch: {child_id}"
                )

            branch = []
            current = tree.node(child_id)
            while True:
                if current.id in node.decomposition:
                    visited.add(current.id)
                    # An unparsed statement spoils the whole attempt
                    if current.statement is None:
                        correct = False
                    elif correct:
                        branch.append(current.statement)
                        branch_ids.append(current.id)
                if len(current.children) != 1:
                    break
                current = tree.node(current.children[0])

            if not correct:
                continue
            branches.append(branch)

        if not correct:
            continue

        if statement.has_decomposition(branches):
            result.update(branch_ids)

    logger.debug("Correct decomposition of node %d: %s", node.id, sorted(result))
    return frozenset(result)


# ----------------------------------------------------------------------
# Decomposition completeness
# ----------------------------------------------------------------------


def is_decomposed(node: TruthTreeNode) -> Response:
    """Determine whether *node* is fully decomposed in every open branch."""
    statement = node.statement
    if statement is None:
        # Catches terminators as well as empty lines
        if not node.text.strip() or node.is_terminator():
            return VALID
        return Response(ErrorCode.NOT_PARSABLE)

    if not statement.decompose():
        return VALID

    for decomposed_id in node.decomposition:
        if not node.is_ancestor_of(decomposed_id):
            return Response(ErrorCode.REFERENCE_NOT_AFTER)

    tree = node.tree
    for leaf_id in sorted(tree.leaves):
        leaf = tree.node(leaf_id)
        if not leaf.is_open_terminator() or not node.is_ancestor_of(leaf_id):
            continue

        open_branch = leaf.ancestor_branch()

        if isinstance(statement, Quantifier):
            in_branch = [d for d in sorted(node.decomposition) if d in open_branch]
            if isinstance(statement, Existence):
                response = _existence_decomposed(node, statement, in_branch)
            else:
                response = _universal_decomposed(node, statement, in_branch, leaf)
            if not response:
                return response
            continue

        if not any(d in open_branch for d in node.correct_decomposition):
            return Response(ErrorCode.INVALID_DECOMPOSITION)

    return VALID


def _existence_decomposed(
    node: TruthTreeNode, statement: Existence, decomposed: list[int]
) -> Response:
    # TODO: support the alternative existential rule (one branch per known
    # constant plus one for a fresh constant), which lifts the once-per-branch
    # requirement.
    if len(decomposed) != 1:
        return Response(ErrorCode.EXISTENCE_DECOMPOSE_LENGTH)

    member = node.tree.node(decomposed[0])
    if member.statement is None:
        return Response(ErrorCode.INVALID_DECOMPOSITION)
    if statement.symbolized().get_equals_map(member.statement) is None:
        return Response(ErrorCode.INVALID_DECOMPOSITION)

    new_constants = member.statement.get_new_constants(member.universe)
    if len(new_constants) != len(statement.variables):
        return Response(ErrorCode.INVALID_DECOMPOSITION)
    return VALID


def _universal_decomposed(
    node: TruthTreeNode,
    statement: Universal,
    decomposed: list[int],
    terminator: TruthTreeNode,
) -> Response:
    if not decomposed:
        return Response(ErrorCode.UNIVERSAL_DECOMPOSE_LENGTH)

    universe = terminator.universe
    arity = len(statement.variables)

    # Fewer instantiations than assignments can never cover the domain.
    # Only exact for single-variable, function-free universals.
    if len(decomposed) < len(universe) ** arity:
        return Response(ErrorCode.UNIVERSAL_DOMAIN_NOT_DECOMPOSED)

    symbolized = statement.symbolized()
    uninstantiated = set(product(universe, repeat=arity))

    for decomposed_id in decomposed:
        member = node.tree.node(decomposed_id)
        if member.statement is None:
            return Response(ErrorCode.INVALID_DECOMPOSITION)
        assignment = symbolized.get_equals_map(member.statement)
        if assignment is None:
            return Response(ErrorCode.INVALID_DECOMPOSITION)
        uninstantiated.discard(tuple(assignment.get(v) for v in statement.variables))

    if uninstantiated:
        logger.debug(
            "Node %d leaves %d assignment(s) uninstantiated",
            node.id,
            len(uninstantiated),
        )
        return Response(ErrorCode.UNIVERSAL_DOMAIN_NOT_DECOMPOSED)
    return VALID
