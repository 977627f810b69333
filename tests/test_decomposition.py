"""Tests for correct decompositions and decomposition completeness."""

import pytest

from pytruthtree import ErrorCode, MalformedTreeError


def _error(node):
    return node.is_decomposed().error


class TestCorrectDecomposition:
    def test_single_branch(self, conjunction_tree):
        assert conjunction_tree.nodes[0].correct_decomposition == {1, 2}

    def test_split_branches(self, disjunction_tree):
        assert disjunction_tree.nodes[0].correct_decomposition == {1, 2}

    def test_missing_branch(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "P ∨ Q", "children": [1, 2], "decomposition": [1],
             "premise": True},
            {"id": 1, "text": "P", "children": [], "decomposition": [],
             "parent": 0, "antecedent": 0},
            {"id": 2, "text": "Q", "children": [], "decomposition": [], "parent": 0},
        ])
        assert tree.nodes[0].correct_decomposition == frozenset()

    def test_wrong_statements(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "P ∧ Q", "children": [1], "decomposition": [1, 2],
             "premise": True},
            {"id": 1, "text": "P", "children": [2], "decomposition": [],
             "parent": 0, "antecedent": 0},
            {"id": 2, "text": "R", "children": [], "decomposition": [],
             "parent": 1, "antecedent": 0},
        ])
        assert tree.nodes[0].correct_decomposition == frozenset()

    def test_unparsed_node_has_none(self, empty_tree):
        assert empty_tree.nodes[0].correct_decomposition == frozenset()

    def test_unrelated_lines_between_members(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "P ∧ Q", "children": [1], "decomposition": [1, 3],
             "premise": True},
            {"id": 1, "text": "P", "children": [2], "decomposition": [],
             "parent": 0, "antecedent": 0},
            {"id": 2, "text": "R", "children": [3], "decomposition": [],
             "premise": True, "parent": 1},
            {"id": 3, "text": "Q", "children": [], "decomposition": [],
             "parent": 2, "antecedent": 0},
        ])
        assert tree.nodes[0].correct_decomposition == {1, 3}

    def test_member_without_parent_is_malformed(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "P ∧ Q", "children": [], "decomposition": [0],
             "premise": True},
        ])
        with pytest.raises(MalformedTreeError, match="no parent"):
            tree.nodes[0].correct_decomposition


class TestCacheInvalidation:
    def test_changed_member_text(self, conjunction_tree):
        root = conjunction_tree.nodes[0]
        assert root.correct_decomposition == {1, 2}

        conjunction_tree.set_text(2, "R")
        assert root.correct_decomposition == frozenset()
        assert not conjunction_tree.nodes[1].is_valid()

        conjunction_tree.set_text(2, "Q")
        assert root.correct_decomposition == {1, 2}
        assert conjunction_tree.nodes[1].is_valid()

    def test_changed_own_text(self, conjunction_tree):
        conjunction_tree.set_text(0, "P ∨ Q")
        assert conjunction_tree.nodes[0].correct_decomposition == frozenset()

    def test_new_reference(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "P ∧ Q", "children": [1], "decomposition": [1],
             "premise": True},
            {"id": 1, "text": "P", "children": [2], "decomposition": [],
             "parent": 0, "antecedent": 0},
            {"id": 2, "text": "Q", "children": [], "decomposition": [], "parent": 1},
        ])
        assert tree.nodes[0].correct_decomposition == frozenset()
        assert tree.add_reference(2, 0)
        assert tree.nodes[0].correct_decomposition == {1, 2}

    def test_structural_edit(self, conjunction_tree):
        assert conjunction_tree.nodes[0].correct_decomposition == {1, 2}
        # A new line between the members does not break the branch walk
        new_id = conjunction_tree.add_node_after(1)
        assert conjunction_tree.nodes[0].correct_decomposition == {1, 2}
        conjunction_tree.delete_node(new_id)
        conjunction_tree.delete_node(2)
        assert conjunction_tree.nodes[0].correct_decomposition == frozenset()


class TestIsDecomposed:
    def test_literal(self, conjunction_tree):
        assert conjunction_tree.nodes[1].is_decomposed()

    def test_terminator_and_empty(self, conjunction_tree, empty_tree):
        assert conjunction_tree.nodes[3].is_decomposed()
        assert empty_tree.nodes[0].is_decomposed()

    def test_unparsable(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "P ∧", "children": [], "decomposition": [], "premise": True},
        ])
        assert _error(tree.nodes[0]) is ErrorCode.NOT_PARSABLE

    def test_decomposed(self, conjunction_tree, disjunction_tree):
        assert conjunction_tree.nodes[0].is_decomposed()
        assert disjunction_tree.nodes[0].is_decomposed()

    def test_not_decomposed(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "P ∧ Q", "children": [1], "decomposition": [],
             "premise": True},
            {"id": 1, "text": "◯", "children": [], "decomposition": [], "parent": 0},
        ])
        assert _error(tree.nodes[0]) is ErrorCode.INVALID_DECOMPOSITION

    def test_reference_above(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "P", "children": [1], "decomposition": [],
             "premise": True},
            {"id": 1, "text": "P ∧ Q", "children": [], "decomposition": [0],
             "premise": True, "parent": 0},
        ])
        assert _error(tree.nodes[1]) is ErrorCode.REFERENCE_NOT_AFTER

    def test_closed_branches_are_exempt(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "P ∧ Q", "children": [1], "decomposition": [],
             "premise": True},
            {"id": 1, "text": "¬P", "children": [2], "decomposition": [],
             "premise": True, "parent": 0},
            {"id": 2, "text": "×", "children": [], "decomposition": [0, 1], "parent": 1},
        ])
        assert tree.nodes[0].is_decomposed()

    def test_unterminated_branches_are_exempt(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "P ∧ Q", "children": [1], "decomposition": [],
             "premise": True},
            {"id": 1, "text": "", "children": [], "decomposition": [], "parent": 0},
        ])
        assert tree.nodes[0].is_decomposed()

    def test_every_open_branch_checked(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "P ∧ Q", "children": [1, 2], "decomposition": [3, 4],
             "premise": True},
            {"id": 1, "text": "", "children": [3], "decomposition": [], "parent": 0},
            {"id": 2, "text": "", "children": [5], "decomposition": [], "parent": 0},
            {"id": 3, "text": "P", "children": [4], "decomposition": [],
             "parent": 1, "antecedent": 0},
            {"id": 4, "text": "Q", "children": [6], "decomposition": [],
             "parent": 3, "antecedent": 0},
            {"id": 5, "text": "R", "children": [7], "decomposition": [],
             "premise": True, "parent": 2},
            {"id": 6, "text": "◯", "children": [], "decomposition": [], "parent": 4},
            {"id": 7, "text": "◯", "children": [], "decomposition": [], "parent": 5},
        ])
        assert tree.nodes[0].correct_decomposition == {3, 4}
        assert _error(tree.nodes[0]) is ErrorCode.INVALID_DECOMPOSITION


class TestExistentialDecomposition:
    def test_once_per_branch(self, existential_tree):
        assert existential_tree.nodes[0].is_decomposed()

    def test_twice_in_one_branch(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "∃x P(x)", "children": [1], "decomposition": [1, 2],
             "premise": True},
            {"id": 1, "text": "P(a)", "children": [2], "decomposition": [],
             "parent": 0, "antecedent": 0},
            {"id": 2, "text": "P(b)", "children": [3], "decomposition": [],
             "parent": 1, "antecedent": 0},
            {"id": 3, "text": "◯", "children": [], "decomposition": [], "parent": 2},
        ])
        assert tree.nodes[2].is_valid()
        assert _error(tree.nodes[0]) is ErrorCode.EXISTENCE_DECOMPOSE_LENGTH

    def test_never_instantiated(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "∃x P(x)", "children": [1], "decomposition": [],
             "premise": True},
            {"id": 1, "text": "◯", "children": [], "decomposition": [], "parent": 0},
        ])
        assert _error(tree.nodes[0]) is ErrorCode.EXISTENCE_DECOMPOSE_LENGTH

    def test_instantiated_with_known_constant(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "Q(a)", "children": [1], "decomposition": [],
             "premise": True},
            {"id": 1, "text": "∃x P(x)", "children": [2], "decomposition": [2],
             "premise": True, "parent": 0},
            {"id": 2, "text": "P(a)", "children": [3], "decomposition": [],
             "parent": 1, "antecedent": 1},
            {"id": 3, "text": "◯", "children": [], "decomposition": [], "parent": 2},
        ])
        assert _error(tree.nodes[1]) is ErrorCode.INVALID_DECOMPOSITION


class TestUniversalDecomposition:
    def test_partial_coverage(self, universal_tree):
        assert _error(universal_tree.nodes[0]) is ErrorCode.UNIVERSAL_DOMAIN_NOT_DECOMPOSED
        assert universal_tree.nodes[4].is_valid().error is ErrorCode.OPEN_INVALID_ANCESTOR

    def test_full_coverage(self, universal_tree):
        new_id = universal_tree.add_node_after(3)
        universal_tree.set_text(new_id, "P(b)")
        assert universal_tree.add_reference(new_id, 0)
        assert universal_tree.nodes[0].is_decomposed()
        assert universal_tree.nodes[4].is_valid()

    def test_duplicate_instantiations_do_not_cover(self, universal_tree):
        new_id = universal_tree.add_node_after(3)
        universal_tree.set_text(new_id, "P(a)")
        universal_tree.add_reference(new_id, 0)
        assert _error(universal_tree.nodes[0]) is ErrorCode.UNIVERSAL_DOMAIN_NOT_DECOMPOSED

    def test_never_instantiated(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "∀x P(x)", "children": [1], "decomposition": [],
             "premise": True},
            {"id": 1, "text": "◯", "children": [], "decomposition": [], "parent": 0},
        ])
        assert _error(tree.nodes[0]) is ErrorCode.UNIVERSAL_DECOMPOSE_LENGTH

    def test_instantiation_introduces_constant(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "∀x P(x)", "children": [1], "decomposition": [1],
             "premise": True},
            {"id": 1, "text": "P(a)", "children": [2], "decomposition": [],
             "parent": 0, "antecedent": 0},
            {"id": 2, "text": "◯", "children": [], "decomposition": [], "parent": 1},
        ])
        assert tree.nodes[0].is_decomposed()
        assert tree.is_correct().correct

    def test_later_constant_requires_instantiation(self, make_tree):
        tree = make_tree([
            {"id": 0, "text": "∀x P(x)", "children": [1], "decomposition": [1],
             "premise": True},
            {"id": 1, "text": "P(a)", "children": [2], "decomposition": [],
             "parent": 0, "antecedent": 0},
            {"id": 2, "text": "Q(b)", "children": [3], "decomposition": [],
             "premise": True, "parent": 1},
            {"id": 3, "text": "◯", "children": [], "decomposition": [], "parent": 2},
        ])
        assert _error(tree.nodes[0]) is ErrorCode.UNIVERSAL_DOMAIN_NOT_DECOMPOSED
