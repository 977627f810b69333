"""Shared fixtures for pyTruthTree tests."""

import pytest

from pytruthtree import TruthTree


@pytest.fixture
def make_tree():
    """Build a tree from serialized node dicts and camelCase options."""

    def _make(nodes, **options):
        return TruthTree.from_dict({"nodes": nodes, "options": options})

    return _make


@pytest.fixture
def empty_tree():
    return TruthTree.empty()


@pytest.fixture
def conjunction_tree(make_tree):
    """P ∧ Q decomposed into P and Q, ending in an open terminator."""
    return make_tree([
        {"id": 0, "text": "P ∧ Q", "children": [1], "decomposition": [1, 2],
         "premise": True},
        {"id": 1, "text": "P", "children": [2], "decomposition": [],
         "parent": 0, "antecedent": 0},
        {"id": 2, "text": "Q", "children": [3], "decomposition": [],
         "parent": 1, "antecedent": 0},
        {"id": 3, "text": "◯", "children": [], "decomposition": [], "parent": 2},
    ])


@pytest.fixture
def disjunction_tree(make_tree):
    """P ∨ Q split into a P branch and a Q branch, both left open."""
    return make_tree([
        {"id": 0, "text": "P ∨ Q", "children": [1, 2], "decomposition": [1, 2],
         "premise": True},
        {"id": 1, "text": "P", "children": [3], "decomposition": [],
         "parent": 0, "antecedent": 0},
        {"id": 2, "text": "Q", "children": [4], "decomposition": [],
         "parent": 0, "antecedent": 0},
        {"id": 3, "text": "◯", "children": [], "decomposition": [], "parent": 1},
        {"id": 4, "text": "◯", "children": [], "decomposition": [], "parent": 2},
    ])


@pytest.fixture
def closed_tree(make_tree):
    """Premises P and ¬P closed off by a terminator referencing both."""
    return make_tree([
        {"id": 0, "text": "P", "children": [1], "decomposition": [], "premise": True},
        {"id": 1, "text": "¬P", "children": [2], "decomposition": [],
         "premise": True, "parent": 0},
        {"id": 2, "text": "×", "children": [], "decomposition": [0, 1], "parent": 1},
    ])


@pytest.fixture
def existential_tree(make_tree):
    """∃x P(x) instantiated with the fresh constant a."""
    return make_tree([
        {"id": 0, "text": "∃x P(x)", "children": [1], "decomposition": [1],
         "premise": True},
        {"id": 1, "text": "P(a)", "children": [2], "decomposition": [],
         "parent": 0, "antecedent": 0},
        {"id": 2, "text": "◯", "children": [], "decomposition": [], "parent": 1},
    ])


@pytest.fixture
def universal_tree(make_tree):
    """∀x P(x) over the universe {a, b}, instantiated only for a."""
    return make_tree([
        {"id": 0, "text": "∀x P(x)", "children": [1], "decomposition": [3],
         "premise": True},
        {"id": 1, "text": "Q(a)", "children": [2], "decomposition": [],
         "premise": True, "parent": 0},
        {"id": 2, "text": "Q(b)", "children": [3], "decomposition": [],
         "premise": True, "parent": 1},
        {"id": 3, "text": "P(a)", "children": [4], "decomposition": [],
         "parent": 2, "antecedent": 0},
        {"id": 4, "text": "◯", "children": [], "decomposition": [], "parent": 3},
    ])
