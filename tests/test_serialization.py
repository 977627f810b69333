"""Tests for TruthTree serialization (to_dict/from_dict, JSON strings, files)."""

import json
import os
import tempfile

import pytest

from pytruthtree import (
    Atomic,
    Formula,
    MalformedTreeError,
    TreeFormatError,
    TreeOptions,
    TruthTree,
)


def _node(id, **fields):
    data = {"id": id, "text": "", "children": [], "decomposition": []}
    data.update(fields)
    return data


class TestRoundTrip:
    def test_dict(self, conjunction_tree):
        restored = TruthTree.from_dict(conjunction_tree.to_dict())
        assert restored.to_dict() == conjunction_tree.to_dict()
        assert restored.is_correct() == conjunction_tree.is_correct()

    def test_string(self, disjunction_tree):
        restored = TruthTree.deserialize(disjunction_tree.serialize())
        assert restored.to_dict() == disjunction_tree.to_dict()
        assert restored.leaves == {3, 4}
        assert restored.root == 0

    def test_node_states_survive(self, closed_tree):
        restored = TruthTree.deserialize(closed_tree.serialize())
        for node_id, node in closed_tree.nodes.items():
            assert restored.nodes[node_id].is_valid() == node.is_valid()
            assert restored.nodes[node_id].is_decomposed() == node.is_decomposed()

    def test_universe_rebuilt(self, existential_tree):
        restored = TruthTree.deserialize(existential_tree.serialize())
        assert restored.nodes[2].universe == (Formula("a"),)

    def test_file(self, conjunction_tree):
        with tempfile.NamedTemporaryFile(suffix=".json", delete=False) as f:
            path = f.name
        try:
            conjunction_tree.to_file(path)
            with open(path, encoding="utf-8") as f:
                content = f.read()
            assert "P ∧ Q" in content
            assert json.loads(content) == conjunction_tree.to_dict()

            restored = TruthTree.from_file(path)
            assert restored.to_dict() == conjunction_tree.to_dict()
        finally:
            os.unlink(path)

    def test_edits_after_load(self, conjunction_tree):
        restored = TruthTree.deserialize(conjunction_tree.serialize())
        restored.set_text(2, "R")
        assert not restored.is_correct().correct


class TestNodeFormat:
    def test_defaults_omitted(self, conjunction_tree):
        assert conjunction_tree.nodes[3].to_dict() == {
            "id": 3, "text": "◯", "children": [], "decomposition": [], "parent": 2,
        }

    def test_optional_fields_present(self, conjunction_tree):
        data = conjunction_tree.nodes[1].to_dict()
        assert data["parent"] == 0
        assert data["antecedent"] == 0
        assert "premise" not in data
        assert conjunction_tree.nodes[0].to_dict()["premise"] is True

    def test_decomposition_sorted(self, conjunction_tree):
        assert conjunction_tree.nodes[0].to_dict()["decomposition"] == [1, 2]

    def test_wrongly_typed_optional_fields_ignored(self):
        tree = TruthTree.from_dict({"nodes": [_node(0, premise="yes", antecedent="0")]})
        assert tree.nodes[0].premise is False
        assert tree.nodes[0].antecedent is None


class TestOptions:
    def test_camel_case_keys(self, empty_tree):
        assert empty_tree.to_dict()["options"] == {
            "requireAtomicContradiction": True,
            "requireAllBranchesTerminated": True,
            "lockedOptions": False,
        }

    def test_round_trip(self):
        options = TreeOptions(
            require_atomic_contradiction=False,
            require_all_branches_terminated=False,
            locked_options=True,
        )
        restored = TruthTree.deserialize(TruthTree.empty(options).serialize())
        assert restored.options == options

    def test_missing_options_take_defaults(self):
        tree = TruthTree.from_dict({"nodes": [_node(0)]})
        assert tree.options == TreeOptions()

    def test_partial_options(self):
        tree = TruthTree.from_dict({
            "nodes": [_node(0)],
            "options": {"requireAllBranchesTerminated": False},
        })
        assert tree.options.require_atomic_contradiction
        assert not tree.options.require_all_branches_terminated

    def test_non_boolean_options_take_defaults(self):
        tree = TruthTree.from_dict({
            "nodes": [_node(0)],
            "options": {
                "requireAtomicContradiction": "false",
                "requireAllBranchesTerminated": 0,
                "lockedOptions": "true",
            },
        })
        assert tree.options == TreeOptions()


class TestRejectedInput:
    def test_file_not_utf8(self):
        with tempfile.NamedTemporaryFile(suffix=".json", delete=False) as f:
            f.write(b"\xff")
            path = f.name
        try:
            with pytest.raises(TreeFormatError, match="not UTF-8"):
                TruthTree.from_file(path)
        finally:
            os.unlink(path)

    def test_not_json(self):
        with pytest.raises(TreeFormatError, match="not in JSON"):
            TruthTree.deserialize("{nodes")

    def test_not_an_object(self):
        with pytest.raises(TreeFormatError, match="not a JSON object"):
            TruthTree.deserialize("[]")

    def test_no_nodes(self):
        with pytest.raises(TreeFormatError, match="empty"):
            TruthTree.from_dict({"nodes": []})

    def test_options_not_an_object(self):
        with pytest.raises(TreeFormatError, match="options"):
            TruthTree.from_dict({"nodes": [_node(0)], "options": []})

    def test_duplicate_ids(self):
        with pytest.raises(TreeFormatError, match="Duplicate"):
            TruthTree.from_dict({"nodes": [_node(0), _node(0)]})

    def test_multiple_roots(self):
        with pytest.raises(TreeFormatError, match="multiple roots"):
            TruthTree.from_dict({"nodes": [_node(0), _node(1)]})

    def test_no_root(self):
        nodes = [_node(0, parent=1, children=[1]), _node(1, parent=0, children=[0])]
        with pytest.raises(TreeFormatError, match="no root"):
            TruthTree.from_dict({"nodes": nodes})

    def test_missing_text(self):
        with pytest.raises(TreeFormatError, match="text not found"):
            TruthTree.from_dict({"nodes": [{"id": 0, "children": [], "decomposition": []}]})

    def test_boolean_id(self):
        with pytest.raises(TreeFormatError, match="id not found"):
            TruthTree.from_dict({"nodes": [_node(True)]})

    def test_bad_children(self):
        with pytest.raises(TreeFormatError, match="children not found"):
            TruthTree.from_dict({"nodes": [_node(0, children="1")]})

    def test_bad_decomposition(self):
        with pytest.raises(TreeFormatError, match="decomposition not found"):
            TruthTree.from_dict({"nodes": [_node(0, decomposition=None)]})

    def test_format_errors_are_wrapped(self):
        with pytest.raises(TreeFormatError, match="does not match the format"):
            TruthTree.from_dict({"nodes": [_node(0), "node"]})

    def test_dangling_child(self):
        with pytest.raises(MalformedTreeError):
            TruthTree.from_dict({"nodes": [_node(0, children=[3])]})


class TestCustomParser:
    def test_parser_is_used(self, conjunction_tree):
        seen = []

        def parse(text):
            seen.append(text)
            return Atomic(text.replace(" ", ""))

        restored = TruthTree.deserialize(conjunction_tree.serialize(), parse=parse)
        assert "P ∧ Q" in seen
        assert restored.nodes[0].statement == Atomic("P∧Q")

    def test_parser_errors_leave_no_statement(self):
        def parse(text):
            raise ValueError(text)

        tree = TruthTree.empty(parse=parse)
        tree.set_text(0, "P")
        assert tree.nodes[0].statement is None
        assert tree.nodes[0].is_valid().error is not None
