"""Tests for structural graph validation."""

from __future__ import annotations

from talegraph.graph.validator import validate_graph
from talegraph.models import EditorNode, EditorNodeData
from tests.fixtures.story_graphs import make_edge, make_linear_graph, make_node


class TestFatalRules:
    def test_empty_graph_short_circuits(self) -> None:
        result = validate_graph([], [])

        assert not result.is_valid
        assert result.errors == ["graph contains no nodes"]
        assert result.warnings == []

    def test_missing_start_node(self) -> None:
        nodes = [make_node("a"), make_node("b", "end")]
        result = validate_graph(nodes, [make_edge("a", "b")])

        assert "no start node found" in result.errors
        assert not result.is_valid

    def test_multiple_start_nodes(self) -> None:
        nodes = [make_node("a", "start"), make_node("b", "start")]
        result = validate_graph(nodes, [])

        assert result.errors == ["multiple start nodes found: 2"]


class TestWarnings:
    def test_valid_graph_has_no_diagnostics(self) -> None:
        nodes, edges = make_linear_graph()
        result = validate_graph(nodes, edges)

        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_missing_end_node_warns(self) -> None:
        result = validate_graph([make_node("s", "start", title="S")], [])

        assert result.is_valid
        assert "no end node found" in result.warnings

    def test_node_without_outgoing_edges(self) -> None:
        nodes = [
            make_node("s", "start", title="Start"),
            make_node("m", title="Middle"),
            make_node("e", "end", title="End"),
        ]
        edges = [make_edge("s", "m"), make_edge("s", "e")]
        result = validate_graph(nodes, edges)

        assert result.warnings == ["node 'Middle' (m) has no outgoing connections"]

    def test_end_node_needs_no_outgoing_edges(self) -> None:
        nodes = [make_node("s", "start"), make_node("e", "end")]
        result = validate_graph(nodes, [make_edge("s", "e")])

        assert result.warnings == []

    def test_node_without_incoming_edges(self) -> None:
        nodes = [
            make_node("s", "start", title="Start"),
            make_node("island", title="Island"),
            make_node("e", "end", title="End"),
        ]
        edges = [make_edge("s", "e"), make_edge("island", "e")]
        result = validate_graph(nodes, edges)

        assert result.warnings == ["node 'Island' (island) is not reachable"]

    def test_incoming_check_is_structural_only(self) -> None:
        """An island fed only by another island is not flagged here."""
        nodes = [
            make_node("s", "start"),
            make_node("a", title="A"),
            make_node("b", title="B"),
            make_node("e", "end"),
        ]
        edges = [
            make_edge("s", "e"),
            make_edge("a", "b"),
            make_edge("b", "a"),
        ]
        result = validate_graph(nodes, edges)

        assert result.is_valid
        assert not any("is not reachable" in w for w in result.warnings)

    def test_warning_order_follows_node_order(self) -> None:
        nodes = [
            make_node("s", "start", title="S"),
            make_node("x", title="X"),
        ]
        result = validate_graph(nodes, [])

        assert result.warnings == [
            "no end node found",
            "node 'S' (s) has no outgoing connections",
            "node 'X' (x) has no outgoing connections",
            "node 'X' (x) is not reachable",
        ]

    def test_edges_to_unknown_nodes_are_not_checked(self) -> None:
        nodes = [make_node("s", "start"), make_node("e", "end")]
        edges = [make_edge("s", "e"), make_edge("s", "ghost")]
        result = validate_graph(nodes, edges)

        assert result.is_valid
        assert result.warnings == []


class TestMalformedNodes:
    def test_node_without_data_renders_empty_title(self) -> None:
        nodes = [make_node("s", "start"), EditorNode(id="bare")]
        result = validate_graph(nodes, [make_edge("s", "bare")])

        assert "node '' (bare) has no outgoing connections" in result.warnings

    def test_node_without_story_node_does_not_raise(self) -> None:
        nodes = [
            make_node("s", "start"),
            EditorNode(id="e", data=EditorNodeData(node_type="end")),
        ]
        result = validate_graph(nodes, [make_edge("s", "e")])

        assert result.is_valid

    def test_does_not_mutate_inputs(self) -> None:
        nodes, edges = make_linear_graph()
        before = ([n.model_dump() for n in nodes], [e.model_dump() for e in edges])

        validate_graph(nodes, edges)

        assert ([n.model_dump() for n in nodes], [e.model_dump() for e in edges]) == before
