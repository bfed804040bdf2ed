"""Structural validation of editor graphs.

Checks node roles and edge presence only. It does not check that edges
point at real nodes and it does not walk the graph; both happen on the
converted story in :mod:`talegraph.graph.algorithms`. The "is not
reachable" warning here only means "has no incoming edge", which is a
cheaper and weaker test than true reachability from the start node.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from talegraph.graph.validation_types import GraphValidationResult
from talegraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from talegraph.models.editor import EditorEdge, EditorNode

log = get_logger(__name__)


def validate_graph(
    nodes: Sequence[EditorNode],
    edges: Sequence[EditorEdge],
) -> GraphValidationResult:
    """Validate the structure of an editor graph.

    Rules:
        1. An empty graph is an error and stops validation.
        2. Exactly one start node is required.
        3. A graph without an end node gets a warning.
        4. Every non-end node without outgoing edges gets a warning.
        5. Every non-start node without incoming edges gets a warning.

    Nodes with missing story data are tolerated; their title renders as
    an empty string.

    Args:
        nodes: Editor nodes, possibly empty.
        edges: Editor edges, possibly referencing unknown node ids.

    Returns:
        GraphValidationResult; ``is_valid`` is False iff errors were found.
    """
    result = GraphValidationResult()

    if not nodes:
        result.errors.append("graph contains no nodes")
        return result

    start_count = sum(1 for n in nodes if n.node_type == "start")
    if start_count == 0:
        result.errors.append("no start node found")
    elif start_count > 1:
        result.errors.append(f"multiple start nodes found: {start_count}")

    if not any(n.node_type == "end" for n in nodes):
        result.warnings.append("no end node found")

    sources = {e.source for e in edges}
    targets = {e.target for e in edges}

    for node in nodes:
        if node.node_type != "end" and node.id not in sources:
            result.warnings.append(
                f"node '{node.title}' ({node.id}) has no outgoing connections"
            )
        if node.node_type != "start" and node.id not in targets:
            result.warnings.append(f"node '{node.title}' ({node.id}) is not reachable")

    log.debug(
        "graph_validated",
        nodes=len(nodes),
        edges=len(edges),
        errors=len(result.errors),
        warnings=len(result.warnings),
    )
    return result
