"""Editor graph to story graph conversion.

Conversion runs in four steps:

1. Validate the editor graph structure; an invalid graph stops here.
2. Convert each editor node to a StoryNode, deriving one choice per
   outgoing edge. A node that fails is reported and skipped.
3. Check the converted story for dangling references and nodes that
   cannot be reached from the start.
4. Order the nodes: start node first, then by id.

The same input always produces the same output, and the output never
shares mutable objects with the input.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from talegraph.graph.algorithms import sort_story_nodes, verify_story_integrity
from talegraph.graph.errors import NodeConversionError
from talegraph.graph.validation_types import ConversionResult
from talegraph.graph.validator import validate_graph
from talegraph.models.story import RESTART_NODE_ID, Choice, StoryNode
from talegraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from talegraph.models.editor import EditorEdge, EditorNode

log = get_logger(__name__)

RESTART_CHOICE_TEXT = "Restart"


def _choice_from_edge(
    node_id: str,
    edge: EditorEdge,
    index: int,
    authored: Sequence[Choice],
) -> Choice:
    """Derive the choice for the ``index``-th outgoing edge of a node.

    Text falls back from the edge label to the edge's choice override, then
    to the authored choice at the same position, then to "Choice N". The
    positional match breaks if authored choices are reordered without
    rewiring edges; there is no id correlation to do better.
    """
    override = edge.choice
    positional = authored[index] if index < len(authored) else None

    text = (
        edge.label
        or (override.text if override is not None else "")
        or (positional.text if positional is not None else "")
        or f"Choice {index + 1}"
    )

    return Choice(
        id=edge.id or f"choice_{node_id}_{index}",
        text=text,
        next_node_id=edge.target,
        conditions=copy.deepcopy(override.conditions) if override is not None else [],
        consequences=copy.deepcopy(override.consequences) if override is not None else [],
    )


def convert_node(node: EditorNode, edges: Sequence[EditorEdge]) -> StoryNode:
    """Convert one editor node to a story node.

    Choices come from the node's outgoing edges in edge order. A node
    without outgoing edges keeps its authored choices, so half-wired nodes
    do not lose their drafts. End nodes get a restart choice appended
    unless one already exists.

    Args:
        node: The editor node.
        edges: All edges of the graph.

    Returns:
        A new StoryNode whose id is the editor node id.

    Raises:
        NodeConversionError: If the node carries no story data.
    """
    story_node = node.story_node
    if story_node is None:
        raise NodeConversionError(node.id, "node has no story data")

    authored = story_node.choices
    outgoing = [e for e in edges if e.source == node.id]

    choices = [_choice_from_edge(node.id, edge, i, authored) for i, edge in enumerate(outgoing)]

    if not choices and authored:
        choices = [c.model_copy(deep=True) for c in authored]

    if node.node_type == "end" and not any(c.is_restart for c in choices):
        choices.append(
            Choice(
                id=f"restart_{node.id}",
                text=RESTART_CHOICE_TEXT,
                next_node_id=RESTART_NODE_ID,
            )
        )

    return story_node.model_copy(update={"id": node.id, "choices": choices}, deep=True)


def convert_graph(
    nodes: Sequence[EditorNode],
    edges: Sequence[EditorEdge],
) -> ConversionResult:
    """Convert an editor graph into an ordered story graph.

    Expected defects in the graph never raise; they are reported in the
    result. ``errors`` holds validator errors, then per-node conversion
    errors, then integrity errors. ``warnings`` holds validator warnings,
    then integrity warnings.

    Args:
        nodes: Editor nodes in authoring order.
        edges: Editor edges in authoring order.

    Returns:
        ConversionResult. When validation fails, ``story`` is empty and
        ``start_node_id`` is "".
    """
    validation = validate_graph(nodes, edges)
    if not validation.is_valid:
        log.info("graph_conversion_rejected", errors=len(validation.errors))
        return ConversionResult(
            errors=list(validation.errors),
            warnings=list(validation.warnings),
        )

    start_node_id = next(n.id for n in nodes if n.node_type == "start")

    errors = list(validation.errors)
    warnings = list(validation.warnings)
    story: list[StoryNode] = []

    for node in nodes:
        try:
            story.append(convert_node(node, edges))
        except NodeConversionError as e:
            errors.append(str(e))
        except (AttributeError, TypeError, ValueError) as e:
            errors.append(str(NodeConversionError(node.id, str(e))))

    integrity = verify_story_integrity(story, start_node_id)
    errors.extend(integrity.errors)
    warnings.extend(integrity.warnings)

    result = ConversionResult(
        story=sort_story_nodes(story, start_node_id),
        start_node_id=start_node_id,
        errors=errors,
        warnings=warnings,
    )
    log.debug(
        "graph_converted",
        nodes=len(result.story),
        start=start_node_id,
        errors=len(errors),
        warnings=len(warnings),
    )
    return result
