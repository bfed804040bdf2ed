"""Graph algorithms over converted story graphs.

Pure functions that read a list of StoryNode without modifying it. All
traversals use explicit stacks so deeply chained stories cannot exhaust
the interpreter's recursion limit. Choices targeting the restart sentinel
are never followed.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from talegraph.graph.errors import DanglingReferenceError
from talegraph.graph.validation_types import IntegrityReport
from talegraph.models.story import RESTART_NODE_ID

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from talegraph.models.story import StoryNode

_INTEGER_ID = re.compile(r"-?[0-9]+")


def _index_nodes(story: Sequence[StoryNode]) -> dict[str, StoryNode]:
    """Map node id to node. On duplicate ids the first node wins."""
    index: dict[str, StoryNode] = {}
    for node in story:
        index.setdefault(node.id, node)
    return index


def _forward_targets(node: StoryNode) -> list[str]:
    return [c.next_node_id for c in node.choices if c.next_node_id != RESTART_NODE_ID]


def find_reachable(story: Sequence[StoryNode], start_node_id: str) -> set[str]:
    """Collect the ids of all nodes reachable from the start node.

    The start node itself is included when it exists. Targets missing from
    the story are not included and not followed.

    Args:
        story: Converted story nodes.
        start_node_id: Where traversal begins.

    Returns:
        Set of reachable node ids.
    """
    index = _index_nodes(story)
    if start_node_id not in index:
        return set()

    visited: set[str] = set()
    stack = [start_node_id]
    while stack:
        node_id = stack.pop()
        if node_id in visited:
            continue
        visited.add(node_id)
        for target in _forward_targets(index[node_id]):
            if target in index and target not in visited:
                stack.append(target)
    return visited


def verify_story_integrity(story: Sequence[StoryNode], start_node_id: str) -> IntegrityReport:
    """Check referential closure and true reachability of a converted story.

    Errors:
        A choice whose target is neither the restart sentinel nor an
        existing node id (a dangling reference).

    Warnings:
        A node that cannot be reached from ``start_node_id`` by following
        choices. Nodes reachable only through a cycle disconnected from the
        start are reported here.

    Args:
        story: Converted story nodes.
        start_node_id: Id of the start node.

    Returns:
        IntegrityReport with errors and warnings in story order.
    """
    report = IntegrityReport()
    node_ids = [n.id for n in story]
    known = set(node_ids)

    for node in story:
        for choice in node.choices:
            if choice.next_node_id != RESTART_NODE_ID and choice.next_node_id not in known:
                error = DanglingReferenceError(
                    choice_text=choice.text,
                    node_title=node.title,
                    node_id=node.id,
                    target_id=choice.next_node_id,
                    available=node_ids,
                )
                report.errors.append(str(error))

    if start_node_id in known:
        reachable = find_reachable(story, start_node_id)
        for node in story:
            if node.id not in reachable and node.id != start_node_id:
                report.warnings.append(
                    f"node '{node.title}' ({node.id}) is not reachable from the start"
                )

    return report


def compute_max_depth(story: Sequence[StoryNode], start_node_id: str) -> int:
    """Length in choices of the longest simple path from the start node.

    Each path keeps its own visited set, released on backtrack, so branches
    that reconverge are measured independently. A choice leading back to a
    node already on the current path, or to a missing node, does not extend
    the path.

    Args:
        story: Converted story nodes.
        start_node_id: Id of the start node.

    Returns:
        Maximum depth; 0 when the start node is missing or has no forward choices.
    """
    index = _index_nodes(story)
    if start_node_id not in index:
        return 0

    on_path = {start_node_id}
    stack: list[tuple[str, Iterator[str]]] = [
        (start_node_id, iter(_forward_targets(index[start_node_id])))
    ]
    max_depth = 0
    while stack:
        node_id, targets = stack[-1]
        target = next(targets, None)
        if target is None:
            stack.pop()
            on_path.discard(node_id)
            continue
        if target in on_path or target not in index:
            continue
        on_path.add(target)
        stack.append((target, iter(_forward_targets(index[target]))))
        max_depth = max(max_depth, len(stack) - 1)

    return max_depth


def sort_story_nodes(story: Sequence[StoryNode], start_node_id: str) -> list[StoryNode]:
    """Order story nodes deterministically.

    The start node comes first. The rest are ordered numerically when every
    one of their ids is an integer, otherwise by plain string comparison.
    Ties on the numeric value ("7" and "07") fall back to the string, so the
    order is total.

    Args:
        story: Nodes to order.
        start_node_id: Id that goes first.

    Returns:
        A new sorted list.
    """
    head = [n for n in story if n.id == start_node_id]
    rest = [n for n in story if n.id != start_node_id]

    if all(_INTEGER_ID.fullmatch(n.id) for n in rest):
        rest.sort(key=lambda n: (int(n.id), n.id))
    else:
        rest.sort(key=lambda n: n.id)

    return head + rest
