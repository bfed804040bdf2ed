"""Story lookup for the runtime player.

StoryLoader indexes a converted story by node id and resolves choices
to their targets. The restart sentinel is answered with the start node
and is never looked up as a node id.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from talegraph.graph.algorithms import verify_story_integrity
from talegraph.graph.errors import ChoiceNotFoundError, NodeNotFoundError
from talegraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from talegraph.graph.validation_types import ConversionResult, IntegrityReport
    from talegraph.models.story import Choice, StoryNode

log = get_logger(__name__)


class StoryLoader:
    """Read-only view of a story graph keyed by node id."""

    def __init__(self, story: Sequence[StoryNode], start_node_id: str | None = None) -> None:
        """Index the story.

        Args:
            story: Converted story nodes. Later duplicates of an id are ignored.
            start_node_id: Start node; defaults to the first node.

        Raises:
            NodeNotFoundError: If ``start_node_id`` is given but not in the story.
        """
        self._nodes: dict[str, StoryNode] = {}
        for node in story:
            self._nodes.setdefault(node.id, node)

        if start_node_id is not None and start_node_id not in self._nodes:
            raise NodeNotFoundError(start_node_id, list(self._nodes), context="start node")
        self._start_node_id = start_node_id or (story[0].id if story else "")

        log.debug("story_loaded", nodes=len(self._nodes), start=self._start_node_id)

    @classmethod
    def from_conversion(cls, result: ConversionResult) -> StoryLoader:
        """Build a loader from a conversion, refusing results with errors.

        Raises:
            StoryValidationError: If the conversion reported errors.
        """
        result.raise_for_errors()
        return cls(result.story, result.start_node_id)

    @property
    def start_node_id(self) -> str:
        return self._start_node_id

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> StoryNode | None:
        """Get a node by id, or None if it does not exist."""
        return self._nodes.get(node_id)

    def require_node(self, node_id: str) -> StoryNode:
        """Get a node by id.

        Raises:
            NodeNotFoundError: If the node does not exist.
        """
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id, list(self._nodes))
        return node

    def get_start_node(self) -> StoryNode:
        return self.require_node(self._start_node_id)

    def all_nodes(self) -> list[StoryNode]:
        return list(self._nodes.values())

    def resolve_choice(self, node_id: str, choice_id: str) -> Choice:
        """Find a choice offered by a node.

        Raises:
            NodeNotFoundError: If the node does not exist.
            ChoiceNotFoundError: If the node has no such choice.
        """
        node = self.require_node(node_id)
        for choice in node.choices:
            if choice.id == choice_id:
                return choice
        raise ChoiceNotFoundError(node_id, choice_id, [c.id for c in node.choices])

    def get_next_node(self, node_id: str, choice_id: str) -> StoryNode | None:
        """Follow a choice.

        Args:
            node_id: Current node.
            choice_id: Choice picked by the player.

        Returns:
            The target node, the start node for a restart choice, or None
            when the target does not exist.

        Raises:
            NodeNotFoundError: If the current node does not exist.
            ChoiceNotFoundError: If the node has no such choice.
        """
        choice = self.resolve_choice(node_id, choice_id)
        if choice.is_restart:
            return self.get_start_node()

        target = self._nodes.get(choice.next_node_id)
        if target is None:
            log.warning(
                "choice_target_missing",
                node=node_id,
                choice=choice_id,
                target=choice.next_node_id,
            )
        return target

    def validate_story(self) -> IntegrityReport:
        """Check the loaded story for dangling references and unreachable nodes."""
        return verify_story_integrity(list(self._nodes.values()), self._start_node_id)
