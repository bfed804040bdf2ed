"""Play-through state and navigation.

A PlaySession walks a player through a story held by a StoryLoader and
records progress in a GameState, which is what save games persist.
Visit counts live in the session state; the story nodes themselves are
never modified.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import Field, field_serializer

from talegraph.models.story import StoryModel
from talegraph.observability.logging import get_logger

if TYPE_CHECKING:
    from talegraph.models.story import Choice, StoryNode
    from talegraph.player.loader import StoryLoader

log = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class GameState(StoryModel):
    """Progress of one play-through.

    Attributes:
        current_node_id: Node the player is on.
        visited_nodes: Ids of nodes seen since the last restart.
        visit_counts: Times each node was entered since the session began.
        choices: Last choice id picked in each node.
        variables: Gameplay variables set by consequences.
        inventory: Items held.
        start_time: When the play-through began.
        play_time: Accumulated play time in seconds.
    """

    current_node_id: str
    visited_nodes: set[str] = Field(default_factory=set)
    visit_counts: dict[str, int] = Field(default_factory=dict)
    choices: dict[str, str] = Field(default_factory=dict)
    variables: dict[str, Any] = Field(default_factory=dict)
    inventory: list[str] = Field(default_factory=list)
    start_time: datetime = Field(default_factory=_utcnow)
    play_time: float = Field(default=0.0, ge=0)

    @field_serializer("visited_nodes")
    def _serialize_visited(self, visited: set[str]) -> list[str]:
        return sorted(visited)


class PlaySession:
    """Navigate a story and track the player's progress."""

    def __init__(self, loader: StoryLoader, state: GameState | None = None) -> None:
        """Start or resume a play-through.

        Args:
            loader: The story to play.
            state: Saved progress to resume; a fresh state at the start node
                is created when omitted.

        Raises:
            NodeNotFoundError: If the resumed state points at a missing node.
        """
        self.loader = loader
        if state is None:
            state = GameState(current_node_id=loader.start_node_id)
            self._mark_visit(state, loader.start_node_id)
        else:
            loader.require_node(state.current_node_id)
        self.state = state

    @staticmethod
    def _mark_visit(state: GameState, node_id: str) -> None:
        state.visited_nodes.add(node_id)
        state.visit_counts[node_id] = state.visit_counts.get(node_id, 0) + 1

    @property
    def current_node(self) -> StoryNode:
        return self.loader.require_node(self.state.current_node_id)

    @property
    def available_choices(self) -> list[Choice]:
        return list(self.current_node.choices)

    @property
    def is_finished(self) -> bool:
        """True when the current node only offers a restart, or nothing."""
        return self.current_node.is_end_like

    def visit_count(self, node_id: str) -> int:
        return self.state.visit_counts.get(node_id, 0)

    def choose(self, choice_id: str) -> StoryNode:
        """Pick a choice in the current node and move on.

        A restart choice behaves like :meth:`restart`.

        Args:
            choice_id: Id of a choice offered by the current node.

        Returns:
            The node the player is now on.

        Raises:
            ChoiceNotFoundError: If the current node has no such choice.
            NodeNotFoundError: If the choice points at a missing node.
        """
        current_id = self.state.current_node_id
        choice = self.loader.resolve_choice(current_id, choice_id)
        if choice.is_restart:
            return self.restart()

        target = self.loader.require_node(choice.next_node_id)
        self.state.choices[current_id] = choice_id
        self.state.current_node_id = target.id
        self._mark_visit(self.state, target.id)
        log.debug("choice_made", node=current_id, choice=choice_id, target=target.id)
        return target

    def restart(self) -> StoryNode:
        """Return to the start node, clearing the path taken so far.

        Visit counts, variables and inventory are kept.
        """
        start = self.loader.get_start_node()
        self.state.current_node_id = start.id
        self.state.visited_nodes.clear()
        self.state.choices.clear()
        self._mark_visit(self.state, start.id)
        log.debug("story_restarted", start=start.id)
        return start
