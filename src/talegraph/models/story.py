"""Pydantic models for converted story graphs.

A story graph is a list of StoryNode objects connected by
``Choice.next_node_id`` references. The reserved target ``"-1"`` means
"restart the story" and never names a real node.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - pydantic resolves annotations at runtime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RESTART_NODE_ID = "-1"

Difficulty = Literal["easy", "medium", "hard"]


class StoryModel(BaseModel):
    """Base for models that round-trip through the editor's camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        """Dump to a JSON-ready dict using the editor's field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Choice(StoryModel):
    """A directed, labeled transition out of a story node.

    ``conditions`` and ``consequences`` are gameplay data carried through
    conversion untouched.
    """

    id: str
    text: str = ""
    next_node_id: str
    conditions: list[dict[str, Any]] = Field(default_factory=list)
    consequences: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def is_restart(self) -> bool:
        """True if this choice restarts the story instead of following a node."""
        return self.next_node_id == RESTART_NODE_ID


class MediaContent(StoryModel):
    """Optional media references attached to a node."""

    background_image: str | None = None
    background_music: str | None = None
    sound_effects: list[str] = Field(default_factory=list)
    video: str | None = None


class NodeMetadata(StoryModel):
    """Authoring and runtime metadata for a story node."""

    tags: list[str] = Field(default_factory=list)
    visit_count: int = Field(default=0, ge=0)
    last_visited: datetime | None = None
    difficulty: Difficulty | None = None


class StoryNode(StoryModel):
    """A narrative unit. An empty choice list marks a terminal node."""

    id: str
    title: str = ""
    content: str = ""
    choices: list[Choice] = Field(default_factory=list)
    multimedia: MediaContent | None = None
    metadata: NodeMetadata = Field(default_factory=NodeMetadata)

    @property
    def is_terminal(self) -> bool:
        return not self.choices

    @property
    def is_end_like(self) -> bool:
        """True for nodes with no choices or only a single restart choice."""
        if not self.choices:
            return True
        return len(self.choices) == 1 and self.choices[0].is_restart
