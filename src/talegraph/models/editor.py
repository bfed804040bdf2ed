"""Pydantic models for the visual editor graph.

The editor graph is what authors build: nodes carrying a draft StoryNode
and a role tag, plus directed edges whose labels become choice text. It
may be inconsistent; validation and conversion live in
``talegraph.graph``.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - pydantic resolves annotations at runtime
from typing import Literal

from pydantic import Field

from talegraph.models.story import Choice, StoryModel, StoryNode

NodeType = Literal["start", "story", "choice", "end"]


class Position(StoryModel):
    """Canvas position. Layout only."""

    x: float = 0.0
    y: float = 0.0


class EditorNodeData(StoryModel):
    story_node: StoryNode | None = None
    node_type: NodeType | None = None


class EditorNode(StoryModel):
    """A node in the pre-conversion editor graph."""

    id: str
    position: Position = Field(default_factory=Position)
    data: EditorNodeData | None = None

    @property
    def node_type(self) -> NodeType | None:
        return self.data.node_type if self.data is not None else None

    @property
    def story_node(self) -> StoryNode | None:
        return self.data.story_node if self.data is not None else None

    @property
    def title(self) -> str:
        """Display title for diagnostics; empty when the node has no story data."""
        story_node = self.story_node
        return story_node.title if story_node is not None else ""


class EditorEdgeData(StoryModel):
    choice: Choice | None = None
    condition: str | None = None


class EditorEdge(StoryModel):
    """A directed connection; each outgoing edge becomes one choice."""

    id: str = ""
    source: str
    target: str
    label: str | None = None
    data: EditorEdgeData | None = None

    @property
    def choice(self) -> Choice | None:
        return self.data.choice if self.data is not None else None


class ProjectMetadata(StoryModel):
    created_at: datetime | None = None
    updated_at: datetime | None = None
    version: str = "1.0.0"
    author: str | None = None


class StoryProject(StoryModel):
    """An editor project file: the graph plus descriptive metadata."""

    id: str = ""
    name: str = ""
    description: str = ""
    nodes: list[EditorNode] = Field(default_factory=list)
    edges: list[EditorEdge] = Field(default_factory=list)
    metadata: ProjectMetadata = Field(default_factory=ProjectMetadata)
