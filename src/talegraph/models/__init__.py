"""Pydantic models for editor graphs and converted story graphs.

Terminology:
- editor graph: EditorNode/EditorEdge as authored in the visual editor
- story graph: StoryNode/Choice as consumed by the player and exporters
- restart sentinel: the reserved ``next_node_id`` value ``"-1"``
"""

from talegraph.models.editor import (
    EditorEdge,
    EditorEdgeData,
    EditorNode,
    EditorNodeData,
    NodeType,
    Position,
    ProjectMetadata,
    StoryProject,
)
from talegraph.models.story import (
    RESTART_NODE_ID,
    Choice,
    Difficulty,
    MediaContent,
    NodeMetadata,
    StoryModel,
    StoryNode,
)

__all__ = [
    "RESTART_NODE_ID",
    "Choice",
    "Difficulty",
    "EditorEdge",
    "EditorEdgeData",
    "EditorNode",
    "EditorNodeData",
    "MediaContent",
    "NodeMetadata",
    "NodeType",
    "Position",
    "ProjectMetadata",
    "StoryModel",
    "StoryNode",
    "StoryProject",
]
