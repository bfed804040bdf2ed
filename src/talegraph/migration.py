"""Import stories written in the native compact format.

The native format (see :mod:`talegraph.export.native_exporter`) stores
nodes as ``{"id": int, "text": str, "options": [{"text", "nextText"}]}``.
This module turns such data back into StoryNode objects.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from talegraph.models.story import Choice, NodeMetadata, StoryNode


class LegacyOption(BaseModel):
    text: str
    next_text: int = Field(alias="nextText")


class LegacyStoryNode(BaseModel):
    """One node of the native compact format."""

    id: int
    text: str = ""
    options: list[LegacyOption] = Field(default_factory=list)


def migrate_story_data(old_data: list[dict[str, Any]] | list[LegacyStoryNode]) -> list[StoryNode]:
    """Convert native-format nodes to story nodes.

    Choice ids are ``choice_<nodeId>_<index>``; a ``nextText`` of -1
    becomes the restart sentinel. Titles are generated from the id since
    the native format has none.

    Args:
        old_data: Raw dicts or already-parsed LegacyStoryNode objects.

    Returns:
        Story nodes in input order.

    Raises:
        pydantic.ValidationError: If an entry does not match the format.
    """
    nodes: list[StoryNode] = []
    for raw in old_data:
        old = raw if isinstance(raw, LegacyStoryNode) else LegacyStoryNode.model_validate(raw)
        choices = [
            Choice(
                id=f"choice_{old.id}_{index}",
                text=option.text,
                next_node_id=str(option.next_text),
            )
            for index, option in enumerate(old.options)
        ]
        nodes.append(
            StoryNode(
                id=str(old.id),
                title=f"Scene {old.id}",
                content=old.text,
                choices=choices,
                metadata=NodeMetadata(difficulty="medium"),
            )
        )
    return nodes


def load_native_payload(data: Any) -> list[dict[str, Any]]:
    """Extract the node list from a native export, with or without metadata."""
    if isinstance(data, dict) and "story" in data:
        data = data["story"]
    if not isinstance(data, list):
        msg = "native story data must be a list of nodes or an object with a 'story' list"
        raise ValueError(msg)
    return data
