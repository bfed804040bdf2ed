"""Native compact JSON export format.

The player's own story format: numeric node ids, the node content as
``text`` and each choice as an ``option`` whose ``nextText`` is the
numeric target id, or -1 to restart.

Node ids that are already integers are kept. Other nodes are numbered by
their position (1-based) so that links stay consistent. Use
:func:`talegraph.migration.migrate_story_data` to read this format back.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from talegraph.export.base import ExportError
from talegraph.export.json_exporter import dump_json
from talegraph.models.story import RESTART_NODE_ID
from talegraph.observability.logging import get_logger

if TYPE_CHECKING:
    from talegraph.export.base import ExportContext
    from talegraph.models.story import StoryNode

log = get_logger(__name__)

NATIVE_FORMAT_VERSION = "1.0.0"
RESTART_TARGET = -1

_INTEGER_ID = re.compile(r"-?[0-9]+")


def assign_numeric_ids(story: list[StoryNode]) -> dict[str, int]:
    """Map each story node id to the numeric id used in the native format."""
    id_map: dict[str, int] = {}
    for index, node in enumerate(story):
        if _INTEGER_ID.fullmatch(node.id):
            id_map[node.id] = int(node.id)
        else:
            id_map[node.id] = index + 1
    return id_map


class NativeExporter:
    """Export story in the compact native format."""

    format_name = "native"
    display_name = "Native JSON"
    description = "Compact numeric format read by the story player"
    extension = ".json"

    def render(self, context: ExportContext) -> str:
        """Render the story in the native format.

        Args:
            context: Extracted story data.

        Returns:
            JSON text: a bare node list, or ``{"metadata", "story"}`` when
            metadata is requested.

        Raises:
            ExportError: If the conversion reported errors, since broken
                links cannot be expressed with numeric targets.
        """
        if context.has_errors:
            msg = "story has conversion errors; fix them before a native export"
            raise ExportError(msg)

        id_map = assign_numeric_ids(context.story)
        if len(set(id_map.values())) != len(id_map):
            log.warning("native_export_id_collision", nodes=len(id_map))

        nodes: list[dict[str, Any]] = [
            {
                "id": id_map[node.id],
                "text": node.content,
                "options": [
                    {
                        "text": choice.text,
                        "nextText": (
                            RESTART_TARGET
                            if choice.next_node_id == RESTART_NODE_ID
                            else id_map.get(choice.next_node_id, RESTART_TARGET)
                        ),
                    }
                    for choice in node.choices
                ],
            }
            for node in context.story
        ]

        data: Any = nodes
        if context.include_metadata:
            data = {
                "metadata": {
                    "title": context.title,
                    "description": "Exported with talegraph",
                    "version": NATIVE_FORMAT_VERSION,
                    "exportedAt": context.exported_at.isoformat(),
                    "totalNodes": len(nodes),
                    "totalChoices": sum(len(n["options"]) for n in nodes),
                },
                "story": nodes,
            }
        return dump_json(data, minify=context.minify)

    def filename(self, context: ExportContext) -> str:
        return f"native-story-{context.timestamp_slug}{self.extension}"
