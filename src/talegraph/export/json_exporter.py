"""Generic JSON export format.

Serializes the full story graph, including metadata, conditions and
consequences, in a schema suitable for external tools and custom
engines.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from talegraph.export.base import ExportContext

GENERIC_FORMAT_ID = "generic-interactive-story"
GENERIC_FORMAT_VERSION = "1.0"
DEFAULT_AUTHOR = "talegraph"


def dump_json(data: Any, *, minify: bool) -> str:
    """Serialize export data, compact or indented."""
    if minify:
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    return json.dumps(data, indent=2, ensure_ascii=False)


class JsonExporter:
    """Export story as generic structured JSON."""

    format_name = "json"
    display_name = "Generic JSON"
    description = "Standard JSON schema for interoperability"
    extension = ".json"

    def render(self, context: ExportContext) -> str:
        """Render the story as a generic JSON document.

        Args:
            context: Extracted story data.

        Returns:
            JSON text with ``format``, ``version``, optional ``metadata``
            and ``story`` keys.
        """
        data: dict[str, Any] = {
            "format": GENERIC_FORMAT_ID,
            "version": GENERIC_FORMAT_VERSION,
        }
        if context.include_metadata:
            data["metadata"] = {
                "title": context.title,
                "author": context.author or DEFAULT_AUTHOR,
                "createdAt": context.exported_at.isoformat(),
                "totalNodes": len(context.story),
                "startNodeId": context.start_node_id,
            }
        data["story"] = {
            "startNodeId": context.start_node_id,
            "nodes": [node.to_json_dict() for node in context.story],
        }
        return dump_json(data, minify=context.minify)

    def filename(self, context: ExportContext) -> str:
        return f"interactive-story-{context.timestamp_slug}{self.extension}"
