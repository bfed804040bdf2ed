"""Twee 3 export format.

Generates a Twee 3 file that can be imported into Twine. Passages are
named after node titles (falling back to the node id), carry the node's
tags, and link with ``[[label|target]]`` syntax. Restart choices link
back to the start passage.

Format reference: https://twinery.org/cookbook/terms/terms_twee.html
"""

from __future__ import annotations

import json
import re
import uuid
from typing import TYPE_CHECKING

from talegraph.observability.logging import get_logger

if TYPE_CHECKING:
    from talegraph.export.base import ExportContext
    from talegraph.models.story import Choice, StoryNode

log = get_logger(__name__)

STORY_FORMAT = "SugarCube"
STORY_FORMAT_VERSION = "2.37.3"

_BREAK_TAG = re.compile(r"<br\s*/?>", re.IGNORECASE)
_PARAGRAPH_TAG = re.compile(r"</?p>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]*>")


class TweeExporter:
    """Export story as a Twee 3 source file."""

    format_name = "twee"
    display_name = "Twine (Twee)"
    description = "Twee 3 source compatible with Twine"
    extension = ".twee"

    def render(self, context: ExportContext) -> str:
        """Render the story as Twee 3 markup.

        Args:
            context: Extracted story data.

        Returns:
            Twee source text.
        """
        names = {node.id: _passage_name(node) for node in context.story}

        lines: list[str] = []
        if context.include_metadata:
            lines.extend(_story_header(context.title, context.start_node_id, names))
            lines.append("")

        for node in context.story:
            lines.extend(
                _render_passage(
                    node,
                    names,
                    start_name=names.get(context.start_node_id, context.start_node_id),
                    is_start=node.id == context.start_node_id,
                )
            )
            lines.append("")

        log.debug("twee_render_complete", passages=len(context.story))
        return "\n".join(lines)

    def filename(self, context: ExportContext) -> str:
        return f"story-{context.timestamp_slug}{self.extension}"


def story_ifid(title: str, start_node_id: str) -> str:
    """Stable IFID for a story, so re-exports do not look like new stories."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"talegraph:{title}:{start_node_id}")).upper()


def _story_header(title: str, start_node_id: str, names: dict[str, str]) -> list[str]:
    """Generate Twee 3 story header passages."""
    story_data = {
        "ifid": story_ifid(title, start_node_id),
        "format": STORY_FORMAT,
        "format-version": STORY_FORMAT_VERSION,
    }
    if start_node_id in names:
        story_data["start"] = names[start_node_id]
    return [
        f":: StoryTitle\n{title}",
        "",
        f":: StoryData\n{json.dumps(story_data, indent=2)}",
    ]


def _passage_name(node: StoryNode) -> str:
    return node.title or node.id


def clean_content(content: str) -> str:
    """Turn simple HTML markup into plain Twee text."""
    text = _BREAK_TAG.sub("\n", content)
    text = _PARAGRAPH_TAG.sub("\n", text)
    text = _ANY_TAG.sub("", text)
    return text.strip()


def _render_passage(
    node: StoryNode,
    names: dict[str, str],
    *,
    start_name: str,
    is_start: bool = False,
) -> list[str]:
    """Render a single passage as Twee markup."""
    tags = list(node.metadata.tags)
    if is_start and "start" not in tags:
        tags.append("start")
    header = f":: {names[node.id]}"
    if tags:
        header += f" [{' '.join(tags)}]"

    lines = [header, clean_content(node.content), ""]
    lines.extend(_render_choice(choice, names, start_name) for choice in node.choices)
    return lines


def _render_choice(choice: Choice, names: dict[str, str], start_name: str) -> str:
    if choice.is_restart:
        return f"[[{choice.text}|{start_name}]]"
    target = names.get(choice.next_node_id, choice.next_node_id)
    return f"[[{choice.text}|{target}]]"
