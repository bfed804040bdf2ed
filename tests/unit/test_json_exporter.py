"""Tests for the generic JSON exporter."""

from __future__ import annotations

import json
from datetime import UTC, datetime

from talegraph.export.base import ExportContext
from talegraph.export.json_exporter import JsonExporter
from talegraph.models import Choice
from tests.fixtures.story_graphs import make_story_node

EXPORTED_AT = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)


def _simple_context(**overrides: object) -> ExportContext:
    """Build a minimal ExportContext for testing."""
    story = [
        make_story_node(
            "1",
            title="Opening",
            content="Opening scene.",
            choices=[
                Choice(
                    id="c1",
                    text="Continue",
                    next_node_id="2",
                    consequences=[{"type": "variable", "key": "met", "value": True}],
                )
            ],
        ),
        make_story_node(
            "2",
            title="Ending",
            content="The end.",
            choices=[Choice(id="restart_2", text="Restart", next_node_id="-1")],
        ),
    ]
    values: dict = {
        "story": story,
        "start_node_id": "1",
        "exported_at": EXPORTED_AT,
        "title": "Test Story",
    }
    values.update(overrides)
    return ExportContext(**values)


class TestJsonExporter:
    def test_output_is_valid_json(self) -> None:
        data = json.loads(JsonExporter().render(_simple_context()))

        assert isinstance(data, dict)
        assert data["format"] == "generic-interactive-story"
        assert data["version"] == "1.0"

    def test_metadata(self) -> None:
        data = json.loads(JsonExporter().render(_simple_context(author="Ada")))

        assert data["metadata"] == {
            "title": "Test Story",
            "author": "Ada",
            "createdAt": "2026-01-02T03:04:05+00:00",
            "totalNodes": 2,
            "startNodeId": "1",
        }

    def test_default_author(self) -> None:
        data = json.loads(JsonExporter().render(_simple_context()))

        assert data["metadata"]["author"] == "talegraph"

    def test_without_metadata(self) -> None:
        data = json.loads(JsonExporter().render(_simple_context(include_metadata=False)))

        assert "metadata" not in data
        assert data["story"]["startNodeId"] == "1"

    def test_story_keeps_gameplay_data(self) -> None:
        data = json.loads(JsonExporter().render(_simple_context()))

        nodes = data["story"]["nodes"]
        assert [n["id"] for n in nodes] == ["1", "2"]
        assert nodes[0]["choices"][0]["nextNodeId"] == "2"
        assert nodes[0]["choices"][0]["consequences"] == [
            {"type": "variable", "key": "met", "value": True}
        ]
        assert nodes[1]["choices"][0]["nextNodeId"] == "-1"

    def test_minify(self) -> None:
        text = JsonExporter().render(_simple_context(minify=True))

        assert "\n" not in text
        assert text == json.dumps(json.loads(text), ensure_ascii=False, separators=(",", ":"))

    def test_filename(self) -> None:
        filename = JsonExporter().filename(_simple_context())

        assert filename == "interactive-story-2026-01-02T03-04-05.json"
