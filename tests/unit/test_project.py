"""Tests for project file reading and writing."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from talegraph.graph import convert_graph
from talegraph.models import StoryProject
from talegraph.project import ProjectLoadError, load_project, save_project
from tests.fixtures.story_graphs import make_linear_graph, project_payload

if TYPE_CHECKING:
    from pathlib import Path


class TestLoadProject:
    def test_loads_editor_json(self, tmp_path: Path) -> None:
        nodes, edges = make_linear_graph()
        path = tmp_path / "story.json"
        path.write_text(json.dumps(project_payload(nodes, edges)), encoding="utf-8")

        project = load_project(path)

        assert project.name == "Test Story"
        assert [n.id for n in project.nodes] == ["1", "2", "3"]
        assert convert_graph(project.nodes, project.edges).errors == []

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ProjectLoadError, match="Failed to load project"):
            load_project(tmp_path / "nope.json")

    def test_malformed_file(self, tmp_path: Path) -> None:
        path = tmp_path / "story.json"
        path.write_text('{"nodes": [{"position": {}}]}', encoding="utf-8")

        with pytest.raises(ProjectLoadError, match="validation error"):
            load_project(path)


class TestSaveProject:
    def test_round_trip(self, tmp_path: Path) -> None:
        nodes, edges = make_linear_graph()
        project = StoryProject(name="Hall", nodes=nodes, edges=edges)

        path = save_project(project, tmp_path / "nested" / "story.json")

        assert load_project(path) == project

    def test_writes_camel_case(self, tmp_path: Path) -> None:
        nodes, edges = make_linear_graph()
        path = save_project(StoryProject(nodes=nodes, edges=edges), tmp_path / "story.json")

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["nodes"][0]["data"]["nodeType"] == "start"
        assert "storyNode" in data["nodes"][0]["data"]
