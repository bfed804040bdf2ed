"""Tests for the story library service and its metadata estimators."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from talegraph.graph import StoryValidationError
from talegraph.library import (
    LibraryError,
    LibraryStory,
    StoryLibrary,
    StoryMetadata,
    estimate_difficulty,
    estimate_play_time,
    extract_tags,
    find_start_node_id,
    slugify_title,
)
from talegraph.models import Choice
from talegraph.persistence import DictSaveStore, JsonFileSaveStore
from tests.fixtures.story_graphs import make_edge, make_linear_graph, make_node, make_story_node

if TYPE_CHECKING:
    from pathlib import Path

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
T1 = T0 + timedelta(hours=1)


def _ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def _branching(node_count: int, choices_per_node: int) -> list:
    return [
        make_story_node(
            str(i),
            choices=[
                Choice(id=f"c{i}_{j}", text="go", next_node_id="1") for j in range(choices_per_node)
            ],
        )
        for i in range(1, node_count + 1)
    ]


def _library_story(story_id: str, *, published: bool = False, featured: bool = False):
    return LibraryStory(
        metadata=StoryMetadata(
            id=story_id,
            title=story_id.title(),
            created_at=T0,
            updated_at=T0,
            estimated_play_time="5-8 min",
            difficulty="Easy",
            published=published,
            featured=featured,
        ),
        story=[make_story_node("1")],
        start_node_id="1",
    )


@pytest.fixture
def library() -> StoryLibrary:
    return StoryLibrary(DictSaveStore())


# --- Estimators ---


class TestEstimatePlayTime:
    @pytest.mark.parametrize(
        ("nodes", "expected"),
        [(0, "5-8 min"), (4, "5-8 min"), (10, "12-18 min"), (25, "30-45 min")],
    )
    def test_ranges(self, nodes: int, expected: str) -> None:
        assert estimate_play_time(nodes) == expected


class TestEstimateDifficulty:
    def test_small_and_linear_is_easy(self) -> None:
        assert estimate_difficulty(_branching(10, 1)) == "Easy"

    def test_empty_story_is_easy(self) -> None:
        assert estimate_difficulty([]) == "Easy"

    def test_more_than_fifteen_nodes_is_medium(self) -> None:
        assert estimate_difficulty(_branching(16, 1)) == "Medium"

    def test_three_choices_per_node_is_medium(self) -> None:
        assert estimate_difficulty(_branching(10, 3)) == "Medium"

    def test_heavy_branching_is_hard(self) -> None:
        assert estimate_difficulty(_branching(10, 4)) == "Hard"

    def test_more_than_twenty_five_nodes_is_hard(self) -> None:
        assert estimate_difficulty(_branching(26, 1)) == "Hard"


class TestTagsAndStart:
    def test_tags_are_distinct_in_first_seen_order(self) -> None:
        story = [
            make_story_node("1", tags=["start", "cave"]),
            make_story_node("2", tags=["cave", "dark"]),
            make_story_node("3", tags=["start"]),
        ]

        assert extract_tags(story) == ["start", "cave", "dark"]

    def test_node_one_wins(self) -> None:
        story = [make_story_node("9", tags=["start"]), make_story_node("1")]

        assert find_start_node_id(story) == "1"

    def test_start_tag_next(self) -> None:
        story = [make_story_node("a"), make_story_node("b", tags=["start"])]

        assert find_start_node_id(story) == "b"

    def test_first_node_fallback(self) -> None:
        assert find_start_node_id([make_story_node("a"), make_story_node("b")]) == "a"
        assert find_start_node_id([]) == ""

    def test_slug(self) -> None:
        assert slugify_title("The Cave: Part II!") == "the-cave-part-ii"
        assert len(slugify_title("word " * 20)) == 30


# --- StoryLibrary ---


class TestCreateFromEditor:
    def test_creates_unpublished_draft(self, library: StoryLibrary) -> None:
        story_id = library.create_story_from_editor(
            "The Hall", "A short walk.", "Ada", *make_linear_graph(), now=T0
        )

        assert story_id == f"the-hall-{_ms(T0)}"
        story = library.get_story(story_id)
        assert story is not None
        assert [n.id for n in story.story] == ["1", "2", "3"]
        assert story.start_node_id == "1"
        assert story.story[2].choices[0].is_restart
        meta = story.metadata
        assert meta.title == "The Hall"
        assert meta.author == "Ada"
        assert meta.total_nodes == 3
        assert meta.difficulty == "Easy"
        assert meta.estimated_play_time == "5-8 min"
        assert meta.published is False
        assert meta.created_at == meta.updated_at == T0

    def test_broken_graph_is_rejected(self, library: StoryLibrary) -> None:
        nodes = [make_node("s", "start"), make_node("e", "end")]
        edges = [make_edge("s", "e"), make_edge("s", "ghost")]

        with pytest.raises(StoryValidationError):
            library.create_story_from_editor("Broken", "", "", nodes, edges, now=T0)

        assert library.list_stories() == []

    def test_same_title_same_moment_gets_distinct_ids(self, library: StoryLibrary) -> None:
        first = library.create_story_from_editor("Hall", "", "", *make_linear_graph(), now=T0)
        second = library.create_story_from_editor("Hall", "", "", *make_linear_graph(), now=T0)

        assert first != second
        assert second == f"{first}-2"
        assert len(library.list_stories()) == 2

    def test_works_over_file_store(self, tmp_path: Path) -> None:
        library = StoryLibrary(JsonFileSaveStore(tmp_path))

        story_id = library.create_story_from_editor("Hall", "", "", *make_linear_graph(), now=T0)

        assert (tmp_path / f"story-{story_id}.json").exists()
        assert library.get_story(story_id).metadata.total_nodes == 3


class TestBrowsing:
    def test_most_recently_updated_first(self, library: StoryLibrary) -> None:
        library.save_story(_library_story("old"), now=T0)
        library.save_story(_library_story("new"), now=T1)

        assert [m.id for m in library.list_stories()] == ["new", "old"]

    def test_published_and_featured_filters(self, library: StoryLibrary) -> None:
        library.save_story(_library_story("draft"), now=T0)
        library.save_story(_library_story("public", published=True), now=T0)
        library.save_story(_library_story("star", published=True, featured=True), now=T0)
        library.save_story(_library_story("hidden-star", featured=True), now=T0)

        assert sorted(m.id for m in library.published_stories()) == ["public", "star"]
        assert [m.id for m in library.featured_stories()] == ["star"]

    def test_corrupt_entry_is_skipped(self, library: StoryLibrary) -> None:
        library.store.set("story-broken", "{")
        library.save_story(_library_story("fine"), now=T0)

        assert library.get_story("broken") is None
        assert [m.id for m in library.list_stories()] == ["fine"]


class TestSaveAndDelete:
    def test_save_refreshes_counts_without_touching_input(self, library: StoryLibrary) -> None:
        story = _library_story("cave")
        story.story.append(make_story_node("2"))

        stored = library.save_story(story, now=T1)

        assert stored.metadata.total_nodes == 2
        assert stored.metadata.updated_at == T1
        assert story.metadata.total_nodes == 0
        assert story.metadata.updated_at == T0

    def test_delete(self, library: StoryLibrary) -> None:
        library.save_story(_library_story("cave"), now=T0)

        assert library.delete_story("cave") is True
        assert library.delete_story("cave") is False
        assert library.get_story("cave") is None


class TestPublication:
    def test_toggle(self, library: StoryLibrary) -> None:
        library.save_story(_library_story("cave"), now=T0)

        assert library.toggle_publication("cave") is True
        assert library.get_story("cave").metadata.published is True
        assert library.toggle_publication("cave") is False

    def test_toggle_missing(self, library: StoryLibrary) -> None:
        with pytest.raises(LibraryError, match="Story not found"):
            library.toggle_publication("nope")


class TestImportExport:
    def test_export_payload(self, library: StoryLibrary) -> None:
        story_id = library.create_story_from_editor("Hall", "", "", *make_linear_graph(), now=T0)

        data = json.loads(library.export_story(story_id, now=T1))

        assert data["exportedAt"] == T1.isoformat()
        assert data["version"] == "1.0.0"
        assert data["startNodeId"] == "1"
        assert data["metadata"]["totalNodes"] == 3
        assert [n["id"] for n in data["story"]] == ["1", "2", "3"]

    def test_export_missing(self, library: StoryLibrary) -> None:
        with pytest.raises(LibraryError):
            library.export_story("nope")

    def test_import_export_gets_new_identity(self, library: StoryLibrary) -> None:
        story_id = library.create_story_from_editor("Hall", "", "Ada", *make_linear_graph(), now=T0)
        exported = library.export_story(story_id, now=T0)

        other = StoryLibrary(DictSaveStore())
        new_id = other.import_story(exported, now=T1)

        assert new_id == f"hall-{_ms(T1)}"
        story = other.get_story(new_id)
        assert story.metadata.author == "Ada"
        assert story.metadata.created_at == T1
        assert story.metadata.updated_at == T1
        assert [n.id for n in story.story] == ["1", "2", "3"]

    def test_import_native_list(self, library: StoryLibrary) -> None:
        native = [
            {"id": 2, "text": "Later", "options": []},
            {"id": 1, "text": "Hi", "options": [{"text": "On", "nextText": 2}]},
        ]

        story_id = library.import_story(json.dumps(native), title="Legacy", now=T0)

        story = library.get_story(story_id)
        assert story.start_node_id == "1"
        assert story.story[1].title == "Scene 1"
        assert story.metadata.published is True
        assert story.metadata.author == "Unknown"
        assert story.metadata.description == "Imported story"

    def test_import_native_with_metadata_wrapper(self, library: StoryLibrary) -> None:
        native = {
            "metadata": {"title": "Wrapped"},
            "story": [{"id": 1, "text": "Hi", "options": []}],
        }

        story_id = library.import_story(json.dumps(native), title="Wrapped", now=T0)

        assert library.get_story(story_id).metadata.total_nodes == 1

    @pytest.mark.parametrize("payload", ['{"nodes": []}', "not json", '[{"text": "no id"}]'])
    def test_invalid_payload(self, library: StoryLibrary, payload: str) -> None:
        with pytest.raises(LibraryError, match="Invalid story format"):
            library.import_story(payload, now=T0)

        assert library.list_stories() == []
