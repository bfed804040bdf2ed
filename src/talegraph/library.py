"""Story library: converted stories with catalogue metadata.

StoryLibrary is a service object over any SaveStore. Each story is kept
as camelCase JSON under a ``story-<id>`` key together with metadata used
for browsing (difficulty, estimated play time, tags, publication state).
Construct one where the application starts and pass it along.
"""

from __future__ import annotations

import json
import math
import re
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Literal

from pydantic import Field, ValidationError

from talegraph.graph import convert_graph
from talegraph.migration import load_native_payload, migrate_story_data
from talegraph.models.story import StoryModel, StoryNode
from talegraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from talegraph.models import EditorEdge, EditorNode
    from talegraph.persistence.store import SaveStore

log = get_logger(__name__)

STORY_PREFIX = "story-"
LIBRARY_FORMAT_VERSION = "1.0.0"

StoryDifficulty = Literal["Easy", "Medium", "Hard"]

_NON_SLUG = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


class LibraryError(Exception):
    """Raised when a story cannot be found, imported or exported."""


class StoryMetadata(StoryModel):
    """Catalogue entry for a library story."""

    id: str
    title: str
    description: str = ""
    author: str = ""
    version: str = LIBRARY_FORMAT_VERSION
    created_at: datetime
    updated_at: datetime
    estimated_play_time: str
    difficulty: StoryDifficulty
    tags: list[str] = Field(default_factory=list)
    thumbnail: str | None = None
    rating: float = Field(default=0.0, ge=0, le=5)
    total_nodes: int = Field(default=0, ge=0)
    featured: bool = False
    published: bool = False


class LibraryStory(StoryModel):
    """A playable story plus its catalogue entry."""

    metadata: StoryMetadata
    story: list[StoryNode]
    start_node_id: str


# --- Metadata estimators ---


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def estimate_play_time(node_count: int) -> str:
    """Rough play time range, about 1.2 minutes per node and never under 5."""
    minutes = max(5, _round_half_up(node_count * 1.2))
    return f"{minutes}-{_round_half_up(minutes * 1.5)} min"


def estimate_difficulty(story: Sequence[StoryNode]) -> StoryDifficulty:
    """Grade a story by its size and average branching.

    Easy: at most 2 choices per node on average and at most 15 nodes.
    Medium: at most 3 choices per node and at most 25 nodes.
    Anything larger or more branched is Hard. An empty story is Easy.
    """
    if not story:
        return "Easy"
    avg_choices = sum(len(node.choices) for node in story) / len(story)
    if avg_choices <= 2 and len(story) <= 15:
        return "Easy"
    if avg_choices <= 3 and len(story) <= 25:
        return "Medium"
    return "Hard"


def extract_tags(story: Sequence[StoryNode]) -> list[str]:
    """Distinct node tags in first-seen order."""
    return list(dict.fromkeys(tag for node in story for tag in node.metadata.tags))


def find_start_node_id(story: Sequence[StoryNode]) -> str:
    """Pick a start node for stories that don't name one.

    Prefers node "1", then the first node tagged "start", then the first
    node. Returns "" for an empty story.
    """
    for node in story:
        if node.id == "1":
            return node.id
    for node in story:
        if "start" in node.metadata.tags:
            return node.id
    return story[0].id if story else ""


def slugify_title(title: str) -> str:
    """Lowercase ASCII slug of a title, at most 30 characters."""
    slug = _NON_SLUG.sub("", title.lower())
    return _WHITESPACE.sub("-", slug)[:30]


# --- Library service ---


class StoryLibrary:
    """Create, browse, publish, import and export library stories."""

    def __init__(self, store: SaveStore) -> None:
        self.store = store

    def _key(self, story_id: str) -> str:
        return f"{STORY_PREFIX}{story_id}"

    def _new_story_id(self, title: str, now: datetime) -> str:
        base = f"{slugify_title(title)}-{int(now.timestamp() * 1000)}"
        story_id = base
        suffix = 2
        while self.store.get(self._key(story_id)) is not None:
            story_id = f"{base}-{suffix}"
            suffix += 1
        return story_id

    def get_story(self, story_id: str) -> LibraryStory | None:
        """Return the story, or None when it is missing or unreadable."""
        raw = self.store.get(self._key(story_id))
        if raw is None:
            return None
        try:
            return LibraryStory.model_validate_json(raw)
        except ValidationError as e:
            log.warning("library_story_corrupt", story_id=story_id, error=str(e))
            return None

    def list_stories(self) -> list[StoryMetadata]:
        """Catalogue entries of every readable story, most recently updated first."""
        stories = []
        for key in self.store.keys(STORY_PREFIX):
            story = self.get_story(key[len(STORY_PREFIX) :])
            if story is not None:
                stories.append(story.metadata)
        return sorted(stories, key=lambda m: (m.updated_at, m.id), reverse=True)

    def published_stories(self) -> list[StoryMetadata]:
        return [m for m in self.list_stories() if m.published]

    def featured_stories(self) -> list[StoryMetadata]:
        return [m for m in self.list_stories() if m.featured and m.published]

    def save_story(self, story: LibraryStory, now: datetime | None = None) -> LibraryStory:
        """Store a story, refreshing its update time and node count.

        Args:
            story: Story to store; it is not modified.
            now: Update timestamp; defaults to the current UTC time.

        Returns:
            The stored copy.
        """
        metadata = story.metadata.model_copy(
            update={"updated_at": now or datetime.now(UTC), "total_nodes": len(story.story)}
        )
        stored = story.model_copy(update={"metadata": metadata}, deep=True)
        self.store.set(self._key(metadata.id), stored.model_dump_json(by_alias=True))
        log.info("library_story_saved", story_id=metadata.id, nodes=metadata.total_nodes)
        return stored

    def delete_story(self, story_id: str) -> bool:
        """Delete a story. Return True if it existed."""
        deleted = self.store.delete(self._key(story_id))
        if deleted:
            log.info("library_story_deleted", story_id=story_id)
        return deleted

    def _create(
        self,
        title: str,
        story: list[StoryNode],
        start_node_id: str,
        now: datetime,
        *,
        description: str,
        author: str,
        published: bool,
    ) -> str:
        metadata = StoryMetadata(
            id=self._new_story_id(title, now),
            title=title,
            description=description,
            author=author,
            created_at=now,
            updated_at=now,
            estimated_play_time=estimate_play_time(len(story)),
            difficulty=estimate_difficulty(story),
            tags=extract_tags(story),
            total_nodes=len(story),
            published=published,
        )
        self.save_story(
            LibraryStory(metadata=metadata, story=story, start_node_id=start_node_id), now=now
        )
        return metadata.id

    def create_story_from_editor(
        self,
        title: str,
        description: str,
        author: str,
        nodes: Sequence[EditorNode],
        edges: Sequence[EditorEdge],
        now: datetime | None = None,
    ) -> str:
        """Convert an editor graph and add it to the library as an unpublished draft.

        Returns:
            The new story id.

        Raises:
            StoryValidationError: If the graph does not convert cleanly.
        """
        result = convert_graph(nodes, edges)
        result.raise_for_errors()
        return self._create(
            title,
            result.story,
            result.start_node_id,
            now or datetime.now(UTC),
            description=description,
            author=author,
            published=False,
        )

    def toggle_publication(self, story_id: str) -> bool:
        """Flip a story's published flag and return the new value.

        Raises:
            LibraryError: If the story does not exist.
        """
        story = self.get_story(story_id)
        if story is None:
            raise LibraryError(f"Story not found: {story_id}")
        story.metadata.published = not story.metadata.published
        self.save_story(story)
        return story.metadata.published

    def export_story(self, story_id: str, now: datetime | None = None) -> str:
        """Serialize a story for sharing.

        Raises:
            LibraryError: If the story does not exist.
        """
        story = self.get_story(story_id)
        if story is None:
            raise LibraryError(f"Story not found: {story_id}")
        payload = {
            "exportedAt": (now or datetime.now(UTC)).isoformat(),
            "version": LIBRARY_FORMAT_VERSION,
            **story.to_json_dict(),
        }
        return json.dumps(payload, indent=2, ensure_ascii=False)

    def import_story(
        self, json_data: str, title: str = "Imported story", now: datetime | None = None
    ) -> str:
        """Add a story from a library export or native-format data.

        A library export keeps its metadata but gets a new id and fresh
        timestamps. Native data (a node list, optionally wrapped with
        metadata) is migrated and published under ``title``.

        Returns:
            The new story id.

        Raises:
            LibraryError: If the data is neither format.
        """
        now = now or datetime.now(UTC)
        try:
            data: Any = json.loads(json_data)
            if isinstance(data, dict) and "startNodeId" in data:
                story = LibraryStory.model_validate(data)
                metadata = story.metadata.model_copy(
                    update={
                        "id": self._new_story_id(story.metadata.title, now),
                        "created_at": now,
                    }
                )
                self.save_story(story.model_copy(update={"metadata": metadata}), now=now)
                story_id = metadata.id
            else:
                nodes = migrate_story_data(load_native_payload(data))
                story_id = self._create(
                    title,
                    nodes,
                    find_start_node_id(nodes),
                    now,
                    description="Imported story",
                    author="Unknown",
                    published=True,
                )
        except (ValueError, ValidationError) as e:
            raise LibraryError(f"Invalid story format: {e}") from e

        log.info("library_story_imported", story_id=story_id)
        return story_id
