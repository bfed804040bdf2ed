"""Tests for SaveManager."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

import pytest

from talegraph.persistence import (
    SAVE_FORMAT_VERSION,
    DictSaveStore,
    SaveImportError,
    SaveManager,
)
from talegraph.player import GameState

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _state(node_id: str = "2") -> GameState:
    return GameState(current_node_id=node_id, visited_nodes={"1", node_id}, inventory=["lamp"])


@pytest.fixture
def manager() -> SaveManager:
    return SaveManager(DictSaveStore(), max_saves=3)


class TestSaveAndLoad:
    def test_save_and_load(self, manager: SaveManager) -> None:
        save_id = manager.save_game("Before the door", _state(), now=T0)

        save = manager.load_save(save_id)

        assert save is not None
        assert save.name == "Before the door"
        assert save.game_state.current_node_id == "2"
        assert save.game_state.inventory == ["lamp"]
        assert save.story_progress == 2
        assert save.version == SAVE_FORMAT_VERSION
        assert save.timestamp == T0

    def test_blank_name_gets_dated_default(self, manager: SaveManager) -> None:
        save_id = manager.save_game("  ", _state(), now=T0)

        assert manager.load_save(save_id).name == "Save 2026-03-01"

    def test_save_is_a_snapshot(self, manager: SaveManager) -> None:
        """Later play must not change an existing save."""
        state = _state()
        save_id = manager.save_game("snap", state, now=T0)
        state.inventory.append("sword")
        state.current_node_id = "9"

        save = manager.load_save(save_id)
        assert save.game_state.inventory == ["lamp"]
        assert save.game_state.current_node_id == "2"

    def test_load_missing(self, manager: SaveManager) -> None:
        assert manager.load_save("nope") is None

    def test_corrupt_save_is_skipped(self, manager: SaveManager) -> None:
        manager.store.set("save-broken", "{not json")
        good = manager.save_game("good", _state(), now=T0)

        assert manager.load_save("broken") is None
        assert [s.id for s in manager.list_saves()] == [good]

    def test_newer_version_is_skipped(self, manager: SaveManager) -> None:
        save_id = manager.save_game("future", _state(), now=T0)
        raw = json.loads(manager.store.get(f"save-{save_id}"))
        raw["version"] = SAVE_FORMAT_VERSION + 1
        manager.store.set(f"save-{save_id}", json.dumps(raw))

        assert manager.load_save(save_id) is None

    def test_stored_as_camel_case(self, manager: SaveManager) -> None:
        save_id = manager.save_game("x", _state(), now=T0)
        raw = json.loads(manager.store.get(f"save-{save_id}"))

        assert raw["gameState"]["currentNodeId"] == "2"
        assert raw["storyProgress"] == 2


class TestListingAndPruning:
    def test_newest_first(self, manager: SaveManager) -> None:
        first = manager.save_game("first", _state(), now=T0)
        second = manager.save_game("second", _state(), now=T0 + timedelta(minutes=1))

        assert [s.id for s in manager.list_saves()] == [second, first]

    def test_prunes_to_max_saves(self, manager: SaveManager) -> None:
        ids = [
            manager.save_game(f"s{i}", _state(), now=T0 + timedelta(minutes=i)) for i in range(5)
        ]

        assert [s.id for s in manager.list_saves()] == list(reversed(ids[2:]))
        assert manager.load_save(ids[0]) is None

    def test_same_timestamp_keeps_latest_write(self) -> None:
        manager = SaveManager(DictSaveStore(), max_saves=1)

        for _ in range(5):
            first = manager.save_game("first", _state(), now=T0)
            second = manager.save_game("second", _state(), now=T0)

            assert manager.load_save(second) is not None
            assert manager.load_save(first) is None
            assert [s.id for s in manager.list_saves()] == [second]

    def test_same_timestamp_lists_latest_write_first(self, manager: SaveManager) -> None:
        ids = [manager.save_game(f"s{i}", _state(), now=T0) for i in range(3)]

        assert [s.id for s in manager.list_saves()] == list(reversed(ids))

    def test_new_save_survives_with_older_timestamp(self) -> None:
        manager = SaveManager(DictSaveStore(), max_saves=1)
        manager.save_game("recent", _state(), now=T0 + timedelta(days=1))

        backdated = manager.save_game("backdated", _state(), now=T0)

        assert [s.id for s in manager.list_saves()] == [backdated]

    def test_delete(self, manager: SaveManager) -> None:
        save_id = manager.save_game("x", _state(), now=T0)

        assert manager.delete_save(save_id) is True
        assert manager.delete_save(save_id) is False
        assert manager.list_saves() == []

    def test_max_saves_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="at least 1"):
            SaveManager(DictSaveStore(), max_saves=0)


class TestImportExport:
    def test_export_then_import_into_another_store(self, manager: SaveManager) -> None:
        manager.save_game("a", _state("2"), now=T0)
        manager.save_game("b", _state("3"), now=T0 + timedelta(minutes=1))

        other = SaveManager(DictSaveStore())
        count = other.import_saves(manager.export_saves())

        assert count == 2
        assert sorted(s.name for s in other.list_saves()) == ["a", "b"]

    def test_imported_saves_get_fresh_ids(self, manager: SaveManager) -> None:
        original = manager.save_game("a", _state(), now=T0)

        manager.import_saves(manager.export_saves())

        ids = [s.id for s in manager.list_saves()]
        assert len(ids) == 2
        assert original in ids

    def test_invalid_entries_are_skipped(self, manager: SaveManager) -> None:
        manager.save_game("a", _state(), now=T0)
        payload = json.loads(manager.export_saves())
        payload.append({"id": "x", "name": "broken"})

        other = SaveManager(DictSaveStore())

        assert other.import_saves(json.dumps(payload)) == 1

    def test_newer_version_entries_are_skipped(self, manager: SaveManager) -> None:
        manager.save_game("a", _state(), now=T0)
        payload = json.loads(manager.export_saves())
        payload[0]["version"] = SAVE_FORMAT_VERSION + 1

        other = SaveManager(DictSaveStore())

        assert other.import_saves(json.dumps(payload)) == 0
        assert other.list_saves() == []
        assert other.store.keys("save-") == []

    @pytest.mark.parametrize("payload", ['{"saves": []}', "not json at all"])
    def test_invalid_payload(self, manager: SaveManager, payload: str) -> None:
        with pytest.raises(SaveImportError, match="Invalid save file"):
            manager.import_saves(payload)


class TestSaveStats:
    def test_empty(self, manager: SaveManager) -> None:
        stats = manager.get_save_stats()

        assert stats.total_saves == 0
        assert stats.total_size_kb == 0
        assert stats.oldest_save is None
        assert stats.newest_save is None

    def test_with_saves(self, manager: SaveManager) -> None:
        manager.save_game("a", _state(), now=T0)
        manager.save_game("b", _state(), now=T0 + timedelta(hours=1))

        stats = manager.get_save_stats()

        assert stats.total_saves == 2
        assert stats.total_size_kb > 0
        assert stats.oldest_save == T0
        assert stats.newest_save == T0 + timedelta(hours=1)
