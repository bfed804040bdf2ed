"""Save-game management.

SaveManager is an explicit service object: build one at startup with the
store it should use and pass it to whatever needs it. Saves are stored as
camelCase JSON under ``save-<id>`` keys and carry a schema version.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import Field, ValidationError

from talegraph.models.story import StoryModel
from talegraph.observability.logging import get_logger
from talegraph.player.session import GameState

if TYPE_CHECKING:
    from talegraph.persistence.store import SaveStore

log = get_logger(__name__)

SAVE_PREFIX = "save-"
SAVE_FORMAT_VERSION = 1
DEFAULT_MAX_SAVES = 10


class SaveImportError(Exception):
    """Raised when an import payload is not a list of saves."""


class SaveData(StoryModel):
    """One saved play-through."""

    id: str
    name: str
    game_state: GameState
    timestamp: datetime
    story_progress: int = Field(default=0, ge=0)
    sequence: int = Field(default=0, ge=0)
    version: int = SAVE_FORMAT_VERSION

    @property
    def sort_key(self) -> tuple[datetime, int, str]:
        """Newest-first ordering key; later writes win timestamp ties."""
        return (self.timestamp, self.sequence, self.id)


@dataclass(frozen=True)
class SaveStats:
    total_saves: int
    total_size_kb: float
    oldest_save: datetime | None
    newest_save: datetime | None


class SaveManager:
    """Create, list, load and prune save games in a SaveStore."""

    def __init__(self, store: SaveStore, max_saves: int = DEFAULT_MAX_SAVES) -> None:
        """Initialize the manager.

        Args:
            store: Backend holding the serialized saves.
            max_saves: Number of most recent saves kept; older ones are pruned.
        """
        if max_saves < 1:
            msg = "max_saves must be at least 1"
            raise ValueError(msg)
        self.store = store
        self.max_saves = max_saves

    def save_game(
        self,
        name: str,
        state: GameState,
        now: datetime | None = None,
    ) -> str:
        """Save a play-through.

        Args:
            name: Display name; a dated default is used when blank.
            state: Progress to save. It is copied, so later play does not
                alter the save.
            now: Save timestamp; defaults to the current UTC time.

        Returns:
            The new save id.
        """
        timestamp = now or datetime.now(UTC)
        save = SaveData(
            id=uuid.uuid4().hex[:12],
            name=name.strip() or f"Save {timestamp:%Y-%m-%d}",
            game_state=state.model_copy(deep=True),
            timestamp=timestamp,
            story_progress=len(state.visited_nodes),
            sequence=self._next_sequence(),
        )
        self._write(save)
        log.info("game_saved", save_id=save.id, name=save.name)
        self._prune(keep={save.id})
        return save.id

    def _next_sequence(self) -> int:
        return max((save.sequence for save in self.list_saves()), default=0) + 1

    def _write(self, save: SaveData) -> None:
        self.store.set(f"{SAVE_PREFIX}{save.id}", save.model_dump_json(by_alias=True))

    def load_save(self, save_id: str) -> SaveData | None:
        """Load a save by id.

        Returns:
            The save, or None if it does not exist, is corrupt, or was
            written by a newer schema version.
        """
        raw = self.store.get(f"{SAVE_PREFIX}{save_id}")
        if raw is None:
            return None
        try:
            save = SaveData.model_validate_json(raw)
        except ValidationError as e:
            log.warning("save_corrupt", save_id=save_id, error=str(e))
            return None
        if save.version > SAVE_FORMAT_VERSION:
            log.warning("save_version_unsupported", save_id=save_id, version=save.version)
            return None
        return save

    def list_saves(self) -> list[SaveData]:
        """All readable saves, newest first."""
        saves = []
        for key in self.store.keys(SAVE_PREFIX):
            save = self.load_save(key[len(SAVE_PREFIX) :])
            if save is not None:
                saves.append(save)
        return sorted(saves, key=lambda s: s.sort_key, reverse=True)

    def delete_save(self, save_id: str) -> bool:
        """Delete a save. Return True if it existed."""
        deleted = self.store.delete(f"{SAVE_PREFIX}{save_id}")
        if deleted:
            log.info("save_deleted", save_id=save_id)
        return deleted

    def _prune(self, keep: set[str] | None = None) -> None:
        """Drop everything beyond the newest ``max_saves`` saves.

        Saves whose id is in ``keep`` are ranked ahead of the others, so a
        save that was just written survives even if its timestamp is older.
        """
        keep = keep or set()
        saves = self.list_saves()
        ranked = [s for s in saves if s.id in keep] + [s for s in saves if s.id not in keep]
        stale = ranked[self.max_saves :]
        for save in stale:
            self.delete_save(save.id)
        if stale:
            log.info("saves_pruned", count=len(stale))

    def export_saves(self) -> str:
        """Serialize every save as a JSON array."""
        payload = [save.model_dump(mode="json", by_alias=True) for save in self.list_saves()]
        return json.dumps(payload, indent=2, ensure_ascii=False)

    def import_saves(self, json_data: str) -> int:
        """Import saves produced by :meth:`export_saves`.

        Entries that don't match the save schema, or that were written by a
        newer schema version, are skipped. Imported saves get fresh ids so
        they never overwrite existing ones.

        Args:
            json_data: JSON array of saves.

        Returns:
            Number of saves imported.

        Raises:
            SaveImportError: If the payload is not a JSON array.
        """
        try:
            payload: Any = json.loads(json_data)
        except json.JSONDecodeError as e:
            raise SaveImportError(f"Invalid save file: {e}") from e
        if not isinstance(payload, list):
            raise SaveImportError("Invalid save file: expected a list of saves")

        imported = 0
        for entry in payload:
            try:
                save = SaveData.model_validate(entry)
            except ValidationError as e:
                log.warning("save_import_skipped", error=str(e))
                continue
            if save.version > SAVE_FORMAT_VERSION:
                log.warning("save_import_skipped", save_id=save.id, version=save.version)
                continue
            self._write(
                save.model_copy(
                    update={"id": uuid.uuid4().hex[:12], "sequence": self._next_sequence()}
                )
            )
            imported += 1

        self._prune()
        log.info("saves_imported", count=imported)
        return imported

    def get_save_stats(self) -> SaveStats:
        saves = self.list_saves()
        total_size = sum(len(save.model_dump_json(by_alias=True)) for save in saves)
        return SaveStats(
            total_saves=len(saves),
            total_size_kb=round(total_size / 1024, 2),
            oldest_save=saves[-1].timestamp if saves else None,
            newest_save=saves[0].timestamp if saves else None,
        )
