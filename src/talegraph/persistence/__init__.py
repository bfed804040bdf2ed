"""Save-game persistence: storage backends and the save manager."""

from talegraph.persistence.saves import (
    SAVE_FORMAT_VERSION,
    SaveData,
    SaveImportError,
    SaveManager,
    SaveStats,
)
from talegraph.persistence.store import DictSaveStore, JsonFileSaveStore, SaveStore

__all__ = [
    "SAVE_FORMAT_VERSION",
    "DictSaveStore",
    "JsonFileSaveStore",
    "SaveData",
    "SaveImportError",
    "SaveManager",
    "SaveStats",
    "SaveStore",
]
