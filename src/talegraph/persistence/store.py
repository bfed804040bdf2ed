"""Save storage backend protocol and implementations.

The SaveStore protocol is a plain string key-value store. SaveManager
owns the save-game schema on top of it; stores know nothing about saves.

DictSaveStore keeps everything in memory. JsonFileSaveStore keeps one
file per key in a directory.
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Protocol, runtime_checkable

_SAFE_KEY = re.compile(r"[A-Za-z0-9._-]+")


@runtime_checkable
class SaveStore(Protocol):
    """Storage backend protocol for save games."""

    def get(self, key: str) -> str | None:
        """Get the value stored under key, or None if absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    def delete(self, key: str) -> bool:
        """Remove key. Return True if it existed."""
        ...

    def keys(self, prefix: str = "") -> list[str]:
        """Return all keys starting with prefix, sorted."""
        ...


class DictSaveStore:
    """In-memory SaveStore."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class JsonFileSaveStore:
    """SaveStore writing one ``<key>.json`` file per key.

    Writes go to a temporary file that is then renamed over the target, so
    a crash mid-write never leaves a truncated save behind.
    """

    suffix = ".json"

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.fullmatch(key):
            msg = f"Invalid save key: {key!r}"
            raise ValueError(msg)
        return self.directory / f"{key}{self.suffix}"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-", suffix=self.suffix)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.exists():
            return False
        path.unlink()
        return True

    def keys(self, prefix: str = "") -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(
            p.stem
            for p in self.directory.glob(f"*{self.suffix}")
            if not p.name.startswith(".tmp-") and p.stem.startswith(prefix)
        )
