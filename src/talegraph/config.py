"""Configuration loading.

Reads ``talegraph.yaml`` from the working directory (or an explicit
path). Environment variables override file values:

- ``TALEGRAPH_EXPORT_FORMAT``: default export format
- ``TALEGRAPH_SAVES_DIR``: save-game directory
- ``TALEGRAPH_LIBRARY_DIR``: story library directory
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from talegraph.export.base import DEFAULT_TITLE, ExportOptions
from talegraph.observability.logging import get_logger

log = get_logger(__name__)

CONFIG_FILENAME = "talegraph.yaml"
DEFAULT_EXPORT_FORMAT = "json"
DEFAULT_OUTPUT_DIR = Path("exports")
DEFAULT_SAVES_DIR = Path(".talegraph") / "saves"
DEFAULT_LIBRARY_DIR = Path(".talegraph") / "library"
DEFAULT_MAX_SAVES = 10
SUPPORTED_FORMATS = ("native", "json", "twee")


class ConfigError(Exception):
    """Raised when a configuration file exists but can't be used."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid configuration at {path}: {reason}")


@dataclass
class ExportConfig:
    """Default export settings."""

    format: str = DEFAULT_EXPORT_FORMAT
    include_metadata: bool = True
    minify: bool = False
    validate_before_export: bool = True
    output_dir: Path = DEFAULT_OUTPUT_DIR

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExportConfig:
        """Create config from dictionary.

        Raises:
            ValueError: If the format is not supported.
        """
        export_format = os.getenv("TALEGRAPH_EXPORT_FORMAT") or data.get(
            "format", DEFAULT_EXPORT_FORMAT
        )
        if export_format not in SUPPORTED_FORMATS:
            msg = f"unsupported export format '{export_format}'"
            raise ValueError(msg)
        return cls(
            format=export_format,
            include_metadata=bool(data.get("include_metadata", True)),
            minify=bool(data.get("minify", False)),
            validate_before_export=bool(data.get("validate_before_export", True)),
            output_dir=Path(data.get("output_dir", DEFAULT_OUTPUT_DIR)),
        )


@dataclass
class SavesConfig:
    """Where save games live and how many are kept."""

    directory: Path = DEFAULT_SAVES_DIR
    max_saves: int = DEFAULT_MAX_SAVES

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SavesConfig:
        directory = os.getenv("TALEGRAPH_SAVES_DIR") or data.get("directory", DEFAULT_SAVES_DIR)
        max_saves = int(data.get("max_saves", DEFAULT_MAX_SAVES))
        if max_saves < 1:
            msg = "max_saves must be at least 1"
            raise ValueError(msg)
        return cls(directory=Path(directory), max_saves=max_saves)


@dataclass
class LibraryConfig:
    """Where the story library lives."""

    directory: Path = DEFAULT_LIBRARY_DIR

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LibraryConfig:
        directory = os.getenv("TALEGRAPH_LIBRARY_DIR") or data.get("directory", DEFAULT_LIBRARY_DIR)
        return cls(directory=Path(directory))


@dataclass
class TalegraphConfig:
    """Top-level configuration."""

    title: str = DEFAULT_TITLE
    author: str | None = None
    export: ExportConfig = field(default_factory=ExportConfig)
    saves: SavesConfig = field(default_factory=SavesConfig)
    library: LibraryConfig = field(default_factory=LibraryConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TalegraphConfig:
        """Create config from dictionary.

        Args:
            data: Parsed YAML mapping.

        Returns:
            TalegraphConfig instance.
        """
        return cls(
            title=str(data.get("title", DEFAULT_TITLE)),
            author=data.get("author"),
            export=ExportConfig.from_dict(dict(data.get("export") or {})),
            saves=SavesConfig.from_dict(dict(data.get("saves") or {})),
            library=LibraryConfig.from_dict(dict(data.get("library") or {})),
        )

    def export_options(self, **overrides: Any) -> ExportOptions:
        """Build ExportOptions from the configured defaults.

        Keyword arguments whose value is None are ignored, so CLI flags
        that were not given leave the configured value alone.
        """
        values: dict[str, Any] = {
            "format": self.export.format,
            "include_metadata": self.export.include_metadata,
            "minify": self.export.minify,
            "validate_before_export": self.export.validate_before_export,
            "title": self.title,
            "author": self.author,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return ExportOptions(**values)


def load_config(path: Path | None = None) -> TalegraphConfig:
    """Load configuration from YAML.

    Args:
        path: Config file path. Defaults to ``./talegraph.yaml``.

    Returns:
        Loaded config, or defaults (plus environment overrides) if the file
        doesn't exist.

    Raises:
        ConfigError: If the file can't be read, parsed or validated.
    """
    config_path = path or Path(CONFIG_FILENAME)

    if not config_path.exists():
        log.debug("config_not_found", path=str(config_path))
        return TalegraphConfig.from_dict({})

    yaml = YAML(typ="safe")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)
    except OSError as e:
        raise ConfigError(config_path, str(e)) from e
    except YAMLError as e:
        raise ConfigError(config_path, f"YAML parse error: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(config_path, "top level must be a mapping")

    try:
        config = TalegraphConfig.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ConfigError(config_path, str(e)) from e

    log.debug("config_loaded", path=str(config_path))
    return config
