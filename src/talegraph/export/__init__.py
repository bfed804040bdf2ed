"""Export format handlers (native JSON, generic JSON, Twee)."""

from __future__ import annotations

from talegraph.export.base import (
    ExportContext,
    Exporter,
    ExportError,
    ExportFormat,
    ExportOptions,
    ExportResult,
    ExportStats,
)
from talegraph.export.context import build_export_context
from talegraph.export.json_exporter import JsonExporter
from talegraph.export.native_exporter import NativeExporter
from talegraph.export.service import (
    export_story,
    get_export_preview,
    validate_for_export,
    write_export,
)
from talegraph.export.twee_exporter import TweeExporter

_EXPORTERS: dict[str, type[NativeExporter | JsonExporter | TweeExporter]] = {
    "native": NativeExporter,
    "json": JsonExporter,
    "twee": TweeExporter,
}


def get_exporter(format_name: str) -> NativeExporter | JsonExporter | TweeExporter:
    """Get an exporter instance by format name.

    Args:
        format_name: Export format (e.g., "json", "twee", "native").

    Returns:
        Exporter instance.

    Raises:
        ValueError: If the format is not supported.
    """
    cls = _EXPORTERS.get(format_name)
    if cls is None:
        supported = ", ".join(sorted(_EXPORTERS))
        msg = f"Unknown export format '{format_name}'. Supported: {supported}"
        raise ValueError(msg)
    return cls()


def get_supported_formats() -> list[dict[str, str]]:
    """Describe every supported export format."""
    return [
        {
            "id": cls.format_name,
            "name": cls.display_name,
            "description": cls.description,
            "extension": cls.extension,
        }
        for cls in _EXPORTERS.values()
    ]


__all__ = [
    "ExportContext",
    "ExportError",
    "ExportFormat",
    "ExportOptions",
    "ExportResult",
    "ExportStats",
    "Exporter",
    "JsonExporter",
    "NativeExporter",
    "TweeExporter",
    "build_export_context",
    "export_story",
    "get_export_preview",
    "get_exporter",
    "get_supported_formats",
    "validate_for_export",
    "write_export",
]
