"""Build ExportContext from a conversion result."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from talegraph.export.base import ExportContext

if TYPE_CHECKING:
    from talegraph.export.base import ExportOptions
    from talegraph.graph.validation_types import ConversionResult


def build_export_context(
    result: ConversionResult,
    options: ExportOptions,
    now: datetime | None = None,
) -> ExportContext:
    """Collect what exporters need from a conversion.

    Args:
        result: Converted story.
        options: Export options supplying title, author and formatting.
        now: Export timestamp; defaults to the current UTC time.

    Returns:
        ExportContext sharing no mutable state with ``result``.
    """
    return ExportContext(
        story=[node.model_copy(deep=True) for node in result.story],
        start_node_id=result.start_node_id,
        exported_at=now or datetime.now(UTC),
        title=options.title,
        author=options.author,
        include_metadata=options.include_metadata,
        minify=options.minify,
        has_errors=result.has_errors,
    )
