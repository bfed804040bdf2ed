"""Export orchestration: validate, convert, render, report."""

from __future__ import annotations

from typing import TYPE_CHECKING

from talegraph.export.base import ExportError, ExportOptions, ExportResult, ExportStats
from talegraph.export.context import build_export_context
from talegraph.graph.converter import convert_graph
from talegraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from pathlib import Path

    from talegraph.graph.validation_types import ConversionResult
    from talegraph.models.editor import EditorEdge, EditorNode

log = get_logger(__name__)


def validate_for_export(
    nodes: Sequence[EditorNode],
    edges: Sequence[EditorEdge],
    result: ConversionResult,
) -> tuple[list[str], list[str]]:
    """Collect the diagnostics that decide whether an export may proceed.

    Adds to the conversion diagnostics the edges whose source node does not
    exist; the converter silently drops those because no node owns them.

    Args:
        nodes: Editor nodes.
        edges: Editor edges.
        result: Conversion of the same graph.

    Returns:
        Tuple of (errors, warnings).
    """
    errors = list(result.errors)
    warnings = list(result.warnings)

    node_ids = {n.id for n in nodes}
    for edge in edges:
        if edge.source not in node_ids:
            errors.append(f"edge {edge.id or '?'} has missing source: {edge.source}")

    return errors, warnings


def export_story(
    nodes: Sequence[EditorNode],
    edges: Sequence[EditorEdge],
    options: ExportOptions,
    now: datetime | None = None,
) -> ExportResult:
    """Convert an editor graph and render it in the requested format.

    With ``validate_before_export`` any error blocks the export. Without it
    the story is rendered anyway, except by formats that cannot represent a
    broken graph.

    Args:
        nodes: Editor nodes.
        edges: Editor edges.
        options: Format and rendering options.
        now: Export timestamp; defaults to the current UTC time.

    Returns:
        ExportResult; ``success`` is False when the export was blocked or failed.
    """
    from talegraph.export import get_exporter

    result = convert_graph(nodes, edges)
    errors, warnings = validate_for_export(nodes, edges, result)

    if options.validate_before_export and errors:
        log.info("export_blocked", format=options.format, errors=len(errors))
        return ExportResult(success=False, errors=errors, warnings=warnings)

    try:
        exporter = get_exporter(options.format)
        context = build_export_context(result, options, now=now)
        data = exporter.render(context)
        filename = exporter.filename(context)
    except (ExportError, ValueError) as e:
        log.warning("export_failed", format=options.format, error=str(e))
        return ExportResult(
            success=False,
            errors=[*errors, f"export failed: {e}"],
            warnings=warnings,
        )

    stats = ExportStats(
        total_nodes=len(result.story),
        total_choices=sum(len(node.choices) for node in result.story),
        file_size=len(data.encode("utf-8")),
    )
    log.info(
        "export_complete",
        format=options.format,
        nodes=stats.total_nodes,
        bytes=stats.file_size,
    )
    return ExportResult(
        success=True,
        data=data,
        filename=filename,
        errors=errors,
        warnings=warnings,
        stats=stats,
    )


def write_export(result: ExportResult, output_dir: Path) -> Path:
    """Write a successful export to disk.

    Args:
        result: A successful ExportResult.
        output_dir: Directory to write into; created if needed.

    Returns:
        Path to the written file.

    Raises:
        ExportError: If the result holds no data.
    """
    if not result.success or result.data is None:
        msg = "no export data to write"
        raise ExportError(msg)

    output_dir.mkdir(parents=True, exist_ok=True)
    output_file = output_dir / result.filename
    output_file.write_text(result.data, encoding="utf-8")
    return output_file


def get_export_preview(result: ExportResult, max_lines: int = 10) -> str:
    """First lines of an export, with a count of what was cut."""
    if not result.success or not result.data:
        return "No export data available"

    lines = result.data.split("\n")
    preview = "\n".join(lines[:max_lines])
    if len(lines) > max_lines:
        preview += f"\n... ({len(lines) - max_lines} more lines)"
    return preview
