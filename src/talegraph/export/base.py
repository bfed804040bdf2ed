"""Export data models and Exporter protocol.

Defines the intermediate representation (ExportContext) that all exporters
consume, the options and result types of an export run, and the Exporter
protocol every format implements.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Protocol

if TYPE_CHECKING:
    from datetime import datetime

    from talegraph.models.story import StoryNode

ExportFormat = Literal["native", "json", "twee"]

DEFAULT_TITLE = "Interactive Story"


class ExportError(Exception):
    """Raised by an exporter that cannot render the given story."""


@dataclass
class ExportOptions:
    """How a story should be exported.

    Attributes:
        format: Target format name.
        include_metadata: Emit title/author/timestamps alongside the story.
        minify: Compact output for JSON formats.
        validate_before_export: Block the export when the graph has errors.
        title: Story title written into metadata.
        author: Optional author written into metadata.
    """

    format: ExportFormat = "json"
    include_metadata: bool = True
    minify: bool = False
    validate_before_export: bool = True
    title: str = DEFAULT_TITLE
    author: str | None = None


@dataclass
class ExportContext:
    """All data needed by exporters, taken from a conversion result."""

    story: list[StoryNode]
    start_node_id: str
    exported_at: datetime
    title: str = DEFAULT_TITLE
    author: str | None = None
    include_metadata: bool = True
    minify: bool = False
    has_errors: bool = False

    @property
    def timestamp_slug(self) -> str:
        """Filesystem-safe timestamp used in export filenames."""
        return self.exported_at.strftime("%Y-%m-%dT%H-%M-%S")


@dataclass
class ExportStats:
    total_nodes: int = 0
    total_choices: int = 0
    file_size: int = 0


@dataclass
class ExportResult:
    """Outcome of an export run.

    Attributes:
        success: True when ``data`` holds the rendered story.
        data: Rendered file content.
        filename: Suggested file name for ``data``.
        errors: Blocking diagnostics.
        warnings: Advisory diagnostics.
        stats: Size figures of the export.
    """

    success: bool
    data: str | None = None
    filename: str = ""
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    stats: ExportStats = field(default_factory=ExportStats)


class Exporter(Protocol):
    """Protocol for story export format handlers."""

    format_name: str
    display_name: str
    description: str
    extension: str

    def render(self, context: ExportContext) -> str:
        """Render the story as file content.

        Args:
            context: Extracted story data.

        Returns:
            The complete file content.

        Raises:
            ExportError: If the story cannot be expressed in this format.
        """
        ...

    def filename(self, context: ExportContext) -> str:
        """Suggested file name for the rendered content."""
        ...
