"""Result types shared by the validator, converter and integrity check."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from talegraph.graph.errors import StoryValidationError

if TYPE_CHECKING:
    from talegraph.models.story import StoryNode


@dataclass
class GraphValidationResult:
    """Outcome of structural validation of an editor graph.

    Attributes:
        errors: Fatal diagnostics; any entry makes the graph invalid.
        warnings: Advisory diagnostics; never affect validity.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class IntegrityReport:
    """Referential integrity and reachability findings on a converted story."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class ConversionResult:
    """The converted story graph plus every diagnostic gathered on the way.

    Attributes:
        story: Converted nodes, start node first.
        start_node_id: Id of the start node, or "" when validation failed.
        errors: Validator, per-node conversion and integrity errors, in that order.
        warnings: Validator and integrity warnings, in that order.
    """

    story: list[StoryNode] = field(default_factory=list)
    start_node_id: str = ""
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def summary(self) -> str:
        """Human-readable one-line summary."""
        parts = [f"{len(self.story)} nodes"]
        if self.errors:
            parts.append(f"{len(self.errors)} errors")
        if self.warnings:
            parts.append(f"{len(self.warnings)} warnings")
        return ", ".join(parts)

    def raise_for_errors(self) -> None:
        """Raise StoryValidationError if the result is not usable."""
        if self.errors:
            raise StoryValidationError(list(self.errors))

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready payload using the editor's field names."""
        return {
            "startNodeId": self.start_node_id,
            "story": [node.to_json_dict() for node in self.story],
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }
