"""Summary statistics for converted stories."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from talegraph.graph.algorithms import compute_max_depth

if TYPE_CHECKING:
    from talegraph.graph.validation_types import ConversionResult


@dataclass(frozen=True)
class StoryStats:
    """Derived metrics of a converted story.

    Attributes:
        total_nodes: Number of story nodes.
        total_choices: Number of choices across all nodes.
        average_choices_per_node: Mean choices per node, two decimals.
        end_nodes: Nodes with no choices or only a single restart choice.
        max_depth: Longest simple path from the start, in choices.
        has_errors: Whether the conversion reported errors.
        has_warnings: Whether the conversion reported warnings.
    """

    total_nodes: int
    total_choices: int
    average_choices_per_node: str
    end_nodes: int
    max_depth: int
    has_errors: bool
    has_warnings: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def generate_stats(result: ConversionResult) -> StoryStats:
    """Compute statistics for a conversion result.

    Args:
        result: Output of :func:`talegraph.graph.converter.convert_graph`.

    Returns:
        StoryStats for ``result.story``.
    """
    story = result.story
    total_choices = sum(len(node.choices) for node in story)
    average = total_choices / len(story) if story else 0.0

    return StoryStats(
        total_nodes=len(story),
        total_choices=total_choices,
        average_choices_per_node=f"{average:.2f}",
        end_nodes=sum(1 for node in story if node.is_end_like),
        max_depth=compute_max_depth(story, result.start_node_id),
        has_errors=result.has_errors,
        has_warnings=result.has_warnings,
    )
