"""Graph package - editor graph validation and story graph conversion.

Data flows one way: editor graph -> validate -> convert -> integrity
check -> ordered story nodes, start node id and diagnostics.
"""

from talegraph.graph.algorithms import (
    compute_max_depth,
    find_reachable,
    sort_story_nodes,
    verify_story_integrity,
)
from talegraph.graph.converter import RESTART_CHOICE_TEXT, convert_graph, convert_node
from talegraph.graph.errors import (
    ChoiceNotFoundError,
    DanglingReferenceError,
    NodeConversionError,
    NodeNotFoundError,
    StoryGraphError,
    StoryValidationError,
)
from talegraph.graph.stats import StoryStats, generate_stats
from talegraph.graph.validation_types import (
    ConversionResult,
    GraphValidationResult,
    IntegrityReport,
)
from talegraph.graph.validator import validate_graph

__all__ = [
    "RESTART_CHOICE_TEXT",
    "ChoiceNotFoundError",
    "ConversionResult",
    "DanglingReferenceError",
    "GraphValidationResult",
    "IntegrityReport",
    "NodeConversionError",
    "NodeNotFoundError",
    "StoryGraphError",
    "StoryStats",
    "StoryValidationError",
    "compute_max_depth",
    "convert_graph",
    "convert_node",
    "find_reachable",
    "generate_stats",
    "sort_story_nodes",
    "validate_graph",
    "verify_story_integrity",
]
