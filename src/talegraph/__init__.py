"""talegraph: turn visual story-editor graphs into playable interactive fiction."""

from talegraph.graph import (
    ConversionResult,
    GraphValidationResult,
    StoryStats,
    convert_graph,
    generate_stats,
    validate_graph,
)
from talegraph.library import StoryLibrary
from talegraph.models import Choice, EditorEdge, EditorNode, StoryNode, StoryProject

__version__ = "0.1.0"

__all__ = [
    "Choice",
    "ConversionResult",
    "EditorEdge",
    "EditorNode",
    "GraphValidationResult",
    "StoryLibrary",
    "StoryNode",
    "StoryProject",
    "StoryStats",
    "__version__",
    "convert_graph",
    "generate_stats",
    "validate_graph",
]
