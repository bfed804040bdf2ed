"""Story graph error types.

Conversion never raises these across its public boundary: the converter
renders them into its ``errors`` list. The player and exporters raise
them when asked to operate on a graph that cannot support the request.

Each error formats its own message so the diagnostic wording lives in
one place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from difflib import get_close_matches


class StoryGraphError(Exception):
    """Base class for story graph failures."""


@dataclass
class NodeConversionError(StoryGraphError):
    """Raised when a single editor node cannot be converted.

    Fatal to that node only; the converter records it and moves on.

    Attributes:
        node_id: The editor node that failed.
        reason: What was wrong with it.
    """

    node_id: str
    reason: str

    def __post_init__(self) -> None:
        super().__init__(f"error converting node {self.node_id}: {self.reason}")


@dataclass
class DanglingReferenceError(StoryGraphError):
    """A choice points at a node id absent from the story graph.

    Attributes:
        choice_text: Label of the offending choice.
        node_title: Title of the node owning the choice.
        node_id: Id of the node owning the choice.
        target_id: The missing target.
        available: Node ids that do exist, used for suggestions.
    """

    choice_text: str
    node_title: str
    node_id: str
    target_id: str
    available: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__init__(
            f"choice '{self.choice_text}' in node '{self.node_title}' ({self.node_id}) "
            f"references nonexistent node: {self.target_id}"
        )

    def suggestions(self) -> list[str]:
        """Find existing ids that look like typos of the target."""
        return get_close_matches(self.target_id, self.available, n=3, cutoff=0.6)

    def to_feedback(self) -> str:
        """Format as a multi-line message for authors."""
        lines = [str(self)]
        suggestions = self.suggestions()
        if suggestions:
            lines.append("Did you mean: " + ", ".join(f"'{s}'" for s in suggestions) + "?")
        return "\n".join(lines)


@dataclass
class NodeNotFoundError(StoryGraphError):
    """Raised when looking up a node id that is not in the story.

    Attributes:
        node_id: The id that was requested.
        available: Valid ids, used for suggestions.
        context: Where the lookup happened.
    """

    node_id: str
    available: list[str] = field(default_factory=list)
    context: str = ""

    def __post_init__(self) -> None:
        msg = f"Node '{self.node_id}' not found"
        if self.context:
            msg += f" ({self.context})"
        matches = get_close_matches(self.node_id, self.available, n=3, cutoff=0.6)
        if matches:
            msg += "; did you mean " + ", ".join(f"'{m}'" for m in matches) + "?"
        super().__init__(msg)


@dataclass
class ChoiceNotFoundError(StoryGraphError):
    """Raised when a choice id is not offered by the given node."""

    node_id: str
    choice_id: str
    available: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        msg = f"Choice '{self.choice_id}' not found in node '{self.node_id}'"
        if self.available:
            msg += " (available: " + ", ".join(self.available) + ")"
        super().__init__(msg)


@dataclass
class StoryValidationError(StoryGraphError):
    """Raised when a caller needs a usable story but conversion reported errors.

    Attributes:
        errors: The fatal diagnostics.
    """

    errors: list[str]

    def __post_init__(self) -> None:
        super().__init__(f"Story has {len(self.errors)} error(s)")

    def __str__(self) -> str:
        lines = [f"Story has {len(self.errors)} error(s):"]
        for e in self.errors[:5]:
            lines.append(f"  - {e}")
        if len(self.errors) > 5:
            lines.append(f"  - ... and {len(self.errors) - 5} more")
        return "\n".join(lines)
