"""Editor project file reading and writing.

Project files are the JSON documents the visual editor saves: the node
and edge lists plus descriptive metadata.
"""

from __future__ import annotations

from pathlib import Path  # noqa: TC003 - used at runtime

from pydantic import ValidationError

from talegraph.models.editor import StoryProject
from talegraph.observability.logging import get_logger

log = get_logger(__name__)


class ProjectLoadError(Exception):
    """Raised when a project file can't be read or parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load project at {path}: {reason}")


class ProjectWriteError(Exception):
    """Raised when a project file can't be written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write project at {path}: {reason}")


def load_project(path: Path) -> StoryProject:
    """Load an editor project file.

    Args:
        path: Path to the project JSON file.

    Returns:
        Parsed StoryProject.

    Raises:
        ProjectLoadError: If the file is missing, unreadable or malformed.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ProjectLoadError(path, str(e)) from e

    try:
        project = StoryProject.model_validate_json(text)
    except ValidationError as e:
        raise ProjectLoadError(path, f"{e.error_count()} validation error(s): {e}") from e

    log.debug("project_loaded", path=str(path), nodes=len(project.nodes), edges=len(project.edges))
    return project


def save_project(project: StoryProject, path: Path) -> Path:
    """Write an editor project file.

    Args:
        project: Project to write.
        path: Destination file; parent directories are created.

    Returns:
        The written path.

    Raises:
        ProjectWriteError: If the file can't be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            project.model_dump_json(by_alias=True, exclude_none=True, indent=2),
            encoding="utf-8",
        )
    except OSError as e:
        raise ProjectWriteError(path, str(e)) from e
    return path
