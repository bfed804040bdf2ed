"""talegraph CLI - typer application entry point."""

from __future__ import annotations

import atexit
import json
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from talegraph.observability import (
    bind_log_context,
    clear_log_context,
    close_file_logging,
    configure_logging,
    get_logger,
    log_file_for,
)

# Load environment variables from .env file
load_dotenv()

if TYPE_CHECKING:
    from talegraph.config import TalegraphConfig
    from talegraph.graph import ConversionResult
    from talegraph.library import StoryLibrary
    from talegraph.models import StoryProject
    from talegraph.persistence import SaveManager
    from talegraph.player import PlaySession

app = typer.Typer(
    name="talegraph",
    help="talegraph: convert story-editor graphs into playable interactive fiction.",
    no_args_is_help=True,
)
console = Console()

# Global state for logging/config flags (set by callback, used by commands)
_verbose: int = 0
_log_enabled: bool = False
_config_path: Path | None = None

ProjectArg = Annotated[
    Path,
    typer.Argument(help="Editor project file (JSON)."),
]


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log: Annotated[
        bool,
        typer.Option(
            "--log",
            help="Append JSONL event logs to logs/talegraph.jsonl next to the project file.",
        ),
    ] = False,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Configuration file (default: ./talegraph.yaml).",
            envvar="TALEGRAPH_CONFIG",
        ),
    ] = None,
) -> None:
    """talegraph: convert story-editor graphs into playable interactive fiction."""
    global _verbose, _log_enabled, _config_path
    _verbose = verbose
    _log_enabled = log
    _config_path = config

    # Console logging only; file logging is set up once a project is known
    configure_logging(verbosity=verbose)
    clear_log_context()
    bind_log_context(command=ctx.invoked_subcommand)


def _configure_project_logging(project_file: Path) -> None:
    """Configure file logging if --log flag was set.

    Args:
        project_file: Project file; logs go to a directory beside it.
    """
    bind_log_context(project=str(project_file))
    if _log_enabled:
        configure_logging(verbosity=_verbose, log_file=log_file_for(project_file))
        atexit.register(close_file_logging)


def _load_config() -> TalegraphConfig:
    from talegraph.config import ConfigError, load_config

    try:
        return load_config(_config_path)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None


def _load_project(project_file: Path) -> StoryProject:
    """Load a project file or exit with an error message."""
    from talegraph.project import ProjectLoadError, load_project

    try:
        project = load_project(project_file)
    except ProjectLoadError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    _configure_project_logging(project_file)
    return project


def _convert(project: StoryProject) -> ConversionResult:
    from talegraph.graph import convert_graph

    return convert_graph(project.nodes, project.edges)


def _print_diagnostics(errors: list[str], warnings: list[str]) -> None:
    for error in errors:
        console.print(f"  [red]✗[/red] {escape(error)}")
    for warning in warnings:
        console.print(f"  [yellow]![/yellow] {escape(warning)}")


def _write_or_echo(text: str, output: Path | None) -> None:
    if output is None:
        typer.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    console.print(f"[green]✓[/green] Wrote [bold]{output}[/bold]")


# =============================================================================
# Commands
# =============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from talegraph import __version__

    console.print(f"talegraph v{__version__}")


@app.command()
def validate(project_file: ProjectArg) -> None:
    """Check an editor graph for structural and reference problems."""
    project = _load_project(project_file)
    result = _convert(project)

    _print_diagnostics(result.errors, result.warnings)
    if result.has_errors:
        console.print(f"[red]✗[/red] {result.summary}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Graph is valid ({result.summary})")


@app.command()
def convert(
    project_file: ProjectArg,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the conversion result here instead of stdout."),
    ] = None,
) -> None:
    """Convert an editor graph to a story graph (JSON)."""
    log = get_logger(__name__)

    project = _load_project(project_file)
    result = _convert(project)
    log.info("convert_command", project=str(project_file), nodes=len(result.story))

    if result.has_errors:
        _print_diagnostics(result.errors, result.warnings)
        raise typer.Exit(1)

    _write_or_echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False), output)
    if output is not None:
        _print_diagnostics([], result.warnings)


@app.command()
def stats(project_file: ProjectArg) -> None:
    """Show statistics for a converted story."""
    from talegraph.graph import generate_stats

    project = _load_project(project_file)
    result = _convert(project)
    story_stats = generate_stats(result)

    table = Table(title=f"Story Statistics: {project.name or project_file.stem}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="bold")

    table.add_row("Nodes", str(story_stats.total_nodes))
    table.add_row("Choices", str(story_stats.total_choices))
    table.add_row("Choices per node", story_stats.average_choices_per_node)
    table.add_row("End nodes", str(story_stats.end_nodes))
    table.add_row("Max depth", str(story_stats.max_depth))
    table.add_row("Errors", "[red]yes[/red]" if story_stats.has_errors else "[green]no[/green]")
    table.add_row("Warnings", "[yellow]yes[/yellow]" if story_stats.has_warnings else "no")

    console.print()
    console.print(table)
    console.print()

    if result.has_errors:
        _print_diagnostics(result.errors, result.warnings)
        raise typer.Exit(1)


@app.command()
def export(
    project_file: ProjectArg,
    export_format: Annotated[
        str | None,
        typer.Option("--format", "-f", help="Export format: native, json or twee."),
    ] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option("--output-dir", "-o", help="Directory for the exported file."),
    ] = None,
    minify: Annotated[
        bool,
        typer.Option("--minify", help="Compact JSON output."),
    ] = False,
    no_metadata: Annotated[
        bool,
        typer.Option("--no-metadata", help="Omit title, author and timestamps."),
    ] = False,
    no_validate: Annotated[
        bool,
        typer.Option("--no-validate", help="Export even if the graph has errors."),
    ] = False,
) -> None:
    """Export a story to a file.

    Defaults come from talegraph.yaml; flags override them.

    Examples:
        talegraph export story.json --format twee
        talegraph export story.json -f native -o build/ --minify
    """
    from talegraph.export import ExportError, export_story, write_export
    from talegraph.export.base import DEFAULT_TITLE

    log = get_logger(__name__)

    config = _load_config()
    project = _load_project(project_file)

    options = config.export_options(
        format=export_format,
        minify=True if minify else None,
        include_metadata=False if no_metadata else None,
        validate_before_export=False if no_validate else None,
        title=project.name if config.title == DEFAULT_TITLE and project.name else None,
        author=None if config.author else project.metadata.author,
    )

    result = export_story(project.nodes, project.edges, options)
    if not result.success:
        console.print(f"[red]✗[/red] Export to {options.format} failed")
        _print_diagnostics(result.errors, result.warnings)
        raise typer.Exit(1)

    try:
        output_file = write_export(result, output_dir or config.export.output_dir)
    except (ExportError, OSError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    log.info("export_command", format=options.format, path=str(output_file))
    console.print(f"[green]✓[/green] Exported to [bold]{output_file}[/bold]")
    console.print(
        f"  [dim]{result.stats.total_nodes} nodes, "
        f"{result.stats.total_choices} choices, {result.stats.file_size} bytes[/dim]"
    )
    _print_diagnostics(result.errors, result.warnings)


@app.command()
def migrate(
    legacy_file: Annotated[
        Path,
        typer.Argument(help="Story in the native numeric format (JSON)."),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the migrated story here instead of stdout."),
    ] = None,
) -> None:
    """Convert a native-format story back into story nodes."""
    from talegraph.migration import load_native_payload, migrate_story_data

    try:
        payload = load_native_payload(json.loads(legacy_file.read_text(encoding="utf-8")))
        nodes = migrate_story_data(payload)
    except OSError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Error:[/red] Invalid native story: {escape(str(e))}")
        raise typer.Exit(1) from None

    data = [node.to_json_dict() for node in nodes]
    _write_or_echo(json.dumps(data, indent=2, ensure_ascii=False), output)


def _render_node(session: PlaySession) -> None:
    from talegraph.export.twee_exporter import clean_content

    node = session.current_node
    console.print()
    console.print(
        Panel(
            Text(clean_content(node.content) or "..."),
            title=escape(node.title or node.id),
            border_style="cyan",
        )
    )
    for index, choice in enumerate(session.available_choices, start=1):
        console.print(f"  [bold]{index}.[/bold] {escape(choice.text)}")
    if not session.available_choices:
        console.print("  [dim]The End.[/dim]")
    console.print("  [dim]r: restart  s: save  q: quit[/dim]")


def _play_loop(session: PlaySession, saves: SaveManager) -> None:
    """Read commands until the player quits."""
    while True:
        _render_node(session)
        answer = typer.prompt("Choose").strip().lower()

        if answer == "q":
            console.print("[dim]Goodbye.[/dim]")
            return
        if answer == "r":
            session.restart()
            continue
        if answer == "s":
            name = typer.prompt("Save name", default="", show_default=False)
            save_id = saves.save_game(name, session.state)
            console.print(f"[green]✓[/green] Saved as [bold]{save_id}[/bold]")
            continue

        choices = session.available_choices
        if answer.isdigit() and 1 <= int(answer) <= len(choices):
            session.choose(choices[int(answer) - 1].id)
            continue

        console.print(f"[red]Invalid choice:[/red] {escape(answer)}")


@app.command()
def play(
    project_file: ProjectArg,
    resume: Annotated[
        str | None,
        typer.Option("--resume", help="Resume from a save id."),
    ] = None,
) -> None:
    """Play a story in the terminal."""
    from talegraph.graph import NodeNotFoundError
    from talegraph.persistence import JsonFileSaveStore, SaveManager
    from talegraph.player import PlaySession, StoryLoader

    config = _load_config()
    project = _load_project(project_file)
    result = _convert(project)
    if result.has_errors:
        console.print("[red]✗[/red] The story has errors and can't be played")
        _print_diagnostics(result.errors, result.warnings)
        raise typer.Exit(1)

    loader = StoryLoader.from_conversion(result)
    saves = SaveManager(JsonFileSaveStore(config.saves.directory), config.saves.max_saves)

    state = None
    if resume is not None:
        save = saves.load_save(resume)
        if save is None:
            console.print(f"[red]Error:[/red] No save named '{escape(resume)}'")
            raise typer.Exit(1)
        state = save.game_state

    try:
        session = PlaySession(loader, state)
    except NodeNotFoundError as e:
        console.print(f"[red]Error:[/red] Save doesn't match this story: {escape(str(e))}")
        raise typer.Exit(1) from None

    _play_loop(session, saves)


def _open_library() -> StoryLibrary:
    from talegraph.library import StoryLibrary
    from talegraph.persistence import JsonFileSaveStore

    return StoryLibrary(JsonFileSaveStore(_load_config().library.directory))


@app.command()
def add(
    project_file: ProjectArg,
    title: Annotated[
        str | None,
        typer.Option("--title", "-t", help="Library title (default: project name)."),
    ] = None,
    description: Annotated[str | None, typer.Option("--description", "-d")] = None,
    author: Annotated[str | None, typer.Option("--author", "-a")] = None,
) -> None:
    """Add a project to the story library as an unpublished draft."""
    from talegraph.graph import StoryValidationError

    library = _open_library()
    project = _load_project(project_file)
    try:
        story_id = library.create_story_from_editor(
            title or project.name or project_file.stem,
            description if description is not None else project.description,
            author or project.metadata.author or "",
            project.nodes,
            project.edges,
        )
    except StoryValidationError as e:
        console.print("[red]✗[/red] The story has errors and can't be added")
        _print_diagnostics(e.errors, [])
        raise typer.Exit(1) from None

    console.print(f"[green]✓[/green] Added to library as [cyan]{story_id}[/cyan]")


@app.command("library")
def library_list(
    published: Annotated[
        bool,
        typer.Option("--published", help="Only show published stories."),
    ] = False,
) -> None:
    """List stories in the library."""
    library = _open_library()
    entries = library.published_stories() if published else library.list_stories()
    if not entries:
        console.print("[dim]The library is empty.[/dim]")
        return

    table = Table(title="Story Library")
    table.add_column("Id", style="cyan")
    table.add_column("Title", style="bold")
    table.add_column("Nodes", justify="right")
    table.add_column("Difficulty")
    table.add_column("Play time")
    table.add_column("Published")
    for entry in entries:
        table.add_row(
            entry.id,
            entry.title,
            str(entry.total_nodes),
            entry.difficulty,
            entry.estimated_play_time,
            "yes" if entry.published else "no",
        )
    console.print(table)


@app.command()
def publish(story_id: Annotated[str, typer.Argument(help="Library story id.")]) -> None:
    """Publish a library story, or unpublish it if it is already published."""
    from talegraph.library import LibraryError

    try:
        published = _open_library().toggle_publication(story_id)
    except LibraryError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    state = "published" if published else "unpublished"
    console.print(f"[green]✓[/green] {escape(story_id)} is now {state}")


@app.command()
def formats() -> None:
    """List supported export formats."""
    from talegraph.export import get_supported_formats

    table = Table(title="Export Formats")
    table.add_column("Format", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Extension", style="dim")
    table.add_column("Description")
    for fmt in get_supported_formats():
        table.add_row(fmt["id"], fmt["name"], fmt["extension"], fmt["description"])
    console.print(table)


if __name__ == "__main__":
    app()
