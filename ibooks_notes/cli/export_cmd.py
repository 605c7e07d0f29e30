"""Export command for ibooks-notes CLI."""

from __future__ import annotations

from pathlib import Path

import click

from ..config import ConfigError
from ..library import LibraryError
from ..services.export import (
    CONSOLE_FORMAT,
    ExportError,
    get_export_format_descriptions,
    resolve_export_target,
)
from ..services.export import (
    export_book as run_export,
)
from ._common import IbooksNotesCliError, get_app, get_config


@click.command(name="export")
@click.option(
    "-l",
    "--list-formats",
    "list_formats",
    is_flag=True,
    help="List available export formats and exit.",
)
@click.option(
    "-b",
    "--book-id",
    "--book_id",
    "book_id",
    type=str,
    required=False,
    metavar="BOOK_ID",
    help="Identifier of the book, as shown by 'books'.",
)
@click.option(
    "-o",
    "--output",
    "destination",
    type=click.Path(path_type=Path, file_okay=False),
    required=False,
    help="Output directory for Markdown files.",
)
@click.option(
    "-s",
    "--skip",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    help="Number of leading annotations to skip.",
)
@click.option(
    "-f",
    "--format",
    "export_format",
    type=str,
    required=False,
    metavar="FORMAT",
    help="Export format identifier.",
)
@click.pass_context
def export(
    ctx: click.Context,
    list_formats: bool,
    book_id: str | None,
    destination: Path | None,
    skip: int,
    export_format: str | None,
) -> None:
    """Export all notes and highlights from the book with BOOK_ID."""

    if list_formats:
        config = get_config(ctx)
        try:
            descriptions = get_export_format_descriptions(config)
        except (ConfigError, ExportError) as exc:
            raise IbooksNotesCliError(str(exc)) from exc

        if not descriptions:
            click.echo("No export formats are available.")
        else:
            click.echo("Available export formats:\n")
            for fmt, desc in descriptions:
                if desc:
                    click.echo(f"  - {fmt}: {desc}")
                else:
                    click.echo(f"  - {fmt}")
        ctx.exit(0)

    if book_id is None:
        raise IbooksNotesCliError("Missing option '--book-id'.")

    app = get_app(ctx)
    fmt, target = resolve_export_target(
        app.config, export_format=export_format, destination=destination
    )

    if target is not None and target.exists() and target.is_file():
        raise IbooksNotesCliError("Destination must be a directory path.")

    try:
        count = run_export(
            app.config,
            app.library,
            book_id=book_id,
            export_format=fmt,
            destination=target,
            skip=skip,
        )
    except (ConfigError, ExportError, LibraryError) as exc:
        raise IbooksNotesCliError(str(exc)) from exc

    if target is not None and fmt.lower() != CONSOLE_FORMAT:
        click.echo(f"Exported {count} annotations to {target}")


def register(cli: click.Group) -> None:
    """Register the command with the root CLI group."""

    cli.add_command(export)
