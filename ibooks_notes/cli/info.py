"""Info command for ibooks-notes CLI."""

from __future__ import annotations

import click

from ..config import IbooksNotesConfig
from ..library import Library, LibraryError
from ._common import IbooksNotesCliError, get_app


@click.command(name="info")
@click.pass_context
def info(ctx: click.Context) -> None:
    """Display the Apple Books databases in use and the configuration."""

    app = get_app(ctx)
    config: IbooksNotesConfig = app.config
    library: Library = app.library

    try:
        total_books = library.count_books()
    except LibraryError as exc:
        raise IbooksNotesCliError(str(exc)) from exc

    click.echo("Apple Books library info:\n")
    click.echo(f"  Library database    : {library.library_path}")
    click.echo(f"  Annotation database : {library.annotation_path}")
    click.echo(f"  Books with notes    : {total_books}")
    click.echo("\nConfiguration:\n")
    click.echo(_format_config(config))


def _format_config(config: IbooksNotesConfig) -> str:
    def quote(value: object | None) -> str:
        if value is None:
            return '""'
        text = str(value)
        return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'

    lines = [
        f"# source: {config.source_path or '(defaults)'}",
        "[ibooks_notes]",
        f"data_dir = {quote(config.data_dir)}",
        f"library_db = {quote(config.library_db)}",
        f"annotation_db = {quote(config.annotation_db)}",
        f"output_dir = {quote(config.output_dir)}",
        f"export_format = {quote(config.export_format)}",
    ]
    return "\n".join(lines)


def register(cli: click.Group) -> None:
    """Register the command with the root CLI group."""

    cli.add_command(info)
