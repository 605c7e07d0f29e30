"""Books command for ibooks-notes CLI."""

from __future__ import annotations

import click

from ..library import Library, LibraryError
from ..utils.names import last_names, truncate_title
from ._common import IbooksNotesCliError, get_app


@click.command(name="books")
@click.pass_context
def books(ctx: click.Context) -> None:
    """Get list of the books with notes and highlights."""

    app = get_app(ctx)
    library: Library = app.library

    try:
        summaries = library.list_books()
    except LibraryError as exc:
        raise IbooksNotesCliError(str(exc)) from exc

    rows = [
        (
            summary.book_id,
            str(summary.highlight_count),
            f"{truncate_title(summary.title)} {last_names(summary.author)}".strip(),
        )
        for summary in summaries
    ]
    header = ("Book ID", "# notes", "Title and Author")
    id_width = max([len(header[0])] + [len(row[0]) for row in rows])
    count_width = max([len(header[1])] + [len(row[1]) for row in rows])

    click.echo(f"{header[0]:<{id_width}}  {header[1]:>{count_width}}  {header[2]}")
    for book_id, count, label in rows:
        click.echo(f"{book_id:<{id_width}}  {count:>{count_width}}  {label}")


def register(cli: click.Group) -> None:
    """Register the command with the root CLI group."""

    cli.add_command(books)
