"""Built-in console exporter printing color-coded Markdown to stdout."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import click

from ...config import IbooksNotesConfig
from ...library import Annotation, BookDetail, Library
from ...render import render_entry
from ...styles import classify
from .. import ExportContribution, hookimpl


class ConsoleExporter:
    """Echo highlights with their label wrapped in an HTML color span."""

    def export(self, book: BookDetail, annotations: Iterable[Annotation]) -> int:
        click.echo(f"# {book.title}\n")
        count = 0
        for count, annotation in enumerate(annotations, start=1):
            style = classify(annotation.style, annotation.is_underline)
            click.echo(render_entry(count, annotation, style, colored=True), nl=False)
        return count


def _export_console(
    *,
    library: Library,
    book: BookDetail,
    destination: Path | None,
    skip: int = 0,
) -> int:
    _ = destination  # output always goes to stdout
    return ConsoleExporter().export(
        book, library.iter_annotations(book.book_id, skip=skip)
    )


@hookimpl
def export_formats(config: IbooksNotesConfig) -> tuple[ExportContribution, ...]:
    """Expose the console exporter as a plugin contribution."""

    _ = config
    contribution = ExportContribution(
        format_id="console",
        formatter=_export_console,
        description="Color-coded Markdown printed to standard output",
        needs_destination=False,
    )
    return (contribution,)


__all__ = ["ConsoleExporter", "export_formats"]
