"""Built-in per-color exporter: one Markdown file per highlight category."""

from __future__ import annotations

import logging
from contextlib import ExitStack
from pathlib import Path
from typing import Iterable, TextIO

from ...config import IbooksNotesConfig
from ...exporters import ExportError, ensure_directory
from ...library import Annotation, BookDetail, Library
from ...render import book_metadata, render_entry, render_front_matter, safe_filename
from ...styles import HighlightStyle, classify
from .. import ExportContribution, hookimpl

logger = logging.getLogger(__name__)


def category_filename(book: BookDetail, style: HighlightStyle) -> str:
    return f"{safe_filename(book.title or book.book_id)} - {style.category}.md"


class ColorFilesExporter:
    """Write each highlight to ``<title> - <category>.md``.

    Files are opened the first time a category shows up and are all closed
    when the export finishes or fails.
    """

    def export(
        self,
        book: BookDetail,
        annotations: Iterable[Annotation],
        destination: Path,
    ) -> int:
        dest = ensure_directory(destination)

        count = 0
        with ExitStack() as stack:
            handles: dict[HighlightStyle, TextIO] = {}
            counters: dict[HighlightStyle, int] = {}
            try:
                for annotation in annotations:
                    style = classify(annotation.style, annotation.is_underline)
                    handle = handles.get(style)
                    if handle is None:
                        handle = self._open(stack, dest / category_filename(book, style))
                        handle.write(
                            render_front_matter(
                                book_metadata(book, category=style.category)
                            )
                        )
                        handle.write(f"# {book.title} - {style.category}\n\n")
                        handles[style] = handle

                    counters[style] = counters.get(style, 0) + 1
                    handle.write(render_entry(counters[style], annotation, style))
                    count += 1
            except OSError as exc:
                raise ExportError(f"Failed to write color files: {exc}") from exc

        logger.info(
            "Exported %d annotations for '%s' into %d files",
            count,
            book.title,
            len(handles),
        )
        return count

    @staticmethod
    def _open(stack: ExitStack, path: Path) -> TextIO:
        handle = stack.enter_context(path.open("w", encoding="utf-8"))
        logger.debug("Opened %s", path)
        return handle


def _export_colors(
    *,
    library: Library,
    book: BookDetail,
    destination: Path | None,
    skip: int = 0,
) -> int:
    if destination is None:
        raise ExportError("Per-color export requires an output directory.")
    return ColorFilesExporter().export(
        book, library.iter_annotations(book.book_id, skip=skip), destination
    )


@hookimpl
def export_formats(config: IbooksNotesConfig) -> tuple[ExportContribution, ...]:
    """Expose the per-color exporter as a plugin contribution."""

    _ = config  # no settings yet
    contribution = ExportContribution(
        format_id="colors",
        formatter=_export_colors,
        description="One Markdown file per highlight color",
    )
    return (contribution,)


__all__ = ["ColorFilesExporter", "category_filename", "export_formats"]
