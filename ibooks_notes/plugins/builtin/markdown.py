"""Built-in Markdown exporter: one consolidated file per book."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Iterable

from ...config import IbooksNotesConfig, InvalidConfigError
from ...exporters import ExportError, ensure_directory, write_text
from ...library import Annotation, BookDetail, Library
from ...render import (
    book_metadata,
    render_entry,
    render_front_matter,
    render_legend,
    render_vocabulary_entry,
    safe_filename,
)
from ...styles import HighlightStyle, classify
from .. import ExportContribution, hookimpl

logger = logging.getLogger(__name__)

PLUGIN_ID = "ibooks-notes-builtin-markdown"


@dataclass(frozen=True)
class MarkdownPluginConfig:
    """Resolved configuration data for the Markdown exporter plugin."""

    split_vocabulary: bool = True


def resolve_plugin_config(config: IbooksNotesConfig) -> MarkdownPluginConfig:
    raw_settings = config.plugins.get(PLUGIN_ID, {})
    split_vocabulary = raw_settings.get("split_vocabulary", True)
    if not isinstance(split_vocabulary, bool):
        raise InvalidConfigError(f"'{PLUGIN_ID}.split_vocabulary' must be a boolean")
    return MarkdownPluginConfig(split_vocabulary=split_vocabulary)


class MarkdownExporter:
    """Render a book's highlights into a single Markdown file.

    With ``split_vocabulary`` enabled, yellow highlights are collected in a
    separate vocabulary file together with the sentence they came from.
    """

    def __init__(self, *, split_vocabulary: bool = True) -> None:
        self.split_vocabulary = split_vocabulary

    def export(
        self,
        book: BookDetail,
        annotations: Iterable[Annotation],
        destination: Path,
    ) -> int:
        dest = ensure_directory(destination)
        basename = safe_filename(book.title or book.book_id)

        notes_parts = [
            render_front_matter(book_metadata(book)),
            f"# {book.title} - Highlights\n\n",
            render_legend(),
        ]
        vocabulary_parts = [
            render_front_matter(book_metadata(book, category="Vocabulary")),
            f"# {book.title} - Vocabulary\n\n",
        ]

        index = 1
        vocabulary_index = 1
        for annotation in annotations:
            style = classify(annotation.style, annotation.is_underline)
            if self.split_vocabulary and style is HighlightStyle.YELLOW:
                vocabulary_parts.append(
                    render_vocabulary_entry(vocabulary_index, annotation)
                )
                vocabulary_index += 1
                continue
            notes_parts.append(render_entry(index, annotation, style))
            index += 1

        write_text(dest / f"{basename}.md", "".join(notes_parts))
        if self.split_vocabulary:
            write_text(dest / f"{basename} - Vocabulary.md", "".join(vocabulary_parts))

        count = (index - 1) + (vocabulary_index - 1)
        logger.info("Exported %d annotations for '%s' to %s", count, book.title, dest)
        return count


def _export_markdown(
    *,
    library: Library,
    book: BookDetail,
    destination: Path | None,
    skip: int = 0,
    plugin_config: MarkdownPluginConfig,
) -> int:
    if destination is None:
        raise ExportError("Markdown export requires an output directory.")
    exporter = MarkdownExporter(split_vocabulary=plugin_config.split_vocabulary)
    return exporter.export(
        book, library.iter_annotations(book.book_id, skip=skip), destination
    )


@hookimpl
def export_formats(config: IbooksNotesConfig) -> tuple[ExportContribution, ...]:
    """Expose the built-in Markdown exporter as a plugin contribution."""

    contribution = ExportContribution(
        format_id="markdown",
        formatter=partial(_export_markdown, plugin_config=resolve_plugin_config(config)),
        description="Single Markdown file with labeled highlights",
    )
    return (contribution,)


__all__ = [
    "MarkdownExporter",
    "MarkdownPluginConfig",
    "PLUGIN_ID",
    "export_formats",
    "resolve_plugin_config",
]
