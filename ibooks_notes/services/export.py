"""Export services for ibooks-notes."""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import IbooksNotesConfig
from ..exporters import ExportError
from ..library import Library, LibraryError
from ..plugins import (
    ExportContribution,
    PluginRegistrationError,
    load_export_contributions,
    reset_plugin_manager_cache,
)

logger = logging.getLogger(__name__)

CONSOLE_FORMAT = "console"
DEFAULT_FILE_FORMAT = "markdown"


def clear_export_registry_cache() -> None:
    """Reset cached exporter discovery (primarily for testing)."""

    reset_plugin_manager_cache()


def _load_export_registry(config: IbooksNotesConfig) -> dict[str, ExportContribution]:
    try:
        return load_export_contributions(config)
    except PluginRegistrationError as exc:
        raise ExportError(str(exc)) from exc


def get_export_format_descriptions(
    config: IbooksNotesConfig,
) -> list[tuple[str, str]]:
    """Return tuples of ``(format_id, description)`` for available exporters."""

    registry = _load_export_registry(config)
    return sorted(
        ((fmt, contrib.description) for fmt, contrib in registry.items()),
        key=lambda item: item[0],
    )


def resolve_export_target(
    config: IbooksNotesConfig,
    *,
    export_format: str | None,
    destination: Path | None,
) -> tuple[str, Path | None]:
    """Fill in the export format and destination from configuration.

    Without any destination the output goes to the console; with one the
    consolidated Markdown file is the default.
    """

    target = destination if destination is not None else config.output_dir
    fmt = export_format or config.export_format
    if fmt is None:
        fmt = DEFAULT_FILE_FORMAT if target is not None else CONSOLE_FORMAT
    return fmt, target


def export_book(
    config: IbooksNotesConfig,
    library: Library,
    *,
    book_id: str,
    export_format: str,
    destination: Path | None,
    skip: int = 0,
) -> int:
    """Export the annotations of ``book_id`` with the given format.

    The book is looked up before any output is produced, so an unknown
    identifier never creates files or directories.
    """

    formats = _load_export_registry(config)
    format_lower = export_format.lower()

    contribution = formats.get(format_lower)
    if contribution is None:
        available = ", ".join(sorted(formats))
        if available:
            raise ExportError(
                f"Unknown export format: {export_format}. Available: {available}."
            )
        raise ExportError("No export plugins are available.")

    if contribution.needs_destination and destination is None:
        raise ExportError(
            f"Export format '{contribution.format_id}' requires an output directory."
        )

    if skip < 0:
        raise ExportError("Skip count must be a non-negative integer.")

    book = library.fetch_book(book_id)
    logger.debug(
        "Exporting '%s' (%s) as %s, skipping %d", book.title, book_id, format_lower, skip
    )

    try:
        return contribution.formatter(
            library=library,
            book=book,
            destination=destination,
            skip=skip,
        )
    except (ExportError, LibraryError):
        raise
    except Exception as exc:
        raise ExportError(
            f"Exporter '{contribution.format_id}' raised an unexpected error: {exc}"
        ) from exc


__all__ = [
    "CONSOLE_FORMAT",
    "DEFAULT_FILE_FORMAT",
    "ExportError",
    "clear_export_registry_cache",
    "export_book",
    "get_export_format_descriptions",
    "resolve_export_target",
]
