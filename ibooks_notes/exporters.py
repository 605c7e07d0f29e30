"""Export error types and file helpers shared by export formats."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class ExportError(RuntimeError):
    """Raised when exporting annotations fails."""


def ensure_directory(destination: Path) -> Path:
    """Create ``destination`` (and parents) when missing."""

    if destination.exists() and not destination.is_dir():
        raise ExportError(f"Destination must be a directory path: {destination}")
    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ExportError(f"Failed to create output directory: {exc}") from exc
    return destination


def write_text(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ExportError(f"Failed to write {path}: {exc}") from exc
    logger.debug("Wrote %s", path)


__all__ = ["ExportError", "ensure_directory", "write_text"]
