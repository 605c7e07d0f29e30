"""Application bootstrap and context container for ibooks-notes."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import IbooksNotesConfig, load_config
from .library import Library, discover_database_paths


@dataclass(slots=True)
class AppContext:
    """Aggregates core services for the CLI lifecycle."""

    config: IbooksNotesConfig
    library: Library


def bootstrap(config_path: Path | None) -> AppContext:
    """Load configuration and open the Apple Books databases."""

    # Defer error mapping to the CLI, which knows how to present messages.
    config = load_config(config_path)
    library_path, annotation_path = discover_database_paths(config)
    library = Library(library_path, annotation_path)
    return AppContext(config=config, library=library)
