"""Type definitions for ibooks-notes plugin contracts."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:  # pragma: no cover - type check only
    from ..library import BookDetail, Library


class ExportHandler(Protocol):
    """Callable responsible for exporting one book's annotations."""

    def __call__(
        self,
        *,
        library: "Library",
        book: "BookDetail",
        destination: Path | None,
        skip: int = 0,
    ) -> int:  # pragma: no cover - Protocol
        """Execute the export and return the number of annotations written."""


@dataclass(slots=True, frozen=True)
class ExportContribution:
    """Descriptor describing an export format provided by a plugin."""

    format_id: str
    formatter: ExportHandler
    description: str
    needs_destination: bool = True
