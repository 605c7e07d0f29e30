"""Hook specifications for ibooks-notes plugins."""

from __future__ import annotations

from collections.abc import Iterable

from ibooks_notes.config import IbooksNotesConfig

from ._markers import hookspec
from .types import ExportContribution


class IbooksNotesHookSpec:
    """Collection of pluggy hook specifications."""

    @hookspec
    def export_formats(self, config: IbooksNotesConfig) -> Iterable[ExportContribution]:
        """Return exporter contributions (format handlers) provided by the plugin."""
