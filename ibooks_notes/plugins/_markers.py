"""Pluggy markers and constants for the ibooks-notes plugin namespace."""

from __future__ import annotations

import pluggy

PLUGIN_NAMESPACE = "ibooks_notes"
ENTRY_POINT_GROUP = "ibooks_notes.plugins"

hookspec = pluggy.HookspecMarker(PLUGIN_NAMESPACE)
hookimpl = pluggy.HookimplMarker(PLUGIN_NAMESPACE)

__all__ = ["PLUGIN_NAMESPACE", "ENTRY_POINT_GROUP", "hookspec", "hookimpl"]
