"""Built-in ibooks-notes export plugins."""

from __future__ import annotations

from . import colors, console, markdown

BUILTIN_PLUGINS = (colors, console, markdown)

__all__ = ["BUILTIN_PLUGINS"]
