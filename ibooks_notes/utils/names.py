"""Helpers for compact book titles and author names."""

from __future__ import annotations

AUTHOR_SEPARATOR = " & "
TITLE_LIMIT = 30


def last_name(name: str) -> str:
    """Return the last word of ``name`` without a trailing comma or period."""

    words = name.split()
    if not words:
        return ""
    result = words[-1]
    result = result.removesuffix(",")
    result = result.removesuffix(".")
    return result


def last_names(authors: str | None) -> str:
    """Reduce ``"Jane Q. Doe & John Smith"`` to ``"Doe & Smith"``."""

    if not authors:
        return ""
    return AUTHOR_SEPARATOR.join(
        last_name(name) for name in authors.split(AUTHOR_SEPARATOR)
    )


def truncate_title(title: str, limit: int = TITLE_LIMIT) -> str:
    if len(title) > limit:
        return title[:limit] + "..."
    return title
