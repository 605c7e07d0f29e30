"""Markdown rendering shared by the built-in export formats."""

from __future__ import annotations

import re
from typing import Any

import yaml
from markupsafe import Markup

from .library import Annotation, BookDetail
from .styles import HighlightStyle, legend_lines

FRONTMATTER_DELIM = "---"

_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


def safe_filename(value: str, *, fallback: str = "book") -> str:
    """Return ``value`` with path separators and reserved characters removed."""

    cleaned = _UNSAFE_FILENAME_RE.sub(" ", value)
    cleaned = re.sub(r"\s+", " ", cleaned).strip(" .")
    return cleaned or fallback


def flatten(text: str) -> str:
    """Drop line breaks from highlighted text."""

    return text.replace("\r", "").replace("\n", "")


def render_front_matter(metadata: dict[str, Any]) -> str:
    payload = yaml.safe_dump(
        metadata,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    ).strip()
    return f"{FRONTMATTER_DELIM}\n{payload}\n{FRONTMATTER_DELIM}\n\n"


def book_metadata(book: BookDetail, **extra: Any) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "title": book.title,
        "author": book.author,
        "book_id": book.book_id,
    }
    metadata.update(extra)
    return metadata


def render_legend() -> str:
    body = "\n".join(legend_lines())
    return f"<!--\n{body}\n-->\n\n"


def render_entry(
    index: int,
    annotation: Annotation,
    style: HighlightStyle,
    *,
    colored: bool = False,
) -> str:
    """Render one numbered highlight, with its note when present."""

    label: str = style.label
    if colored:
        label = Markup('<span style="color:{}">{}</span>').format(
            style.color, style.label
        )
    text = flatten(annotation.text)
    note = annotation.note
    if colored:
        text = str(Markup.escape(text))
        if note:
            note = str(Markup.escape(note))
    entry = f'{index}. {label} "{text}"\n\n'
    if note:
        entry += f"\tNote: {note}\n\n"
    return entry


def render_vocabulary_entry(index: int, annotation: Annotation) -> str:
    entry = f"{index}. {flatten(annotation.text)}\n"
    if annotation.context:
        entry += f"   Sentence: {flatten(annotation.context)}\n"
    return entry + "\n"


__all__ = [
    "book_metadata",
    "flatten",
    "render_entry",
    "render_front_matter",
    "render_legend",
    "render_vocabulary_entry",
    "safe_filename",
]
