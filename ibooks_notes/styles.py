"""Highlight style table shared by every export format."""

from __future__ import annotations

from enum import Enum


class HighlightStyle(Enum):
    """Highlight categories as stored by Apple Books.

    Each member carries its label tag, category name, display color and the
    legend description written at the top of consolidated exports.
    """

    GREEN = ("P", "Green", "#7fc95e", "Technical term: specialist concepts or terms")
    BLUE = ("D", "Blue", "#6fa8dc", "Discursive note: explanations, metaphors, examples")
    YELLOW = ("Y", "Yellow", "#f4d03f", "Vocabulary: words worth looking up")
    PINK = ("N", "Pink", "#f28cb1", "Important note: key ideas to remember")
    PURPLE = ("T", "Purple", "#b38cd9", "Title: a chapter, section or subsection")
    UNDERLINE = ("U", "Underline", "#e0554d", "Significant underline: impactful sentences")

    def __init__(self, tag: str, category: str, color: str, description: str) -> None:
        self.tag = tag
        self.category = category
        self.color = color
        self.description = description

    @property
    def label(self) -> str:
        return f"[{self.tag}]"


_STYLE_CODES: dict[int, HighlightStyle] = {
    1: HighlightStyle.GREEN,
    2: HighlightStyle.BLUE,
    3: HighlightStyle.YELLOW,
    4: HighlightStyle.PINK,
    5: HighlightStyle.PURPLE,
}


def classify(style: int | None, is_underline: bool) -> HighlightStyle:
    """Return the category for a stored style code and underline flag.

    The underline flag wins over the style code; unknown codes fall back to
    ``HighlightStyle.UNDERLINE``.
    """

    if is_underline:
        return HighlightStyle.UNDERLINE
    if style is None:
        return HighlightStyle.UNDERLINE
    return _STYLE_CODES.get(int(style), HighlightStyle.UNDERLINE)


def legend_lines() -> list[str]:
    """Return one ``TAG = description`` line per category, in table order."""

    return [f"{style.tag} = {style.description}" for style in HighlightStyle]


__all__ = ["HighlightStyle", "classify", "legend_lines"]
