"""Export Apple Books highlights and notes to Markdown."""

__version__ = "0.3.3"
