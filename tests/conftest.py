"""Fixtures building Apple Books style databases for tests."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import pytest
from ibooks_notes.library import Library
from ibooks_notes.plugins import manager as plugin_manager

LIBRARY_SCHEMA = """
CREATE TABLE ZBKLIBRARYASSET (
    Z_PK INTEGER PRIMARY KEY,
    ZASSETID VARCHAR,
    ZTITLE VARCHAR,
    ZAUTHOR VARCHAR
)
"""

ANNOTATION_SCHEMA = """
CREATE TABLE ZAEANNOTATION (
    Z_PK INTEGER PRIMARY KEY,
    ZANNOTATIONASSETID VARCHAR,
    ZANNOTATIONSELECTEDTEXT VARCHAR,
    ZANNOTATIONNOTE VARCHAR,
    ZANNOTATIONREPRESENTATIVETEXT VARCHAR,
    ZANNOTATIONSTYLE INTEGER,
    ZANNOTATIONISUNDERLINE INTEGER,
    ZPLLOCATIONRANGESTART INTEGER,
    ZANNOTATIONCREATIONDATE TIMESTAMP
)
"""


@dataclass
class BooksDatabases:
    library_path: Path
    annotation_path: Path

    def add_book(self, asset_id: str, title: str | None, author: str | None) -> None:
        with sqlite3.connect(self.library_path) as conn:
            conn.execute(
                "INSERT INTO ZBKLIBRARYASSET (ZASSETID, ZTITLE, ZAUTHOR) VALUES (?, ?, ?)",
                (asset_id, title, author),
            )
        conn.close()

    def add_annotation(
        self,
        asset_id: str,
        text: str | None,
        *,
        note: str | None = None,
        context: str | None = None,
        style: int | None = 3,
        underline: bool = False,
        location: int = 0,
        created: float = 0.0,
    ) -> None:
        with sqlite3.connect(self.annotation_path) as conn:
            conn.execute(
                "INSERT INTO ZAEANNOTATION ("
                "ZANNOTATIONASSETID, ZANNOTATIONSELECTEDTEXT, ZANNOTATIONNOTE, "
                "ZANNOTATIONREPRESENTATIVETEXT, ZANNOTATIONSTYLE, "
                "ZANNOTATIONISUNDERLINE, ZPLLOCATIONRANGESTART, "
                "ZANNOTATIONCREATIONDATE"
                ") VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    asset_id,
                    text,
                    note,
                    context,
                    style,
                    int(underline),
                    location,
                    created,
                ),
            )
        conn.close()

    def add_highlights(self, asset_id: str, texts: Iterable[str], style: int) -> None:
        for position, text in enumerate(texts):
            self.add_annotation(asset_id, text, style=style, location=position)

    def library(self) -> Library:
        return Library(self.library_path, self.annotation_path)


def create_databases(data_dir: Path) -> BooksDatabases:
    """Create empty databases laid out like the Apple Books container."""

    library_dir = data_dir / "BKLibrary"
    annotation_dir = data_dir / "AEAnnotation"
    library_dir.mkdir(parents=True)
    annotation_dir.mkdir(parents=True)

    library_path = library_dir / "BKLibrary-1-091020131601.sqlite"
    annotation_path = annotation_dir / "AEAnnotation_v10312011_1727_local.sqlite"

    for path, schema in ((library_path, LIBRARY_SCHEMA), (annotation_path, ANNOTATION_SCHEMA)):
        conn = sqlite3.connect(path)
        conn.execute(schema)
        conn.commit()
        conn.close()

    return BooksDatabases(library_path=library_path, annotation_path=annotation_path)


@pytest.fixture
def books_db(tmp_path: Path) -> BooksDatabases:
    return create_databases(tmp_path / "Documents")


@pytest.fixture(autouse=True)
def reset_plugin_manager() -> None:
    """Ensure plugin discovery cache is cleared between tests."""

    plugin_manager.reset_plugin_manager_cache()
    yield
    plugin_manager.reset_plugin_manager_cache()
