"""Peewee-backed, read-only access to the Apple Books databases."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from peewee import (
    JOIN,
    AutoField,
    BooleanField,
    DatabaseError,
    FloatField,
    IntegerField,
    Model,
    SqliteDatabase,
    TextField,
    fn,
)

from .config import IbooksNotesConfig

logger = logging.getLogger(__name__)

LIBRARY_DIRNAME = "BKLibrary"
LIBRARY_GLOB = "BKLibrary*.sqlite"
ANNOTATION_DIRNAME = "AEAnnotation"
ANNOTATION_GLOB = "AEAnnotation*.sqlite"
ANNOTATION_SCHEMA = "a"


class LibraryError(RuntimeError):
    """Raised when reading the Apple Books databases fails."""


class BookNotFoundError(LibraryError):
    """Raised when a book identifier matches no library asset."""

    def __init__(self, book_id: str) -> None:
        super().__init__(f"Book '{book_id}' is not found in iBooks.")
        self.book_id = book_id


@dataclass(slots=True, frozen=True)
class BookSummary:
    """A book with at least one highlight, as listed by the catalog."""

    book_id: str
    title: str
    author: str
    highlight_count: int


@dataclass(slots=True, frozen=True)
class BookDetail:
    """Title and author of a single library asset."""

    book_id: str
    title: str
    author: str


@dataclass(slots=True, frozen=True)
class Annotation:
    """A highlight or underline with its optional note."""

    text: str
    note: str | None
    context: str | None
    style: int | None
    is_underline: bool


class LibraryModel(Model):
    """Base model for the external Apple Books schema."""

    class Meta:
        database = SqliteDatabase(None)


class LibraryAsset(LibraryModel):
    pk = AutoField(column_name="Z_PK")
    asset_id = TextField(column_name="ZASSETID")
    title = TextField(column_name="ZTITLE", null=True)
    author = TextField(column_name="ZAUTHOR", null=True)

    class Meta:
        table_name = "ZBKLIBRARYASSET"


class AnnotationRow(LibraryModel):
    pk = AutoField(column_name="Z_PK")
    asset_id = TextField(column_name="ZANNOTATIONASSETID")
    selected_text = TextField(column_name="ZANNOTATIONSELECTEDTEXT", null=True)
    note = TextField(column_name="ZANNOTATIONNOTE", null=True)
    representative_text = TextField(
        column_name="ZANNOTATIONREPRESENTATIVETEXT", null=True
    )
    style = IntegerField(column_name="ZANNOTATIONSTYLE", null=True)
    is_underline = BooleanField(column_name="ZANNOTATIONISUNDERLINE", null=True)
    location_start = IntegerField(column_name="ZPLLOCATIONRANGESTART", null=True)
    created_at = FloatField(column_name="ZANNOTATIONCREATIONDATE", null=True)

    class Meta:
        table_name = "ZAEANNOTATION"
        schema = ANNOTATION_SCHEMA


MODELS = (LibraryAsset, AnnotationRow)


def _read_only_uri(path: Path) -> str:
    return f"{path.resolve().as_uri()}?mode=ro"


class LibraryDatabase(SqliteDatabase):
    """SqliteDatabase opening the library read-only with annotations attached."""

    def __init__(self, library_path: Path, annotation_path: Path) -> None:
        super().__init__(_read_only_uri(library_path), uri=True)
        self.attach(_read_only_uri(annotation_path), ANNOTATION_SCHEMA)


def _first_match(directory: Path, pattern: str) -> Path | None:
    matches = sorted(directory.glob(pattern))
    return matches[0] if matches else None


def discover_database_paths(config: IbooksNotesConfig) -> tuple[Path, Path]:
    """Return ``(library_db, annotation_db)`` from overrides or ``data_dir``."""

    library_path = config.library_db or _first_match(
        config.data_dir / LIBRARY_DIRNAME, LIBRARY_GLOB
    )
    if library_path is None:
        raise LibraryError(
            f"No Apple Books library database found under "
            f"{config.data_dir / LIBRARY_DIRNAME}"
        )

    annotation_path = config.annotation_db or _first_match(
        config.data_dir / ANNOTATION_DIRNAME, ANNOTATION_GLOB
    )
    if annotation_path is None:
        raise LibraryError(
            f"No Apple Books annotation database found under "
            f"{config.data_dir / ANNOTATION_DIRNAME}"
        )

    return library_path, annotation_path


class Library:
    """High-level, read-only helper over the Apple Books databases."""

    def __init__(self, library_path: Path | str, annotation_path: Path | str) -> None:
        self.library_path = Path(library_path)
        self.annotation_path = Path(annotation_path)
        for path in (self.library_path, self.annotation_path):
            if not path.is_file():
                raise LibraryError(f"Database file not found: {path}")
        self._database = LibraryDatabase(self.library_path, self.annotation_path)
        logger.debug(
            "Using library %s with annotations %s",
            self.library_path,
            self.annotation_path,
        )

    def list_books(self) -> list[BookSummary]:
        """Return every book that has at least one highlight."""

        with self._binding():
            query = (
                LibraryAsset.select(
                    LibraryAsset.asset_id,
                    LibraryAsset.title,
                    LibraryAsset.author,
                    fn.COUNT(AnnotationRow.pk),
                )
                .join(
                    AnnotationRow,
                    JOIN.LEFT_OUTER,
                    on=(AnnotationRow.asset_id == LibraryAsset.asset_id),
                )
                .where(AnnotationRow.selected_text.is_null(False))
                .group_by(LibraryAsset.asset_id)
                .tuples()
            )
            try:
                rows = list(query)
            except DatabaseError as exc:
                raise LibraryError(f"Failed to list books: {exc}") from exc

        return [
            BookSummary(
                book_id=asset_id,
                title=title or "",
                author=author or "",
                highlight_count=int(count),
            )
            for asset_id, title, author, count in rows
        ]

    def fetch_book(self, book_id: str) -> BookDetail:
        with self._binding():
            try:
                row = (
                    LibraryAsset.select(LibraryAsset.title, LibraryAsset.author)
                    .where(LibraryAsset.asset_id == book_id)
                    .tuples()
                    .first()
                )
            except DatabaseError as exc:
                raise LibraryError(f"Failed to fetch book '{book_id}': {exc}") from exc

        if row is None:
            raise BookNotFoundError(book_id)
        title, author = row
        return BookDetail(book_id=book_id, title=title or "", author=author or "")

    def iter_annotations(self, book_id: str, *, skip: int = 0) -> Iterator[Annotation]:
        """Yield the book's highlights in reading order, skipping ``skip`` rows."""

        if skip < 0:
            raise LibraryError("Skip count must be a non-negative integer.")
        return self._iter_annotations(book_id, int(skip))

    def _iter_annotations(self, book_id: str, skip: int) -> Iterator[Annotation]:
        with self._binding():
            query = (
                AnnotationRow.select()
                .where(
                    (AnnotationRow.asset_id == book_id)
                    & AnnotationRow.selected_text.is_null(False)
                )
                .order_by(
                    AnnotationRow.location_start.asc(),
                    AnnotationRow.created_at.asc(),
                )
                .offset(skip)
            )
            try:
                for row in query.iterator():
                    yield Annotation(
                        text=row.selected_text,
                        note=row.note,
                        context=row.representative_text,
                        style=row.style,
                        is_underline=bool(row.is_underline),
                    )
            except DatabaseError as exc:
                raise LibraryError(
                    f"Failed to read annotations for '{book_id}': {exc}"
                ) from exc

    def count_books(self) -> int:
        return len(self.list_books())

    @contextmanager
    def _binding(self) -> Iterator[None]:
        try:
            opened = self._database.connect(reuse_if_open=True)
        except DatabaseError as exc:
            raise LibraryError(f"Failed to open Apple Books database: {exc}") from exc
        try:
            with self._database.bind_ctx(MODELS):
                yield
        finally:
            # Nested calls share the connection opened by the outermost one.
            if opened:
                self._database.close()


__all__ = [
    "Annotation",
    "BookDetail",
    "BookNotFoundError",
    "BookSummary",
    "Library",
    "LibraryError",
    "discover_database_paths",
]
