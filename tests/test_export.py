"""Tests covering the export service and the built-in formats."""

from __future__ import annotations

import types
from pathlib import Path

import pytest
import yaml
from ibooks_notes.config import IbooksNotesConfig
from ibooks_notes.library import Annotation, BookDetail, BookNotFoundError, Library
from ibooks_notes.plugins import ExportContribution, hookimpl
from ibooks_notes.plugins import manager as plugin_manager
from ibooks_notes.plugins.builtin.colors import ColorFilesExporter
from ibooks_notes.services import export as export_service
from ibooks_notes.services.export import ExportError


def _export(books_db, destination: Path | None, *, fmt: str, skip: int = 0, config=None):
    return export_service.export_book(
        config or IbooksNotesConfig(),
        books_db.library(),
        book_id="BOOK-1",
        export_format=fmt,
        destination=destination,
        skip=skip,
    )


def _entries(text: str) -> list[str]:
    return [line for line in text.splitlines() if line[:1].isdigit()]


def test_markdown_export_writes_labeled_entries(books_db, tmp_path: Path) -> None:
    books_db.add_book("BOOK-1", "Dune", "Frank Herbert")
    books_db.add_annotation("BOOK-1", "Fear is\nthe mind-killer", style=4, location=1,
                            note="Litany")
    books_db.add_annotation("BOOK-1", "Spice", style=3, location=2,
                            context="The spice must flow.")
    books_db.add_annotation("BOOK-1", "Arrakis", style=2, underline=True, location=3)

    destination = tmp_path / "out"
    count = _export(books_db, destination, fmt="markdown")

    assert count == 3
    notes = (destination / "Dune.md").read_text(encoding="utf-8")
    front_matter = yaml.safe_load(notes.split("---\n", 2)[1])
    assert front_matter == {"title": "Dune", "author": "Frank Herbert", "book_id": "BOOK-1"}
    assert "# Dune - Highlights" in notes
    assert "Y = Vocabulary" in notes
    assert _entries(notes) == ['1. [N] "Fear isthe mind-killer"', '2. [U] "Arrakis"']
    assert "\tNote: Litany" in notes

    vocabulary = (destination / "Dune - Vocabulary.md").read_text(encoding="utf-8")
    assert _entries(vocabulary) == ["1. Spice"]
    assert "   Sentence: The spice must flow." in vocabulary


def test_markdown_export_without_vocabulary_split(books_db, tmp_path: Path) -> None:
    books_db.add_book("BOOK-1", "Dune", "Frank Herbert")
    books_db.add_annotation("BOOK-1", "Spice", style=3)
    config = IbooksNotesConfig(
        plugins={"ibooks-notes-builtin-markdown": {"split_vocabulary": False}}
    )

    destination = tmp_path / "out"
    _export(books_db, destination, fmt="markdown", config=config)

    notes = (destination / "Dune.md").read_text(encoding="utf-8")
    assert _entries(notes) == ['1. [Y] "Spice"']
    assert not (destination / "Dune - Vocabulary.md").exists()


def test_export_excludes_rows_without_text(books_db, tmp_path: Path) -> None:
    books_db.add_book("BOOK-1", "Dune", "Frank Herbert")
    books_db.add_annotation("BOOK-1", "first", style=1, location=1)
    books_db.add_annotation("BOOK-1", None, style=1, location=2, note="dangling")
    books_db.add_annotation("BOOK-1", "third", style=1, location=3)

    destination = tmp_path / "out"
    count = _export(books_db, destination, fmt="markdown")

    notes = (destination / "Dune.md").read_text(encoding="utf-8")
    assert count == 2
    assert _entries(notes) == ['1. [P] "first"', '2. [P] "third"']
    assert "dangling" not in notes


def test_export_skip_emits_trailing_annotations(books_db, tmp_path: Path) -> None:
    books_db.add_book("BOOK-1", "Dune", "Frank Herbert")
    books_db.add_highlights("BOOK-1", ["a", "b", "c", "d", "e"], style=5)

    destination = tmp_path / "out"
    count = _export(books_db, destination, fmt="markdown", skip=2)

    notes = (destination / "Dune.md").read_text(encoding="utf-8")
    assert count == 3
    assert _entries(notes) == ['1. [T] "c"', '2. [T] "d"', '3. [T] "e"']


def test_unknown_book_creates_no_output(books_db, tmp_path: Path) -> None:
    books_db.add_book("BOOK-2", "Dune", "Frank Herbert")

    destination = tmp_path / "out"
    for fmt in ("markdown", "colors"):
        with pytest.raises(BookNotFoundError):
            _export(books_db, destination, fmt=fmt)

    assert not destination.exists()


def test_colors_export_writes_one_file_per_category(books_db, tmp_path: Path) -> None:
    books_db.add_book("BOOK-1", "Dune: Messiah", "Frank Herbert")
    books_db.add_annotation("BOOK-1", "green one", style=1, location=1)
    books_db.add_annotation("BOOK-1", "yellow", style=3, location=2)
    books_db.add_annotation("BOOK-1", "green two", style=1, location=3, note="n")
    books_db.add_annotation("BOOK-1", "under", style=1, underline=True, location=4)

    destination = tmp_path / "out"
    count = _export(books_db, destination, fmt="colors")

    assert count == 4
    assert sorted(p.name for p in destination.iterdir()) == [
        "Dune Messiah - Green.md",
        "Dune Messiah - Underline.md",
        "Dune Messiah - Yellow.md",
    ]
    green = (destination / "Dune Messiah - Green.md").read_text(encoding="utf-8")
    assert "# Dune: Messiah - Green" in green
    assert _entries(green) == ['1. [P] "green one"', '2. [P] "green two"']
    yellow = (destination / "Dune Messiah - Yellow.md").read_text(encoding="utf-8")
    assert _entries(yellow) == ['1. [Y] "yellow"']


def _record_opened_files(monkeypatch) -> list:
    plugin_manager.get_plugin_manager()
    opened = []
    original_open = Path.open

    def recording_open(self, *args, **kwargs):
        handle = original_open(self, *args, **kwargs)
        opened.append(handle)
        return handle

    monkeypatch.setattr(Path, "open", recording_open)
    return opened


def test_colors_export_closes_files_after_success(
    books_db, tmp_path: Path, monkeypatch
) -> None:
    books_db.add_book("BOOK-1", "Dune", "Frank Herbert")
    books_db.add_annotation("BOOK-1", "green", style=1, location=1)
    books_db.add_annotation("BOOK-1", "pink", style=4, location=2)
    books_db.add_annotation("BOOK-1", "purple", style=5, location=3)
    opened = _record_opened_files(monkeypatch)

    count = _export(books_db, tmp_path / "out", fmt="colors")

    assert count == 3
    assert len(opened) == 3
    assert all(handle.closed for handle in opened)


def test_colors_export_closes_files_when_reading_fails(tmp_path: Path, monkeypatch) -> None:
    opened = _record_opened_files(monkeypatch)

    def failing_annotations():
        yield Annotation("green", None, None, 1, False)
        yield Annotation("blue", None, None, 2, False)
        raise RuntimeError("database went away")

    book = BookDetail(book_id="BOOK-1", title="Dune", author="Frank Herbert")

    with pytest.raises(RuntimeError):
        ColorFilesExporter().export(book, failing_annotations(), tmp_path / "out")

    assert len(opened) == 2
    assert all(handle.closed for handle in opened)


@pytest.mark.parametrize("fmt", ["markdown", "colors"])
def test_destination_that_is_a_file_is_rejected(books_db, tmp_path: Path, fmt) -> None:
    books_db.add_book("BOOK-1", "Dune", "Frank Herbert")
    books_db.add_annotation("BOOK-1", "spice", style=1)
    destination = tmp_path / "taken"
    destination.write_text("not a directory", encoding="utf-8")

    with pytest.raises(ExportError) as exc_info:
        _export(books_db, destination, fmt=fmt)

    assert "directory" in str(exc_info.value)
    assert destination.read_text(encoding="utf-8") == "not a directory"


def test_directory_creation_failure_raises_export_error(
    books_db, tmp_path: Path, monkeypatch
) -> None:
    books_db.add_book("BOOK-1", "Dune", "Frank Herbert")

    def failing_mkdir(self, *args, **kwargs):
        raise PermissionError("read-only file system")

    monkeypatch.setattr(Path, "mkdir", failing_mkdir)

    with pytest.raises(ExportError) as exc_info:
        _export(books_db, tmp_path / "out", fmt="markdown")

    assert "Failed to create output directory" in str(exc_info.value)


def test_markdown_write_failure_raises_export_error(
    books_db, tmp_path: Path, monkeypatch
) -> None:
    books_db.add_book("BOOK-1", "Dune", "Frank Herbert")
    books_db.add_annotation("BOOK-1", "spice", style=1)

    def failing_write_text(self, *args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(Path, "write_text", failing_write_text)

    with pytest.raises(ExportError) as exc_info:
        _export(books_db, tmp_path / "out", fmt="markdown")

    assert "disk full" in str(exc_info.value)


def test_colors_open_failure_raises_export_error(
    books_db, tmp_path: Path, monkeypatch
) -> None:
    books_db.add_book("BOOK-1", "Dune", "Frank Herbert")
    books_db.add_annotation("BOOK-1", "spice", style=1)

    def failing_open(self, *args, **kwargs):
        raise OSError("too many open files")

    plugin_manager.get_plugin_manager()
    monkeypatch.setattr(Path, "open", failing_open)

    with pytest.raises(ExportError) as exc_info:
        _export(books_db, tmp_path / "out", fmt="colors")

    assert "too many open files" in str(exc_info.value)


def test_console_export_prints_colored_entries(books_db, capsys) -> None:
    books_db.add_book("BOOK-1", "Dune", "Frank Herbert")
    books_db.add_annotation(
        "BOOK-1", "<b>bold</b>", style=2, location=1, note="<i>why</i> & how"
    )
    books_db.add_annotation("BOOK-1", "plain", style=9, location=2)

    count = _export(books_db, None, fmt="console")

    out = capsys.readouterr().out
    assert count == 2
    assert out.startswith("# Dune\n")
    assert '1. <span style="color:#6fa8dc">[D]</span> "&lt;b&gt;bold&lt;/b&gt;"' in out
    assert '2. <span style="color:#e0554d">[U]</span> "plain"' in out
    assert "\tNote: &lt;i&gt;why&lt;/i&gt; &amp; how" in out
    assert "<i>" not in out


def test_file_formats_require_destination(books_db) -> None:
    books_db.add_book("BOOK-1", "Dune", "Frank Herbert")

    with pytest.raises(ExportError) as exc_info:
        _export(books_db, None, fmt="markdown")

    assert "output directory" in str(exc_info.value)


def test_unknown_format_lists_available(books_db, tmp_path: Path) -> None:
    with pytest.raises(ExportError) as exc_info:
        _export(books_db, tmp_path, fmt="pdf")

    message = str(exc_info.value)
    assert "colors, console, markdown" in message


def test_resolve_export_target_defaults() -> None:
    config = IbooksNotesConfig()
    assert export_service.resolve_export_target(
        config, export_format=None, destination=None
    ) == ("console", None)
    assert export_service.resolve_export_target(
        config, export_format=None, destination=Path("out")
    ) == ("markdown", Path("out"))

    configured = IbooksNotesConfig(output_dir=Path("/notes"), export_format="colors")
    assert export_service.resolve_export_target(
        configured, export_format=None, destination=None
    ) == ("colors", Path("/notes"))


def _install_plugin(monkeypatch, module: types.ModuleType) -> None:
    original_iter = plugin_manager._builtin_plugin_modules

    def _combined() -> tuple[object, ...]:
        return original_iter() + (module,)

    monkeypatch.setattr(plugin_manager, "_builtin_plugin_modules", _combined)
    plugin_manager._build_plugin_manager.cache_clear()


def test_export_invokes_custom_plugin(books_db, tmp_path: Path, monkeypatch) -> None:
    state: dict[str, object] = {}
    module = types.ModuleType("ibooks_notes_test_plugin")

    @hookimpl
    def export_formats(config: IbooksNotesConfig) -> tuple[ExportContribution, ...]:
        def formatter(
            *,
            library: Library,
            book: BookDetail,
            destination: Path | None,
            skip: int = 0,
        ) -> int:
            annotations = list(library.iter_annotations(book.book_id, skip=skip))
            state["title"] = book.title
            state["texts"] = [a.text for a in annotations]
            return 99

        return (
            ExportContribution(
                format_id="dummy",
                formatter=formatter,
                description="Dummy exporter",
            ),
        )

    module.export_formats = export_formats
    _install_plugin(monkeypatch, module)

    books_db.add_book("BOOK-1", "Dune", "Frank Herbert")
    books_db.add_highlights("BOOK-1", ["a", "b"], style=1)

    count = _export(books_db, tmp_path / "out", fmt="DUMMY", skip=1)

    assert count == 99
    assert state == {"title": "Dune", "texts": ["b"]}


def test_export_wraps_plugin_error(books_db, tmp_path: Path, monkeypatch) -> None:
    module = types.ModuleType("ibooks_notes_failing_plugin")

    @hookimpl
    def export_formats(config: IbooksNotesConfig) -> tuple[ExportContribution, ...]:
        def formatter(**kwargs) -> int:
            raise RuntimeError("boom")

        return (
            ExportContribution(
                format_id="broken",
                formatter=formatter,
                description="Broken exporter",
            ),
        )

    module.export_formats = export_formats
    _install_plugin(monkeypatch, module)
    books_db.add_book("BOOK-1", "Dune", "Frank Herbert")

    with pytest.raises(ExportError) as exc_info:
        _export(books_db, tmp_path / "out", fmt="broken")

    message = str(exc_info.value)
    assert "broken" in message
    assert "unexpected error" in message.lower()


def test_duplicate_format_is_reported(books_db, tmp_path: Path, monkeypatch) -> None:
    module = types.ModuleType("ibooks_notes_duplicate_plugin")

    @hookimpl
    def export_formats(config: IbooksNotesConfig) -> ExportContribution:
        return ExportContribution(
            format_id="Markdown",
            formatter=lambda **kwargs: 0,
            description="Shadowing exporter",
        )

    module.export_formats = export_formats
    _install_plugin(monkeypatch, module)

    with pytest.raises(ExportError) as exc_info:
        export_service.get_export_format_descriptions(IbooksNotesConfig())

    assert "Duplicate export format" in str(exc_info.value)


def test_fresh_plugin_manager_has_no_builtin_formats() -> None:
    manager = plugin_manager.create_plugin_manager()

    assert list(plugin_manager.iter_export_contributions(manager, IbooksNotesConfig())) == []

    plugin_manager.register_modules(manager, plugin_manager._builtin_plugin_modules())
    formats = {
        contribution.format_id
        for contribution in plugin_manager.iter_export_contributions(
            manager, IbooksNotesConfig()
        )
    }
    assert formats == {"colors", "console", "markdown"}
