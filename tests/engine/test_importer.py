from __future__ import annotations

import json
from pathlib import Path

import pytest

from bookmark_keeper.engine import BookmarkImporter, BookmarkStatus, fingerprint
from bookmark_keeper.engine.importer import read_entries
from bookmark_keeper.engine.records import load_index
from bookmark_keeper.infra import COMBINED_INDEX, COMBINED_URLS


def write_export(path: Path, payload) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_import_adds_new_and_skips_known_urls(store, tmp_path: Path) -> None:
    export = write_export(
        tmp_path / "export.json",
        {
            "bookmarks": [
                {"url": "https://a.test", "title": "A", "tags": ["go"], "created_at": 100},
                {"url": "https://b.test", "title": "B"},
                {"url": "https://a.test", "title": "A again"},
                {"title": "missing url"},
                "garbage",
            ]
        },
    )
    outcomes: list[tuple[str, str]] = []
    importer = BookmarkImporter(store, clock=lambda: 500.0)

    summary = importer.import_file(export, on_entry=lambda outcome, url: outcomes.append((outcome, url)))

    assert (summary.imported, summary.skipped, summary.invalid) == (2, 1, 2)
    assert summary.total == 5
    assert [outcome for outcome, _url in outcomes] == ["imported", "imported", "skipped", "invalid", "invalid"]
    records = load_index(store, COMBINED_INDEX)
    assert [(r.url, r.created_at) for r in records] == [("https://a.test", 100), ("https://b.test", 500)]
    first = records[0]
    assert first.id == fingerprint("https://a.test")
    assert first.updated_at == 500
    assert first.status is BookmarkStatus.UNKNOWN
    assert store.set_members(COMBINED_URLS) == {"https://a.test", "https://b.test"}


def test_reimport_is_a_no_op(store, tmp_path: Path) -> None:
    export = write_export(tmp_path / "export.json", [{"url": "https://a.test"}])
    importer = BookmarkImporter(store, clock=lambda: 1.0)
    importer.import_file(export)

    summary = importer.import_file(export)

    assert (summary.imported, summary.skipped) == (0, 1)
    assert len(load_index(store, COMBINED_INDEX)) == 1


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_entries(tmp_path / "nope.json")


@pytest.mark.parametrize("content", ["{not json", '{"items": []}', '"just a string"'])
def test_malformed_exports_raise_value_error(tmp_path: Path, content: str) -> None:
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError):
        read_entries(path)


def test_badly_typed_entries_are_counted_invalid(store) -> None:
    importer = BookmarkImporter(store, clock=lambda: 10.0)

    summary = importer.import_entries(
        [
            {"url": "https://a.test", "tags": 5},
            {"url": "https://c.test", "created_at": 1e400},
            {"url": "https://d.test", "created_at": "not-a-date"},
            {"url": "https://b.test"},
        ]
    )

    assert (summary.imported, summary.skipped, summary.invalid) == (1, 0, 3)
    assert summary.total == 4
    assert [r.url for r in load_index(store, COMBINED_INDEX)] == ["https://b.test"]
    assert store.set_members(COMBINED_URLS) == {"https://b.test"}
