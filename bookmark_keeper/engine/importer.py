"""Import bookmarks from a JSON export into the combined index."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

import structlog
from pydantic import ValidationError

from ..infra.storage import COMBINED_INDEX, COMBINED_URLS
from .records import Bookmark, BookmarkStatus, fingerprint

if TYPE_CHECKING:
    from ..infra.storage import RedisStore


@dataclass(slots=True)
class ImportSummary:
    imported: int = 0
    skipped: int = 0
    invalid: int = 0

    @property
    def total(self) -> int:
        return self.imported + self.skipped + self.invalid


def read_entries(path: Path) -> list[Any]:
    """Return the raw bookmark entries of an export file.

    Accepts ``{"bookmarks": [...]}`` or a bare JSON list.
    """

    if not path.exists():
        raise FileNotFoundError(f"Import file not found: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Import file is not valid JSON: {path}") from exc
    entries = payload.get("bookmarks") if isinstance(payload, dict) else payload
    if not isinstance(entries, list):
        raise ValueError(f"Import file has no bookmarks array: {path}")
    return entries


def build_bookmark(entry: Any, now: int) -> Bookmark | None:
    if not isinstance(entry, dict):
        return None
    url = str(entry.get("url") or "").strip()
    if not url:
        return None
    try:
        return Bookmark(
            url=url,
            title=entry.get("title"),
            description=entry.get("description"),
            tags=entry.get("tags"),
            created_at=entry.get("created_at") or now,
            updated_at=now,
            id=fingerprint(url),
            status=BookmarkStatus.UNKNOWN,
        )
    except ValidationError:
        return None


class BookmarkImporter:
    """Add new bookmarks, using the combined URL set to skip ones already stored."""

    def __init__(
        self,
        store: "RedisStore",
        clock: Callable[[], float] = time.time,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.logger = logger or structlog.get_logger("bookmark_keeper.importer")

    def import_file(
        self,
        path: Path,
        on_entry: Callable[[str, str], None] | None = None,
    ) -> ImportSummary:
        entries = read_entries(path)
        return self.import_entries(entries, on_entry=on_entry)

    def import_entries(
        self,
        entries: list[Any],
        on_entry: Callable[[str, str], None] | None = None,
    ) -> ImportSummary:
        summary = ImportSummary()
        now = int(self.clock())
        for entry in entries:
            record = build_bookmark(entry, now)
            if record is None:
                summary.invalid += 1
                outcome, url = "invalid", ""
            elif not self.store.add_to_set(COMBINED_URLS, record.url):
                summary.skipped += 1
                outcome, url = "skipped", record.url
            else:
                self.store.add_to_sorted_index(COMBINED_INDEX, record.score, record.to_member())
                summary.imported += 1
                outcome, url = "imported", record.url
            if on_entry is not None:
                on_entry(outcome, url)
        self.logger.info(
            "import_finished",
            imported=summary.imported,
            skipped=summary.skipped,
            invalid=summary.invalid,
        )
        return summary


__all__ = ["BookmarkImporter", "ImportSummary", "build_bookmark", "read_entries"]
