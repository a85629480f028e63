"""Query, tag and date filters used by ``list`` and ``search``."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Iterable, Sequence

from .records import Bookmark


def day_bounds(day: date) -> tuple[int, int]:
    """Return the first and last Unix second of ``day`` in UTC."""

    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    end = datetime.combine(day, time.max, tzinfo=timezone.utc)
    return int(start.timestamp()), int(end.timestamp())


def matches(
    record: Bookmark,
    query: str = "",
    tags: Sequence[str] = (),
    date_from: date | None = None,
    date_to: date | None = None,
) -> bool:
    needle = query.strip().lower()
    if needle:
        haystacks = (record.title.lower(), record.description.lower(), record.url.lower())
        if not any(needle in text for text in haystacks):
            return False
    wanted = {tag.strip().lower() for tag in tags if tag.strip()}
    if wanted:
        present = {tag.lower() for tag in record.tags}
        if not wanted.issubset(present):
            return False
    if date_from is not None and record.created_at < day_bounds(date_from)[0]:
        return False
    if date_to is not None and record.created_at > day_bounds(date_to)[1]:
        return False
    return True


def filter_bookmarks(
    records: Iterable[Bookmark],
    query: str = "",
    tags: Sequence[str] = (),
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int | None = None,
) -> list[Bookmark]:
    results: list[Bookmark] = []
    for record in records:
        if not matches(record, query, tags, date_from, date_to):
            continue
        results.append(record)
        if limit and len(results) >= limit:
            break
    return results


__all__ = ["day_bounds", "filter_bookmarks", "matches"]
