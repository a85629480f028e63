"""URL-based deduplication of bookmark collections."""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from .records import Bookmark, DuplicateReport


def dedupe(records: Iterable[Bookmark]) -> list[Bookmark]:
    """Keep the first bookmark seen for each URL, preserving input order.

    URLs are compared as exact strings: scheme/host case and trailing slashes
    are not normalised.
    """

    seen: set[str] = set()
    unique: list[Bookmark] = []
    for record in records:
        if record.url in seen:
            continue
        seen.add(record.url)
        unique.append(record)
    return unique


def find_duplicates(records: Iterable[Bookmark]) -> list[DuplicateReport]:
    """Report every URL occurring more than once, ordered by first occurrence."""

    counts = Counter(record.url for record in records)
    return [DuplicateReport(url=url, occurrence_count=count) for url, count in counts.items() if count > 1]


__all__ = ["dedupe", "find_duplicates"]
