"""Bookmark record model and the JSON member codec shared with the store."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable

import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator

if TYPE_CHECKING:
    from ..infra.storage import RedisStore

logger = structlog.get_logger("bookmark_keeper.records")

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_FNV64_MASK = 0xFFFFFFFFFFFFFFFF


class BookmarkStatus(str, Enum):
    """Link health as last recorded by a reconciliation or revive."""

    ACTIVE = "active"
    DEAD = "dead"
    UNKNOWN = "unknown"


def fingerprint(url: str) -> str:
    """Return the FNV-1a 64-bit hex digest used as a bookmark's display id."""

    value = _FNV64_OFFSET
    for byte in url.encode("utf-8"):
        value ^= byte
        value = (value * _FNV64_PRIME) & _FNV64_MASK
    return format(value, "x")


class Bookmark(BaseModel):
    """A single bookmark as stored in the sorted indices.

    Field names and their order form the stored member format and must not
    change; older members may carry ``tags: null`` or no ``status``.
    """

    url: str
    title: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0
    id: str = ""
    status: BookmarkStatus = BookmarkStatus.UNKNOWN

    @field_validator("title", "description", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            raise ValueError("tags must be a list of strings")
        seen: dict[str, None] = {}
        for tag in value:
            text = str(tag).strip()
            if text:
                seen.setdefault(text, None)
        return list(seen)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> int:
        if value is None or value == "":
            return 0
        if isinstance(value, bool):
            raise ValueError("timestamp must be a number")
        try:
            seconds = float(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("timestamp must be a number") from exc
        if not math.isfinite(seconds):
            raise ValueError("timestamp must be finite")
        return int(seconds)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Any:
        if value in (None, ""):
            return BookmarkStatus.UNKNOWN
        return value

    @property
    def score(self) -> float:
        return float(self.created_at)

    def with_status(self, status: BookmarkStatus) -> "Bookmark":
        return self.model_copy(update={"status": status})

    def to_member(self) -> str:
        """Serialise to the compact JSON string stored as a sorted-set member."""

        return json.dumps(self.model_dump(mode="json"), ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def from_member(cls, member: str | bytes) -> "Bookmark | None":
        """Decode a stored member, returning ``None`` when it cannot be parsed."""

        try:
            payload = json.loads(member)
        except (TypeError, ValueError):
            return None
        if not isinstance(payload, dict):
            return None
        try:
            return cls.model_validate(payload)
        except ValidationError:
            return None


@dataclass(slots=True)
class DuplicateReport:
    url: str
    occurrence_count: int


def urls_of(records: Iterable[Bookmark]) -> set[str]:
    return {record.url for record in records}


def load_index(store: "RedisStore", index_name: str) -> list[Bookmark]:
    """Decode a sorted index into bookmarks, silently skipping malformed members."""

    records: list[Bookmark] = []
    for _score, member in store.range_all(index_name):
        record = Bookmark.from_member(member)
        if record is None:
            logger.debug("malformed_member_skipped", index=index_name)
            continue
        records.append(record)
    return records


def write_record(store: "RedisStore", index_name: str, set_name: str, record: Bookmark) -> None:
    store.add_to_sorted_index(index_name, record.score, record.to_member())
    store.add_to_set(set_name, record.url)


__all__ = [
    "Bookmark",
    "BookmarkStatus",
    "DuplicateReport",
    "fingerprint",
    "load_index",
    "urls_of",
    "write_record",
]
