"""Active/dead partition rebuild plus targeted revive and purge operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Sequence

import structlog

from ..infra.storage import (
    ACTIVE_INDEX,
    ACTIVE_URLS,
    COMBINED_INDEX,
    COMBINED_URLS,
    DEAD_INDEX,
    DEAD_URLS,
    StoreError,
)
from .dedup import dedupe
from .records import Bookmark, BookmarkStatus, load_index, urls_of, write_record

if TYPE_CHECKING:
    from ..infra.storage import RedisStore
    from .thread_pool import BoundedProber


class ReconciliationError(RuntimeError):
    """A partition rewrite step failed; earlier steps remain applied."""

    def __init__(self, step: str, completed_steps: Sequence[str], cause: Exception) -> None:
        self.step = step
        self.completed_steps = list(completed_steps)
        self.cause = cause
        done = ", ".join(self.completed_steps) or "none"
        super().__init__(
            f"Rewriting the {step} partition failed ({cause}); completed steps: {done}. "
            "The store may hold a mixed state: re-run `check`/`clean` to converge."
        )


class BookmarkNotFoundError(LookupError):
    """Raised when a URL is not present in the dead partition."""


@dataclass(slots=True)
class PartitionPlan:
    active: list[Bookmark] = field(default_factory=list)
    dead: list[Bookmark] = field(default_factory=list)
    duplicates_removed: int = 0


@dataclass(slots=True)
class ReconcileResult:
    active_count: int
    dead_count: int
    duplicates_removed: int = 0


def plan_partitions(records: Sequence[Bookmark], keep: Sequence[bool]) -> list[Bookmark]:
    """Return the records whose keep flag is set; ``keep`` is positional."""

    if len(keep) != len(records):
        raise ValueError("keep flags must align with records")
    return [record for record, flag in zip(records, keep) if flag]


class PartitionReconciler:
    """Dedupe, probe and rewrite the active, dead and combined indices."""

    def __init__(
        self,
        store: "RedisStore",
        prober: "BoundedProber",
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.store = store
        self.prober = prober
        self.logger = logger or structlog.get_logger("bookmark_keeper.partitions")

    def reconcile(self, records: Sequence[Bookmark], concurrency: int, timeout: float) -> ReconcileResult:
        plan = self.plan(records, concurrency, timeout)
        self.apply(plan)
        return ReconcileResult(
            active_count=len(plan.active),
            dead_count=len(plan.dead),
            duplicates_removed=plan.duplicates_removed,
        )

    def plan(self, records: Sequence[Bookmark], concurrency: int, timeout: float) -> PartitionPlan:
        unique = dedupe(records)
        keep = self.prober.validate(unique, concurrency, timeout)
        kept = plan_partitions(unique, keep)
        active_urls = urls_of(kept)
        active = [record.with_status(BookmarkStatus.ACTIVE) for record in kept]
        dead = [
            record.with_status(BookmarkStatus.DEAD)
            for record in unique
            if record.url not in active_urls
        ]
        self.logger.info(
            "reconcile_planned",
            total=len(records),
            unique=len(unique),
            active=len(active),
            dead=len(dead),
        )
        return PartitionPlan(active=active, dead=dead, duplicates_removed=len(records) - len(unique))

    def apply(self, plan: PartitionPlan) -> None:
        """Destructively replace active, dead, then combined indices, stopping on failure."""

        steps: list[tuple[str, Callable[[], None]]] = [
            ("active", lambda: self._replace(ACTIVE_INDEX, ACTIVE_URLS, plan.active)),
            ("dead", lambda: self._replace(DEAD_INDEX, DEAD_URLS, plan.dead)),
            ("combined", lambda: self._replace(COMBINED_INDEX, COMBINED_URLS, plan.active)),
        ]
        completed: list[str] = []
        for name, step in steps:
            try:
                step()
            except StoreError as exc:
                self.logger.error("reconcile_step_failed", step=name, completed=completed, error=str(exc))
                raise ReconciliationError(name, completed, exc) from exc
            completed.append(name)
        self.logger.info("reconcile_applied", active=len(plan.active), dead=len(plan.dead))

    def _replace(self, index_name: str, set_name: str, records: Sequence[Bookmark]) -> None:
        self.store.delete_index(index_name)
        self.store.delete_index(set_name)
        for record in records:
            write_record(self.store, index_name, set_name, record)


class DeadLinkManager:
    """Inspect and mutate the dead partition without a full rebuild."""

    def __init__(self, store: "RedisStore", logger: structlog.BoundLogger | None = None) -> None:
        self.store = store
        self.logger = logger or structlog.get_logger("bookmark_keeper.partitions")

    def show(self) -> list[Bookmark]:
        return load_index(self.store, DEAD_INDEX)

    def purge(self) -> int:
        """Drop the dead index and its membership set; returns the number of records removed."""

        removed = len(self.store.range_all(DEAD_INDEX))
        self.store.delete_index(DEAD_INDEX)
        self.store.delete_index(DEAD_URLS)
        self.logger.info("dead_purged", removed=removed)
        return removed

    def revive(self, url: str) -> Bookmark:
        for _score, member in self.store.range_all(DEAD_INDEX):
            record = Bookmark.from_member(member)
            if record is None or record.url != url:
                continue
            revived = record.with_status(BookmarkStatus.ACTIVE)
            write_record(self.store, ACTIVE_INDEX, ACTIVE_URLS, revived)
            write_record(self.store, COMBINED_INDEX, COMBINED_URLS, revived)
            self.store.remove_from_set(DEAD_URLS, url)
            self.store.remove_from_sorted_index(DEAD_INDEX, member)
            self.logger.info("dead_revived", url=url)
            return revived
        raise BookmarkNotFoundError(f"url not found in dead list: {url}")


__all__ = [
    "BookmarkNotFoundError",
    "DeadLinkManager",
    "PartitionPlan",
    "PartitionReconciler",
    "ReconcileResult",
    "ReconciliationError",
    "plan_partitions",
]
