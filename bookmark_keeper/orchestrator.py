"""Workflow coordinator wiring store, probes, partitions and progress for the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Callable, Sequence

import structlog

from .config import GlobalConfig
from .engine import (
    Bookmark,
    BookmarkImporter,
    BoundedProber,
    DeadLinkManager,
    DuplicateReport,
    ImportSummary,
    PartitionReconciler,
    ReconcileResult,
    dedupe,
    filter_bookmarks,
    find_duplicates,
)
from .engine.records import load_index
from .engine.thread_pool import ProbeFunc
from .infra import COMBINED_INDEX, DEAD_INDEX, RedisStore
from .ui import ProgressReporter


@dataclass(slots=True)
class CheckReport:
    """Outcome of a read-only ``check`` run."""

    total: int
    probed: int = 0
    duplicates: list[DuplicateReport] = field(default_factory=list)
    dead: list[Bookmark] = field(default_factory=list)

    def summary_line(self) -> str:
        return f"Summary: {self.total} total, {len(self.duplicates)} duplicates, {len(self.dead)} dead links"


class Orchestrator:
    """Central coordinator for every bookmark command."""

    def __init__(
        self,
        store: RedisStore,
        global_config: GlobalConfig,
        probe: ProbeFunc,
        progress_factory: Callable[[str], ProgressReporter] | None = None,
    ) -> None:
        self.store = store
        self.global_config = global_config
        self.probe = probe
        self.progress_factory = progress_factory or self._default_progress
        self.dead_links = DeadLinkManager(store)
        self.logger = structlog.get_logger("bookmark_keeper").bind(component="orchestrator")

    # ------------------------------------------------------------------
    def load_all(self) -> list[Bookmark]:
        return load_index(self.store, COMBINED_INDEX)

    def check(self, concurrency: int | None = None, timeout: float | None = None) -> CheckReport:
        """Report duplicates and dead links without mutating the store."""

        concurrency, timeout = self._resolve_limits(concurrency, timeout)
        records = self.load_all()
        report = CheckReport(total=len(records), duplicates=find_duplicates(records))
        if not records:
            return report
        unique = dedupe(records)
        progress = self.progress_factory("Checking")
        progress.start(len(unique))
        try:
            prober = BoundedProber(self.probe, on_progress=progress.on_probe)
            dead_urls = prober.probe_all(unique, concurrency, timeout)
        finally:
            progress.close()
        report.probed = len(unique)
        report.dead = [record for record in unique if record.url in dead_urls]
        self.logger.info(
            "check_finished",
            total=report.total,
            duplicates=len(report.duplicates),
            dead=len(report.dead),
        )
        return report

    def clean(self, concurrency: int | None = None, timeout: float | None = None) -> ReconcileResult:
        """Dedupe, probe and rebuild the active/dead partitions."""

        concurrency, timeout = self._resolve_limits(concurrency, timeout)
        records = self.load_all()
        if not records:
            return ReconcileResult(active_count=0, dead_count=0)
        progress = self.progress_factory("Validating")
        progress.start(len(dedupe(records)))
        try:
            prober = BoundedProber(self.probe, on_progress=progress.on_probe)
            return PartitionReconciler(self.store, prober).reconcile(records, concurrency, timeout)
        finally:
            progress.close()

    def import_file(self, path: Path) -> ImportSummary:
        return BookmarkImporter(self.store).import_file(path)

    def list_bookmarks(
        self,
        limit: int | None = None,
        tags: Sequence[str] = (),
        include_dead: bool = False,
    ) -> list[Bookmark]:
        return filter_bookmarks(self._pool(include_dead), tags=tags, limit=limit)

    def search(
        self,
        query: str = "",
        tags: Sequence[str] = (),
        date_from: date | None = None,
        date_to: date | None = None,
        limit: int | None = None,
        include_dead: bool = False,
    ) -> list[Bookmark]:
        return filter_bookmarks(
            self._pool(include_dead),
            query=query,
            tags=tags,
            date_from=date_from,
            date_to=date_to,
            limit=limit,
        )

    def show_dead(self) -> list[Bookmark]:
        return self.dead_links.show()

    def purge_dead(self) -> int:
        return self.dead_links.purge()

    def revive(self, url: str) -> Bookmark:
        return self.dead_links.revive(url)

    # ------------------------------------------------------------------
    def _pool(self, include_dead: bool) -> list[Bookmark]:
        pool = self.load_all()
        if include_dead:
            pool.extend(load_index(self.store, DEAD_INDEX))
        return pool

    def _resolve_limits(self, concurrency: int | None, timeout: float | None) -> tuple[int, float]:
        check_cfg = self.global_config.check
        resolved_concurrency = concurrency if concurrency is not None else check_cfg.concurrency
        resolved_timeout = timeout if timeout is not None else check_cfg.timeout
        if resolved_concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if resolved_timeout <= 0:
            raise ValueError("timeout must be > 0")
        return resolved_concurrency, resolved_timeout

    def _default_progress(self, label: str) -> ProgressReporter:
        return ProgressReporter(
            enabled=self.global_config.enable_progress_bar,
            label=label,
            max_url_length=self.global_config.max_url_display_length,
        )


__all__ = ["CheckReport", "Orchestrator"]
