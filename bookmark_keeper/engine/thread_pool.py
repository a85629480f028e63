"""Bounded fan-out of URL probes over a thread pool."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from threading import BoundedSemaphore, Lock
from typing import Callable, Protocol, Sequence

import structlog

from .records import Bookmark

ProbeFunc = Callable[[str, float], bool]


class ProgressCallback(Protocol):
    def __call__(self, completed: int, total: int, url: str, healthy: bool) -> None: ...


class BoundedProber:
    """Run a probe function over many bookmarks with at most ``concurrency`` in flight.

    ``probe_all`` collects dead URLs into a lock-protected set. ``validate``
    writes keep/drop flags into a pre-sized list; each worker owns one slot
    so that path needs no lock and preserves input order.
    """

    def __init__(
        self,
        probe: ProbeFunc,
        on_progress: ProgressCallback | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.probe = probe
        self.on_progress = on_progress
        self.logger = logger or structlog.get_logger("bookmark_keeper.thread_pool")
        self._progress_lock = Lock()
        self._completed = 0
        self._total = 0

    def probe_all(self, records: Sequence[Bookmark], concurrency: int, timeout: float) -> set[str]:
        dead: set[str] = set()
        dead_lock = Lock()

        def _collect(_index: int, record: Bookmark, healthy: bool) -> None:
            if not healthy:
                with dead_lock:
                    dead.add(record.url)

        self._run(records, concurrency, timeout, _collect)
        return dead

    def validate(self, records: Sequence[Bookmark], concurrency: int, timeout: float) -> list[bool]:
        keep = [False] * len(records)

        def _collect(index: int, _record: Bookmark, healthy: bool) -> None:
            keep[index] = healthy

        self._run(records, concurrency, timeout, _collect)
        return keep

    # ------------------------------------------------------------------
    def _run(
        self,
        records: Sequence[Bookmark],
        concurrency: int,
        timeout: float,
        collect: Callable[[int, Bookmark, bool], None],
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        with self._progress_lock:
            self._completed = 0
            self._total = len(records)
        if not records:
            return
        slots = BoundedSemaphore(concurrency)
        futures: list[Future[None]] = []
        with ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix="probe") as executor:
            for index, record in enumerate(records):
                # Blocks the submitting thread until a slot frees up.
                slots.acquire()
                try:
                    futures.append(
                        executor.submit(self._probe_one, index, record, timeout, collect, slots)
                    )
                except BaseException:
                    slots.release()
                    raise
            wait(futures)
        self.logger.debug("probe_batch_done", total=len(records), concurrency=concurrency)

    def _probe_one(
        self,
        index: int,
        record: Bookmark,
        timeout: float,
        collect: Callable[[int, Bookmark, bool], None],
        slots: BoundedSemaphore,
    ) -> None:
        try:
            try:
                healthy = bool(self.probe(record.url, timeout))
            except Exception as exc:  # noqa: BLE001
                self.logger.warning("probe_error", url=record.url, error=str(exc))
                healthy = False
            collect(index, record, healthy)
            self._advance(record.url, healthy)
        finally:
            slots.release()

    def _advance(self, url: str, healthy: bool) -> None:
        with self._progress_lock:
            self._completed += 1
            completed = self._completed
            total = self._total
            if self.on_progress is not None:
                try:
                    self.on_progress(completed, total, url, healthy)
                except Exception as exc:  # noqa: BLE001
                    self.logger.debug("progress_callback_failed", error=str(exc))


__all__ = ["BoundedProber", "ProbeFunc", "ProgressCallback"]
