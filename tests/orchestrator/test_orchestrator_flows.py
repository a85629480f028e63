from __future__ import annotations

import json
from datetime import date

import pytest

from bookmark_keeper.engine import BookmarkNotFoundError, BookmarkStatus
from bookmark_keeper.engine.records import load_index
from bookmark_keeper.infra import ACTIVE_INDEX, COMBINED_INDEX, DEAD_INDEX
from bookmark_keeper.orchestrator import Orchestrator
from bookmark_keeper.ui import ProgressReporter


class RecordingReporter(ProgressReporter):
    instances: list["RecordingReporter"] = []

    def __init__(self, label: str) -> None:
        super().__init__(enabled=False, label=label)
        RecordingReporter.instances.append(self)


@pytest.fixture
def seeded(seed_combined, make_bookmark):
    records = [
        make_bookmark("https://a.test", created_at=1, tags=["x"]),
        make_bookmark("https://a.test", created_at=2, tags=["x"]),
        make_bookmark("https://b.test", created_at=3, title="Bravo"),
    ]
    seed_combined(records)
    return records


def build(store, sample_global_config, probe_factory, dead=()):
    RecordingReporter.instances = []
    return Orchestrator(
        store=store,
        global_config=sample_global_config,
        probe=probe_factory(dead),
        progress_factory=RecordingReporter,
    )


def test_check_reports_without_mutating(store, seeded, sample_global_config, probe_factory) -> None:
    orchestrator = build(store, sample_global_config, probe_factory, dead={"https://a.test"})

    report = orchestrator.check()

    assert report.total == 3
    assert report.probed == 2
    assert [(d.url, d.occurrence_count) for d in report.duplicates] == [("https://a.test", 2)]
    assert [r.url for r in report.dead] == ["https://a.test"]
    assert report.summary_line() == "Summary: 3 total, 1 duplicates, 1 dead links"
    assert len(load_index(store, COMBINED_INDEX)) == 3
    assert load_index(store, ACTIVE_INDEX) == []
    reporter = RecordingReporter.instances[0]
    assert reporter.label == "Checking"
    assert reporter.summary() == {"completed": 2, "alive": 1, "dead": 1}


def test_check_on_empty_store(store, sample_global_config, probe_factory) -> None:
    report = build(store, sample_global_config, probe_factory).check()
    assert report.summary_line() == "Summary: 0 total, 0 duplicates, 0 dead links"
    assert RecordingReporter.instances == []


def test_clean_rebuilds_partitions(store, seeded, sample_global_config, probe_factory) -> None:
    orchestrator = build(store, sample_global_config, probe_factory, dead={"https://a.test"})

    result = orchestrator.clean(concurrency=2, timeout=0.5)

    assert (result.active_count, result.dead_count, result.duplicates_removed) == (1, 1, 1)
    assert [r.url for r in load_index(store, COMBINED_INDEX)] == ["https://b.test"]
    assert [r.url for r in orchestrator.show_dead()] == ["https://a.test"]
    assert RecordingReporter.instances[0].label == "Validating"


def test_list_and_search_with_dead_partition(store, seeded, sample_global_config, probe_factory) -> None:
    orchestrator = build(store, sample_global_config, probe_factory, dead={"https://a.test"})
    orchestrator.clean()

    assert [r.url for r in orchestrator.list_bookmarks()] == ["https://b.test"]
    assert [r.url for r in orchestrator.list_bookmarks(include_dead=True)] == ["https://b.test", "https://a.test"]
    assert [r.url for r in orchestrator.search(query="bravo")] == ["https://b.test"]
    assert orchestrator.search(tags=["x"]) == []
    assert [r.url for r in orchestrator.search(tags=["x"], include_dead=True)] == ["https://a.test"]
    assert orchestrator.search(date_from=date(2030, 1, 1)) == []


def test_revive_and_purge(store, seeded, sample_global_config, probe_factory) -> None:
    orchestrator = build(store, sample_global_config, probe_factory, dead={"https://a.test"})
    orchestrator.clean()

    revived = orchestrator.revive("https://a.test")

    assert revived.status is BookmarkStatus.ACTIVE
    assert load_index(store, DEAD_INDEX) == []
    with pytest.raises(BookmarkNotFoundError):
        orchestrator.revive("https://a.test")
    assert orchestrator.purge_dead() == 0


def test_import_file_feeds_combined_index(store, sample_global_config, probe_factory, tmp_path) -> None:
    export = tmp_path / "bookmarks.json"
    export.write_text(json.dumps({"bookmarks": [{"url": "https://n.test"}]}), encoding="utf-8")

    summary = build(store, sample_global_config, probe_factory).import_file(export)

    assert summary.imported == 1
    assert [r.url for r in load_index(store, COMBINED_INDEX)] == ["https://n.test"]


def test_limits_default_from_config_and_are_validated(store, seeded, sample_global_config) -> None:
    seen: set[float] = set()

    def probe(url: str, timeout: float) -> bool:
        seen.add(timeout)
        return True

    orchestrator = Orchestrator(store, sample_global_config, probe, progress_factory=RecordingReporter)
    orchestrator.check()
    assert seen == {sample_global_config.check.timeout}
    with pytest.raises(ValueError):
        orchestrator.check(concurrency=0)
    with pytest.raises(ValueError):
        orchestrator.clean(timeout=0)
