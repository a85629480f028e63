from __future__ import annotations

import io
import threading

import pytest
from rich.console import Console

from bookmark_keeper.ui import ProgressReporter


def test_advance_requires_start() -> None:
    with pytest.raises(RuntimeError):
        ProgressReporter(enabled=False).advance(True)


def test_counts_alive_and_dead_from_many_threads() -> None:
    reporter = ProgressReporter(enabled=False)
    reporter.start(200)

    def worker(offset: int) -> None:
        for index in range(50):
            reporter.on_probe(0, 200, f"https://{offset}-{index}.test", index % 5 != 0)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert reporter.summary() == {"completed": 200, "alive": 160, "dead": 40}


def test_non_terminal_console_degrades_to_silent() -> None:
    buffer = io.StringIO()
    reporter = ProgressReporter(console=Console(file=buffer, force_terminal=False))
    reporter.start(2)
    reporter.advance(True, "https://a.test")
    reporter.advance(False, "https://b.test")
    reporter.close()

    assert reporter.enabled is False
    assert buffer.getvalue() == ""
    assert reporter.state is not None and reporter.state.current_url == "https://b.test"


def test_terminal_console_renders_and_closes() -> None:
    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=True, width=120)
    reporter = ProgressReporter(console=console, label="Validating")
    reporter.start(1)
    reporter.advance(True, "https://example.test/" + "x" * 100)
    reporter.close()

    assert reporter.summary()["completed"] == 1
    assert reporter._progress is None


def test_long_urls_are_shortened() -> None:
    reporter = ProgressReporter(enabled=False, max_url_length=20)
    shortened = reporter._shorten("https://example.test/a/very/long/path")
    assert len(shortened) == 20
    assert shortened.endswith("...")
