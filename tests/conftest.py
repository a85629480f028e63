"""Shared fixtures: isolated home directory, in-memory Redis store and bookmark builders."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Iterable

import fakeredis
import pytest
import structlog

from bookmark_keeper.config import CheckConfig, GlobalConfig
from bookmark_keeper.engine import Bookmark, fingerprint
from bookmark_keeper.engine.records import write_record
from bookmark_keeper.infra import COMBINED_INDEX, COMBINED_URLS, RedisStore


@pytest.fixture(autouse=True, scope="session")
def _route_structlog_to_stdlib() -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    logging.getLogger("bookmark_keeper").setLevel(logging.DEBUG)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    monkeypatch.setenv("BOOKMARK_KEEPER_HOME", str(home))
    for name in ("REDIS_URL", "REDIS_ADDR", "REDIS_DB", "REDIS_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def fake_redis() -> Iterable[fakeredis.FakeRedis]:
    client = fakeredis.FakeRedis(decode_responses=True)
    yield client
    client.flushall()


@pytest.fixture
def store(fake_redis: fakeredis.FakeRedis) -> RedisStore:
    return RedisStore(fake_redis)


@pytest.fixture
def make_bookmark() -> Callable[..., Bookmark]:
    def _builder(url: str = "https://example.com", **overrides: Any) -> Bookmark:
        base: dict[str, Any] = {
            "url": url,
            "title": f"Title for {url}",
            "description": "",
            "tags": [],
            "created_at": 1_700_000_000,
            "updated_at": 1_700_000_000,
            "id": fingerprint(url),
        }
        base.update(overrides)
        return Bookmark(**base)

    return _builder


@pytest.fixture
def seed_combined(store: RedisStore) -> Callable[[Iterable[Bookmark]], None]:
    """Write bookmarks into the combined index as the importer would, duplicates included."""

    def _seed(records: Iterable[Bookmark]) -> None:
        for record in records:
            write_record(store, COMBINED_INDEX, COMBINED_URLS, record)

    return _seed


@pytest.fixture
def sample_global_config() -> GlobalConfig:
    return GlobalConfig(
        check=CheckConfig(concurrency=4, timeout=1.0),
        enable_progress_bar=False,
    )


def static_probe(dead_urls: Iterable[str]) -> Callable[[str, float], bool]:
    dead = set(dead_urls)

    def _probe(url: str, timeout: float) -> bool:
        return url not in dead

    return _probe


@pytest.fixture
def probe_factory() -> Callable[[Iterable[str]], Callable[[str, float], bool]]:
    return static_probe
