"""Redis-backed record store holding the bookmark indices and URL sets."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import redis
import structlog

from ..config import RedisConfig

COMBINED_INDEX = "bookmarks:index"
COMBINED_URLS = "bookmarks:urls"
ACTIVE_INDEX = "bookmarks:active"
ACTIVE_URLS = "bookmarks:urls:active"
DEAD_INDEX = "bookmarks:dead"
DEAD_URLS = "bookmarks:urls:dead"


class StoreError(RuntimeError):
    """Raised when the key-value backend rejects or fails an operation."""


class StoreConnectionError(StoreError):
    """Raised when the backend cannot be reached at all."""


class RedisStore:
    """Thin adapter exposing the primitives the engine needs over redis-py.

    The handle is created explicitly and passed to every component; call
    :meth:`close` (or use it as a context manager) when done.
    """

    def __init__(self, client: redis.Redis, logger: structlog.BoundLogger | None = None) -> None:
        self._client = client
        self.logger = logger or structlog.get_logger("bookmark_keeper.store")

    @classmethod
    def connect(cls, config: RedisConfig) -> "RedisStore":
        if config.url:
            client = redis.Redis.from_url(
                config.url,
                password=config.password or None,
                socket_timeout=config.socket_timeout,
                socket_connect_timeout=config.socket_timeout,
                decode_responses=True,
            )
        else:
            client = redis.Redis(
                host=config.host,
                port=config.port,
                db=config.db,
                password=config.password or None,
                socket_timeout=config.socket_timeout,
                socket_connect_timeout=config.socket_timeout,
                decode_responses=True,
            )
        store = cls(client)
        store.ping()
        store.logger.info("redis_connected", url=config.url, host=config.host, port=config.port, db=config.db)
        return store

    def __enter__(self) -> "RedisStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    def ping(self) -> None:
        with self._translate_errors():
            self._client.ping()

    def range_all(self, index_name: str) -> list[tuple[float, str]]:
        """Return every ``(score, member)`` of a sorted index, lowest score first."""

        with self._translate_errors():
            rows = self._client.zrange(index_name, 0, -1, withscores=True)
        return [(float(score), self._text(member)) for member, score in rows]

    def add_to_sorted_index(self, index_name: str, score: float, member: str) -> None:
        with self._translate_errors():
            self._client.zadd(index_name, {member: score})

    def remove_from_sorted_index(self, index_name: str, member: str) -> bool:
        with self._translate_errors():
            return bool(self._client.zrem(index_name, member))

    def add_to_set(self, set_name: str, value: str) -> bool:
        """Add ``value`` and report whether it was not already a member."""

        with self._translate_errors():
            return bool(self._client.sadd(set_name, value))

    def remove_from_set(self, set_name: str, value: str) -> None:
        with self._translate_errors():
            self._client.srem(set_name, value)

    def set_members(self, set_name: str) -> set[str]:
        with self._translate_errors():
            return {self._text(value) for value in self._client.smembers(set_name)}

    def delete_index(self, name: str) -> None:
        with self._translate_errors():
            self._client.delete(name)

    @staticmethod
    def _text(value: str | bytes) -> str:
        return value.decode("utf-8") if isinstance(value, bytes) else value

    @staticmethod
    @contextmanager
    def _translate_errors() -> Iterator[None]:
        try:
            yield
        except redis.ConnectionError as exc:
            raise StoreConnectionError(f"Cannot reach Redis: {exc}") from exc
        except redis.RedisError as exc:
            raise StoreError(str(exc)) from exc


__all__ = [
    "ACTIVE_INDEX",
    "ACTIVE_URLS",
    "COMBINED_INDEX",
    "COMBINED_URLS",
    "DEAD_INDEX",
    "DEAD_URLS",
    "RedisStore",
    "StoreConnectionError",
    "StoreError",
]
