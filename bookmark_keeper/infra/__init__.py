"""Infra layer utilities (Redis record store)."""

from .storage import (
    ACTIVE_INDEX,
    ACTIVE_URLS,
    COMBINED_INDEX,
    COMBINED_URLS,
    DEAD_INDEX,
    DEAD_URLS,
    RedisStore,
    StoreConnectionError,
    StoreError,
)

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
