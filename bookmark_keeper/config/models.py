"""Pydantic models describing bookmark-keeper configuration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


class RedisConfig(BaseModel):
    """Connection settings for the Redis record store."""

    url: str | None = None
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str | None = None
    socket_timeout: float = 5.0

    @field_validator("port")
    @classmethod
    def _validate_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError("port must be between 1 and 65535")
        return value

    @field_validator("db")
    @classmethod
    def _validate_db(cls, value: int) -> int:
        if value < 0:
            raise ValueError("db must be >= 0")
        return value


class CheckConfig(BaseModel):
    """Defaults for link probing used by ``check`` and ``clean``."""

    concurrency: int = 20
    timeout: float = 8.0
    user_agent: str | None = DEFAULT_USER_AGENT
    follow_redirects: bool = True

    @model_validator(mode="after")
    def _validate_limits(self) -> "CheckConfig":
        if self.concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        return self


class GlobalConfig(BaseModel):
    """Global controls shared across commands."""

    redis: RedisConfig = Field(default_factory=RedisConfig)
    check: CheckConfig = Field(default_factory=CheckConfig)
    enable_progress_bar: bool = True
    max_url_display_length: int = 60

    @field_validator("max_url_display_length", mode="before")
    @classmethod
    def _coerce_display_length(cls, value: Any) -> int:
        length = int(value)
        if length < 10:
            raise ValueError("max_url_display_length must be >= 10")
        return length


__all__ = ["CheckConfig", "DEFAULT_USER_AGENT", "GlobalConfig", "RedisConfig"]
