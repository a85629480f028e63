"""Two-stage URL reachability probe built on a shared HTTPX client."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from ..config import CheckConfig

RANGE_HEADERS = {"Range": "bytes=0-0"}


class UrlHealthProber:
    """Classify a URL as healthy (status < 400) or dead, failing closed.

    A HEAD request is tried first; servers that reject HEAD or error out get a
    second chance through a GET limited to the first byte.
    """

    def __init__(
        self,
        check_config: CheckConfig | None = None,
        transport: httpx.BaseTransport | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.check_config = check_config or CheckConfig()
        self.logger = logger or structlog.get_logger("bookmark_keeper.prober")
        headers = {"User-Agent": self.check_config.user_agent} if self.check_config.user_agent else None
        client_kwargs: dict[str, Any] = {
            "follow_redirects": self.check_config.follow_redirects,
            "timeout": self.check_config.timeout,
            "headers": headers,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.Client(**client_kwargs)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "UrlHealthProber":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __call__(self, url: str, timeout: float) -> bool:
        return self.probe(url, timeout)

    def probe(self, url: str, timeout: float | None = None) -> bool:
        effective_timeout = timeout or self.check_config.timeout
        if self._request("HEAD", url, effective_timeout):
            return True
        return self._request("GET", url, effective_timeout, headers=RANGE_HEADERS)

    # ------------------------------------------------------------------
    def _request(
        self,
        method: str,
        url: str,
        timeout: float,
        headers: dict[str, str] | None = None,
    ) -> bool:
        # Streaming keeps the body unread when a server ignores the Range header.
        try:
            with self._client.stream(method, url, headers=headers, timeout=timeout) as response:
                status_code = response.status_code
        except Exception as exc:  # noqa: BLE001
            self.logger.debug("probe_failed", url=url, method=method, error=str(exc))
            return False
        healthy = self._is_healthy(status_code)
        if not healthy:
            self.logger.debug("probe_unhealthy", url=url, method=method, status=status_code)
        return healthy

    @staticmethod
    def _is_healthy(status_code: int) -> bool:
        return status_code < 400


__all__ = ["UrlHealthProber", "RANGE_HEADERS"]
