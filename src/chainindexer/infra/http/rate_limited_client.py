import asyncio
import time
from typing import Any

import httpx

from chainindexer.exceptions import ExternalServiceError


class RateLimitedClient:
    """Async HTTP client bound to one base URL, with interval-based rate limiting."""

    def __init__(
        self,
        base_url: str = "",
        rate_per_second: float = 5.0,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._min_interval = 1.0 / rate_per_second
        self._last_request_time = 0.0
        self._lock = asyncio.Lock()
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def _wait_for_slot(self) -> None:
        async with self._lock:
            elapsed = time.monotonic() - self._last_request_time
            if elapsed < self._min_interval:
                await asyncio.sleep(self._min_interval - elapsed)
            self._last_request_time = time.monotonic()

    async def get(self, url: str, params: dict | None = None) -> httpx.Response:
        await self._wait_for_slot()
        return await self._client.get(url, params=params)

    async def get_json(self, url: str, params: dict | None = None) -> Any:
        """GET and decode; transport failures and non-2xx answers become ExternalServiceError."""
        try:
            resp = await self.get(url, params=params)
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"GET {url} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise ExternalServiceError(f"GET {url} returned {resp.status_code}: {resp.text[:200]}")
        return resp.json()

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RateLimitedClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
