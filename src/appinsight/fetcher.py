"""HTTP access to the revenue-intelligence provider, fronted by the cache.

All network I/O goes through a single httpx.AsyncClient shared across tool
calls. Clients receive it via constructor injection; the lifespan owns the
client lifecycle.

Concurrent calls for the same uncached key are not coalesced: each one misses,
each one goes upstream, and the last write wins. Tool calls arrive one at a
time in practice, so duplicate requests cost one extra upstream hit at most.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import structlog

from appinsight.cache import compose_key
from appinsight.errors import RateLimitedError, UpstreamError

if TYPE_CHECKING:
    from appinsight.config import HttpSettings
    from appinsight.models.revenue import Platform
    from appinsight.protocols import CacheProtocol

log = structlog.get_logger()

PROVIDER_NAME = "Sensor Tower"


def build_http_client(settings: HttpSettings) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": settings.user_agent},
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


def raise_for_upstream_status(response: httpx.Response, provider: str) -> None:
    """Translate a non-2xx response into RateLimitedError or UpstreamError."""
    if response.status_code == 429:
        log.warning("upstream_rate_limited", provider=provider, url=str(response.url))
        raise RateLimitedError()
    if not response.is_success:
        raise UpstreamError(
            f"Failed to fetch data from {provider}: "
            f"HTTP {response.status_code}: {response.reason_phrase}",
            status_code=response.status_code,
        )


class RevenueClient:
    """Cached JSON client for per-app revenue records."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: CacheProtocol,
        base_url: str,
    ) -> None:
        self._client = client
        self._cache = cache
        self._base_url = base_url.rstrip("/")

    def endpoint_for(self, platform: Platform, identifier: int | str) -> str:
        return f"{self._base_url}/api/{platform}/apps/{identifier}"

    def cache_key_for(self, platform: Platform, identifier: int | str) -> str:
        return f"{platform}:{identifier}"

    async def fetch(
        self,
        endpoint: str,
        cache_key_base: str,
        region: str | None = None,
    ) -> Any:
        """Return the decoded JSON for ``endpoint``, serving fresh cache hits.

        ``region`` is sent as the ``country`` query parameter and is part of
        the cache key. Raises RateLimitedError on HTTP 429 and UpstreamError
        on every other failure.
        """
        key = compose_key(cache_key_base, region)

        cached = self._cache.get(key)
        if cached is not None:
            log.info("cache_hit", key=key.endpoint, region=key.region)
            return cached.data

        log.info("cache_miss_fetching", url=endpoint, region=key.region)
        params = {"country": key.region} if key.region else None

        try:
            response = await self._client.get(endpoint, params=params)
            raise_for_upstream_status(response, PROVIDER_NAME)
            data = response.json()
        except (RateLimitedError, UpstreamError):
            raise
        except httpx.HTTPError as exc:
            raise UpstreamError(
                f"Failed to fetch data from {PROVIDER_NAME}: network error: {exc}"
            ) from exc
        except ValueError as exc:
            raise UpstreamError(
                f"Failed to fetch data from {PROVIDER_NAME}: malformed response body: {exc}"
            ) from exc

        self._cache.put(key, data)
        log.info("fetch_complete", url=endpoint, status_code=response.status_code)
        return data
