"""Protocol interfaces for swappable components.

Tool handlers, the batch loop and AppState reference these protocols, not the
concrete implementations. This allows:
- Tests to use lightweight fakes (e.g. a client that fails on chosen ids)
- A shared or persistent cache backend to be swapped in without touching
  the extraction or orchestration code
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from appinsight.models.cache import CacheEntry, CacheKey
    from appinsight.models.revenue import Platform


class CacheProtocol(Protocol):
    """Interface for the upstream response cache."""

    def get(self, key: CacheKey) -> CacheEntry | None: ...

    def put(self, key: CacheKey, data: Any) -> None: ...


class RevenueClientProtocol(Protocol):
    """Interface for the cached revenue-intelligence client."""

    def endpoint_for(self, platform: Platform, identifier: int | str) -> str: ...

    def cache_key_for(self, platform: Platform, identifier: int | str) -> str: ...

    async def fetch(
        self,
        endpoint: str,
        cache_key_base: str,
        region: str | None = None,
    ) -> Any: ...
