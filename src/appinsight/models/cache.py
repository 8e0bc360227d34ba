from __future__ import annotations

from datetime import datetime
from typing import Any, NamedTuple

from pydantic import BaseModel


class CacheKey(NamedTuple):
    """Identity of a cached upstream response.

    ``endpoint`` is the platform-qualified app identifier (``"ios:284882215"``),
    ``region`` the optional country qualifier. Kept as a tuple so that no
    identifier/region combination can collide with another.
    """

    endpoint: str
    region: str | None = None


class CacheEntry(BaseModel):
    """Cached upstream payload for a single app record."""

    data: Any  # Decoded JSON, opaque to the cache
    stored_at: datetime
