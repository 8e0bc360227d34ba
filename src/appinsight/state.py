"""Application state container.

AppState is created once at server startup (inside the FastMCP lifespan context
manager) and injected into every tool handler via the MCP Context object. The
clients hold the shared httpx client; the revenue client also holds the
process-wide response cache.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from appinsight.config import Settings
    from appinsight.protocols import RevenueClientProtocol
    from appinsight.providers.app_store import AppStoreClient
    from appinsight.providers.google_play import GooglePlayClient


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every tool handler."""

    settings: Settings
    revenue: RevenueClientProtocol | None = None
    app_store: AppStoreClient | None = None
    google_play: GooglePlayClient | None = None
