"""Integration test fixtures.

Provides a fully wired AppState: real clients over a shared httpx client
(mocked per test with respx) and a ResponseCache driven by the fake clock
from tests/conftest.py.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import httpx
import pytest

from appinsight.config import Settings
from appinsight.fetcher import RevenueClient
from appinsight.providers.app_store import AppStoreClient
from appinsight.providers.google_play import GooglePlayClient
from appinsight.state import AppState

if TYPE_CHECKING:
    from appinsight.cache import ResponseCache


@pytest.fixture()
def subprocess_env() -> dict[str, str]:
    """Baseline env dict for subprocess-based MCP integration tests.

    Overrides any local appinsight.yaml by forcing stdio transport and points
    every upstream at an unroutable address so no test reaches the network.
    """
    env = os.environ.copy()
    env["APPINSIGHT__SERVER__TRANSPORT"] = "stdio"
    env["APPINSIGHT__REVENUE__BASE_URL"] = "http://127.0.0.1:1"
    env["APPINSIGHT__APP_STORE__BASE_URL"] = "http://127.0.0.1:1"
    env["APPINSIGHT__LOGGING__LEVEL"] = "WARNING"
    return env


@pytest.fixture()
async def app_state(cache: ResponseCache) -> AppState:
    """Full AppState wired for handler-level integration tests."""
    settings = Settings()
    async with httpx.AsyncClient() as client:
        state = AppState(
            settings=settings,
            revenue=RevenueClient(client, cache, settings.revenue.base_url),
            app_store=AppStoreClient(client, settings.app_store.base_url),
            google_play=GooglePlayClient(),
        )
        yield state
