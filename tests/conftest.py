"""Shared test fixtures for the appinsight test suite."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from appinsight.cache import ResponseCache


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache(clock: FakeClock) -> ResponseCache:
    return ResponseCache(clock=clock)


@pytest.fixture()
def ios_payload() -> dict[str, Any]:
    """Trimmed revenue record as served for an iOS app."""
    return {
        "app_id": 284882215,
        "name": "Facebook",
        "publisher_name": "Meta Platforms, Inc.",
        "categories": [{"id": 6005, "name": "Social Networking"}],
        "content_rating": "12+",
        "current_version": "452.0",
        "worldwide_last_month_revenue": {"value": 150_000_000, "currency": "USD"},
        "worldwide_last_month_downloads": {"value": 9_000_000},
        "rating": 4.3,
        "rating_count": 21_000_000,
        "top_countries": ["US", "GB", "DE", "FR", "TR"],
        "category_rankings": {
            "iphone": {
                "top_free": {"primary_categories": [3, 7]},
                "top_grossing": {"primary_categories": [12]},
            },
            "ipad": {"top_free": {"primary_categories": [40]}},
        },
        "price": {"string_value": "Free", "value": 0},
        "has_in_app_purchases": True,
        "top_in_app_purchases": {
            "US": [
                {"name": "Stars", "price": "$0.99"},
                {"name": "More stars", "price": "$0.99"},
                {"name": "Stars pack", "price": "$4.99"},
                {"name": "Mega pack", "price": "$99.99"},
            ],
            "TR": [{"name": "Yildiz", "price": "TRY 29.99"}],
        },
        "related_apps": [
            {"name": "Instagram", "rating": 4.7, "price": {"string_value": "Free"}},
            {"name": "Messenger", "rating": 4.5},
        ],
    }


@pytest.fixture()
def android_payload() -> dict[str, Any]:
    """Trimmed revenue record as served for an Android app."""
    return {
        "package_name": "com.whatsapp",
        "title": "WhatsApp Messenger",
        "developer": "WhatsApp LLC",
        "categories": [{"name": "Communication"}],
        "worldwide_last_month_revenue": {"value": 2_500_000, "currency": "EUR"},
        "worldwide_last_month_downloads": {"value": 35_000_000},
        "score": 4.2,
        "reviews": 190_000_000,
        "category_rankings": {
            "phone": {"top_free": {"primary_categories": [1]}},
            "tablet": {"top_free": {"primary_categories": [5]}},
        },
        "priceText": "Free",
        "offersIAP": False,
        "related_apps": [
            {"title": "Telegram", "score": 4.4, "priceText": "Free"},
            {"title": "Signal", "score": 4.5, "priceText": "Free"},
        ],
    }
