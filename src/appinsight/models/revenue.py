from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel

Platform = Literal["ios", "android"]


class AppInfo(BaseModel):
    id: int | str | None
    name: str | None = None
    publisher: str | None = None
    platform: Platform
    category: str = "Unknown"
    content_rating: str | None = None
    current_version: str | None = None


class RevenueMetrics(BaseModel):
    last_month_revenue: int | float = 0  # Minor currency units, as reported upstream
    last_month_downloads: Any = 0  # Copied through as reported
    revenue_currency: str = "USD"
    revenue_formatted: str = "$0"


class CategoryRankings(BaseModel):
    top_free: Any = None
    top_grossing: Any = None
    top_paid: Any = None


class MarketPosition(BaseModel):
    # Copied through as reported; upstream does not guarantee numeric values
    overall_rating: Any = None
    rating_count: Any = 0
    top_countries: list[Any] = []
    category_rankings: CategoryRankings = CategoryRankings()


class Monetization(BaseModel):
    price: str = "Free"
    has_in_app_purchases: bool = False
    top_iap_prices: list[Any] = []


class Competitor(BaseModel):
    name: str | None = None
    rating: Any = None
    price: str = "Free"


class CompetitiveAnalysis(BaseModel):
    related_apps_count: int = 0
    top_competitors: list[Competitor] = []


class EssentialRecord(BaseModel):
    """Normalized, minimal-surface view of an upstream revenue payload."""

    app_info: AppInfo
    revenue_metrics: RevenueMetrics
    market_position: MarketPosition
    monetization: Monetization
    competitive_analysis: CompetitiveAnalysis | None = None
