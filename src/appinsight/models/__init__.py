from __future__ import annotations

from appinsight.models.cache import CacheEntry, CacheKey
from appinsight.models.revenue import (
    AppInfo,
    CategoryRankings,
    CompetitiveAnalysis,
    Competitor,
    EssentialRecord,
    MarketPosition,
    Monetization,
    Platform,
    RevenueMetrics,
)
from appinsight.models.tools import (
    AndroidRevenueInput,
    AppDetailsOutput,
    AppListOutput,
    AppStoreDeveloperInput,
    AppStoreListInput,
    AppStoreLookupInput,
    AppStoreReviewsInput,
    AppStoreSearchInput,
    BatchItem,
    BatchSummary,
    GooglePlayAppInput,
    GooglePlayReviewsInput,
    GooglePlaySearchInput,
    IosRevenueInput,
    PermissionsOutput,
    ReviewsOutput,
)

__all__ = [
    # cache
    "CacheKey",
    "CacheEntry",
    # revenue
    "Platform",
    "AppInfo",
    "RevenueMetrics",
    "CategoryRankings",
    "MarketPosition",
    "Monetization",
    "Competitor",
    "CompetitiveAnalysis",
    "EssentialRecord",
    # tools
    "IosRevenueInput",
    "AndroidRevenueInput",
    "BatchItem",
    "BatchSummary",
    "AppStoreSearchInput",
    "AppStoreLookupInput",
    "AppStoreReviewsInput",
    "AppStoreDeveloperInput",
    "AppStoreListInput",
    "GooglePlaySearchInput",
    "GooglePlayAppInput",
    "GooglePlayReviewsInput",
    "AppListOutput",
    "AppDetailsOutput",
    "ReviewsOutput",
    "PermissionsOutput",
]
