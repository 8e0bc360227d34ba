"""Reduce an upstream revenue payload to an EssentialRecord.

Upstream records are loosely typed and differ between iOS and Android. Every
logical field is therefore read through an ordered list of candidate paths
(``FIELD_TABLE`` plus the per-platform overrides in ``PLATFORM_FIELDS``); the
first candidate holding a non-``None`` value wins, otherwise the field takes
its documented default.

Path walking is tolerant: a missing key, an out-of-range index or a scalar in
the middle of a path all resolve to ``None``. Shape errors that cannot be
tolerated (a collection field holding a scalar, a payload that is not an
object, a non-numeric revenue value) raise inside ``_build_record`` and turn
the result into a degraded ``Extraction``. Nothing escapes ``extract``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from appinsight.models.revenue import (
    AppInfo,
    CategoryRankings,
    CompetitiveAnalysis,
    Competitor,
    EssentialRecord,
    MarketPosition,
    Monetization,
    RevenueMetrics,
)

if TYPE_CHECKING:
    from appinsight.models.revenue import Platform

log = structlog.get_logger()

FieldPath = tuple[str | int, ...]

FIELD_TABLE: dict[str, tuple[FieldPath, ...]] = {
    "name": (("name",), ("title",)),
    "publisher": (("publisher_name",), ("developer",)),
    "category": (("categories", 0, "name"),),
    "content_rating": (("content_rating",),),
    "current_version": (("current_version",),),
    "revenue": (("worldwide_last_month_revenue", "value"),),
    "revenue_currency": (("worldwide_last_month_revenue", "currency"),),
    "downloads": (("worldwide_last_month_downloads", "value"),),
    "rating": (("rating",), ("score",)),
    "rating_count": (("rating_count",), ("reviews",)),
    "top_countries": (("top_countries",),),
    "category_rankings": (("category_rankings",),),
    "price": (("price", "string_value"), ("priceText",)),
    "has_in_app_purchases": (("has_in_app_purchases",), ("offersIAP",)),
    "top_in_app_purchases": (("top_in_app_purchases",),),
    "related_apps": (("related_apps",),),
}

PLATFORM_FIELDS: dict[Platform, dict[str, tuple[FieldPath, ...]]] = {
    "ios": {"id": (("app_id",),)},
    "android": {"id": (("package_name",),)},
}

COMPETITOR_FIELDS: dict[str, tuple[FieldPath, ...]] = {
    "name": (("name",), ("title",)),
    "rating": (("rating",), ("score",)),
    "price": (("price", "string_value"), ("priceText",)),
}

# Ranking bucket per platform inside ``category_rankings``.
DEVICE_BUCKETS: dict[Platform, str] = {"ios": "iphone", "android": "phone"}
RANKING_CHARTS = ("top_free", "top_grossing", "top_paid")

# IAP prices are always read from this bucket, whatever region was requested.
IAP_PRICE_REGION = "US"

MAX_TOP_COUNTRIES = 3
MAX_COMPETITORS = 3
MAX_IAP_PRICES = 3


def field_table(platform: Platform) -> dict[str, tuple[FieldPath, ...]]:
    """Return the full candidate table for ``platform``."""
    return {**FIELD_TABLE, **PLATFORM_FIELDS[platform]}


def walk(source: Any, path: FieldPath) -> Any:
    """Follow ``path`` into ``source``; ``None`` as soon as a step is missing."""
    current = source
    for step in path:
        if current is None:
            return None
        if isinstance(step, int):
            if isinstance(current, Sequence) and not isinstance(current, str):
                current = current[step] if -len(current) <= step < len(current) else None
            else:
                return None
        elif isinstance(current, Mapping):
            current = current.get(step)
        else:
            return None
    return current


def resolve(source: Any, candidates: tuple[FieldPath, ...], default: Any = None) -> Any:
    """Return the first non-``None`` value among ``candidates``."""
    for path in candidates:
        value = walk(source, path)
        if value is not None:
            return value
    return default


def format_revenue(cents: int | float | None) -> str:
    """Render an amount in minor units as ``$500``, ``$25.0K`` or ``$1.5M``."""
    if not cents:
        return "$0"
    dollars = cents / 100
    if dollars >= 1_000_000:
        return f"${dollars / 1_000_000:.1f}M"
    if dollars >= 1_000:
        return f"${dollars / 1_000:.1f}K"
    return f"${dollars:,.3f}".rstrip("0").rstrip(".")


def extract_category_rankings(rankings: Any, platform: Platform) -> CategoryRankings:
    if not isinstance(rankings, Mapping):
        return CategoryRankings()
    bucket = rankings.get(DEVICE_BUCKETS[platform])
    if bucket is None:
        bucket = rankings
    return CategoryRankings(
        **{chart: walk(bucket, (chart, "primary_categories", 0)) for chart in RANKING_CHARTS}
    )


def extract_top_iap_prices(iap_data: Any) -> list[Any]:
    """First IAP prices of the fixed default region, de-duplicated in order."""
    bucket = walk(iap_data, (IAP_PRICE_REGION,))
    if not isinstance(bucket, list):
        return []
    prices: list[Any] = []
    for item in bucket[:MAX_IAP_PRICES]:
        price = walk(item, ("price",))
        if price is not None and price not in prices:
            prices.append(price)
    return prices


def extract_competitors(related_apps: list[Any]) -> list[Competitor]:
    return [
        Competitor(
            name=_text(resolve(app, COMPETITOR_FIELDS["name"])),
            rating=resolve(app, COMPETITOR_FIELDS["rating"]),
            price=_text(resolve(app, COMPETITOR_FIELDS["price"], "Free")),
        )
        for app in related_apps[:MAX_COMPETITORS]
    ]


@dataclass(frozen=True)
class Extraction:
    """Outcome of ``extract``: a full record, or a degraded result with a reason."""

    record: EssentialRecord | None = None
    reason: str | None = None

    @property
    def degraded(self) -> bool:
        return self.record is None

    def to_dict(self, *, include_competitors: bool = True) -> dict[str, Any]:
        if self.record is None:
            return {
                "error": f"Failed to extract data: {self.reason}",
                "raw_data_available": True,
            }
        exclude = None if include_competitors else {"competitive_analysis"}
        return self.record.model_dump(mode="json", exclude=exclude)


def extract(raw_payload: Any, platform: Platform, identifier: int | str) -> Extraction | None:
    """Build the essential record for one app.

    Returns ``None`` when there is nothing to extract (no payload, or an empty
    scalar). An empty object still yields a record made of defaults.
    """
    if raw_payload is None or (not raw_payload and not isinstance(raw_payload, Mapping)):
        return None
    try:
        record = _build_record(raw_payload, platform, identifier)
    except Exception as exc:
        log.warning(
            "extraction_degraded",
            platform=platform,
            identifier=identifier,
            reason=str(exc),
            exc_info=True,
        )
        return Extraction(reason=str(exc))
    return Extraction(record=record)


def _build_record(raw: Any, platform: Platform, identifier: int | str) -> EssentialRecord:
    if not isinstance(raw, Mapping):
        raise TypeError(f"expected an object payload, got {type(raw).__name__}")

    table = field_table(platform)
    revenue = resolve(raw, table["revenue"], 0)
    related_apps = _collection(raw, table, "related_apps")

    return EssentialRecord(
        app_info=AppInfo(
            id=resolve(raw, table["id"], identifier),
            name=_text(resolve(raw, table["name"])),
            publisher=_text(resolve(raw, table["publisher"])),
            platform=platform,
            category=_text(resolve(raw, table["category"], "Unknown")),
            content_rating=_text(resolve(raw, table["content_rating"])),
            current_version=_text(resolve(raw, table["current_version"])),
        ),
        revenue_metrics=RevenueMetrics(
            last_month_revenue=revenue,
            last_month_downloads=resolve(raw, table["downloads"], 0),
            revenue_currency=_text(resolve(raw, table["revenue_currency"], "USD")),
            revenue_formatted=format_revenue(revenue),
        ),
        market_position=MarketPosition(
            overall_rating=resolve(raw, table["rating"]),
            rating_count=resolve(raw, table["rating_count"], 0),
            top_countries=_collection(raw, table, "top_countries")[:MAX_TOP_COUNTRIES],
            category_rankings=extract_category_rankings(
                resolve(raw, table["category_rankings"]), platform
            ),
        ),
        monetization=Monetization(
            price=_text(resolve(raw, table["price"], "Free")),
            has_in_app_purchases=bool(resolve(raw, table["has_in_app_purchases"], False)),
            top_iap_prices=extract_top_iap_prices(resolve(raw, table["top_in_app_purchases"])),
        ),
        competitive_analysis=CompetitiveAnalysis(
            related_apps_count=len(related_apps),
            top_competitors=extract_competitors(related_apps),
        ),
    )


def _collection(
    raw: Mapping[str, Any],
    table: dict[str, tuple[FieldPath, ...]],
    field: str,
) -> list[Any]:
    value = resolve(raw, table[field])
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"{field} should be a list, got {type(value).__name__}")
    return value


def _text(value: Any) -> str | None:
    return None if value is None else str(value)
