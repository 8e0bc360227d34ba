"""App Store data via Apple's public iTunes JSON endpoints.

Search and lookup use the iTunes Search API; reviews and top charts come
from the RSS feeds in their JSON flavour. No authentication is needed.
Results are normalised to a stable camelCase app shape so that tool output
does not depend on iTunes field names.
"""

from __future__ import annotations

import re
from typing import Any

import httpx
import structlog

from appinsight.errors import AppInsightError, ErrorCode, UpstreamError
from appinsight.fetcher import raise_for_upstream_status

log = structlog.get_logger()

PROVIDER_NAME = "App Store"

# iTunes caps a single search at 200 results.
MAX_SEARCH_RESULTS = 200

REVIEW_SORTS = {"recent": "mostrecent", "helpful": "mosthelpful"}

CHART_COLLECTIONS = (
    "newapplications",
    "newfreeapplications",
    "newpaidapplications",
    "topfreeapplications",
    "topfreeipadapplications",
    "topgrossingapplications",
    "topgrossingipadapplications",
    "toppaidapplications",
    "toppaidipadapplications",
)

_ARTIST_ID_RE = re.compile(r"/id(\d+)")


def parse_app(result: dict[str, Any]) -> dict[str, Any]:
    """Normalise an iTunes software result."""
    price = result.get("price")
    return {
        "id": result.get("trackId"),
        "appId": result.get("bundleId"),
        "title": result.get("trackName"),
        "url": result.get("trackViewUrl"),
        "description": result.get("description"),
        "icon": (
            result.get("artworkUrl512")
            or result.get("artworkUrl100")
            or result.get("artworkUrl60")
        ),
        "genres": result.get("genres", []),
        "genreIds": result.get("genreIds", []),
        "primaryGenre": result.get("primaryGenreName"),
        "primaryGenreId": result.get("primaryGenreId"),
        "contentRating": result.get("contentAdvisoryRating"),
        "languages": result.get("languageCodesISO2A", []),
        "size": result.get("fileSizeBytes"),
        "requiredOsVersion": result.get("minimumOsVersion"),
        "released": result.get("releaseDate"),
        "updated": result.get("currentVersionReleaseDate") or result.get("releaseDate"),
        "releaseNotes": result.get("releaseNotes"),
        "version": result.get("version"),
        "price": price,
        "currency": result.get("currency"),
        "free": price == 0,
        "developerId": result.get("artistId"),
        "developer": result.get("artistName"),
        "developerUrl": result.get("artistViewUrl"),
        "developerWebsite": result.get("sellerUrl"),
        "score": result.get("averageUserRating"),
        "reviews": result.get("userRatingCount"),
        "currentVersionScore": result.get("averageUserRatingForCurrentVersion"),
        "currentVersionReviews": result.get("userRatingCountForCurrentVersion"),
        "screenshots": result.get("screenshotUrls", []),
        "ipadScreenshots": result.get("ipadScreenshotUrls", []),
        "appletvScreenshots": result.get("appletvScreenshotUrls", []),
        "supportedDevices": result.get("supportedDevices", []),
    }


def _rss_node(entry: Any, *path: str) -> Any:
    node = entry
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _label(entry: Any, *path: str) -> Any:
    node = _rss_node(entry, *path)
    return node.get("label") if isinstance(node, dict) else None


def _attribute(entry: Any, *path: str, name: str) -> Any:
    attributes = _rss_node(entry, *path, "attributes")
    return attributes.get(name) if isinstance(attributes, dict) else None


def _as_int(value: Any) -> int | None:
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def _as_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_review(entry: dict[str, Any]) -> dict[str, Any]:
    """Flatten one RSS feed entry (every value is wrapped in ``{"label": ...}``)."""
    return {
        "id": _label(entry, "id"),
        "userName": _label(entry, "author", "name"),
        "userUrl": _label(entry, "author", "uri"),
        "version": _label(entry, "im:version"),
        "score": _as_int(_label(entry, "im:rating")),
        "title": _label(entry, "title"),
        "text": _label(entry, "content"),
        "url": _attribute(entry, "link", name="href"),
        "updated": _label(entry, "updated"),
    }


def parse_chart_entry(entry: dict[str, Any]) -> dict[str, Any]:
    """Flatten one top-chart RSS entry into the shared app shape (subset)."""
    price = _as_float(_attribute(entry, "im:price", name="amount"))
    images = _rss_node(entry, "im:image")
    developer_url = _attribute(entry, "im:artist", name="href")
    developer_id = None
    if isinstance(developer_url, str):
        match = _ARTIST_ID_RE.search(developer_url)
        developer_id = match.group(1) if match else None
    return {
        "id": _as_int(_attribute(entry, "id", name="im:id")),
        "appId": _attribute(entry, "id", name="im:bundleId"),
        "title": _label(entry, "im:name"),
        "icon": _label(images[-1]) if isinstance(images, list) and images else None,
        "url": _attribute(entry, "link", name="href"),
        "price": price,
        "currency": _attribute(entry, "im:price", name="currency"),
        "free": price == 0,
        "description": _label(entry, "summary"),
        "developer": _label(entry, "im:artist"),
        "developerUrl": developer_url,
        "developerId": developer_id,
        "genre": _attribute(entry, "category", name="label"),
        "genreId": _attribute(entry, "category", name="im:id"),
        "released": _label(entry, "im:releaseDate"),
    }


def _itunes_lang(lang: str | None) -> str | None:
    return lang.replace("-", "_").lower() if lang else None


def _feed_entries(payload: Any) -> list[dict[str, Any]]:
    feed = payload.get("feed") if isinstance(payload, dict) else None
    entries = feed.get("entry", []) if isinstance(feed, dict) else []
    # A feed holding a single entry serves it as an object, not a list.
    if isinstance(entries, dict):
        entries = [entries]
    return [entry for entry in entries if isinstance(entry, dict)]


class AppStoreClient:
    """Thin async client over the iTunes Search/Lookup and RSS endpoints."""

    def __init__(self, client: httpx.AsyncClient, base_url: str) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        try:
            response = await self._client.get(url, params=params)
            raise_for_upstream_status(response, PROVIDER_NAME)
            return response.json()
        except AppInsightError:
            raise
        except httpx.HTTPError as exc:
            raise UpstreamError(
                f"Failed to fetch data from {PROVIDER_NAME}: network error: {exc}"
            ) from exc
        except ValueError as exc:
            raise UpstreamError(
                f"Failed to fetch data from {PROVIDER_NAME}: malformed response body: {exc}"
            ) from exc

    async def _lookup(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        payload = await self._get_json(
            f"{self._base_url}/lookup",
            {k: v for k, v in params.items() if v is not None},
        )
        return payload.get("results", []) if isinstance(payload, dict) else []

    async def search(
        self,
        term: str,
        *,
        num: int = 50,
        page: int = 1,
        country: str = "us",
        lang: str = "en-us",
    ) -> list[dict[str, Any]]:
        """Search apps; ``page`` is emulated by slicing the first 200 results."""
        start = (page - 1) * num
        limit = min(start + num, MAX_SEARCH_RESULTS)
        if start >= limit:
            return []
        params = {
            "term": term,
            "country": country,
            "entity": "software",
            "limit": limit,
            "lang": _itunes_lang(lang),
        }
        payload = await self._get_json(f"{self._base_url}/search", params)
        results = payload.get("results", []) if isinstance(payload, dict) else []
        apps = [parse_app(r) for r in results[start:limit]]
        log.info("app_store_search_complete", term=term, result_count=len(apps))
        return apps

    async def details(
        self,
        *,
        id: int | None = None,
        app_id: str | None = None,
        country: str = "us",
        lang: str | None = None,
    ) -> dict[str, Any]:
        """Look up one app by track id or bundle id."""
        params: dict[str, Any] = {
            "country": country,
            "entity": "software",
            "lang": _itunes_lang(lang),
        }
        if id is not None:
            params["id"] = id
        else:
            params["bundleId"] = app_id
        results = [r for r in await self._lookup(params) if r.get("wrapperType") == "software"]
        if not results:
            raise AppInsightError(
                code=ErrorCode.APP_NOT_FOUND,
                message=f"App not found: {id if id is not None else app_id}",
                suggestion="Check the numeric id or bundle id, or search for the app first.",
                recoverable=False,
            )
        return parse_app(results[0])

    async def developer(
        self,
        dev_id: str,
        *,
        country: str = "us",
        lang: str | None = None,
    ) -> list[dict[str, Any]]:
        """List the apps published by an iTunes artist id."""
        results = await self._lookup(
            {"id": dev_id, "country": country, "entity": "software", "lang": _itunes_lang(lang)}
        )
        # The first lookup result is the artist record itself.
        return [parse_app(r) for r in results if r.get("wrapperType") == "software"]

    async def reviews(
        self,
        *,
        id: int | None = None,
        app_id: str | None = None,
        country: str = "us",
        page: int = 1,
        sort: str = "recent",
    ) -> list[dict[str, Any]]:
        """Fetch one page of customer reviews (the feed serves pages 1-10)."""
        if id is None:
            app = await self.details(app_id=app_id, country=country)
            id = app["id"]
        url = (
            f"{self._base_url}/{country}/rss/customerreviews/page={page}"
            f"/id={id}/sortby={REVIEW_SORTS[sort]}/json"
        )
        return [parse_review(entry) for entry in _feed_entries(await self._get_json(url))]

    async def list(
        self,
        collection: str = "topfreeapplications",
        *,
        category: int | None = None,
        country: str = "us",
        num: int = 50,
        lang: str | None = None,
        full_detail: bool = False,
    ) -> list[dict[str, Any]]:
        """Fetch an iTunes chart, optionally narrowed to a genre id.

        Chart entries carry a reduced app shape; ``full_detail`` replaces them
        with full lookup results, keeping the chart order.
        """
        genre = f"/genre={category}" if category is not None else ""
        url = f"{self._base_url}/{country}/rss/{collection}{genre}/limit={num}/json"
        apps = [parse_chart_entry(entry) for entry in _feed_entries(await self._get_json(url))]
        log.info("app_store_list_complete", collection=collection, result_count=len(apps))
        if not full_detail or not apps:
            return apps

        ids = [app["id"] for app in apps if app["id"] is not None]
        results = await self._lookup(
            {
                "id": ",".join(str(i) for i in ids),
                "country": country,
                "entity": "software",
                "lang": _itunes_lang(lang),
            }
        )
        by_id = {
            r.get("trackId"): parse_app(r) for r in results if r.get("wrapperType") == "software"
        }
        return [by_id[i] for i in ids if i in by_id]
