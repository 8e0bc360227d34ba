"""Google Play data via the ``google-play-scraper`` library.

The library is synchronous, so every call runs in a worker thread to keep the
event loop free. Library exceptions are mapped onto AppInsightError codes.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import google_play_scraper as gplay
import structlog
from google_play_scraper import Sort
from google_play_scraper.exceptions import NotFoundError

from appinsight.errors import AppInsightError, ErrorCode, UpstreamError

if TYPE_CHECKING:
    from collections.abc import Callable

log = structlog.get_logger()

PROVIDER_NAME = "Google Play"

REVIEW_SORTS = {"newest": Sort.NEWEST, "most_relevant": Sort.MOST_RELEVANT}


async def _call(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    try:
        return await asyncio.to_thread(func, *args, **kwargs)
    except NotFoundError as exc:
        raise AppInsightError(
            code=ErrorCode.APP_NOT_FOUND,
            message=f"App not found on {PROVIDER_NAME}: {args[0] if args else ''}",
            suggestion="Check the package name, or search for the app first.",
            recoverable=False,
        ) from exc
    except Exception as exc:
        log.warning("google_play_call_failed", func=func.__name__, exc_info=True)
        raise UpstreamError(f"Failed to fetch data from {PROVIDER_NAME}: {exc}") from exc


class GooglePlayClient:
    """Async facade over the google-play-scraper functions."""

    async def search(
        self,
        term: str,
        *,
        price: str = "all",
        num: int = 20,
        lang: str = "en",
        country: str = "us",
    ) -> list[dict[str, Any]]:
        """Search apps, optionally keeping only free or only paid ones."""
        results = await _call(gplay.search, term, lang=lang, country=country, n_hits=num)
        if price != "all":
            want_free = price == "free"
            results = [r for r in results if bool(r.get("free")) is want_free]
        log.info("google_play_search_complete", term=term, result_count=len(results))
        return results

    async def details(
        self,
        app_id: str,
        *,
        lang: str = "en",
        country: str = "us",
    ) -> dict[str, Any]:
        return await _call(gplay.app, app_id, lang=lang, country=country)

    async def reviews(
        self,
        app_id: str,
        *,
        lang: str = "en",
        country: str = "us",
        sort: str = "newest",
        num: int = 100,
        score: int | None = None,
    ) -> list[dict[str, Any]]:
        result, _continuation_token = await _call(
            gplay.reviews,
            app_id,
            lang=lang,
            country=country,
            sort=REVIEW_SORTS[sort],
            count=num,
            filter_score_with=score,
        )
        return result

    async def permissions(
        self,
        app_id: str,
        *,
        lang: str = "en",
        country: str = "us",
    ) -> dict[str, list[str]]:
        return await _call(gplay.permissions, app_id, lang=lang, country=country)
