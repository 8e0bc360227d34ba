"""Tool handlers for the App Store tools.

Each handler validates its input, delegates to AppStoreClient, and returns a
structured dict. Failures raise AppInsightError for server.py to serialise.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from appinsight.errors import AppInsightError, ErrorCode
from appinsight.models.tools import (
    AppDetailsOutput,
    AppListOutput,
    AppStoreDeveloperInput,
    AppStoreListInput,
    AppStoreLookupInput,
    AppStoreReviewsInput,
    AppStoreSearchInput,
    ReviewsOutput,
)

if TYPE_CHECKING:
    from appinsight.providers.app_store import AppStoreClient
    from appinsight.state import AppState


def _invalid_input(exc: ValueError, suggestion: str) -> AppInsightError:
    return AppInsightError(
        code=ErrorCode.INVALID_INPUT,
        message=str(exc),
        suggestion=suggestion,
        recoverable=False,
    )


def _client(state: AppState) -> AppStoreClient:
    if state.app_store is None:
        raise RuntimeError("App Store client not initialized")
    return state.app_store


async def handle_search(
    term: str,
    num: int,
    page: int,
    country: str,
    lang: str,
    state: AppState,
) -> dict:
    """Handle an app_store_search tool call."""
    log = structlog.get_logger().bind(tool="app_store_search", term=term)
    log.info("handler_called")

    try:
        validated = AppStoreSearchInput(term=term, num=num, page=page, country=country, lang=lang)
    except ValueError as exc:
        raise _invalid_input(
            exc, "Provide a non-empty search term, num between 1 and 200, and page >= 1."
        ) from exc

    apps = await _client(state).search(
        validated.term,
        num=validated.num,
        page=validated.page,
        country=validated.country,
        lang=validated.lang,
    )
    return AppListOutput(results=apps).model_dump(mode="json")


async def handle_details(
    id: int | None,
    app_id: str | None,
    country: str,
    lang: str | None,
    state: AppState,
) -> dict:
    """Handle an app_store_details tool call."""
    log = structlog.get_logger().bind(tool="app_store_details", id=id, app_id=app_id)
    log.info("handler_called")

    try:
        validated = AppStoreLookupInput(id=id, app_id=app_id, country=country, lang=lang)
    except ValueError as exc:
        raise _invalid_input(exc, "Provide either a numeric id or a bundle id.") from exc

    app = await _client(state).details(
        id=validated.id,
        app_id=validated.app_id,
        country=validated.country,
        lang=validated.lang,
    )
    return AppDetailsOutput(app=app).model_dump(mode="json")


async def handle_reviews(
    id: int | None,
    app_id: str | None,
    country: str,
    page: int,
    sort: str,
    state: AppState,
) -> dict:
    """Handle an app_store_reviews tool call."""
    log = structlog.get_logger().bind(tool="app_store_reviews", id=id, app_id=app_id)
    log.info("handler_called")

    try:
        validated = AppStoreReviewsInput(
            id=id, app_id=app_id, country=country, page=page, sort=sort
        )
    except ValueError as exc:
        raise _invalid_input(
            exc, "Provide a numeric id or bundle id, page between 1 and 10, sort recent|helpful."
        ) from exc

    reviews = await _client(state).reviews(
        id=validated.id,
        app_id=validated.app_id,
        country=validated.country,
        page=validated.page,
        sort=validated.sort,
    )
    log.info("reviews_complete", review_count=len(reviews))
    return ReviewsOutput(reviews=reviews).model_dump(mode="json")


async def handle_developer(
    dev_id: str,
    country: str,
    lang: str | None,
    state: AppState,
) -> dict:
    """Handle an app_store_developer tool call."""
    log = structlog.get_logger().bind(tool="app_store_developer", dev_id=dev_id)
    log.info("handler_called")

    try:
        validated = AppStoreDeveloperInput(dev_id=dev_id, country=country, lang=lang)
    except ValueError as exc:
        raise _invalid_input(exc, "Provide the developer's numeric iTunes artist id.") from exc

    apps = await _client(state).developer(
        validated.dev_id,
        country=validated.country,
        lang=validated.lang,
    )
    return AppListOutput(results=apps).model_dump(mode="json")


async def handle_list(
    collection: str,
    category: int | None,
    country: str,
    num: int,
    lang: str | None,
    full_detail: bool,
    state: AppState,
) -> dict:
    """Handle an app_store_list tool call."""
    log = structlog.get_logger().bind(tool="app_store_list", collection=collection)
    log.info("handler_called")

    try:
        validated = AppStoreListInput(
            collection=collection,
            category=category,
            country=country,
            num=num,
            lang=lang,
            full_detail=full_detail,
        )
    except ValueError as exc:
        raise _invalid_input(
            exc, "Use one of the iTunes chart collections and num between 1 and 200."
        ) from exc

    apps = await _client(state).list(
        validated.collection,
        category=validated.category,
        country=validated.country,
        num=validated.num,
        lang=validated.lang,
        full_detail=validated.full_detail,
    )
    return AppListOutput(results=apps).model_dump(mode="json")
