"""Tool handlers for the Google Play tools.

Each handler validates its input, delegates to GooglePlayClient, and returns a
structured dict. Failures raise AppInsightError for server.py to serialise.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from appinsight.errors import AppInsightError, ErrorCode
from appinsight.models.tools import (
    AppDetailsOutput,
    AppListOutput,
    GooglePlayAppInput,
    GooglePlayReviewsInput,
    GooglePlaySearchInput,
    PermissionsOutput,
    ReviewsOutput,
)

if TYPE_CHECKING:
    from appinsight.providers.google_play import GooglePlayClient
    from appinsight.state import AppState

_PACKAGE_SUGGESTION = "Provide a package name such as 'com.whatsapp'."


def _invalid_input(exc: ValueError, suggestion: str) -> AppInsightError:
    return AppInsightError(
        code=ErrorCode.INVALID_INPUT,
        message=str(exc),
        suggestion=suggestion,
        recoverable=False,
    )


def _client(state: AppState) -> GooglePlayClient:
    if state.google_play is None:
        raise RuntimeError("Google Play client not initialized")
    return state.google_play


async def handle_search(
    term: str,
    price: str,
    num: int,
    lang: str,
    country: str,
    state: AppState,
) -> dict:
    """Handle a google_play_search tool call."""
    log = structlog.get_logger().bind(tool="google_play_search", term=term)
    log.info("handler_called")

    try:
        validated = GooglePlaySearchInput(
            term=term, price=price, num=num, lang=lang, country=country
        )
    except ValueError as exc:
        raise _invalid_input(
            exc, "Provide a non-empty search term, price all|free|paid, num between 1 and 250."
        ) from exc

    apps = await _client(state).search(
        validated.term,
        price=validated.price,
        num=validated.num,
        lang=validated.lang,
        country=validated.country,
    )
    return AppListOutput(results=apps).model_dump(mode="json")


async def handle_details(app_id: str, lang: str, country: str, state: AppState) -> dict:
    """Handle a google_play_details tool call."""
    log = structlog.get_logger().bind(tool="google_play_details", app_id=app_id)
    log.info("handler_called")

    try:
        validated = GooglePlayAppInput(app_id=app_id, lang=lang, country=country)
    except ValueError as exc:
        raise _invalid_input(exc, _PACKAGE_SUGGESTION) from exc

    app = await _client(state).details(
        validated.app_id, lang=validated.lang, country=validated.country
    )
    return AppDetailsOutput(app=app).model_dump(mode="json")


async def handle_reviews(
    app_id: str,
    lang: str,
    country: str,
    sort: str,
    num: int,
    score: int | None,
    state: AppState,
) -> dict:
    """Handle a google_play_reviews tool call."""
    log = structlog.get_logger().bind(tool="google_play_reviews", app_id=app_id)
    log.info("handler_called")

    try:
        validated = GooglePlayReviewsInput(
            app_id=app_id, lang=lang, country=country, sort=sort, num=num, score=score
        )
    except ValueError as exc:
        raise _invalid_input(exc, _PACKAGE_SUGGESTION) from exc

    reviews = await _client(state).reviews(
        validated.app_id,
        lang=validated.lang,
        country=validated.country,
        sort=validated.sort,
        num=validated.num,
        score=validated.score,
    )
    log.info("reviews_complete", review_count=len(reviews))
    return ReviewsOutput(reviews=reviews).model_dump(mode="json")


async def handle_permissions(app_id: str, lang: str, country: str, state: AppState) -> dict:
    """Handle a google_play_permissions tool call."""
    log = structlog.get_logger().bind(tool="google_play_permissions", app_id=app_id)
    log.info("handler_called")

    try:
        validated = GooglePlayAppInput(app_id=app_id, lang=lang, country=country)
    except ValueError as exc:
        raise _invalid_input(exc, _PACKAGE_SUGGESTION) from exc

    permissions = await _client(state).permissions(
        validated.app_id, lang=validated.lang, country=validated.country
    )
    return PermissionsOutput(app_id=validated.app_id, permissions=permissions).model_dump(
        mode="json"
    )
