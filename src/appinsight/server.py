"""MCP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the FastMCP lifespan context manager
- Register tools
- Start the configured transport (stdio or streamable HTTP)
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Literal

import structlog
from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult, TextContent

import appinsight.tools.app_store as t_app_store
import appinsight.tools.google_play as t_google_play
import appinsight.tools.revenue as t_revenue
from appinsight import __version__
from appinsight.cache import ResponseCache
from appinsight.config import Settings
from appinsight.errors import AppInsightError
from appinsight.fetcher import RevenueClient, build_http_client
from appinsight.providers.app_store import AppStoreClient
from appinsight.providers.google_play import GooglePlayClient
from appinsight.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable

log = structlog.get_logger()

# One cache per process. The HTTP transport runs the lifespan once per
# session, and every session must see the same cached responses.
_response_cache = ResponseCache()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # Logs go to stderr, stdout is reserved for the MCP JSON-RPC stream
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    settings = Settings()
    _setup_logging(settings)

    log.info(
        "server_starting",
        version=__version__,
        transport=settings.server.transport,
    )

    http_client = build_http_client(settings.http)

    state = AppState(
        settings=settings,
        revenue=RevenueClient(http_client, _response_cache, settings.revenue.base_url),
        app_store=AppStoreClient(http_client, settings.app_store.base_url),
        google_play=GooglePlayClient(),
    )

    log.info(
        "server_started",
        version=__version__,
        transport=settings.server.transport,
        cached_entries=len(_response_cache),
    )

    try:
        yield state
    finally:
        await http_client.aclose()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# FastMCP instance and tool registration
# ---------------------------------------------------------------------------

mcp = FastMCP("appinsight", lifespan=lifespan)
# FastMCP doesn't expose a version kwarg, so set it on the underlying Server
# so the MCP initialize handshake reports our version, not the SDK's.
mcp._mcp_server.version = __version__  # pyright: ignore[reportPrivateUsage]


def _serialise_tool_error(error: AppInsightError) -> CallToolResult:
    """Convert an AppInsightError to the MCP tool error result envelope."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(error.to_dict()))],
        isError=True,
    )


async def _run_tool(tool: str, call: Awaitable[dict]) -> object:
    try:
        return await call
    except AppInsightError as exc:
        log.warning(
            "tool_error",
            tool=tool,
            code=exc.code,
            message=exc.message,
            recoverable=exc.recoverable,
        )
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool=tool, exc_info=True)
        raise


async def _run_revenue_tool(tool: str, platform: str, call: Awaitable[dict]) -> object:
    """Revenue tools report every failure inside the JSON payload."""
    try:
        return await call
    except Exception as exc:
        log.error("tool_unexpected_error", tool=tool, exc_info=True)
        return {"error": str(exc), "platform": platform}


# -- Revenue intelligence ---------------------------------------------------


@mcp.tool()
async def sensor_tower_ios_revenue(
    app_ids: int | list[int],
    ctx: Context,
    include_competitors: bool = True,
    country: str | None = None,
) -> object:
    """Get essential revenue and market intelligence for one or more iOS apps.

    Returns monthly revenue and download estimates, rankings and ratings,
    monetization details and the top 3 competitors per app. ``app_ids`` is a
    single App Store id or a list of them; ``country`` is an optional
    two-letter code for region-specific data. Data is cached for 30 days.
    """
    state: AppState = ctx.request_context.lifespan_context
    return await _run_revenue_tool(
        "sensor_tower_ios_revenue",
        "iOS",
        t_revenue.handle_ios(app_ids, include_competitors, country, state),
    )


@mcp.tool()
async def sensor_tower_android_revenue(
    package_names: str | list[str],
    ctx: Context,
    include_competitors: bool = True,
    country: str | None = None,
) -> object:
    """Get essential revenue and market intelligence for one or more Android apps.

    ``package_names`` is a single package name (e.g. 'com.whatsapp') or a list
    of them; ``country`` is an optional two-letter code for region-specific
    data. Data is cached for 30 days.
    """
    state: AppState = ctx.request_context.lifespan_context
    return await _run_revenue_tool(
        "sensor_tower_android_revenue",
        "Android",
        t_revenue.handle_android(package_names, include_competitors, country, state),
    )


# -- App Store ----------------------------------------------------------------


@mcp.tool()
async def app_store_search(
    term: str,
    ctx: Context,
    num: int = 50,
    page: int = 1,
    country: str = "us",
    lang: str = "en-us",
) -> object:
    """Search the App Store. Returns apps with id, appId, title, price, developer, score."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool(
        "app_store_search",
        t_app_store.handle_search(term, num, page, country, lang, state),
    )


@mcp.tool()
async def app_store_details(
    ctx: Context,
    id: int | None = None,
    app_id: str | None = None,
    country: str = "us",
    lang: str | None = None,
) -> object:
    """Get full details of an App Store app by numeric id or bundle id."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool(
        "app_store_details",
        t_app_store.handle_details(id, app_id, country, lang, state),
    )


@mcp.tool()
async def app_store_reviews(
    ctx: Context,
    id: int | None = None,
    app_id: str | None = None,
    country: str = "us",
    page: int = 1,
    sort: Literal["recent", "helpful"] = "recent",
) -> object:
    """Get one page (1-10) of customer reviews for an App Store app."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool(
        "app_store_reviews",
        t_app_store.handle_reviews(id, app_id, country, page, sort, state),
    )


@mcp.tool()
async def app_store_developer(
    dev_id: str,
    ctx: Context,
    country: str = "us",
    lang: str | None = None,
) -> object:
    """List the App Store apps published by a developer (iTunes artist id)."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool(
        "app_store_developer",
        t_app_store.handle_developer(dev_id, country, lang, state),
    )


@mcp.tool()
async def app_store_list(
    ctx: Context,
    collection: Literal[
        "newapplications",
        "newfreeapplications",
        "newpaidapplications",
        "topfreeapplications",
        "topfreeipadapplications",
        "topgrossingapplications",
        "topgrossingipadapplications",
        "toppaidapplications",
        "toppaidipadapplications",
    ] = "topfreeapplications",
    category: int | None = None,
    country: str = "us",
    num: int = 50,
    lang: str | None = None,
    full_detail: bool = False,
) -> object:
    """Get an App Store chart (top free, paid, grossing or new apps).

    ``category`` is an optional iTunes genre id (e.g. 6014 for Games).
    ``full_detail`` returns full app details instead of the chart summary.
    """
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool(
        "app_store_list",
        t_app_store.handle_list(collection, category, country, num, lang, full_detail, state),
    )


# -- Google Play --------------------------------------------------------------


@mcp.tool()
async def google_play_search(
    term: str,
    ctx: Context,
    price: Literal["all", "free", "paid"] = "all",
    num: int = 20,
    lang: str = "en",
    country: str = "us",
) -> object:
    """Search Google Play. Returns apps with appId, title, developer, score, price."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool(
        "google_play_search",
        t_google_play.handle_search(term, price, num, lang, country, state),
    )


@mcp.tool()
async def google_play_details(
    app_id: str,
    ctx: Context,
    lang: str = "en",
    country: str = "us",
) -> object:
    """Get full details of a Google Play app by package name."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool(
        "google_play_details",
        t_google_play.handle_details(app_id, lang, country, state),
    )


@mcp.tool()
async def google_play_reviews(
    app_id: str,
    ctx: Context,
    lang: str = "en",
    country: str = "us",
    sort: Literal["newest", "most_relevant"] = "newest",
    num: int = 100,
    score: int | None = None,
) -> object:
    """Get reviews for a Google Play app, optionally only those with a given star score."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool(
        "google_play_reviews",
        t_google_play.handle_reviews(app_id, lang, country, sort, num, score, state),
    )


@mcp.tool()
async def google_play_permissions(
    app_id: str,
    ctx: Context,
    lang: str = "en",
    country: str = "us",
) -> object:
    """Get the permissions a Google Play app requests, grouped by category."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool(
        "google_play_permissions",
        t_google_play.handle_permissions(app_id, lang, country, state),
    )


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    settings = Settings()

    if settings.server.transport == "streamable-http":
        mcp.settings.host = settings.server.host
        mcp.settings.port = settings.server.port

    mcp.run(transport=settings.server.transport)


if __name__ == "__main__":
    main()
