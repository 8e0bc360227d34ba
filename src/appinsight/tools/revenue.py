"""Tool handlers for the iOS and Android revenue-intelligence tools.

Receive AppState, run the batch loop, and return a structured dict. These
tools never raise across the protocol boundary: invalid input is reported as
``{"error": ..., "platform": ...}`` in the result itself. No MCP or FastMCP
imports: server.py handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from appinsight.batch import collect
from appinsight.models.tools import AndroidRevenueInput, IosRevenueInput

if TYPE_CHECKING:
    from appinsight.state import AppState


async def handle_ios(
    app_ids: int | list[int],
    include_competitors: bool,
    country: str | None,
    state: AppState,
) -> dict:
    """Handle a sensor_tower_ios_revenue tool call."""
    log = structlog.get_logger().bind(tool="sensor_tower_ios_revenue", country=country)
    log.info("handler_called")

    try:
        validated = IosRevenueInput(
            app_ids=app_ids,
            include_competitors=include_competitors,
            country=country,
        )
    except ValueError as exc:
        log.warning("invalid_input", error=str(exc))
        return _error_payload(str(exc), "iOS")

    if state.revenue is None:
        raise RuntimeError("Revenue client not initialized")

    summary = await collect(
        validated.app_ids,
        platform="ios",
        client=state.revenue,
        include_competitors=validated.include_competitors,
        region=validated.country,
    )
    return summary.model_dump(mode="json")


async def handle_android(
    package_names: str | list[str],
    include_competitors: bool,
    country: str | None,
    state: AppState,
) -> dict:
    """Handle a sensor_tower_android_revenue tool call."""
    log = structlog.get_logger().bind(tool="sensor_tower_android_revenue", country=country)
    log.info("handler_called")

    try:
        validated = AndroidRevenueInput(
            package_names=package_names,
            include_competitors=include_competitors,
            country=country,
        )
    except ValueError as exc:
        log.warning("invalid_input", error=str(exc))
        return _error_payload(str(exc), "Android")

    if state.revenue is None:
        raise RuntimeError("Revenue client not initialized")

    summary = await collect(
        validated.package_names,
        platform="android",
        client=state.revenue,
        include_competitors=validated.include_competitors,
        region=validated.country,
    )
    return summary.model_dump(mode="json")


def _error_payload(message: str, platform: str) -> dict[str, Any]:
    return {"error": message, "platform": platform}
