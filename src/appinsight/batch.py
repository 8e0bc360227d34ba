"""Per-identifier fetch + extract loop for the revenue tools.

Identifiers are processed sequentially and independently: whatever goes
wrong for one of them is recorded on its own result and the loop moves on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from appinsight.errors import AppInsightError
from appinsight.extractor import extract
from appinsight.models.tools import BatchItem, BatchSummary

if TYPE_CHECKING:
    from collections.abc import Sequence

    from appinsight.models.revenue import Platform
    from appinsight.protocols import RevenueClientProtocol


async def collect(
    identifiers: Sequence[int | str],
    *,
    platform: Platform,
    client: RevenueClientProtocol,
    include_competitors: bool = True,
    region: str | None = None,
) -> BatchSummary:
    """Fetch and extract every identifier, preserving input order."""
    log = structlog.get_logger().bind(platform=platform, region=region)
    results: list[BatchItem] = []

    for identifier in identifiers:
        item = await _collect_one(
            identifier,
            platform=platform,
            client=client,
            include_competitors=include_competitors,
            region=region,
        )
        if not item.success:
            log.warning("batch_item_failed", identifier=identifier, error=item.error)
        results.append(item)

    successful = sum(1 for item in results if item.success)
    log.info(
        "batch_complete",
        total=len(results),
        successful_count=successful,
        failed_count=len(results) - successful,
    )
    return BatchSummary(
        platform=platform,
        total=len(results),
        successful_count=successful,
        failed_count=len(results) - successful,
        results=results,
    )


async def _collect_one(
    identifier: int | str,
    *,
    platform: Platform,
    client: RevenueClientProtocol,
    include_competitors: bool,
    region: str | None,
) -> BatchItem:
    try:
        raw = await client.fetch(
            client.endpoint_for(platform, identifier),
            client.cache_key_for(platform, identifier),
            region,
        )
    except AppInsightError as exc:
        return BatchItem(identifier=identifier, success=False, error=exc.message)
    except Exception as exc:
        structlog.get_logger().error(
            "batch_item_unexpected_error",
            platform=platform,
            identifier=identifier,
            exc_info=True,
        )
        return BatchItem(identifier=identifier, success=False, error=str(exc))

    extraction = extract(raw, platform, identifier)
    if extraction is None:
        return BatchItem(
            identifier=identifier,
            success=False,
            error=f"No data returned for {identifier}",
        )

    return BatchItem(
        identifier=identifier,
        success=True,
        data=extraction.to_dict(include_competitors=include_competitors),
        degraded=extraction.degraded,
    )
