# stocksync/services/decision.py
import logging
from typing import Awaitable, Callable, Optional

import httpx

from stocksync.core.enums import SyncAction
from stocksync.core.exceptions import NotFoundError, PlatformServiceError
from stocksync.schemas.stock import Decision, SinkListingSummary, SourceProduct, SyncOptions

logger = logging.getLogger(__name__)

NOT_FOUND_IN_SOURCE = "not found in source"
NOT_FOUND_IN_SINK = "not found in sink"

ApplyUpdate = Callable[[str, int], Awaitable[object]]


async def decide(
    sku: str,
    source: Optional[SourceProduct],
    sink_listing: Optional[SinkListingSummary],
    options: SyncOptions,
    apply_update: ApplyUpdate,
    source_error: Optional[BaseException] = None,
) -> Decision:
    """
    Reconcile one SKU.

    apply_update(item_id, quantity) is only awaited on a live run when the
    quantities differ (or force_update is set); it is the single mutating call.
    """
    sink_quantity = sink_listing.current_quantity if sink_listing else None

    if isinstance(source_error, NotFoundError) or (source_error is None and source is None):
        return Decision.skipped(sku, NOT_FOUND_IN_SOURCE, sink_quantity=sink_quantity)

    if source_error is not None:
        return Decision.failed(sku, source_error, sink_quantity=sink_quantity)

    source_quantity = source.quantity_on_hand

    if sink_listing is None:
        return Decision.skipped(sku, NOT_FOUND_IN_SINK, source_quantity=source_quantity)

    if source_quantity == sink_quantity and not options.force_update:
        return Decision(
            sku=sku,
            action=SyncAction.NO_CHANGE,
            source_quantity=source_quantity,
            sink_quantity=sink_quantity,
            message="Stock already in sync",
        )

    if options.dry_run:
        return Decision(
            sku=sku,
            action=SyncAction.WOULD_UPDATE,
            source_quantity=source_quantity,
            sink_quantity=sink_quantity,
            new_quantity=source_quantity,
            message="Dry run: no changes made",
        )

    try:
        await apply_update(sink_listing.item_id, source_quantity)
    except (PlatformServiceError, httpx.HTTPError) as e:
        logger.error(f"Failed to update {sku} (item {sink_listing.item_id}): {e}")
        return Decision.failed(sku, e, source_quantity=source_quantity, sink_quantity=sink_quantity)

    return Decision(
        sku=sku,
        action=SyncAction.UPDATED,
        source_quantity=source_quantity,
        sink_quantity=sink_quantity,
        new_quantity=source_quantity,
        message="Stock updated",
    )
