# stocksync/services/catalog_index.py
"""
In-memory index of the seller's active MercadoLibre listings, keyed by SKU.

Built once per run before any concurrent work starts and read-only afterwards,
so item evaluations can share it without locking.
"""

import asyncio
import logging
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

import httpx

from stocksync.core.exceptions import PlatformServiceError
from stocksync.integrations.base import SinkPlatform
from stocksync.schemas.stock import SinkListingSummary, UnlinkableListing
from stocksync.services.sku_resolver import resolve_sku

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


def parse_quantity(value: Any) -> Optional[int]:
    """Listing quantity as a non-negative int; None when it cannot be read"""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        return None
    try:
        return max(0, int(float(value)))
    except (TypeError, ValueError, OverflowError):
        return None


class CatalogIndex:
    """
    Builds and memoizes the SKU -> listing map.

    Pagination stops on an empty or short page, or once offset + page length
    reaches the total the platform reports. If that total shifts while we scan,
    listings can be missed or seen twice; repeats are absorbed by first-seen
    dedup and misses are picked up by the next run.
    """

    def __init__(self, sink: SinkPlatform, page_size: int = DEFAULT_PAGE_SIZE):
        self.sink = sink
        self.page_size = page_size
        self.unlinkable: List[UnlinkableListing] = []
        self.duplicates: Dict[str, List[str]] = {}
        self._index: Optional[Mapping[str, SinkListingSummary]] = None
        self._lock = asyncio.Lock()

    @property
    def is_built(self) -> bool:
        return self._index is not None

    async def build(self) -> Mapping[str, SinkListingSummary]:
        if self._index is not None:
            return self._index

        async with self._lock:
            if self._index is None:
                self._index = await self._load()
        return self._index

    def invalidate(self) -> None:
        """Forget the cached map so the next build() rescans the platform"""
        self._index = None
        self.unlinkable = []
        self.duplicates = {}

    async def get(self, sku: str) -> Optional[SinkListingSummary]:
        index = await self.build()
        return index.get(sku)

    async def _load(self) -> Mapping[str, SinkListingSummary]:
        logger.info("Loading active MercadoLibre listings into memory...")
        listings: Dict[str, SinkListingSummary] = {}
        unlinkable: List[UnlinkableListing] = []
        duplicates: Dict[str, List[str]] = {}

        offset = 0
        while True:
            page = await self.sink.list_active_items(offset=offset, limit=self.page_size)
            if not page.item_ids:
                break

            for item_id in page.item_ids:
                try:
                    item = await self.sink.get_item(item_id)
                except (PlatformServiceError, httpx.HTTPError) as e:
                    logger.warning(f"Could not fetch listing {item_id}: {e}")
                    unlinkable.append(UnlinkableListing(item_id=item_id, reason="fetch_failed"))
                    continue

                if not isinstance(item, dict):
                    logger.warning(f"Listing {item_id} returned an unexpected payload")
                    unlinkable.append(UnlinkableListing(item_id=item_id, reason="fetch_failed"))
                    continue

                sku = resolve_sku(item)
                if not sku:
                    unlinkable.append(UnlinkableListing(item_id=str(item.get("id") or item_id), title=item.get("title")))
                    continue

                quantity = parse_quantity(item.get("available_quantity"))
                if quantity is None:
                    logger.warning(
                        f"Listing {item.get('id') or item_id} has an unreadable available_quantity: "
                        f"{item.get('available_quantity')!r}"
                    )
                    unlinkable.append(UnlinkableListing(
                        item_id=str(item.get("id") or item_id),
                        title=item.get("title"),
                        reason="invalid_quantity",
                    ))
                    continue

                if sku in listings:
                    duplicates.setdefault(sku, []).append(str(item.get("id") or item_id))
                    logger.warning(
                        f"SKU {sku} is also used by listing {item.get('id') or item_id}; "
                        f"keeping {listings[sku].item_id}"
                    )
                    continue

                listings[sku] = SinkListingSummary(
                    sku=sku,
                    item_id=str(item.get("id") or item_id),
                    current_quantity=quantity,
                    title=item.get("title"),
                    status=item.get("status"),
                )

            if offset + len(page.item_ids) >= page.total or len(page.item_ids) < self.page_size:
                break
            offset += self.page_size

        self.unlinkable = unlinkable
        self.duplicates = duplicates

        logger.info(f"{len(listings)} unique SKUs loaded in memory")
        missing = [u for u in unlinkable if u.reason == "missing_sku"]
        if missing:
            examples = ", ".join(f"{u.item_id} ({u.title or 'untitled'})" for u in missing[:5])
            logger.warning(
                f"{len(missing)} listings have no SKU (seller_custom_field or SELLER_SKU attribute) "
                f"and cannot be linked to the ERP. Examples: {examples}{'...' if len(missing) > 5 else ''}"
            )

        return MappingProxyType(listings)
