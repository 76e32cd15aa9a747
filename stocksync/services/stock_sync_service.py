# stocksync/services/stock_sync_service.py
"""
Stock synchronisation from the ERP to MercadoLibre.

This service coordinates:
1. Loading the marketplace catalog index once per run
2. Reconciling each SKU against its ERP quantity
3. Bounded parallel execution with rate-limit cooldowns
4. Automatic retries of transient failures and the final report
"""

import logging
from typing import List, Mapping, Optional, Sequence

import httpx

from stocksync.core.config import Settings, get_settings
from stocksync.core.enums import SyncAction
from stocksync.core.exceptions import PlatformServiceError, ValidationError
from stocksync.integrations.base import SinkPlatform, SourceSystem
from stocksync.schemas.stock import Decision, RunResult, SinkListingSummary, SyncOptions
from stocksync.services.catalog_index import CatalogIndex
from stocksync.services.decision import decide
from stocksync.services.executor import (
    RATE_LIMIT_COOLDOWN_SECONDS,
    BoundedExecutor,
    clamp_concurrency,
)
from stocksync.services.retry import RetryController
from stocksync.services.run_aggregator import RunAggregator
from stocksync.services.source_stock import SourceQuantityResolver

logger = logging.getLogger(__name__)


class StockSyncService:
    """
    Pushes ERP stock levels to marketplace listings.

    One instance corresponds to one run. sync_many reuses the catalog index the
    instance already built; sync_one (without a prebuilt index) and sync_all
    rescan the marketplace first.
    """

    def __init__(
        self,
        source: SourceSystem,
        sink: SinkPlatform,
        catalog: Optional[CatalogIndex] = None,
        settings: Optional[Settings] = None,
        cooldown_seconds: float = RATE_LIMIT_COOLDOWN_SECONDS,
    ):
        self.settings = settings or get_settings()
        self.source = source
        self.sink = sink
        self.resolver = SourceQuantityResolver(source)
        self.catalog = catalog or CatalogIndex(sink, page_size=self.settings.CATALOG_PAGE_SIZE)
        self.cooldown_seconds = cooldown_seconds

    def _resolve_options(self, options: Optional[SyncOptions]) -> SyncOptions:
        return options or SyncOptions.from_settings(self.settings)

    @staticmethod
    def _validate_batch(skus: Sequence[str]) -> List[str]:
        if isinstance(skus, str) or skus is None:
            raise ValidationError("skus must be a list of SKU strings")
        cleaned = []
        for sku in skus:
            if not isinstance(sku, str) or not sku.strip():
                raise ValidationError(f"Invalid SKU in batch: {sku!r}")
            cleaned.append(sku.strip())
        if not cleaned:
            raise ValidationError("At least one SKU is required")
        return cleaned

    async def _evaluate(self, sku: str, options: SyncOptions, index: Mapping[str, SinkListingSummary]) -> Decision:
        product = None
        source_error = None
        try:
            product = await self.resolver.fetch(sku)
        except (PlatformServiceError, httpx.HTTPError) as e:
            source_error = e

        return await decide(
            sku,
            product,
            index.get(sku),
            options,
            self.sink.update_quantity,
            source_error=source_error,
        )

    async def sync_one(
        self,
        sku: str,
        options: Optional[SyncOptions] = None,
        index: Optional[Mapping[str, SinkListingSummary]] = None,
    ) -> Decision:
        """Reconcile a single SKU, reusing a prebuilt index when given one"""
        if not isinstance(sku, str) or not sku.strip():
            raise ValidationError("A SKU is required")

        options = self._resolve_options(options)
        if index is None:
            self.catalog.invalidate()
            index = await self.catalog.build()
        return await self._evaluate(sku.strip(), options, index)

    async def sync_many(self, skus: Sequence[str], options: Optional[SyncOptions] = None) -> RunResult:
        """
        Reconcile a batch of SKUs.

        Per-item failures end up as error decisions in the report; only bad
        input, an unreachable marketplace or an unexpected exception raises.
        """
        skus = self._validate_batch(skus)
        options = self._resolve_options(options)
        concurrency, warnings = clamp_concurrency(options.concurrency)

        logger.info(
            f"Starting stock sync of {len(skus)} SKUs "
            f"(concurrency: {concurrency}, dry run: {options.dry_run}, force: {options.force_update})"
        )

        await self.sink.verify()
        index = await self.catalog.build()

        async def processor(sku: str) -> Decision:
            decision = await self._evaluate(sku, options, index)
            if decision.action in (SyncAction.UPDATED, SyncAction.WOULD_UPDATE):
                logger.info(f"{sku}: {decision.sink_quantity} -> {decision.source_quantity}")
            elif decision.is_error:
                logger.warning(f"{sku}: {decision.error}")
            return decision

        executor = BoundedExecutor(cooldown_seconds=self.cooldown_seconds)
        aggregator = RunAggregator(dry_run=options.dry_run)

        aggregator.start()
        details = await executor.run(skus, processor, concurrency, label="Syncing")
        aggregator.record(details)
        attempts = await RetryController(executor).run(details, processor, concurrency, options, aggregator)
        aggregator.finish()

        result = aggregator.build(
            details,
            retry_attempts=attempts,
            warnings=warnings + executor.warnings,
            unlinkable=self.catalog.unlinkable,
        )
        logger.info(
            f"Stock sync finished: {result.updated} updated, {result.no_change} unchanged, "
            f"{result.skipped} skipped, {result.errors} errors in {result.elapsed_seconds:.2f}s "
            f"({result.throughput:.2f} SKUs/s)"
        )
        return result

    async def sync_all(self, options: Optional[SyncOptions] = None) -> RunResult:
        """Reconcile every SKU found on the marketplace"""
        self.catalog.invalidate()
        index = await self.catalog.build()
        skus = list(index.keys())
        if not skus:
            raise ValidationError(
                "No MercadoLibre listings have a SKU configured. "
                "Set seller_custom_field or the SELLER_SKU attribute on each listing."
            )

        logger.info(f"Syncing {len(skus)} unique SKUs")
        return await self.sync_many(skus, options)
