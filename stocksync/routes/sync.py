# stocksync/routes/sync.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from stocksync.core.exceptions import PlatformServiceError, ValidationError
from stocksync.dependencies import get_sync_service
from stocksync.schemas.stock import RunResult, SyncOptions
from stocksync.services.stock_sync_service import StockSyncService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/sync", tags=["sync"])


class StockSyncRequest(BaseModel):
    skus: List[str] = Field(default_factory=list)
    dry_run: bool = False
    force_update: bool = False
    concurrency: Optional[int] = None
    max_retries: Optional[int] = None
    retry_delay: Optional[float] = None


def _options(service: StockSyncService, **overrides) -> SyncOptions:
    try:
        return SyncOptions.from_settings(service.settings, **overrides)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/stocks", response_model=RunResult)
async def sync_stocks(
    request: StockSyncRequest,
    service: StockSyncService = Depends(get_sync_service),
):
    """Sync a list of SKUs from the ERP to MercadoLibre"""
    if not request.skus:
        raise HTTPException(status_code=400, detail="skus must be a non-empty list")

    options = _options(
        service,
        dry_run=request.dry_run,
        force_update=request.force_update,
        concurrency=request.concurrency,
        max_retries=request.max_retries,
        retry_delay=request.retry_delay,
    )
    try:
        return await service.sync_many(request.skus, options)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PlatformServiceError as e:
        logger.error(f"Stock sync failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/stocks")
async def sync_stocks_get(
    sku: Optional[str] = None,
    sync_all: bool = Query(False, alias="all"),
    dry_run: bool = False,
    force_update: bool = False,
    service: StockSyncService = Depends(get_sync_service),
):
    """
    Sync one SKU (?sku=ABC123) or every linked listing (?all=true)
    """
    if not sku and not sync_all:
        raise HTTPException(status_code=400, detail="Provide ?sku=... or ?all=true")

    options = _options(service, dry_run=dry_run, force_update=force_update)
    try:
        if sync_all:
            return await service.sync_all(options)
        return await service.sync_one(sku, options)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PlatformServiceError as e:
        logger.error(f"Stock sync failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
