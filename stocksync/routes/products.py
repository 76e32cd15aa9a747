# stocksync/routes/products.py
import logging

from fastapi import APIRouter, Depends, HTTPException

from stocksync.core.exceptions import PlatformServiceError
from stocksync.dependencies import get_source_resolver
from stocksync.schemas.stock import SourceProduct
from stocksync.services.source_stock import SourceQuantityResolver

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/local", tags=["erp"])


@router.get("/products/{sku}", response_model=SourceProduct)
async def get_local_product(
    sku: str,
    resolver: SourceQuantityResolver = Depends(get_source_resolver),
):
    """Look up a product in the ERP, with its on-hand quantity"""
    try:
        product = await resolver.fetch(sku.strip())
    except PlatformServiceError as e:
        logger.error(f"ERP lookup failed for {sku}: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    if product is None:
        raise HTTPException(status_code=404, detail=f"Product {sku} not found in the ERP")
    return product
