from functools import lru_cache

from fastapi import Depends

from stocksync.core.config import Settings, get_settings
from stocksync.services.erp.auth import ERPAuthManager
from stocksync.services.erp.client import ERPClient
from stocksync.services.marketplace.auth import MarketplaceAuthManager
from stocksync.services.marketplace.client import MarketplaceClient
from stocksync.services.source_stock import SourceQuantityResolver
from stocksync.services.stock_sync_service import StockSyncService


@lru_cache()
def get_erp_auth() -> ERPAuthManager:
    """Process-wide ERP credential cache"""
    return ERPAuthManager(get_settings())


@lru_cache()
def get_marketplace_auth() -> MarketplaceAuthManager:
    """Process-wide MercadoLibre credential cache"""
    return MarketplaceAuthManager(get_settings())


def build_sync_service(settings: Settings) -> StockSyncService:
    """A fresh service (and so a fresh catalog index) sharing the cached credentials"""
    return StockSyncService(
        source=ERPClient(auth=get_erp_auth(), settings=settings),
        sink=MarketplaceClient(auth=get_marketplace_auth(), settings=settings),
        settings=settings,
    )


def get_sync_service(settings: Settings = Depends(get_settings)) -> StockSyncService:
    """Dependency: one StockSyncService per request"""
    return build_sync_service(settings)


def get_source_resolver(settings: Settings = Depends(get_settings)) -> SourceQuantityResolver:
    """Dependency: ERP product lookups for the local products endpoint"""
    return SourceQuantityResolver(ERPClient(auth=get_erp_auth(), settings=settings))
