"""
In-memory stand-ins for the ERP and MercadoLibre used across the test suite.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

from stocksync.core.exceptions import NotFoundError
from stocksync.integrations.base import ItemPage, SinkPlatform, SourceSystem


def erp_payload(sku: str, *balances: float, name: str = "Test product") -> Dict[str, Any]:
    """ERP product payload with one warehouse group per balance"""
    return {
        "data": [
            {
                "codigo_prod": sku,
                "nombre": name,
                "unidadstock": "UN",
                "precio": 1990,
                "stock": [[{"saldo": balance}] for balance in balances],
            }
        ]
    }


def ml_item(item_id: str, sku: Optional[str], quantity: int = 0, title: str = "Listing", attribute_sku: Optional[str] = None) -> Dict[str, Any]:
    item = {
        "id": item_id,
        "title": title,
        "status": "active",
        "available_quantity": quantity,
        "attributes": [],
    }
    if sku is not None:
        item["seller_custom_field"] = sku
    if attribute_sku is not None:
        item["attributes"].append({"id": "SELLER_SKU", "value_name": attribute_sku})
    return item


class _InFlight:
    def __init__(self):
        self.current = 0
        self.max_seen = 0

    async def __aenter__(self):
        self.current += 1
        self.max_seen = max(self.max_seen, self.current)

    async def __aexit__(self, *exc):
        self.current -= 1


class MockSource(SourceSystem):
    name = "MockERP"

    def __init__(self, stock: Optional[Dict[str, float]] = None, latency: Optional[Callable[[str], float]] = None):
        self.products: Dict[str, Dict[str, Any]] = {
            sku: erp_payload(sku, quantity) for sku, quantity in (stock or {}).items()
        }
        self.failures: Dict[str, List[BaseException]] = {}
        self.calls: List[str] = []
        self.latency = latency
        self.in_flight = _InFlight()

    def set_stock(self, sku: str, *balances: float):
        self.products[sku] = erp_payload(sku, *balances)

    def fail(self, sku: str, *errors: BaseException):
        """Queue errors raised by the next lookups of sku, one per call"""
        self.failures.setdefault(sku, []).extend(errors)

    async def fetch_product(self, sku: str) -> Dict[str, Any]:
        self.calls.append(sku)
        async with self.in_flight:
            if self.latency:
                await asyncio.sleep(self.latency(sku))
            queued = self.failures.get(sku)
            if queued:
                raise queued.pop(0)
            if sku not in self.products:
                raise NotFoundError(f"Resource not found on {self.name} (404)", platform=self.name, status_code=404)
            return self.products[sku]


class MockSink(SinkPlatform):
    name = "MockMarketplace"

    def __init__(self, items: Optional[List[Dict[str, Any]]] = None, reported_total: Optional[int] = None):
        self.items: Dict[str, Dict[str, Any]] = {}
        self.order: List[str] = []
        for item in items or []:
            self.add_item(item)
        self.reported_total = reported_total
        self.broken_items: Dict[str, BaseException] = {}
        self.update_failures: Dict[str, List[BaseException]] = {}
        self.update_calls: List[Dict[str, Any]] = []
        self.page_requests: List[Dict[str, int]] = []
        self.get_item_calls: List[str] = []
        self.verified = 0

    def add_item(self, item: Dict[str, Any]):
        self.items[item["id"]] = dict(item)
        self.order.append(item["id"])

    def fail_update(self, item_id: str, *errors: BaseException):
        self.update_failures.setdefault(item_id, []).extend(errors)

    async def verify(self) -> None:
        self.verified += 1

    async def list_active_items(self, offset: int, limit: int) -> ItemPage:
        self.page_requests.append({"offset": offset, "limit": limit})
        total = self.reported_total if self.reported_total is not None else len(self.order)
        return ItemPage(item_ids=self.order[offset:offset + limit], total=total)

    async def get_item(self, item_id: str) -> Dict[str, Any]:
        self.get_item_calls.append(item_id)
        if item_id in self.broken_items:
            raise self.broken_items[item_id]
        return dict(self.items[item_id])

    async def update_quantity(self, item_id: str, quantity: int) -> Dict[str, Any]:
        queued = self.update_failures.get(item_id)
        if queued:
            raise queued.pop(0)
        self.update_calls.append({"item_id": item_id, "quantity": quantity})
        self.items[item_id]["available_quantity"] = quantity
        return {"id": item_id, "available_quantity": quantity}
