# stocksync/services/source_stock.py
"""
Reads on-hand quantities from the ERP.

With con_stock=S the ERP returns "stock" as an array of arrays of balance
records (one inner array per warehouse group). The on-hand quantity is the sum
of every balance at the innermost level.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from stocksync.core.exceptions import NotFoundError
from stocksync.integrations.base import SourceSystem
from stocksync.schemas.stock import SourceProduct

logger = logging.getLogger(__name__)

BALANCE_FIELDS = ("saldo", "balance")


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _record_balance(record: Dict[str, Any]) -> float:
    for field in BALANCE_FIELDS:
        if field in record:
            return _to_number(record[field])
    return 0.0


def _iter_records(stock: Any) -> Iterable[Dict[str, Any]]:
    if isinstance(stock, dict):
        yield stock
    elif isinstance(stock, (list, tuple)):
        for entry in stock:
            if isinstance(entry, dict):
                yield entry
            elif isinstance(entry, (list, tuple)):
                for record in entry:
                    if isinstance(record, dict):
                        yield record


def extract_stock_quantity(stock: Any) -> int:
    """
    Total on-hand quantity from a stock breakdown.

    Accepts the nested array-of-arrays shape as well as a flat list of records
    or a single record. Missing or non-numeric balances count as zero and the
    result is never negative.
    """
    total = sum(_record_balance(record) for record in _iter_records(stock))
    return max(0, int(total))


def _first(product: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = product.get(key)
        if value not in (None, ""):
            return value
    return default


class SourceQuantityResolver:
    """Looks up a SKU in the ERP and reduces the payload to a SourceProduct"""

    def __init__(self, source: SourceSystem):
        self.source = source

    async def fetch(self, sku: str) -> Optional[SourceProduct]:
        """
        Returns None when the ERP does not know the SKU.

        Raises:
            RateLimitedError, ServerUnavailableError, PlatformAPIError
        """
        try:
            payload = await self.source.fetch_product(sku)
        except NotFoundError:
            logger.debug(f"SKU {sku} not found in {self.source.name}")
            return None

        product = payload.get("data", payload) if isinstance(payload, dict) else payload
        if isinstance(product, list):
            product = product[0] if product else None
        if not product or not isinstance(product, dict):
            return None

        return SourceProduct(
            sku=str(_first(product, "codigo_prod", "cod_producto", "codigo", default=sku)),
            quantity_on_hand=extract_stock_quantity(product.get("stock")),
            name=str(_first(product, "nombre", "descripcion", "descrip", default="")),
            unit=str(_first(product, "unidadstock", "unidad", default="")),
            price=_to_number(_first(product, "precio", "precio_unit", default=0)),
            raw=product,
        )
