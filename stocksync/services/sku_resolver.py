# stocksync/services/sku_resolver.py
"""
Resolve the ERP SKU of a MercadoLibre listing.

The seller_custom_field wins; otherwise the SELLER_SKU attribute is used.
Listings with neither are unlinkable; the item id is never used as a SKU.
"""

from typing import Any, Dict, Optional

SKU_ATTRIBUTE_IDS = ("SELLER_SKU", "SELLER_SKU_ID")


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def resolve_sku(item: Optional[Dict[str, Any]]) -> Optional[str]:
    """Return the SKU configured on a listing, or None if it has none"""
    if not item:
        return None

    sku = _clean(item.get("seller_custom_field"))
    if sku:
        return sku

    for attribute in item.get("attributes") or []:
        if not isinstance(attribute, dict):
            continue
        if attribute.get("id") in SKU_ATTRIBUTE_IDS:
            sku = _clean(attribute.get("value_name"))
            if sku:
                return sku

    return None
