# tests/unit/services/test_sku_resolver.py
from stocksync.services.sku_resolver import resolve_sku


def test_seller_custom_field_wins_over_attribute():
    item = {
        "id": "MLA1",
        "seller_custom_field": "ABC-1",
        "attributes": [{"id": "SELLER_SKU", "value_name": "OTHER"}],
    }
    assert resolve_sku(item) == "ABC-1"


def test_falls_back_to_seller_sku_attribute():
    item = {
        "id": "MLA1",
        "seller_custom_field": None,
        "attributes": [
            {"id": "BRAND", "value_name": "Fender"},
            {"id": "SELLER_SKU", "value_name": " ABC-2 "},
        ],
    }
    assert resolve_sku(item) == "ABC-2"


def test_seller_sku_id_attribute_is_accepted():
    item = {"attributes": [{"id": "SELLER_SKU_ID", "value_name": "ABC-3"}]}
    assert resolve_sku(item) == "ABC-3"


def test_blank_custom_field_is_ignored():
    item = {"seller_custom_field": "   ", "attributes": [{"id": "SELLER_SKU", "value_name": "ABC-4"}]}
    assert resolve_sku(item) == "ABC-4"


def test_never_falls_back_to_item_id():
    item = {"id": "MLA999", "title": "No SKU", "attributes": [{"id": "BRAND", "value_name": "X"}]}
    assert resolve_sku(item) is None


def test_empty_or_missing_item():
    assert resolve_sku({}) is None
    assert resolve_sku(None) is None
    assert resolve_sku({"attributes": None}) is None
    assert resolve_sku({"attributes": [{"id": "SELLER_SKU", "value_name": None}]}) is None
