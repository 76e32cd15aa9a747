# tests/unit/services/test_source_stock.py
import pytest

from stocksync.core.exceptions import RateLimitedError, ServerUnavailableError
from stocksync.services.source_stock import SourceQuantityResolver, extract_stock_quantity
from tests.mocks.mock_platforms import MockSource


"""
1. Stock extraction
"""

def test_nested_balances_are_summed():
    stock = [[{"balance": 3}, {"balance": 2}], [{"balance": 5}]]
    assert extract_stock_quantity(stock) == 10


def test_empty_stock_is_zero():
    assert extract_stock_quantity([]) == 0
    assert extract_stock_quantity(None) == 0


def test_erp_saldo_field_and_numeric_strings():
    stock = [[{"saldo": "4"}, {"saldo": 1.0}], [{"saldo": "n/a"}, {"bodega": "B2"}]]
    assert extract_stock_quantity(stock) == 5


def test_flat_list_and_single_record_are_accepted():
    assert extract_stock_quantity([{"saldo": 2}, {"saldo": 7}]) == 9
    assert extract_stock_quantity({"saldo": 6}) == 6


def test_total_is_never_negative():
    assert extract_stock_quantity([[{"saldo": -3}, {"saldo": 1}]]) == 0


def test_non_record_entries_are_ignored():
    assert extract_stock_quantity([[None, 5, "x", {"saldo": 2}], "junk"]) == 2


"""
2. Resolver
"""

@pytest.mark.asyncio
async def test_fetch_maps_erp_payload():
    source = MockSource()
    source.set_stock("SKU-9", 3, 2, 5)

    product = await SourceQuantityResolver(source).fetch("SKU-9")

    assert product.sku == "SKU-9"
    assert product.quantity_on_hand == 10
    assert product.name == "Test product"
    assert product.unit == "UN"
    assert product.price == 1990


@pytest.mark.asyncio
async def test_fetch_returns_none_when_not_found():
    assert await SourceQuantityResolver(MockSource()).fetch("MISSING") is None


@pytest.mark.asyncio
async def test_fetch_returns_none_for_empty_payload():
    source = MockSource()
    source.products["EMPTY"] = {"data": []}
    assert await SourceQuantityResolver(source).fetch("EMPTY") is None


@pytest.mark.asyncio
async def test_unwrapped_product_payload():
    source = MockSource()
    source.products["RAW"] = {"codigo": "RAW", "descripcion": "Raw product", "stock": [[{"saldo": 4}]]}

    product = await SourceQuantityResolver(source).fetch("RAW")

    assert product.quantity_on_hand == 4
    assert product.name == "Raw product"


@pytest.mark.asyncio
async def test_throttling_and_server_errors_propagate():
    source = MockSource({"SKU-1": 1})
    source.fail("SKU-1", RateLimitedError("slow down", retry_after=7), ServerUnavailableError("busy"))
    resolver = SourceQuantityResolver(source)

    with pytest.raises(RateLimitedError) as exc_info:
        await resolver.fetch("SKU-1")
    assert exc_info.value.retry_after == 7

    with pytest.raises(ServerUnavailableError):
        await resolver.fetch("SKU-1")

    product = await resolver.fetch("SKU-1")
    assert product.quantity_on_hand == 1
