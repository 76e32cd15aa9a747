# tests/unit/services/test_catalog_index.py
import pytest

from stocksync.core.exceptions import PlatformAPIError
from stocksync.services.catalog_index import CatalogIndex, parse_quantity
from tests.mocks.mock_platforms import MockSink, ml_item


@pytest.mark.asyncio
async def test_build_indexes_listings_by_sku(mock_sink):
    index = await CatalogIndex(mock_sink).build()

    assert set(index) == {"SKU-1", "SKU-2", "SKU-3"}
    summary = index["SKU-1"]
    assert summary.item_id == "MLA1"
    assert summary.current_quantity == 2
    assert summary.status == "active"


@pytest.mark.asyncio
async def test_listings_without_sku_are_reported_unlinkable(mock_sink):
    catalog = CatalogIndex(mock_sink)
    await catalog.build()

    assert [u.item_id for u in catalog.unlinkable] == ["MLA4"]
    assert catalog.unlinkable[0].reason == "missing_sku"
    assert catalog.unlinkable[0].title == "No SKU listing"


@pytest.mark.asyncio
async def test_duplicate_sku_keeps_first_listing():
    sink = MockSink([
        ml_item("MLA1", "DUP", quantity=1),
        ml_item("MLA2", None, quantity=9, attribute_sku="DUP"),
    ])
    catalog = CatalogIndex(sink)

    index = await catalog.build()

    assert len(index) == 1
    assert index["DUP"].item_id == "MLA1"
    assert catalog.duplicates == {"DUP": ["MLA2"]}


@pytest.mark.asyncio
async def test_build_is_memoized(mock_sink):
    catalog = CatalogIndex(mock_sink)

    first = await catalog.build()
    second = await catalog.build()

    assert first is second
    assert len(mock_sink.page_requests) == 1


@pytest.mark.asyncio
async def test_invalidate_forces_rescan(mock_sink):
    catalog = CatalogIndex(mock_sink)
    await catalog.build()

    catalog.invalidate()
    await catalog.build()

    assert len(mock_sink.page_requests) == 2


@pytest.mark.asyncio
async def test_index_is_read_only(mock_sink):
    index = await CatalogIndex(mock_sink).build()

    with pytest.raises(TypeError):
        index["NEW"] = None


@pytest.mark.asyncio
async def test_paginates_until_total_reached():
    sink = MockSink([ml_item(f"MLA{i}", f"SKU-{i}") for i in range(7)])
    catalog = CatalogIndex(sink, page_size=3)

    index = await catalog.build()

    assert len(index) == 7
    assert [r["offset"] for r in sink.page_requests] == [0, 3, 6]


@pytest.mark.asyncio
async def test_stops_on_exact_multiple_of_page_size():
    sink = MockSink([ml_item(f"MLA{i}", f"SKU-{i}") for i in range(6)])
    catalog = CatalogIndex(sink, page_size=3)

    await catalog.build()

    assert [r["offset"] for r in sink.page_requests] == [0, 3]


@pytest.mark.asyncio
async def test_short_page_ends_scan_even_if_total_is_larger():
    sink = MockSink([ml_item(f"MLA{i}", f"SKU-{i}") for i in range(2)], reported_total=100)
    catalog = CatalogIndex(sink, page_size=3)

    index = await catalog.build()

    assert len(index) == 2
    assert len(sink.page_requests) == 1


@pytest.mark.asyncio
async def test_item_fetch_failures_do_not_abort_build():
    sink = MockSink([ml_item("MLA1", "SKU-1"), ml_item("MLA2", "SKU-2"), ml_item("MLA3", "SKU-3")])
    sink.broken_items["MLA2"] = PlatformAPIError("boom")
    catalog = CatalogIndex(sink)

    index = await catalog.build()

    assert set(index) == {"SKU-1", "SKU-3"}
    assert [(u.item_id, u.reason) for u in catalog.unlinkable] == [("MLA2", "fetch_failed")]


@pytest.mark.asyncio
async def test_empty_catalog_is_not_an_error():
    catalog = CatalogIndex(MockSink())

    index = await catalog.build()

    assert len(index) == 0
    assert catalog.is_built


@pytest.mark.asyncio
async def test_listing_failures_propagate():
    class BrokenSink(MockSink):
        async def list_active_items(self, offset, limit):
            raise PlatformAPIError("search down")

    with pytest.raises(PlatformAPIError):
        await CatalogIndex(BrokenSink()).build()


@pytest.mark.asyncio
async def test_unreadable_quantity_is_unlinkable_not_fatal():
    sink = MockSink([
        ml_item("MLA1", "SKU-1", quantity=2),
        ml_item("MLA2", "SKU-2", quantity=0),
        ml_item("MLA3", "SKU-3", quantity=4),
    ])
    sink.items["MLA2"]["available_quantity"] = "n/a"
    catalog = CatalogIndex(sink)

    index = await catalog.build()

    assert set(index) == {"SKU-1", "SKU-3"}
    assert [(u.item_id, u.reason) for u in catalog.unlinkable] == [("MLA2", "invalid_quantity")]


@pytest.mark.parametrize("value, expected", [
    (3, 3),
    ("7", 7),
    (2.9, 2),
    (-4, 0),
    (None, 0),
    ("n/a", None),
    (True, None),
    ({"qty": 1}, None),
])
def test_parse_quantity(value, expected):
    assert parse_quantity(value) == expected
