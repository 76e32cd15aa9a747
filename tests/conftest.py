# tests/conftest.py
import pytest

from stocksync.core.config import Settings
from stocksync.schemas.stock import SyncOptions
from stocksync.services.stock_sync_service import StockSyncService
from tests.mocks.mock_platforms import MockSink, MockSource, ml_item


@pytest.fixture
def settings():
    """Provide test settings"""
    return Settings(
        ERP_BASE_URL="https://erp.test/api",
        ERP_USERNAME="erp_user",
        ERP_PASSWORD="erp_pass",
        RUT_EMPRESA="76123456-7",
        MERCADOLIBRE_CLIENT_ID="client_id",
        MERCADOLIBRE_CLIENT_SECRET="client_secret",
        MERCADOLIBRE_ACCESS_TOKEN="",
        MERCADOLIBRE_REFRESH_TOKEN="refresh_token",
        MERCADOLIBRE_USER_ID="123456",
        MERCADOLIBRE_API_BASE_URL="https://api.mercadolibre.test",
    )


@pytest.fixture
def mock_source():
    return MockSource({"SKU-1": 5, "SKU-2": 3, "SKU-3": 0})


@pytest.fixture
def mock_sink():
    return MockSink([
        ml_item("MLA1", "SKU-1", quantity=2),
        ml_item("MLA2", "SKU-2", quantity=3),
        ml_item("MLA3", "SKU-3", quantity=4),
        ml_item("MLA4", None, quantity=1, title="No SKU listing"),
    ])


@pytest.fixture
def fast_options():
    """Live run options without real waiting between retries"""
    return SyncOptions(concurrency=5, max_retries=3, retry_delay=0)


@pytest.fixture
def sync_service(mock_source, mock_sink, settings):
    return StockSyncService(source=mock_source, sink=mock_sink, settings=settings, cooldown_seconds=0)
