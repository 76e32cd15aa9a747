from tests.mocks.mock_platforms import MockSink, MockSource, erp_payload, ml_item

__all__ = ["MockSink", "MockSource", "erp_payload", "ml_item"]
