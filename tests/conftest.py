from unittest.mock import AsyncMock
from unittest.mock import MagicMock

import pytest

from avboq.core.config import Settings
from avboq.models.boq_models import CatalogItem
from avboq.models.boq_models import LineItem
from avboq.services.quote_service import QuoteService


@pytest.fixture
def test_settings():
    return Settings(gemini_api_key="test-key", service_api_key="secret")


@pytest.fixture
def sample_catalog():
    return (
        CatalogItem(brand="Samsung", model="QM85C", description="85in 4K display", category="Display", price=3899),
        CatalogItem(brand="Shure", model="MXA920", description="Ceiling mic", category="Audio - Microphones", price=0),
    )


# Factory for line items with sensible defaults
@pytest.fixture
def make_line_item():
    def _make_line_item(**overrides):
        data = {
            "category": "Display",
            "item_description": "85in 4K display",
            "brand": "Samsung",
            "model": "QM85C",
            "quantity": 1,
            "unit_price": 3899.0,
            "total_price": 3899.0,
            "source": "database",
            "price_source": "database",
        }
        data.update(overrides)
        return LineItem(**data)

    return _make_line_item


@pytest.fixture
def fake_gateway():
    """A gateway double whose three calls are AsyncMocks."""
    gateway = MagicMock()
    gateway.generate_json = AsyncMock()
    gateway.generate_images = AsyncMock()
    gateway.generate_grounded_text = AsyncMock()
    return gateway


@pytest.fixture
def quote_service(fake_gateway, sample_catalog, test_settings):
    return QuoteService(fake_gateway, sample_catalog, test_settings)
