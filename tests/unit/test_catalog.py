import json

import pytest
from pydantic import ValidationError

from avboq.core.config import DEFAULT_CATALOG_PATH
from avboq.core.exceptions import CatalogError
from avboq.core.exceptions import ConfigurationError
from avboq.models.boq_models import CATEGORY_ORDER
from avboq.services.catalog import load_catalog
from avboq.services.catalog import serialize_catalog


@pytest.fixture(autouse=True)
def clear_catalog_cache():
    load_catalog.cache_clear()
    yield
    load_catalog.cache_clear()


@pytest.mark.asyncio
async def test_load_packaged_catalog():
    items = await load_catalog(str(DEFAULT_CATALOG_PATH))

    assert len(items) > 0
    assert all(item.category in CATEGORY_ORDER for item in items)
    # Some records carry no price so the model has to estimate
    assert any(item.price == 0 for item in items)


@pytest.mark.asyncio
async def test_load_catalog_is_cached(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps([{"brand": "B", "model": "M", "description": "D", "category": "Display", "price": 10}]))

    first = await load_catalog(str(path))
    path.write_text("[]")
    second = await load_catalog(str(path))

    assert first is second
    assert len(second) == 1


@pytest.mark.asyncio
async def test_load_catalog_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        await load_catalog(str(tmp_path / "missing.json"))


@pytest.mark.asyncio
async def test_load_catalog_invalid_json(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text("{not json")

    with pytest.raises(CatalogError):
        await load_catalog(str(path))


@pytest.mark.asyncio
async def test_load_catalog_invalid_record(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps([{"brand": "B", "category": "Display"}]))

    with pytest.raises(CatalogError, match="record #0"):
        await load_catalog(str(path))


@pytest.mark.asyncio
async def test_load_catalog_null_price_is_unpriced(tmp_path):
    path = tmp_path / "catalog.json"
    records = [
        {"brand": "Extron", "model": "DTP", "description": "HDBaseT extender", "category": "Video Distribution & Switching", "price": None},
        {"brand": "QSC", "model": "AD-C6T", "description": "Ceiling speaker", "category": "Audio - Speakers", "price": 179},
    ]
    path.write_text(json.dumps(records))

    items = await load_catalog(str(path))

    assert [item.price for item in items] == [0.0, 179.0]
    assert json.loads(serialize_catalog(items))[0]["price"] == 0.0


def test_serialize_catalog_is_compact_json(sample_catalog):
    serialized = serialize_catalog(sample_catalog)

    assert serialized.startswith('[{"brand":"Samsung","model":"QM85C"')
    assert json.loads(serialized) == [
        {"brand": "Samsung", "model": "QM85C", "description": "85in 4K display", "category": "Display", "price": 3899.0},
        {"brand": "Shure", "model": "MXA920", "description": "Ceiling mic", "category": "Audio - Microphones", "price": 0.0},
    ]


def test_catalog_items_are_immutable(sample_catalog):
    with pytest.raises(ValidationError):
        sample_catalog[0].price = 1
