"""Loads the static product catalog and serializes it for prompts."""

import asyncio
import json
import logging
from collections.abc import Iterable
from pathlib import Path

from async_lru import alru_cache
from pydantic import ValidationError

from avboq.core.exceptions import CatalogError
from avboq.core.exceptions import ConfigurationError
from avboq.models.boq_models import CatalogItem

logger = logging.getLogger(__name__)


def _read_catalog_file(path_str: str) -> str:
    return Path(path_str).read_text(encoding="utf-8")


@alru_cache(maxsize=4)
async def load_catalog(path: str) -> tuple[CatalogItem, ...]:
    """Reads and validates the catalog file once; later calls return the cached tuple."""
    try:
        raw = await asyncio.to_thread(_read_catalog_file, path)
    except FileNotFoundError as e:
        logger.error("Catalog file not found: %s", path)
        raise ConfigurationError(f"Product catalog not found: {path}") from e

    try:
        records = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error("Catalog file %s is not valid JSON: %s", path, e)
        raise CatalogError(f"Product catalog is not valid JSON: {e}") from e

    if not isinstance(records, list):
        raise CatalogError("Product catalog must be a JSON array of products.")

    items: list[CatalogItem] = []
    for idx, record in enumerate(records):
        try:
            items.append(CatalogItem.model_validate(record))
        except ValidationError as ve:
            logger.error("Invalid catalog record #%d in %s: %s", idx, path, ve)
            raise CatalogError(f"Invalid catalog record #{idx}: {ve}") from ve

    logger.info("Loaded %d catalog items from %s", len(items), path)
    return tuple(items)


def serialize_catalog(items: Iterable[CatalogItem]) -> str:
    """Compact JSON of the catalog fields the model is allowed to see."""
    return json.dumps(
        [
            {
                "brand": item.brand,
                "model": item.model,
                "description": item.description,
                "category": item.category,
                "price": item.price,
            }
            for item in items
        ],
        ensure_ascii=False,
        separators=(",", ":"),
    )
