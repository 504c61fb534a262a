"""Provides API key-based security for FastAPI endpoints."""

import logging
import secrets

from fastapi import Depends
from fastapi import HTTPException
from fastapi.security import APIKeyHeader

from avboq.core.config import settings

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key")


def _keys_match(provided: str, expected: str) -> bool:
    # Header values may hold non-ASCII characters, which compare_digest rejects for str
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


async def verify_api_key(key: str = Depends(api_key_header)) -> bool:
    """Checks the 'X-API-Key' header against ``settings.service_api_key``.

    The comparison runs in constant time. When no service key is configured
    every request is refused.

    Raises:
        HTTPException: 403 if the key is wrong or the server has no service key.
    """
    if not settings.service_api_key:
        logger.critical("No SERVICE_API_KEY is configured; every /api request will be denied.")
        raise HTTPException(status_code=403, detail="Invalid API Key")

    if not _keys_match(key, settings.service_api_key):
        logger.warning("Rejected request with an invalid X-API-Key header")
        raise HTTPException(status_code=403, detail="Invalid API Key")
    return True
