# services/db_errors.py
from __future__ import annotations

import logging

from fastapi import HTTPException

from app.errors import (
    ExternalProviderError,
    MarketplaceError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

logger = logging.getLogger("bookmarket.errors")

ERROR_HTTP_MAP: dict[type[MarketplaceError], int] = {
    ValidationError: 422,
    NotFoundError: 404,
    ExternalProviderError: 502,
    PersistenceError: 503,
}


def raise_http_from_error(exc: Exception) -> None:
    """
    Convert known domain errors into HTTP responses; otherwise fail closed
    without leaking the exception text.
    """
    for err_type, status in ERROR_HTTP_MAP.items():
        if isinstance(exc, err_type):
            if isinstance(exc, PersistenceError):
                logger.error("persistence failure: %s", exc)
                raise HTTPException(status_code=status, detail="Database unavailable, please retry")
            raise HTTPException(status_code=status, detail=str(exc) or err_type.__name__)

    logger.error("unexpected error: %s", type(exc).__name__)
    raise HTTPException(status_code=500, detail="Internal server error")
