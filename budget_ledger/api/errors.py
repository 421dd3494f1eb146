"""
Mapping of ledger errors onto HTTP responses.

Client mistakes become 400, unknown records 404 and storage
failures 503. Client errors are logged at debug level only,
404s are not logged at all.
"""

import logging

from fastapi import HTTPException

from budget_ledger.errors import (
    InvalidTypeError,
    LedgerError,
    NotFoundError,
    StorageError,
    TypeMismatchError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def http_error(exc: LedgerError, action: str) -> HTTPException:
    """Build the HTTPException for a ledger error raised while doing `action`."""
    detail = f"{action}: {exc}"

    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=detail)

    if isinstance(exc, (ValidationError, TypeMismatchError, InvalidTypeError)):
        logger.debug("%s", detail)
        return HTTPException(status_code=400, detail=detail)

    if isinstance(exc, StorageError):
        logger.error("%s", detail, exc_info=exc)
        return HTTPException(status_code=503, detail=detail)

    logger.error("%s", detail, exc_info=exc)
    return HTTPException(status_code=500, detail=detail)
