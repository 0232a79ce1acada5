import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from photo_ledger.exceptions import BaseAPIException, PhotographerNotFoundException
from photo_ledger.schemas.common import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

PHOTOGRAPHER_ID_PATTERN = re.compile(r"pht_\w+")


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    error_response = ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details or None),
        meta={
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "path": request.url.path,
        },
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json", exclude_none=True),
    )


async def api_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Render a domain exception as the standard error envelope.

    Client errors are logged at warning level; nothing here is retried.
    """
    assert isinstance(exc, BaseAPIException)
    logger.warning(
        "API exception %s on %s %s: %s",
        exc.error_code,
        request.method,
        request.url.path,
        exc.message,
        extra={
            "error_code": exc.error_code,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
        },
    )
    return _error_response(
        request, exc.status_code, exc.error_code, exc.message, exc.details
    )


async def integrity_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    A foreign key pointing at an unknown photographer is a 404 for that
    photographer; every other constraint violation is a 409.
    """
    assert isinstance(exc, IntegrityError)
    raw_error = str(exc.orig)
    lowered = raw_error.lower()

    if "foreign key" in lowered and "photographers" in lowered:
        match = PHOTOGRAPHER_ID_PATTERN.search(raw_error)
        return await api_exception_handler(
            request,
            PhotographerNotFoundException(match.group(0) if match else "unknown"),
        )

    logger.warning(
        "Database integrity error on %s %s",
        request.method,
        request.url.path,
        extra={"error": raw_error, "path": request.url.path},
    )
    return _error_response(
        request, 409, "INTEGRITY_ERROR", "Database constraint violation"
    )


async def stale_data_handler(request: Request, exc: Exception) -> JSONResponse:
    # Version check failed outside the ledger services' own guard.
    logger.warning(
        "Stale ledger version on %s %s",
        request.method,
        request.url.path,
        extra={"path": request.url.path},
    )
    return _error_response(
        request,
        409,
        "CONCURRENT_LEDGER_UPDATE",
        "Ledger was modified concurrently, retry the request",
        {"retryable": True},
    )


async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    logger.error(
        "Unhandled exception: %s",
        type(exc).__name__,
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return _error_response(
        request, 500, "INTERNAL_ERROR", "An unexpected error occurred"
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Most specific first: domain errors, DB constraint/version errors, catch-all."""
    app.add_exception_handler(BaseAPIException, api_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(StaleDataError, stale_data_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
