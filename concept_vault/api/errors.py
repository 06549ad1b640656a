"""Exception handlers: store failures become the envelope the client expects.

Internal exception text is logged here and never returned to the caller.
"""
from __future__ import annotations
import logging
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from concept_vault.domain.common.errors import (
    NotFoundError,
    StoreError,
    TransportFailureError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)


def error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    content = {"success": False, "error": error}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    if isinstance(exc, NotFoundError):
        return error_response(404, "Concept not found")
    if isinstance(exc, ValidationFailedError):
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
        return error_response(
            400,
            "Data validation failed",
            "One or more concepts contain invalid data that doesn't match the required format.",
        )
    if isinstance(exc, TransportFailureError):
        logger.error("Store unreachable during %s %s: %s", request.method, request.url.path, exc)
        return error_response(
            503,
            "Database connection failed",
            "Unable to connect to the database. Please check the database configuration.",
        )
    logger.exception("Store failure during %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(500, "Internal server error", "An unexpected store error occurred.")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return error_response(
        500,
        "Internal server error",
        "An unexpected error occurred. Please try again later.",
    )
