"""Error Handlers — map every failure onto the one marketplace error envelope.

Invariants:
    - MarketplaceError → its own http_status and to_response() body
    - RequestValidationError → 400 VALIDATION_ERROR, same envelope as InvalidRequestError
    - Field names drop the request location prefix ("body.seller_price" → "seller_price")
    - Exception (catch-all) → 500, never leaks internal details

Design Decisions:
    - Schema errors are re-raised as InvalidRequestError so clients parse one shape,
      whether a rule failed in pydantic or in core/
    - 4xx errors log at WARNING, infrastructure errors at ERROR
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from marketplace.core.errors import (
    ErrorSeverity, InvalidRequestError, MarketplaceError,
)

logger = logging.getLogger(__name__)

_LOCATIONS = ("body", "query", "path", "header", "form", "file")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)


async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"{type(exc).__name__}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "user_id": exc.context.user_id,
        },
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def validation_error_handler(request: Request, exc: RequestValidationError):
    field_errors = [
        {"field": field_name(e["loc"]), "message": e["msg"]} for e in exc.errors()
    ]
    logger.warning(
        f"Validation error on {request.url.path}: {field_errors}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    error = InvalidRequestError("Invalid request data", field_errors=field_errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content=error.to_response(),
    )


async def generic_error_handler(request: Request, exc: Exception):
    """Catch-all — never leaks internal details."""
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        exc_info=True,
        extra={"path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": "internal",
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )


def field_name(loc: tuple | list) -> str:
    """Dotted field path without the request location ("body", "query", ...)."""
    parts = [str(p) for p in loc]
    if len(parts) > 1 and parts[0] in _LOCATIONS:
        parts = parts[1:]
    return ".".join(parts)
