"""Request-boundary error rendering.

This is the only place WorkHub errors become HTTP responses. Every error body
has the same shape:

    {"error": {"code": "ACCESS_DENIED", "message": "...", "details": {...}}}

Denials log at WARNING; dependency failures and unexpected errors at ERROR,
always with the request path and method.
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from workhub.errors import DependencyFailure, UnauthenticatedError, WorkHubException

logger = logging.getLogger(__name__)


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: dict | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    error = {"code": code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error}, headers=headers)


def _request_context(request: Request) -> dict:
    return {"path": request.url.path, "method": request.method}


async def workhub_exception_handler(request: Request, exc: WorkHubException) -> JSONResponse:
    if isinstance(exc, DependencyFailure) or exc.status_code >= 500:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logger.log(
        level,
        f"{exc.error_code}: {exc.message}",
        extra={"error_code": exc.error_code, **_request_context(request)},
    )

    # RFC 7235: a 401 names the scheme the client should retry with
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthenticatedError) else None
    return error_response(exc.status_code, exc.error_code, exc.message, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code}: {exc.detail}", extra=_request_context(request))
    return error_response(
        exc.status_code,
        f"HTTP_{exc.status_code}",
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    logger.warning("Request validation failed", extra={"errors": errors, **_request_context(request)})
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Validation error",
        details={"errors": errors},
    )


async def integrity_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """A write collided with a unique constraint (duplicate project code, concurrent grant)."""
    logger.warning(f"Integrity error: {exc.orig}", extra=_request_context(request))
    return error_response(
        status.HTTP_409_CONFLICT,
        "DUPLICATE_RECORD",
        "A record with this value already exists",
    )


async def data_store_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Data store error outside a resolver: {exc}", extra=_request_context(request))
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "DEPENDENCY_FAILURE",
        "Database temporarily unavailable. Please try again.",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception on {request.url.path}", extra=_request_context(request))
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred. Please try again later.",
    )


def register_exception_handlers(app) -> None:
    for exc_class, handler in (
        (WorkHubException, workhub_exception_handler),
        (StarletteHTTPException, http_exception_handler),
        (RequestValidationError, validation_exception_handler),
        (IntegrityError, integrity_exception_handler),
        (SQLAlchemyError, data_store_exception_handler),
        (Exception, unhandled_exception_handler),
    ):
        app.add_exception_handler(exc_class, handler)
