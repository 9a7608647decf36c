"""
Global exception handlers.

Every error leaves the application in one envelope:

{
    "error": {
        "status_code": 404,
        "error_code": "RESOURCE_TENANT_NOT_FOUND",
        "message": "Tenant 'ghost' not found",
        "type": "Not Found",
        "details": {"resource_type": "Tenant", "resource_id": "ghost"},
        "path": "/tenant/ghost/dashboard",
        "requested_path": "/"
    }
}

"path" is the route that handled the request. When the host rewrite moved
the request onto a tenant route, "requested_path" carries what the client
actually asked for.
"""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.exceptions import ErrorCode, PlatformError

logger = logging.getLogger(__name__)

ERROR_TYPES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    422: "Validation Error",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}

HTTP_ERROR_CODES = {
    400: ErrorCode.VALIDATION_FAILED,
    401: ErrorCode.AUTH_FAILED,
    403: ErrorCode.AUTH_PERMISSION_DENIED,
    404: ErrorCode.RESOURCE_NOT_FOUND,
    409: ErrorCode.VALIDATION_DUPLICATE_RESOURCE,
    422: ErrorCode.VALIDATION_FAILED,
    500: ErrorCode.INTERNAL_ERROR,
    502: ErrorCode.SERVICE_UNAVAILABLE,
    503: ErrorCode.SERVICE_UNAVAILABLE,
}


def get_error_type(status_code: int) -> str:
    return ERROR_TYPES.get(status_code, "Error")


def get_http_error_code(status_code: int) -> str:
    return HTTP_ERROR_CODES.get(status_code, ErrorCode.UNKNOWN_ERROR).value


def _request_context(request: Request) -> dict[str, Any]:
    """Paths and tenant of the failing request, for the envelope and the log line."""
    context: dict[str, Any] = {"path": request.url.path}
    original_path = getattr(request.state, "original_path", None)
    if original_path and original_path != context["path"]:
        context["requested_path"] = original_path
    tenant_slug = getattr(request.state, "tenant_slug", None)
    if tenant_slug:
        context["tenant_slug"] = tenant_slug
    return context


def create_error_response(
    status_code: int,
    message: str,
    error_code: str | ErrorCode | None = None,
    details: dict[str, Any] | None = None,
    path: str | None = None,
    requested_path: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the standard error envelope."""
    error: dict[str, Any] = {
        "status_code": status_code,
        "message": message,
        "type": get_error_type(status_code),
    }
    if error_code:
        error["error_code"] = error_code.value if isinstance(error_code, ErrorCode) else error_code
    if details:
        error["details"] = details
    if path:
        error["path"] = path
    if requested_path:
        error["requested_path"] = requested_path

    return JSONResponse(status_code=status_code, content={"error": error}, headers=headers)


async def platform_exception_handler(request: Request, exc: PlatformError) -> JSONResponse:
    context = _request_context(request)
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "PlatformError: %s",
        exc.message,
        extra={"status_code": exc.status_code, "error_code": exc.error_code.value, **context},
    )

    return create_error_response(
        status_code=exc.status_code,
        message=exc.message,
        error_code=exc.error_code,
        details=exc.details or None,
        path=context["path"],
        requested_path=context.get("requested_path"),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    context = _request_context(request)
    logger.warning("HTTPException: %s", exc.detail, extra={"status_code": exc.status_code, **context})

    return create_error_response(
        status_code=exc.status_code,
        message=str(exc.detail),
        error_code=get_http_error_code(exc.status_code),
        path=context["path"],
        requested_path=context.get("requested_path"),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    context = _request_context(request)
    logger.warning("Validation error on %s", context["path"], extra={"errors": errors})

    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message="Validation error",
        error_code=ErrorCode.VALIDATION_FAILED,
        details={"validation_errors": errors},
        path=context["path"],
        requested_path=context.get("requested_path"),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the failure with its traceback; the client only gets a generic message."""
    context = _request_context(request)
    logger.error("Unhandled exception: %s", exc, exc_info=True, extra={"method": request.method, **context})

    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="An unexpected error occurred. Please try again later.",
        error_code=ErrorCode.INTERNAL_ERROR,
        path=context["path"],
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(PlatformError, platform_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    # Catch-all for unexpected exceptions
    app.add_exception_handler(Exception, unhandled_exception_handler)
    logger.info("Exception handlers registered")
