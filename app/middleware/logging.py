"""
Access logging for the tenant platform.

One JSON line per request: the path the client asked for, the tenant path
that served it (when the host rewrite moved it), the host and the slug.
"""

import json
import logging
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from datetime import datetime, timezone

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

ACCESS_LOGGER = "platform.access"
REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = frozenset({"/health", "/ready"})

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Attributes copied from LogRecord.extra into the JSON line
ACCESS_FIELDS = ("method", "path", "original_path", "host", "tenant_slug", "status_code", "duration_ms", "client_ip")


class JsonLogFormatter(logging.Formatter):
    """Render a record as one JSON object, tagged with the current request id."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": request_id_var.get(),
        }
        entry.update({key: getattr(record, key) for key in ACCESS_FIELDS if hasattr(record, key)})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request once it has been served.

    Registered outside TenantRewriteMiddleware: the rewrite mutates the shared
    scope, so scope["path"] read after call_next is the served tenant path.
    """

    def __init__(self, app: ASGIApp, logger_name: str = ACCESS_LOGGER):
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request_id_var.set(request_id)
        requested_path = request.url.path
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            self._log(request, requested_path, 500, started, error=e)
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        self._log(request, requested_path, response.status_code, started)
        return response

    def _log(
        self,
        request: Request,
        requested_path: str,
        status_code: int,
        started: float,
        error: Exception | None = None,
    ) -> None:
        if requested_path in QUIET_PATHS:
            return

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        served_path = request.scope.get("path", requested_path)
        fields = {
            "method": request.method,
            "path": served_path,
            "original_path": requested_path,
            "host": request.headers.get("x-forwarded-host") or request.headers.get("host", ""),
            "status_code": status_code,
            "duration_ms": duration_ms,
            "client_ip": _client_ip(request),
        }
        tenant_slug = getattr(request.state, "tenant_slug", None)
        if tenant_slug:
            fields["tenant_slug"] = tenant_slug

        message = f"{request.method} {requested_path} - {status_code} ({duration_ms}ms)"
        if served_path != requested_path:
            message += f" [served {served_path}]"
        if error is not None:
            message += f" - {type(error).__name__}: {error}"

        self.logger.log(_level_for(status_code), message, extra=fields)


def setup_structured_logging(log_level: str = "INFO", json_format: bool = True) -> None:
    """Route every logger through one stderr handler; JSON lines unless json_format is off."""
    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    logging.basicConfig(level=log_level.upper(), handlers=[handler], force=True)

    # Our own access log replaces uvicorn's
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
