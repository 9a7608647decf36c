"""
Tenant Rewrite Middleware

Runs once per request, before routing:

  1. Parse the host (X-Forwarded-Host first, then Host).
  2. Ask the TenantResolver for a decision.
  3. On RewriteTo, substitute the ASGI path with /tenant/<slug>/... so the
     tenant-scoped routers serve the request. Method, query string, headers
     and body are untouched; the client sees no redirect.

Sets on request.state for downstream handlers:
    tenant_slug       (str | None)             slug the request was rewritten for
    rewrite_decision  (RewriteDecision | None) what the resolver decided
    original_path     (str)                    path before any rewrite

Visiting any non-excluded path with ?__debug=1 returns the parsed host
instead of routing, when the debug endpoint is enabled.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import quote

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from app.constants.routing import DEBUG_QUERY_PARAM, DEBUG_QUERY_VALUE
from app.services.tenant_resolver import RewriteTo, TenantResolver, is_excluded_path
from app.utils.host import ResolvedHost, parse_host

if TYPE_CHECKING:
    from collections.abc import Callable

    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.types import ASGIApp, Scope

logger = logging.getLogger(__name__)


def build_debug_payload(host: ResolvedHost, path: str) -> dict:
    return {
        "hostname": host.hostname,
        "forwarded_host": host.forwarded_host,
        "forwarded_proto": host.forwarded_proto,
        "pathname": path,
        "subdomain": host.subdomain,
    }


def apply_rewrite(scope: Scope, target_path: str) -> None:
    """Point the ASGI scope at target_path. The query string lives in its own key."""
    scope["path"] = target_path
    scope["raw_path"] = quote(target_path).encode("ascii")


class TenantRewriteMiddleware(BaseHTTPMiddleware):
    """Resolve the tenant from the host and rewrite the request path to its routes."""

    def __init__(
        self,
        app: ASGIApp,
        resolver: TenantResolver,
        local_marker: str = "localhost",
        enable_debug: bool = False,
    ):
        super().__init__(app)
        self.resolver = resolver
        self.local_marker = local_marker
        self.enable_debug = enable_debug

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.scope["path"]

        # Always initialise state so downstream code can safely read without AttributeError
        request.state.tenant_slug = None
        request.state.rewrite_decision = None
        request.state.original_path = path

        try:
            host = parse_host(request.headers, self.resolver.base_domain, self.local_marker)

            if (
                self.enable_debug
                and request.query_params.get(DEBUG_QUERY_PARAM) == DEBUG_QUERY_VALUE
                and not is_excluded_path(path)
            ):
                return JSONResponse(build_debug_payload(host, path))

            decision = await self.resolver.resolve(host, path)
        except Exception:
            logger.exception("Tenant resolution failed for path=%s; forwarding unchanged", path)
            return await call_next(request)

        request.state.rewrite_decision = decision
        if isinstance(decision, RewriteTo):
            apply_rewrite(request.scope, decision.target_path)
            request.state.tenant_slug = decision.tenant_slug
            logger.debug(
                "Rewrote host=%s path=%s → %s",
                host.hostname,
                path,
                decision.target_path,
            )

        return await call_next(request)
