"""
Tenant Resolver

Decides, for one request, whether its path must be rewritten to the
tenant-scoped route. Rules are evaluated in order and the first match wins:

  1. Paths starting with /api, /_next, /static or /favicon.ico pass through.
     The directory's HTTP lookup hits /api, so rewriting it would recurse.
  2. Empty or malformed hosts pass through without a lookup.
  3. <slug>.localhost and <slug>.<base_domain> carry the slug directly.
  4. A path already under /tenant/<slug> passes through (loop guard).
  5. Otherwise the path is rewritten to /tenant/<slug>/...
  6. Every other host, the bare base domain included, is looked up in the
     directory. A miss and a lookup failure both pass through.

Resolution keeps no state between requests.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from app.constants.routing import EXCLUDED_PATH_PREFIXES, TENANT_LANDING_PAGE, TENANT_PATH_PREFIX
from app.exceptions import TenantLookupError
from app.services.tenant_directory import TenantDirectory
from app.utils.host import ResolvedHost, is_valid_hostname

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PassThrough:
    """Forward the request unchanged."""

    reason: str = ""


@dataclass(frozen=True)
class RewriteTo:
    """Serve the request from target_path instead of the original path."""

    tenant_slug: str
    target_path: str


# A host no tenant claims is PassThrough("not-found"); it is forwarded like
# any other pass-through.
RewriteDecision = PassThrough | RewriteTo


def is_excluded_path(path: str) -> bool:
    # Plain prefix match: "/api-docs" and "/favicon.ico.map" are excluded too
    return path.startswith(EXCLUDED_PATH_PREFIXES)


def tenant_path_prefix(slug: str) -> str:
    return f"{TENANT_PATH_PREFIX}/{slug}"


def is_tenant_scoped(path: str, slug: str) -> bool:
    prefix = tenant_path_prefix(slug)
    return path == prefix or path.startswith(prefix + "/")


def build_target_path(slug: str, path: str) -> str:
    """
    "/"         → "/tenant/<slug>/dashboard"
    "/settings" → "/tenant/<slug>/settings"
    """
    if path in ("", "/"):
        return f"{tenant_path_prefix(slug)}/{TENANT_LANDING_PAGE}"
    if not path.startswith("/"):
        path = "/" + path
    return tenant_path_prefix(slug) + path


def rewrite_for_slug(slug: str, path: str) -> RewriteDecision:
    if is_tenant_scoped(path, slug):
        return PassThrough("already-scoped")
    return RewriteTo(tenant_slug=slug, target_path=build_target_path(slug, path))


class TenantResolver:
    """
    Turns a parsed host and a path into a RewriteDecision.

    The directory is consulted for every well-formed host that carries no
    subdomain, at most once per call, bounded by lookup_timeout seconds.
    """

    def __init__(
        self,
        base_domain: str,
        directory: TenantDirectory,
        local_marker: str = "localhost",
        lookup_timeout: float = 2.0,
    ):
        self.base_domain = base_domain.lower()
        self.directory = directory
        self.local_marker = local_marker
        self.lookup_timeout = lookup_timeout

    async def resolve(self, host: ResolvedHost, path: str) -> RewriteDecision:
        if is_excluded_path(path):
            return PassThrough("excluded-path")

        hostname = host.hostname
        if not is_valid_hostname(hostname):
            return PassThrough("invalid-host")

        if host.subdomain:
            return rewrite_for_slug(host.subdomain, path)

        return await self._resolve_from_directory(hostname, path)

    async def _resolve_from_directory(self, hostname: str, path: str) -> RewriteDecision:
        try:
            tenant = await asyncio.wait_for(
                self.directory.find_by_host_candidate(hostname),
                timeout=self.lookup_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Tenant lookup timed out for host=%s after %.2fs", hostname, self.lookup_timeout)
            return PassThrough("lookup-failed")
        except TenantLookupError as e:
            logger.warning("Tenant lookup failed for host=%s: %s", hostname, e.message)
            return PassThrough("lookup-failed")
        except Exception:
            logger.warning("Unexpected tenant lookup error for host=%s", hostname, exc_info=True)
            return PassThrough("lookup-failed")

        if tenant is None or not tenant.slug:
            logger.debug("No tenant for host=%s", hostname)
            return PassThrough("not-found")

        logger.debug("Host=%s resolved by directory to tenant slug=%s", hostname, tenant.slug)
        return rewrite_for_slug(tenant.slug, path)
