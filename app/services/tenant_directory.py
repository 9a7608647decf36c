"""
Tenant Directory clients.

The resolver looks tenants up through a TenantDirectory and does not care
where the answer comes from:

    SQLTenantDirectory     in-process, one short-lived session per lookup
    HTTPTenantDirectory    internal GET /api/tenants/current over httpx
    CachedTenantDirectory  bounded TTL cache in front of either of them

Every implementation returns a TenantRecord or None for "not found", and
raises TenantLookupError when the lookup itself could not be completed.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.exceptions import TenantLookupError
from app.services import tenant_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantRecord:
    """Directory view of a tenant, independent of the ORM session."""

    id: int
    slug: str
    name: str = ""
    custom_domain: str | None = None
    description: str | None = None

    @classmethod
    def from_model(cls, tenant: Any) -> TenantRecord:
        return cls(
            id=tenant.id,
            slug=tenant.slug,
            name=tenant.name,
            custom_domain=tenant.custom_domain,
            description=tenant.description,
        )

    @classmethod
    def from_payload(cls, payload: Any) -> TenantRecord:
        """Parse the {"tenant": {...}} body returned by the tenant API."""
        if not isinstance(payload, dict) or not isinstance(payload.get("tenant"), dict):
            raise ValueError("response has no 'tenant' object")
        data = payload["tenant"]
        slug = data.get("slug")
        if not isinstance(slug, str):
            raise ValueError("tenant has no slug")
        return cls(
            id=data.get("id"),
            slug=slug,
            name=data.get("name") or "",
            custom_domain=data.get("custom_domain"),
            description=data.get("description"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class TenantDirectory(ABC):
    """Lookup interface consumed by the tenant resolver."""

    @abstractmethod
    async def find_by_slug(self, slug: str) -> TenantRecord | None:
        """Return the tenant with this slug, or None."""

    @abstractmethod
    async def find_by_host_candidate(self, hostname: str) -> TenantRecord | None:
        """Return the tenant for a custom domain (or <slug>.<domain> host), or None."""

    async def aclose(self) -> None:
        """Release resources held by the directory."""


class SQLTenantDirectory(TenantDirectory):
    """Queries the tenant tables in-process through an injected session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def find_by_slug(self, slug: str) -> TenantRecord | None:
        try:
            async with self._session_factory() as db:
                tenant = await tenant_service.get_tenant_by_slug(slug, db)
        except SQLAlchemyError as e:
            raise TenantLookupError(f"Database lookup failed: {e}") from e
        return TenantRecord.from_model(tenant) if tenant else None

    async def find_by_host_candidate(self, hostname: str) -> TenantRecord | None:
        try:
            async with self._session_factory() as db:
                tenant = await tenant_service.find_tenant_by_host_candidate(hostname, db)
        except SQLAlchemyError as e:
            raise TenantLookupError(f"Database lookup failed: {e}", hostname=hostname) from e
        return TenantRecord.from_model(tenant) if tenant else None


class HTTPTenantDirectory(TenantDirectory):
    """
    Calls the platform's own tenant API.

    The looked-up hostname is sent as Host and X-Forwarded-Host so the
    endpoint resolves it exactly as it would a browser request.
    """

    CURRENT_PATH = "/api/tenants/current"
    SLUG_PATH = "/api/tenants/slug/{slug}"

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 2.0,
        forwarded_proto: str = "https",
        client: httpx.AsyncClient | None = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds)
        self._base_url = base_url.rstrip("/")
        self._forwarded_proto = forwarded_proto

    async def _get(self, url: str, headers: dict[str, str] | None = None, hostname: str | None = None):
        try:
            response = await self._client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            raise TenantLookupError("Tenant lookup timed out", hostname=hostname) from e
        except httpx.HTTPError as e:
            raise TenantLookupError(f"Tenant lookup request error: {e}", hostname=hostname) from e

        if response.status_code == 404:
            return None
        if not response.is_success:
            raise TenantLookupError(
                f"Tenant lookup returned HTTP {response.status_code}", hostname=hostname
            )
        try:
            return TenantRecord.from_payload(response.json())
        except ValueError as e:
            # json.JSONDecodeError is a ValueError too
            raise TenantLookupError(f"Malformed tenant lookup response: {e}", hostname=hostname) from e

    async def find_by_slug(self, slug: str) -> TenantRecord | None:
        return await self._get(self._base_url + self.SLUG_PATH.format(slug=slug))

    async def find_by_host_candidate(self, hostname: str) -> TenantRecord | None:
        headers = {
            "host": hostname,
            "x-forwarded-host": hostname,
            "x-forwarded-proto": self._forwarded_proto,
        }
        return await self._get(self._base_url + self.CURRENT_PATH, headers=headers, hostname=hostname)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class CachedTenantDirectory(TenantDirectory):
    """
    Short-lived cache in front of another directory.

    Hits and "not found" answers are kept for ttl_seconds, so a freshly
    changed custom domain is masked for at most that long (less when the
    settings route invalidates it). Failures are never cached.
    """

    def __init__(
        self,
        inner: TenantDirectory,
        ttl_seconds: float,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.inner = inner
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, tuple[float, TenantRecord | None]] = {}

    def _get(self, key: str) -> tuple[bool, TenantRecord | None]:
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        expires_at, record = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return False, None
        return True, record

    def _set(self, key: str, record: TenantRecord | None) -> None:
        if len(self._entries) >= self.max_entries:
            self._purge()
        self._entries[key] = (self._clock() + self.ttl_seconds, record)

    def _purge(self) -> None:
        now = self._clock()
        for key in [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]:
            del self._entries[key]
        # Still full: drop the oldest insertions
        while len(self._entries) >= self.max_entries:
            del self._entries[next(iter(self._entries))]

    async def find_by_slug(self, slug: str) -> TenantRecord | None:
        key = f"slug:{slug.lower()}"
        hit, record = self._get(key)
        if hit:
            return record
        record = await self.inner.find_by_slug(slug)
        self._set(key, record)
        return record

    async def find_by_host_candidate(self, hostname: str) -> TenantRecord | None:
        key = f"host:{hostname.lower()}"
        hit, record = self._get(key)
        if hit:
            logger.debug("Tenant cache hit for host=%s", hostname)
            return record
        record = await self.inner.find_by_host_candidate(hostname)
        self._set(key, record)
        return record

    def invalidate(self, *, hostname: str | None = None, slug: str | None = None) -> None:
        if hostname:
            self._entries.pop(f"host:{hostname.lower()}", None)
        if slug:
            self._entries.pop(f"slug:{slug.lower()}", None)

    async def aclose(self) -> None:
        await self.inner.aclose()


def build_tenant_directory(settings, session_factory: async_sessionmaker[AsyncSession]) -> TenantDirectory:
    """Construct the directory selected by settings.tenant_directory_mode."""
    if settings.tenant_directory_mode == "http":
        directory: TenantDirectory = HTTPTenantDirectory(
            settings.tenant_lookup_base_url,
            timeout_seconds=settings.tenant_lookup_timeout_seconds,
        )
    elif settings.tenant_directory_mode == "local":
        directory = SQLTenantDirectory(session_factory)
    else:
        raise ValueError(f"Unknown tenant_directory_mode: {settings.tenant_directory_mode!r}")

    if settings.tenant_cache_ttl_seconds > 0:
        directory = CachedTenantDirectory(
            directory,
            ttl_seconds=settings.tenant_cache_ttl_seconds,
            max_entries=settings.tenant_cache_max_entries,
        )
    logger.info(
        "Tenant directory: mode=%s cache_ttl=%ss",
        settings.tenant_directory_mode,
        settings.tenant_cache_ttl_seconds,
    )
    return directory
