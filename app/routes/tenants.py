"""
Tenant Routes

GET  /api/tenants/current       → tenant for the request host (used by HTTPTenantDirectory)
GET  /api/tenants/slug/{slug}   → tenant by slug
GET  /api/tenants/{tenant_id}   → tenant by id
PUT  /api/tenants/{tenant_id}   → settings update (members only)
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import get_current_user
from app.config import Settings
from app.database import get_db
from app.dependencies import get_request_host, get_settings, get_tenant_directory
from app.exceptions import AuthorizationError, TenantNotFoundError
from app.models.user import User
from app.schemas.tenant import TenantEnvelope, TenantRead, TenantUpdate
from app.services.tenant_directory import CachedTenantDirectory, TenantDirectory
from app.services.tenant_service import (
    find_tenant_by_host_candidate,
    get_tenant_by_id,
    get_tenant_by_slug,
    is_member,
    update_tenant_settings,
)
from app.utils.host import ResolvedHost

router = APIRouter(tags=["Tenants"])
logger = logging.getLogger(__name__)


@router.get("/current", response_model=TenantEnvelope)
async def get_current_host_tenant(
    host: ResolvedHost = Depends(get_request_host),
    db: AsyncSession = Depends(get_db),
) -> TenantEnvelope:
    """Resolve the tenant for the host this request was sent to."""
    if not host.hostname:
        raise TenantNotFoundError()

    if host.subdomain:
        tenant = await get_tenant_by_slug(host.subdomain, db)
    else:
        tenant = await find_tenant_by_host_candidate(host.hostname, db)

    if tenant is None:
        raise TenantNotFoundError(host.hostname)
    return TenantEnvelope(tenant=TenantRead.model_validate(tenant))


@router.get("/slug/{slug}", response_model=TenantEnvelope)
async def get_tenant_by_slug_route(slug: str, db: AsyncSession = Depends(get_db)) -> TenantEnvelope:
    tenant = await get_tenant_by_slug(slug, db)
    if tenant is None:
        raise TenantNotFoundError(slug)
    return TenantEnvelope(tenant=TenantRead.model_validate(tenant))


@router.get("/{tenant_id}", response_model=TenantEnvelope)
async def get_tenant_route(tenant_id: int, db: AsyncSession = Depends(get_db)) -> TenantEnvelope:
    tenant = await get_tenant_by_id(tenant_id, db)
    if tenant is None:
        raise TenantNotFoundError(tenant_id)
    return TenantEnvelope(tenant=TenantRead.model_validate(tenant))


@router.put("/{tenant_id}", response_model=TenantEnvelope)
async def update_tenant_route(
    tenant_id: int,
    payload: TenantUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    directory: TenantDirectory = Depends(get_tenant_directory),
) -> TenantEnvelope:
    """Update name, description or custom domain of a tenant the caller belongs to."""
    tenant = await get_tenant_by_id(tenant_id, db)
    if tenant is None:
        raise TenantNotFoundError(tenant_id)
    if not is_member(tenant, current_user):
        raise AuthorizationError("You are not a member of this tenant")

    previous_domain = tenant.custom_domain
    updates = payload.model_dump(include=payload.model_fields_set)
    tenant = await update_tenant_settings(tenant, updates, db, settings.base_domain)

    if isinstance(directory, CachedTenantDirectory):
        for domain in {previous_domain, tenant.custom_domain} - {None}:
            directory.invalidate(hostname=domain)
        directory.invalidate(slug=tenant.slug)

    return TenantEnvelope(tenant=TenantRead.model_validate(tenant))
