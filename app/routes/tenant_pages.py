"""
Tenant-scoped routes.

Everything under /tenant/{slug}/ is reached either directly or through the
host rewrite (acme.<base_domain>/settings → /tenant/acme/settings). The
slug in the path is the only thing these handlers scope their data by.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import get_current_user
from app.config import Settings
from app.database import get_db
from app.dependencies import get_settings
from app.exceptions import AuthorizationError, TenantNotFoundError
from app.models.tenant import Tenant
from app.models.user import User
from app.schemas.tenant import TenantMember, TenantRead
from app.services.tenant_service import get_tenant_by_slug, is_member, list_tenant_members

router = APIRouter(tags=["Tenant pages"])


async def get_path_tenant(slug: str, db: AsyncSession = Depends(get_db)) -> Tenant:
    tenant = await get_tenant_by_slug(slug, db)
    if tenant is None:
        raise TenantNotFoundError(slug)
    return tenant


async def get_member_tenant(
    tenant: Tenant = Depends(get_path_tenant),
    current_user: User = Depends(get_current_user),
) -> Tenant:
    if not is_member(tenant, current_user):
        raise AuthorizationError("You are not a member of this tenant")
    return tenant


def tenant_urls(tenant: Tenant, settings: Settings) -> dict[str, str | None]:
    return {
        "subdomain": f"{tenant.slug}.{settings.base_domain}",
        "custom_domain": tenant.custom_domain,
    }


@router.get("/dashboard")
async def dashboard(
    request: Request,
    tenant: Tenant = Depends(get_path_tenant),
    settings: Settings = Depends(get_settings),
):
    return {
        "tenant": TenantRead.model_validate(tenant).model_dump(),
        "urls": tenant_urls(tenant, settings),
        # Path the client actually requested, before any host rewrite
        "requested_path": getattr(request.state, "original_path", request.url.path),
    }


@router.get("/settings")
async def tenant_settings(
    tenant: Tenant = Depends(get_member_tenant),
    settings: Settings = Depends(get_settings),
):
    return {
        "tenant": TenantRead.model_validate(tenant).model_dump(),
        "urls": tenant_urls(tenant, settings),
    }


@router.get("/members")
async def members(
    tenant: Tenant = Depends(get_member_tenant),
    db: AsyncSession = Depends(get_db),
):
    users = await list_tenant_members(tenant.id, db)
    return {
        "tenant": {"id": tenant.id, "slug": tenant.slug},
        "members": [TenantMember.model_validate(u).model_dump() for u in users],
    }
