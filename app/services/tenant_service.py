"""
Tenant Service

Async data access for Tenant entities. All functions accept an injected
AsyncSession.
"""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DuplicateResourceError, ValidationError
from app.models.tenant import Tenant
from app.models.user import User
from app.models.user_tenants import user_tenants
from app.utils.validation import validate_domain, validate_name

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "description", "custom_domain")


async def create_tenant(
    name: str,
    slug: str,
    db: AsyncSession,
    owner: User | None = None,
    description: str | None = None,
    commit: bool = True,
) -> Tenant:
    """
    Create a new tenant, optionally linking its owning user.

    With commit=False the tenant is only flushed so the caller can commit it
    together with other rows in one transaction.
    """
    tenant = Tenant(name=name.strip(), slug=slug, description=description)
    if owner is not None:
        tenant.users.append(owner)
    db.add(tenant)
    if commit:
        await db.commit()
        await db.refresh(tenant)
        logger.info("Tenant created: id=%d slug=%s", tenant.id, tenant.slug)
    else:
        await db.flush()
    return tenant


async def get_tenant_by_id(tenant_id: int, db: AsyncSession) -> Tenant | None:
    """Return a Tenant by primary key, or None if not found."""
    result = await db.execute(select(Tenant).where(Tenant.id == tenant_id))
    return result.scalars().first()


async def get_tenant_by_slug(slug: str, db: AsyncSession) -> Tenant | None:
    """Return a Tenant by slug, or None if not found."""
    result = await db.execute(select(Tenant).where(Tenant.slug == slug.lower()))
    return result.scalars().first()


async def get_tenant_by_domain(domain: str, db: AsyncSession) -> Tenant | None:
    """Return a Tenant by custom domain, or None if not found."""
    result = await db.execute(select(Tenant).where(Tenant.custom_domain == domain.lower()))
    return result.scalars().first()


async def find_tenant_by_host_candidate(candidate: str, db: AsyncSession) -> Tenant | None:
    """
    Resolve a hostname or domain to a tenant.

    The custom domain match is tried first. Failing that, a candidate with
    more than two labels ("acme.example.com") is treated as <slug>.<domain>
    and looked up by its first label.
    """
    candidate = candidate.lower()
    tenant = await get_tenant_by_domain(candidate, db)
    if tenant is not None:
        return tenant

    labels = candidate.split(".")
    if len(labels) > 2 and labels[0]:
        return await get_tenant_by_slug(labels[0], db)
    return None


async def list_tenant_members(tenant_id: int, db: AsyncSession) -> list[User]:
    result = await db.execute(
        select(User)
        .join(user_tenants, user_tenants.c.user_id == User.id)
        .where(user_tenants.c.tenant_id == tenant_id)
        .order_by(User.id)
    )
    return list(result.scalars().all())


def is_member(tenant: Tenant, user: User) -> bool:
    # User.tenants is eagerly loaded; Tenant.users is not
    return any(membership.id == tenant.id for membership in user.tenants)


async def _check_custom_domain(domain: str, tenant: Tenant, db: AsyncSession, base_domain: str) -> None:
    # A valid domain always contains a dot, so it can never collide with a slug
    if not validate_domain(domain):
        raise ValidationError("Invalid domain format", field="custom_domain")

    base = base_domain.lower()
    if domain == base or domain.endswith("." + base):
        raise ValidationError("Custom domain cannot be on the platform domain", field="custom_domain")

    existing = await get_tenant_by_domain(domain, db)
    if existing is not None and existing.id != tenant.id:
        raise DuplicateResourceError("Tenant", "custom_domain", domain, message="Domain already in use")


async def update_tenant_settings(
    tenant: Tenant,
    updates: dict[str, Any],
    db: AsyncSession,
    base_domain: str,
) -> Tenant:
    """
    Apply a partial settings update (name, description, custom_domain).

    Only keys present in `updates` are changed. An empty or None
    custom_domain clears it.
    """
    changes = {field: value for field, value in updates.items() if field in UPDATABLE_FIELDS}

    if "name" in changes:
        name = changes["name"]
        if name is None or not validate_name(name):
            raise ValidationError("Tenant name too short", field="name")
        changes["name"] = name.strip()

    if "custom_domain" in changes:
        domain = (changes["custom_domain"] or "").strip().lower() or None
        if domain is not None:
            await _check_custom_domain(domain, tenant, db, base_domain)
        changes["custom_domain"] = domain

    for field, value in changes.items():
        setattr(tenant, field, value)

    try:
        await db.commit()
    except IntegrityError:
        # A concurrent update claimed the domain between the check and the commit
        await db.rollback()
        raise DuplicateResourceError(
            "Tenant", "custom_domain", changes.get("custom_domain"), message="Domain already in use"
        )
    await db.refresh(tenant)
    logger.info("Tenant updated: id=%d slug=%s fields=%s", tenant.id, tenant.slug, sorted(changes))
    return tenant
