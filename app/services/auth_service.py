"""
Account service: signup and signin.

Both flows follow the same order: validate input, touch the database, and
leave credential issuing to the route.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.auth import hash_password, verify_password
from app.exceptions import DuplicateResourceError, InvalidCredentialsError, ValidationError
from app.models.tenant import Tenant
from app.models.user import User
from app.schemas.auth import SignupRequest
from app.services.tenant_service import create_tenant, get_tenant_by_slug
from app.utils.slugify import slugify
from app.utils.validation import validate_email, validate_name, validate_password, validate_slug

logger = logging.getLogger(__name__)


async def get_user_by_email(email: str, db: AsyncSession) -> User | None:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalars().first()


def validate_signup(payload: SignupRequest) -> str:
    """Check a signup request and return the tenant slug to use."""
    if not payload.email or not validate_email(payload.email.strip()):
        raise ValidationError("Invalid email", field="email")
    if not payload.password or not validate_password(payload.password):
        raise ValidationError(
            "Password must be at least 8 characters with an uppercase letter, a lowercase letter and a number",
            field="password",
        )
    if payload.password != payload.confirm_password:
        raise ValidationError("Passwords do not match", field="confirm_password")
    if not validate_name(payload.name):
        raise ValidationError("Name too short", field="name")
    if not validate_name(payload.tenant_name):
        raise ValidationError("Tenant name too short", field="tenant_name")

    slug = payload.tenant_slug.strip() if payload.tenant_slug else slugify(payload.tenant_name)
    if not validate_slug(slug):
        raise ValidationError("Invalid tenant slug", field="tenant_slug")
    return slug


async def register_user(payload: SignupRequest, db: AsyncSession) -> tuple[User, Tenant]:
    """
    Create a user and their first tenant in a single transaction.

    Raises:
        ValidationError: If any field is invalid.
        DuplicateResourceError: If the email or the tenant slug is taken.
    """
    slug = validate_signup(payload)
    email = payload.email.strip().lower()

    if await get_user_by_email(email, db):
        raise DuplicateResourceError("User", "email", email, message="Email already registered")
    if await get_tenant_by_slug(slug, db):
        raise DuplicateResourceError("Tenant", "slug", slug, message="Tenant slug taken")

    user = User(email=email, name=payload.name.strip(), hashed_password=hash_password(payload.password))
    db.add(user)
    try:
        tenant = await create_tenant(payload.tenant_name, slug, db, owner=user, commit=False)
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent signup for the same email or slug
        await db.rollback()
        raise DuplicateResourceError("Tenant", "slug", slug, message="Email or tenant slug already taken")

    logger.info("User registered: id=%d email=%s tenant=%s", user.id, user.email, tenant.slug)
    return user, tenant


async def authenticate_user(email: str, password: str, db: AsyncSession) -> tuple[User, Tenant]:
    """
    Check credentials and pick the tenant to sign into (the user's first).

    Raises:
        ValidationError: If email or password is missing.
        InvalidCredentialsError: On unknown email, wrong password, or no tenant.
    """
    if not email or not password:
        raise ValidationError("Email and password required")

    user = await get_user_by_email(email, db)
    if user is None or not verify_password(password, user.hashed_password):
        logger.warning("Failed sign-in for email=%s", email)
        raise InvalidCredentialsError()

    if not user.tenants:
        raise InvalidCredentialsError("No tenant found")

    tenant = min(user.tenants, key=lambda t: t.id)
    return user, tenant
