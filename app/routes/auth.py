"""
Account Routes

POST /api/auth/signup   → create user + tenant, set auth cookie
POST /api/auth/signin   → check credentials, set auth cookie
GET  /api/auth/me       → current user and their tenants
POST /api/auth/logout   → clear auth cookie
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import create_access_token, get_current_user
from app.config import Settings
from app.database import get_db
from app.dependencies import get_request_host, get_settings
from app.models.tenant import Tenant
from app.models.user import User
from app.schemas.auth import AuthResponse, MeResponse, SigninRequest, SignupRequest, TenantRef, UserRead
from app.schemas.tenant import TenantRead
from app.services.auth_service import authenticate_user, register_user
from app.utils.cookies import clear_auth_cookie, resolve_cookie_domain, set_auth_cookie
from app.utils.host import ResolvedHost, is_local_host

# Initialize logger
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


def _credential_response(
    message: str,
    user: User,
    tenant: Tenant,
    host: ResolvedHost,
    settings: Settings,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    body = AuthResponse(
        message=message,
        user=UserRead.model_validate(user),
        tenant=TenantRef.model_validate(tenant),
    )
    response = JSONResponse(content=body.model_dump(), status_code=status_code)

    is_local_dev = is_local_host(host.hostname, settings.local_marker)
    domain = resolve_cookie_domain(is_local_dev, bool(tenant.custom_domain), host.hostname, settings.base_domain)
    token = create_access_token(user_id=user.id, tenant_id=tenant.id)
    return set_auth_cookie(response, token, domain=domain, secure=settings.is_production)


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db),
    host: ResolvedHost = Depends(get_request_host),
    settings: Settings = Depends(get_settings),
):
    user, tenant = await register_user(payload, db)
    return _credential_response("Account created", user, tenant, host, settings, status.HTTP_201_CREATED)


@router.post("/signin", response_model=AuthResponse)
async def signin(
    payload: SigninRequest,
    db: AsyncSession = Depends(get_db),
    host: ResolvedHost = Depends(get_request_host),
    settings: Settings = Depends(get_settings),
):
    user, tenant = await authenticate_user(payload.email, payload.password, db)
    logger.info("User signed in: id=%d tenant=%s", user.id, tenant.slug)
    return _credential_response("Signed in", user, tenant, host, settings)


@router.get("/me", response_model=MeResponse)
async def me(current_user: User = Depends(get_current_user)) -> MeResponse:
    return MeResponse(
        user=UserRead.model_validate(current_user),
        tenants=[TenantRead.model_validate(t) for t in sorted(current_user.tenants, key=lambda t: t.id)],
    )


@router.post("/logout")
async def logout(
    host: ResolvedHost = Depends(get_request_host),
    settings: Settings = Depends(get_settings),
):
    response = JSONResponse(content={"message": "Logged out"})
    is_local_dev = is_local_host(host.hostname, settings.local_marker)
    domain = resolve_cookie_domain(is_local_dev, False, host.hostname, settings.base_domain)
    return clear_auth_cookie(response, domain=domain)
