from pydantic import BaseModel, ConfigDict

from app.schemas.tenant import TenantRead


class SignupRequest(BaseModel):
    # Missing fields become empty strings so they fail the same validation
    # (and produce the same 400) as malformed ones
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    name: str = ""
    tenant_name: str = ""
    tenant_slug: str | None = None


class SigninRequest(BaseModel):
    email: str = ""
    password: str = ""


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str


class TenantRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str


class AuthResponse(BaseModel):
    message: str
    user: UserRead
    tenant: TenantRef


class MeResponse(BaseModel):
    user: UserRead
    tenants: list[TenantRead]
