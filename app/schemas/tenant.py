from pydantic import BaseModel, ConfigDict, Field


class TenantRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    custom_domain: str | None = None
    description: str | None = None


class TenantEnvelope(BaseModel):
    tenant: TenantRead


class TenantUpdate(BaseModel):
    """Partial settings update. Fields left out are not touched."""

    name: str | None = Field(None, max_length=200)
    description: str | None = None
    custom_domain: str | None = Field(None, max_length=253, description="Empty string clears the domain.")


class TenantMember(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
