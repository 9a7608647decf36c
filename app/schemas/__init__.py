from .auth import AuthResponse, MeResponse, SigninRequest, SignupRequest, TenantRef, UserRead
from .tenant import TenantEnvelope, TenantMember, TenantRead, TenantUpdate

# Define the public API of this module
__all__ = [
    "AuthResponse",
    "MeResponse",
    "SigninRequest",
    "SignupRequest",
    "TenantRef",
    "UserRead",
    "TenantEnvelope",
    "TenantMember",
    "TenantRead",
    "TenantUpdate",
]
