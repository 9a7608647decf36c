from .tenant import Tenant
from .user import User
from .user_tenants import user_tenants

__all__ = [
    "Tenant",
    "User",
    "user_tenants",
]
