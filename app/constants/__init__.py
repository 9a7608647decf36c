"""Constants package for the tenant platform."""

from .auth import ACCESS_TOKEN_EXPIRE_DAYS, ALGORITHM, AUTH_COOKIE_MAX_AGE, AUTH_COOKIE_NAME, SECRET_KEY
from .routing import (
    DEBUG_QUERY_PARAM,
    DEBUG_QUERY_VALUE,
    EXCLUDED_PATH_PREFIXES,
    FORWARDED_HOST_HEADER,
    FORWARDED_PROTO_HEADER,
    TENANT_LANDING_PAGE,
    TENANT_PATH_PREFIX,
)

__all__ = [
    # Auth constants
    "SECRET_KEY",
    "ALGORITHM",
    "ACCESS_TOKEN_EXPIRE_DAYS",
    "AUTH_COOKIE_NAME",
    "AUTH_COOKIE_MAX_AGE",
    # Routing constants
    "EXCLUDED_PATH_PREFIXES",
    "TENANT_PATH_PREFIX",
    "TENANT_LANDING_PAGE",
    "DEBUG_QUERY_PARAM",
    "DEBUG_QUERY_VALUE",
    "FORWARDED_HOST_HEADER",
    "FORWARDED_PROTO_HEADER",
]
