"""
Routing Constants

Path prefixes shared by the host-based rewriting layer and the
tenant-scoped routers.
"""

# Paths starting with any of these are never rewritten. Rewriting /api would
# make the resolver intercept its own lookup calls.
EXCLUDED_PATH_PREFIXES: tuple[str, ...] = ("/api", "/_next", "/static", "/favicon.ico")

# Downstream handlers scope data access off /tenant/<slug>/
TENANT_PATH_PREFIX = "/tenant"
TENANT_LANDING_PAGE = "dashboard"

# ?__debug=1 returns the resolution diagnostics instead of routing
DEBUG_QUERY_PARAM = "__debug"
DEBUG_QUERY_VALUE = "1"

FORWARDED_HOST_HEADER = "x-forwarded-host"
FORWARDED_PROTO_HEADER = "x-forwarded-proto"
