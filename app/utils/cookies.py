"""
Auth cookie helpers.

The cookie domain depends on where the user signed in:

    local development (acme.localhost)      → host-only cookie
    tenant custom domain (app.acme.com)     → host-only cookie
    platform subdomain (acme.<base_domain>) → shared by every <base_domain> host
"""

from starlette.responses import Response

from app.constants.auth import AUTH_COOKIE_MAX_AGE, AUTH_COOKIE_NAME


def resolve_cookie_domain(
    is_local_dev: bool,
    tenant_has_custom_domain: bool,
    hostname: str,
    base_domain: str,
) -> str | None:
    """Return the Domain attribute for the auth cookie, or None for a host-only cookie."""
    if is_local_dev or not hostname:
        # Browsers reject Domain=localhost
        return None
    if tenant_has_custom_domain:
        # Tenants on their own domain keep the session on the host that issued it
        return None

    base = base_domain.lower()
    if hostname == base or hostname.endswith("." + base):
        return base
    return None


def set_auth_cookie(response: Response, token: str, domain: str | None = None, secure: bool = False) -> Response:
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        max_age=AUTH_COOKIE_MAX_AGE,
        path="/",
        domain=domain,
        secure=secure,
        httponly=True,
        samesite="lax",
    )
    return response


def clear_auth_cookie(response: Response, domain: str | None = None) -> Response:
    response.delete_cookie(key=AUTH_COOKIE_NAME, path="/")
    if domain:
        response.delete_cookie(key=AUTH_COOKIE_NAME, path="/", domain=domain)
    return response
