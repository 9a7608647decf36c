"""
Host header parsing.

Turns the request headers into a bare, lower-cased hostname plus the tenant
subdomain it carries (if any). Behind a reverse proxy the forwarded host
wins over the direct Host header.

Examples:
    X-Forwarded-Host="Acme.Tenant.Example.Net, proxy.internal"  → "acme.tenant.example.net"
    Host="acme.localhost:3000"                                   → "acme.localhost", subdomain "acme"
    Host="www.tenant.example.net"                                → subdomain None
"""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Mapping
from dataclasses import dataclass

from app.constants.routing import FORWARDED_HOST_HEADER, FORWARDED_PROTO_HEADER

MAX_HOSTNAME_LENGTH = 253

_LABEL_RE = re.compile(r"^[a-z0-9_](?:[a-z0-9_-]{0,61}[a-z0-9_])?$")


@dataclass(frozen=True)
class ResolvedHost:
    """Request-scoped result of host parsing. Never persisted."""

    hostname: str
    subdomain: str | None = None
    forwarded_host: str | None = None
    forwarded_proto: str | None = None


def _first_value(value: str | None) -> str:
    # Proxies append to the header: "client-host, proxy1, proxy2"
    if not value:
        return ""
    return value.split(",")[0].strip()


def strip_port(host: str) -> str:
    """Remove a trailing :port. Bracketed IPv6 literals keep their brackets."""
    if host.startswith("["):
        end = host.find("]")
        return host[: end + 1] if end != -1 else host
    return host.split(":", 1)[0]


def normalize_hostname(host: str) -> str:
    hostname = strip_port(host.strip()).lower()
    if hostname.endswith(".") and not hostname.endswith(".."):
        hostname = hostname[:-1]
    return hostname


def is_valid_hostname(hostname: str) -> bool:
    """True for a syntactically valid DNS name or IP literal."""
    if not hostname or len(hostname) > MAX_HOSTNAME_LENGTH:
        return False
    if hostname.startswith("[") and hostname.endswith("]"):
        return is_ip_literal(hostname)
    return all(_LABEL_RE.match(label) for label in hostname.split("."))


def is_ip_literal(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname.strip("[]"))
    except ValueError:
        return False
    return True


def is_local_host(hostname: str, local_marker: str = "localhost") -> bool:
    return hostname == local_marker or hostname.endswith("." + local_marker)


def is_platform_root(hostname: str, base_domain: str) -> bool:
    """The bare base domain and its www variant belong to the platform itself."""
    base = base_domain.lower()
    return hostname in (base, "www." + base)


def extract_subdomain(hostname: str, base_domain: str, local_marker: str = "localhost") -> str | None:
    """
    Return the tenant subdomain carried by ``hostname``, or None.

    Local development hosts use the first label:
        "acme.localhost" → "acme", "localhost" → None
        "acme.dev.test" with local_marker "dev.test" → "acme"
    Production hosts strip the base domain suffix:
        "acme.tenant.example.net" → "acme"
        "tenant.example.net", "www.tenant.example.net" → None
    """
    if not hostname:
        return None

    if is_local_host(hostname, local_marker):
        if hostname == local_marker:
            return None
        # The marker may itself be dotted ("dev.test"), so strip it as a suffix
        prefix = hostname[: -(len(local_marker) + 1)]
        return prefix.split(".")[0] or None

    base = base_domain.lower()
    if is_platform_root(hostname, base):
        return None
    if hostname.endswith("." + base):
        return hostname[: -(len(base) + 1)] or None
    return None


def parse_host(
    headers: Mapping[str, str],
    base_domain: str,
    local_marker: str = "localhost",
) -> ResolvedHost:
    """
    Build a ResolvedHost from request headers.

    X-Forwarded-Host takes precedence over Host when present and non-empty.
    Header names are matched case-insensitively. Missing headers give an
    empty hostname; this function never raises.
    """
    lowered = {key.lower(): value for key, value in headers.items()}

    forwarded_host = lowered.get(FORWARDED_HOST_HEADER) or None
    forwarded_proto = _first_value(lowered.get(FORWARDED_PROTO_HEADER)) or None

    raw_host = _first_value(forwarded_host) or _first_value(lowered.get("host"))
    hostname = normalize_hostname(raw_host)

    return ResolvedHost(
        hostname=hostname,
        subdomain=extract_subdomain(hostname, base_domain, local_marker),
        forwarded_host=forwarded_host,
        forwarded_proto=forwarded_proto,
    )
