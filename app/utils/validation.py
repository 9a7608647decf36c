"""
Input validation helpers shared by the account and tenant routes.
"""

import re

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# At least 8 characters with one lowercase, one uppercase and one digit
PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)[a-zA-Z\d@$!%*?&]{8,}$")

# Lowercase letters, digits and single hyphens between them
SLUG_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")
SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 50

DOMAIN_RE = re.compile(
    r"^(?:[a-z0-9](?:[a-z0-9-]*[a-z0-9])?\.)+[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$",
    re.IGNORECASE,
)
DOMAIN_MAX_LENGTH = 253

MIN_NAME_LENGTH = 2


def validate_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def validate_password(password: str) -> bool:
    return bool(PASSWORD_RE.match(password))


def validate_slug(slug: str) -> bool:
    return bool(SLUG_RE.match(slug)) and SLUG_MIN_LENGTH <= len(slug) <= SLUG_MAX_LENGTH


def validate_domain(domain: str) -> bool:
    return len(domain) <= DOMAIN_MAX_LENGTH and bool(DOMAIN_RE.match(domain))


def validate_name(name: str) -> bool:
    return len(name.strip()) >= MIN_NAME_LENGTH
