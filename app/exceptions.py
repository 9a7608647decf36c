"""
Custom Exception Classes for the Tenant Platform

This module defines custom exceptions for consistent error responses
across the application. Every exception carries a machine-readable
ErrorCode that clients can key off.
"""

from enum import Enum
from typing import Any

from fastapi import status


class ErrorCode(str, Enum):
    """Machine-readable error codes returned in the error envelope."""

    AUTH_FAILED = "AUTH_FAILED"
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"
    AUTH_PERMISSION_DENIED = "AUTH_PERMISSION_DENIED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_TENANT_NOT_FOUND = "RESOURCE_TENANT_NOT_FOUND"
    RESOURCE_USER_NOT_FOUND = "RESOURCE_USER_NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    VALIDATION_DUPLICATE_RESOURCE = "VALIDATION_DUPLICATE_RESOURCE"
    TENANT_LOOKUP_FAILED = "TENANT_LOOKUP_FAILED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class PlatformError(Exception):
    """Base exception class for all platform exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


# ============================================================================
# Authentication & Authorization Exceptions
# ============================================================================


class AuthenticationError(PlatformError):
    """Raised when authentication fails"""

    def __init__(
        self,
        message: str = "Unauthorized",
        error_code: ErrorCode = ErrorCode.AUTH_FAILED,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code=error_code,
            details=details or {},
        )


class InvalidCredentialsError(AuthenticationError):
    """Raised when login credentials are invalid"""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message, error_code=ErrorCode.AUTH_INVALID_CREDENTIALS)


class InvalidTokenError(AuthenticationError):
    """Raised when the auth token is missing, expired or malformed"""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message=message, error_code=ErrorCode.AUTH_INVALID_TOKEN)


class AuthorizationError(PlatformError):
    """Raised when user lacks permission for an action"""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code=ErrorCode.AUTH_PERMISSION_DENIED,
        )


# ============================================================================
# Resource Not Found Exceptions
# ============================================================================


class ResourceNotFoundError(PlatformError):
    """Base class for resource not found errors"""

    def __init__(
        self,
        resource_type: str,
        resource_id: Any | None = None,
        error_code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND,
    ):
        message = f"{resource_type} not found"
        if resource_id is not None:
            message = f"{resource_type} '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_code=error_code,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class TenantNotFoundError(ResourceNotFoundError):
    """Raised when a tenant is not found"""

    def __init__(self, tenant_ref: Any | None = None):
        super().__init__(
            resource_type="Tenant",
            resource_id=tenant_ref,
            error_code=ErrorCode.RESOURCE_TENANT_NOT_FOUND,
        )


class UserNotFoundError(ResourceNotFoundError):
    """Raised when a user is not found"""

    def __init__(self, user_id: Any | None = None):
        super().__init__(
            resource_type="User",
            resource_id=user_id,
            error_code=ErrorCode.RESOURCE_USER_NOT_FOUND,
        )


# ============================================================================
# Validation & Business Logic Exceptions
# ============================================================================


class ValidationError(PlatformError):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=ErrorCode.VALIDATION_FAILED,
            details=error_details,
        )


class DuplicateResourceError(PlatformError):
    """Raised when a unique field (email, slug, custom domain) is already taken"""

    def __init__(self, resource_type: str, field: str, value: Any, message: str | None = None):
        super().__init__(
            message=message or f"{resource_type} with {field} '{value}' already exists",
            status_code=status.HTTP_409_CONFLICT,
            error_code=ErrorCode.VALIDATION_DUPLICATE_RESOURCE,
            details={"resource_type": resource_type, "field": field, "value": value},
        )


# ============================================================================
# Tenant Directory Exceptions
# ============================================================================


class TenantLookupError(PlatformError):
    """
    Raised by a tenant directory when a lookup could not be completed
    (network error, timeout, non-success response, malformed body).

    The resolver catches it and fails open; it never reaches a client.
    """

    def __init__(self, message: str = "Tenant lookup failed", hostname: str | None = None):
        details = {"hostname": hostname} if hostname else {}
        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code=ErrorCode.TENANT_LOOKUP_FAILED,
            details=details,
        )
