"""
Tests for custom exception classes and the global exception handlers

Tests exception initialization, messages, status codes, error codes and the
error envelope returned to clients.
"""

from fastapi import FastAPI, HTTPException, status
from fastapi.testclient import TestClient
from pydantic import BaseModel

from app.exception_handlers import get_error_type, get_http_error_code, register_exception_handlers
from app.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DuplicateResourceError,
    ErrorCode,
    InvalidCredentialsError,
    InvalidTokenError,
    PlatformError,
    ResourceNotFoundError,
    TenantLookupError,
    TenantNotFoundError,
    UserNotFoundError,
    ValidationError,
)


class TestPlatformError:
    """Test base PlatformError class"""

    def test_defaults(self):
        exc = PlatformError("Test error")
        assert str(exc) == "Test error"
        assert exc.message == "Test error"
        assert exc.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert exc.error_code == ErrorCode.INTERNAL_ERROR
        assert exc.details == {}

    def test_with_details(self):
        exc = PlatformError("Test error", status_code=status.HTTP_400_BAD_REQUEST, details={"key": "value"})
        assert exc.status_code == status.HTTP_400_BAD_REQUEST
        assert exc.details == {"key": "value"}


class TestAuthExceptions:
    """Test authentication-related exceptions"""

    def test_authentication_error(self):
        exc = AuthenticationError()
        assert exc.status_code == status.HTTP_401_UNAUTHORIZED
        assert exc.message == "Unauthorized"

    def test_invalid_credentials(self):
        exc = InvalidCredentialsError()
        assert exc.status_code == status.HTTP_401_UNAUTHORIZED
        assert exc.error_code == ErrorCode.AUTH_INVALID_CREDENTIALS
        assert isinstance(exc, AuthenticationError)

    def test_invalid_token_custom_message(self):
        exc = InvalidTokenError("Token has expired")
        assert exc.message == "Token has expired"
        assert exc.error_code == ErrorCode.AUTH_INVALID_TOKEN

    def test_authorization_error(self):
        exc = AuthorizationError()
        assert exc.status_code == status.HTTP_403_FORBIDDEN
        assert exc.error_code == ErrorCode.AUTH_PERMISSION_DENIED


class TestResourceExceptions:
    def test_not_found_message(self):
        assert ResourceNotFoundError("Thing").message == "Thing not found"
        assert ResourceNotFoundError("Thing", 3).message == "Thing '3' not found"

    def test_tenant_not_found(self):
        exc = TenantNotFoundError("acme")
        assert exc.status_code == status.HTTP_404_NOT_FOUND
        assert exc.error_code == ErrorCode.RESOURCE_TENANT_NOT_FOUND
        assert exc.details == {"resource_type": "Tenant", "resource_id": "acme"}

    def test_user_not_found(self):
        assert UserNotFoundError(5).error_code == ErrorCode.RESOURCE_USER_NOT_FOUND


class TestValidationExceptions:
    def test_validation_error_field(self):
        exc = ValidationError("Invalid email", field="email")
        assert exc.status_code == status.HTTP_400_BAD_REQUEST
        assert exc.details == {"field": "email"}

    def test_duplicate_resource(self):
        exc = DuplicateResourceError("Tenant", "slug", "acme")
        assert exc.status_code == status.HTTP_409_CONFLICT
        assert exc.message == "Tenant with slug 'acme' already exists"

    def test_duplicate_resource_custom_message(self):
        assert DuplicateResourceError("User", "email", "a@b.co", message="Email already registered").message == (
            "Email already registered"
        )

    def test_tenant_lookup_error(self):
        exc = TenantLookupError("timed out", hostname="custom.biz")
        assert exc.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert exc.details == {"hostname": "custom.biz"}


def build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    class Item(BaseModel):
        count: int

    @app.get("/tenant")
    async def missing_tenant():
        raise TenantNotFoundError("acme")

    @app.get("/http")
    async def http_error():
        raise HTTPException(status_code=403, detail="Nope")

    @app.post("/items")
    async def create_item(item: Item):
        return item

    @app.get("/crash")
    async def crash():
        raise RuntimeError("database password is hunter2")

    return app


class TestExceptionHandlers:
    """Test the error envelope"""

    def test_platform_error_envelope(self):
        response = TestClient(build_app()).get("/tenant")
        assert response.status_code == 404
        assert response.json() == {
            "error": {
                "status_code": 404,
                "message": "Tenant 'acme' not found",
                "type": "Not Found",
                "error_code": "RESOURCE_TENANT_NOT_FOUND",
                "details": {"resource_type": "Tenant", "resource_id": "acme"},
                "path": "/tenant",
            }
        }

    def test_http_exception_envelope(self):
        error = TestClient(build_app()).get("/http").json()["error"]
        assert error["message"] == "Nope"
        assert error["error_code"] == "AUTH_PERMISSION_DENIED"

    def test_unknown_route_is_404_envelope(self):
        error = TestClient(build_app()).get("/nowhere").json()["error"]
        assert error["status_code"] == 404
        assert error["error_code"] == "RESOURCE_NOT_FOUND"

    def test_request_validation_envelope(self):
        response = TestClient(build_app()).post("/items", json={"count": "many"})
        assert response.status_code == 422
        errors = response.json()["error"]["details"]["validation_errors"]
        assert errors[0]["field"] == "count"

    def test_unhandled_exception_hides_details(self):
        response = TestClient(build_app(), raise_server_exceptions=False).get("/crash")
        assert response.status_code == 500
        assert "hunter2" not in response.text
        assert response.json()["error"]["error_code"] == "INTERNAL_ERROR"

    def test_error_type_and_code_maps(self):
        assert get_error_type(409) == "Conflict"
        assert get_error_type(418) == "Error"
        assert get_http_error_code(401) == "AUTH_FAILED"
        assert get_http_error_code(418) == "UNKNOWN_ERROR"
