"""
Tests for middleware modules

TenantRewriteMiddleware is mounted on a bare FastAPI app with an in-memory
directory, so these tests need no database.
"""

import json
import logging

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from utils.mocks import FakeTenantDirectory, failing_directory, record

from app.middleware.logging import (
    JsonLogFormatter,
    StructuredLoggingMiddleware,
    request_id_var,
    setup_structured_logging,
)
from app.middleware.tenant import TenantRewriteMiddleware, apply_rewrite
from app.services.tenant_resolver import TenantResolver

BASE = "tenant.example.net"


def build_app(directory=None, enable_debug=True, resolver=None):
    app = FastAPI()

    @app.api_route("/{full_path:path}", methods=["GET", "POST"])
    async def echo(full_path: str, request: Request):
        return {
            "path": request.url.path,
            "query": str(request.url.query),
            "method": request.method,
            "body": (await request.body()).decode(),
            "tenant_slug": request.state.tenant_slug,
            "original_path": request.state.original_path,
        }

    resolver = resolver or TenantResolver(BASE, directory or FakeTenantDirectory())
    app.add_middleware(TenantRewriteMiddleware, resolver=resolver, enable_debug=enable_debug)
    return app


class TestTenantRewriteMiddleware:
    """Test the server-side path rewrite"""

    def test_subdomain_root_is_rewritten(self):
        client = TestClient(build_app())
        response = client.get("/", headers={"host": "acme.tenant.example.net"})

        assert response.status_code == 200
        data = response.json()
        assert data["path"] == "/tenant/acme/dashboard"
        assert data["tenant_slug"] == "acme"
        assert data["original_path"] == "/"

    def test_query_method_and_body_are_preserved(self):
        client = TestClient(build_app())
        response = client.post(
            "/settings?tab=domains&x=1",
            content=b"payload",
            headers={"host": "acme.localhost:3000"},
        )

        data = response.json()
        assert data["path"] == "/tenant/acme/settings"
        assert data["query"] == "tab=domains&x=1"
        assert data["method"] == "POST"
        assert data["body"] == "payload"

    def test_no_redirect_is_issued(self):
        client = TestClient(build_app(), follow_redirects=False)
        response = client.get("/members", headers={"host": "acme.tenant.example.net"})
        assert response.status_code == 200
        assert response.history == []

    def test_platform_root_is_untouched(self):
        client = TestClient(build_app())
        data = client.get("/pricing", headers={"host": "www.tenant.example.net"}).json()
        assert data["path"] == "/pricing"
        assert data["tenant_slug"] is None

    def test_api_is_never_rewritten(self):
        client = TestClient(build_app())
        data = client.get("/api/tenants/current", headers={"host": "acme.tenant.example.net"}).json()
        assert data["path"] == "/api/tenants/current"

    def test_api_lookalike_prefix_is_never_rewritten(self):
        client = TestClient(build_app())
        data = client.get("/api-docs", headers={"host": "acme.tenant.example.net"}).json()
        assert data["path"] == "/api-docs"
        assert data["tenant_slug"] is None

    def test_base_domain_follows_directory(self):
        directory = FakeTenantDirectory({BASE: record("acme")})
        client = TestClient(build_app(directory))
        data = client.get("/", headers={"host": BASE}).json()
        assert data["path"] == "/tenant/acme/dashboard"
        assert directory.host_calls == [BASE]

    def test_forwarded_host_is_used(self):
        client = TestClient(build_app())
        headers = {"host": "10.0.0.5:8000", "x-forwarded-host": "beta.tenant.example.net"}
        data = client.get("/", headers=headers).json()
        assert data["path"] == "/tenant/beta/dashboard"

    def test_custom_domain_hit(self):
        directory = FakeTenantDirectory({"custom.biz": record("acme")})
        client = TestClient(build_app(directory))
        data = client.get("/", headers={"host": "custom.biz"}).json()
        assert data["path"] == "/tenant/acme/dashboard"

    def test_custom_domain_miss_passes_through(self):
        client = TestClient(build_app())
        data = client.get("/about", headers={"host": "unknown.biz"}).json()
        assert data["path"] == "/about"
        assert data["tenant_slug"] is None

    def test_lookup_failure_passes_through(self):
        client = TestClient(build_app(failing_directory()))
        response = client.get("/about", headers={"host": "custom.biz"})
        assert response.status_code == 200
        assert response.json()["path"] == "/about"

    def test_resolver_crash_fails_open(self):
        class ExplodingResolver(TenantResolver):
            async def resolve(self, host, path):
                raise RuntimeError("boom")

        client = TestClient(build_app(resolver=ExplodingResolver(BASE, FakeTenantDirectory())))
        response = client.get("/about", headers={"host": "acme.tenant.example.net"})
        assert response.status_code == 200
        assert response.json()["path"] == "/about"

    def test_already_scoped_path_is_not_rewritten_again(self):
        client = TestClient(build_app())
        data = client.get("/tenant/acme/settings", headers={"host": "acme.tenant.example.net"}).json()
        assert data["path"] == "/tenant/acme/settings"


class TestDebugPayload:
    """Test the ?__debug=1 diagnostic response"""

    def test_debug_payload(self):
        client = TestClient(build_app())
        headers = {"host": "proxy:80", "x-forwarded-host": "acme.tenant.example.net", "x-forwarded-proto": "https"}
        response = client.get("/settings?__debug=1", headers=headers)

        assert response.json() == {
            "hostname": "acme.tenant.example.net",
            "forwarded_host": "acme.tenant.example.net",
            "forwarded_proto": "https",
            "pathname": "/settings",
            "subdomain": "acme",
        }

    def test_debug_disabled(self):
        client = TestClient(build_app(enable_debug=False))
        data = client.get("/?__debug=1", headers={"host": "acme.localhost"}).json()
        assert data["path"] == "/tenant/acme/dashboard"

    def test_debug_ignored_on_excluded_paths(self):
        client = TestClient(build_app())
        data = client.get("/api/anything?__debug=1", headers={"host": "acme.localhost"}).json()
        assert data["path"] == "/api/anything"

    def test_other_debug_values_are_ignored(self):
        client = TestClient(build_app())
        data = client.get("/?__debug=true", headers={"host": "acme.localhost"}).json()
        assert data["path"] == "/tenant/acme/dashboard"


class TestApplyRewrite:
    def test_sets_path_and_raw_path(self):
        scope = {"path": "/", "raw_path": b"/", "query_string": b"a=1"}
        apply_rewrite(scope, "/tenant/acme/dashboard")
        assert scope["path"] == "/tenant/acme/dashboard"
        assert scope["raw_path"] == b"/tenant/acme/dashboard"
        assert scope["query_string"] == b"a=1"

    def test_raw_path_is_percent_encoded(self):
        scope = {"path": "/", "raw_path": b"/"}
        apply_rewrite(scope, "/tenant/acme/café")
        assert scope["raw_path"] == b"/tenant/acme/caf%C3%A9"


class TestStructuredLogging:
    """Test the access log middleware and its formatter"""

    def test_request_id_header_is_echoed(self):
        app = build_app()
        app.add_middleware(StructuredLoggingMiddleware)
        client = TestClient(app)

        response = client.get("/", headers={"host": "acme.localhost", "X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_is_generated(self):
        app = build_app()
        app.add_middleware(StructuredLoggingMiddleware)
        response = TestClient(app).get("/")
        assert len(response.headers["X-Request-ID"]) == 36

    def test_access_log_records_both_paths(self, caplog):
        app = build_app()
        app.add_middleware(StructuredLoggingMiddleware)

        with caplog.at_level(logging.INFO, logger="platform.access"):
            TestClient(app).get("/members", headers={"host": "acme.tenant.example.net"})

        entry = next(r for r in caplog.records if r.name == "platform.access")
        assert entry.original_path == "/members"
        assert entry.path == "/tenant/acme/members"
        assert entry.tenant_slug == "acme"
        assert "[served /tenant/acme/members]" in entry.getMessage()

    def test_formatter_outputs_json(self):
        record_ = logging.LogRecord("platform.access", logging.INFO, __file__, 1, "GET / - 200", None, None)
        record_.tenant_slug = "acme"
        token = request_id_var.set("abc")
        try:
            data = json.loads(JsonLogFormatter().format(record_))
        finally:
            request_id_var.reset(token)

        assert data["message"] == "GET / - 200"
        assert data["request_id"] == "abc"
        assert data["tenant_slug"] == "acme"
        assert "path" not in data

    def test_setup_installs_json_handler(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_structured_logging("debug")
            assert root.level == logging.DEBUG
            assert [type(h.formatter) for h in root.handlers] == [JsonLogFormatter]
            assert logging.getLogger("uvicorn.access").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
