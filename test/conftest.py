"""
Pytest configuration and fixtures for tenant platform tests
"""

import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))  # noqa: PTH100, PTH118, PTH119, PTH120

from app.config import Settings  # noqa: E402
from app.database import build_engine, build_sessionmaker, create_tables  # noqa: E402
from main import create_app  # noqa: E402

BASE_DOMAIN = "tenant.example.net"
VALID_PASSWORD = "Secret123"


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file, with the directory cache off"""
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        base_domain=BASE_DOMAIN,
        local_marker="localhost",
        tenant_directory_mode="local",
        tenant_cache_ttl_seconds=0,
        enable_debug_endpoint=True,
        auto_create_tables=True,
        environment="testing",
    )


@pytest.fixture
def client(test_settings):
    """Test client for a fresh application; entering it runs the lifespan (creates tables)"""
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def session_factory(test_settings):
    """Session factory on its own engine, for service-level tests"""
    engine = build_engine(test_settings)
    await create_tables(engine)
    yield build_sessionmaker(engine)
    await engine.dispose()


@pytest.fixture
async def test_db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def signup(client):
    """Sign up through the API and return the response"""

    def _signup(email="owner@example.com", tenant_name="Acme Corp", tenant_slug="acme", headers=None, **overrides):
        payload = {
            "email": email,
            "password": VALID_PASSWORD,
            "confirm_password": VALID_PASSWORD,
            "name": "Owner",
            "tenant_name": tenant_name,
            "tenant_slug": tenant_slug,
        }
        payload.update(overrides)
        return client.post("/api/auth/signup", json=payload, headers=headers)

    return _signup
