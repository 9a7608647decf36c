import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import Settings, settings as default_settings
from app.database import build_engine, build_sessionmaker, create_tables
from app.exception_handlers import register_exception_handlers
from app.middleware.logging import StructuredLoggingMiddleware, setup_structured_logging
from app.middleware.tenant import TenantRewriteMiddleware
from app.routes import auth, tenant_pages, tenants
from app.services.tenant_directory import TenantDirectory, build_tenant_directory
from app.services.tenant_resolver import TenantResolver

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    tenant_directory: TenantDirectory | None = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    The engine, session factory and tenant directory are built here and
    stored on app.state; nothing is shared through module globals. Pass
    tenant_directory to swap the lookup backend (tests, custom deployments).
    """
    settings = settings or default_settings

    engine = build_engine(settings)
    session_factory = build_sessionmaker(engine)
    directory = tenant_directory or build_tenant_directory(settings, session_factory)
    resolver = TenantResolver(
        base_domain=settings.base_domain,
        directory=directory,
        local_marker=settings.local_marker,
        lookup_timeout=settings.tenant_lookup_timeout_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting %s (base_domain=%s)", settings.app_name, settings.base_domain)
        if settings.auto_create_tables:
            await create_tables(engine)
        yield
        logger.info("Shutting down the application...")
        await directory.aclose()
        await engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant platform with host-based tenant routing",
        debug=settings.debug,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = session_factory
    app.state.tenant_directory = directory
    app.state.tenant_resolver = resolver

    register_exception_handlers(app)

    # Starlette middleware is LIFO: the rewrite runs innermost, right before
    # routing, and the access log wraps it to see both paths.
    app.add_middleware(
        TenantRewriteMiddleware,
        resolver=resolver,
        local_marker=settings.local_marker,
        enable_debug=settings.enable_debug_endpoint,
    )
    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(auth.router, prefix="/api/auth")
    app.include_router(tenants.router, prefix="/api/tenants")
    app.include_router(tenant_pages.router, prefix="/tenant/{slug}")

    @app.get("/", tags=["Root"])
    async def root():
        return {"message": f"Welcome to {settings.app_name}", "base_domain": settings.base_domain}

    @app.get("/health", tags=["Root"])
    async def health():
        return {"status": "ok"}

    if settings.debug:
        logger.info("Running in %s mode", settings.environment)
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    return app


setup_structured_logging(default_settings.log_level, json_format=default_settings.json_logs)
app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=default_settings.debug)
