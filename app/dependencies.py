"""
FastAPI dependencies for objects owned by the running app.

create_app() stores settings and the tenant directory on app.state; routes
reach them through these dependencies instead of module globals.
"""

from fastapi import Depends, Request

from app.config import Settings
from app.services.tenant_directory import TenantDirectory
from app.utils.host import ResolvedHost, parse_host


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_tenant_directory(request: Request) -> TenantDirectory:
    return request.app.state.tenant_directory


def get_request_host(request: Request, settings: Settings = Depends(get_settings)) -> ResolvedHost:
    return parse_host(request.headers, settings.base_domain, settings.local_marker)
