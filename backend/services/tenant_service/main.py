"""
Tenant Service - FastAPI Application Entry Point

This module serves as the main entry point for the Tenant Service, the
administration service of the E-Masjid SaaS backend. It registers tenants,
seeds their databases and exposes the diagnostics of the data-access router.

The service is built on FastAPI and provides RESTful APIs for:
    - Tenant registration, lookup and listing (host-level admin)
    - Schema and seed bootstrap of the host and tenant databases
    - Resolved-tenant diagnostics and a sample tenant-scoped read

Architecture:
    Each request is resolved to a tenant from its subdomain or ``__tenant``
    header. Tenants either share the host database or own a dedicated one,
    created on first use. Admin endpoints under ``/api/v1/admin`` always run
    against the host database.

Example:
    To run the service locally:
        ```bash
        uv run uvicorn services.tenant_service:app --port 8090 --reload
        ```

Attributes:
    app (FastAPI): The FastAPI application instance.
"""

from saas.config import get_settings
from saas.fastapi import create_fastapi_app
from services.tenant_service.api.v1.api import ADMIN_PREFIX, api_router

settings = get_settings("tenant-service")

app = create_fastapi_app(
    service_name="tenant-service",
    description="Tenant administration service for the E-Masjid SaaS backend",
    api_router=api_router,
    host_paths=(f"{settings.API_V1_STR}{ADMIN_PREFIX}",),
)
