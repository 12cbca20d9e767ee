"""
Shared multi-tenant data-access layer for the E-Masjid SaaS backend services.

This package provides the functionality every CRUD microservice in the fleet
relies on to talk to the right database for the right tenant. It includes:

Modules:
    - config: Centralized configuration management with environment-based settings
    - database: Connection-string codec, database provisioning, client factory,
      single-flight connection cache and the DbProvider façade
    - tenancy: Tenant context, request resolution, tenant directory, middleware,
      migration seeder and the composition root that wires them together
    - exceptions: Tenancy error taxonomy and standardized API error responses
    - fastapi: FastAPI application factory with tenancy middleware and lifespan
    - logging: Centralized logging configuration using loguru
    - models: Host directory ORM models and the application table definitions

Tenant Isolation:
    Each tenant either shares the host database or owns a dedicated PostgreSQL
    database whose name is derived from the shared DSN by suffixing the tenant
    id (``dbname=pgsql-saas-<tenant_id>``). Databases are created lazily on the
    first request that needs them.

Usage:
    ```python
    from saas.config import get_settings
    from saas.tenancy import build_tenancy
    from saas.logging import setup_logging

    tenancy = build_tenancy(get_settings("tenant-service"))
    client = await tenancy.provider.get(current_tenant)
    ```

Version:
    Current version: 0.1.0
"""

__version__ = "0.1.0"
