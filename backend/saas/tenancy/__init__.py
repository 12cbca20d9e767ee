"""
Tenant resolution and routing on top of ``saas.database``.

Main Components:
    - CurrentTenant, TenantConfig: immutable tenant values
    - TenantResolver: request -> tenant hint (override, domain, header, host)
    - TenantDirectory: tenant lookup and registration in the host database
    - DbProvider: tenant -> connection string -> provisioned, cached client
    - MigrationSeeder: schema and seed bootstrap per tenant database
    - TenancyMiddleware: attaches the resolved tenant to each request
    - build_tenancy: composition root wiring the components together
"""

from saas.tenancy.bootstrap import Tenancy, build_tenancy
from saas.tenancy.context import (
    DEFAULT_CONNECTION_KEY,
    HOST_TENANT_ID,
    CurrentTenant,
    TenantConfig,
    TenantResolveResult,
)
from saas.tenancy.directory import TenantDirectory, TenantRecord
from saas.tenancy.middleware import TenancyMiddleware, get_current_tenant
from saas.tenancy.provider import DbProvider
from saas.tenancy.resolver import TenantResolver
from saas.tenancy.seeder import MigrationSeeder

__all__ = [
    "DEFAULT_CONNECTION_KEY",
    "HOST_TENANT_ID",
    "CurrentTenant",
    "DbProvider",
    "MigrationSeeder",
    "Tenancy",
    "TenancyMiddleware",
    "TenantConfig",
    "TenantDirectory",
    "TenantRecord",
    "TenantResolveResult",
    "TenantResolver",
    "build_tenancy",
    "get_current_tenant",
]
