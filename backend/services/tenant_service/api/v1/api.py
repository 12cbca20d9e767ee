from fastapi import APIRouter

from services.tenant_service.api.v1.endpoints import current, seed, tenants

ADMIN_PREFIX = "/admin"

api_router = APIRouter()

# Host-level administration; always resolved to the host tenant
api_router.include_router(tenants.router, prefix=ADMIN_PREFIX, tags=["Tenants"])
api_router.include_router(seed.router, prefix=ADMIN_PREFIX, tags=["Seed"])

# Tenant-scoped
api_router.include_router(current.router, tags=["Current Tenant"])
