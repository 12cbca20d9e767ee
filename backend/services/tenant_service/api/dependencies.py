"""
Shared API Dependencies for Tenant Service

FastAPI dependency functions giving endpoints access to the tenancy components
built by the application lifespan and to the tenant resolved for the request.

Dependencies:
    - get_tenancy: The Tenancy bundle stored on ``app.state``
    - get_current_tenant: The CurrentTenant attached by TenancyMiddleware
    - get_tenant_db: A BoundClient for the request's tenant ("default" key)

Example:
    ```python
    from fastapi import Depends
    from services.tenant_service.api.dependencies import get_tenant_db

    @router.get("/posts")
    async def list_posts(db: BoundClient = Depends(get_tenant_db)):
        async with db.connect() as connection:
            ...
    ```
"""

from fastapi import Depends, Request

from saas.database import BoundClient
from saas.tenancy import CurrentTenant, Tenancy, get_current_tenant


def get_tenancy(request: Request) -> Tenancy:
    return request.app.state.tenancy


async def get_tenant_db(
    tenant: CurrentTenant = Depends(get_current_tenant),
    tenancy: Tenancy = Depends(get_tenancy),
) -> BoundClient:
    """
    Resolve the database client for the request's tenant.

    Errors propagate as TenancyError and are mapped by the application's
    exception handler (404 for unknown tenants, 500 otherwise).
    """
    return await tenancy.provider.get(tenant)


__all__ = ["get_current_tenant", "get_tenancy", "get_tenant_db"]
