"""
Tenant-scoped API Endpoints

These endpoints run against whatever tenant the request resolved to (domain,
``__tenant`` header or host).

Endpoints:
    - GET /tenant/current: the resolved tenant id and the resolvers consulted
    - GET /posts: posts stored in the resolved tenant's database

Example:
    ```bash
    curl -H "__tenant: acme" http://localhost:8090/api/v1/posts
    ```
"""

from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from saas.database import BoundClient
from saas.exceptions import handle_database_error
from saas.models import post_table
from saas.tenancy import CurrentTenant
from services.tenant_service.api.dependencies import get_current_tenant, get_tenant_db
from services.tenant_service.api.v1.models import CurrentTenantResponse, PostResponse

router = APIRouter()


@router.get("/tenant/current", response_model=CurrentTenantResponse)
async def get_resolved_tenant(
    tenant: CurrentTenant = Depends(get_current_tenant),
) -> CurrentTenantResponse:
    return CurrentTenantResponse(
        tenantId=tenant.tenant_id,
        tenantName=tenant.tenant_name,
        resolvers=list(tenant.applied_resolvers),
    )


@router.get("/posts", response_model=list[PostResponse])
async def list_posts(
    db: BoundClient = Depends(get_tenant_db),
) -> list[PostResponse]:
    """
    List the resolved tenant's posts, ordered by id. On the shared database
    only rows tagged with the tenant's id are returned.

    Raises:
        HTTPException: 404 if the tenant is unknown, 500 if the query fails.
    """
    try:
        async with db.connect() as connection:
            result = await connection.execute(
                db.scope(select(post_table), post_table).order_by(post_table.c.id)
            )
            rows = result.mappings().all()
    except SQLAlchemyError as e:
        raise handle_database_error("listing posts", e)

    logger.info(f"Retrieved {len(rows)} posts for tenant {db.tenant_id or 'host'}")
    return [
        PostResponse(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            tenantId=row["tenant_id"],
        )
        for row in rows
    ]
