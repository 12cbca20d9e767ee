"""
Tenant Administration API Endpoints

Host-level endpoints for registering and inspecting tenants. They are mounted
under the admin prefix, which the tenancy middleware always resolves to the
host tenant, so they work from any domain.

Endpoints:
    - POST /admin/tenant: register a tenant and seed its database
    - GET /admin/tenant/{name}: fetch one tenant by name or id
    - GET /admin/tenants: list every tenant

Example:
    ```bash
    curl -X POST http://localhost:8090/api/v1/admin/tenant \\
        -H "Content-Type: application/json" \\
        -d '{"name": "acme", "namespace": "masjid", "separateDb": true}'
    ```
"""

import uuid

from fastapi import APIRouter, Depends, status
from loguru import logger

from saas.exceptions import TenancyError, handle_tenancy_error
from saas.tenancy import DEFAULT_CONNECTION_KEY, CurrentTenant, Tenancy
from services.tenant_service.api.dependencies import get_tenancy
from services.tenant_service.api.v1.models import CreateTenantRequest, TenantResponse

router = APIRouter()


@router.post(
    "/tenant", response_model=TenantResponse, status_code=status.HTTP_201_CREATED
)
async def create_tenant(
    request: CreateTenantRequest,
    tenancy: Tenancy = Depends(get_tenancy),
) -> TenantResponse:
    """
    Register a tenant, then apply schema and seed data to its database.

    With ``separateDb`` the tenant gets a "default" connection entry generated
    from the shared template, pinning it to its own database even if the
    service later runs in shared mode.

    Raises:
        HTTPException: 409 if the name is taken, 500 if registration or
            seeding fails.
    """
    tenant_id = str(uuid.uuid4())
    conn = {}
    if request.separateDb:
        conn[DEFAULT_CONNECTION_KEY] = tenancy.provider.generator.generate(tenant_id)

    try:
        record = await tenancy.directory.register(
            name=request.name,
            namespace=request.namespace,
            conn=conn,
            tenant_id=tenant_id,
            keycloak_client_id=request.keycloakClientId,
            keycloak_server=request.keycloakServer,
            keycloak_jwks_url=request.keycloakJwksUrl,
            manager_role=request.managerRole,
            user_role=request.userRole,
        )
        await tenancy.seeder.seed(
            record.id, tenant=CurrentTenant.from_config(record, ("override",))
        )
    except TenancyError as e:
        raise handle_tenancy_error("creating tenant", e)

    logger.info(f"Created tenant '{record.name}' ({record.id})")
    return TenantResponse.from_record(record)


@router.get("/tenant/{name}", response_model=TenantResponse)
async def get_tenant(
    name: str,
    tenancy: Tenancy = Depends(get_tenancy),
) -> TenantResponse:
    try:
        record = await tenancy.directory.lookup(name.strip().lower())
    except TenancyError as e:
        raise handle_tenancy_error("fetching tenant", e)
    return TenantResponse.from_record(record)


@router.get("/tenants", response_model=list[TenantResponse])
async def list_tenants(
    tenancy: Tenancy = Depends(get_tenancy),
) -> list[TenantResponse]:
    try:
        records = await tenancy.directory.list_tenants()
    except TenancyError as e:
        raise handle_tenancy_error("listing tenants", e)

    logger.info(f"Retrieved {len(records)} tenants")
    return [TenantResponse.from_record(record) for record in records]
