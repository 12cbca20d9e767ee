"""
Seed API Endpoint

``POST /admin/seed`` applies schema and seed data to the host database and
then to each requested tenant, in order. The first failure stops the run;
tenants seeded before it keep their committed changes.
"""

from fastapi import APIRouter, Depends
from loguru import logger

from saas.exceptions import TenancyError, handle_tenancy_error
from saas.tenancy import Tenancy
from services.tenant_service.api.dependencies import get_tenancy
from services.tenant_service.api.v1.models import SeedRequest, SeedResponse

router = APIRouter()


@router.post("/seed", response_model=SeedResponse)
async def seed_databases(
    request: SeedRequest | None = None,
    tenancy: Tenancy = Depends(get_tenancy),
) -> SeedResponse:
    tenant_ids = request.tenantIds if request else None
    try:
        seeded = await tenancy.seeder.seed_all(tenant_ids)
    except TenancyError as e:
        raise handle_tenancy_error("seeding tenant databases", e)

    logger.info(f"Seeded databases: {', '.join(seeded)}")
    return SeedResponse(seeded=seeded)
