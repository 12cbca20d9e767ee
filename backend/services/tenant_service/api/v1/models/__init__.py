from services.tenant_service.api.v1.models.tenant import (
    CreateTenantRequest,
    CurrentTenantResponse,
    PostResponse,
    SeedRequest,
    SeedResponse,
    TenantResponse,
)

__all__ = [
    "CreateTenantRequest",
    "CurrentTenantResponse",
    "PostResponse",
    "SeedRequest",
    "SeedResponse",
    "TenantResponse",
]
