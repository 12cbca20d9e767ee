"""
Tenant administration Pydantic models.

Field names follow the JSON the admin CLI and dashboard already send
(camelCase).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from saas.tenancy import TenantRecord


class CreateTenantRequest(BaseModel):
    """Request model for registering a tenant.

    ``separateDb`` gives the tenant its own database by storing a generated
    connection string as its "default" entry.
    """

    name: str
    namespace: str = ""
    separateDb: bool = False
    keycloakClientId: Optional[str] = None
    keycloakServer: Optional[str] = None
    keycloakJwksUrl: Optional[str] = None
    managerRole: Optional[str] = None
    userRole: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        name = v.strip().lower()
        if not name:
            raise ValueError("name must not be empty")
        return name


class TenantResponse(BaseModel):
    id: str
    name: str
    namespace: str
    keycloakClientId: Optional[str] = None
    keycloakServer: Optional[str] = None
    keycloakJwksUrl: Optional[str] = None
    managerRole: Optional[str] = None
    userRole: Optional[str] = None
    connectionKeys: list[str] = []
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: TenantRecord) -> "TenantResponse":
        # connection strings carry credentials; only the keys are exposed
        return cls(
            id=record.id,
            name=record.name,
            namespace=record.namespace,
            keycloakClientId=record.keycloak_client_id,
            keycloakServer=record.keycloak_server,
            keycloakJwksUrl=record.keycloak_jwks_url,
            managerRole=record.manager_role,
            userRole=record.user_role,
            connectionKeys=sorted(record.conn),
            createdAt=record.created_at,
            updatedAt=record.updated_at,
        )


class SeedRequest(BaseModel):
    """Tenants to seed after the host; None seeds the configured SEED_TENANT_IDS."""

    tenantIds: Optional[list[str]] = None


class SeedResponse(BaseModel):
    seeded: list[str]


class CurrentTenantResponse(BaseModel):
    tenantId: str
    tenantName: str
    resolvers: list[str]


class PostResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    tenantId: Optional[str] = None
