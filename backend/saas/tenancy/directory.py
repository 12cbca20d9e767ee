"""
Tenant directory backed by the host database.

Every query runs under a forced host context, so the directory never depends
on the tenant being resolved. Results are returned as immutable snapshots
(``TenantRecord``) detached from the ORM session.

Errors:
    - TenantNotFoundError: no row matches the name or id
    - TenantAlreadyExistsError: registration with a taken name
    - StorageError: any I/O failure, with the driver error as cause

Usage:
    ```python
    directory = TenantDirectory(provider)
    config = await directory.lookup("acme")
    config.conn.get("default")
    ```
"""

from datetime import datetime
from typing import TYPE_CHECKING
import uuid

from loguru import logger
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from saas.exceptions import StorageError, TenantAlreadyExistsError, TenantNotFoundError
from saas.models import Tenant, TenantConn
from saas.tenancy.context import CurrentTenant, TenantConfig

if TYPE_CHECKING:
    from saas.tenancy.provider import DbProvider

DIRECTORY_RESOLVER = "directory"


class TenantRecord(TenantConfig):
    """Tenant config plus the identity-provider metadata kept in the directory."""

    keycloak_client_id: str | None = None
    keycloak_server: str | None = None
    keycloak_jwks_url: str | None = None
    manager_role: str | None = None
    user_role: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_orm_tenant(cls, tenant: Tenant) -> "TenantRecord":
        return cls(
            id=tenant.id,
            name=tenant.name,
            namespace=tenant.namespace or "",
            conn={entry.key: entry.value for entry in tenant.conn},
            keycloak_client_id=tenant.keycloak_client_id,
            keycloak_server=tenant.keycloak_server,
            keycloak_jwks_url=tenant.keycloak_jwks_url,
            manager_role=tenant.manager_role,
            user_role=tenant.user_role,
            created_at=tenant.created_at,
            updated_at=tenant.updated_at,
        )


class TenantDirectory:
    """
    Looks up tenant identity and connection entries from the host database.

    Args:
        provider: DbProvider used to reach the host database.
    """

    def __init__(self, provider: "DbProvider") -> None:
        self.provider = provider

    async def _host_client(self):
        return await self.provider.get(CurrentTenant.host((DIRECTORY_RESOLVER,)))

    async def lookup(self, name_or_id: str) -> TenantRecord:
        """
        Find a tenant whose id or name equals ``name_or_id``.

        Raises:
            TenantNotFoundError: If no tenant matches either column.
            StorageError: If the host database cannot be queried.
        """
        client = await self._host_client()
        try:
            async with client.session() as session:
                result = await session.execute(
                    select(Tenant).where(
                        or_(Tenant.id == name_or_id, Tenant.name == name_or_id)
                    )
                )
                tenant = result.scalars().first()
                record = TenantRecord.from_orm_tenant(tenant) if tenant else None
        except SQLAlchemyError as e:
            msg = f"Failed to look up tenant '{name_or_id}'"
            raise StorageError(msg) from e

        if record is None:
            raise TenantNotFoundError(name_or_id)
        return record

    async def list_tenants(self) -> list[TenantRecord]:
        client = await self._host_client()
        try:
            async with client.session() as session:
                result = await session.execute(select(Tenant).order_by(Tenant.name))
                return [TenantRecord.from_orm_tenant(t) for t in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StorageError("Failed to list tenants") from e

    async def register(
        self,
        name: str,
        namespace: str = "",
        conn: dict[str, str] | None = None,
        tenant_id: str | None = None,
        **metadata: str | None,
    ) -> TenantRecord:
        """
        Insert a tenant row and its connection entries.

        Args:
            name: Unique tenant name; stored lower-cased.
            namespace: Free-form grouping label.
            conn: Connection key -> connection string entries.
            tenant_id: Explicit id; a uuid4 is generated when omitted.
            **metadata: Identity-provider columns (keycloak_client_id,
                keycloak_server, keycloak_jwks_url, manager_role, user_role).

        Returns:
            Snapshot of the stored tenant.

        Raises:
            TenantAlreadyExistsError: If the name (or id) is already registered.
            StorageError: For any other database failure.
        """
        name = name.strip().lower()
        tenant_id = tenant_id or str(uuid.uuid4())
        client = await self._host_client()

        try:
            async with client.session() as session:
                existing = await session.execute(
                    select(Tenant.id).where(
                        or_(Tenant.name == name, Tenant.id == tenant_id)
                    )
                )
                if existing.first() is not None:
                    duplicate = True
                else:
                    duplicate = False
                    tenant = Tenant(
                        id=tenant_id,
                        name=name,
                        namespace=namespace,
                        conn=[
                            TenantConn(key=key, value=value)
                            for key, value in (conn or {}).items()
                        ],
                        **metadata,
                    )
                    session.add(tenant)
        except IntegrityError as e:
            # lost a race against a concurrent registration of the same name
            raise TenantAlreadyExistsError(name) from e
        except SQLAlchemyError as e:
            msg = f"Failed to register tenant '{name}'"
            raise StorageError(msg) from e

        if duplicate:
            raise TenantAlreadyExistsError(name)

        logger.info(f"Registered tenant '{name}' with id {tenant_id}")
        return await self.lookup(tenant_id)
