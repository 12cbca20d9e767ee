"""
DbProvider: the façade handlers use to reach the right database.

``get(tenant, key)`` runs these steps in order and aborts on the first failure,
caching nothing from a failed call:

    1. Host tenant (empty id): the shared connection string, unmodified.
    2. Other tenants: the tenant's connection entry for ``key``, taken from the
       context's directory snapshot or looked up in the TenantDirectory.
       Without an entry the connection string is derived from the shared
       template in database-per-tenant mode, or is the shared DSN in shared mode.
    3. The resolved connection string is validated (it must name a database).
    4. The connection cache returns the client for that exact string, or
       single-flights its creation: provision the database, then open the pool.
       A cached client therefore skips provisioning entirely.
    5. The client is bound to the request's tenant and key. A handle on the
       shared connection string is tenant-scoped (see ``BoundClient.scope``).

Usage:
    ```python
    client = await provider.get(request.state.tenant)
    async with client.session() as session:
        ...
    ```
"""

from typing import TYPE_CHECKING

from loguru import logger

from saas.config import BaseServiceSettings
from saas.database.cache import ConnectionCache
from saas.database.client import BoundClient, ClientFactory, TenantClient
from saas.database.dsn import ConnStrGenerator, extract_database_name
from saas.database.provisioning import DatabaseProvisioner
from saas.exceptions import TenancyError
from saas.tenancy.context import CurrentTenant, normalize_connection_key

if TYPE_CHECKING:
    from saas.tenancy.directory import TenantDirectory


class DbProvider:
    """
    Args:
        settings: Service settings (shared DSN and tenant database mode).
        cache: Connection cache owned by the composition root.
        client_factory: Opens pooled clients.
        provisioner: Ensures tenant databases exist.
        generator: Per-tenant connection string generator; derived from the
            shared DSN when omitted.
        directory: Tenant directory; may be attached after construction since
            the directory itself reaches the host database through this provider.
    """

    def __init__(
        self,
        settings: BaseServiceSettings,
        cache: ConnectionCache[TenantClient],
        client_factory: ClientFactory,
        provisioner: DatabaseProvisioner,
        generator: ConnStrGenerator | None = None,
        directory: "TenantDirectory | None" = None,
    ) -> None:
        self.shared_dsn = settings.SHARED_DSN
        self.separate_databases = settings.separate_databases
        self.cache = cache
        self.client_factory = client_factory
        self.provisioner = provisioner
        self.generator = generator or ConnStrGenerator.from_shared_dsn(self.shared_dsn)
        self.directory = directory

    def attach_directory(self, directory: "TenantDirectory") -> None:
        self.directory = directory

    async def resolve_connection_string(
        self, tenant: CurrentTenant, key: str | None = None
    ) -> str:
        """
        Resolve the connection string ``tenant`` uses for ``key``.

        Raises:
            TenantNotFoundError: If the tenant has no directory entry.
            MalformedConnectionStringError: If the resolved string has no dbname.
            StorageError: If the directory lookup fails.
        """
        if tenant.is_host:
            dsn = self.shared_dsn
        else:
            config = tenant.config
            if config is None:
                if self.directory is None:
                    raise TenancyError("DbProvider has no tenant directory attached")
                config = await self.directory.lookup(tenant.tenant_id)

            dsn = config.connection_string(key)
            if not dsn:
                if self.separate_databases:
                    dsn = self.generator.generate(tenant.tenant_id)
                else:
                    dsn = self.shared_dsn

        extract_database_name(dsn)
        return dsn

    async def get(self, tenant: CurrentTenant, key: str | None = None) -> BoundClient:
        """
        Return a client for ``tenant`` bound to the request context.

        Args:
            tenant: Immutable request tenant context.
            key: Connection purpose; empty means "default".

        Raises:
            TenancyError: Any resolution, provisioning or open failure.
        """
        key = normalize_connection_key(key)
        dsn = await self.resolve_connection_string(tenant, key)

        client = self.cache.get(dsn)
        if client is None:
            client = await self.cache.get_or_create(dsn, lambda: self._open(dsn))

        return client.bind(tenant.tenant_id, key, shared=dsn == self.shared_dsn)

    async def _open(self, dsn: str) -> TenantClient:
        logger.debug(f"Opening client for database '{extract_database_name(dsn)}'")
        await self.provisioner.ensure_exists(dsn)
        return await self.client_factory.open(dsn)

    async def evict(self, tenant: CurrentTenant, key: str | None = None) -> bool:
        """Dispose the cached client ``tenant`` currently resolves to, if any."""
        dsn = await self.resolve_connection_string(tenant, normalize_connection_key(key))
        return await self.cache.evict(dsn)
