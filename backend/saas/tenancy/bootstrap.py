"""
Composition root for the data-access router.

``build_tenancy`` constructs every component explicitly and wires them
together; nothing lives in module-level globals. The shared DSN is validated
here so a malformed template fails at startup rather than on the first request.

Usage:
    ```python
    tenancy = build_tenancy(get_settings("tenant-service"))
    await tenancy.seeder.seed()
    ...
    await tenancy.close()
    ```
"""

from loguru import logger

from saas.config import BaseServiceSettings
from saas.database.cache import ConnectionCache
from saas.database.client import ClientFactory, TenantClient
from saas.database.dsn import ConnStrGenerator, extract_database_name
from saas.database.provisioning import DatabaseProvisioner
from saas.tenancy.directory import TenantDirectory
from saas.tenancy.provider import DbProvider
from saas.tenancy.resolver import TenantResolver
from saas.tenancy.seeder import MigrationSeeder


class Tenancy:
    """Bundle of the wired tenancy components owned by one application."""

    def __init__(
        self,
        settings: BaseServiceSettings,
        cache: ConnectionCache[TenantClient],
        provider: DbProvider,
        directory: TenantDirectory,
        resolver: TenantResolver,
        seeder: MigrationSeeder,
    ) -> None:
        self.settings = settings
        self.cache = cache
        self.provider = provider
        self.directory = directory
        self.resolver = resolver
        self.seeder = seeder

    async def close(self) -> None:
        await self.cache.flush()


def build_tenancy(
    settings: BaseServiceSettings,
    client_factory: ClientFactory | None = None,
    provisioner: DatabaseProvisioner | None = None,
) -> Tenancy:
    """
    Build the tenancy components from settings.

    Args:
        settings: Service settings.
        client_factory: Override for the pooled client factory.
        provisioner: Override for the database provisioner.

    Raises:
        MalformedConnectionStringError: If SHARED_DSN is malformed.
    """
    shared_database = extract_database_name(settings.SHARED_DSN)
    generator = ConnStrGenerator.from_shared_dsn(settings.SHARED_DSN)

    cache: ConnectionCache[TenantClient] = ConnectionCache(disposer=TenantClient.dispose)
    provider = DbProvider(
        settings,
        cache=cache,
        client_factory=client_factory or ClientFactory(settings),
        provisioner=provisioner
        or DatabaseProvisioner(
            admin_database=settings.ADMIN_DATABASE,
            connect_timeout=settings.DATABASE_CONNECT_TIMEOUT,
        ),
        generator=generator,
    )
    directory = TenantDirectory(provider)
    provider.attach_directory(directory)

    logger.info(
        f"Tenancy configured: shared database '{shared_database}', "
        f"mode={settings.TENANT_DB_MODE}, root_domain='{settings.ROOT_DOMAIN}'"
    )
    return Tenancy(
        settings,
        cache=cache,
        provider=provider,
        directory=directory,
        resolver=TenantResolver.from_settings(settings),
        seeder=MigrationSeeder(provider, settings),
    )
