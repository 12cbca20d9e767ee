"""
Schema migration and seed bootstrap for one tenant database.

``MigrationSeeder.seed(tenant_id)`` runs once for the host at start and once per
newly onboarded tenant. Everything for one tenant runs in a single transaction
and the first failure rolls it back and raises SeedError.

Steps:
    1. Host only: apply the tenant directory migrations and upsert the local
       tenant record.
    2. Apply the application migrations in list order.
    3. Upsert the seed rows for this tenant (by primary key).
    4. Tenants only, when SEED_SQL_DIR is set: execute every ``*.sql`` script
       sorted by file name. Scripts are split on ``;``; a script holding
       dollar-quoted bodies runs as a single unit.
    5. Database-per-tenant mode only, tenants other than LOCAL_TENANT_ID:
       back-fill null ``tenant_id`` columns left over from a shared database.

Re-running ``seed`` is a no-op apart from refreshing ``updated_at`` on seed rows,
provided the SQL scripts themselves are idempotent.

Usage:
    ```python
    seeder = MigrationSeeder(provider, settings)
    await seeder.seed()        # host
    await seeder.seed("42")    # tenant 42
    ```
"""

from pathlib import Path
from typing import Any

from loguru import logger
from sqlalchemy import Table, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from saas.config import BaseServiceSettings
from saas.database.migrations import (
    APPLICATION_MIGRATIONS,
    HOST_MIGRATIONS,
    TENANT_SCOPED_TABLES,
    apply_migrations,
)
from saas.exceptions import SeedError, TenancyError
from saas.logging import tenant_log_label, tenant_logging_context
from saas.models import Tenant, post_table
from saas.tenancy.context import HOST_TENANT_ID, CurrentTenant
from saas.tenancy.provider import DbProvider

SEED_RESOLVER = "seed"
LOCAL_TENANT_NAME = "host"
DOLLAR_QUOTE_MARKERS = ("$$", "$function$", "$body$")

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def host_seed_rows(local_tenant_id: str) -> dict[Table, list[dict[str, Any]]]:
    return {
        Tenant.__table__: [{"id": local_tenant_id, "name": LOCAL_TENANT_NAME, "namespace": ""}],
        post_table: [{"id": 1, "title": "Host Side", "description": "Init Host"}],
    }


def tenant_seed_rows(tenant_id: str, local_tenant_id: str) -> dict[Table, list[dict[str, Any]]]:
    if tenant_id != local_tenant_id:
        return {}
    return {
        post_table: [
            {
                "id": 2,
                "title": "Tenant 1 Post 1",
                "description": "Tenant 1 Post 1",
                "tenant_id": tenant_id,
            }
        ],
    }


async def upsert_rows(
    connection: AsyncConnection, table: Table, rows: list[dict[str, Any]]
) -> None:
    """
    Insert rows, updating the existing row on a primary key conflict.

    Supported dialects: postgresql and sqlite.
    """
    dialect = connection.dialect.name
    insert = _INSERT_BY_DIALECT.get(dialect)
    if insert is None:
        msg = f"Upsert is not supported for dialect '{dialect}'"
        raise SeedError(msg)

    pk_columns = [column.name for column in table.primary_key.columns]
    for row in rows:
        stmt = insert(table).values(**row)
        updates = {
            name: stmt.excluded[name] for name in row if name not in pk_columns
        }
        if "updated_at" in table.c:
            updates["updated_at"] = func.now()
        await connection.execute(
            stmt.on_conflict_do_update(index_elements=pk_columns, set_=updates)
        )


def split_sql_statements(sql: str) -> list[str]:
    return [statement.strip() for statement in sql.split(";") if statement.strip()]


def is_dollar_quoted(sql: str) -> bool:
    return any(marker in sql for marker in DOLLAR_QUOTE_MARKERS)


def load_sql_scripts(directory: str | Path) -> list[Path]:
    """Return the ``*.sql`` files of ``directory`` sorted by file name."""
    path = Path(directory)
    if not path.is_dir():
        msg = f"SQL script directory not found: {path}"
        raise SeedError(msg)
    return sorted(path.glob("*.sql"), key=lambda p: p.name)


async def execute_sql_script(connection: AsyncConnection, script: Path) -> int:
    """
    Execute one script file. Returns the number of statements executed.
    """
    sql_content = script.read_text(encoding="utf-8")
    if not sql_content.strip():
        logger.warning(f"Skipping empty file: {script.name}")
        return 0

    if is_dollar_quoted(sql_content):
        # the driver runs a multi-command script only outside prepared statements
        logger.debug(f"Executing {script.name} as a single unit")
        raw_conn = await connection.get_raw_connection()
        await raw_conn.driver_connection.execute(sql_content)
        return 1

    statements = split_sql_statements(sql_content)
    for i, statement in enumerate(statements):
        logger.debug(f"Executing statement {i + 1}/{len(statements)} from {script.name}")
        await connection.exec_driver_sql(statement)
    return len(statements)


async def backfill_tenant_id(connection: AsyncConnection, tenant_id: str) -> int:
    """Set ``tenant_id`` on rows where it is null. Returns the rows updated."""
    updated = 0
    for table in TENANT_SCOPED_TABLES:
        result = await connection.execute(
            table.update()
            .where(table.c.tenant_id.is_(None))
            .values(tenant_id=tenant_id)
        )
        if result.rowcount:
            logger.info(f"Back-filled {result.rowcount} rows in '{table.name}' for tenant {tenant_id}")
            updated += result.rowcount
    return updated


class MigrationSeeder:
    """
    Args:
        provider: DbProvider used to reach each tenant database.
        settings: Service settings (SEED_SQL_DIR, SEED_TENANT_IDS, LOCAL_TENANT_ID).
    """

    def __init__(self, provider: DbProvider, settings: BaseServiceSettings) -> None:
        self.provider = provider
        self.sql_dir = settings.SEED_SQL_DIR
        self.seed_tenant_ids = list(settings.SEED_TENANT_IDS)
        self.local_tenant_id = settings.LOCAL_TENANT_ID
        self.backfill = settings.separate_databases

    async def seed(self, tenant_id: str = HOST_TENANT_ID, tenant: CurrentTenant | None = None) -> None:
        """
        Apply schema and seed data to one tenant database.

        Args:
            tenant_id: Tenant to seed; empty seeds the host.
            tenant: Optional resolved context (skips the directory lookup, used
                right after registration).

        Raises:
            TenantNotFoundError: If ``tenant_id`` is not registered.
            SeedError: If any migration, seed row or script fails. The tenant's
                transaction is rolled back.
            StorageError: If the database cannot be reached or provisioned.
        """
        if tenant is None:
            tenant = (
                CurrentTenant.host((SEED_RESOLVER,))
                if tenant_id == HOST_TENANT_ID
                else CurrentTenant(tenant_id=tenant_id, applied_resolvers=(SEED_RESOLVER,))
            )
        with tenant_logging_context(tenant.tenant_id):
            await self._seed(tenant)

    async def _seed(self, tenant: CurrentTenant) -> None:
        label = tenant_log_label(tenant.tenant_id)
        client = await self.provider.get(tenant)

        logger.info(f"Seeding database for tenant {label}...")
        try:
            async with client.begin() as connection:
                if tenant.is_host:
                    await apply_migrations(connection, HOST_MIGRATIONS)
                    rows = host_seed_rows(self.local_tenant_id)
                else:
                    rows = tenant_seed_rows(tenant.tenant_id, self.local_tenant_id)

                await apply_migrations(connection, APPLICATION_MIGRATIONS)

                for table, table_rows in rows.items():
                    await upsert_rows(connection, table, table_rows)

                if not tenant.is_host:
                    if self.sql_dir:
                        for script in load_sql_scripts(self.sql_dir):
                            logger.info(f"Executing {script.name} for tenant {label}...")
                            await execute_sql_script(connection, script)
                    if self.backfill and tenant.tenant_id != self.local_tenant_id:
                        await backfill_tenant_id(connection, tenant.tenant_id)
        except TenancyError:
            logger.error(f"Seeding failed for tenant {label}. Transaction rolled back.")
            raise
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Seeding failed for tenant {label}. Transaction rolled back. Error: {e}")
            msg = f"Failed to seed database for tenant {label}"
            raise SeedError(msg) from e

        logger.info(f"Seeding completed for tenant {label}.")

    async def seed_all(self, tenant_ids: list[str] | None = None) -> list[str]:
        """
        Seed the host, then each tenant in order. Stops at the first failure.

        Returns:
            Labels of the databases seeded ("host" first).
        """
        await self.seed()
        seeded = ["host"]
        for tenant_id in self.seed_tenant_ids if tenant_ids is None else tenant_ids:
            await self.seed(tenant_id)
            seeded.append(tenant_id)
        return seeded
