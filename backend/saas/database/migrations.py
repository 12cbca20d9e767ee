"""
Versioned schema migrations.

Schema is applied from an explicit, ordered list of migrations instead of being
reflected from model classes. Each migration names the tables it creates; the
tables are created with ``checkfirst`` (CREATE TABLE IF NOT EXISTS semantics)
and the applied version is recorded in ``schema_migrations`` so reruns are
no-ops.

Migration Lists:
    - HOST_MIGRATIONS: tenant directory tables, host database only
    - APPLICATION_MIGRATIONS: application schema, every tenant database

Usage:
    ```python
    async with bound_client.begin() as connection:
        applied = await apply_migrations(connection, APPLICATION_MIGRATIONS)
    ```
"""

from sqlalchemy import TIMESTAMP, Column, MetaData, String, Table, func, select
from sqlalchemy.ext.asyncio import AsyncConnection
from loguru import logger

from saas.models import (
    Tenant,
    TenantConn,
    cadangan_table,
    cadangan_type_table,
    dependent_table,
    kariah_dependent_table,
    kariah_member_assigned_type_table,
    kariah_member_table,
    kutipan_table,
    member_table,
    member_tag_table,
    payment_history_table,
    person_table,
    post_table,
    tabung_table,
    tabung_type_table,
    tag_table,
    tetapan_table,
    tetapan_type_table,
)

migration_metadata = MetaData()

schema_migrations_table = Table(
    "schema_migrations",
    migration_metadata,
    Column("version", String(50), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("applied_at", TIMESTAMP(timezone=True), server_default=func.now()),
)


class Migration:
    """
    One schema step.

    Attributes:
        version (str): Sortable unique version, recorded once applied.
        name (str): Human readable description.
        tables (tuple[Table, ...]): Tables created, in dependency order.
    """

    def __init__(self, version: str, name: str, tables: tuple[Table, ...]) -> None:
        self.version = version
        self.name = name
        self.tables = tables

    def __repr__(self) -> str:
        return f"Migration({self.version!r}, {self.name!r})"


HOST_MIGRATIONS: tuple[Migration, ...] = (
    Migration(
        "host-0001",
        "create tenant directory",
        (Tenant.__table__, TenantConn.__table__),
    ),
)

APPLICATION_MIGRATIONS: tuple[Migration, ...] = (
    Migration("0001", "create post", (post_table,)),
    Migration("0002", "create cadangan", (cadangan_type_table, cadangan_table)),
    Migration(
        "0003", "create tabung", (tabung_type_table, tabung_table, kutipan_table)
    ),
    Migration("0004", "create tetapan", (tetapan_type_table, tetapan_table)),
    Migration(
        "0005",
        "create khairat membership",
        (
            person_table,
            member_table,
            dependent_table,
            tag_table,
            member_tag_table,
            payment_history_table,
        ),
    ),
    Migration(
        "0006",
        "create kariah registry",
        (
            kariah_member_table,
            kariah_dependent_table,
            kariah_member_assigned_type_table,
        ),
    ),
)

# tables whose tenant_id is back-filled after conversion to database-per-tenant
TENANT_SCOPED_TABLES: tuple[Table, ...] = tuple(
    table
    for migration in APPLICATION_MIGRATIONS
    for table in migration.tables
    if "tenant_id" in table.c
)


def _create_tables(sync_connection, tables: tuple[Table, ...]) -> None:
    for table in tables:
        table.create(sync_connection, checkfirst=True)


async def applied_versions(connection: AsyncConnection) -> set[str]:
    await connection.run_sync(_create_tables, (schema_migrations_table,))
    result = await connection.execute(select(schema_migrations_table.c.version))
    return {row[0] for row in result}


async def apply_migrations(
    connection: AsyncConnection, migrations: tuple[Migration, ...]
) -> list[str]:
    """
    Apply every migration not yet recorded, in list order.

    Args:
        connection: Connection inside the caller's transaction.
        migrations: Ordered migration list.

    Returns:
        Versions applied by this call.
    """
    done = await applied_versions(connection)
    applied = []
    for migration in migrations:
        if migration.version in done:
            continue
        logger.info(f"Applying migration {migration.version}: {migration.name}")
        await connection.run_sync(_create_tables, migration.tables)
        await connection.execute(
            schema_migrations_table.insert().values(
                version=migration.version, name=migration.name
            )
        )
        applied.append(migration.version)
    return applied
