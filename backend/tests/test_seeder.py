"""
Tests for schema migration and seeding on SQLite tenant databases.
"""

import pytest
from sqlalchemy import func, insert, select, text
from sqlalchemy.exc import SQLAlchemyError

from saas.database.migrations import APPLICATION_MIGRATIONS, HOST_MIGRATIONS, schema_migrations_table
from saas.exceptions import SeedError, TenantNotFoundError
from saas.models import Tenant, post_table
from saas.tenancy.context import CurrentTenant
from saas.tenancy.seeder import is_dollar_quoted, split_sql_statements


async def fetch_all(tenancy, tenant, statement):
    client = await tenancy.provider.get(tenant)
    async with client.connect() as connection:
        result = await connection.execute(statement)
        return result.all()


class TestHostSeed:
    """Tests for seeding the host database."""

    @pytest.mark.asyncio
    async def test_host_seed_creates_directory_and_rows(self, make_tenancy):
        tenancy = make_tenancy()
        try:
            await tenancy.seeder.seed()
            host = CurrentTenant.host()

            tenants = await fetch_all(tenancy, host, select(Tenant.__table__.c.id, Tenant.__table__.c.name))
            posts = await fetch_all(tenancy, host, select(post_table.c.id, post_table.c.title))
            versions = await fetch_all(tenancy, host, select(schema_migrations_table.c.version))

            assert tenants == [("1", "host")]
            assert posts == [(1, "Host Side")]
            expected = {m.version for m in HOST_MIGRATIONS + APPLICATION_MIGRATIONS}
            assert {row[0] for row in versions} == expected
        finally:
            await tenancy.close()

    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, make_tenancy):
        """Test that seeding twice leaves the same rows and migration records."""
        tenancy = make_tenancy()
        try:
            await tenancy.seeder.seed()
            await tenancy.seeder.seed()
            host = CurrentTenant.host()

            post_count = await fetch_all(tenancy, host, select(func.count()).select_from(post_table))
            tenant_count = await fetch_all(tenancy, host, select(func.count()).select_from(Tenant.__table__))
            versions = await fetch_all(tenancy, host, select(func.count()).select_from(schema_migrations_table))

            assert post_count == [(1,)]
            assert tenant_count == [(1,)]
            assert versions == [(len(HOST_MIGRATIONS) + len(APPLICATION_MIGRATIONS),)]
        finally:
            await tenancy.close()


class TestTenantSeed:
    """Tests for seeding tenant databases."""

    @pytest.mark.asyncio
    async def test_local_tenant_gets_demo_post_in_own_database(self, make_tenancy, tmp_path):
        tenancy = make_tenancy()
        try:
            await tenancy.seeder.seed()
            await tenancy.seeder.seed("1")

            posts = await fetch_all(tenancy, CurrentTenant(tenant_id="1"), select(post_table.c.id, post_table.c.tenant_id))

            assert posts == [(2, "1")]
            assert (tmp_path / "shared-1.db").exists()
        finally:
            await tenancy.close()

    @pytest.mark.asyncio
    async def test_unregistered_tenant_is_not_found(self, make_tenancy):
        tenancy = make_tenancy()
        try:
            await tenancy.seeder.seed()

            with pytest.raises(TenantNotFoundError):
                await tenancy.seeder.seed("99")
        finally:
            await tenancy.close()

    @pytest.mark.asyncio
    async def test_sql_scripts_run_sorted_and_idempotent(self, make_tenancy, sql_dir):
        """Test that scripts run in file-name order and re-seeding changes nothing."""
        (sql_dir / "002_rows.sql").write_text(
            "INSERT OR IGNORE INTO note (id, body) VALUES (1, 'first');\n"
            "INSERT OR IGNORE INTO note (id, body) VALUES (2, 'second');\n"
        )
        (sql_dir / "001_table.sql").write_text(
            "CREATE TABLE IF NOT EXISTS note (id INTEGER PRIMARY KEY, body TEXT);"
        )
        (sql_dir / "README.txt").write_text("not a script")
        tenancy = make_tenancy(SEED_SQL_DIR=str(sql_dir))
        try:
            await tenancy.seeder.seed()
            await tenancy.directory.register("acme", tenant_id="2")
            await tenancy.seeder.seed("2")
            await tenancy.seeder.seed("2")

            rows = await fetch_all(tenancy, CurrentTenant(tenant_id="2"), text("SELECT id, body FROM note ORDER BY id"))

            assert rows == [(1, "first"), (2, "second")]
        finally:
            await tenancy.close()

    @pytest.mark.asyncio
    async def test_failing_script_raises_seed_error(self, make_tenancy, sql_dir):
        """Test that the first failing statement aborts the seed."""
        (sql_dir / "001_broken.sql").write_text("INSERT INTO missing_table VALUES (1);")
        tenancy = make_tenancy(SEED_SQL_DIR=str(sql_dir))
        try:
            await tenancy.seeder.seed()
            await tenancy.directory.register("acme", tenant_id="2")

            with pytest.raises(SeedError) as exc_info:
                await tenancy.seeder.seed("2")

            assert isinstance(exc_info.value.__cause__, SQLAlchemyError)
        finally:
            await tenancy.close()

    @pytest.mark.asyncio
    async def test_missing_script_directory_raises_seed_error(self, make_tenancy, tmp_path):
        tenancy = make_tenancy(SEED_SQL_DIR=str(tmp_path / "nowhere"))
        try:
            await tenancy.seeder.seed()
            await tenancy.directory.register("acme", tenant_id="2")

            with pytest.raises(SeedError):
                await tenancy.seeder.seed("2")
        finally:
            await tenancy.close()

    @pytest.mark.asyncio
    async def test_backfill_sets_null_tenant_id(self, make_tenancy):
        """Test that rows left from a shared database get the tenant's id."""
        tenancy = make_tenancy()
        try:
            await tenancy.seeder.seed()
            await tenancy.directory.register("acme", tenant_id="2")
            await tenancy.seeder.seed("2")

            tenant = CurrentTenant(tenant_id="2")
            client = await tenancy.provider.get(tenant)
            async with client.begin() as connection:
                await connection.execute(insert(post_table).values(id=10, title="legacy"))

            await tenancy.seeder.seed("2")

            rows = await fetch_all(tenancy, tenant, select(post_table.c.id, post_table.c.tenant_id))
            assert rows == [(10, "2")]
        finally:
            await tenancy.close()

    @pytest.mark.asyncio
    async def test_local_tenant_is_not_backfilled(self, make_tenancy):
        tenancy = make_tenancy()
        try:
            await tenancy.seeder.seed()
            await tenancy.seeder.seed("1")

            tenant = CurrentTenant(tenant_id="1")
            client = await tenancy.provider.get(tenant)
            async with client.begin() as connection:
                await connection.execute(insert(post_table).values(id=10, title="legacy"))

            await tenancy.seeder.seed("1")

            rows = await fetch_all(tenancy, tenant, select(post_table.c.tenant_id).where(post_table.c.id == 10))
            assert rows == [(None,)]
        finally:
            await tenancy.close()

    @pytest.mark.asyncio
    async def test_shared_mode_does_not_backfill_host_rows(self, make_tenancy):
        """Test that seeding a tenant in shared mode leaves host rows untouched."""
        tenancy = make_tenancy(TENANT_DB_MODE="shared")
        try:
            await tenancy.seeder.seed()
            await tenancy.directory.register("acme", tenant_id="2")
            await tenancy.seeder.seed("2")

            rows = await fetch_all(tenancy, CurrentTenant.host(), select(post_table.c.id, post_table.c.tenant_id))
            assert rows == [(1, None)]
        finally:
            await tenancy.close()

    @pytest.mark.asyncio
    async def test_seed_all_seeds_host_then_tenants(self, make_tenancy):
        tenancy = make_tenancy()
        try:
            assert await tenancy.seeder.seed_all() == ["host", "1"]
        finally:
            await tenancy.close()


def test_split_sql_statements_drops_blanks():
    assert split_sql_statements("a;\n\n b ;;") == ["a", "b"]


def test_dollar_quoted_detection():
    assert is_dollar_quoted("CREATE FUNCTION f() AS $$ SELECT 1; $$ LANGUAGE sql;")
    assert not is_dollar_quoted("SELECT 1;")
