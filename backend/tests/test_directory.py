"""
Tests for the tenant directory on a SQLite host database.
"""

import pytest

from saas.exceptions import StorageError, TenantAlreadyExistsError, TenantNotFoundError


class TestTenantDirectory:
    """Tests for lookup, listing and registration."""

    @pytest.mark.asyncio
    async def test_lookup_by_name_and_id(self, make_tenancy, sample_tenant_id):
        tenancy = make_tenancy()
        try:
            await tenancy.seeder.seed()
            await tenancy.directory.register(
                "Acme",
                namespace="masjid",
                conn={"default": "host=db dbname=acme"},
                tenant_id=sample_tenant_id,
                keycloak_client_id="acme-client",
            )

            by_name = await tenancy.directory.lookup("acme")
            by_id = await tenancy.directory.lookup(sample_tenant_id)

            assert by_name == by_id
            assert by_name.name == "acme"
            assert by_name.namespace == "masjid"
            assert by_name.conn == {"default": "host=db dbname=acme"}
            assert by_name.keycloak_client_id == "acme-client"
            assert by_name.created_at is not None
        finally:
            await tenancy.close()

    @pytest.mark.asyncio
    async def test_unknown_tenant_raises_not_found(self, make_tenancy):
        tenancy = make_tenancy()
        try:
            await tenancy.seeder.seed()

            with pytest.raises(TenantNotFoundError) as exc_info:
                await tenancy.directory.lookup("nobody")

            assert exc_info.value.name_or_id == "nobody"
        finally:
            await tenancy.close()

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self, make_tenancy):
        tenancy = make_tenancy()
        try:
            await tenancy.seeder.seed()
            await tenancy.directory.register("acme")

            with pytest.raises(TenantAlreadyExistsError):
                await tenancy.directory.register("ACME")
        finally:
            await tenancy.close()

    @pytest.mark.asyncio
    async def test_list_includes_host_record(self, make_tenancy):
        tenancy = make_tenancy()
        try:
            await tenancy.seeder.seed()
            await tenancy.directory.register("zakat")

            names = [record.name for record in await tenancy.directory.list_tenants()]

            assert names == ["host", "zakat"]
        finally:
            await tenancy.close()

    @pytest.mark.asyncio
    async def test_missing_schema_is_storage_error(self, make_tenancy):
        """Test that query failures surface as StorageError, not as not-found."""
        tenancy = make_tenancy()
        try:
            with pytest.raises(StorageError):
                await tenancy.directory.lookup("acme")
        finally:
            await tenancy.close()
