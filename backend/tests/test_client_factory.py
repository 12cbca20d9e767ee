"""
Tests for ClientFactory and request-bound clients.
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import select, text

from saas.database.client import BoundClient, ClientFactory, TenantClient
from saas.models import post_table


class RecordingFactory:
    def __init__(self, inner):
        self.inner = inner
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.inner(url, **kwargs)


class TestClientFactory:
    """Tests for ClientFactory.open."""

    @pytest.mark.asyncio
    async def test_open_passes_pool_settings(self, sqlite_factory, make_settings):
        """Test that pool configuration and connect args reach the engine."""
        settings = make_settings(DATABASE_POOL_SIZE=3, DATABASE_MAX_OVERFLOW=1)
        recorder = RecordingFactory(sqlite_factory)
        factory = ClientFactory(settings, engine_factory=recorder)

        client = await factory.open("host=db user=u password=p dbname=tenant-a sslmode=disable")
        try:
            url, kwargs = recorder.calls[0]
            assert url.database == "tenant-a"
            assert kwargs["pool_size"] == 3
            assert kwargs["max_overflow"] == 1
            assert kwargs["pool_pre_ping"] is True
            assert kwargs["connect_args"]["ssl"] is False
            assert kwargs["connect_args"]["timeout"] == settings.DATABASE_CONNECT_TIMEOUT
            assert isinstance(client, TenantClient)
        finally:
            await client.dispose()

    @pytest.mark.asyncio
    async def test_open_failure_surfaces_driver_error(self, make_settings):
        """Test that a failing verification query propagates and disposes the engine."""
        disposed = []

        class BrokenEngine:
            def connect(self):
                raise ConnectionRefusedError("refused")

            async def dispose(self):
                disposed.append(True)

        factory = ClientFactory(make_settings(), engine_factory=lambda url, **kw: BrokenEngine())

        with pytest.raises(ConnectionRefusedError):
            await factory.open("host=db dbname=x")

        assert disposed == [True]

    @pytest.mark.asyncio
    async def test_bind_shares_the_pool(self, sqlite_factory, make_settings):
        """Test that binding per request reuses the same engine."""
        factory = ClientFactory(make_settings(), engine_factory=sqlite_factory)
        client = await factory.open("host=db dbname=tenant-b")
        try:
            first = client.bind("a", "default")
            second = client.bind("b", "reporting")

            assert first.engine is second.engine
            assert (first.tenant_id, second.key) == ("a", "reporting")

            async with first.session() as session:
                result = await session.execute(text("SELECT 1"))
                assert result.scalar() == 1
        finally:
            await client.dispose()


class TestTenantScoping:
    """Tests for BoundClient scoping on the shared database."""

    def test_shared_handle_filters_by_tenant(self):
        handle = BoundClient(MagicMock(), "acme-id", "default", shared=True)

        statement = handle.scope(select(post_table), post_table)

        assert statement.compile().params == {"tenant_id_1": "acme-id"}
        assert "post.tenant_id = " in str(statement)

    def test_shared_host_handle_sees_untagged_rows(self):
        handle = BoundClient(MagicMock(), "", "default", shared=True)

        assert "post.tenant_id IS NULL" in str(handle.scope(select(post_table), post_table))

    def test_own_database_is_not_filtered(self):
        handle = BoundClient(MagicMock(), "acme-id", "default")
        statement = select(post_table)

        assert handle.scope(statement, post_table) is statement

    def test_stamp_sets_tenant_id(self):
        tenant = BoundClient(MagicMock(), "acme-id", "default", shared=True)
        host = BoundClient(MagicMock(), "", "default", shared=True)

        assert tenant.stamp({"id": 1})["tenant_id"] == "acme-id"
        assert "tenant_id" not in host.stamp({"id": 1})
