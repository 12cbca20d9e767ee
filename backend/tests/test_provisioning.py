"""
Tests for physical database provisioning.

The administrative engine is replaced with a fake that records the statements
it receives, so the PostgreSQL catalog check and CREATE DATABASE are observed
without a server.
"""

from contextlib import asynccontextmanager
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import DBAPIError, OperationalError

from saas.database.provisioning import (
    DatabaseProvisioner,
    is_duplicate_database_error,
    quote_identifier,
)
from saas.exceptions import MalformedConnectionStringError, StorageError

TENANT_DSN = "host=db user=u password=p dbname=shared-42 port=5432 sslmode=disable"


class FakePgError(Exception):
    def __init__(self, sqlstate):
        super().__init__(f"sqlstate {sqlstate}")
        self.sqlstate = sqlstate


class FakeConnection:
    def __init__(self, exists=False, create_error=None):
        self.exists = exists
        self.create_error = create_error
        self.statements = []

    async def execute(self, statement, params=None):
        sql = str(statement)
        self.statements.append(sql)
        result = MagicMock()
        if "pg_database" in sql:
            result.first.return_value = (1,) if self.exists else None
            return result
        if self.create_error is not None:
            raise self.create_error
        # the database exists from now on
        self.exists = True
        return result


class FakeEngine:
    def __init__(self, connection):
        self.connection = connection
        self.disposed = False

    @asynccontextmanager
    async def connect(self):
        yield self.connection

    async def dispose(self):
        self.disposed = True


class RecordingEngineFactory:
    """Returns one FakeEngine over a shared FakeConnection and records the call."""

    def __init__(self, connection):
        self.connection = connection
        self.engines = []
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        engine = FakeEngine(self.connection)
        self.engines.append(engine)
        return engine


def make_provisioner(connection):
    factory = RecordingEngineFactory(connection)
    return DatabaseProvisioner(admin_database="postgres", engine_factory=factory), factory


class TestEnsureExists:
    """Tests for ensure_exists."""

    @pytest.mark.asyncio
    async def test_creates_missing_database(self):
        """Test that a missing database is created on the maintenance connection."""
        connection = FakeConnection(exists=False)
        provisioner, factory = make_provisioner(connection)

        await provisioner.ensure_exists(TENANT_DSN)

        assert connection.statements[-1] == 'CREATE DATABASE "shared-42"'
        url, kwargs = factory.calls[0]
        assert url.database == "postgres"
        assert kwargs["isolation_level"] == "AUTOCOMMIT"
        assert all(engine.disposed for engine in factory.engines)

    @pytest.mark.asyncio
    async def test_idempotent(self):
        """Test that running twice issues CREATE DATABASE exactly once."""
        connection = FakeConnection(exists=False)
        provisioner, _ = make_provisioner(connection)

        await provisioner.ensure_exists(TENANT_DSN)
        await provisioner.ensure_exists(TENANT_DSN)

        creates = [s for s in connection.statements if s.startswith("CREATE DATABASE")]
        assert len(creates) == 1

    @pytest.mark.asyncio
    async def test_existing_database_is_left_alone(self):
        connection = FakeConnection(exists=True)
        provisioner, _ = make_provisioner(connection)

        await provisioner.ensure_exists(TENANT_DSN)

        assert not any(s.startswith("CREATE DATABASE") for s in connection.statements)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("sqlstate", ["42P04", "23505"])
    async def test_concurrent_creation_is_success(self, sqlstate):
        """Test that losing the creation race to another session is not an error."""
        error = DBAPIError("CREATE DATABASE", {}, FakePgError(sqlstate))
        connection = FakeConnection(exists=False, create_error=error)
        provisioner, _ = make_provisioner(connection)

        await provisioner.ensure_exists(TENANT_DSN)

    @pytest.mark.asyncio
    async def test_other_failure_raises_storage_error(self):
        cause = OperationalError("CREATE DATABASE", {}, FakePgError("53100"))
        connection = FakeConnection(exists=False, create_error=cause)
        provisioner, factory = make_provisioner(connection)

        with pytest.raises(StorageError) as exc_info:
            await provisioner.ensure_exists(TENANT_DSN)

        assert exc_info.value.__cause__ is cause
        assert all(engine.disposed for engine in factory.engines)

    @pytest.mark.asyncio
    async def test_connection_failure_raises_storage_error(self):
        class RefusingEngine(FakeEngine):
            @asynccontextmanager
            async def connect(self):
                raise ConnectionRefusedError("refused")
                yield

        provisioner = DatabaseProvisioner(
            engine_factory=lambda url, **kwargs: RefusingEngine(None)
        )

        with pytest.raises(StorageError):
            await provisioner.ensure_exists(TENANT_DSN)

    @pytest.mark.asyncio
    async def test_malformed_dsn_raises_before_connecting(self):
        factory = RecordingEngineFactory(FakeConnection())
        provisioner = DatabaseProvisioner(engine_factory=factory)

        with pytest.raises(MalformedConnectionStringError):
            await provisioner.ensure_exists("host=db user=u")

        assert factory.calls == []


class TestDatabaseExists:
    @pytest.mark.asyncio
    async def test_reports_catalog_result(self):
        provisioner, _ = make_provisioner(FakeConnection(exists=True))

        assert await provisioner.database_exists(TENANT_DSN) is True


def test_quote_identifier_escapes_quotes():
    assert quote_identifier('a"b') == '"a""b"'


def test_duplicate_error_detection():
    assert is_duplicate_database_error(DBAPIError("x", {}, FakePgError("42P04")))
    assert not is_duplicate_database_error(DBAPIError("x", {}, FakePgError("53100")))
