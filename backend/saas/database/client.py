"""
Client factory and request-bound database handles.

``ClientFactory.open`` turns a resolved connection string into a live pooled
``TenantClient`` (an async SQLAlchemy engine plus its session maker). The
client is shared by every request for the same connection string; each request
receives a lightweight ``BoundClient`` that carries the request's tenant and
connection key and opens sessions/connections from the shared pool.

Connection Pooling:
    - Pool size, overflow, timeout and recycle come from service settings
    - Pre-ping enabled for connection validation
    - ``sslmode`` and ``TimeZone`` DSN tokens map onto asyncpg connect arguments

Cancellation:
    Queries run in the requesting task, so cancelling a request cancels its
    in-flight statement and returns the connection to the pool. The pool itself
    is only disposed through the connection cache.

Usage:
    ```python
    async with bound_client.session() as session:
        result = await session.execute(select(posts_table))
    ```
"""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from loguru import logger
from sqlalchemy import Table, text
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from saas.config import BaseServiceSettings
from saas.database.dsn import dsn_to_url, extract_database_name, redact_dsn


class TenantClient:
    """
    A live pooled client for one connection string.

    Attributes:
        dsn (str): The resolved connection string the pool was opened for.
        engine (AsyncEngine): The pooled async engine.
    """

    def __init__(self, dsn: str, engine: AsyncEngine) -> None:
        self.dsn = dsn
        self.engine = engine
        self.session_maker = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )

    def bind(self, tenant_id: str, key: str, shared: bool = False) -> "BoundClient":
        return BoundClient(self, tenant_id, key, shared=shared)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info(f"Disposed database pool for '{extract_database_name(self.dsn)}'")


class BoundClient:
    """
    A per-request handle over a shared TenantClient.

    Binding never reopens the pool; it only records which tenant and connection
    key the request resolved so sessions and log lines carry that identity.

    A handle on the shared database (``tenant_scoped``) holds rows of several
    tenants. Handlers pass their statements through ``scope`` and their row
    values through ``stamp``; the host sees only rows with a null tenant_id.
    """

    def __init__(
        self, client: TenantClient, tenant_id: str, key: str, shared: bool = False
    ) -> None:
        self.client = client
        self.tenant_id = tenant_id
        self.key = key
        self.tenant_scoped = shared

    def scope(self, statement: Any, table: Table) -> Any:
        """Restrict a select, update or delete on ``table`` to this tenant's rows."""
        if not self.tenant_scoped or "tenant_id" not in table.c:
            return statement
        column = table.c.tenant_id
        if self.tenant_id:
            return statement.where(column == self.tenant_id)
        return statement.where(column.is_(None))

    def stamp(self, values: dict[str, Any]) -> dict[str, Any]:
        """Return row values carrying this tenant's id (unchanged for the host)."""
        if not self.tenant_id:
            return dict(values)
        return {**values, "tenant_id": self.tenant_id}

    @property
    def engine(self) -> AsyncEngine:
        return self.client.engine

    @property
    def dsn(self) -> str:
        return self.client.dsn

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Async session with commit on success and rollback on error.

        Yields:
            AsyncSession bound to the tenant's pool.
        """
        session = self.client.session_maker()
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error for tenant '{self.tenant_id or 'host'}': {e}")
            raise
        finally:
            await session.close()

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[AsyncConnection]:
        async with self.client.engine.connect() as connection:
            yield connection

    @asynccontextmanager
    async def begin(self) -> AsyncIterator[AsyncConnection]:
        """Connection inside a transaction that commits on successful exit."""
        async with self.client.engine.begin() as connection:
            yield connection


class ClientFactory:
    """
    Opens pooled clients for resolved connection strings.

    Args:
        settings: Service settings providing pool configuration.
        engine_factory: Callable building an async engine; defaults to
            ``create_async_engine``.

    Note:
        - ``open`` verifies the pool with ``SELECT 1`` before returning
        - Driver errors surface unchanged; nothing is retried here
    """

    def __init__(
        self,
        settings: BaseServiceSettings,
        engine_factory: Callable[..., Any] = create_async_engine,
    ) -> None:
        self.settings = settings
        self._engine_factory = engine_factory

    async def open(self, dsn: str) -> TenantClient:
        url, connect_args = dsn_to_url(dsn)
        connect_args["timeout"] = self.settings.DATABASE_CONNECT_TIMEOUT

        engine = self._engine_factory(
            url,
            pool_size=self.settings.DATABASE_POOL_SIZE,
            max_overflow=self.settings.DATABASE_MAX_OVERFLOW,
            pool_timeout=self.settings.DATABASE_POOL_TIMEOUT,
            pool_recycle=self.settings.DATABASE_POOL_RECYCLE,
            pool_pre_ping=True,
            echo=self.settings.DATABASE_ECHO,
            connect_args=connect_args,
        )

        try:
            async with engine.connect() as connection:
                await connection.execute(text("SELECT 1"))
        except BaseException:
            await engine.dispose()
            raise

        logger.info(
            f"Opened database pool for {redact_dsn(dsn)} with "
            f"pool_size={self.settings.DATABASE_POOL_SIZE}, "
            f"max_overflow={self.settings.DATABASE_MAX_OVERFLOW}"
        )
        return TenantClient(dsn, engine)
