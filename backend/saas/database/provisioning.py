"""
Physical database provisioning for database-per-tenant isolation.

This module creates tenant databases on demand. Given a tenant connection
string it derives the target database name, connects to the *server* through
the maintenance database, checks ``pg_database`` and issues ``CREATE DATABASE``
when the database is missing.

Idempotency:
    ``ensure_exists`` is safe to call any number of times, including from
    concurrent requests racing to provision the same tenant. A concurrent
    creation surfaces as PostgreSQL error 42P04 (duplicate_database) or, when
    both sessions pass the catalog check, 23505 on ``pg_database_datname_index``;
    both are treated as success.

Failure:
    Any other I/O failure on the administrative connection raises StorageError.
    Nothing is retried here; retry policy belongs to the caller.

Usage:
    ```python
    from saas.database.provisioning import DatabaseProvisioner

    provisioner = DatabaseProvisioner(admin_database="postgres")
    await provisioner.ensure_exists(
        "host=db user=u password=p dbname=pgsql-saas-42 sslmode=disable"
    )
    ```
"""

from collections.abc import Callable
from typing import Any

from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from saas.database.dsn import dsn_to_url, extract_database_name, without_database_name
from saas.exceptions import StorageError

DUPLICATE_DATABASE_SQLSTATES = ("42P04", "23505")


def quote_identifier(name: str) -> str:
    """Quote a PostgreSQL identifier, doubling embedded quotes."""
    return '"' + name.replace('"', '""') + '"'


def is_duplicate_database_error(error: DBAPIError) -> bool:
    """Check whether a CREATE DATABASE failure means another session won the race."""
    original = getattr(error, "orig", None)
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if sqlstate in DUPLICATE_DATABASE_SQLSTATES:
        return True
    error_str = str(error)
    return "42P04" in error_str or "already exists" in error_str.lower()


class DatabaseProvisioner:
    """
    Ensures the database named by a connection string exists on its server.

    Args:
        admin_database: Maintenance database used for the administrative
            connection. Default: "postgres".
        connect_timeout: Seconds to wait for the administrative connection.
        engine_factory: Callable building an async engine from a URL; defaults to
            ``sqlalchemy.ext.asyncio.create_async_engine``.
    """

    def __init__(
        self,
        admin_database: str = "postgres",
        connect_timeout: int = 10,
        engine_factory: Callable[..., Any] = create_async_engine,
    ) -> None:
        self.admin_database = admin_database
        self.connect_timeout = connect_timeout
        self._engine_factory = engine_factory

    def _admin_engine(self, dsn: str) -> Any:
        url, connect_args = dsn_to_url(
            without_database_name(dsn), database_name=self.admin_database
        )
        connect_args["timeout"] = self.connect_timeout
        # CREATE DATABASE cannot run inside a transaction block
        return self._engine_factory(
            url,
            isolation_level="AUTOCOMMIT",
            poolclass=NullPool,
            connect_args=connect_args,
        )

    async def database_exists(self, dsn: str) -> bool:
        """
        Check whether the database named by ``dsn`` exists.

        Raises:
            MalformedConnectionStringError: If ``dsn`` has no dbname.
            StorageError: If the server cannot be queried.
        """
        db_name = extract_database_name(dsn)
        engine = self._admin_engine(dsn)
        try:
            async with engine.connect() as connection:
                return await self._exists(connection, db_name)
        except (SQLAlchemyError, OSError) as e:
            msg = f"Error checking if database '{db_name}' exists: {e}"
            raise StorageError(msg) from e
        finally:
            await engine.dispose()

    async def ensure_exists(self, dsn: str) -> None:
        """
        Create the database named by ``dsn`` unless it already exists.

        Raises:
            MalformedConnectionStringError: If ``dsn`` has no dbname.
            StorageError: If the existence check or creation fails for any
                reason other than a concurrent creation of the same database.
        """
        db_name = extract_database_name(dsn)
        engine = self._admin_engine(dsn)
        try:
            async with engine.connect() as connection:
                if await self._exists(connection, db_name):
                    logger.debug(f"Database '{db_name}' already exists.")
                    return

                logger.info(f"Creating tenant database '{db_name}'...")
                try:
                    await connection.execute(
                        text(f"CREATE DATABASE {quote_identifier(db_name)}")
                    )
                except DBAPIError as e:
                    if not is_duplicate_database_error(e):
                        raise
                    logger.info(
                        f"Database '{db_name}' already exists (concurrent creation detected)."
                    )
                    return
                logger.info(f"Database '{db_name}' created successfully.")
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Error provisioning database '{db_name}': {e}")
            msg = f"Failed to provision database '{db_name}'"
            raise StorageError(msg) from e
        finally:
            await engine.dispose()

    @staticmethod
    async def _exists(connection: Any, db_name: str) -> bool:
        result = await connection.execute(
            text("SELECT 1 FROM pg_database WHERE datname = :database_name"),
            {"database_name": db_name},
        )
        return result.first() is not None
