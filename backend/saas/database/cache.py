"""
Single-flight connection cache.

Maps a resolved connection string to the client opened for it. The cache is
the only shared mutable state of the data-access router and guarantees that at
most one client exists per connection string:

    - The first caller for a missing key starts the factory in its own task
      and records it as pending.
    - Concurrent callers for the same key await that same task; the factory
      runs exactly once and every waiter receives the same client, or the same
      CacheCreationError.
    - A failed creation is not cached: the pending entry is dropped and the
      next caller starts a fresh attempt.
    - Waiters await the task through ``asyncio.shield``, so a cancelled
      requester stops waiting without cancelling the creation other waiters
      depend on.

The cache belongs to one event loop and takes no locks: the check and the
insertion of a pending task happen without an intervening await.

Eviction:
    There is no automatic eviction. ``evict(key)`` disposes one client and
    ``flush()`` disposes all of them (shutdown and administrative cache-busting).

Usage:
    ```python
    cache = ConnectionCache(disposer=TenantClient.dispose)
    client = await cache.get_or_create(dsn, lambda: factory.open(dsn))
    ```
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from loguru import logger

from saas.database.dsn import redact_dsn
from saas.exceptions import CacheCreationError

ClientT = TypeVar("ClientT")


class ConnectionCache(Generic[ClientT]):
    """
    Keyed get-or-create cache with single-flight creation per key.

    Args:
        disposer: Optional coroutine function releasing a client's resources,
            called on eviction and flush.
    """

    def __init__(
        self, disposer: Callable[[ClientT], Awaitable[None]] | None = None
    ) -> None:
        self._clients: dict[str, ClientT] = {}
        self._pending: dict[str, asyncio.Task] = {}
        self._disposer = disposer

    def __contains__(self, key: str) -> bool:
        return key in self._clients

    def __len__(self) -> int:
        return len(self._clients)

    def get(self, key: str) -> ClientT | None:
        return self._clients.get(key)

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    async def get_or_create(
        self, key: str, factory: Callable[[], Awaitable[ClientT]]
    ) -> ClientT:
        """
        Return the client cached under ``key``, creating it with ``factory`` once.

        Raises:
            CacheCreationError: If the factory failed; raised to every caller
                that waited on that attempt, with the factory error as cause.
        """
        client = self._clients.get(key)
        if client is not None:
            return client

        task = self._pending.get(key)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._create(key, factory))
            task.add_done_callback(_retrieve_exception)
            self._pending[key] = task
        else:
            logger.debug(f"Joining in-flight client creation for {redact_dsn(key)}")

        return await asyncio.shield(task)

    async def _create(
        self, key: str, factory: Callable[[], Awaitable[ClientT]]
    ) -> ClientT:
        try:
            client = await factory()
            self._clients[key] = client
            return client
        except Exception as e:
            logger.error(f"Client creation failed for {redact_dsn(key)}: {e}")
            msg = f"Failed to open client for {redact_dsn(key)}: {e}"
            raise CacheCreationError(key, msg) from e
        finally:
            self._pending.pop(key, None)

    async def evict(self, key: str) -> bool:
        """Remove and dispose the client cached under ``key``. Returns True if one existed."""
        client = self._clients.pop(key, None)
        if client is None:
            return False
        await self._dispose(key, client)
        return True

    async def flush(self) -> int:
        """
        Dispose every cached client and empty the cache.

        In-flight creations are allowed to settle first, and the drain repeats
        until no client is cached or pending, so a creation started while
        earlier clients were being disposed is disposed too.

        Returns:
            Number of clients removed.
        """
        removed = 0
        while self._pending or self._clients:
            if self._pending:
                await asyncio.gather(
                    *(asyncio.shield(task) for task in list(self._pending.values())),
                    return_exceptions=True,
                )

            clients = list(self._clients.items())
            self._clients.clear()
            for key, client in clients:
                await self._dispose(key, client)
            removed += len(clients)

        logger.info(f"Flushed connection cache ({removed} clients)")
        return removed

    async def _dispose(self, key: str, client: ClientT) -> None:
        if self._disposer is None:
            return
        try:
            await self._disposer(client)
        except Exception as e:
            logger.warning(f"Error disposing client for {redact_dsn(key)}: {e}")


def _retrieve_exception(task: asyncio.Task) -> None:
    # every waiter may have been cancelled; mark the outcome as observed
    if not task.cancelled():
        task.exception()
