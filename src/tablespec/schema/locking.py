"""
Single-writer locks for schema synchronisation.

Two processes synchronising the same table can both conclude a column is
missing and both issue ``ADD COLUMN``.  ``sync`` therefore runs under an
:class:`ISchemaLock`:

* :class:`InMemorySchemaLock` - one ``asyncio.Lock`` per table, for a
  single process and for tests.
* :class:`MySQLAdvisoryLock` - ``GET_LOCK``/``RELEASE_LOCK`` held on a
  dedicated connection for the whole synchronisation (MySQL named locks
  belong to the session that took them).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from sqlalchemy import text

from ..exceptions import SchemaLockError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger("tablespec.locking")

# Waiting budget for the schema lock; DDL on large tables can be slow.
DEFAULT_LOCK_TIMEOUT: float = 30.0


@runtime_checkable
class ISchemaLock(Protocol):
    """Serialises schema changes per table."""

    def hold(
        self, table: str, *, timeout: float = DEFAULT_LOCK_TIMEOUT
    ) -> contextlib.AbstractAsyncContextManager[None]:
        """
        Hold the lock for ``table`` for the duration of the ``async with``.

        Raises:
            SchemaLockError: The lock was not acquired within ``timeout``.
        """
        ...


class InMemorySchemaLock:
    """Per-process schema lock keyed by table name."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def locked(self, table: str) -> bool:
        lock = self._locks.get(table)
        return lock is not None and lock.locked()

    @contextlib.asynccontextmanager
    async def hold(
        self, table: str, *, timeout: float = DEFAULT_LOCK_TIMEOUT
    ) -> AsyncIterator[None]:
        lock = self._locks.setdefault(table, asyncio.Lock())
        try:
            await asyncio.wait_for(lock.acquire(), timeout=timeout)
        except asyncio.TimeoutError as err:
            logger.warning("Schema lock on %s timed out after %.1fs", table, timeout)
            raise SchemaLockError(table, timeout) from err
        logger.debug("Schema lock acquired: %s", table)
        try:
            yield
        finally:
            lock.release()
            logger.debug("Schema lock released: %s", table)


class MySQLAdvisoryLock:
    """Cross-process schema lock using MySQL named locks."""

    def __init__(self, engine: AsyncEngine, *, prefix: str = "tablespec.sync") -> None:
        self._engine = engine
        self._prefix = prefix

    def lock_name(self, table: str) -> str:
        # MySQL limits lock names to 64 characters
        return f"{self._prefix}:{table}"[:64]

    @contextlib.asynccontextmanager
    async def hold(
        self, table: str, *, timeout: float = DEFAULT_LOCK_TIMEOUT
    ) -> AsyncIterator[None]:
        name = self.lock_name(table)
        async with self._engine.connect() as conn:
            result = await conn.execute(
                text("SELECT GET_LOCK(:name, :timeout) AS acquired"),
                {"name": name, "timeout": int(timeout)},
            )
            acquired = result.scalar()
            if acquired != 1:
                reason = "timed out" if acquired == 0 else "server error"
                raise SchemaLockError(table, timeout, reason)
            logger.debug("Advisory lock acquired: %s", name)
            try:
                yield
            finally:
                await conn.execute(
                    text("SELECT RELEASE_LOCK(:name)"), {"name": name}
                )
                logger.debug("Advisory lock released: %s", name)
