"""
SQLAlchemy asyncio implementation of the executor port.

Statements are executed through :func:`sqlalchemy.text` with their bound
parameters; each runs on its own pooled connection under a timeout
budget and is committed on success.  Connection acquisition is retried
according to a :class:`RetryPolicy`; statement failures are not retried.

Usage::

    engine = create_async_engine("mysql+aiomysql://user:pw@host/shop")
    executor = SQLAlchemyExecutor(engine)
    result = await executor.execute(Statement("SELECT 1 AS one"))
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from sqlalchemy import text
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError

from ..exceptions import DatabaseConnectionError, ExecutionError, StatementTimeoutError
from ..query.sanitizer import as_statement
from .ports import DEFAULT_STATEMENT_TIMEOUT, QueryResult
from .retry import RetryPolicy

if TYPE_CHECKING:
    from sqlalchemy.engine import CursorResult
    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

    from ..query.sanitizer import Statement

logger = logging.getLogger("tablespec.executor")

_CONNECT_ERRORS = (OperationalError, InterfaceError, OSError)


def _escape_colons(sql: str) -> str:
    # text() would read ":name" inside literals as a bind parameter
    return sql.replace(":", "\\:")


class SQLAlchemyExecutor:
    """:class:`IQueryExecutor` backed by an ``AsyncEngine``."""

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        statement_timeout: float = DEFAULT_STATEMENT_TIMEOUT,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        if statement_timeout <= 0:
            raise ValueError("statement_timeout must be > 0")
        self._engine = engine
        self._timeout = statement_timeout
        self._retry = retry_policy or RetryPolicy()

    async def execute(
        self,
        statement: Statement | str,
        *,
        timeout: float | None = None,
    ) -> QueryResult:
        stmt = as_statement(statement)
        budget = timeout if timeout is not None else self._timeout
        logger.debug("Executing: %s", stmt.render())

        conn = await self._connect()
        start = time.perf_counter()
        try:
            result = await asyncio.wait_for(self._run(conn, stmt), timeout=budget)
        except asyncio.TimeoutError as err:
            await self._rollback(conn)
            logger.error("Statement timed out after %.1fs: %s", budget, stmt.render())
            raise StatementTimeoutError(stmt.render(), budget) from err
        except SQLAlchemyError as err:
            await self._rollback(conn)
            logger.exception("Query failed: %s", stmt.render())
            raise ExecutionError(stmt.render(), err) from err
        finally:
            await conn.close()

        logger.debug(
            "Statement completed in %.2fms", (time.perf_counter() - start) * 1000
        )
        return result

    async def _connect(self) -> AsyncConnection:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._engine.connect()
            except _CONNECT_ERRORS as err:
                if not self._retry.should_retry(attempt):
                    logger.error(
                        "Connection failed after %d attempt(s): %s", attempt, err
                    )
                    raise DatabaseConnectionError(attempt, err) from err
                logger.warning(
                    "Connection attempt %d/%d failed: %s",
                    attempt,
                    self._retry.max_attempts,
                    err,
                )
                await self._retry.wait(attempt)

    async def _run(self, conn: AsyncConnection, stmt: Statement) -> QueryResult:
        sql = stmt.sql if stmt.params else _escape_colons(stmt.sql)
        cursor: CursorResult[Any] = await conn.execute(text(sql), dict(stmt.params))
        rows: list[dict[str, Any]] = []
        if cursor.returns_rows:
            rows = [dict(row) for row in cursor.mappings().all()]
        insert_id = None
        if stmt.sql.lstrip().upper().startswith("INSERT"):
            insert_id = cursor.lastrowid
        affected = max(cursor.rowcount, 0) if not cursor.returns_rows else 0
        await conn.commit()
        # the DBAPI reports matched rows; MySQL's changed-row count is not exposed
        return QueryResult(
            rows=rows,
            insert_id=insert_id,
            affected_rows=affected,
            changed_rows=affected,
        )

    @staticmethod
    async def _rollback(conn: AsyncConnection) -> None:
        try:
            await conn.rollback()
        except SQLAlchemyError:
            logger.warning("Rollback failed", exc_info=True)
