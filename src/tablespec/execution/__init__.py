"""Statement execution: ports, retry policy, SQLAlchemy asyncio adapter."""

from __future__ import annotations

from .engine import SQLAlchemyExecutor
from .ports import (
    DEFAULT_STATEMENT_TIMEOUT,
    IQueryExecutor,
    ISchemaIntrospector,
    QueryResult,
)
from .retry import RetryPolicy

__all__ = [
    "DEFAULT_STATEMENT_TIMEOUT",
    "IQueryExecutor",
    "ISchemaIntrospector",
    "QueryResult",
    "RetryPolicy",
    "SQLAlchemyExecutor",
]
