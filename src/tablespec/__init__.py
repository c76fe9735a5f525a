"""
tablespec — declarative-schema data access for MySQL.

A :class:`TableSpec` describes a table; :class:`SchemaSynchronizer`
reconciles the live table with it; :class:`PredicateCompiler` turns
nested filter mappings into bound-parameter ``WHERE`` clauses; and
:class:`Table` ties both to an executor as a small CRUD facade.
"""

from __future__ import annotations

from .exceptions import (
    DatabaseConnectionError,
    ExecutionError,
    FilterValidationError,
    SchemaAmbiguityError,
    SchemaError,
    SchemaLockError,
    SchemaSyncError,
    StatementTimeoutError,
    TableSpecError,
)
from .execution import (
    DEFAULT_STATEMENT_TIMEOUT,
    IQueryExecutor,
    ISchemaIntrospector,
    QueryResult,
    RetryPolicy,
    SQLAlchemyExecutor,
)
from .query import (
    DEFAULT_ORDER,
    CompiledPredicate,
    FilterValidator,
    PredicateCompiler,
    QueryAssembler,
    Statement,
    parse_filter,
)
from .schema import (
    ColumnDescriptor,
    InformationSchemaIntrospector,
    InMemorySchemaLock,
    ISchemaLock,
    MySQLAdvisoryLock,
    SchemaSynchronizer,
    SyncPlan,
    SyncReport,
    TableSpec,
    compute_sync_plan,
)
from .table import Table

__version__ = "0.1.0"

__all__ = [
    # Specification
    "TableSpec",
    "Table",
    # Schema
    "ColumnDescriptor",
    "InformationSchemaIntrospector",
    "SchemaSynchronizer",
    "SyncPlan",
    "SyncReport",
    "compute_sync_plan",
    "ISchemaLock",
    "InMemorySchemaLock",
    "MySQLAdvisoryLock",
    # Query
    "CompiledPredicate",
    "DEFAULT_ORDER",
    "FilterValidator",
    "PredicateCompiler",
    "QueryAssembler",
    "Statement",
    "parse_filter",
    # Execution
    "DEFAULT_STATEMENT_TIMEOUT",
    "IQueryExecutor",
    "ISchemaIntrospector",
    "QueryResult",
    "RetryPolicy",
    "SQLAlchemyExecutor",
    # Exceptions
    "TableSpecError",
    "FilterValidationError",
    "SchemaError",
    "SchemaSyncError",
    "SchemaAmbiguityError",
    "SchemaLockError",
    "ExecutionError",
    "StatementTimeoutError",
    "DatabaseConnectionError",
]
