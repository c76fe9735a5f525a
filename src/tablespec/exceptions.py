"""
Exception hierarchy for tablespec.

All exceptions inherit from ``TableSpecError`` and provide ``to_dict()``
for API-friendly error responses.  Errors raised for statements carry the
offending statement text so failures can be diagnosed from logs alone.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .schema.plan import SyncIntent


class TableSpecError(Exception):
    """Root exception for the tablespec package."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class FilterValidationError(TableSpecError):
    """
    A filter references a field the table does not declare.

    Uses fuzzy matching to suggest similar declared field names.
    """

    def __init__(
        self,
        invalid_field: str,
        table: str,
        available_fields: list[str],
        cutoff: float = 0.6,
    ) -> None:
        self.invalid_field = invalid_field
        self.table = table
        self.available_fields = available_fields
        self.suggestions = get_close_matches(
            invalid_field.lstrip("/"), available_fields, n=3, cutoff=cutoff
        )

        message = f"Unknown filter field '{invalid_field}' on table '{table}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "FILTER_VALIDATION_ERROR",
            "field": self.invalid_field,
            "table": self.table,
            "suggestions": self.suggestions,
            "available_fields": sorted(self.available_fields),
        }


class SchemaError(TableSpecError):
    """Base class for schema reconciliation errors."""


class SchemaSyncError(SchemaError):
    """A DDL intent failed; the remaining plan for the table was aborted."""

    def __init__(
        self,
        intent: SyncIntent,
        statement: str,
        cause: BaseException | None = None,
    ) -> None:
        self.intent = intent
        self.statement = statement
        self.cause = cause
        message = f"Schema sync failed on {intent.describe()}: {statement}"
        if cause is not None:
            message += f" ({cause})"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "SCHEMA_SYNC_ERROR",
            "intent": self.intent.describe(),
            "statement": self.statement,
            "cause": str(self.cause) if self.cause is not None else None,
        }


class SchemaAmbiguityError(SchemaError):
    """A live column cannot be reconciled without risking data loss."""

    def __init__(self, table: str, column: str, live: str, declared: str) -> None:
        self.table = table
        self.column = column
        self.live = live
        self.declared = declared
        super().__init__(
            f"Refusing lossy change of `{table}`.`{column}` "
            f"from '{live}' to '{declared}'"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "SCHEMA_AMBIGUITY_ERROR",
            "table": self.table,
            "column": self.column,
            "live": self.live,
            "declared": self.declared,
        }


class SchemaLockError(SchemaError):
    """The single-writer schema lock for a table could not be acquired."""

    def __init__(self, table: str, timeout: float, reason: str | None = None) -> None:
        self.table = table
        self.timeout = timeout
        self.reason = reason
        msg = f"Failed to acquire schema lock on {table} within {timeout}s"
        if reason:
            msg += f" - {reason}"
        super().__init__(msg)


class ExecutionError(TableSpecError):
    """The executor reported a failure for a statement."""

    def __init__(
        self,
        statement: str,
        cause: BaseException | None = None,
        message: str | None = None,
    ) -> None:
        self.statement = statement
        self.cause = cause
        super().__init__(message or f"Query failed: {cause} [{statement}]")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "EXECUTION_ERROR",
            "statement": self.statement,
            "cause": str(self.cause) if self.cause is not None else None,
        }


class StatementTimeoutError(ExecutionError):
    """A statement exceeded its timeout budget."""

    def __init__(self, statement: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(
            statement,
            message=f"Statement exceeded {timeout}s timeout [{statement}]",
        )


class DatabaseConnectionError(TableSpecError):
    """A connection could not be acquired after all retries were exhausted."""

    def __init__(self, attempts: int, cause: BaseException | None = None) -> None:
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            f"Could not connect to the database after {attempts} attempt(s): {cause}"
        )


__all__: list[str] = [
    "DatabaseConnectionError",
    "ExecutionError",
    "FilterValidationError",
    "SchemaAmbiguityError",
    "SchemaError",
    "SchemaLockError",
    "SchemaSyncError",
    "StatementTimeoutError",
    "TableSpecError",
]
