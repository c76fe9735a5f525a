"""Executor and introspection ports consumed by the core."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..query.sanitizer import Statement
    from ..schema.columns import ColumnDescriptor

# Per-statement ceiling, in seconds.
DEFAULT_STATEMENT_TIMEOUT: float = 40.0


@dataclass(frozen=True)
class QueryResult:
    """Outcome of one executed statement."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    insert_id: int | None = None
    affected_rows: int = 0
    changed_rows: int = 0

    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None

    def scalar(self) -> Any:
        row = self.first()
        if not row:
            return None
        return next(iter(row.values()))


@runtime_checkable
class IQueryExecutor(Protocol):
    """
    Runs one statement and returns a :class:`QueryResult`.

    Implementations own connection acquisition (and its retries); query
    failures surface as :class:`~tablespec.exceptions.ExecutionError`,
    timeouts as :class:`~tablespec.exceptions.StatementTimeoutError`.
    """

    async def execute(
        self,
        statement: Statement | str,
        *,
        timeout: float | None = None,
    ) -> QueryResult: ...


@runtime_checkable
class ISchemaIntrospector(Protocol):
    """Reads live table structure."""

    async def columns(
        self, database: str | None, table: str
    ) -> list[ColumnDescriptor]: ...

    async def engine(self, database: str | None, table: str) -> str | None: ...
