"""Live structure introspection through ``INFORMATION_SCHEMA``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..query.sanitizer import Statement
from .columns import ColumnDescriptor, merge_descriptors

if TYPE_CHECKING:
    from ..execution.ports import IQueryExecutor

# An unset database resolves to the connection's current schema.
COLUMNS_QUERY = (
    "SELECT DISTINCT COLUMNS.ORDINAL_POSITION, COLUMNS.COLUMN_NAME, "
    "COLUMNS.COLUMN_TYPE, COLUMNS.IS_NULLABLE, COLUMNS.COLUMN_DEFAULT, "
    "COLUMNS.EXTRA, STATISTICS.INDEX_TYPE "
    "FROM INFORMATION_SCHEMA.COLUMNS "
    "LEFT JOIN INFORMATION_SCHEMA.STATISTICS "
    "ON COLUMNS.COLUMN_NAME = STATISTICS.COLUMN_NAME "
    "AND COLUMNS.TABLE_NAME = STATISTICS.TABLE_NAME "
    "AND COLUMNS.TABLE_SCHEMA = STATISTICS.TABLE_SCHEMA "
    "WHERE COLUMNS.TABLE_SCHEMA = COALESCE(:database, DATABASE()) "
    "AND COLUMNS.TABLE_NAME = :table "
    "ORDER BY COLUMNS.ORDINAL_POSITION"
)

ENGINE_QUERY = (
    "SELECT ENGINE FROM INFORMATION_SCHEMA.TABLES "
    "WHERE TABLE_SCHEMA = COALESCE(:database, DATABASE()) "
    "AND TABLE_NAME = :table LIMIT 1"
)


class InformationSchemaIntrospector:
    """:class:`ISchemaIntrospector` that queries through an executor."""

    def __init__(self, executor: IQueryExecutor) -> None:
        self._executor = executor

    async def columns(self, database: str | None, table: str) -> list[ColumnDescriptor]:
        result = await self._executor.execute(
            Statement(COLUMNS_QUERY, {"database": database, "table": table})
        )
        return merge_descriptors(result.rows)

    async def engine(self, database: str | None, table: str) -> str | None:
        result = await self._executor.execute(
            Statement(ENGINE_QUERY, {"database": database, "table": table})
        )
        value = result.scalar()
        return None if value is None else str(value)
