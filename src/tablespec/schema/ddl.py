"""DDL statement rendering (MySQL dialect)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..identifiers import qualified_table, quote_identifier

if TYPE_CHECKING:
    from .table import TableSpec


def create_table(spec: TableSpec) -> str:
    """
    ``CREATE TABLE IF NOT EXISTS`` for ``spec``.

    Column clauses come first in declaration order, followed by the key
    clause (verbatim) and one ``FULLTEXT`` index per full-text column, each
    named after its column as ``ADD FULLTEXT`` would name it.
    """
    clauses = [
        f"{quote_identifier(name)} {descriptor}"
        for name, descriptor in spec.fields.items()
    ]
    if spec.key:
        clauses.append(spec.key)
    clauses.extend(f"FULLTEXT ({quote_identifier(name)})" for name in spec.fulltext)
    return (
        f"CREATE TABLE IF NOT EXISTS {qualified_table(spec.table, spec.database)} "
        f"({', '.join(clauses)}) ENGINE={spec.engine}"
    )


def add_column(table: str, database: str | None, column: str, descriptor: str) -> str:
    return (
        f"ALTER TABLE {qualified_table(table, database)} "
        f"ADD COLUMN {quote_identifier(column)} {descriptor}"
    )


def drop_column(table: str, database: str | None, column: str) -> str:
    return (
        f"ALTER TABLE {qualified_table(table, database)} "
        f"DROP COLUMN {quote_identifier(column)}"
    )


def modify_column(
    table: str, database: str | None, column: str, descriptor: str
) -> str:
    return (
        f"ALTER TABLE {qualified_table(table, database)} "
        f"MODIFY COLUMN {quote_identifier(column)} {descriptor}"
    )


def add_fulltext(table: str, database: str | None, column: str) -> str:
    return (
        f"ALTER TABLE {qualified_table(table, database)} "
        f"ADD FULLTEXT({quote_identifier(column)})"
    )


def drop_index(table: str, database: str | None, index: str) -> str:
    return (
        f"ALTER TABLE {qualified_table(table, database)} "
        f"DROP INDEX {quote_identifier(index)}"
    )


def alter_engine(table: str, database: str | None, engine: str) -> str:
    return f"ALTER TABLE {qualified_table(table, database)} ENGINE={engine}"


def truncate_table(table: str, database: str | None = None) -> str:
    return f"TRUNCATE TABLE {qualified_table(table, database)}"


def drop_table(table: str, database: str | None = None) -> str:
    return f"DROP TABLE {qualified_table(table, database)}"
