"""Tests for InformationSchemaIntrospector."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from tablespec.execution.ports import ISchemaIntrospector, QueryResult
from tablespec.schema.introspection import (
    COLUMNS_QUERY,
    ENGINE_QUERY,
    InformationSchemaIntrospector,
)


@pytest.mark.asyncio
async def test_columns_merges_index_rows() -> None:
    executor = AsyncMock()
    executor.execute.return_value = QueryResult(
        rows=[
            {
                "ORDINAL_POSITION": 1,
                "COLUMN_NAME": "body",
                "COLUMN_TYPE": "text",
                "IS_NULLABLE": "YES",
                "COLUMN_DEFAULT": None,
                "EXTRA": "",
                "INDEX_TYPE": None,
            },
            {
                "ORDINAL_POSITION": 1,
                "COLUMN_NAME": "body",
                "COLUMN_TYPE": "text",
                "IS_NULLABLE": "YES",
                "COLUMN_DEFAULT": None,
                "EXTRA": "",
                "INDEX_TYPE": "FULLTEXT",
            },
        ]
    )
    introspector = InformationSchemaIntrospector(executor)

    columns = await introspector.columns("blog", "posts")

    assert len(columns) == 1
    assert columns[0].is_fulltext
    statement = executor.execute.await_args.args[0]
    assert statement.sql == COLUMNS_QUERY
    assert statement.params == {"database": "blog", "table": "posts"}


@pytest.mark.asyncio
async def test_engine() -> None:
    executor = AsyncMock()
    executor.execute.return_value = QueryResult(rows=[{"ENGINE": "InnoDB"}])
    introspector = InformationSchemaIntrospector(executor)

    assert await introspector.engine(None, "posts") == "InnoDB"
    statement = executor.execute.await_args.args[0]
    assert statement.sql == ENGINE_QUERY
    assert statement.params == {"database": None, "table": "posts"}


@pytest.mark.asyncio
async def test_engine_of_missing_table() -> None:
    executor = AsyncMock()
    executor.execute.return_value = QueryResult()
    assert await InformationSchemaIntrospector(executor).engine(None, "x") is None


def test_implements_protocol() -> None:
    assert isinstance(InformationSchemaIntrospector(AsyncMock()), ISchemaIntrospector)


def test_query_result_helpers() -> None:
    result = QueryResult(rows=[{"count": 3, "x": 1}])
    assert result.first() == {"count": 3, "x": 1}
    assert result.scalar() == 3
    assert QueryResult().first() is None
    assert QueryResult().scalar() is None
