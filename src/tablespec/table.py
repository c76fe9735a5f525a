"""
Table — CRUD facade over one :class:`TableSpec`.

Thin plumbing on top of the query assembler and the executor::

    table = Table(spec, SQLAlchemyExecutor(engine))
    await table.ensure()
    rows = await table.select({"status": ["open", "pending"], "/owner": 7})
    await table.save({"id": 3, "title": "Updated"})

Values written by ``insert``/``update``/``save`` are restricted to the
declared columns; ``dict`` and ``list`` values are stored as JSON.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any, Union

from .identifiers import qualified_table, quote_identifier
from .query.assembler import DEFAULT_ORDER, QueryAssembler, as_identifier
from .query.compiler import PredicateCompiler
from .query.sanitizer import ParameterBinder, Statement
from .query.validator import FilterValidator
from .schema import ddl
from .schema.synchronizer import SchemaSynchronizer

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .execution.ports import IQueryExecutor, QueryResult
    from .query.assembler import Limit
    from .schema.synchronizer import SyncReport
    from .schema.table import TableSpec

logger = logging.getLogger("tablespec.table")

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

FilterOrId = Union[Mapping[str, Any], int, str, None]


def _encode(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


class Table:
    """Access object for one table: schema management plus CRUD."""

    def __init__(
        self,
        spec: TableSpec,
        executor: IQueryExecutor,
        *,
        synchronizer: SchemaSynchronizer | None = None,
        compiler: PredicateCompiler | None = None,
        validator: FilterValidator | None = None,
    ) -> None:
        self.spec = spec
        self._executor = executor
        self._synchronizer = synchronizer or SchemaSynchronizer(executor)
        self._assembler = QueryAssembler(
            spec, compiler=compiler, validator=validator
        )
        self.last_query = ""
        self.insert_id: int | None = None
        self.affected_rows = 0
        self.changed_rows = 0

    @property
    def name(self) -> str:
        return self.spec.table

    @property
    def ref(self) -> str:
        return qualified_table(self.spec.table, self.spec.database)

    # -- schema -------------------------------------------------------------

    async def create(self) -> None:
        await self._synchronizer.create(self.spec)

    async def sync(self) -> SyncReport:
        return await self._synchronizer.sync(self.spec, seed=self.save)

    async def ensure(self) -> SyncReport:
        """Create the table when missing, then synchronise it."""
        return await self._synchronizer.ensure(self.spec, seed=self.save)

    async def truncate(self) -> QueryResult:
        return await self.query(ddl.truncate_table(self.spec.table, self.spec.database))

    async def drop(self) -> QueryResult:
        return await self.query(ddl.drop_table(self.spec.table, self.spec.database))

    # -- reads --------------------------------------------------------------

    async def select(
        self,
        filters: FilterOrId = None,
        order: Any = DEFAULT_ORDER,
        limit: Limit | None = None,
    ) -> list[dict[str, Any]]:
        statement = self._assembler.build_query(
            f"SELECT * FROM {self.ref}", filters, order, limit
        )
        return (await self.query(statement)).rows

    find = select

    async def get(self, row_id: int | str) -> dict[str, Any] | None:
        if as_identifier(row_id) is None:
            raise ValueError(f"Not a row id: {row_id!r}")
        statement = self._assembler.build_query(f"SELECT * FROM {self.ref}", row_id)
        return (await self.query(statement)).first()

    async def distinct(
        self,
        fields: str | Sequence[str],
        filters: Mapping[str, Any] | None = None,
        order: Any = DEFAULT_ORDER,
        group_by: Sequence[str] | None = None,
        limit: Limit | None = None,
    ) -> list[Any]:
        """
        ``SELECT DISTINCT`` over ``fields``.

        A single field name returns a flat list of values; a sequence of
        names returns row mappings.
        """
        names = [fields] if isinstance(fields, str) else list(fields)
        columns = ",".join(quote_identifier(f) for f in names)
        statement = self._assembler.build_query(
            f"SELECT DISTINCT {columns} FROM {self.ref}",
            filters,
            order,
            limit,
            group_by=group_by,
        )
        rows = (await self.query(statement)).rows
        if isinstance(fields, str):
            return [row.get(fields) for row in rows]
        return rows

    async def count(
        self,
        filters: Mapping[str, Any] | None = None,
        field: str | None = None,
        limit: Limit | None = None,
    ) -> Any:
        """
        Count rows.

        Without ``field`` returns an ``int``; with ``field`` returns
        ``[{field: value, "count": n}, ...]`` ordered by count descending.
        """
        if field is None:
            statement = self._assembler.build_query(
                f"SELECT COUNT(*) AS count FROM {self.ref}", filters, None
            )
            return int((await self.query(statement)).scalar() or 0)

        column = quote_identifier(field)
        statement = self._assembler.build_query(
            f"SELECT {column}, COUNT({column}) AS count FROM {self.ref}",
            filters,
            {"count": "DESC"},
            limit,
            group_by=[field],
        )
        return (await self.query(statement)).rows

    async def sum(self, field: str, filters: Mapping[str, Any] | None = None) -> Any:
        column = quote_identifier(field)
        statement = self._assembler.build_query(
            f"SELECT SUM({column}) AS sum FROM {self.ref}", filters, None
        )
        return (await self.query(statement)).scalar()

    # -- writes -------------------------------------------------------------

    async def insert(self, values: Mapping[str, Any]) -> QueryResult:
        row = self._declared(values)
        if not row:
            raise ValueError(f"Nothing to insert into {self.spec.table}")
        binder = ParameterBinder("v")
        columns = ", ".join(quote_identifier(c) for c in row)
        placeholders = ", ".join(binder.bind(_encode(v)) for v in row.values())
        return await self.query(
            Statement(
                f"INSERT INTO {self.ref}({columns}) VALUES ({placeholders})",
                binder.params,
            )
        )

    async def update(
        self, filters: FilterOrId, values: Mapping[str, Any]
    ) -> QueryResult:
        row = self._declared(values)
        if not row:
            raise ValueError(f"Nothing to update in {self.spec.table}")
        where = self._assembler.where(filters)
        if not where:
            raise ValueError("Refusing to update without a filter")
        binder = ParameterBinder("s")
        assignments = ", ".join(
            f"{quote_identifier(c)}={binder.bind(_encode(v))}" for c, v in row.items()
        )
        statement = Statement(
            f"UPDATE {self.ref} SET {assignments}", binder.params
        ).append(where)
        return await self.query(statement)

    async def delete(self, filters: FilterOrId) -> QueryResult:
        where = self._assembler.where(filters)
        if not where:
            raise ValueError("Refusing to delete without a filter")
        return await self.query(Statement(f"DELETE FROM {self.ref}").append(where))

    async def save(self, values: Mapping[str, Any]) -> QueryResult:
        """
        Upsert by ``id``.

        Stamps ``date_modified`` (and ``date_created`` on insert) when not
        supplied.  With an ``id`` that has no row yet, the row is inserted
        with that ``id``.
        """
        data = dict(values)
        row_id = data.pop("id", None)
        data.setdefault("date_modified", datetime.now().strftime(DATETIME_FORMAT))

        if row_id not in (None, "", 0) and await self.get(row_id) is not None:
            return await self.update(row_id, data)

        if row_id not in (None, "", 0):
            data["id"] = row_id
        data.setdefault("date_created", data["date_modified"])
        return await self.insert(data)

    # -- execution ----------------------------------------------------------

    async def query(self, statement: Statement | str) -> QueryResult:
        """Execute ``statement`` and record its bookkeeping."""
        stmt = statement if isinstance(statement, Statement) else Statement(statement)
        self.last_query = stmt.render()
        result = await self._executor.execute(stmt)
        if result.insert_id:
            self.insert_id = result.insert_id
        self.affected_rows = result.affected_rows
        self.changed_rows = result.changed_rows
        return result

    def _declared(self, values: Mapping[str, Any]) -> dict[str, Any]:
        declared = self.spec.fields
        row = {k: v for k, v in values.items() if k in declared}
        dropped = sorted(set(values) - set(row))
        if dropped:
            logger.warning(
                "Ignoring undeclared column(s) for %s: %s", self.spec.table, dropped
            )
        return row
