"""Shared fixtures: an in-memory stand-in for a MySQL server."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import pytest

from tablespec import QueryResult, TableSpec
from tablespec.exceptions import ExecutionError
from tablespec.query.sanitizer import Statement, as_statement

_NAMES_RE = re.compile(r"`([^`]+)`")
_CREATE_RE = re.compile(
    r"^CREATE TABLE IF NOT EXISTS (?P<ref>\S+) "
    r"\((?P<body>.*)\) ENGINE=(?P<engine>\w+)$",
    re.DOTALL,
)
_ALTER_RE = re.compile(r"^ALTER TABLE (?P<ref>\S+) (?P<action>.+)$", re.DOTALL)
_ADD_RE = re.compile(r"^ADD COLUMN `(?P<col>[^`]+)` (?P<desc>.+)$", re.DOTALL)
_DROP_RE = re.compile(r"^DROP COLUMN `(?P<col>[^`]+)`$")
_MODIFY_RE = re.compile(r"^MODIFY COLUMN `(?P<col>[^`]+)` (?P<desc>.+)$", re.DOTALL)
_ADD_FULLTEXT_RE = re.compile(r"^ADD FULLTEXT\(`(?P<col>[^`]+)`\)$")
_DROP_INDEX_RE = re.compile(r"^DROP INDEX `(?P<col>[^`]+)`$")
_ENGINE_RE = re.compile(r"^ENGINE=(?P<engine>\w+)$")
_DESCRIPTOR_RE = re.compile(
    r"^(?P<type>.+?)(?P<nn> NOT NULL)?(?: DEFAULT '(?P<default>[^']*)')?"
    r"(?: (?P<extra>[A-Za-z_ ]+))?$"
)
_INSERT_RE = re.compile(
    r"^INSERT INTO (?P<ref>[^(\s]+)\((?P<cols>[^)]*)\) VALUES \((?P<vals>.*)\)$"
)
_UPDATE_RE = re.compile(r"^UPDATE (?P<ref>\S+) SET (?P<sets>.+) WHERE `id`=:id$")
_GET_RE = re.compile(r"^SELECT \* FROM (?P<ref>\S+) WHERE `id`=:id LIMIT 1$")


class DriverError(Exception):
    """Mimics a DBAPI error: ``args == (errno, message)``."""


def _table_name(ref: str) -> str:
    return _NAMES_RE.findall(ref)[-1]


def _split_clauses(body: str) -> list[str]:
    clauses: list[str] = []
    depth, quoted, current = 0, False, []
    for ch in body:
        if ch == "'":
            quoted = not quoted
        elif not quoted and ch == "(":
            depth += 1
        elif not quoted and ch == ")":
            depth -= 1
        elif not quoted and depth == 0 and ch == ",":
            clauses.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    if "".join(current).strip():
        clauses.append("".join(current).strip())
    return clauses


@dataclass
class LiveColumn:
    descriptor: str
    index: str | None = None

    @property
    def fulltext(self) -> bool:
        return self.index is not None

    def row(self, name: str) -> dict[str, Any]:
        match = _DESCRIPTOR_RE.match(self.descriptor.strip())
        assert match is not None, self.descriptor
        return {
            "COLUMN_NAME": name,
            "COLUMN_TYPE": match.group("type").lower(),
            "IS_NULLABLE": "NO" if match.group("nn") else "YES",
            "COLUMN_DEFAULT": match.group("default"),
            "EXTRA": (match.group("extra") or "").lower(),
            "INDEX_TYPE": "FULLTEXT" if self.fulltext else None,
        }


@dataclass
class LiveTable:
    engine: str
    columns: dict[str, LiveColumn] = field(default_factory=dict)
    rows: dict[int, dict[str, Any]] = field(default_factory=dict)
    next_id: int = 1


class FakeMySQL:
    """
    Executor that keeps a table catalogue in memory.

    Understands the DDL the library emits, the ``INFORMATION_SCHEMA``
    queries, and the single-row DML used for seeding.  Every executed
    statement is recorded in ``statements``.
    """

    def __init__(self) -> None:
        self.tables: dict[str, LiveTable] = {}
        self.statements: list[Statement] = []
        self._failures: list[tuple[str, Exception]] = []
        self._hooks: list[tuple[str, Any]] = []

    # -- test controls ---------------------------------------------------------

    def fail_on(self, fragment: str, error: Exception | None = None) -> None:
        """Fail the next statement containing ``fragment``."""
        self._failures.append((fragment, error or DriverError(1064, "syntax error")))

    def before(self, fragment: str, callback: Any) -> None:
        """Run ``callback`` once before the next statement containing ``fragment``."""
        self._hooks.append((fragment, callback))

    @property
    def sql(self) -> list[str]:
        return [s.sql for s in self.statements]

    @property
    def ddl(self) -> list[str]:
        return [s for s in self.sql if s.startswith(("CREATE", "ALTER"))]

    def clear(self) -> None:
        self.statements.clear()

    def add_table(
        self,
        name: str,
        columns: dict[str, str],
        *,
        engine: str = "InnoDB",
        fulltext: tuple[str, ...] = (),
    ) -> LiveTable:
        table = LiveTable(
            engine,
            {
                c: LiveColumn(d, c if c in fulltext else None)
                for c, d in columns.items()
            },
        )
        self.tables[name] = table
        return table

    # -- executor --------------------------------------------------------------

    async def execute(
        self, statement: Statement | str, *, timeout: float | None = None
    ) -> QueryResult:
        stmt = as_statement(statement)
        self.statements.append(stmt)

        for hook in list(self._hooks):
            if hook[0] in stmt.sql:
                self._hooks.remove(hook)
                hook[1]()

        for failure in list(self._failures):
            if failure[0] in stmt.sql:
                self._failures.remove(failure)
                raise ExecutionError(stmt.render(), failure[1]) from failure[1]

        try:
            return self._dispatch(stmt)
        except DriverError as err:
            raise ExecutionError(stmt.render(), err) from err

    def _dispatch(self, stmt: Statement) -> QueryResult:
        sql = stmt.sql
        if "INFORMATION_SCHEMA.COLUMNS" in sql:
            table = self.tables.get(stmt.params["table"])
            if table is None:
                return QueryResult()
            return QueryResult(
                rows=[col.row(name) for name, col in table.columns.items()]
            )
        if "INFORMATION_SCHEMA.TABLES" in sql:
            table = self.tables.get(stmt.params["table"])
            return QueryResult(rows=[{"ENGINE": table.engine}] if table else [])
        if match := _CREATE_RE.match(sql):
            self._create(match)
            return QueryResult()
        if match := _ALTER_RE.match(sql):
            self.alter(_table_name(match["ref"]), match["action"])
            return QueryResult(affected_rows=0)
        if match := _GET_RE.match(sql):
            table = self.tables[_table_name(match["ref"])]
            row = table.rows.get(int(stmt.params["id"]))
            return QueryResult(rows=[dict(row)] if row else [])
        if match := _INSERT_RE.match(sql):
            return self._insert(match, stmt.params)
        if match := _UPDATE_RE.match(sql):
            return self._update(match, stmt.params)
        return QueryResult()

    # -- catalogue -------------------------------------------------------------

    def _create(self, match: re.Match[str]) -> None:
        name = _table_name(match["ref"])
        if name in self.tables:
            return
        table = LiveTable(match["engine"])
        for clause in _split_clauses(match["body"]):
            if clause.startswith("`"):
                column, descriptor = clause[1:].split("` ", 1)
                table.columns[column] = LiveColumn(descriptor)
            elif clause.startswith("FULLTEXT"):
                # an unnamed index takes the name of its first column
                indexed = _NAMES_RE.findall(clause)
                for column in indexed:
                    table.columns[column].index = indexed[0]
        self.tables[name] = table

    def alter(self, name: str, action: str) -> None:
        table = self.tables.get(name)
        if table is None:
            raise DriverError(1146, f"Table '{name}' doesn't exist")
        columns = table.columns
        if match := _ADD_RE.match(action):
            if match["col"] in columns:
                raise DriverError(1060, f"Duplicate column name '{match['col']}'")
            columns[match["col"]] = LiveColumn(match["desc"])
        elif match := _DROP_RE.match(action):
            if columns.pop(match["col"], None) is None:
                raise DriverError(
                    1091, f"Can't DROP '{match['col']}'; check that column/key exists"
                )
        elif match := _MODIFY_RE.match(action):
            if match["col"] not in columns:
                raise DriverError(1054, f"Unknown column '{match['col']}'")
            columns[match["col"]].descriptor = match["desc"]
        elif match := _ADD_FULLTEXT_RE.match(action):
            if any(c.index == match["col"] for c in columns.values()):
                raise DriverError(1061, f"Duplicate key name '{match['col']}'")
            columns[match["col"]].index = match["col"]
        elif match := _DROP_INDEX_RE.match(action):
            covered = [c for c in columns.values() if c.index == match["col"]]
            if not covered:
                raise DriverError(
                    1091, f"Can't DROP '{match['col']}'; check that column/key exists"
                )
            for column in covered:
                column.index = None
        elif match := _ENGINE_RE.match(action):
            table.engine = match["engine"]
        else:
            raise DriverError(1064, f"Unsupported ALTER: {action}")

    def _insert(self, match: re.Match[str], params: Any) -> QueryResult:
        table = self.tables[_table_name(match["ref"])]
        columns = _NAMES_RE.findall(match["cols"])
        values = [params[p.strip()[1:]] for p in match["vals"].split(",")]
        row = dict(zip(columns, values))
        row_id = int(row.get("id") or table.next_id)
        if row_id in table.rows:
            raise DriverError(1062, f"Duplicate entry '{row_id}' for key 'PRIMARY'")
        row["id"] = row_id
        table.rows[row_id] = row
        table.next_id = max(table.next_id, row_id + 1)
        return QueryResult(insert_id=row_id, affected_rows=1, changed_rows=1)

    def _update(self, match: re.Match[str], params: Any) -> QueryResult:
        table = self.tables[_table_name(match["ref"])]
        row = table.rows.get(int(params["id"]))
        if row is None:
            return QueryResult()
        for assignment in match["sets"].split(", "):
            column, placeholder = assignment.split("=", 1)
            row[_NAMES_RE.findall(column)[0]] = params[placeholder[1:]]
        return QueryResult(affected_rows=1, changed_rows=1)


@pytest.fixture
def mysql() -> FakeMySQL:
    return FakeMySQL()


@pytest.fixture
def articles() -> TableSpec:
    """A table with a full-text column and one seed row."""
    return TableSpec.model_validate(
        {
            "table": "articles",
            "fields": {
                "title": "VARCHAR(255) NOT NULL DEFAULT ''",
                "body": "TEXT",
                "status": "VARCHAR(16) NOT NULL DEFAULT 'draft'",
                "views": "INT(11) NOT NULL DEFAULT '0'",
                "fulltext": "body",
            },
            "prefill": [{"id": 1, "title": "Welcome"}],
        }
    )


@pytest.fixture
def users() -> TableSpec:
    return TableSpec(
        table="users",
        fields={
            "name": "VARCHAR(64) NOT NULL DEFAULT ''",
            "email": "VARCHAR(128) NOT NULL DEFAULT ''",
            "age": "INT(11) NOT NULL DEFAULT '0'",
            "deleted_at": "DATETIME",
        },
    )
