"""
SyncPlan — the ordered DDL needed to bring a live table to its TableSpec.

:func:`compute_sync_plan` is pure: it diffs a :class:`TableSpec` against
introspected :class:`ColumnDescriptor` objects and the live storage
engine.  Drops come first so a rename (drop + add) never collides on a
column name; full-text membership is reconciled per column in the same
pass.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..exceptions import SchemaAmbiguityError
from . import ddl
from .columns import is_lossy_change

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from .columns import ColumnDescriptor
    from .table import TableSpec


@dataclass(frozen=True)
class SyncIntent(ABC):
    """One schema-altering operation on a table."""

    table: str
    database: str | None

    @property
    @abstractmethod
    def kind(self) -> str:
        """Short operation name used in logs and error payloads."""
        ...

    @abstractmethod
    def statement(self) -> str:
        """Render the DDL statement for this intent."""
        ...

    def describe(self) -> str:
        return f"{self.kind} on {self.table}"


@dataclass(frozen=True)
class DropColumn(SyncIntent):
    column: str

    @property
    def kind(self) -> str:
        return "drop_column"

    def statement(self) -> str:
        return ddl.drop_column(self.table, self.database, self.column)

    def describe(self) -> str:
        return f"{self.kind} {self.table}.{self.column}"


@dataclass(frozen=True)
class AddColumn(SyncIntent):
    column: str
    descriptor: str

    @property
    def kind(self) -> str:
        return "add_column"

    def statement(self) -> str:
        return ddl.add_column(self.table, self.database, self.column, self.descriptor)

    def describe(self) -> str:
        return f"{self.kind} {self.table}.{self.column}"


@dataclass(frozen=True)
class ModifyColumn(SyncIntent):
    column: str
    descriptor: str
    previous: str = ""

    @property
    def kind(self) -> str:
        return "modify_column"

    def statement(self) -> str:
        return ddl.modify_column(
            self.table, self.database, self.column, self.descriptor
        )

    def describe(self) -> str:
        return f"{self.kind} {self.table}.{self.column}"


@dataclass(frozen=True)
class AddFulltext(SyncIntent):
    column: str

    @property
    def kind(self) -> str:
        return "add_fulltext"

    def statement(self) -> str:
        return ddl.add_fulltext(self.table, self.database, self.column)

    def describe(self) -> str:
        return f"{self.kind} {self.table}.{self.column}"


@dataclass(frozen=True)
class DropFulltext(SyncIntent):
    column: str

    @property
    def kind(self) -> str:
        return "drop_fulltext"

    def statement(self) -> str:
        # single-column full-text indexes are named after their column
        return ddl.drop_index(self.table, self.database, self.column)

    def describe(self) -> str:
        return f"{self.kind} {self.table}.{self.column}"


@dataclass(frozen=True)
class AlterEngine(SyncIntent):
    engine: str
    previous: str | None = None

    @property
    def kind(self) -> str:
        return "alter_engine"

    def statement(self) -> str:
        return ddl.alter_engine(self.table, self.database, self.engine)

    def describe(self) -> str:
        return f"{self.kind} {self.table} {self.previous} -> {self.engine}"


@dataclass(frozen=True)
class SyncPlan:
    """Ordered, immutable list of intents."""

    intents: tuple[SyncIntent, ...] = ()

    def __iter__(self) -> Iterator[SyncIntent]:
        return iter(self.intents)

    def __len__(self) -> int:
        return len(self.intents)

    @property
    def is_empty(self) -> bool:
        return not self.intents

    def statements(self) -> list[str]:
        return [intent.statement() for intent in self.intents]


def compute_sync_plan(
    spec: TableSpec,
    columns: Sequence[ColumnDescriptor],
    engine: str | None,
    *,
    allow_lossy: bool = False,
) -> SyncPlan:
    """
    Diff ``spec`` against live ``columns`` and ``engine``.

    Raises:
        SchemaAmbiguityError: A column would be modified in a way that can
            lose data and ``allow_lossy`` is false.
    """
    table, database = spec.table, spec.database
    live = {column.name: column for column in columns}
    intents: list[SyncIntent] = [
        DropColumn(table, database, name) for name in live if name not in spec.fields
    ]

    for name, descriptor in spec.fields.items():
        column = live.get(name)
        wants_fulltext = spec.is_fulltext(name)

        if column is None:
            intents.append(AddColumn(table, database, name, descriptor))
            if wants_fulltext:
                intents.append(AddFulltext(table, database, name))
            continue

        if not column.matches(descriptor):
            if not allow_lossy and is_lossy_change(column.column_type, descriptor):
                raise SchemaAmbiguityError(
                    table, name, column.signature(), descriptor
                )
            intents.append(
                ModifyColumn(table, database, name, descriptor, column.signature())
            )

        if wants_fulltext and not column.is_fulltext:
            intents.append(AddFulltext(table, database, name))
        elif column.is_fulltext and not wants_fulltext:
            intents.append(DropFulltext(table, database, name))

    if engine is not None and engine.lower() != spec.engine.lower():
        intents.append(AlterEngine(table, database, spec.engine, engine))

    return SyncPlan(tuple(intents))
