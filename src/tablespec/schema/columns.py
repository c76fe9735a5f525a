"""
Live column metadata and canonical type signatures.

A :class:`ColumnDescriptor` is built from one ``INFORMATION_SCHEMA`` row
(``COLUMN_NAME``, ``COLUMN_TYPE``, ``IS_NULLABLE``, ``COLUMN_DEFAULT``,
``EXTRA``, ``INDEX_TYPE``) and is only valid for a single
synchronisation pass.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

FULLTEXT_INDEX = "FULLTEXT"

# Integer display widths are informational and newer servers drop them.
_INT_WIDTH_RE = re.compile(
    r"\b(tinyint|smallint|mediumint|int|integer|bigint)\(\d+\)", re.IGNORECASE
)
_WHITESPACE_RE = re.compile(r"\s+")
# Defaults compare by value, not by how the server spells them.
_NULL_DEFAULT_RE = re.compile(r"\sDEFAULT NULL\b", re.IGNORECASE)
_QUOTED_DEFAULT_RE = re.compile(r"\bDEFAULT '((?:[^']|'')*)'", re.IGNORECASE)
_NOW_RE = re.compile(r"\bcurrent_timestamp\(\)", re.IGNORECASE)
_GENERATED_RE = re.compile(r"\bDEFAULT_GENERATED\b", re.IGNORECASE)
_TYPE_RE = re.compile(r"^\s*([A-Za-z]+)\s*(?:\(\s*(\d+)(?:\s*,\s*(\d+))?\s*\))?")

_TEXTUAL_RANK = {
    "char": 1,
    "varchar": 1,
    "tinytext": 2,
    "text": 3,
    "mediumtext": 4,
    "longtext": 5,
    "binary": 1,
    "varbinary": 1,
    "tinyblob": 2,
    "blob": 3,
    "mediumblob": 4,
    "longblob": 5,
}
_INTEGER_RANK = {
    "tinyint": 1,
    "smallint": 2,
    "mediumint": 3,
    "int": 4,
    "integer": 4,
    "bigint": 5,
}
_NUMERIC = {*_INTEGER_RANK, "decimal", "numeric", "float", "double", "real", "bit"}
_TEMPORAL = {"date", "datetime", "timestamp", "time", "year"}


def _get(row: Mapping[str, Any], key: str) -> Any:
    if key in row:
        return row[key]
    return row.get(key.lower())


@dataclass(frozen=True)
class ColumnDescriptor:
    """Introspected state of one live column."""

    name: str
    column_type: str
    is_nullable: bool = True
    default: str | None = None
    extra: str = ""
    index_type: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ColumnDescriptor:
        nullable = str(_get(row, "IS_NULLABLE") or "YES").upper() != "NO"
        default = _get(row, "COLUMN_DEFAULT")
        return cls(
            name=str(_get(row, "COLUMN_NAME")),
            column_type=str(_get(row, "COLUMN_TYPE")),
            is_nullable=nullable,
            default=None if default is None else str(default),
            extra=str(_get(row, "EXTRA") or ""),
            index_type=_get(row, "INDEX_TYPE"),
        )

    @property
    def is_fulltext(self) -> bool:
        return (self.index_type or "").upper() == FULLTEXT_INDEX

    def signature(self) -> str:
        """Canonical ``TYPE[ NOT NULL][ DEFAULT 'value'][ EXTRA]`` form."""
        sig = self.column_type
        if not self.is_nullable:
            sig += " NOT NULL"
        if self.default is not None:
            escaped = self.default.replace("'", "''")
            sig += f" DEFAULT '{escaped}'"
        if self.extra.strip():
            sig += " " + self.extra.strip()
        return sig

    def matches(self, declared: str) -> bool:
        """Case-insensitive comparison of the live signature to ``declared``."""
        return normalize_signature(self.signature()) == normalize_signature(declared)


def normalize_signature(signature: str) -> str:
    text = _NULL_DEFAULT_RE.sub("", signature)
    text = _QUOTED_DEFAULT_RE.sub(r"DEFAULT \1", text)
    text = _NOW_RE.sub("current_timestamp", _GENERATED_RE.sub("", text))
    collapsed = _WHITESPACE_RE.sub(" ", text.strip())
    return _INT_WIDTH_RE.sub(r"\1", collapsed).lower()


def merge_descriptors(rows: Iterable[Mapping[str, Any]]) -> list[ColumnDescriptor]:
    """
    Build one descriptor per column from metadata rows.

    The statistics join yields one row per index a column takes part in;
    a column is full-text if any of its rows is.
    """
    merged: dict[str, ColumnDescriptor] = {}
    for row in rows:
        column = ColumnDescriptor.from_row(row)
        current = merged.get(column.name)
        if current is None:
            merged[column.name] = column
        elif column.is_fulltext and not current.is_fulltext:
            merged[column.name] = replace(current, index_type=FULLTEXT_INDEX)
    return list(merged.values())


def parse_type(descriptor: str) -> tuple[str, int | None]:
    """Return the lower-cased base type and its first size argument."""
    match = _TYPE_RE.match(descriptor)
    if match is None:
        return descriptor.strip().lower(), None
    size = match.group(2)
    return match.group(1).lower(), int(size) if size is not None else None


def is_lossy_change(live_type: str, declared: str) -> bool:
    """
    Decide whether changing ``live_type`` to ``declared`` can drop data.

    Lossy: narrowing a sized type of the same base type (integer display
    widths excepted), moving down the text/blob or integer size ladders,
    or turning a textual column into a numeric or temporal one.
    """
    live_base, live_size = parse_type(live_type)
    new_base, new_size = parse_type(declared)

    if live_base == new_base:
        if live_base in _INTEGER_RANK:
            return False
        return live_size is not None and new_size is not None and new_size < live_size

    if live_base in _TEXTUAL_RANK:
        if new_base in _NUMERIC or new_base in _TEMPORAL:
            return True
        if new_base in _TEXTUAL_RANK:
            live_rank, new_rank = _TEXTUAL_RANK[live_base], _TEXTUAL_RANK[new_base]
            if new_rank != live_rank:
                return new_rank < live_rank
            return (
                live_size is not None and new_size is not None and new_size < live_size
            )
        return False

    if live_base in _INTEGER_RANK and new_base in _INTEGER_RANK:
        return _INTEGER_RANK[new_base] < _INTEGER_RANK[live_base]
    return False
