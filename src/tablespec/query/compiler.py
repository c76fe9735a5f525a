"""
Compile filter mappings into SQL boolean predicates.

The compiler walks the tagged value tree produced by
:func:`~tablespec.query.values.parse_filter` and emits MySQL fragments
with named placeholders.  Every literal is bound through a single
:class:`ParameterBinder` per compilation, so placeholders never collide
inside one ``WHERE`` clause.

Ordering
--------
``order`` accepts a ``{field: direction}`` mapping, a
``(field_or_fields, direction)`` pair, or a bare field name.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from ..identifiers import quote_identifier
from .sanitizer import CompiledPredicate, ParameterBinder
from .values import (
    FilterEntry,
    FilterOperator,
    FilterValue,
    Group,
    Membership,
    Pattern,
    Range,
    Scalar,
    parse_filter,
    resolve_value,
    split_marker,
)

DEFAULT_COLLATION = "utf8_general_ci"

_DIRECTIONS = frozenset({"ASC", "DESC"})

_COMPARISONS: dict[FilterOperator, str] = {
    FilterOperator.EQ: "=",
    FilterOperator.GE: ">=",
    FilterOperator.LE: "<=",
}


class PredicateCompiler:
    """Turns filters into ``WHERE`` clauses and orderings into ``ORDER BY``."""

    def __init__(self, *, collation: str = DEFAULT_COLLATION) -> None:
        self.collation = collation

    # -- public API ---------------------------------------------------------

    def compile(self, key: str, value: Any) -> CompiledPredicate:
        """Compile one ``key``/``value`` term into a boolean fragment."""
        field, _ = split_marker(key)
        binder = ParameterBinder()
        resolved = value if _is_resolved(value) else resolve_value(field, value)
        return CompiledPredicate(
            self._compile_value(field, resolved, binder), binder.params
        )

    def where(self, filters: Mapping[str, Any] | Group | None) -> CompiledPredicate:
        """
        Build a ``WHERE`` clause.

        Top-level entries join with ``AND`` unless their key carries the
        disjunction marker.  An empty filter yields an empty clause.
        """
        if not filters:
            return CompiledPredicate("")
        group = filters if isinstance(filters, Group) else parse_filter(filters)
        if not group.entries:
            return CompiledPredicate("")
        binder = ParameterBinder()
        body = self._join_entries(group.entries, binder)
        return CompiledPredicate(f"WHERE ({body})", binder.params)

    def order(self, spec: Any) -> str:
        """Build an ``ORDER BY`` clause; empty input gives an empty string."""
        if not spec:
            return ""
        if isinstance(spec, Mapping):
            terms = [
                f"{quote_identifier(field)} {_direction(direction)}"
                for field, direction in spec.items()
            ]
            return "ORDER BY " + ",".join(terms)
        if isinstance(spec, str):
            return f"ORDER BY {quote_identifier(spec)} ASC"
        if isinstance(spec, Sequence) and len(spec) == 2:
            fields, direction = spec
            if isinstance(fields, str):
                fields = [fields]
            columns = ",".join(quote_identifier(f) for f in fields)
            return f"ORDER BY {columns} {_direction(direction)}"
        raise ValueError(f"Unsupported order specification: {spec!r}")

    # -- internal compilation -------------------------------------------------

    def _join_entries(
        self, entries: Sequence[FilterEntry], binder: ParameterBinder
    ) -> str:
        parts: list[str] = []
        for index, entry in enumerate(entries):
            if index:
                parts.append(entry.connective.value)
            parts.append(self._compile_value(entry.field, entry.value, binder))
        return "".join(parts)

    def _compile_value(
        self, field: str, value: FilterValue, binder: ParameterBinder
    ) -> str:
        if isinstance(value, Group):
            return "(" + self._join_entries(value.entries, binder) + ")"

        if not field:
            raise ValueError(f"Filter term has no field: {value!r}")
        column = quote_identifier(field)

        if isinstance(value, Range):
            return (
                f"{column} BETWEEN {binder.bind(value.low)} "
                f"AND {binder.bind(value.high)}"
            )
        if isinstance(value, Pattern):
            return self._compile_pattern(column, value, binder)
        if isinstance(value, Membership):
            if not value.values:
                return "1 = 0"
            placeholders = ",".join(binder.bind(v) for v in value.values)
            return f"{column} IN({placeholders})"
        return self._compile_scalar(column, value, binder)

    def _compile_pattern(
        self, column: str, value: Pattern, binder: ParameterBinder
    ) -> str:
        collate = f" COLLATE {self.collation}" if value.case_insensitive else ""
        clauses = [
            f"{column} LIKE {binder.bind(p)}{collate}" for p in value.patterns
        ]
        if len(clauses) == 1:
            return clauses[0]
        return "(" + " OR ".join(clauses) + ")"

    def _compile_scalar(
        self, column: str, value: Scalar, binder: ParameterBinder
    ) -> str:
        if value.op is FilterOperator.IS_NULL:
            return f"{column} IS NULL"
        if value.op is FilterOperator.MATCH:
            return (
                f"MATCH ({column}) AGAINST "
                f"({binder.bind(value.value)} IN NATURAL LANGUAGE MODE)"
            )
        return f"{column}{_COMPARISONS[value.op]}{binder.bind(value.value)}"


def _direction(direction: Any) -> str:
    normalized = str(direction).strip().upper()
    if normalized not in _DIRECTIONS:
        raise ValueError(f"Invalid sort direction: {direction!r}")
    return normalized


def _is_resolved(value: Any) -> bool:
    return isinstance(value, (Scalar, Range, Pattern, Membership, Group))
