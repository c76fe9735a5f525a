"""
Value sanitisation for generated SQL.

Every literal that reaches a statement goes through a
:class:`ParameterBinder`: the binder hands out a named placeholder
(``:p0``, ``:p1``, ...) and records the value so the executor can bind it.
Literals are never concatenated into executable SQL.

:meth:`Statement.render` produces the inline form (values escaped and
single-quoted) for logs and diagnostics only.
"""

from __future__ import annotations

import itertools
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

_PLACEHOLDER_RE = re.compile(r"(?<![:\w]):([A-Za-z_]\w*)")


class ParameterBinder:
    """Allocates unique placeholders and collects their bound values."""

    def __init__(self, prefix: str = "p") -> None:
        self._prefix = prefix
        self._counter: Iterator[int] = itertools.count()
        self._params: dict[str, Any] = {}

    def bind(self, value: Any) -> str:
        """Record ``value`` and return the placeholder that refers to it."""
        name = f"{self._prefix}{next(self._counter)}"
        self._params[name] = value
        return f":{name}"

    @property
    def params(self) -> dict[str, Any]:
        return dict(self._params)


def escape_string(value: str) -> str:
    """Escape a string for inclusion between single quotes."""
    return value.replace("\\", "\\\\").replace("'", "''")


def render_literal(value: Any) -> str:
    """Render a bound value the way it would appear inline."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, datetime):
        value = value.strftime("%Y-%m-%d %H:%M:%S")
    elif isinstance(value, date):
        value = value.isoformat()
    elif isinstance(value, (int, float, Decimal)):
        value = str(value)
    return "'" + escape_string(str(value)) + "'"


@dataclass(frozen=True)
class Statement:
    """SQL text with named placeholders plus the values bound to them."""

    sql: str
    params: Mapping[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.sql)

    def __str__(self) -> str:
        return self.sql

    def render(self) -> str:
        """Inline the bound values (escaped) for diagnostics."""
        if not self.params:
            return self.sql

        def _sub(match: re.Match[str]) -> str:
            name = match.group(1)
            if name in self.params:
                return render_literal(self.params[name])
            return match.group(0)

        return _PLACEHOLDER_RE.sub(_sub, self.sql)

    def append(self, other: Statement | str) -> Statement:
        """Return a statement with ``other`` joined on with a single space."""
        if isinstance(other, str):
            other = Statement(other)
        if not other:
            return self
        if not self:
            return other
        overlap = set(self.params) & set(other.params)
        if overlap:
            raise ValueError(f"Duplicate bound parameters: {sorted(overlap)}")
        return Statement(f"{self.sql} {other.sql}", {**self.params, **other.params})


@dataclass(frozen=True)
class CompiledPredicate(Statement):
    """A boolean SQL fragment (optionally a full ``WHERE`` clause)."""


def as_statement(statement: Statement | str) -> Statement:
    if isinstance(statement, Statement):
        return statement
    return Statement(statement)
