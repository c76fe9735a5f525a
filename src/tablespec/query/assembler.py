"""QueryAssembler — base statement + filter/id + grouping + ordering + limit."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Union

from ..identifiers import quote_identifier
from .compiler import PredicateCompiler
from .sanitizer import Statement
from .validator import FilterValidator

if TYPE_CHECKING:
    from ..schema.table import TableSpec

DEFAULT_ORDER: tuple[str, str] = ("date_created", "DESC")

Limit = Union[int, tuple[int, int]]


def as_identifier(value: Any) -> int | str | None:
    """Return ``value`` when it identifies a single row by ``id``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return value
    return None


class QueryAssembler:
    """
    Composes one executable statement for a table.

    Filters are always run through the :class:`FilterValidator` before
    compilation; identifiers short-circuit to a single-row lookup.
    """

    def __init__(
        self,
        spec: TableSpec,
        *,
        compiler: PredicateCompiler | None = None,
        validator: FilterValidator | None = None,
    ) -> None:
        self.spec = spec
        self.compiler = compiler or PredicateCompiler()
        self.validator = validator or FilterValidator()

    def where(self, filter_or_id: Mapping[str, Any] | int | str | None) -> Statement:
        """``WHERE`` clause for an id or a validated filter mapping."""
        ident = as_identifier(filter_or_id)
        if ident is not None:
            return Statement(f"WHERE {quote_identifier('id')}=:id", {"id": ident})
        if filter_or_id is None:
            return Statement("")
        if not isinstance(filter_or_id, Mapping):
            raise TypeError(
                "Expected a filter mapping or row id, "
                f"got {type(filter_or_id).__name__}"
            )
        return self.compiler.where(self.validator.validate(filter_or_id, self.spec))

    def build_query(
        self,
        base: str,
        filter_or_id: Mapping[str, Any] | int | str | None = None,
        order: Any = DEFAULT_ORDER,
        limit: Limit | None = None,
        *,
        group_by: Sequence[str] | None = None,
    ) -> Statement:
        """
        Build ``base [WHERE ...] [GROUP BY ...] [ORDER BY ...] [LIMIT ...]``.

        Args:
            base: Statement head, e.g. ``SELECT * FROM `items```.
            filter_or_id: Row id (shortcut to ``WHERE id=... LIMIT 1``),
                filter mapping, or ``None`` for no filter.
            order: Ordering accepted by :meth:`PredicateCompiler.order`.
                Defaults to ``date_created DESC``; ``None`` for no ordering.
            limit: Row count, ``(offset, count)`` pair, or ``None``.
            group_by: Optional fields to group by.
        """
        statement = Statement(base)
        if as_identifier(filter_or_id) is not None:
            return statement.append(self.where(filter_or_id)).append("LIMIT 1")

        statement = statement.append(self.where(filter_or_id))
        if group_by:
            columns = ",".join(quote_identifier(f) for f in group_by)
            statement = statement.append(f"GROUP BY {columns}")
        if order is not None:
            statement = statement.append(self.compiler.order(order))
        return statement.append(render_limit(limit))


def render_limit(limit: Limit | None) -> str:
    if limit is None:
        return ""
    if isinstance(limit, Sequence) and not isinstance(limit, str):
        if len(limit) != 2:
            raise ValueError(f"Limit pair must be (offset, count), got {limit!r}")
        offset, count = (_non_negative(v) for v in limit)
        return f"LIMIT {offset}, {count}"
    return f"LIMIT {_non_negative(limit)}"


def _non_negative(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"Limit values must be non-negative integers, got {value!r}")
    return value
