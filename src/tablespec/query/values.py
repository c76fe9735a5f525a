"""
Filter value model.

A raw filter is a mapping of field path to a scalar, a two element range,
a list or a nested mapping.  :func:`parse_filter` resolves every value
once into one of the tagged variants below, so the compiler dispatches
on a closed set of types instead of probing value shapes.

Markers understood in raw filters:

* ``/field``  - entry composes with ``OR`` instead of ``AND``
* ``%x%``     - ``LIKE`` pattern
* ``%%x%%``   - ``LIKE x`` with case-insensitive collation
* ``MATCH x`` - natural-language full-text match
* ``gt;x``    - greater than or equal
* ``lt;x``    - less than or equal
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Union

OR_MARKER = "/"
WILDCARD = "%"
DOUBLE_WILDCARD = WILDCARD * 2
MATCH_PREFIX = "MATCH "
GE_PREFIX = "gt;"
LE_PREFIX = "lt;"


class FilterOperator(str, Enum):
    """Comparison applied by a :class:`Scalar` term."""

    EQ = "="
    GE = ">="
    LE = "<="
    MATCH = "match"
    IS_NULL = "is_null"


class Connective(str, Enum):
    AND = " AND "
    OR = " OR "


@dataclass(frozen=True)
class Scalar:
    op: FilterOperator
    value: Any


@dataclass(frozen=True)
class Range:
    """Inclusive range over two numbers or two dates."""

    low: Any
    high: Any


@dataclass(frozen=True)
class Pattern:
    patterns: tuple[str, ...]
    case_insensitive: bool = False


@dataclass(frozen=True)
class Membership:
    values: tuple[Any, ...]


@dataclass(frozen=True)
class Group:
    entries: tuple[FilterEntry, ...]


FilterValue = Union[Scalar, Range, Pattern, Membership, Group]


@dataclass(frozen=True)
class FilterEntry:
    """One ``field <op> value`` term and how it joins the preceding term."""

    field: str
    connective: Connective
    value: FilterValue


def split_marker(key: str) -> tuple[str, Connective]:
    """Strip leading disjunction markers from ``key``."""
    if key.startswith(OR_MARKER):
        return key.lstrip(OR_MARKER), Connective.OR
    return key, Connective.AND


def parse_filter(data: Mapping[str, Any]) -> Group:
    """Resolve a raw filter mapping into a :class:`Group` of entries."""
    return _parse_group("", data)


def resolve_value(key: str, value: Any) -> FilterValue:
    """Resolve a single raw value for field ``key``."""
    if isinstance(value, Mapping):
        return _parse_group(key, value)
    if _is_sequence(value):
        return _resolve_sequence(list(value))
    return _resolve_scalar(value)


def _parse_group(key: str, data: Mapping[str, Any]) -> Group:
    entries: list[FilterEntry] = []
    for raw_key, raw_value in data.items():
        sub_key, connective = split_marker(str(raw_key))
        # sub-keys only name the column when the enclosing key is empty
        field = key or sub_key
        entries.append(
            FilterEntry(field, connective, resolve_value(field, raw_value))
        )
    return Group(tuple(entries))


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(
        value, (str, bytes, bytearray)
    )


def is_numeric(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def is_date(value: Any) -> bool:
    if isinstance(value, (date, datetime)):
        return True
    if not isinstance(value, str) or not value:
        return False
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_pattern(value: Any) -> bool:
    return (
        isinstance(value, str)
        and value != ""
        and (value.startswith(WILDCARD) or value.endswith(WILDCARD))
    )


def _unwrap_double_pattern(value: str) -> tuple[str, bool]:
    """Strip the ``%%`` markers; report whether any were present."""
    unwrapped = value
    if unwrapped.startswith(DOUBLE_WILDCARD):
        unwrapped = unwrapped[len(DOUBLE_WILDCARD) :]
    if unwrapped.endswith(DOUBLE_WILDCARD):
        unwrapped = unwrapped[: -len(DOUBLE_WILDCARD)]
    return unwrapped, unwrapped != value


def _resolve_sequence(items: list[Any]) -> FilterValue:
    # numeric check precedes the date check
    if len(items) == 2 and (
        all(is_numeric(v) for v in items) or all(is_date(v) for v in items)
    ):
        return Range(items[0], items[1])

    if any(is_pattern(v) for v in items):
        collate = False
        patterns: list[str] = []
        for v in items:
            text = str(v)
            if is_pattern(text):
                text, doubled = _unwrap_double_pattern(text)
                collate = collate or doubled
            patterns.append(text)
        return Pattern(tuple(patterns), case_insensitive=collate)

    return Membership(tuple(items))


def _resolve_scalar(value: Any) -> Scalar | Pattern:
    if value is None:
        return Scalar(FilterOperator.IS_NULL, None)
    if isinstance(value, bool):
        return Scalar(FilterOperator.EQ, int(value))
    if is_numeric(value):
        return Scalar(FilterOperator.EQ, str(value))
    if not isinstance(value, str):
        return Scalar(FilterOperator.EQ, value)

    if is_pattern(value):
        text, doubled = _unwrap_double_pattern(value)
        return Pattern((text,), case_insensitive=doubled)
    if value.startswith(MATCH_PREFIX):
        return Scalar(FilterOperator.MATCH, value[len(MATCH_PREFIX) :])
    if value.startswith(GE_PREFIX):
        return Scalar(FilterOperator.GE, value[len(GE_PREFIX) :])
    if value.startswith(LE_PREFIX):
        return Scalar(FilterOperator.LE, value[len(LE_PREFIX) :])
    return Scalar(FilterOperator.EQ, value)
