"""Filter compilation: sanitizer, value model, compiler, validator, assembler."""

from __future__ import annotations

from .assembler import DEFAULT_ORDER, QueryAssembler, render_limit
from .compiler import DEFAULT_COLLATION, PredicateCompiler
from .sanitizer import (
    CompiledPredicate,
    ParameterBinder,
    Statement,
    escape_string,
    render_literal,
)
from .validator import FilterValidator
from .values import (
    Connective,
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
)

__all__ = [
    "CompiledPredicate",
    "Connective",
    "DEFAULT_COLLATION",
    "DEFAULT_ORDER",
    "FilterEntry",
    "FilterOperator",
    "FilterValidator",
    "FilterValue",
    "Group",
    "Membership",
    "ParameterBinder",
    "Pattern",
    "PredicateCompiler",
    "QueryAssembler",
    "Range",
    "Scalar",
    "Statement",
    "escape_string",
    "parse_filter",
    "render_limit",
    "render_literal",
    "resolve_value",
]
