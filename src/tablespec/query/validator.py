"""FilterValidator — safelist filter keys against a table's declared fields."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ..exceptions import FilterValidationError
from .values import split_marker

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..schema.table import TableSpec

logger = logging.getLogger("tablespec.query.validator")


class FilterValidator:
    """
    Drops filter keys that do not name a declared field.

    A key is kept when it is a declared field, a declared field behind the
    disjunction marker, or a two-part dotted alias (``table.column``) for
    joined contexts.  A key that is only markers (``"/"``) introduces a
    group whose own keys are validated recursively.

    Unknown keys are logged with suggestions and passed to ``on_drop``;
    with ``strict=True`` they raise :class:`FilterValidationError` instead.
    """

    def __init__(
        self,
        *,
        strict: bool = False,
        on_drop: Callable[[FilterValidationError], None] | None = None,
    ) -> None:
        self.strict = strict
        self._on_drop = on_drop

    def validate(self, filters: Mapping[str, Any], spec: TableSpec) -> dict[str, Any]:
        fields = spec.field_names
        allowed = set(fields)
        kept: dict[str, Any] = {}

        for key, value in filters.items():
            stripped, _ = split_marker(str(key))
            if stripped in allowed or _is_alias(stripped):
                kept[key] = value
            elif not stripped and isinstance(value, Mapping):
                nested = self.validate(value, spec)
                if nested:
                    kept[key] = nested
            else:
                self._reject(FilterValidationError(str(key), spec.table, fields))
        return kept

    def _reject(self, error: FilterValidationError) -> None:
        if self.strict:
            raise error
        logger.warning("Dropping filter key: %s", error)
        if self._on_drop is not None:
            self._on_drop(error)


def _is_alias(key: str) -> bool:
    parts = key.split(".")
    return len(parts) == 2 and all(parts)
