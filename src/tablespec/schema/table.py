"""TableSpec — immutable declarative description of one table."""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_ENGINE = "InnoDB"

# Columns every table carries; appended after the declared fields when missing.
AUTO_FIELDS: dict[str, str] = {
    "id": "INT(11) NOT NULL AUTO_INCREMENT",
    "date_created": "DATETIME NOT NULL DEFAULT '0000-00-00 00:00:00'",
    "date_modified": "DATETIME NOT NULL DEFAULT '0000-00-00 00:00:00'",
}
DEFAULT_KEY = "PRIMARY KEY (`id`)"

KEY_PSEUDO_FIELD = "key"
FULLTEXT_PSEUDO_FIELD = "fulltext"

_NAME_RE = re.compile(r"^[A-Za-z0-9_$]+$")


def _split_names(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = list(value)
    return [str(item).strip() for item in items if str(item).strip()]


class TableSpec(BaseModel):
    """
    Declarative table specification.

    Accepts the legacy parameter shape in which ``key`` (a composite key
    clause, emitted verbatim) and ``fulltext`` (comma separated column
    names) are written inside ``fields``; both are extracted into their own
    attributes at construction and never stored as ordinary fields.

    Example::

        spec = TableSpec.model_validate({
            "database": "shop",
            "table": "articles",
            "fields": {
                "title": "VARCHAR(255) NOT NULL DEFAULT ''",
                "body": "TEXT",
                "fulltext": "title, body",
            },
            "prefill": [{"id": 1, "title": "Welcome"}],
        })
    """

    model_config = ConfigDict(frozen=True)

    table: str
    database: str | None = None
    engine: str = DEFAULT_ENGINE
    fields: dict[str, str] = Field(default_factory=dict)
    key: str | None = None
    fulltext: tuple[str, ...] = ()
    prefill: tuple[dict[str, Any], ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _extract_pseudo_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        fields = dict(data.get("fields") or {})

        key = fields.pop(KEY_PSEUDO_FIELD, None)
        if key is not None and data.get("key") is None:
            data["key"] = key

        fulltext = _split_names(data.get("fulltext"))
        for name in _split_names(fields.pop(FULLTEXT_PSEUDO_FIELD, None)):
            if name not in fulltext:
                fulltext.append(name)
        data["fulltext"] = tuple(fulltext)

        injected_id = "id" not in fields
        for name, descriptor in AUTO_FIELDS.items():
            fields.setdefault(name, descriptor)
        if injected_id and data.get("key") is None:
            data["key"] = DEFAULT_KEY

        data["fields"] = fields
        if not data.get("engine"):
            data.pop("engine", None)
        return data

    @field_validator("table", "database")
    @classmethod
    def _check_name(cls, value: str | None) -> str | None:
        if value is not None and not _NAME_RE.match(value):
            raise ValueError(f"Invalid identifier: {value!r}")
        return value

    @field_validator("engine")
    @classmethod
    def _check_engine(cls, value: str) -> str:
        if not _NAME_RE.match(value):
            raise ValueError(f"Invalid storage engine: {value!r}")
        return value

    @field_validator("fields")
    @classmethod
    def _check_fields(cls, value: dict[str, str]) -> dict[str, str]:
        for name, descriptor in value.items():
            if not _NAME_RE.match(name):
                raise ValueError(f"Invalid field name: {name!r}")
            if not str(descriptor).strip():
                raise ValueError(f"Field {name!r} has an empty column descriptor")
        return value

    @model_validator(mode="after")
    def _check_fulltext(self) -> TableSpec:
        unknown = [name for name in self.fulltext if name not in self.fields]
        if unknown:
            raise ValueError(f"Full-text columns are not declared fields: {unknown}")
        return self

    @property
    def field_names(self) -> list[str]:
        return list(self.fields)

    def is_fulltext(self, name: str) -> bool:
        return name in self.fulltext
