"""SQL identifier quoting (MySQL backtick dialect)."""

from __future__ import annotations


def quote_identifier(name: str) -> str:
    """
    Quote a column reference.

    A two-part dotted alias (``table.column``) is quoted part by part so it
    can be used in joined contexts.  Embedded backticks are doubled.
    """
    if not name:
        raise ValueError("Identifier must not be empty")
    parts = name.split(".")
    if len(parts) > 2:
        raise ValueError(f"Identifier {name!r} has more than two parts")
    return ".".join(_quote_part(p) for p in parts)


def qualified_table(table: str, database: str | None = None) -> str:
    """Return ```database`.`table``` or ```table``` when no database is set."""
    if database:
        return f"{_quote_part(database)}.{_quote_part(table)}"
    return _quote_part(table)


def _quote_part(part: str) -> str:
    if not part:
        raise ValueError("Identifier part must not be empty")
    return "`" + part.replace("`", "``") + "`"
