"""SQL synthesis for the generic repository.

Pure functions: the same (table, schema, dialect, arguments) always
yield the same text. Identifiers are validated before they are
interpolated; every value position is a placeholder.

    projection       f1, f2, <array projection> AS f3
    select_by_key    SELECT <proj> FROM t WHERE key = ?
    select_by_field  SELECT <proj> FROM t WHERE <validated> = ?
    search           SELECT <proj> FROM t [WHERE <match>] <paginate>
    count            SELECT COUNT(key) FROM t
    delete           DELETE FROM t WHERE key = ?
    upsert           dialect-specific insert-or-update by key
"""

from __future__ import annotations

from typing import Any

from autocrud.core.dialect import Dialect, UpsertStatement
from autocrud.core.errors import InvalidArgument
from autocrud.core.schema import SchemaDescriptor, validate_identifier


def projection(schema: SchemaDescriptor, dialect: Dialect) -> str:
    """Read projection; text-array fields go through the dialect's array fragment."""
    return ", ".join(
        dialect.array_projection(f.name) if f.is_array else f.name
        for f in schema.projected_fields
    )


def select_by_key(table: str, projection_clause: str, key_field: str, dialect: Dialect) -> str:
    validate_identifier(table, "table name")
    validate_identifier(key_field, "key field name")
    return (
        f"SELECT {projection_clause} FROM {table} "
        f"WHERE {key_field} = {dialect.placeholder()}"
    )


def select_by_field(table: str, projection_clause: str, field_name: str, dialect: Dialect) -> str:
    """Point lookup on an arbitrary column.

    Raises:
        InvalidIdentifier: *field_name* fails the identifier grammar.
    """
    validate_identifier(table, "table name")
    validate_identifier(field_name, "field name")
    return (
        f"SELECT {projection_clause} FROM {table} "
        f"WHERE {field_name} = {dialect.placeholder()}"
    )


def search(
    table: str,
    projection_clause: str,
    search_field: str,
    key_field: str,
    dialect: Dialect,
    term: str | None,
    page_number: int,
    page_size: int,
) -> tuple[str, tuple[Any, ...]]:
    """Paginated substring search.

    A ``None`` or blank *term* produces an unfiltered page. ``%`` and ``_``
    in *term* are ``LIKE`` wildcards, not literals.

    Returns:
        ``(sql, params)``

    Raises:
        InvalidArgument: *page_number* or *page_size* is below 1.
    """
    if isinstance(page_number, bool) or not isinstance(page_number, int) or page_number < 1:
        raise InvalidArgument(
            f"page_number must be >= 1, got {page_number!r}", field="page_number", value=page_number
        )
    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
        raise InvalidArgument(
            f"page_size must be >= 1, got {page_size!r}", field="page_size", value=page_size
        )
    validate_identifier(table, "table name")
    validate_identifier(search_field, "search field name")
    validate_identifier(key_field, "key field name")

    offset = (page_number - 1) * page_size
    parts = [f"SELECT {projection_clause} FROM {table}"]
    params: list[Any] = []

    if term is not None and term.strip():
        parts.append(f"WHERE {dialect.substring_match(search_field)}")
        params.append(term)

    parts.append(dialect.paginate(key_field))
    params.extend(dialect.pagination_params(offset, page_size))
    return " ".join(parts), tuple(params)


def count(table: str, key_field: str) -> str:
    validate_identifier(table, "table name")
    validate_identifier(key_field, "key field name")
    return f"SELECT COUNT({key_field}) FROM {table}"


def delete(table: str, key_field: str, dialect: Dialect) -> str:
    validate_identifier(table, "table name")
    validate_identifier(key_field, "key field name")
    return f"DELETE FROM {table} WHERE {key_field} = {dialect.placeholder()}"


def upsert(table: str, schema: SchemaDescriptor, dialect: Dialect) -> UpsertStatement:
    validate_identifier(table, "table name")
    return dialect.upsert(
        table,
        [f.name for f in schema.written_fields],
        schema.key_field,
    )


__all__ = [
    "count",
    "delete",
    "projection",
    "search",
    "select_by_field",
    "select_by_key",
    "upsert",
]
