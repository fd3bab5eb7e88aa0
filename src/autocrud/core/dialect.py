"""SQL dialect abstraction for the generic repository.

Provides a ``Dialect`` protocol and one implementation per supported
backend. The repository and the SQL synthesizer use ``Dialect`` methods
for every backend-specific fragment (placeholders, substring match,
pagination, upsert, array projection, parameter adaptation) and never
import a database driver.

Manifesto:
    The PostgreSQL and SQL Server repositories used to be two near-copies
    of the same code that differed in a handful of SQL fragments. The
    dialect layer isolates exactly those fragments so one repository
    core serves every backend.

    - **One interface:** Dialect protocol for all SQL generation
    - **Zero coupling:** Repository code never imports database drivers
    - **Testable:** SQLiteDialect for tests, PostgreSQL/SQL Server for prod

Architecture::

    ┌──────────────┐ ┌──────────────────────────┐ ┌──────────────────┐
    │ PostgreSQL   │ │ SQL Server               │ │ SQLite           │
    │ %s           │ │ ?                        │ │ ?                │
    │ ILIKE        │ │ LIKE '%' + ? + '%'       │ │ LIKE '%' || ?    │
    │ LIMIT/OFFSET │ │ OFFSET … FETCH NEXT      │ │ LIMIT/OFFSET     │
    │ ON CONFLICT  │ │ IF NOT EXISTS … ELSE     │ │ ON CONFLICT      │
    └──────────────┘ └──────────────────────────┘ └──────────────────┘

Examples:
    >>> from autocrud.core.dialect import get_dialect
    >>> d = get_dialect("postgresql")
    >>> d.upsert("customers", ["id", "name"], "id").sql
    'INSERT INTO customers (id, name) VALUES (%s, %s) ON CONFLICT (id) DO UPDATE SET name = EXCLUDED.name'

Guardrails:
    ❌ DON'T: Interpolate values into SQL text
    ✅ DO: Use placeholders; interpolate only validated identifiers

Tags:
    dialect, sql, abstraction, portability, database, autocrud,
    multi-backend

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

import datetime as dt
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

from autocrud.core.schema import FieldType
from autocrud.core.values import format_text_array


@dataclass(frozen=True)
class UpsertStatement:
    """Upsert SQL plus the record fields bound to its placeholders, in order."""

    sql: str
    param_fields: tuple[str, ...]


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a **SQL fragment** (string) that is valid for
    the target database, except ``pagination_params`` and
    ``adapt_param`` which shape bound values.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    # -- Placeholder generation --------------------------------------------

    def placeholder(self) -> str:
        """Single positional placeholder."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    # -- Read fragments ----------------------------------------------------

    def array_projection(self, column: str) -> str:
        """Projection fragment for a text-array column, aliased to *column*."""
        ...

    def substring_match(self, column: str) -> str:
        """``WHERE`` predicate matching *column* against one bound term.

        The term is not escaped: ``%`` and ``_`` in it act as ``LIKE``
        wildcards.
        """
        ...

    def paginate(self, key_field: str) -> str:
        """Ordering plus page clause with two placeholders."""
        ...

    def pagination_params(self, offset: int, limit: int) -> tuple[int, int]:
        """Values for the two :meth:`paginate` placeholders, in order."""
        ...

    def zero_row_query(self, table: str) -> str:
        """Query returning the columns of *table* and no rows."""
        ...

    # -- Write fragments ---------------------------------------------------

    def upsert(self, table: str, columns: Sequence[str], key_field: str) -> UpsertStatement:
        """Insert-or-update-by-key statement."""
        ...

    # -- Values ------------------------------------------------------------

    def adapt_param(self, field_type: FieldType, value: Any) -> Any:
        """Convert a record value into something the driver binds."""
        ...


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


class PostgreSQLDialect:
    """PostgreSQL dialect — ``%s`` placeholders (psycopg 3), ``ON CONFLICT``.

    Literal ``%`` must be doubled because psycopg parses the query for
    placeholders whenever parameters are passed.
    """

    @property
    def name(self) -> str:
        return "postgresql"

    def placeholder(self) -> str:
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def array_projection(self, column: str) -> str:
        return (
            f"string_to_array(REPLACE(REPLACE({column}, '{{', ''), '}}', ''), ',') "
            f"AS {column}"
        )

    def substring_match(self, column: str) -> str:
        return f"{column} ILIKE '%%' || %s || '%%'"

    def paginate(self, key_field: str) -> str:
        return f"ORDER BY {key_field} LIMIT %s OFFSET %s"

    def pagination_params(self, offset: int, limit: int) -> tuple[int, int]:
        return (limit, offset)

    def zero_row_query(self, table: str) -> str:
        return f"SELECT * FROM {table} LIMIT 0"

    def upsert(self, table: str, columns: Sequence[str], key_field: str) -> UpsertStatement:
        cols = ", ".join(columns)
        ph = self.placeholders(len(columns))
        updates = ", ".join(f"{c} = EXCLUDED.{c}" for c in columns if c != key_field)
        action = f"DO UPDATE SET {updates}" if updates else "DO NOTHING"
        return UpsertStatement(
            sql=f"INSERT INTO {table} ({cols}) VALUES ({ph}) ON CONFLICT ({key_field}) {action}",
            param_fields=tuple(columns),
        )

    def adapt_param(self, field_type: FieldType, value: Any) -> Any:
        if value is not None and field_type is FieldType.TEXT_ARRAY:
            return format_text_array(value)
        return value


class SqlServerDialect:
    """Microsoft SQL Server dialect — ``?`` (pyodbc qmark), existence-check upsert."""

    @property
    def name(self) -> str:
        return "sqlserver"

    def placeholder(self) -> str:
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def array_projection(self, column: str) -> str:
        return f"REPLACE(REPLACE({column}, '{{', ''), '}}', '') AS {column}"

    def substring_match(self, column: str) -> str:
        return f"{column} LIKE '%' + ? + '%'"

    def paginate(self, key_field: str) -> str:
        return f"ORDER BY {key_field} OFFSET ? ROWS FETCH NEXT ? ROWS ONLY"

    def pagination_params(self, offset: int, limit: int) -> tuple[int, int]:
        return (offset, limit)

    def zero_row_query(self, table: str) -> str:
        return f"SELECT TOP 0 * FROM {table}"

    def upsert(self, table: str, columns: Sequence[str], key_field: str) -> UpsertStatement:
        cols = ", ".join(columns)
        ph = self.placeholders(len(columns))
        update_cols = [c for c in columns if c != key_field]

        sql = (
            f"IF NOT EXISTS (SELECT 1 FROM {table} WHERE {key_field} = ?) "
            f"INSERT INTO {table} ({cols}) VALUES ({ph})"
        )
        params = [key_field, *columns]
        if update_cols:
            updates = ", ".join(f"{c} = ?" for c in update_cols)
            sql += f" ELSE UPDATE {table} SET {updates} WHERE {key_field} = ?"
            params += [*update_cols, key_field]
        return UpsertStatement(sql=sql, param_fields=tuple(params))

    def adapt_param(self, field_type: FieldType, value: Any) -> Any:
        if value is None:
            return None
        if field_type is FieldType.TEXT_ARRAY:
            return format_text_array(value)
        if field_type is FieldType.UUID:
            return str(value)
        return value


class SQLiteDialect:
    """SQLite dialect — ``?`` placeholders, ``ON CONFLICT`` upsert (3.24+).

    ``LIKE`` is case-insensitive for ASCII in SQLite.
    """

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self) -> str:
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def array_projection(self, column: str) -> str:
        return f"REPLACE(REPLACE({column}, '{{', ''), '}}', '') AS {column}"

    def substring_match(self, column: str) -> str:
        return f"{column} LIKE '%' || ? || '%'"

    def paginate(self, key_field: str) -> str:
        return f"ORDER BY {key_field} LIMIT ? OFFSET ?"

    def pagination_params(self, offset: int, limit: int) -> tuple[int, int]:
        return (limit, offset)

    def zero_row_query(self, table: str) -> str:
        return f"SELECT * FROM {table} LIMIT 0"

    def upsert(self, table: str, columns: Sequence[str], key_field: str) -> UpsertStatement:
        cols = ", ".join(columns)
        ph = self.placeholders(len(columns))
        updates = ", ".join(f"{c} = excluded.{c}" for c in columns if c != key_field)
        action = f"DO UPDATE SET {updates}" if updates else "DO NOTHING"
        return UpsertStatement(
            sql=f"INSERT INTO {table} ({cols}) VALUES ({ph}) ON CONFLICT ({key_field}) {action}",
            param_fields=tuple(columns),
        )

    def adapt_param(self, field_type: FieldType, value: Any) -> Any:
        if value is None:
            return None
        if field_type is FieldType.TEXT_ARRAY:
            return format_text_array(value)
        if isinstance(value, uuid.UUID):
            return str(value)
        if isinstance(value, (dt.date, dt.datetime)):
            return value.isoformat()
        if isinstance(value, Decimal):
            return str(value)
        return value


# =========================================================================
# Registry
# =========================================================================

_DIALECTS: dict[str, Dialect] = {
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),
    "sqlserver": SqlServerDialect(),
    "mssql": SqlServerDialect(),
    "sqlite": SQLiteDialect(),
}


def get_dialect(db_type: Any) -> Dialect:
    """Get a dialect by database type name.

    Args:
        db_type: One of ``'postgresql'``, ``'postgres'``, ``'sqlserver'``,
                 ``'mssql'``, ``'sqlite'`` (or a ``DatabaseType``).

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower() if isinstance(db_type, str) else db_type.value
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres', 'mssql'})}"
        )
    return _DIALECTS[key]


__all__ = [
    "Dialect",
    "UpsertStatement",
    "PostgreSQLDialect",
    "SqlServerDialect",
    "SQLiteDialect",
    "get_dialect",
]
