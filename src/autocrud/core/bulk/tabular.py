"""Tabular bulk loaders.

The whole batch is shaped in memory as a table of row tuples, in live
column order, and handed to the driver in a single ``executemany``. On
SQL Server, pyodbc's ``fast_executemany`` turns that call into one
array-bound bulk transfer; on SQLite it runs inside one transaction.
"""

from __future__ import annotations

import datetime as dt
import uuid
from collections.abc import Sequence
from contextlib import closing
from decimal import Decimal
from typing import Any

from autocrud.core.bulk.encoders import ColumnType, LiveColumn
from autocrud.core.bulk.loader import BulkLoader, BulkPlan
from autocrud.core.errors import UnsupportedColumnType
from autocrud.core.protocols import Connection
from autocrud.core.values import format_text_array


class TabularBulkLoader(BulkLoader):
    """Builds the row table and inserts it with one ``executemany``."""

    strategy = "tabular"
    fast_executemany = False

    def driver_value(self, value: Any) -> Any:
        """Shape an encoded value for the driver."""
        if isinstance(value, list):
            return format_text_array(value)
        return value

    def build_table(self, plan: BulkPlan, records: Sequence[Any]) -> list[tuple[Any, ...]]:
        return [
            tuple(self.driver_value(v) for v in self.encode_row(plan, record))
            for record in records
        ]

    def write(self, conn: Connection, plan: BulkPlan, records: Sequence[Any]) -> int:
        rows = self.build_table(plan, records)
        if not rows:
            return 0
        statement = (
            f"INSERT INTO {plan.table} ({plan.column_list}) "
            f"VALUES ({self.dialect.placeholders(len(plan.columns))})"
        )
        with closing(conn.cursor()) as cur:
            if self.fast_executemany:
                cur.fast_executemany = True
            cur.executemany(statement, rows)
        return len(rows)


# -- SQL Server ---------------------------------------------------------------

SQLSERVER_TYPES: dict[str, ColumnType] = {
    "uniqueidentifier": ColumnType.UUID,
    "bigint": ColumnType.INT64,
    "int": ColumnType.INT32,
    "smallint": ColumnType.INT16,
    "tinyint": ColumnType.INT16,
    "char": ColumnType.CHAR,
    "nchar": ColumnType.CHAR,
    "varchar": ColumnType.TEXT,
    "nvarchar": ColumnType.TEXT,
    "text": ColumnType.TEXT,
    "ntext": ColumnType.TEXT,
    "bit": ColumnType.BOOLEAN,
    "date": ColumnType.DATE,
    "datetime": ColumnType.DATETIME,
    "datetime2": ColumnType.DATETIME,
    "smalldatetime": ColumnType.DATETIME,
    "datetimeoffset": ColumnType.DATETIME,
    "float": ColumnType.FLOAT,
    "real": ColumnType.FLOAT,
    "decimal": ColumnType.DECIMAL,
    "numeric": ColumnType.DECIMAL,
    "money": ColumnType.DECIMAL,
    "smallmoney": ColumnType.DECIMAL,
}


class SqlServerBulkLoader(TabularBulkLoader):
    """pyodbc ``fast_executemany`` bulk transfer.

    Native type names come from the ODBC catalog (``cursor.columns``);
    ``int identity`` and similar decorated names use their first word.
    """

    strategy = "sqlserver_bulk"
    fast_executemany = True

    def resolve_types(
        self,
        conn: Connection,
        table: str,
        names: Sequence[str],
        description: Sequence[Any],
    ) -> list[LiveColumn]:
        with closing(conn.cursor()) as cur:
            catalog = {
                str(row.column_name).lower(): str(row.type_name).lower()
                for row in cur.columns(table=table)
            }

        columns = []
        for name in names:
            native = catalog.get(name.lower(), "")
            column_type = SQLSERVER_TYPES.get(native.split(" ")[0])
            if column_type is None:
                raise UnsupportedColumnType(name, native or None)
            columns.append(LiveColumn(name, column_type, native))
        return columns

    def driver_value(self, value: Any) -> Any:
        if isinstance(value, uuid.UUID):
            return str(value)
        return super().driver_value(value)


# -- SQLite -------------------------------------------------------------------


def sqlite_column_type(declared: str) -> ColumnType | None:
    """Map a SQLite declared column type to a :class:`ColumnType`."""
    decl = declared.upper().strip()
    if not decl:
        return None
    if "ARRAY" in decl or decl.endswith("[]"):
        return ColumnType.TEXT_ARRAY
    if "UUID" in decl or "UNIQUEIDENTIFIER" in decl:
        return ColumnType.UUID
    if "BOOL" in decl:
        return ColumnType.BOOLEAN
    if "BIGINT" in decl or decl == "INTEGER":
        return ColumnType.INT64
    if "SMALLINT" in decl or "TINYINT" in decl:
        return ColumnType.INT16
    if "INT" in decl:
        return ColumnType.INT32
    if "DATETIME" in decl or "TIMESTAMP" in decl:
        return ColumnType.DATETIME
    if "DATE" in decl:
        return ColumnType.DATE
    if decl in ("CHAR", "CHAR(1)", "CHARACTER(1)"):
        return ColumnType.CHAR
    if "CHAR" in decl or "CLOB" in decl or "TEXT" in decl:
        return ColumnType.TEXT
    if "REAL" in decl or "FLOA" in decl or "DOUB" in decl:
        return ColumnType.FLOAT
    if "DECIMAL" in decl or "NUMERIC" in decl:
        return ColumnType.DECIMAL
    return None


class SQLiteBulkLoader(TabularBulkLoader):
    """``executemany`` inside one transaction; declared types via ``PRAGMA table_info``."""

    strategy = "sqlite_bulk"

    def resolve_types(
        self,
        conn: Connection,
        table: str,
        names: Sequence[str],
        description: Sequence[Any],
    ) -> list[LiveColumn]:
        with closing(conn.cursor()) as cur:
            cur.execute(f"PRAGMA table_info({table})")
            declared = {str(row[1]).lower(): str(row[2] or "") for row in cur.fetchall()}

        columns = []
        for name in names:
            native = declared.get(name.lower(), "")
            column_type = sqlite_column_type(native)
            if column_type is None:
                raise UnsupportedColumnType(name, native or None)
            columns.append(LiveColumn(name, column_type, native))
        return columns

    def driver_value(self, value: Any) -> Any:
        if isinstance(value, uuid.UUID):
            return str(value)
        if isinstance(value, (dt.date, dt.datetime)):
            return value.isoformat()
        if isinstance(value, Decimal):
            return str(value)
        return super().driver_value(value)


__all__ = [
    "SQLSERVER_TYPES",
    "SQLiteBulkLoader",
    "SqlServerBulkLoader",
    "TabularBulkLoader",
    "sqlite_column_type",
]
