"""PostgreSQL binary COPY bulk loader (psycopg 3)."""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import closing
from typing import Any

from autocrud.core.bulk.encoders import ColumnType, LiveColumn
from autocrud.core.bulk.loader import BulkLoader, BulkPlan
from autocrud.core.errors import UnsupportedColumnType
from autocrud.core.protocols import Connection

# Builtin type OIDs (pg_type.oid) -> (ColumnType, name passed to Copy.set_types)
PG_TYPES: dict[int, tuple[ColumnType, str]] = {
    2950: (ColumnType.UUID, "uuid"),
    20: (ColumnType.INT64, "int8"),
    23: (ColumnType.INT32, "int4"),
    21: (ColumnType.INT16, "int2"),
    18: (ColumnType.CHAR, "char"),
    1042: (ColumnType.CHAR, "bpchar"),
    1043: (ColumnType.TEXT, "varchar"),
    25: (ColumnType.TEXT, "text"),
    16: (ColumnType.BOOLEAN, "bool"),
    1082: (ColumnType.DATE, "date"),
    1114: (ColumnType.DATETIME, "timestamp"),
    1184: (ColumnType.DATETIME, "timestamptz"),
    700: (ColumnType.FLOAT, "float4"),
    701: (ColumnType.FLOAT, "float8"),
    1700: (ColumnType.DECIMAL, "numeric"),
    1009: (ColumnType.TEXT_ARRAY, "text[]"),
    1015: (ColumnType.TEXT_ARRAY, "varchar[]"),
}


class BinaryCopyLoader(BulkLoader):
    """Streams rows with ``COPY … FROM STDIN (FORMAT BINARY)``.

    The copy block is closed (end-of-data sent, server acknowledges)
    before the caller commits and closes the connection.
    """

    strategy = "binary_copy"

    def resolve_types(
        self,
        conn: Connection,
        table: str,
        names: Sequence[str],
        description: Sequence[Any],
    ) -> list[LiveColumn]:
        columns = []
        for name, col in zip(names, description):
            oid = getattr(col, "type_code", None)
            if oid is None:
                oid = col[1]
            if oid not in PG_TYPES:
                raise UnsupportedColumnType(name, oid, f"Unsupported PostgreSQL type OID {oid} for column {name}")
            column_type, pg_name = PG_TYPES[oid]
            columns.append(LiveColumn(name, column_type, pg_name))
        return columns

    def write(self, conn: Connection, plan: BulkPlan, records: Sequence[Any]) -> int:
        statement = f"COPY {plan.table} ({plan.column_list}) FROM STDIN (FORMAT BINARY)"
        written = 0
        with closing(conn.cursor()) as cur:
            with cur.copy(statement) as copy:
                copy.set_types([c.native_type for c in plan.columns])
                for record in records:
                    copy.write_row(self.encode_row(plan, record))
                    written += 1
        return written


__all__ = [
    "BinaryCopyLoader",
    "PG_TYPES",
]
