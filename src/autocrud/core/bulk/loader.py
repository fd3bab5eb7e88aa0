"""Bulk loader base class.

A bulk load runs in two phases:

1. ``prepare`` probes the destination table with a zero-row query,
   checks the column count against the record type, matches every live
   column to a record field and resolves each column's native type to a
   :class:`ColumnType`. Nothing is written; schema drift fails here.
2. ``load`` streams every record through the backend's transfer
   channel, column by column in live order, and commits once.

Subclasses implement ``resolve_types`` (native type -> ColumnType) and
``write`` (the wire mechanism).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from contextlib import closing
from dataclasses import dataclass
from typing import Any

from autocrud.core.bulk.encoders import LiveColumn, encode
from autocrud.core.dialect import Dialect
from autocrud.core.errors import (
    BackendExecutionFailure,
    ColumnCountMismatch,
    CrudError,
    UnknownColumn,
)
from autocrud.core.logging import get_logger
from autocrud.core.protocols import Connection
from autocrud.core.schema import SchemaDescriptor

logger = get_logger(__name__)


@dataclass(frozen=True)
class BulkPlan:
    """Resolved destination layout for one bulk load."""

    table: str
    columns: tuple[LiveColumn, ...]
    field_names: tuple[str, ...]

    @property
    def column_list(self) -> str:
        return ", ".join(c.name for c in self.columns)


class BulkLoader(ABC):
    """Backend-specific bulk transfer strategy."""

    strategy: str = "bulk"

    def __init__(
        self,
        dialect: Dialect,
        driver_errors: tuple[type[BaseException], ...] = (),
    ) -> None:
        self.dialect = dialect
        self.driver_errors = driver_errors

    # -- Phase 1 -----------------------------------------------------------

    def prepare(self, conn: Connection, table: str, schema: SchemaDescriptor) -> BulkPlan:
        """Probe the live schema of *table* and build a :class:`BulkPlan`.

        Raises:
            ColumnCountMismatch: Field count differs from column count.
            UnknownColumn: A live column has no matching record field.
            UnsupportedColumnType: A column's native type has no encoder.
        """
        with closing(conn.cursor()) as cur:
            cur.execute(self.dialect.zero_row_query(table))
            description = list(cur.description or [])
            cur.fetchall()

        field_count = len(schema.written_fields)
        if len(description) != field_count:
            raise ColumnCountMismatch(table, field_count, len(description))

        names = [str(col[0]) for col in description]
        field_names = []
        for name in names:
            field = schema.field(name)
            if field is None:
                raise UnknownColumn(table, name)
            field_names.append(field.name)

        columns = self.resolve_types(conn, table, names, description)
        return BulkPlan(table=table, columns=tuple(columns), field_names=tuple(field_names))

    @abstractmethod
    def resolve_types(
        self,
        conn: Connection,
        table: str,
        names: Sequence[str],
        description: Sequence[Any],
    ) -> list[LiveColumn]:
        """Map each live column to a :class:`LiveColumn`, in order."""
        ...

    # -- Phase 2 -----------------------------------------------------------

    def encode_row(self, plan: BulkPlan, record: Any) -> list[Any]:
        return [
            encode(column, getattr(record, field_name))
            for column, field_name in zip(plan.columns, plan.field_names)
        ]

    @abstractmethod
    def write(self, conn: Connection, plan: BulkPlan, records: Sequence[Any]) -> int:
        """Stream *records*; return rows written. Must not commit."""
        ...

    def load(self, conn: Connection, plan: BulkPlan, records: Sequence[Any]) -> int:
        """Stream *records* and commit as one transfer.

        Raises:
            UnsupportedColumnType: A value does not fit its column; nothing
                is committed.
            BackendExecutionFailure: The backend rejected the transfer.
        """
        try:
            written = self.write(conn, plan, records)
            conn.commit()
        except CrudError:
            conn.rollback()
            raise
        except self.driver_errors as e:
            conn.rollback()
            raise BackendExecutionFailure(
                f"Bulk load into {plan.table} failed: {e}", cause=e
            ).with_context(table=plan.table, operation="insert_many") from e

        logger.info(
            "bulk_load_completed",
            table=plan.table,
            strategy=self.strategy,
            rows=written,
        )
        return written


__all__ = [
    "BulkLoader",
    "BulkPlan",
]
