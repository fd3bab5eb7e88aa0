"""Generic repository: CRUD, search and bulk load for any bound record type.

One :class:`Repository` serves every backend. Everything backend-specific
comes from the :class:`~autocrud.core.adapters.DatabaseAdapter` (connection
factory, dialect, bulk channel, driver exception types); the SQL text
comes from the shared :class:`~autocrud.core.metadata.TableMetadataCache`.

Architecture::

    ┌──────────────────────────────────────────────────────────────────────┐
    │                            Repository                                │
    │                                                                      │
    │   entry: TableMetadataEntry   ← cache.bind(table, schema, dialect)   │
    │   adapter: DatabaseAdapter    ← connection / dialect / bulk_loader   │
    │                                                                      │
    │   count()                      → int                                 │
    │   find_by_key(key)             → record | None                       │
    │   find_by_field(name, value)   → record | None                       │
    │   search(term, page, size)     → list[record]                        │
    │   insert(record)               → bool   (failures logged, False)     │
    │   insert_many(records)         → int    (records handed to bulk)     │
    │   delete(key)                  → bool   (row affected)               │
    └──────────────────────────────────────────────────────────────────────┘

Every operation opens its own connection with ``adapter.connection()``
and releases it on every exit path. Identifier and paging arguments are
checked before a connection is opened.

Usage:
    >>> from autocrud.core.adapters import SQLiteAdapter
    >>> from autocrud.core.metadata import TableMetadataCache
    >>> repo = Repository(Customer, "customers", "id", SQLiteAdapter("app.db"), TableMetadataCache())
    >>> repo.insert(Customer(id=1, name="Ada"))
    True

Tags:
    repository, crud, generic, database, bulk, autocrud

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import ExitStack, closing
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from autocrud.core import sql
from autocrud.core.bulk.runner import BulkLoadRunner
from autocrud.core.errors import BackendExecutionFailure, DatabaseConnectionError, InvalidArgument
from autocrud.core.logging import LogContext, get_logger
from autocrud.core.metadata import TableMetadataCache, TableMetadataEntry
from autocrud.core.schema import SchemaDescriptor, describe_record
from autocrud.core.values import decode_value

if TYPE_CHECKING:
    from autocrud.core.adapters.base import DatabaseAdapter

logger = get_logger(__name__)

T = TypeVar("T")


class Repository(Generic[T]):
    """Data access for one record type bound to one table.

    Parameters:
        record_type: Dataclass or pydantic model rows map into.
        table_name: Destination table.
        key_field: Field holding the record's identifier.
        adapter: Backend capability object.
        cache: Shared metadata cache; the table is bound on construction.
        search_field: Field matched by :meth:`search` (default: key field).
        bulk_runner: Runner for detached bulk loads. Without one,
            :meth:`insert_many` always streams inline.
        wait_for_bulk: Default for ``insert_many(wait=...)``.

    Raises:
        InvalidIdentifier: A name fails the identifier grammar or names no
            field of *record_type*.
        DuplicateBinding: *table_name* is already bound to another shape.
    """

    def __init__(
        self,
        record_type: type[T],
        table_name: str,
        key_field: str,
        adapter: DatabaseAdapter,
        cache: TableMetadataCache,
        *,
        search_field: str | None = None,
        bulk_runner: BulkLoadRunner | None = None,
        wait_for_bulk: bool | None = None,
    ) -> None:
        schema = describe_record(record_type, key_field, search_field)
        self.adapter = adapter
        self.entry: TableMetadataEntry = cache.bind(table_name, schema, adapter.dialect)
        self.bulk_runner = bulk_runner
        self.wait_for_bulk = bool(wait_for_bulk) if wait_for_bulk is not None else bulk_runner is None

    # -- Properties ----------------------------------------------------------

    @property
    def table_name(self) -> str:
        return self.entry.table_name

    @property
    def schema(self) -> SchemaDescriptor:
        return self.entry.schema

    @property
    def record_type(self) -> type[T]:
        return self.schema.record_type

    # -- Internals -------------------------------------------------------------

    def _adapt(self, field_name: str, value: Any) -> Any:
        found = self.schema.field(field_name)
        if found is None:
            return value
        return self.adapter.dialect.adapt_param(found.field_type, value)

    def _to_record(self, names: Sequence[str], row: Sequence[Any]) -> T:
        values = {}
        for name, value in zip(names, row):
            found = self.schema.field(name)
            values[name] = decode_value(found.field_type, value) if found is not None else value
        return self.schema.from_row(values)

    def _backend_failure(self, operation: str, error: BaseException) -> BackendExecutionFailure:
        return BackendExecutionFailure(
            f"{operation} on {self.table_name} failed: {error}", cause=error
        ).with_context(
            table=self.table_name,
            operation=operation,
            backend=self.adapter.dialect.name,
        )

    def _query(self, operation: str, statement: str, params: Sequence[Any]) -> list[T]:
        try:
            with self.adapter.connection() as conn, closing(conn.cursor()) as cur:
                cur.execute(statement, tuple(params))
                names = [str(col[0]) for col in cur.description or []]
                rows = cur.fetchall()
        except self.adapter.driver_errors as e:
            raise self._backend_failure(operation, e) from e
        return [self._to_record(names, row) for row in rows]

    def _query_one(self, operation: str, statement: str, params: Sequence[Any]) -> T | None:
        records = self._query(operation, statement, params)
        return records[0] if records else None

    # -- Reads -----------------------------------------------------------------

    def count(self) -> int:
        """Number of rows in the table."""
        statement = sql.count(self.table_name, self.schema.key_field)
        try:
            with self.adapter.connection() as conn, closing(conn.cursor()) as cur:
                cur.execute(statement)
                row = cur.fetchone()
        except self.adapter.driver_errors as e:
            raise self._backend_failure("count", e) from e
        return int(row[0] or 0) if row else 0

    def find_by_key(self, key: Any) -> T | None:
        """Record whose key equals *key*, or ``None``."""
        if key is None:
            raise InvalidArgument("key must not be None", field=self.schema.key_field)
        statement = sql.select_by_key(
            self.table_name, self.entry.projection, self.schema.key_field, self.adapter.dialect
        )
        return self._query_one("find_by_key", statement, [self._adapt(self.schema.key_field, key)])

    def find_by_field(self, field_name: str, value: Any) -> T | None:
        """First record whose *field_name* equals *value*, or ``None``.

        Raises:
            InvalidIdentifier: *field_name* fails the identifier grammar.
        """
        statement = sql.select_by_field(
            self.table_name, self.entry.projection, field_name, self.adapter.dialect
        )
        return self._query_one("find_by_field", statement, [self._adapt(field_name, value)])

    def find_by_example(self, field_name: str, record: T) -> T | None:
        """Look up by *field_name* using that field's value on *record*."""
        if record is None:
            raise InvalidArgument("record must not be None")
        value = self.schema.value_of(record, field_name)
        return self.find_by_field(field_name, value)

    def search(
        self,
        term: str | None = None,
        page_number: int = 1,
        page_size: int = 25,
    ) -> list[T]:
        """One page of records whose search field contains *term*, ordered by key.

        A ``None`` or blank *term* returns an unfiltered page. *term* is not
        escaped, so ``%`` and ``_`` match any run of characters and any
        single character.

        Raises:
            InvalidArgument: *page_number* or *page_size* is below 1.
        """
        statement, params = sql.search(
            self.table_name,
            self.entry.projection,
            self.schema.search_field,
            self.schema.key_field,
            self.adapter.dialect,
            term,
            page_number,
            page_size,
        )
        return self._query("search", statement, params)

    # -- Writes ----------------------------------------------------------------

    def insert(self, record: T | None) -> bool:
        """Insert or overwrite *record* by key.

        Backend failures, including a connection that cannot be opened,
        are logged and reported as ``False``.
        """
        if record is None:
            return False

        upsert = self.entry.upsert()
        params = tuple(self._adapt(name, self.schema.value_of(record, name)) for name in upsert.param_fields)

        try:
            try:
                with self.adapter.connection() as conn:
                    with closing(conn.cursor()) as cur:
                        cur.execute(upsert.sql, params)
                    conn.commit()
            except self.adapter.driver_errors as e:
                raise self._backend_failure("insert", e) from e
        except (BackendExecutionFailure, DatabaseConnectionError) as e:
            logger.warning(
                "insert_failed",
                table=self.table_name,
                key=str(self.schema.value_of(record, self.schema.key_field)),
                error=str(e.cause or e),
            )
            return False
        return True

    def delete(self, key: Any) -> bool:
        """Delete the row with *key*; ``True`` when a row was removed."""
        if key is None:
            raise InvalidArgument("key must not be None", field=self.schema.key_field)
        statement = sql.delete(self.table_name, self.schema.key_field, self.adapter.dialect)
        try:
            with self.adapter.connection() as conn:
                with closing(conn.cursor()) as cur:
                    cur.execute(statement, (self._adapt(self.schema.key_field, key),))
                    affected = cur.rowcount
                conn.commit()
        except self.adapter.driver_errors as e:
            raise self._backend_failure("delete", e) from e
        return affected > 0

    def insert_many(self, records: Sequence[T], *, wait: bool | None = None) -> int:
        """Bulk load *records* through the backend's bulk channel.

        The destination schema is probed before anything is written, so
        schema drift raises here. Streaming then runs inline when *wait*
        is true (errors propagate) or on the bulk runner (failures are
        logged; see :meth:`wait_for_bulk_loads`).

        Returns:
            Number of records handed to the bulk loader.

        Raises:
            ColumnCountMismatch: Record field count differs from the table's.
            UnknownColumn: A table column has no matching record field.
            UnsupportedColumnType: A column's native type has no encoder.
        """
        if records is None:
            raise InvalidArgument("records must not be None")
        batch = list(records)
        if not batch:
            return 0

        wait = self.wait_for_bulk if wait is None else wait
        loader = self.adapter.bulk_loader()

        with ExitStack() as stack:
            conn = stack.enter_context(self.adapter.connection())
            try:
                plan = loader.prepare(conn, self.table_name, self.schema)
            except self.adapter.driver_errors as e:
                raise self._backend_failure("insert_many", e) from e

            if wait or self.bulk_runner is None:
                loader.load(conn, plan, batch)
                return len(batch)

            owned = stack.pop_all()

        def job() -> int:
            with owned, LogContext(table=self.table_name, operation="insert_many"):
                return loader.load(conn, plan, batch)

        try:
            self.bulk_runner.submit(job, table=self.table_name)
        except RuntimeError:
            owned.close()
            raise
        logger.debug("bulk_load_submitted", table=self.table_name, rows=len(batch))
        return len(batch)

    def wait_for_bulk_loads(self, timeout: float | None = None) -> list[BaseException]:
        """Block until detached bulk loads finish; return their failures."""
        if self.bulk_runner is None:
            return []
        return self.bulk_runner.wait(timeout)

    def __repr__(self) -> str:
        return (
            f"Repository({self.record_type.__name__}, table={self.table_name!r}, "
            f"backend={self.adapter.dialect.name!r})"
        )


__all__ = [
    "Repository",
]
