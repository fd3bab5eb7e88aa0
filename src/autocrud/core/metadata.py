"""Process-wide table metadata cache.

One :class:`TableMetadataEntry` per bound table holds the schema
descriptor, the read projection (computed eagerly at binding time) and
the upsert statement (computed on the first insert, then memoized).
Entries live as long as the cache that owns them; nothing invalidates
them.

The cache is an ordinary object. Construct it once at startup and pass
it to every repository that should share metadata::

    cache = TableMetadataCache()
    customers = Repository(Customer, "customers", "id", adapter, cache)

Thread-safety:
    - ``get_or_create`` runs the factory at most once per table name,
      even when several threads bind the same table concurrently.
    - ``TableMetadataEntry.upsert`` fills the upsert statement behind a
      per-entry one-shot lock; concurrent first inserts all observe the
      same statement.

Tags:
    cache, metadata, thread-safe, compute-once, autocrud
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator

from autocrud.core import sql
from autocrud.core.dialect import Dialect, UpsertStatement
from autocrud.core.errors import DuplicateBinding
from autocrud.core.logging import get_logger
from autocrud.core.schema import SchemaDescriptor, validate_identifier

logger = get_logger(__name__)


class TableMetadataEntry:
    """Cached SQL metadata for one table binding."""

    def __init__(self, table_name: str, schema: SchemaDescriptor, dialect: Dialect) -> None:
        self.table_name = validate_identifier(table_name, "table name")
        self.schema = schema
        self.dialect = dialect
        self.projection = sql.projection(schema, dialect)
        self._upsert: UpsertStatement | None = None
        self._upsert_lock = threading.Lock()

    @property
    def is_upsert_ready(self) -> bool:
        return self._upsert is not None

    def upsert(self) -> UpsertStatement:
        """Return the upsert statement, building it on first use."""
        statement = self._upsert
        if statement is not None:
            return statement

        with self._upsert_lock:
            if self._upsert is None:
                self._upsert = sql.upsert(self.table_name, self.schema, self.dialect)
                logger.debug(
                    "upsert_statement_built",
                    table=self.table_name,
                    dialect=self.dialect.name,
                )
            return self._upsert

    def is_compatible(self, schema: SchemaDescriptor, dialect: Dialect) -> bool:
        return self.schema.signature() == schema.signature() and self.dialect.name == dialect.name

    def __repr__(self) -> str:
        return (
            f"TableMetadataEntry({self.table_name!r}, dialect={self.dialect.name!r}, "
            f"upsert_ready={self.is_upsert_ready})"
        )


class TableMetadataCache:
    """Thread-safe map of table name -> :class:`TableMetadataEntry`."""

    def __init__(self) -> None:
        self._entries: dict[str, TableMetadataEntry] = {}
        self._lock = threading.RLock()

    def get_or_create(
        self,
        table_name: str,
        factory: Callable[[], TableMetadataEntry],
    ) -> TableMetadataEntry:
        """Return the entry for *table_name*, running *factory* only if absent."""
        key = validate_identifier(table_name, "table name").lower()

        entry = self._entries.get(key)
        if entry is not None:
            return entry

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = factory()
                self._entries[key] = entry
            return entry

    def bind(
        self,
        table_name: str,
        schema: SchemaDescriptor,
        dialect: Dialect,
    ) -> TableMetadataEntry:
        """Bind *table_name* to *schema*.

        Binding the same table again with an identical descriptor and
        dialect returns the existing entry.

        Raises:
            DuplicateBinding: The table is already bound to a different
                descriptor or dialect.
        """
        created = False

        def factory() -> TableMetadataEntry:
            nonlocal created
            created = True
            return TableMetadataEntry(table_name, schema, dialect)

        entry = self.get_or_create(table_name, factory)
        if created:
            logger.info(
                "table_bound",
                table=entry.table_name,
                record_type=schema.record_type.__name__,
                key_field=schema.key_field,
                search_field=schema.search_field,
                dialect=dialect.name,
            )
        elif not entry.is_compatible(schema, dialect):
            raise DuplicateBinding(table_name)
        return entry

    def get(self, table_name: str) -> TableMetadataEntry | None:
        return self._entries.get(table_name.lower())

    def tables(self) -> list[str]:
        with self._lock:
            return [entry.table_name for entry in self._entries.values()]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, table_name: object) -> bool:
        return isinstance(table_name, str) and table_name.lower() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TableMetadataEntry]:
        with self._lock:
            return iter(list(self._entries.values()))


__all__ = [
    "TableMetadataCache",
    "TableMetadataEntry",
]
