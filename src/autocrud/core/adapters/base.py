"""Database adapter base class.

Manifesto:
    The generic repository is parameterized by one capability object per
    backend: how to open a connection, which SQL dialect to speak, which
    bulk transfer channel to use and which driver exceptions mean "the
    backend rejected this". Consumers never depend on a specific vendor.

Features:
    - Abstract ``open_connection()`` returning a fresh, unpooled connection
    - ``connection()`` scoped context manager (rollback on error, always close)
    - Abstract ``bulk_loader()`` for the backend's bulk strategy
    - ``driver_errors`` tuple used to translate driver failures
    - Config-driven construction from ``DatabaseConfig``

Tags:
    autocrud, database, abstract-base, adapter-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager

from autocrud.core.bulk.loader import BulkLoader
from autocrud.core.dialect import Dialect, get_dialect
from autocrud.core.logging import get_logger
from autocrud.core.protocols import Connection

from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    Provides common functionality and defines the interface
    that all adapters must implement.
    """

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._dialect: Dialect = get_dialect(config.db_type.value)

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's database type."""
        return self._dialect

    @property
    def db_type(self) -> DatabaseType:
        """Database type."""
        return self._config.db_type

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        """Driver exception types translated to ``BackendExecutionFailure``."""
        return ()

    @abstractmethod
    def open_connection(self) -> Connection:
        """Open a new connection. The caller owns and closes it.

        Raises:
            ConfigError: The driver is not installed.
            DatabaseConnectionError: The backend refused the connection.
        """
        ...

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Scoped connection: rolled back on error, closed on every exit path."""
        conn = self.open_connection()
        try:
            yield conn
        except BaseException:
            try:
                conn.rollback()
            except self.driver_errors as e:
                logger.warning("rollback_failed", backend=self.db_type.value, error=str(e))
            raise
        finally:
            conn.close()

    @abstractmethod
    def bulk_loader(self) -> BulkLoader:
        """Bulk transfer strategy for this backend."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(db_type={self.db_type.value!r})"


__all__ = [
    "DatabaseAdapter",
]
