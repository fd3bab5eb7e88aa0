"""Adapter lookup by backend name.

Manifesto:
    Settings, tests and callers name a backend with a string
    (``"postgres"``, ``"mssql"``, ``"sqlite"``) or a :class:`DatabaseType`.
    The registry resolves aliases to one canonical type and builds the
    adapter class registered for it; callers never import vendor classes.

Features:
    - Canonical factories per ``DatabaseType`` plus an alias table
    - ``register()`` for additional backends or test doubles
    - ``get_adapter()`` factory: name or type + kwargs -> adapter
    - ``backend_for_url()`` guesses the backend from a URL scheme

Tags:
    autocrud, database, registry, factory

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any

from autocrud.core.errors import ConfigError

from .base import DatabaseAdapter
from .postgresql import PostgreSQLAdapter
from .sqlite import SQLiteAdapter
from .sqlserver import SqlServerAdapter
from .types import DatabaseType

_ALIASES: dict[str, str] = {
    "postgres": DatabaseType.POSTGRESQL.value,
    "pg": DatabaseType.POSTGRESQL.value,
    "mssql": DatabaseType.SQLSERVER.value,
}

_URL_SCHEMES: dict[str, str] = {
    "postgresql": DatabaseType.POSTGRESQL.value,
    "postgres": DatabaseType.POSTGRESQL.value,
    "mssql": DatabaseType.SQLSERVER.value,
    "sqlite": DatabaseType.SQLITE.value,
    "file": DatabaseType.SQLITE.value,
}


class AdapterRegistry:
    """Maps backend names to :class:`DatabaseAdapter` classes.

    ``postgres`` / ``pg`` resolve to ``postgresql`` and ``mssql`` to
    ``sqlserver`` unless a class is registered under the alias itself.
    """

    def __init__(self) -> None:
        self._classes: dict[str, type[DatabaseAdapter]] = {
            DatabaseType.SQLITE.value: SQLiteAdapter,
            DatabaseType.POSTGRESQL.value: PostgreSQLAdapter,
            DatabaseType.SQLSERVER.value: SqlServerAdapter,
        }

    def resolve(self, name: DatabaseType | str) -> str:
        """Canonical registry key for *name*."""
        key = name.value if isinstance(name, DatabaseType) else str(name).strip().lower()
        if key in self._classes:
            return key
        return _ALIASES.get(key, key)

    def register(self, name: str, adapter_class: type[DatabaseAdapter]) -> None:
        self._classes[name.lower()] = adapter_class

    def adapter_class(self, name: DatabaseType | str) -> type[DatabaseAdapter]:
        key = self.resolve(name)
        try:
            return self._classes[key]
        except KeyError:
            raise ConfigError(
                f"Unknown database adapter: {key}",
            ).with_context(backend=key, available=self.list_adapters()) from None

    def create(self, name: DatabaseType | str, **kwargs: Any) -> DatabaseAdapter:
        return self.adapter_class(name)(**kwargs)

    def list_adapters(self) -> list[str]:
        """Registered names, aliases included."""
        return sorted(set(self._classes) | {a for a, k in _ALIASES.items() if k in self._classes})


adapter_registry = AdapterRegistry()


def get_adapter(db_type: DatabaseType | str, **kwargs: Any) -> DatabaseAdapter:
    """
    Build an adapter for *db_type*.

    Usage:
        adapter = get_adapter(DatabaseType.SQLITE, path="data.db")
        adapter = get_adapter("postgres", dsn="postgresql://app@localhost/app")
        adapter = get_adapter("mssql", host="db", database="app", username="sa")
    """
    return adapter_registry.create(db_type, **kwargs)


def backend_for_url(url: str) -> str | None:
    """Backend name implied by *url*'s scheme, or ``None``.

    ODBC connection strings (``DRIVER={...};SERVER=...``) map to
    ``sqlserver``; bare paths have no scheme and return ``None``.
    """
    if url.upper().startswith("DRIVER=") or ";SERVER=" in url.upper():
        return DatabaseType.SQLSERVER.value
    scheme, sep, _ = url.partition(":")
    if not sep:
        return None
    return _URL_SCHEMES.get(scheme.split("+")[0].lower())


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "backend_for_url",
    "get_adapter",
]
