"""Wiring: one repository and one validation per record type.

``CrudRegistry`` is the composition root for an autocrud service. It owns
the shared :class:`TableMetadataCache` and :class:`BulkLoadRunner`, builds
a :class:`Repository` per record type, and mounts a CRUD router for each
one on a FastAPI app.

Examples:
    >>> registry = CrudRegistry(adapter=SQLiteAdapter("app.db"))
    >>> registry.add_repository(Customer, "customers", "id", search_field="name")
    >>> registry.add_validation(Customer, CustomerValidation())
    >>> registry.mount(app)

Tags:
    autocrud, registry, wiring, composition-root
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from autocrud.core.bulk.runner import BulkLoadRunner
from autocrud.core.errors import ConfigError
from autocrud.core.logging import get_logger
from autocrud.core.metadata import TableMetadataCache
from autocrud.core.repository import Repository
from autocrud.core.validation import AcceptAllValidation, CrudValidation

if TYPE_CHECKING:
    from fastapi import FastAPI

    from autocrud.core.adapters.base import DatabaseAdapter
    from autocrud.core.settings import AutoCrudSettings

logger = get_logger(__name__)


class CrudRegistry:
    """Registry of repositories and validations keyed by record type."""

    def __init__(
        self,
        adapter: DatabaseAdapter | None = None,
        *,
        cache: TableMetadataCache | None = None,
        bulk_runner: BulkLoadRunner | None = None,
        wait_for_bulk: bool = False,
        default_page_size: int = 25,
    ):
        self.adapter = adapter
        self.cache = cache or TableMetadataCache()
        self.bulk_runner = bulk_runner or BulkLoadRunner()
        self.wait_for_bulk = wait_for_bulk
        self.default_page_size = default_page_size
        self._repositories: dict[type, Repository] = {}
        self._validations: dict[type, CrudValidation] = {}
        self._routes: dict[type, str | None] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: AutoCrudSettings) -> CrudRegistry:
        from autocrud.core.settings import adapter_from_settings

        return cls(
            adapter_from_settings(settings),
            bulk_runner=BulkLoadRunner(max_workers=settings.bulk_load_workers),
            wait_for_bulk=settings.bulk_load_wait,
            default_page_size=settings.default_page_size,
        )

    def add_repository(
        self,
        record_type: type,
        table_name: str,
        key_field: str,
        *,
        search_field: str | None = None,
        adapter: DatabaseAdapter | None = None,
        route: str | None = None,
    ) -> Repository:
        """Bind *record_type* to *table_name* and register its repository.

        Raises:
            ConfigError: No adapter given here or on the registry, or the
                record type is already registered.
        """
        adapter = adapter or self.adapter
        if adapter is None:
            raise ConfigError(f"No database adapter for {record_type.__name__}")

        repository = Repository(
            record_type,
            table_name,
            key_field,
            adapter,
            self.cache,
            search_field=search_field,
            bulk_runner=self.bulk_runner,
            wait_for_bulk=self.wait_for_bulk,
        )
        with self._lock:
            if record_type in self._repositories:
                raise ConfigError(f"{record_type.__name__} is already registered")
            self._repositories[record_type] = repository
            self._routes[record_type] = route
        logger.info(
            "repository_registered",
            record_type=record_type.__name__,
            table=repository.table_name,
            backend=adapter.dialect.name,
        )
        return repository

    def repository(self, record_type: type) -> Repository:
        try:
            return self._repositories[record_type]
        except KeyError:
            raise ConfigError(f"No repository registered for {record_type.__name__}") from None

    def add_validation(self, record_type: type, validation: CrudValidation) -> None:
        if not isinstance(validation, CrudValidation):
            raise ConfigError(f"{type(validation).__name__} does not implement CrudValidation")
        self._validations[record_type] = validation

    def validation(self, record_type: type) -> CrudValidation:
        """Registered validation, or :class:`AcceptAllValidation`."""
        return self._validations.get(record_type) or AcceptAllValidation()

    def record_types(self) -> list[type]:
        return list(self._repositories)

    def mount(self, app: FastAPI, prefix: str = "") -> Any:
        """Include a CRUD router for every registered record type."""
        from autocrud.api.routes import crud_router

        for record_type, repository in self._repositories.items():
            router = crud_router(
                repository,
                self.validation(record_type),
                route=self._routes.get(record_type),
                default_page_size=self.default_page_size,
            )
            app.include_router(router, prefix=prefix)
        return app

    def shutdown(self, wait: bool = True) -> None:
        self.bulk_runner.shutdown(wait=wait)


__all__ = [
    "CrudRegistry",
]
