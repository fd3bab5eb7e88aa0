"""
FastAPI application factory.

``create_app()`` wires logging, the CRUD routers of a :class:`CrudRegistry`
and lifespan events into a single ``FastAPI`` instance.

Manifesto:
    The app factory is the single composition root for HTTP: routers,
    lifecycle hooks and logging are wired here so the repository layer
    never touches ``FastAPI`` directly.

Tags:
    autocrud, api, app-factory, composition-root, FastAPI

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from autocrud.core.logging import configure_logging, get_logger
from autocrud.core.registration import CrudRegistry
from autocrud.core.settings import AutoCrudSettings


def create_app(
    registry: CrudRegistry,
    settings: AutoCrudSettings | None = None,
    *,
    title: str = "autocrud",
    prefix: str = "",
) -> FastAPI:
    """Build a FastAPI app serving every repository in *registry*."""
    settings = settings or AutoCrudSettings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)
    log = get_logger("autocrud.api")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        log.info(
            "autocrud_api_starting",
            record_types=[t.__name__ for t in registry.record_types()],
        )
        yield
        # Drain detached bulk loads before the process exits
        registry.shutdown(wait=True)
        log.info("autocrud_api_stopped")

    app = FastAPI(title=title, lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry
    registry.mount(app, prefix=prefix)
    return app


__all__ = [
    "create_app",
]
