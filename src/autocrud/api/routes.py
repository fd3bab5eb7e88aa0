"""
CRUD router factory -- one FastAPI router per registered record type.

Endpoints (``{route}`` defaults to the lowercased record type name + ``s``):
    POST   /{route}              Insert or overwrite a record (201)
    GET    /{route}/{id}         Fetch one record by key
    PUT    /{route}              Insert or overwrite a record (200)
    DELETE /{route}/{id}         Delete by key, returning the deleted record
    DELETE /{route}              Delete the record given in the body
    GET    /{route}?t=&pn=&ps=   Paginated substring search
    GET    /count-{route}        Row count

Every handler consults the record type's validation hooks before it
touches the repository; see :mod:`autocrud.core.validation` for the order.

Tags:
    autocrud, api, crud, router, FastAPI

Doc-Types: API_REFERENCE
"""

# Annotations stay evaluated here: handler signatures use the record type
# captured by ``crud_router`` and FastAPI resolves them at registration.

from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Body, Query, Request, Response, status
from fastapi.routing import APIRoute

from autocrud.api.errors import error_response, problem_response
from autocrud.core.errors import CrudError
from autocrud.core.logging import bind_context, clear_context, get_logger
from autocrud.core.repository import Repository
from autocrud.core.validation import AcceptAllValidation, CrudValidation

logger = get_logger(__name__)


class CrudRoute(APIRoute):
    """Route class that turns :class:`CrudError` into problem responses."""

    def get_route_handler(self) -> Callable:
        handler = super().get_route_handler()

        async def crud_route_handler(request: Request) -> Response:
            bind_context(method=request.method, path=request.url.path)
            try:
                return await handler(request)
            except CrudError as e:
                logger.warning(
                    "request_failed",
                    error_type=type(e).__name__,
                    error=e.message,
                )
                return error_response(e, instance=str(request.url.path))
            finally:
                clear_context()

        return crud_route_handler


def default_route(record_type: type) -> str:
    return record_type.__name__.lower() + "s"


def _normalize_route(route: str) -> str:
    return "/" + route.strip("/").lower()


def crud_router(
    repository: Repository,
    validation: CrudValidation | None = None,
    route: str | None = None,
    default_page_size: int = 25,
) -> APIRouter:
    """Build the CRUD router for *repository*'s record type."""
    record_type = repository.record_type
    validation = validation or AcceptAllValidation()
    path = _normalize_route(route or default_route(record_type))
    tag = path.lstrip("/")
    key_field = repository.schema.key_field

    router = APIRouter(route_class=CrudRoute, tags=[tag])

    def key_of(record: Any) -> Any:
        return getattr(record, key_field)

    @router.post(path, status_code=status.HTTP_201_CREATED)
    def create_record(record: record_type, request: Request, response: Response):  # type: ignore[valid-type]
        """Validate, then insert or overwrite the record."""
        outcome = validation.is_valid_record(record, repository)
        if not outcome:
            return problem_response(status=400, title="Invalid record", instance=request.url.path)
        record = outcome.value or record

        outcome = validation.is_post_valid(record, repository)
        if not outcome:
            return problem_response(status=422, title="Record rejected", instance=request.url.path)
        record = outcome.value or record

        if not repository.insert(record):
            return problem_response(
                status=409,
                title="Record not stored",
                detail=f"The backend rejected the {tag} record",
                instance=request.url.path,
            )
        response.headers["Location"] = f"{path}/{key_of(record)}"
        return record

    @router.get(path + "/{id}")
    def get_record(id: str, request: Request):
        """Fetch one record by key."""
        parsed = validation.parse_id(id, repository)
        if not parsed:
            return problem_response(status=400, title="Invalid id", detail=id, instance=request.url.path)
        key = parsed.value

        outcome = validation.is_get_valid(key, repository)
        if not outcome:
            return problem_response(status=422, title="Read rejected", detail=id, instance=request.url.path)

        record = outcome.value or repository.find_by_key(key)
        if record is None:
            return problem_response(status=404, title="Not Found", detail=id, instance=request.url.path)
        return record

    @router.put(path)
    def update_record(record: record_type, request: Request):  # type: ignore[valid-type]
        """Validate, then insert or overwrite the record."""
        outcome = validation.is_valid_record(record, repository)
        if not outcome:
            return problem_response(status=400, title="Invalid record", instance=request.url.path)
        record = outcome.value or record

        outcome = validation.is_put_valid(record, repository)
        if not outcome:
            return problem_response(status=422, title="Record rejected", instance=request.url.path)
        record = outcome.value or record

        if not repository.insert(record):
            return problem_response(
                status=409,
                title="Record not stored",
                detail=f"The backend rejected the {tag} record",
                instance=request.url.path,
            )
        return record

    @router.delete(path + "/{id}")
    def delete_record_by_id(id: str, request: Request):
        """Delete by key; responds with the deleted record."""
        parsed = validation.parse_id(id, repository)
        if not parsed:
            return problem_response(status=400, title="Invalid id", detail=id, instance=request.url.path)
        key = parsed.value

        outcome = validation.is_delete_valid(key, repository)
        if not outcome:
            return problem_response(status=422, title="Delete rejected", detail=id, instance=request.url.path)

        record = outcome.value or repository.find_by_key(key)
        if record is None:
            return problem_response(status=404, title="Not Found", detail=id, instance=request.url.path)
        repository.delete(key_of(record))
        return record

    @router.delete(path)
    def delete_record(request: Request, record: record_type = Body(...)):  # type: ignore[valid-type]
        """Delete the record identified by the body's key."""
        outcome = validation.is_valid_record(record, repository)
        if not outcome:
            return problem_response(status=400, title="Invalid record", instance=request.url.path)
        record = outcome.value or record

        outcome = validation.is_delete_valid(record, repository)
        if not outcome:
            return problem_response(status=422, title="Delete rejected", instance=request.url.path)

        found = outcome.value or repository.find_by_key(key_of(record))
        if found is None:
            return problem_response(
                status=404, title="Not Found", detail=str(key_of(record)), instance=request.url.path
            )
        repository.delete(key_of(found))
        return found

    @router.get(path)
    def search_records(
        request: Request,
        t: str | None = Query(None, description="Substring matched against the search field"),
        pn: int = Query(1, description="Page number, starting at 1"),
        ps: int = Query(default_page_size, description="Page size"),
    ):
        """One page of records whose search field contains ``t``."""
        if t is not None and t.strip():
            outcome = validation.is_search_term_valid(t, repository)
            if not outcome:
                return problem_response(status=400, title="Invalid search term", detail=t, instance=request.url.path)
            t = outcome.value or t
        return repository.search(t, pn, ps)

    @router.get("/count-" + tag)
    def count_records():
        """Number of stored records."""
        return repository.count()

    return router


__all__ = [
    "CrudRoute",
    "crud_router",
    "default_route",
]
