"""Per-record-type validation hooks consulted by the CRUD routes.

Every hook returns a :class:`ValidationOutcome`. ``valid=False`` rejects
the request; a non-``None`` ``value`` replaces what the caller sent (a
normalized record, a parsed id, a cleaned search term, or for the
read/delete hooks a record to use instead of a lookup).

Hook order per route::

    POST   /r        is_valid_record -> is_post_valid   -> insert
    PUT    /r        is_valid_record -> is_put_valid    -> insert
    GET    /r/{id}   parse_id        -> is_get_valid    -> find_by_key
    DELETE /r/{id}   parse_id        -> is_delete_valid -> find_by_key -> delete
    DELETE /r        is_valid_record -> is_delete_valid -> find_by_key -> delete
    GET    /r?t=     is_search_term_valid (non-blank t) -> search

Tags:
    autocrud, validation, hooks, protocol
"""

from __future__ import annotations

import datetime as dt
import uuid
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar, runtime_checkable

from autocrud.core.schema import FieldType

if TYPE_CHECKING:
    from autocrud.core.repository import Repository

T = TypeVar("T")


@dataclass(frozen=True)
class ValidationOutcome(Generic[T]):
    """Result of one validation hook."""

    valid: bool
    value: T | None = None

    @classmethod
    def accept(cls, value: T | None = None) -> ValidationOutcome[T]:
        return cls(True, value)

    @classmethod
    def reject(cls) -> ValidationOutcome[T]:
        return cls(False, None)

    def __bool__(self) -> bool:
        return self.valid


@runtime_checkable
class CrudValidation(Protocol):
    """Validation hooks for one record type."""

    def is_valid_record(self, record: Any, repository: Repository) -> ValidationOutcome:
        ...

    def parse_id(self, raw: str, repository: Repository) -> ValidationOutcome:
        ...

    def is_search_term_valid(self, term: str, repository: Repository) -> ValidationOutcome:
        ...

    def is_post_valid(self, record: Any, repository: Repository) -> ValidationOutcome:
        ...

    def is_get_valid(self, record_or_id: Any, repository: Repository) -> ValidationOutcome:
        ...

    def is_put_valid(self, record: Any, repository: Repository) -> ValidationOutcome:
        ...

    def is_delete_valid(self, record_or_id: Any, repository: Repository) -> ValidationOutcome:
        ...


def parse_key(field_type: FieldType, raw: str) -> Any:
    """Parse a path segment into a key of *field_type*.

    Raises:
        ValueError: *raw* is not a valid value of that type.
    """
    match field_type:
        case FieldType.UUID:
            return uuid.UUID(raw)
        case FieldType.INTEGER:
            return int(raw)
        case FieldType.FLOAT:
            return float(raw)
        case FieldType.DECIMAL:
            try:
                return Decimal(raw)
            except InvalidOperation:
                raise ValueError(f"invalid decimal: {raw!r}") from None
        case FieldType.DATE:
            return dt.date.fromisoformat(raw)
        case FieldType.DATETIME:
            return dt.datetime.fromisoformat(raw)
        case FieldType.BOOLEAN:
            lowered = raw.lower()
            if lowered not in ("true", "false", "1", "0"):
                raise ValueError(f"invalid boolean: {raw!r}")
            return lowered in ("true", "1")
        case FieldType.TEXT_ARRAY:
            raise ValueError("array keys are not supported")
        case _:
            if not raw:
                raise ValueError("empty key")
            return raw


class AcceptAllValidation:
    """Accepts everything; ids are parsed by the key field's type."""

    def is_valid_record(self, record: Any, repository: Repository) -> ValidationOutcome:
        return ValidationOutcome.accept()

    def parse_id(self, raw: str, repository: Repository) -> ValidationOutcome:
        try:
            return ValidationOutcome.accept(parse_key(repository.schema.key.field_type, raw))
        except ValueError:
            return ValidationOutcome.reject()

    def is_search_term_valid(self, term: str, repository: Repository) -> ValidationOutcome:
        return ValidationOutcome.accept()

    def is_post_valid(self, record: Any, repository: Repository) -> ValidationOutcome:
        return ValidationOutcome.accept()

    def is_get_valid(self, record_or_id: Any, repository: Repository) -> ValidationOutcome:
        return ValidationOutcome.accept()

    def is_put_valid(self, record: Any, repository: Repository) -> ValidationOutcome:
        return ValidationOutcome.accept()

    def is_delete_valid(self, record_or_id: Any, repository: Repository) -> ValidationOutcome:
        return ValidationOutcome.accept()


__all__ = [
    "AcceptAllValidation",
    "CrudValidation",
    "ValidationOutcome",
    "parse_key",
]
