"""
Structured error types for autocrud.

Every error raised by the repository layer extends ``CrudError`` and
carries a category (what went wrong), a retryable flag, a context
(table, column, operation, backend) and the chained driver exception.

Manifesto:
    - **Fail before the round trip:** Identifier and argument errors are
      raised before any connection is opened
    - **Typed failures:** Callers can tell bad input from schema drift
      from a backend outage without parsing messages
    - **Error chaining:** Driver exceptions are preserved as ``cause``

Architecture:
    ::

        CrudError (category, retryable, context, cause)
          ├── ValidationError ─────────── VALIDATION
          │     ├── InvalidIdentifier      bad table / field / key name
          │     ├── InvalidArgument        paging, None where required
          │     └── SchemaError ────────── SCHEMA
          │           ├── SchemaDriftError
          │           │     ├── ColumnCountMismatch
          │           │     └── UnknownColumn
          │           └── UnsupportedColumnType
          ├── ConfigError ─────────────── CONFIG
          │     └── DuplicateBinding
          ├── DatabaseError ───────────── DATABASE
          │     └── BackendExecutionFailure
          └── TransientError (retryable)
                └── DatabaseConnectionError

Guardrails:
    ❌ DON'T: Raise ValueError for a malformed column name
    ✅ DO: Raise InvalidIdentifier so the HTTP layer can answer 400

    ❌ DON'T: Swallow the driver exception
    ✅ DO: Pass it as cause= so it is chained and logged

Tags:
    error-handling, exception-hierarchy, error-context, autocrud

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Coarse classification used for HTTP status mapping and log routing."""

    NETWORK = "NETWORK"
    DATABASE = "DATABASE"
    VALIDATION = "VALIDATION"
    SCHEMA = "SCHEMA"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """Where an error happened.

    Unknown keys passed to :meth:`CrudError.with_context` land in
    ``metadata``.
    """

    table: str | None = None
    column: str | None = None
    operation: str | None = None
    backend: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        known = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "metadata" and getattr(self, f.name) is not None
        }
        return {**known, **self.metadata}


class CrudError(Exception):
    """Base class of every autocrud error.

    Subclasses pick their defaults through ``default_category`` and
    ``default_retryable``.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category if category is not None else self.default_category
        self.retryable = self.default_retryable if retryable is None else retryable
        self.context = context if context is not None else ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> CrudError:
        """Attach context and return ``self``, for ``raise ... .with_context(...)``.

        Usage:
            raise BackendExecutionFailure("insert failed").with_context(
                table="customers", operation="insert", key=42,
            )
        """
        known = {f.name for f in fields(self.context)} - {"metadata"}
        for key, value in kwargs.items():
            if key in known:
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Loggable / serializable form."""
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context = self.context.to_dict()
        if context:
            data["context"] = context
        if self.cause is not None:
            data["cause"] = str(self.cause)
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# -- Transient -------------------------------------------------------------


class TransientError(CrudError):
    """May succeed if the same call is repeated."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class DatabaseConnectionError(TransientError):
    """Database connection could not be opened."""

    default_category = ErrorCategory.DATABASE


# -- Input and schema ------------------------------------------------------


class ValidationError(CrudError):
    """Bad input; retrying the same call cannot help."""

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.constraint = constraint

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        extra = {
            "field": self.field,
            "value": repr(self.value) if self.value is not None else None,
            "constraint": self.constraint,
        }
        data.update({k: v for k, v in extra.items() if v})
        return data


class InvalidIdentifier(ValidationError):
    """A table, key, search or filter name failed the identifier grammar."""

    def __init__(self, kind: str, value: Any, message: str | None = None):
        self.kind = kind
        super().__init__(
            message or f"Invalid {kind}: {value!r}",
            field=kind,
            value=value,
            constraint="identifier",
        )


class InvalidArgument(ValidationError):
    """An argument is out of range or missing."""


class SchemaError(ValidationError):
    """Record type and live table schema disagree."""

    default_category = ErrorCategory.SCHEMA


class SchemaDriftError(SchemaError):
    """The live table no longer matches the bound record type."""


class ColumnCountMismatch(SchemaDriftError):
    """Record field count differs from the destination table's column count."""

    def __init__(self, table: str, field_count: int, column_count: int):
        self.table = table
        self.field_count = field_count
        self.column_count = column_count
        super().__init__(
            f"Column count in table {table} ({column_count}) does not match "
            f"field count of the record type ({field_count})",
            context=ErrorContext(table=table),
        )


class UnknownColumn(SchemaDriftError):
    """A live column has no matching record field."""

    def __init__(self, table: str, column: str):
        self.table = table
        self.column = column
        super().__init__(
            f"Column {column} of table {table} has no matching record field",
            field=column,
            context=ErrorContext(table=table, column=column),
        )


class UnsupportedColumnType(SchemaError):
    """A column type has no encoder, or a value does not fit its column type."""

    def __init__(self, column: str, column_type: Any, message: str | None = None):
        self.column = column
        self.column_type = column_type
        super().__init__(
            message or f"Unsupported column type for {column}: {column_type!r}",
            field=column,
            value=column_type,
        )


# -- Configuration ---------------------------------------------------------


class ConfigError(CrudError):
    """Missing driver, bad settings or conflicting bindings."""

    default_category = ErrorCategory.CONFIG


class DuplicateBinding(ConfigError):
    """A table name is already bound to a different record descriptor."""

    def __init__(self, table: str, message: str | None = None):
        self.table = table
        super().__init__(
            message or f"Table {table} is already bound to a different record type",
            context=ErrorContext(table=table),
        )


# -- Backend ---------------------------------------------------------------


class DatabaseError(CrudError):
    """The backend failed a statement or transaction."""

    default_category = ErrorCategory.DATABASE


class BackendExecutionFailure(DatabaseError):
    """The backend rejected a statement (constraint, type, connectivity)."""


# -- Helpers ---------------------------------------------------------------

_RETRYABLE_BUILTINS: tuple[type[BaseException], ...] = (ConnectionError, TimeoutError)


def is_retryable(error: BaseException) -> bool:
    """``retryable`` for autocrud errors; connection-level builtins otherwise."""
    if isinstance(error, CrudError):
        return error.retryable
    return isinstance(error, _RETRYABLE_BUILTINS)


def categorize_error(error: BaseException) -> ErrorCategory:
    if isinstance(error, CrudError):
        return error.category
    if isinstance(error, OSError):
        return ErrorCategory.NETWORK
    if isinstance(error, (ValueError, TypeError)):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "BackendExecutionFailure",
    "ColumnCountMismatch",
    "ConfigError",
    "CrudError",
    "DatabaseConnectionError",
    "DatabaseError",
    "DuplicateBinding",
    "ErrorCategory",
    "ErrorContext",
    "InvalidArgument",
    "InvalidIdentifier",
    "SchemaDriftError",
    "SchemaError",
    "TransientError",
    "UnknownColumn",
    "UnsupportedColumnType",
    "ValidationError",
    "categorize_error",
    "is_retryable",
]
