"""Record-type reflection and identifier validation.

A record type (a dataclass or a pydantic model) is described exactly once
per table binding into a :class:`SchemaDescriptor`: the ordered fields,
their semantic :class:`FieldType`, the key field and the search field.
Nothing downstream inspects the record type again.

Identifier validation is the only defense against SQL injection through
table and column names; values are always bound parameters.

Example:
    >>> @dataclass
    ... class Customer:
    ...     id: UUID
    ...     name: str
    ...     tags: list[str]
    >>> schema = describe_record(Customer, key_field="id", search_field="name")
    >>> [f.name for f in schema.projected_fields]
    ['id', 'tags']

Tags:
    schema, reflection, dataclass, pydantic, identifier, autocrud
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import re
import types
import typing
import uuid
from collections.abc import Mapping, Sequence
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Union

from pydantic import BaseModel

from autocrud.core.errors import InvalidArgument, InvalidIdentifier

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_identifier(name: Any, kind: str = "identifier") -> str:
    """Return *name* if it is a safe SQL identifier, else raise.

    Raises:
        InvalidIdentifier: *name* is not a string or fails
            ``^[A-Za-z_][A-Za-z0-9_]*$``.
    """
    if not isinstance(name, str) or not IDENTIFIER_PATTERN.fullmatch(name):
        raise InvalidIdentifier(kind, name)
    return name


class FieldType(str, Enum):
    """Semantic type of a record field."""

    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    TEXT = "text"
    CHAR = "char"
    DATE = "date"
    DATETIME = "datetime"
    UUID = "uuid"
    TEXT_ARRAY = "text_array"


class _CharMarker:
    """``Annotated[str, CHAR]`` marks a single-character field."""

    def __repr__(self) -> str:
        return "CHAR"


CHAR = _CharMarker()

# Order matters: bool before int, datetime before date.
_SCALAR_TYPES: list[tuple[type, FieldType]] = [
    (bool, FieldType.BOOLEAN),
    (int, FieldType.INTEGER),
    (float, FieldType.FLOAT),
    (Decimal, FieldType.DECIMAL),
    (str, FieldType.TEXT),
    (dt.datetime, FieldType.DATETIME),
    (dt.date, FieldType.DATE),
    (uuid.UUID, FieldType.UUID),
]


@dataclasses.dataclass(frozen=True)
class FieldDescriptor:
    """One record field: name, semantic type, nullability."""

    name: str
    field_type: FieldType
    nullable: bool = False

    def __post_init__(self) -> None:
        validate_identifier(self.name, "field name")

    @property
    def is_array(self) -> bool:
        return self.field_type is FieldType.TEXT_ARRAY


def field_type_for(annotation: Any) -> tuple[FieldType, bool]:
    """Map a Python annotation to ``(FieldType, nullable)``.

    Raises:
        InvalidArgument: The annotation has no supported field type.
    """
    nullable = False
    origin = typing.get_origin(annotation)

    if origin is Annotated:
        base, *extras = typing.get_args(annotation)
        if any(extra is CHAR for extra in extras):
            inner, nullable = field_type_for(base)
            if inner is not FieldType.TEXT:
                raise InvalidArgument(f"CHAR marker requires str, got {base!r}")
            return FieldType.CHAR, nullable
        return field_type_for(base)

    if origin is Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) != 1:
            raise InvalidArgument(f"Unsupported union field type: {annotation!r}")
        inner, _ = field_type_for(args[0])
        return inner, True

    if origin in (list, tuple, Sequence):
        args = [a for a in typing.get_args(annotation) if a is not Ellipsis]
        if args and all(a is str for a in args):
            return FieldType.TEXT_ARRAY, nullable
        raise InvalidArgument(f"Only arrays of text are supported, got {annotation!r}")

    if isinstance(annotation, type):
        for python_type, field_type in _SCALAR_TYPES:
            if issubclass(annotation, python_type):
                return field_type, nullable

    raise InvalidArgument(f"Unsupported field type: {annotation!r}")


def _reflect_fields(record_type: type) -> list[FieldDescriptor]:
    hints = typing.get_type_hints(record_type, include_extras=True)

    if isinstance(record_type, type) and issubclass(record_type, BaseModel):
        names = list(record_type.model_fields)
    elif dataclasses.is_dataclass(record_type):
        names = [f.name for f in dataclasses.fields(record_type)]
    else:
        raise InvalidArgument(
            f"{record_type!r} is not a dataclass or pydantic model; "
            "use SchemaDescriptor.from_fields()"
        )

    described = []
    for name in names:
        field_type, nullable = field_type_for(hints[name])
        described.append(FieldDescriptor(name, field_type, nullable))
    return described


class SchemaDescriptor:
    """Ordered, validated description of one record type bound to a table.

    Attributes:
        record_type: The class rows are mapped back into.
        fields: Every field, declaration order.
        key_field: Field holding the externally supplied identifier.
        search_field: Field used by substring search (defaults to key).
    """

    def __init__(
        self,
        record_type: type,
        fields: Sequence[FieldDescriptor],
        key_field: str,
        search_field: str | None = None,
    ) -> None:
        if not fields:
            raise InvalidArgument(f"{record_type!r} declares no fields")

        validate_identifier(key_field, "key field name")
        if search_field is not None and not search_field.strip():
            search_field = None
        if search_field is not None:
            validate_identifier(search_field, "search field name")

        self.record_type = record_type
        self.fields: tuple[FieldDescriptor, ...] = tuple(fields)
        self._by_name = {f.name.lower(): f for f in self.fields}

        self.key_field = self._require(key_field, "key field name").name
        self.search_field = self._require(search_field or key_field, "search field name").name

    @classmethod
    def from_fields(
        cls,
        record_type: type,
        fields: Sequence[FieldDescriptor],
        key_field: str,
        search_field: str | None = None,
    ) -> SchemaDescriptor:
        """Describe a record type declaratively instead of by reflection."""
        return cls(record_type, fields, key_field, search_field)

    def _require(self, name: str, kind: str) -> FieldDescriptor:
        found = self._by_name.get(name.lower())
        if found is None:
            raise InvalidIdentifier(
                kind, name, f"{name!r} is not a field of {self.record_type.__name__}"
            )
        return found

    # -- Field lists ---------------------------------------------------------

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    @property
    def projected_fields(self) -> list[FieldDescriptor]:
        """Fields read back by SELECT.

        The search field is left out unless it is also the key field.
        """
        if self.search_field == self.key_field:
            return list(self.fields)
        return [f for f in self.fields if f.name != self.search_field]

    @property
    def written_fields(self) -> list[FieldDescriptor]:
        """Fields written by upsert and bulk load."""
        return list(self.fields)

    @property
    def key(self) -> FieldDescriptor:
        return self._by_name[self.key_field.lower()]

    def field(self, name: str) -> FieldDescriptor | None:
        """Case-insensitive field lookup."""
        return self._by_name.get(name.lower())

    # -- Record <-> row ------------------------------------------------------

    def value_of(self, record: Any, name: str) -> Any:
        return getattr(record, self._require(name, "field name").name)

    def to_row(self, record: Any, names: Sequence[str] | None = None) -> list[Any]:
        """Field values of *record* in *names* order (default: all fields)."""
        return [getattr(record, name) for name in (names or self.field_names)]

    def from_row(self, row: Mapping[str, Any]) -> Any:
        """Build a record from a column-name mapping.

        Column names match fields case-insensitively. Fields absent from
        the row (the unprojected search field) take the model default on
        pydantic records and ``None`` otherwise. A pydantic record missing
        a required field is built with ``model_construct``; the row values
        are already decoded to field types.
        """
        present = {}
        for column, value in row.items():
            found = self._by_name.get(str(column).lower())
            if found is not None:
                present[found.name] = value
        absent = [f.name for f in self.fields if f.name not in present]

        if isinstance(self.record_type, type) and issubclass(self.record_type, BaseModel):
            model_fields = self.record_type.model_fields
            required = [name for name in absent if model_fields[name].is_required()]
            if not required:
                return self.record_type.model_validate(present)
            return self.record_type.model_construct(**present, **{name: None for name in required})
        return self.record_type(**{name: None for name in absent}, **present)

    # -- Identity ------------------------------------------------------------

    def signature(self) -> tuple[Any, ...]:
        """Hashable identity used to detect incompatible rebinding."""
        return (
            self.record_type,
            self.fields,
            self.key_field,
            self.search_field,
        )

    def __repr__(self) -> str:
        return (
            f"SchemaDescriptor({self.record_type.__name__}, key={self.key_field!r}, "
            f"search={self.search_field!r}, fields={self.field_names!r})"
        )


def describe_record(
    record_type: type,
    key_field: str,
    search_field: str | None = None,
) -> SchemaDescriptor:
    """Reflect a dataclass or pydantic model into a :class:`SchemaDescriptor`.

    Args:
        record_type: Dataclass or ``pydantic.BaseModel`` subclass.
        key_field: Name of the key field.
        search_field: Name of the search field; blank or ``None`` means the
            key field.

    Raises:
        InvalidIdentifier: A name fails the identifier grammar or does not
            name a field of the record type.
        InvalidArgument: A field annotation has no supported type.
    """
    validate_identifier(key_field, "key field name")
    if search_field is not None and search_field.strip():
        validate_identifier(search_field, "search field name")
    return SchemaDescriptor(record_type, _reflect_fields(record_type), key_field, search_field)


__all__ = [
    "CHAR",
    "IDENTIFIER_PATTERN",
    "FieldDescriptor",
    "FieldType",
    "SchemaDescriptor",
    "describe_record",
    "field_type_for",
    "validate_identifier",
]
