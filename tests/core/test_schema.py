"""Tests for ``autocrud.core.schema`` — record reflection and descriptors."""

from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal
from typing import Annotated, Optional

import pytest

from autocrud.core.errors import InvalidArgument, InvalidIdentifier
from autocrud.core.schema import (
    CHAR,
    FieldDescriptor,
    FieldType,
    SchemaDescriptor,
    describe_record,
    field_type_for,
    validate_identifier,
)
from tests._support.records import Account, Customer, Product


class TestValidateIdentifier:
    @pytest.mark.parametrize("name", ["id", "_private", "Customer_Name2", "a"])
    def test_accepts_plain_identifiers(self, name):
        assert validate_identifier(name) == name

    @pytest.mark.parametrize(
        "name",
        ["", "1abc", "name; DROP TABLE x", "a-b", "a b", '"quoted"', "tbl.col", None, 42],
    )
    def test_rejects_unsafe_names(self, name):
        with pytest.raises(InvalidIdentifier):
            validate_identifier(name, "field name")

    def test_error_carries_kind_and_value(self):
        with pytest.raises(InvalidIdentifier) as exc_info:
            validate_identifier("bad name", "table name")
        assert exc_info.value.value == "bad name"
        assert "table name" in str(exc_info.value)


class TestFieldTypeFor:
    @pytest.mark.parametrize(
        "annotation,expected",
        [
            (int, FieldType.INTEGER),
            (bool, FieldType.BOOLEAN),
            (float, FieldType.FLOAT),
            (Decimal, FieldType.DECIMAL),
            (str, FieldType.TEXT),
            (dt.datetime, FieldType.DATETIME),
            (dt.date, FieldType.DATE),
            (uuid.UUID, FieldType.UUID),
            (list[str], FieldType.TEXT_ARRAY),
            (tuple[str, ...], FieldType.TEXT_ARRAY),
            (Annotated[str, CHAR], FieldType.CHAR),
        ],
    )
    def test_scalar_and_array_types(self, annotation, expected):
        assert field_type_for(annotation) == (expected, False)

    def test_optional_is_nullable(self):
        assert field_type_for(Optional[int]) == (FieldType.INTEGER, True)
        assert field_type_for(str | None) == (FieldType.TEXT, True)

    def test_non_text_array_rejected(self):
        with pytest.raises(InvalidArgument):
            field_type_for(list[int])

    def test_unsupported_type_rejected(self):
        with pytest.raises(InvalidArgument):
            field_type_for(dict)

    def test_char_marker_requires_str(self):
        with pytest.raises(InvalidArgument):
            field_type_for(Annotated[int, CHAR])


class TestDescribeRecord:
    def test_dataclass_fields_in_declaration_order(self):
        schema = describe_record(Customer, "id")
        assert schema.field_names == ["id", "name", "tags", "active"]
        assert schema.field("tags").is_array
        assert schema.key_field == "id"

    def test_pydantic_model(self):
        schema = describe_record(Product, "sku", "title")
        assert schema.field_names == ["sku", "title", "price"]
        assert schema.search_field == "title"

    def test_search_field_defaults_to_key(self):
        assert describe_record(Customer, "id").search_field == "id"
        assert describe_record(Customer, "id", "   ").search_field == "id"

    def test_names_resolved_case_insensitively(self):
        schema = describe_record(Customer, "ID", "Name")
        assert schema.key_field == "id"
        assert schema.search_field == "name"

    def test_unknown_key_field(self):
        with pytest.raises(InvalidIdentifier):
            describe_record(Customer, "missing")

    def test_malformed_search_field(self):
        with pytest.raises(InvalidIdentifier):
            describe_record(Customer, "id", "name; --")

    def test_nullable_and_char_fields(self):
        schema = describe_record(Account, "id")
        assert schema.field("notes").nullable is True
        assert schema.field("grade").field_type is FieldType.CHAR

    def test_not_a_record_type(self):
        with pytest.raises(InvalidArgument):
            describe_record(dict, "id")


class TestSchemaDescriptor:
    def test_projection_omits_search_field(self):
        schema = describe_record(Customer, "id", "name")
        assert [f.name for f in schema.projected_fields] == ["id", "tags", "active"]
        assert [f.name for f in schema.written_fields] == ["id", "name", "tags", "active"]

    def test_projection_keeps_key_when_search_is_key(self):
        schema = describe_record(Customer, "id")
        assert [f.name for f in schema.projected_fields] == schema.field_names

    def test_from_row_fills_missing_fields(self):
        schema = describe_record(Customer, "id", "name")
        record = schema.from_row({"ID": 3, "tags": ["a"], "active": True})
        assert record == Customer(id=3, name=None, tags=["a"], active=True)

    def test_from_row_pydantic(self):
        schema = describe_record(Product, "sku")
        record = schema.from_row({"sku": "A-1", "title": "Anvil", "price": 9.5})
        assert record == Product(sku="A-1", title="Anvil", price=9.5)

    def test_to_row_default_order(self):
        schema = describe_record(Customer, "id")
        row = schema.to_row(Customer(1, "Ada", ["x"], True))
        assert row == [1, "Ada", ["x"], True]

    def test_signature_distinguishes_search_field(self):
        a = describe_record(Customer, "id")
        b = describe_record(Customer, "id", "name")
        assert a.signature() != b.signature()
        assert a.signature() == describe_record(Customer, "id").signature()

    def test_from_fields(self):
        fields = [FieldDescriptor("id", FieldType.INTEGER), FieldDescriptor("label", FieldType.TEXT)]
        schema = SchemaDescriptor.from_fields(Customer, fields, "id")
        assert schema.field_names == ["id", "label"]

    def test_empty_fields_rejected(self):
        with pytest.raises(InvalidArgument):
            SchemaDescriptor(Customer, [], "id")

    def test_field_descriptor_validates_name(self):
        with pytest.raises(InvalidIdentifier):
            FieldDescriptor("bad name", FieldType.TEXT)
