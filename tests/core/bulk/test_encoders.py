"""Tests for ``autocrud.core.bulk.encoders`` — per-column-type encoders."""

from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal

import pytest

from autocrud.core.bulk.encoders import ENCODERS, ColumnType, LiveColumn, encode
from autocrud.core.errors import UnsupportedColumnType


def column(column_type: ColumnType) -> LiveColumn:
    return LiveColumn("col", column_type, column_type.value)


class TestEncoderTable:
    def test_every_column_type_has_an_encoder(self):
        assert set(ENCODERS) == set(ColumnType)

    @pytest.mark.parametrize("column_type", list(ColumnType))
    def test_none_is_null(self, column_type):
        assert encode(column(column_type), None) is None


class TestIntegers:
    @pytest.mark.parametrize(
        "column_type,value",
        [
            (ColumnType.INT16, 32767),
            (ColumnType.INT16, -32768),
            (ColumnType.INT32, 2**31 - 1),
            (ColumnType.INT64, 2**63 - 1),
        ],
    )
    def test_in_range(self, column_type, value):
        assert encode(column(column_type), value) == value

    @pytest.mark.parametrize("column_type", [ColumnType.INT16, ColumnType.INT32, ColumnType.INT64])
    def test_bool_written_as_zero_or_one(self, column_type):
        encoded = encode(column(column_type), True)
        assert encoded == 1 and type(encoded) is int
        assert type(encode(column(column_type), False)) is int

    @pytest.mark.parametrize(
        "column_type,value",
        [
            (ColumnType.INT16, 32768),
            (ColumnType.INT32, 2**31),
            (ColumnType.INT64, 2**63),
            (ColumnType.INT32, "12"),
            (ColumnType.INT32, 1.5),
        ],
    )
    def test_rejected(self, column_type, value):
        with pytest.raises(UnsupportedColumnType):
            encode(column(column_type), value)


class TestScalars:
    def test_uuid_from_text(self):
        value = uuid.uuid4()
        assert encode(column(ColumnType.UUID), str(value)) == value

    def test_uuid_rejects_garbage(self):
        with pytest.raises(UnsupportedColumnType):
            encode(column(ColumnType.UUID), "not-a-uuid")

    def test_char(self):
        assert encode(column(ColumnType.CHAR), "A") == "A"
        with pytest.raises(UnsupportedColumnType):
            encode(column(ColumnType.CHAR), "")

    def test_text_formats_arrays(self):
        assert encode(column(ColumnType.TEXT), ["a", "b"]) == "{a,b}"
        assert encode(column(ColumnType.TEXT), 12) == "12"

    def test_text_rejects_bytes(self):
        with pytest.raises(UnsupportedColumnType):
            encode(column(ColumnType.TEXT), b"raw")

    def test_boolean_is_strict(self):
        assert encode(column(ColumnType.BOOLEAN), False) is False
        with pytest.raises(UnsupportedColumnType):
            encode(column(ColumnType.BOOLEAN), 1)

    def test_date_and_datetime_convert(self):
        moment = dt.datetime(2024, 5, 6, 7, 8)
        assert encode(column(ColumnType.DATE), moment) == dt.date(2024, 5, 6)
        assert encode(column(ColumnType.DATETIME), dt.date(2024, 5, 6)) == dt.datetime(2024, 5, 6)
        with pytest.raises(UnsupportedColumnType):
            encode(column(ColumnType.DATE), "2024-05-06")

    def test_float_and_decimal(self):
        assert encode(column(ColumnType.FLOAT), Decimal("1.5")) == 1.5
        assert encode(column(ColumnType.DECIMAL), 2.25) == Decimal("2.25")
        with pytest.raises(UnsupportedColumnType):
            encode(column(ColumnType.DECIMAL), "2.25")

    def test_text_array(self):
        assert encode(column(ColumnType.TEXT_ARRAY), ("a", "b")) == ["a", "b"]
        assert encode(column(ColumnType.TEXT_ARRAY), "{a,b}") == ["a", "b"]
        with pytest.raises(UnsupportedColumnType):
            encode(column(ColumnType.TEXT_ARRAY), [1, 2])

    def test_error_names_column(self):
        with pytest.raises(UnsupportedColumnType) as exc_info:
            encode(LiveColumn("age", ColumnType.INT16, "int2"), "old")
        assert exc_info.value.column == "age"
