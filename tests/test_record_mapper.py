from __future__ import annotations

import pytest

from ledgersync.errors import RowDecodeError
from ledgersync.models import Month
from ledgersync.models.contribution import HEADER_ROW, RowHandle
from ledgersync.services import record_mapper

NOW = 1_700_000_000_000


@pytest.mark.parametrize(
    "row",
    [
        ["a1", "ana@example.com", "Ana"],
        ["a1", "ana@example.com", "Ana", ""],
        ["a1", "ana@example.com", "Ana", None],
        ["a1", "ana@example.com", "Ana", "twelve"],
        ["a1", "ana@example.com", "Ana", "nan"],
        ["a1", "ana@example.com", "Ana", "$12"],
    ],
)
def test_missing_or_non_numeric_amount_is_zero(row):
    record = record_mapper.decode_row(row, 0, Month.MARCH, 2025, now_ms=NOW)
    assert record.amount == 0


def test_numeric_cells_are_kept():
    row = ["a1", "ana@example.com", "Ana", "1,250.50", "rent", 1_690_000_000_000]
    record = record_mapper.decode_row(row, 3, Month.MARCH, 2025, now_ms=NOW)
    assert record.amount == 1250.5
    assert record.note == "rent"
    assert record.timestamp == 1_690_000_000_000
    assert record.month is Month.MARCH
    assert record.year == 2025


def test_missing_note_and_timestamp_use_fallbacks():
    record = record_mapper.decode_row(["a1", "ana@example.com", "Ana", 5], 0, Month.MAY, 2025, now_ms=NOW)
    assert record.note == ""
    assert record.timestamp == NOW


def test_non_numeric_timestamp_uses_now():
    row = ["a1", "ana@example.com", "Ana", 5, "", "yesterday"]
    assert record_mapper.decode_row(row, 0, Month.MAY, 2025, now_ms=NOW).timestamp == NOW


def test_row_handle_is_offset_plus_two_across_gaps():
    rows = [
        ["a1", "ana@example.com", "Ana", 10],
        [],
        ["b2", "bo@example.com", "Bo", 20],
        ["c3", "cy@example.com", "Cy", 30],
    ]
    records = record_mapper.map_rows(rows, Month.JUNE, 2025, now_ms=NOW)
    assert [r.id for r in records] == ["a1", "b2", "c3"]
    assert [r.row.number for r in records] == [2, 4, 5]
    assert all(r.row.partition is Month.JUNE for r in records)


def test_cleared_row_does_not_decode():
    with pytest.raises(RowDecodeError) as excinfo:
        record_mapper.decode_row(["", "", "", ""], 4, Month.JUNE, 2025, now_ms=NOW)
    assert excinfo.value.row_number == 6


def test_encode_follows_header_order():
    record = record_mapper.decode_row(
        ["a1", "ana@example.com", "Ana", 7.5, "fuel", 42], 0, Month.JULY, 2025, now_ms=NOW
    )
    encoded = record_mapper.encode_contribution(record)
    assert len(encoded) == len(HEADER_ROW)
    assert encoded == ["a1", "ana@example.com", "Ana", 7.5, "fuel", 42]


def test_ranges():
    assert record_mapper.header_range(Month.MARCH) == "March!A1:F1"
    assert record_mapper.data_range(Month.MARCH) == "March!A2:F"
    assert RowHandle(Month.MARCH, 7).a1_range == "March!A7:F7"
