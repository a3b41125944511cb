"""Translate between raw sheet rows and typed contribution records.

A data row holds six cells in the order of ``HEADER_ROW``. Cells the API
omits (trailing blanks) are treated as missing. Coercions applied while
decoding:

- amount: missing, non-numeric or non-finite -> ``0.0``
- note, email, name: missing -> ``""``
- timestamp: missing or non-numeric -> the current time in epoch ms

A row without an identifier (a row cleared by a delete) does not decode; it
still occupies its position, so the rows after it keep their row numbers.
"""

import logging
import math

from ..errors import RowDecodeError
from ..models.contribution import (
    FIRST_COLUMN,
    FIRST_DATA_ROW,
    HEADER_ROW,
    HEADER_ROW_NUMBER,
    LAST_COLUMN,
    Contribution,
    RowHandle,
)
from ..utils import now_ms as _now_ms

logger = logging.getLogger(__name__)

ID, EMAIL, NAME, AMOUNT, NOTE, TIMESTAMP = range(len(HEADER_ROW))


def header_range(month) -> str:
    return f"{month.value}!{FIRST_COLUMN}{HEADER_ROW_NUMBER}:{LAST_COLUMN}{HEADER_ROW_NUMBER}"


def data_range(month) -> str:
    return f"{month.value}!{FIRST_COLUMN}{FIRST_DATA_ROW}:{LAST_COLUMN}"


def _cell(row, col):
    if col < len(row):
        value = row[col]
        if value is not None and value != "":
            return value
    return None


def coerce_amount(value) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.replace(",", "").strip()
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def coerce_timestamp(value, now_ms: int) -> int:
    if value is None or isinstance(value, bool):
        return now_ms
    try:
        ts = float(value)
    except (TypeError, ValueError):
        return now_ms
    if not math.isfinite(ts) or ts == 0:
        return now_ms
    return int(ts)


def _text(value) -> str:
    return "" if value is None else str(value)


def decode_row(row, index: int, month, year: int, now_ms: int | None = None) -> Contribution:
    """Decode one data row; ``index`` is its offset in the fetched block."""
    row = row or []
    row_number = index + FIRST_DATA_ROW
    ident = _cell(row, ID)
    if ident is None or not str(ident).strip():
        raise RowDecodeError(row_number, "missing identifier")
    if now_ms is None:
        now_ms = _now_ms()
    return Contribution(
        id=str(ident).strip(),
        user_email=_text(_cell(row, EMAIL)),
        user_name=_text(_cell(row, NAME)),
        amount=coerce_amount(_cell(row, AMOUNT)),
        note=_text(_cell(row, NOTE)),
        month=month,
        year=year,
        timestamp=coerce_timestamp(_cell(row, TIMESTAMP), now_ms),
        row=RowHandle(month, row_number),
    )


def map_rows(rows, month, year: int, now_ms: int | None = None) -> list[Contribution]:
    """Decode a fetched block in store order, skipping rows that do not decode."""
    if now_ms is None:
        now_ms = _now_ms()
    records = []
    for index, row in enumerate(rows or []):
        try:
            records.append(decode_row(row, index, month, year, now_ms))
        except RowDecodeError as exc:
            logger.debug("Skipping %s %s", month.value, exc)
    return records


def encode_contribution(contribution: Contribution) -> list:
    return [
        contribution.id,
        contribution.user_email,
        contribution.user_name,
        contribution.amount,
        contribution.note,
        contribution.timestamp,
    ]
