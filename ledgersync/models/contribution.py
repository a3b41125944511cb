import math
from dataclasses import dataclass, field

from ..errors import InvalidAmount
from .month import Month

# Canonical column order of a partition, A through F
HEADER_ROW = ["ID", "Email", "Name", "Amount", "Note", "Timestamp"]
FIRST_COLUMN = "A"
LAST_COLUMN = "F"
HEADER_ROW_NUMBER = 1
FIRST_DATA_ROW = 2


@dataclass(frozen=True)
class RowHandle:
    """Sheet row a record occupied when it was last fetched.

    Positions shift whenever rows are inserted or sorted in the sheet, so a
    handle is only good for the mutation that immediately follows the fetch
    that produced it.
    """

    partition: Month
    number: int

    @property
    def a1_range(self) -> str:
        return f"{self.partition.value}!{FIRST_COLUMN}{self.number}:{LAST_COLUMN}{self.number}"


@dataclass(frozen=True)
class Contribution:
    id: str
    user_email: str
    user_name: str
    amount: float
    note: str
    month: Month
    year: int
    timestamp: int
    row: RowHandle | None = field(default=None, compare=False, repr=False)

    def is_owned_by(self, email: str | None) -> bool:
        return bool(email) and self.user_email == email


@dataclass(frozen=True)
class ContributionDraft:
    user_email: str
    user_name: str
    amount: float
    note: str
    month: Month
    year: int


@dataclass(frozen=True)
class ContributionUpdate:
    amount: float | None = None
    note: str | None = None


def validate_amount(amount) -> float:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise InvalidAmount(f"Amount must be a number, got {amount!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise InvalidAmount("Amount must be greater than zero")
    return value
