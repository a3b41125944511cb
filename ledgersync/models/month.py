from datetime import date
from enum import Enum


class Month(Enum):
    """Calendar month; the value is the sheet tab (partition) name."""

    JANUARY = "January"
    FEBRUARY = "February"
    MARCH = "March"
    APRIL = "April"
    MAY = "May"
    JUNE = "June"
    JULY = "July"
    AUGUST = "August"
    SEPTEMBER = "September"
    OCTOBER = "October"
    NOVEMBER = "November"
    DECEMBER = "December"

    def __str__(self) -> str:
        return self.value


MONTHS = tuple(Month)


def current_month(today: date | None = None) -> Month:
    today = today or date.today()
    index = min(max(today.month, 1), len(MONTHS)) - 1
    return MONTHS[index]


def parse_month(value) -> Month | None:
    """Look up a month by partition name, case-insensitively. None if unknown."""
    if isinstance(value, Month):
        return value
    if not value:
        return None
    wanted = str(value).strip().lower()
    for month in MONTHS:
        if month.value.lower() == wanted:
            return month
    return None
