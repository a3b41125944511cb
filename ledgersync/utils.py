import random
import string
import time

from .models.contribution import validate_amount

_ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 9


def format_currency(amount: float, symbol: str = "$") -> str:
    """Format ``amount`` in the ledger currency, e.g. 1250.5 -> "$1,250.50"."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def calculate_total(amounts) -> float:
    return sum(amounts, 0)


def parse_amount(raw) -> float:
    """Parse a form value into a positive amount; raises InvalidAmount."""
    if isinstance(raw, str):
        raw = raw.strip().replace(",", "")
    return validate_amount(raw)


def new_contribution_id() -> str:
    # Short random id; collisions are unlikely, not impossible
    return "".join(random.choices(_ID_ALPHABET, k=ID_LENGTH))


def now_ms() -> int:
    return int(time.time() * 1000)
