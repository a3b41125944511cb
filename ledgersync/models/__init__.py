from .user import User
from .month import Month, MONTHS, current_month, parse_month
from .contribution import (
    Contribution,
    ContributionDraft,
    ContributionUpdate,
    RowHandle,
    validate_amount,
)

__all__ = [
    "User",
    "Month",
    "MONTHS",
    "current_month",
    "parse_month",
    "Contribution",
    "ContributionDraft",
    "ContributionUpdate",
    "RowHandle",
    "validate_amount",
]
