"""Contribution CRUD on top of a month-partitioned spreadsheet.

Row positions are volatile: the sheet can be edited or sorted by hand between
two requests. Every mutation therefore fetches the partition first, finds the
record by its identifier and writes to the row that fetch reported. Row
handles are never kept from one call to the next.
"""

import logging
from dataclasses import replace

from ..errors import ContributionNotFound, StoreError
from ..models.contribution import HEADER_ROW, Contribution, ContributionDraft, ContributionUpdate, validate_amount
from ..utils import new_contribution_id, now_ms
from . import record_mapper

logger = logging.getLogger(__name__)


class LedgerClient:
    def __init__(self, store, year: int, *, id_factory=new_contribution_id, clock=now_ms):
        self.store = store
        self.year = year
        self._new_id = id_factory
        self._clock = clock

    def ensure_partition(self, month) -> None:
        logger.info("Creating partition %s with header row", month.value)
        self.store.create_partition(month.value, list(HEADER_ROW), header_range=record_mapper.header_range(month))

    def fetch_contributions(self, month) -> list[Contribution]:
        try:
            rows = self.store.get_values(record_mapper.data_range(month))
        except StoreError as exc:
            if not exc.is_range_not_found:
                raise
            self.ensure_partition(month)
            return []
        return record_mapper.map_rows(rows, month, self.year, now_ms=self._clock())

    def add_contribution(self, draft: ContributionDraft) -> Contribution:
        contribution = Contribution(
            id=self._new_id(),
            user_email=draft.user_email,
            user_name=draft.user_name,
            amount=validate_amount(draft.amount),
            note=draft.note or "",
            month=draft.month,
            year=draft.year,
            timestamp=self._clock(),
        )
        rows = [record_mapper.encode_contribution(contribution)]
        target = record_mapper.data_range(draft.month)
        try:
            self.store.append_values(target, rows)
        except StoreError as exc:
            if not exc.is_range_not_found:
                raise
            self.ensure_partition(draft.month)
            logger.info("Retrying append to %s after creating it", draft.month.value)
            # Single retry; a second failure propagates
            self.store.append_values(target, rows)
        return contribution

    def update_contribution(self, contribution_id: str, updates: ContributionUpdate, month) -> Contribution:
        current = self._locate(contribution_id, month)
        if current is None:
            raise ContributionNotFound(contribution_id, month)

        merged = replace(
            current,
            amount=current.amount if updates.amount is None else validate_amount(updates.amount),
            note=current.note if updates.note is None else updates.note,
        )
        self.store.update_values(current.row.a1_range, [record_mapper.encode_contribution(merged)])
        return merged

    def delete_contribution(self, contribution_id: str, month) -> bool:
        """Clear the record's row. Returns False when it was already gone."""
        current = self._locate(contribution_id, month)
        if current is None:
            logger.info("Contribution %s not in %s; nothing to delete", contribution_id, month.value)
            return False
        self.store.clear_values(current.row.a1_range)
        return True

    def _locate(self, contribution_id: str, month) -> Contribution | None:
        for contribution in self.fetch_contributions(month):
            if contribution.id == contribution_id:
                return contribution
        return None
