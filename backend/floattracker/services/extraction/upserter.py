"""
upserter.py — Merge a filing's extraction into the historical tables.

historical_data:
- One row per (ticker, date). A write first tries an in-place UPDATE of the
  targeted columns and INSERTs only when no row matched, so columns owned by
  other writers (e.g. `price` from the market-data adapter) are never touched.
- None values are left out of the update set: a write never nulls a stored
  value.
- market_cap uses the price on the exact filing date only.

corporate_actions:
- One insert per merged entry, independent of the historical write. A failed
  insert is logged and the remaining entries are still attempted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from floattracker.core.config import settings
from floattracker.core.errors import PersistenceError
from floattracker.core.logging import get_logger
from floattracker.services.extraction.types import CorporateActionEntry, ExtractionRecord, FilingRef

logger = get_logger(__name__)


def merge_historical_point(store: Any, ticker_id: str, on_date: date, fields: Dict[str, Any]) -> str:
    """
    Update-else-insert of `fields` on the (ticker_id, on_date) row.

    Returns:
        "updated" or "inserted"
    """
    fields = {k: v for k, v in fields.items() if v is not None}
    matched = store.update_historical_point(ticker_id, on_date, fields)
    if matched:
        return "updated"
    store.insert_historical_point(ticker_id, on_date, fields)
    return "inserted"


@dataclass
class UpsertOutcome:
    historical_write: Optional[str] = None  # "updated" | "inserted" | None (skipped)
    actions_inserted: int = 0
    actions_skipped: int = 0
    errors: List[PersistenceError] = field(default_factory=list)


class HistoricalRecordUpserter:
    def __init__(self, store: Any, dedupe_actions: Optional[bool] = None) -> None:
        self._store = store
        self._dedupe = settings.DEDUPE_CORPORATE_ACTIONS if dedupe_actions is None else dedupe_actions

    def apply(self, filing: FilingRef, record: ExtractionRecord) -> UpsertOutcome:
        outcome = UpsertOutcome()

        if record.has_share_counts:
            try:
                outcome.historical_write = self.write_historical(filing, record)
                logger.info("Historical data %s for %s", outcome.historical_write, filing.filing_date)
            except PersistenceError as e:
                logger.error("Error writing historical data for %s: %s", filing.filing_date, e)
                outcome.errors.append(e)
        else:
            logger.info("No share counts extracted from filing %s; historical data untouched", filing.id)

        for entry in record.corporate_actions or []:
            try:
                if self.insert_action(filing, entry):
                    outcome.actions_inserted += 1
                else:
                    outcome.actions_skipped += 1
            except PersistenceError as e:
                logger.error("Error inserting corporate action %s: %s", entry.action_type, e)
                outcome.errors.append(e)

        return outcome

    # ------------------------------------------------------------------ #
    def market_cap_for(self, filing: FilingRef, outstanding_shares: Optional[int]) -> Optional[float]:
        if outstanding_shares is None:
            return None
        price = self._store.lookup_price(filing.ticker_id, filing.filing_date)
        if price is None:
            logger.debug("No price on %s; market cap left empty", filing.filing_date)
            return None
        return outstanding_shares * float(price)

    def write_historical(self, filing: FilingRef, record: ExtractionRecord) -> str:
        fields = {
            "outstanding_shares": record.outstanding_shares,
            "float_shares": record.float_shares,
            "market_cap": self.market_cap_for(filing, record.outstanding_shares),
            "source": filing.source_label,
        }
        return merge_historical_point(self._store, filing.ticker_id, filing.filing_date, fields)

    def insert_action(self, filing: FilingRef, entry: CorporateActionEntry) -> bool:
        """Insert one corporate action; False when skipped as a duplicate."""
        action_date = entry.action_date
        if action_date is None:
            logger.warning("Corporate action %s has no date; using filing date %s", entry.action_type, filing.filing_date)
            action_date = filing.filing_date

        if self._dedupe and self._store.find_corporate_action(filing.ticker_id, action_date, entry.action_type):
            logger.info("Corporate action %s on %s already stored; skipping", entry.action_type, action_date)
            return False

        self._store.insert_corporate_action({
            "ticker_id": filing.ticker_id,
            "action_type": entry.action_type,
            "action_date": action_date,
            "description": entry.description,
            "shares_before": entry.shares_before,
            "shares_after": entry.shares_after,
            "split_ratio": entry.split_ratio,
            "impact_description": entry.impact_description,
            "source": filing.source_label,
            "filing_url": filing.filing_url,
        })
        logger.info("Inserted corporate action: %s", entry.action_type)
        return True
