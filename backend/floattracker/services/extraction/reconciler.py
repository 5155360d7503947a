"""
reconciler.py — Dollar-denominated float → share count.

Cover pages often give the public float as a dollar amount only. When the
merged record has `public_float_usd` but no `float_shares`, the amount is
divided by the price observed closest to the float's as-of date (or the
filing date when the as-of date is unknown).
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, Optional, Tuple

from floattracker.core.config import settings
from floattracker.core.logging import get_logger
from floattracker.services.extraction.types import ExtractionRecord, parse_iso_date

logger = get_logger(__name__)


def find_nearest_price(
    observations: Iterable[Dict[str, Any]],
    target: date,
) -> Optional[Tuple[date, float]]:
    """
    Observation whose date is closest to `target` (absolute day distance).

    Ties keep the first candidate seen; observations arrive newest first, so
    of two equidistant dates the more recent one wins.
    """
    best: Optional[Tuple[date, float]] = None
    best_distance: Optional[int] = None
    for row in observations:
        obs_date = parse_iso_date(row.get("date"))
        price = row.get("price")
        if obs_date is None or price is None:
            continue
        distance = abs((obs_date - target).days)
        if best_distance is None or distance < best_distance:
            best = (obs_date, float(price))
            best_distance = distance
    return best


def shares_from_dollars(amount_usd: float, price: float) -> Optional[int]:
    if price is None or price <= 0:
        return None
    return int(round(amount_usd / price))


class UnitReconciler:
    """Fills `float_shares` from `public_float_usd` using stored prices."""

    def __init__(self, store: Any, lookback_rows: Optional[int] = None) -> None:
        self._store = store
        self._lookback = lookback_rows or settings.PRICE_LOOKBACK_ROWS

    def reconcile(self, ticker_id: str, record: ExtractionRecord, filing_date: date) -> ExtractionRecord:
        """
        Mutates and returns `record`. Leaves float_shares None when no usable
        price exists; that is an unresolved field, not an error.
        """
        if record.public_float_usd is None or record.float_shares is not None:
            return record

        target = record.public_float_date or filing_date
        observations = self._store.lookup_prices(ticker_id, limit=self._lookback)
        nearest = find_nearest_price(observations, target)
        if nearest is None:
            logger.info("No price history to convert public float of $%s", record.public_float_usd)
            return record

        price_date, price = nearest
        float_shares = shares_from_dollars(record.public_float_usd, price)
        if float_shares is None:
            logger.warning("Nearest price %s on %s is not positive; float left unresolved", price, price_date)
            return record

        logger.info(
            "Converted public float $%s at %s (price %s on %s) → %s shares",
            record.public_float_usd, target, price, price_date, float_shares,
        )
        record.float_shares = float_shares
        return record
