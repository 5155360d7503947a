"""
yfinance_market_data.py — Daily closing prices from Yahoo Finance.

This module provides:
- A thin yfinance loader returning a pandas frame of daily bars
- Frame → [{date, price}] conversion
- `MarketDataAdapter.sync_price_history`, which merges closes into
  historical_data

Only `price` and `source` are written. Share counts on the same
(ticker, date) row come from filings and are never touched here.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

import pandas as pd
import yfinance as yf

from floattracker.core.errors import FetchError, InputError
from floattracker.core.logging import get_logger
from floattracker.services.extraction.upserter import merge_historical_point

logger = get_logger(__name__)

MARKET_DATA_SOURCE = "yfinance"
DEFAULT_HISTORY_DAYS = 365


def _validate_and_clamp_dates(start: Optional[date], end: Optional[date]) -> Tuple[date, date]:
    """Default to the trailing year, clamp to today, and keep start <= end."""
    today = date.today()
    end = min(end or today, today)
    start = min(start or end - timedelta(days=DEFAULT_HISTORY_DAYS), today)
    if start > end:
        start, end = end, start
    return start, end


def fetch_price_history(symbol: str, start: date, end: date) -> pd.DataFrame:
    """
    Load daily bars for `symbol` from Yahoo Finance.

    Raises:
        FetchError: the vendor call failed
    """
    try:
        # yfinance treats `end` as exclusive
        return yf.Ticker(symbol).history(start=start, end=end + timedelta(days=1))
    except Exception as e:
        raise FetchError(f"Error fetching Yahoo Finance data for {symbol}: {e}") from e


def frame_to_rows(frame: Optional[pd.DataFrame]) -> List[Dict[str, Any]]:
    """Daily closes as [{"date": date, "price": float}], skipping NaN closes."""
    if frame is None or frame.empty or "Close" not in frame.columns:
        return []
    rows = []
    for idx, close in frame["Close"].items():
        if pd.isna(close):
            continue
        # yfinance returns a DatetimeIndex
        price_date = idx.date() if hasattr(idx, "date") else pd.Timestamp(idx).date()
        rows.append({"date": price_date, "price": float(close)})
    return rows


class MarketDataAdapter:
    def __init__(
        self,
        store: Any,
        history_loader: Optional[Callable[[str, date, date], pd.DataFrame]] = None,
    ) -> None:
        self._store = store
        self._load_history = history_loader or fetch_price_history

    def sync_price_history(
        self,
        symbol: Optional[str],
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Merge daily closes for `symbol` into historical_data.

        Raises:
            InputError: symbol missing
            FetchError: the vendor call failed
        """
        if not symbol or not symbol.strip():
            raise InputError("Ticker symbol is required")
        symbol = symbol.strip().upper()
        start, end = _validate_and_clamp_dates(start, end)
        logger.info("Fetching market data for %s from %s to %s", symbol, start, end)

        ticker = self._store.ensure_ticker(symbol)
        rows = frame_to_rows(self._load_history(symbol, start, end))
        if not rows:
            logger.warning("No price data returned for %s between %s and %s", symbol, start, end)
            return {
                "success": False,
                "ticker": symbol,
                "data_points": 0,
                "message": f"No price data available for {symbol} between {start} and {end}",
            }

        inserted = updated = 0
        for row in rows:
            result = merge_historical_point(
                self._store,
                str(ticker["id"]),
                row["date"],
                {"price": row["price"], "source": MARKET_DATA_SOURCE},
            )
            if result == "inserted":
                inserted += 1
            else:
                updated += 1

        logger.info("Stored %d price points for %s (%d new, %d updated)", len(rows), symbol, inserted, updated)
        return {
            "success": True,
            "ticker": symbol,
            "data_points": len(rows),
            "inserted": inserted,
            "updated": updated,
        }
