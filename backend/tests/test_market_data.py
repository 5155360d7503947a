"""
Unit tests for yfinance_market_data.py

The yfinance loader is replaced by a function returning a pandas frame shaped
like `yf.Ticker(...).history()`.
"""

from datetime import date

import pandas as pd
import pytest

from floattracker.core.errors import InputError
from floattracker.services.market_data.yfinance_market_data import (
    MARKET_DATA_SOURCE,
    MarketDataAdapter,
    frame_to_rows,
)


def history_frame(closes):
    index = pd.DatetimeIndex([pd.Timestamp(d) for d in closes])
    return pd.DataFrame({"Open": list(closes.values()), "Close": list(closes.values())}, index=index)


# Frame conversion
def test_frame_to_rows_skips_nan():
    frame = history_frame({"2024-02-29": 9.5, "2024-03-01": float("nan")})
    assert frame_to_rows(frame) == [{"date": date(2024, 2, 29), "price": 9.5}]


def test_frame_to_rows_empty():
    assert frame_to_rows(pd.DataFrame()) == []
    assert frame_to_rows(None) == []


# Adapter
def test_sync_price_history_merges_prices(store):
    requested = {}

    def loader(symbol, start, end):
        requested.update(symbol=symbol, start=start, end=end)
        return history_frame({"2024-02-29": 9.5, "2024-03-01": 10.0})

    ticker = store.ensure_ticker("ACME")
    store.insert_historical_point(ticker["id"], date(2024, 3, 1), {"outstanding_shares": 48_000_000, "source": "SEC 10-K"})

    result = MarketDataAdapter(store, history_loader=loader).sync_price_history(
        "acme", date(2024, 2, 1), date(2024, 3, 1)
    )

    assert result == {"success": True, "ticker": "ACME", "data_points": 2, "inserted": 1, "updated": 1}
    assert requested == {"symbol": "ACME", "start": date(2024, 2, 1), "end": date(2024, 3, 1)}
    row = store.get_historical_point(ticker["id"], date(2024, 3, 1))
    # filing-derived share counts survive the price write
    assert row["outstanding_shares"] == 48_000_000
    assert row["price"] == 10.0
    assert row["source"] == MARKET_DATA_SOURCE


def test_sync_price_history_no_data(store):
    adapter = MarketDataAdapter(store, history_loader=lambda symbol, start, end: pd.DataFrame())
    result = adapter.sync_price_history("ACME", date(2024, 2, 1), date(2024, 3, 1))
    assert result["success"] is False
    assert result["data_points"] == 0


def test_sync_price_history_swaps_reversed_range(store):
    seen = []
    adapter = MarketDataAdapter(store, history_loader=lambda symbol, start, end: seen.append((start, end)))
    adapter.sync_price_history("ACME", date(2024, 3, 1), date(2024, 2, 1))
    assert seen == [(date(2024, 2, 1), date(2024, 3, 1))]


def test_sync_price_history_requires_symbol(store):
    with pytest.raises(InputError):
        MarketDataAdapter(store, history_loader=lambda *a: pd.DataFrame()).sync_price_history("")
