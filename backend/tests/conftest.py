"""
Shared fixtures: an in-memory SQLite store with the full schema and a few
helpers for seeding tickers, filings and prices.
"""

from datetime import date
from typing import Any, Dict, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from floattracker.core.database import build_session_factory, create_schema
from floattracker.services.storage.sql_store import SqlFloatStore


@pytest.fixture
def store() -> SqlFloatStore:
    """Fresh in-memory database per test (one shared connection)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(engine)
    return SqlFloatStore(build_session_factory(engine))


@pytest.fixture
def ticker(store) -> Dict[str, Any]:
    return store.ensure_ticker("ACME")


def add_filing(
    store: SqlFloatStore,
    ticker_id: str,
    accession: str,
    filing_date: str = "2024-03-01",
    filing_type: str = "10-K",
    filing_url: Optional[str] = "https://example.test/doc.htm",
) -> Dict[str, Any]:
    store.insert_new_filings(ticker_id, [{
        "filing_type": filing_type,
        "filing_date": filing_date,
        "accession_number": accession,
        "filing_url": filing_url,
        "processed": False,
    }])
    return next(
        f for f in store.list_unprocessed_filings(ticker_id)
        if f["accession_number"] == accession
    )


def add_price(store: SqlFloatStore, ticker_id: str, on: date, price: float) -> None:
    store.insert_historical_point(ticker_id, on, {"price": price, "source": "yfinance"})


class FakeCompletion:
    """Completion capability double: returns a canned reply or raises."""

    def __init__(self, reply: str = "", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls = []

    def complete(self, prompt: str, system_instruction: str) -> str:
        self.calls.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply
