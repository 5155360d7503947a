"""
Unit tests for upserter.py and tracker.py against the SQLite store.
"""

from datetime import date

import pytest

from conftest import add_filing, add_price
from floattracker.core.errors import PersistenceError
from floattracker.services.extraction.tracker import FilingStateTracker
from floattracker.services.extraction.types import CorporateActionEntry, ExtractionRecord, FilingRef
from floattracker.services.extraction.upserter import HistoricalRecordUpserter, merge_historical_point


FILING_DATE = date(2024, 3, 1)


@pytest.fixture
def filing(store, ticker) -> FilingRef:
    return FilingRef.from_row(add_filing(store, ticker["id"], "0001-24-000001", filing_date="2024-03-01"))


# Historical write
def test_historical_insert_without_price(store, filing):
    outcome = HistoricalRecordUpserter(store).apply(filing, ExtractionRecord(outstanding_shares=48_000_000))

    assert outcome.historical_write == "inserted"
    row = store.get_historical_point(filing.ticker_id, FILING_DATE)
    assert row["outstanding_shares"] == 48_000_000
    assert row["market_cap"] is None
    assert row["source"] == "SEC 10-K"


def test_historical_update_keeps_price_and_derives_market_cap(store, filing):
    add_price(store, filing.ticker_id, FILING_DATE, 10.0)

    outcome = HistoricalRecordUpserter(store).apply(filing, ExtractionRecord(outstanding_shares=48_000_000))

    assert outcome.historical_write == "updated"
    row = store.get_historical_point(filing.ticker_id, FILING_DATE)
    assert row["price"] == 10.0
    assert row["market_cap"] == 480_000_000
    assert row["source"] == "SEC 10-K"


def test_market_cap_needs_exact_date_price(store, filing):
    add_price(store, filing.ticker_id, date(2024, 2, 29), 10.0)
    HistoricalRecordUpserter(store).apply(filing, ExtractionRecord(outstanding_shares=1_000))
    assert store.get_historical_point(filing.ticker_id, FILING_DATE)["market_cap"] is None


def test_historical_write_is_idempotent(store, filing):
    upserter = HistoricalRecordUpserter(store)
    record = ExtractionRecord(outstanding_shares=48_000_000, float_shares=30_000_000)

    upserter.apply(filing, record)
    upserter.apply(filing, record)

    rows = store.list_historical_points(filing.ticker_id)
    assert len(rows) == 1
    assert rows[0]["float_shares"] == 30_000_000


def test_historical_write_never_nulls_stored_values(store, filing):
    upserter = HistoricalRecordUpserter(store)
    upserter.apply(filing, ExtractionRecord(outstanding_shares=48_000_000, float_shares=30_000_000))
    upserter.apply(filing, ExtractionRecord(outstanding_shares=50_000_000))

    row = store.get_historical_point(filing.ticker_id, FILING_DATE)
    assert row["outstanding_shares"] == 50_000_000
    assert row["float_shares"] == 30_000_000


def test_no_share_counts_means_no_historical_write(store, filing):
    outcome = HistoricalRecordUpserter(store).apply(filing, ExtractionRecord(public_float_usd=1e8, corporate_actions=[]))

    assert outcome.historical_write is None
    assert store.list_historical_points(filing.ticker_id) == []


def test_merge_historical_point_update_else_insert(store, ticker):
    assert merge_historical_point(store, ticker["id"], FILING_DATE, {"price": 5.0, "source": "yfinance"}) == "inserted"
    assert merge_historical_point(store, ticker["id"], FILING_DATE, {"price": 6.0, "source": "yfinance"}) == "updated"
    assert store.lookup_price(ticker["id"], FILING_DATE) == 6.0


# Corporate actions
def _action(action_type="split", action_date=date(2024, 1, 15)):
    return CorporateActionEntry(action_type=action_type, action_date=action_date, description=f"{action_type} event")


def test_each_action_is_inserted(store, filing):
    record = ExtractionRecord(corporate_actions=[_action("split"), _action("offering")])

    outcome = HistoricalRecordUpserter(store).apply(filing, record)

    assert outcome.actions_inserted == 2
    actions = store.list_corporate_actions(filing.ticker_id)
    assert {a["action_type"] for a in actions} == {"split", "offering"}
    assert all(a["source"] == "SEC 10-K" for a in actions)
    assert all(a["filing_url"] == filing.filing_url for a in actions)


def test_actions_append_by_default(store, filing):
    upserter = HistoricalRecordUpserter(store, dedupe_actions=False)
    record = ExtractionRecord(corporate_actions=[_action()])
    upserter.apply(filing, record)
    upserter.apply(filing, record)
    assert len(store.list_corporate_actions(filing.ticker_id)) == 2


def test_actions_dedupe_when_enabled(store, filing):
    upserter = HistoricalRecordUpserter(store, dedupe_actions=True)
    record = ExtractionRecord(corporate_actions=[_action()])
    upserter.apply(filing, record)
    outcome = upserter.apply(filing, record)

    assert outcome.actions_skipped == 1
    assert len(store.list_corporate_actions(filing.ticker_id)) == 1


def test_undated_action_uses_filing_date(store, filing):
    HistoricalRecordUpserter(store).apply(filing, ExtractionRecord(corporate_actions=[_action(action_date=None)]))
    assert store.list_corporate_actions(filing.ticker_id)[0]["action_date"] == FILING_DATE


def test_failed_action_insert_does_not_block_others(store, filing):
    class FlakyStore:
        def __init__(self, inner):
            self._inner = inner
            self.calls = 0

        def __getattr__(self, name):
            return getattr(self._inner, name)

        def insert_corporate_action(self, row):
            self.calls += 1
            if self.calls == 1:
                raise PersistenceError("insert failed")
            self._inner.insert_corporate_action(row)

    flaky = FlakyStore(store)
    outcome = HistoricalRecordUpserter(flaky).apply(
        filing, ExtractionRecord(corporate_actions=[_action("split"), _action("buyback")])
    )

    assert len(outcome.errors) == 1
    assert outcome.actions_inserted == 1
    assert [a["action_type"] for a in store.list_corporate_actions(filing.ticker_id)] == ["buyback"]


def test_actions_inserted_when_historical_write_fails(store, filing):
    class HistoryDownStore:
        def __init__(self, inner):
            self._inner = inner

        def __getattr__(self, name):
            return getattr(self._inner, name)

        def update_historical_point(self, *args, **kwargs):
            raise PersistenceError("historical_data unavailable")

        def insert_historical_point(self, *args, **kwargs):
            raise PersistenceError("historical_data unavailable")

    record = ExtractionRecord(
        outstanding_shares=48_000_000,
        float_shares=30_000_000,
        corporate_actions=[_action("split"), _action("offering")],
    )
    outcome = HistoricalRecordUpserter(HistoryDownStore(store)).apply(filing, record)

    assert outcome.historical_write is None
    assert len(outcome.errors) == 1
    assert outcome.actions_inserted == 2
    assert store.list_historical_points(filing.ticker_id) == []
    assert len(store.list_corporate_actions(filing.ticker_id)) == 2


# Filing state
def test_tracker_marks_processed_with_payload(store, filing):
    record = ExtractionRecord(outstanding_shares=48_000_000, corporate_actions=[_action()])
    FilingStateTracker(store).mark_processed(filing, record)

    row = store.get_filing(filing.id)
    assert row["processed"] is True
    assert row["parsed_data"]["outstanding_shares"] == 48_000_000
    assert row["parsed_data"]["corporate_actions"][0]["action_date"] == "2024-01-15"
    assert store.list_unprocessed_filings(filing.ticker_id) == []


def test_tracker_unknown_filing(store):
    ref = FilingRef(id="missing", ticker_id="t", filing_type="10-K", filing_date=FILING_DATE)
    with pytest.raises(PersistenceError):
        FilingStateTracker(store).mark_processed(ref, ExtractionRecord())
