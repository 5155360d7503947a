"""
SQLAlchemy storage adapter for the float tracker tables.

Same contract as SupabaseFloatStore, over any SQLAlchemy URL: Postgres
through psycopg in deployment, SQLite for local runs and tests.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, Iterator, List, Optional, Sequence

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from floattracker.core.database import build_engine, build_session_factory, create_schema
from floattracker.core.errors import PersistenceError
from floattracker.core.logging import get_logger
from floattracker.models import CorporateAction, HistoricalDataPoint, SecFiling, Ticker
from floattracker.services.extraction.types import parse_iso_date

logger = get_logger(__name__)


def _row_to_dict(obj: Any) -> Dict[str, Any]:
    return {column.name: getattr(obj, column.name) for column in obj.__table__.columns}


def _as_date(value: Any) -> date:
    parsed = parse_iso_date(value)
    if parsed is None:
        raise PersistenceError(f"Invalid date value: {value!r}")
    return parsed


class SqlFloatStore:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @classmethod
    def from_url(cls, db_url: str, create_tables: bool = False) -> "SqlFloatStore":
        engine = build_engine(db_url)
        if create_tables:
            create_schema(engine)
        return cls(build_session_factory(engine))

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Failed to {action}: {e}") from e
        finally:
            session.close()

    # ------------------------------------------------------------------ #
    # Ticker helpers
    def get_ticker(self, symbol: str) -> Optional[Dict[str, Any]]:
        with self._session("look up ticker") as db:
            ticker = db.query(Ticker).filter(Ticker.symbol == symbol.upper()).first()
            return _row_to_dict(ticker) if ticker else None

    def ensure_ticker(self, symbol: str) -> Dict[str, Any]:
        with self._session("insert ticker") as db:
            ticker = db.query(Ticker).filter(Ticker.symbol == symbol.upper()).first()
            if ticker is None:
                ticker = Ticker(symbol=symbol.upper())
                db.add(ticker)
                db.flush()
            return _row_to_dict(ticker)

    def update_ticker(self, ticker_id: str, fields: Dict[str, Any]) -> None:
        fields = {k: v for k, v in fields.items() if v is not None}
        if not fields:
            return
        with self._session("update ticker") as db:
            db.query(Ticker).filter(Ticker.id == ticker_id).update(fields, synchronize_session=False)

    # ------------------------------------------------------------------ #
    # Filing helpers
    def list_unprocessed_filings(self, ticker_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        with self._session("list filings") as db:
            query = (
                db.query(SecFiling)
                .filter(SecFiling.ticker_id == ticker_id)
                .filter(SecFiling.processed == False)  # noqa: E712
                .order_by(desc(SecFiling.filing_date))
            )
            if limit is not None:
                query = query.limit(limit)
            return [_row_to_dict(f) for f in query.all()]

    def insert_new_filings(self, ticker_id: str, rows: Sequence[Dict[str, Any]]) -> int:
        if not rows:
            return 0
        with self._session("insert filings") as db:
            accessions = [row["accession_number"] for row in rows if row.get("accession_number")]
            existing = {
                a for (a,) in db.query(SecFiling.accession_number)
                .filter(SecFiling.accession_number.in_(accessions))
                .all()
            }
            inserted = 0
            for row in rows:
                accession = row.get("accession_number")
                if accession in existing:
                    continue
                db.add(SecFiling(
                    ticker_id=ticker_id,
                    filing_type=row["filing_type"],
                    filing_date=_as_date(row["filing_date"]),
                    accession_number=accession,
                    filing_url=row.get("filing_url"),
                    processed=bool(row.get("processed", False)),
                    parsed_data=row.get("parsed_data"),
                ))
                if accession:
                    existing.add(accession)
                inserted += 1
            return inserted

    def update_filing(self, filing_id: str, fields: Dict[str, Any]) -> None:
        with self._session("update filing") as db:
            matched = db.query(SecFiling).filter(SecFiling.id == filing_id).update(fields, synchronize_session=False)
        if not matched:
            raise PersistenceError(f"Filing {filing_id} not found")

    def get_filing(self, filing_id: str) -> Optional[Dict[str, Any]]:
        with self._session("read filing") as db:
            filing = db.get(SecFiling, filing_id)
            return _row_to_dict(filing) if filing else None

    # ------------------------------------------------------------------ #
    # Historical data helpers
    def lookup_prices(self, ticker_id: str, limit: int = 100) -> List[Dict[str, Any]]:
        with self._session("look up prices") as db:
            rows = (
                db.query(HistoricalDataPoint.date, HistoricalDataPoint.price)
                .filter(HistoricalDataPoint.ticker_id == ticker_id)
                .filter(HistoricalDataPoint.price.isnot(None))
                .order_by(desc(HistoricalDataPoint.date))
                .limit(limit)
                .all()
            )
            return [{"date": d, "price": p} for d, p in rows]

    def lookup_price(self, ticker_id: str, on_date: date) -> Optional[float]:
        with self._session("look up price") as db:
            return (
                db.query(HistoricalDataPoint.price)
                .filter(HistoricalDataPoint.ticker_id == ticker_id)
                .filter(HistoricalDataPoint.date == _as_date(on_date))
                .filter(HistoricalDataPoint.price.isnot(None))
                .limit(1)
                .scalar()
            )

    def get_historical_point(self, ticker_id: str, on_date: date) -> Optional[Dict[str, Any]]:
        with self._session("read historical data") as db:
            point = (
                db.query(HistoricalDataPoint)
                .filter(HistoricalDataPoint.ticker_id == ticker_id)
                .filter(HistoricalDataPoint.date == _as_date(on_date))
                .first()
            )
            return _row_to_dict(point) if point else None

    def list_historical_points(self, ticker_id: str) -> List[Dict[str, Any]]:
        with self._session("read historical data") as db:
            points = (
                db.query(HistoricalDataPoint)
                .filter(HistoricalDataPoint.ticker_id == ticker_id)
                .order_by(HistoricalDataPoint.date)
                .all()
            )
            return [_row_to_dict(p) for p in points]

    def update_historical_point(self, ticker_id: str, on_date: date, fields: Dict[str, Any]) -> int:
        with self._session("update historical data") as db:
            return (
                db.query(HistoricalDataPoint)
                .filter(HistoricalDataPoint.ticker_id == ticker_id)
                .filter(HistoricalDataPoint.date == _as_date(on_date))
                .update(fields, synchronize_session=False)
            )

    def insert_historical_point(self, ticker_id: str, on_date: date, fields: Dict[str, Any]) -> None:
        with self._session("insert historical data") as db:
            db.add(HistoricalDataPoint(ticker_id=ticker_id, date=_as_date(on_date), **fields))

    # ------------------------------------------------------------------ #
    # Corporate action helpers
    def insert_corporate_action(self, row: Dict[str, Any]) -> None:
        with self._session("insert corporate action") as db:
            db.add(CorporateAction(**{**row, "action_date": _as_date(row["action_date"])}))

    def find_corporate_action(self, ticker_id: str, action_date: date, action_type: str) -> Optional[Dict[str, Any]]:
        with self._session("look up corporate action") as db:
            action = (
                db.query(CorporateAction)
                .filter(CorporateAction.ticker_id == ticker_id)
                .filter(CorporateAction.action_date == _as_date(action_date))
                .filter(CorporateAction.action_type == action_type)
                .first()
            )
            return _row_to_dict(action) if action else None

    def list_corporate_actions(self, ticker_id: str) -> List[Dict[str, Any]]:
        with self._session("read corporate actions") as db:
            actions = (
                db.query(CorporateAction)
                .filter(CorporateAction.ticker_id == ticker_id)
                .order_by(desc(CorporateAction.action_date))
                .all()
            )
            return [_row_to_dict(a) for a in actions]
