"""
historical_data.py — ORM Model for the Per-Day Float / Market Cap History

Purpose:
- One row per (ticker, calendar date) combining:
    * price (written by the market-data adapter)
    * outstanding_shares / float_shares / market_cap (written by the filing parser)

**Important Constraint:**
- (ticker_id, date) must be UNIQUE. Writers update in place when a row exists
  and only touch the columns they own, so fields are independently nullable.
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, Date, DateTime, Float, ForeignKey, Index, String

from floattracker.core.database import Base
from floattracker.models.ticker import _new_id


class HistoricalDataPoint(Base):
    __tablename__ = "historical_data"

    id = Column(String(36), primary_key=True, default=_new_id)

    ticker_id = Column(String(36), ForeignKey("tickers.id"), nullable=False)
    date = Column(Date, nullable=False)

    price = Column(Float, nullable=True)
    float_shares = Column(BigInteger, nullable=True)
    outstanding_shares = Column(BigInteger, nullable=True)
    market_cap = Column(Float, nullable=True)
    source = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=True)

    __table_args__ = (
        Index("idx_historical_ticker_date", "ticker_id", "date", unique=True),
    )

    def __repr__(self):
        return f"<HistoricalDataPoint {self.ticker_id} @ {self.date} float={self.float_shares}>"
