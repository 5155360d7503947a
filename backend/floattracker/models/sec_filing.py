"""
sec_filing.py — ORM Model for SEC Filing References

Purpose:
- Represent one regulatory filing (10-K, 10-Q, 8-K, S-1, 424B, ...) for a ticker.
- Track whether the parse pipeline has already attempted it.

Lifecycle:
- Inserted by the filings adapter with processed = false.
- Flipped to processed = true exactly once by the filing state tracker,
  together with parsed_data (the merged extraction record, kept for audit).

Important Constraint:
- accession_number is UNIQUE — one row per filing.
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, ForeignKey, Index, String

from floattracker.core.database import Base
from floattracker.models.ticker import _new_id


class SecFiling(Base):
    __tablename__ = "sec_filings"

    id = Column(String(36), primary_key=True, default=_new_id)

    ticker_id = Column(String(36), ForeignKey("tickers.id"), nullable=False)

    filing_type = Column(String, nullable=False)        # e.g., "10-K", "8-K"
    filing_date = Column(Date, nullable=False)
    accession_number = Column(String, unique=True, nullable=True)
    filing_url = Column(String, nullable=True)

    processed = Column(Boolean, default=False, nullable=True)
    parsed_data = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=True)

    __table_args__ = (
        Index("idx_sec_filings_ticker_processed", "ticker_id", "processed"),
    )

    def __repr__(self):
        return f"<SecFiling {self.filing_type} | {self.filing_date} | processed={self.processed}>"
