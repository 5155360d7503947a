"""
ticker.py — ORM Model for Tracked Tickers

Purpose:
- Represent a public company tracked by the float tracker.
- Provides the stable id every other table links to:
    * sec_filings
    * historical_data
    * corporate_actions

Design Rule:
- Created on first reference by symbol; never deleted by the pipeline.
- Metadata only; share counts and prices live in historical_data.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from floattracker.core.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Ticker(Base):
    __tablename__ = "tickers"

    id = Column(String(36), primary_key=True, default=_new_id)

    symbol = Column(String, unique=True, index=True, nullable=False)

    # Display Metadata
    company_name = Column(String, nullable=True)
    exchange = Column(String, nullable=True)
    sector = Column(String, nullable=True)

    last_updated = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=True)

    def __repr__(self):
        return f"<Ticker {self.symbol} | {self.company_name}>"
