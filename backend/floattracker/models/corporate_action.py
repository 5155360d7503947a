"""
corporate_action.py — ORM Model for Detected Corporate Actions

Purpose:
- Store share-structure events reported by filings: splits, reverse splits,
  offerings, buybacks, warrant exercises, dilution.

Design Rule:
- Append-only. Each extraction reporting an action inserts a row; rows outlive
  the filing that produced them (filing_url keeps the link).
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, Date, DateTime, ForeignKey, Index, String, Text

from floattracker.core.database import Base
from floattracker.models.ticker import _new_id


class CorporateAction(Base):
    __tablename__ = "corporate_actions"

    id = Column(String(36), primary_key=True, default=_new_id)

    ticker_id = Column(String(36), ForeignKey("tickers.id"), nullable=False)

    action_type = Column(String, nullable=False)   # see ActionType
    action_date = Column(Date, nullable=False)
    description = Column(Text, nullable=False)

    shares_before = Column(BigInteger, nullable=True)
    shares_after = Column(BigInteger, nullable=True)
    split_ratio = Column(String, nullable=True)     # "X-for-Y"
    impact_description = Column(Text, nullable=True)

    source = Column(String, nullable=True)
    filing_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=True)

    __table_args__ = (
        Index("idx_corporate_actions_ticker_date", "ticker_id", "action_date"),
    )

    def __repr__(self):
        return f"<CorporateAction {self.action_type} @ {self.action_date}>"
