"""
types.py — Data contracts passed between the filing parse stages.

ExtractionRecord is the unit every extractor yields and the merger returns.
It is never stored as its own table: the merged record becomes
sec_filings.parsed_data, and its fields feed historical_data and
corporate_actions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ActionType(str, Enum):
    SPLIT = "split"
    REVERSE_SPLIT = "reverse_split"
    OFFERING = "offering"
    BUYBACK = "buyback"
    WARRANT_EXERCISE = "warrant_exercise"
    DILUTION = "dilution"
    OTHER = "other"


VALID_ACTION_TYPES = {a.value for a in ActionType}


def parse_iso_date(value: Any) -> Optional[date]:
    """Return a date for a date/datetime/ISO string, None for anything else."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


@dataclass
class CorporateActionEntry:
    """One corporate action as reported by an extractor."""
    action_type: str
    action_date: Optional[date]
    description: str = ""
    shares_before: Optional[int] = None
    shares_after: Optional[int] = None
    split_ratio: Optional[str] = None
    impact_description: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "action_type": self.action_type,
            "action_date": self.action_date.isoformat() if self.action_date else None,
            "description": self.description,
            "shares_before": self.shares_before,
            "shares_after": self.shares_after,
            "split_ratio": self.split_ratio,
            "impact_description": self.impact_description,
        }


@dataclass
class ExtractionRecord:
    """
    Structured share-count facts recovered from one filing.

    Attributes:
        outstanding_shares: Total shares issued, or None
        float_shares: Shares available for public trading, or None
        public_float_usd: Dollar value of the float, or None
        public_float_date: As-of date of the public float figure, or None
        corporate_actions: Reported actions; None means the extractor does
            not report actions at all (as opposed to reporting none)
    """
    outstanding_shares: Optional[int] = None
    float_shares: Optional[int] = None
    public_float_usd: Optional[float] = None
    public_float_date: Optional[date] = None
    corporate_actions: Optional[List[CorporateActionEntry]] = None

    @property
    def has_share_counts(self) -> bool:
        return self.outstanding_shares is not None or self.float_shares is not None

    def to_payload(self) -> Dict[str, Any]:
        """JSON-safe shape stored as sec_filings.parsed_data."""
        return {
            "outstanding_shares": self.outstanding_shares,
            "float_shares": self.float_shares,
            "public_float_usd": self.public_float_usd,
            "public_float_date": self.public_float_date.isoformat() if self.public_float_date else None,
            "corporate_actions": [a.to_payload() for a in (self.corporate_actions or [])],
        }


SCALAR_FIELDS = (
    "outstanding_shares",
    "float_shares",
    "public_float_usd",
    "public_float_date",
)


@dataclass
class ExtractorResult:
    """
    Output of one extractor for one filing.

    `record` is None when the extractor produced nothing usable (service or
    parse failure, nothing to read). `precedence` orders extractors in the
    merge: higher wins.
    """
    source: str
    precedence: int
    record: Optional[ExtractionRecord]
    error: Optional[Exception] = None
    signals: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FilingRef:
    """The sec_filings columns the parse pipeline reads."""
    id: str
    ticker_id: str
    filing_type: str
    filing_date: date
    filing_url: Optional[str] = None
    accession_number: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "FilingRef":
        filing_date = parse_iso_date(row.get("filing_date"))
        if filing_date is None:
            raise ValueError(f"Filing {row.get('id')} has no valid filing_date: {row.get('filing_date')!r}")
        return cls(
            id=str(row["id"]),
            ticker_id=str(row["ticker_id"]),
            filing_type=row.get("filing_type") or "filing",
            filing_date=filing_date,
            filing_url=row.get("filing_url"),
            accession_number=row.get("accession_number"),
        )

    @property
    def source_label(self) -> str:
        return f"SEC {self.filing_type}"


@dataclass
class ParseSummary:
    """Aggregated outcome of one parse invocation."""
    ticker: str
    processed: int = 0
    errors: int = 0
    total: int = 0

    @property
    def message(self) -> str:
        if self.total == 0:
            return "No unprocessed filings found"
        return f"Processed {self.processed} of {self.total} filings"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "ticker": self.ticker,
            "processed": self.processed,
            "errors": self.errors,
            "total": self.total,
            "message": self.message,
        }
