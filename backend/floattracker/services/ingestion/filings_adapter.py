"""
filings_adapter.py — SEC filing listing for a ticker.

The parse pipeline should never talk to EDGAR's submissions feed directly;
this adapter turns the feed into `sec_filings` rows (processed = false) and
keeps ticker metadata current. Rows whose accession number is already stored
are left alone, so a filing that has been parsed is never reset.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from floattracker.core.errors import InputError, NotFoundError
from floattracker.core.logging import get_logger
from floattracker.services.ingestion.clients import EdgarClient
from floattracker.services.ingestion.clients.edgar_client import build_document_url

logger = get_logger(__name__)


class FilingCategory(str, Enum):
    PERIODIC_REPORT = "periodic_report"
    CURRENT_REPORT = "current_report"
    REGISTRATION_STATEMENT = "registration_statement"
    PROSPECTUS = "prospectus"


FORM_CATEGORIES = {
    "10-K": FilingCategory.PERIODIC_REPORT,
    "10-Q": FilingCategory.PERIODIC_REPORT,
    "8-K": FilingCategory.CURRENT_REPORT,
    "S-1": FilingCategory.REGISTRATION_STATEMENT,
    "S-3": FilingCategory.REGISTRATION_STATEMENT,
}
PROSPECTUS_PREFIX = "424B"

# Most recent filings kept per form type
PER_FORM_LIMIT = 20


def classify_form(form: str) -> Optional[FilingCategory]:
    """Category of a tracked form type, None for forms we do not parse."""
    form = (form or "").strip().upper()
    if form.startswith(PROSPECTUS_PREFIX):
        return FilingCategory.PROSPECTUS
    return FORM_CATEGORIES.get(form)


def extract_recent_filings(
    submissions: Dict[str, Any],
    cik: int,
    per_form_limit: int = PER_FORM_LIMIT,
) -> List[Dict[str, Any]]:
    """
    Build sec_filings rows from the `filings.recent` block of a submissions feed.

    The feed stores parallel arrays (form[i], filingDate[i], ...), newest first.
    """
    recent = (submissions.get("filings") or {}).get("recent") or {}
    forms = recent.get("form") or []
    dates = recent.get("filingDate") or []
    accessions = recent.get("accessionNumber") or []
    documents = recent.get("primaryDocument") or []

    per_form: Counter = Counter()
    rows: List[Dict[str, Any]] = []
    for i, form in enumerate(forms):
        if classify_form(form) is None:
            continue
        if per_form[form] >= per_form_limit:
            continue
        try:
            accession = accessions[i]
            filing_date = dates[i]
        except IndexError:
            logger.warning("Submissions arrays misaligned at index %d; stopping", i)
            break
        if not accession or not filing_date:
            continue

        primary_document = documents[i] if i < len(documents) else ""
        rows.append({
            "filing_type": form,
            "filing_date": filing_date,
            "accession_number": accession,
            "filing_url": build_document_url(cik, accession, primary_document) if primary_document else None,
            "processed": False,
        })
        per_form[form] += 1
    return rows


class FilingsAdapter:
    def __init__(self, store: Any, edgar_client: Optional[EdgarClient] = None) -> None:
        self._store = store
        self._edgar = edgar_client or EdgarClient()

    def fetch_filings(self, symbol: Optional[str]) -> Dict[str, Any]:
        """
        List recent tracked filings for `symbol` and store the new ones.

        Raises:
            InputError: symbol missing or unknown to EDGAR
        """
        if not symbol or not symbol.strip():
            raise InputError("Ticker symbol is required")
        symbol = symbol.strip().upper()
        logger.info("Fetching SEC filings for %s", symbol)

        cik = self._edgar.get_cik_map().get(symbol)
        if cik is None:
            raise NotFoundError(f"No SEC CIK found for ticker {symbol}")

        ticker = self._store.ensure_ticker(symbol)
        submissions = self._edgar.get_submissions(cik)

        exchanges = submissions.get("exchanges") or []
        self._store.update_ticker(str(ticker["id"]), {
            "company_name": submissions.get("name"),
            "exchange": exchanges[0] if exchanges else None,
            "sector": submissions.get("sicDescription"),
            "last_updated": datetime.now(timezone.utc),
        })

        rows = extract_recent_filings(submissions, cik)
        inserted = self._store.insert_new_filings(str(ticker["id"]), rows)
        by_category = Counter(classify_form(row["filing_type"]).value for row in rows)

        logger.info("Found %d tracked filings for %s (%d new)", len(rows), symbol, inserted)
        return {
            "success": True,
            "ticker": symbol,
            "cik": f"{cik:010d}",
            "filings_count": len(rows),
            "inserted": inserted,
            "by_category": dict(by_category),
        }
