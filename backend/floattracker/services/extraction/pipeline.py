"""
pipeline.py — Filing parse orchestration.

For each unprocessed filing of a ticker, strictly one at a time:

    fetch → normalize → heuristic extraction (full text)
                      → section selection → AI extraction (excerpt)
    → precedence merge → dollar/share reconciliation
    → historical_data / corporate_actions upsert → mark filing processed

Error boundaries:
- InputError (missing/unknown ticker, bad limit) fails the whole call.
- Fetch, completion, parse and persistence errors stay inside the filing:
  the filing is still marked processed and counts once toward `errors`.
- Anything uncaught is stopped at the per-filing boundary: the filing counts
  toward `errors` and stays unprocessed for a future run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from floattracker.core.config import settings
from floattracker.core.errors import FetchError, InputError, NotFoundError, PersistenceError
from floattracker.core.logging import get_logger
from floattracker.services.extraction.heuristics import HeuristicExtractor
from floattracker.services.extraction.merger import merge_extractions
from floattracker.services.extraction.normalizer import normalize_document
from floattracker.services.extraction.reconciler import UnitReconciler
from floattracker.services.extraction.sections import select_sections
from floattracker.services.extraction.tracker import FilingStateTracker
from floattracker.services.extraction.types import ExtractionRecord, FilingRef, ParseSummary
from floattracker.services.extraction.upserter import HistoricalRecordUpserter

logger = get_logger(__name__)


@dataclass
class FilingOutcome:
    filing_id: str
    record: Optional[ExtractionRecord] = None
    marked_processed: bool = False
    errors: List[Exception] = field(default_factory=list)


class FilingParsePipeline:
    """
    Args:
        store: storage adapter (SupabaseFloatStore / SqlFloatStore)
        fetch_document: url -> raw document text, raising FetchError
        llm_extractor: AI extractor, or None to run on heuristics alone
    """

    def __init__(
        self,
        store: Any,
        fetch_document: Callable[[str], str],
        llm_extractor: Optional[Any] = None,
        heuristic_extractor: Optional[HeuristicExtractor] = None,
        reconciler: Optional[UnitReconciler] = None,
        upserter: Optional[HistoricalRecordUpserter] = None,
        tracker: Optional[FilingStateTracker] = None,
    ) -> None:
        self._store = store
        self._fetch_document = fetch_document
        self._llm = llm_extractor
        self._heuristic = heuristic_extractor or HeuristicExtractor()
        self._reconciler = reconciler or UnitReconciler(store)
        self._upserter = upserter or HistoricalRecordUpserter(store)
        self._tracker = tracker or FilingStateTracker(store)

    # ------------------------------------------------------------------ #
    def process_filings(self, symbol: Optional[str], limit: Optional[int] = None) -> ParseSummary:
        """
        Parse up to `limit` unprocessed filings (None = all), newest first.

        Raises:
            InputError: symbol missing, ticker unknown, or limit not positive
        """
        if not symbol or not str(symbol).strip():
            raise InputError("Ticker symbol is required")
        if limit is not None and limit < 1:
            raise InputError(f"limit must be a positive integer or null, got {limit}")

        symbol = str(symbol).strip().upper()
        logger.info("Parsing SEC filings for %s, limit: %s", symbol, limit if limit is not None else "all")

        ticker = self._store.get_ticker(symbol)
        if not ticker:
            raise NotFoundError(f"Ticker not found: {symbol}")

        filings = self._store.list_unprocessed_filings(str(ticker["id"]), limit=limit)
        summary = ParseSummary(ticker=symbol, total=len(filings))
        if not filings:
            logger.info("No unprocessed filings found for %s", symbol)
            return summary

        logger.info("Found %d unprocessed filings", len(filings))
        for row in filings:
            try:
                filing = FilingRef.from_row(row)
                outcome = self.process_filing(filing)
            except Exception as exc:  # pylint: disable=broad-except
                logger.exception("Error processing filing %s: %s", row.get("id"), exc)
                summary.errors += 1
                continue

            if outcome.marked_processed:
                summary.processed += 1
            if outcome.errors:
                summary.errors += 1

        logger.info(
            "Parse complete for %s: %d processed, %d with errors, %d total",
            symbol, summary.processed, summary.errors, summary.total,
        )
        return summary

    def process_filing(self, filing: FilingRef) -> FilingOutcome:
        """Run every stage for one filing; only unexpected exceptions escape."""
        logger.info("Processing filing: %s from %s", filing.filing_type, filing.filing_date)
        outcome = FilingOutcome(filing_id=filing.id)

        text = normalize_document(self._load_document(filing, outcome))

        results = [self._heuristic.extract(text)]
        if self._llm is not None:
            excerpt = select_sections(text)
            ai_result = self._llm.extract(filing.filing_type, excerpt)
            if ai_result.error is not None:
                outcome.errors.append(ai_result.error)
            results.append(ai_result)

        record = merge_extractions(results)

        try:
            self._reconciler.reconcile(filing.ticker_id, record, filing.filing_date)
        except PersistenceError as e:
            logger.error("Price lookup failed for filing %s: %s", filing.id, e)
            outcome.errors.append(e)

        outcome.record = record
        outcome.errors.extend(self._upserter.apply(filing, record).errors)

        try:
            self._tracker.mark_processed(filing, record)
            outcome.marked_processed = True
        except PersistenceError as e:
            logger.error("Error updating filing %s: %s", filing.id, e)
            outcome.errors.append(e)

        return outcome

    def _load_document(self, filing: FilingRef, outcome: FilingOutcome) -> str:
        if not filing.filing_url:
            logger.warning("Filing %s has no document URL", filing.id)
            return ""
        try:
            return self._fetch_document(filing.filing_url)
        except FetchError as e:
            logger.error("Error fetching filing document %s: %s", filing.filing_url, e)
            outcome.errors.append(e)
            return ""


def build_pipeline(store: Optional[Any] = None) -> FilingParsePipeline:
    """Wire the pipeline from settings: EDGAR fetcher, completion client, storage."""
    from floattracker.services.extraction.completion_client import CompletionClient
    from floattracker.services.extraction.llm_extractor import LLMExtractor
    from floattracker.services.ingestion.clients import EdgarClient
    from floattracker.services.storage import get_store

    store = store or get_store()
    llm_extractor = LLMExtractor(CompletionClient()) if settings.LLM_ENABLED else None
    if llm_extractor is None:
        logger.info("LLM extraction disabled; parsing with heuristics only")
    return FilingParsePipeline(
        store=store,
        fetch_document=EdgarClient().fetch_document,
        llm_extractor=llm_extractor,
    )


def process_filings(symbol: str, limit: Optional[int] = None, store: Optional[Any] = None) -> Dict[str, Any]:
    """Module-level entrypoint used by the API layer."""
    return build_pipeline(store).process_filings(symbol, limit=limit).to_dict()
