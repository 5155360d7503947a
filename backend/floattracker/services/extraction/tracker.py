"""
tracker.py — Filing state transitions.

unprocessed → processed happens once per filing, after the extraction
attempt, whether or not any field was recovered. There is no intermediate
state: a filing whose processing blew up is simply left unprocessed and will
be picked up by the next parse run.
"""

from __future__ import annotations

from typing import Any

from floattracker.core.logging import get_logger
from floattracker.services.extraction.types import ExtractionRecord, FilingRef

logger = get_logger(__name__)


class FilingStateTracker:
    def __init__(self, store: Any) -> None:
        self._store = store

    def mark_processed(self, filing: FilingRef, record: ExtractionRecord) -> None:
        """
        Raises:
            PersistenceError: the filing row could not be updated
        """
        self._store.update_filing(
            filing.id,
            {"processed": True, "parsed_data": record.to_payload()},
        )
        logger.info("Successfully processed filing %s", filing.id)
