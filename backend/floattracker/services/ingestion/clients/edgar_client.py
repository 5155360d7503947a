"""
edgar_client.py — HTTP client for SEC EDGAR endpoints.

Responsibilities:
- Ticker → CIK mapping and company submissions feed (filing listing)
- Raw filing document download for the parse pipeline
- Polite rate limiting and retry behavior
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from floattracker.core.config import settings
from floattracker.core.errors import FetchError
from floattracker.core.logging import get_logger


logger = get_logger(__name__)


SEC_BASE_HEADERS = {
    "Accept": "application/json",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
}
DOCUMENT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml",
}

COMPANY_TICKER_URL = "https://www.sec.gov/files/company_tickers.json"
SUBMISSIONS_URL_TEMPLATE = "https://data.sec.gov/submissions/CIK{cik:010d}.json"
ARCHIVE_DOCUMENT_URL_TEMPLATE = "https://www.sec.gov/Archives/edgar/data/{cik}/{accession}/{document}"


class EdgarClientError(RuntimeError):
    """Base exception for EDGAR client failures."""


class EdgarClientConfigurationError(EdgarClientError):
    """Raised when required configuration is missing or invalid."""


def build_document_url(cik: int, accession_number: str, primary_document: str) -> str:
    """Archive URL of a filing's primary document."""
    return ARCHIVE_DOCUMENT_URL_TEMPLATE.format(
        cik=int(cik),
        accession=accession_number.replace("-", ""),
        document=primary_document,
    )


@dataclass(frozen=True)
class EdgarClientSettings:
    user_agent: str
    sleep_seconds: float
    timeout_seconds: int
    max_retries: int
    backoff_base: float

    @classmethod
    def from_app_settings(cls) -> "EdgarClientSettings":
        return cls(
            user_agent=settings.EDGAR_USER_AGENT,
            sleep_seconds=settings.EDGAR_REQUEST_SLEEP_SECONDS,
            timeout_seconds=settings.EDGAR_REQUEST_TIMEOUT_SECONDS,
            max_retries=settings.EDGAR_MAX_RETRIES,
            backoff_base=settings.EDGAR_BACKOFF_BASE,
        )


class EdgarClient:
    """
    Thin wrapper over `requests.Session` with polite EDGAR defaults.

    The client is sync/blocking: filings are fetched one at a time by the
    parse pipeline and the SEC endpoints are rate limited anyway.
    """

    def __init__(self, session: Optional[requests.Session] = None, config: Optional[EdgarClientSettings] = None):
        self._session = session or requests.Session()
        self._config = config or EdgarClientSettings.from_app_settings()
        if not self._config.user_agent.strip():
            raise EdgarClientConfigurationError("EDGAR_USER_AGENT must be configured.")
        self._session.headers.update({**SEC_BASE_HEADERS, "User-Agent": self._config.user_agent})

    # --------------------------------------------------------------------- #
    # Public API
    # --------------------------------------------------------------------- #
    def get_cik_map(self) -> Dict[str, int]:
        """
        Retrieve the SEC-wide ticker → CIK mapping.

        Returns:
            Dict mapping upper-case ticker -> integer CIK.
        """
        data = self._request_json(COMPANY_TICKER_URL)
        return {row["ticker"].upper(): int(row["cik_str"]) for row in data.values()}

    def get_submissions(self, cik: int) -> Dict[str, Any]:
        """Fetch a company's submissions feed."""
        return self._request_json(SUBMISSIONS_URL_TEMPLATE.format(cik=cik))

    def fetch_document(self, url: str) -> str:
        """
        Download a filing document as text.

        Raises:
            FetchError: the document could not be retrieved
        """
        try:
            response = self._request(url, headers=DOCUMENT_HEADERS)
        except requests.RequestException as e:
            raise FetchError(f"Could not retrieve {url}: {e}") from e
        return response.text

    # ------------------------------------------------------------------ #
    # Request helpers
    # ------------------------------------------------------------------ #

    def _request_json(self, url: str) -> Any:
        response = self._request(url)
        return response.json()

    def _request(self, url: str, headers: Optional[Dict[str, str]] = None) -> requests.Response:
        response = self._perform_request(url, headers)
        response.raise_for_status()
        self._polite_sleep()
        return response

    def _polite_sleep(self) -> None:
        delay = max(self._config.sleep_seconds, 0.0)
        if delay:
            time.sleep(delay)

    @retry(
        stop=stop_after_attempt(settings.EDGAR_MAX_RETRIES),
        wait=wait_exponential(multiplier=settings.EDGAR_BACKOFF_BASE, min=0.1, max=5),
        retry=retry_if_exception_type((requests.RequestException,)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    def _perform_request(self, url: str, headers: Optional[Dict[str, str]] = None) -> requests.Response:
        logger.debug("Requesting %s", url)
        response = self._session.get(url, headers=headers, timeout=self._config.timeout_seconds)
        if response.status_code in {403, 429, 500, 502, 503, 504}:
            # Trigger retry
            msg = f"EDGAR request throttled or server error (status {response.status_code})"
            logger.warning("%s, retrying", msg)
            raise requests.HTTPError(msg, response=response)
        return response
