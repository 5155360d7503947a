"""
tickers.py — Per-ticker pipeline endpoints (API Layer)

Purpose:
- Trigger the filing listing, market-data sync and filing parse runs.
- Serve the stored float history and corporate actions of a ticker.

All work happens in the services; handlers only translate errors:
NotFoundError → 404, other InputError → 400, anything else → 500.
"""

from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from floattracker.core.config import settings
from floattracker.core.errors import InputError, NotFoundError
from floattracker.core.logging import get_logger
from floattracker.services.extraction import FilingParsePipeline, build_pipeline
from floattracker.services.ingestion.filings_adapter import FilingsAdapter
from floattracker.services.market_data.yfinance_market_data import MarketDataAdapter
from floattracker.services.storage import get_store

logger = get_logger(__name__)

router = APIRouter(
    prefix="/tickers",
    tags=["tickers"]
)


class ParseRequest(BaseModel):
    # null parses every unprocessed filing
    limit: Optional[int] = Field(default=settings.DEFAULT_PARSE_LIMIT)


class MarketDataRequest(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ParseResponse(BaseModel):
    success: bool
    ticker: str
    processed: int
    errors: int
    total: int
    message: str


# -----------------------------------------------------------------------------
# Dependencies
# -----------------------------------------------------------------------------

def get_store_dependency() -> Any:
    return get_store()


def get_parse_pipeline(store: Any = Depends(get_store_dependency)) -> FilingParsePipeline:
    return build_pipeline(store)


def get_filings_adapter(store: Any = Depends(get_store_dependency)) -> FilingsAdapter:
    return FilingsAdapter(store)


def get_market_data_adapter(store: Any = Depends(get_store_dependency)) -> MarketDataAdapter:
    return MarketDataAdapter(store)


def _raise_http(action: str, symbol: str, exc: Exception) -> None:
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, InputError):
        raise HTTPException(status_code=400, detail=str(exc))
    logger.exception("Unexpected error while %s for %s: %s", action, symbol, exc)
    raise HTTPException(status_code=500, detail=str(exc))


# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------

@router.post("/{symbol}/filings/fetch")
def fetch_filings(symbol: str, adapter: FilingsAdapter = Depends(get_filings_adapter)) -> Dict[str, Any]:
    """POST /tickers/{symbol}/filings/fetch - list recent SEC filings and store new ones"""
    try:
        return adapter.fetch_filings(symbol)
    except Exception as e:
        _raise_http("fetching filings", symbol, e)


@router.post("/{symbol}/market-data")
def fetch_market_data(
    symbol: str,
    request: Optional[MarketDataRequest] = None,
    adapter: MarketDataAdapter = Depends(get_market_data_adapter),
) -> Dict[str, Any]:
    """POST /tickers/{symbol}/market-data - merge daily closes into historical data"""
    request = request or MarketDataRequest()
    try:
        return adapter.sync_price_history(symbol, request.start_date, request.end_date)
    except Exception as e:
        _raise_http("fetching market data", symbol, e)


@router.post("/{symbol}/filings/parse", response_model=ParseResponse)
def parse_filings(
    symbol: str,
    request: Optional[ParseRequest] = None,
    pipeline: FilingParsePipeline = Depends(get_parse_pipeline),
):
    """
    POST /tickers/{symbol}/filings/parse - extract share facts from unprocessed filings

    Per-filing failures are folded into `errors`; only a missing or unknown
    ticker (or a bad limit) fails the request.
    """
    limit = request.limit if request is not None else settings.DEFAULT_PARSE_LIMIT
    try:
        return pipeline.process_filings(symbol, limit=limit).to_dict()
    except Exception as e:
        _raise_http("parsing filings", symbol, e)


@router.get("/{symbol}/history")
def get_history(symbol: str, store: Any = Depends(get_store_dependency)) -> Dict[str, Any]:
    """GET /tickers/{symbol}/history - stored historical points and corporate actions"""
    try:
        ticker = store.get_ticker(symbol.strip().upper())
        if not ticker:
            raise NotFoundError(f"Ticker not found: {symbol.upper()}")
        ticker_id = str(ticker["id"])
        return {
            "ticker": ticker,
            "historical_data": store.list_historical_points(ticker_id),
            "corporate_actions": store.list_corporate_actions(ticker_id),
        }
    except Exception as e:
        _raise_http("reading history", symbol, e)
