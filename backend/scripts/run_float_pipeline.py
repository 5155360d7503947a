"""
run_float_pipeline.py — Run the float tracker steps for one ticker from the shell.

Steps (each optional):
    1. list SEC filings and store new ones (--fetch-filings)
    2. merge daily closes into historical_data (--market-data)
    3. parse unprocessed filings (always, unless --skip-parse)

Example (local SQLite database):
    STORAGE_BACKEND=sql SUPABASE_DB_URL=sqlite:///floattracker.db \
    python scripts/run_float_pipeline.py \
        --symbol ACME \
        --init-db \
        --fetch-filings \
        --market-data --from-date 2023-01-01 \
        --limit 10
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date

from floattracker.core.config import settings
from floattracker.core.database import build_engine, create_schema
from floattracker.core.errors import FloatTrackerError
from floattracker.core.logging import configure_logging, get_logger
from floattracker.services.extraction import build_pipeline
from floattracker.services.ingestion.filings_adapter import FilingsAdapter
from floattracker.services.market_data.yfinance_market_data import MarketDataAdapter
from floattracker.services.storage import get_store

logger = get_logger(__name__)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date (expected YYYY-MM-DD): {value}")


def _parse_limit(value: str):
    if value.lower() in ("all", "none"):
        return None
    return int(value)


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Fetch, price and parse SEC filings for one ticker"
    )
    parser.add_argument("--symbol", type=str, required=True, help="Stock ticker symbol (e.g., ACME)")
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create the tables on SUPABASE_DB_URL first (local SQL runs)",
    )
    parser.add_argument("--fetch-filings", action="store_true", help="List SEC filings and store new ones")
    parser.add_argument("--market-data", action="store_true", help="Merge daily closes from Yahoo Finance")
    parser.add_argument("--from-date", type=_parse_date, default=None, help="Market data start (YYYY-MM-DD)")
    parser.add_argument("--to-date", type=_parse_date, default=None, help="Market data end (YYYY-MM-DD)")
    parser.add_argument("--skip-parse", action="store_true", help="Do not parse unprocessed filings")
    parser.add_argument(
        "--limit",
        type=_parse_limit,
        default=settings.DEFAULT_PARSE_LIMIT,
        help=f"Filings to parse, or 'all' (default: {settings.DEFAULT_PARSE_LIMIT})",
    )
    args = parser.parse_args()

    configure_logging(settings.LOG_LEVEL)

    if args.init_db:
        if not settings.SUPABASE_DB_URL:
            logger.error("--init-db needs SUPABASE_DB_URL")
            return 1
        create_schema(build_engine(settings.SUPABASE_DB_URL))

    results = {}
    try:
        store = get_store()
        if args.fetch_filings:
            results["filings"] = FilingsAdapter(store).fetch_filings(args.symbol)
        if args.market_data:
            results["market_data"] = MarketDataAdapter(store).sync_price_history(
                args.symbol, args.from_date, args.to_date
            )
        if not args.skip_parse:
            results["parse"] = build_pipeline(store).process_filings(args.symbol, limit=args.limit).to_dict()
    except FloatTrackerError as e:
        logger.error("%s", e)
        return 1

    print(json.dumps(results, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
