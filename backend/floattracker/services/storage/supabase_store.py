"""
Supabase storage adapter for the float tracker tables.

Tables: tickers, sec_filings, historical_data, corporate_actions.
Every driver failure is re-raised as PersistenceError.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from supabase import Client, create_client

from floattracker.core.config import settings
from floattracker.core.errors import PersistenceError
from floattracker.core.logging import get_logger


logger = get_logger(__name__)


def _create_supabase_client() -> Client:
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise PersistenceError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be configured.")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


def _jsonable(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _payload(fields: Dict[str, Any], drop_none: bool = False) -> Dict[str, Any]:
    return {k: _jsonable(v) for k, v in fields.items() if not (drop_none and v is None)}


class SupabaseFloatStore:
    """
    Thin wrapper providing typed helpers around the Supabase tables.
    """

    def __init__(self, client: Optional[Client] = None):
        self._client = client or _create_supabase_client()

    # ------------------------------------------------------------------ #
    # Ticker helpers
    def get_ticker(self, symbol: str) -> Optional[Dict[str, Any]]:
        try:
            response = (
                self._client.table("tickers")
                .select("*")
                .eq("symbol", symbol.upper())
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to look up ticker {symbol}: {e}") from e
        data = response.data or []
        return data[0] if data else None

    def ensure_ticker(self, symbol: str) -> Dict[str, Any]:
        existing = self.get_ticker(symbol)
        if existing:
            return existing
        try:
            response = self._client.table("tickers").insert({"symbol": symbol.upper()}).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to insert ticker {symbol}: {e}") from e
        return response.data[0]

    def update_ticker(self, ticker_id: str, fields: Dict[str, Any]) -> None:
        payload = _payload(fields, drop_none=True)
        if not payload:
            return
        try:
            self._client.table("tickers").update(payload).eq("id", ticker_id).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to update ticker {ticker_id}: {e}") from e

    # ------------------------------------------------------------------ #
    # Filing helpers
    def list_unprocessed_filings(self, ticker_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        try:
            query = (
                self._client.table("sec_filings")
                .select("*")
                .eq("ticker_id", ticker_id)
                .eq("processed", False)
                .order("filing_date", desc=True)
            )
            if limit is not None:
                query = query.limit(limit)
            response = query.execute()
        except Exception as e:
            raise PersistenceError(f"Failed to list filings for {ticker_id}: {e}") from e
        return response.data or []

    def insert_new_filings(self, ticker_id: str, rows: Sequence[Dict[str, Any]]) -> int:
        """Insert rows whose accession number is not stored yet; returns inserted count."""
        if not rows:
            return 0
        payload = [_payload({**row, "ticker_id": ticker_id}) for row in rows]
        try:
            response = (
                self._client.table("sec_filings")
                .upsert(payload, on_conflict="accession_number", ignore_duplicates=True)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to insert filings: {e}") from e
        return len(response.data or [])

    def update_filing(self, filing_id: str, fields: Dict[str, Any]) -> None:
        try:
            response = (
                self._client.table("sec_filings")
                .update(_payload(fields))
                .eq("id", filing_id)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to update filing {filing_id}: {e}") from e
        if not response.data:
            raise PersistenceError(f"Filing {filing_id} not found")

    # ------------------------------------------------------------------ #
    # Historical data helpers
    def lookup_prices(self, ticker_id: str, limit: int = 100) -> List[Dict[str, Any]]:
        """Most recent rows with a price, newest first."""
        try:
            response = (
                self._client.table("historical_data")
                .select("date, price")
                .eq("ticker_id", ticker_id)
                .not_.is_("price", "null")
                .order("date", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to look up prices for {ticker_id}: {e}") from e
        return response.data or []

    def lookup_price(self, ticker_id: str, on_date: date) -> Optional[float]:
        try:
            response = (
                self._client.table("historical_data")
                .select("price")
                .eq("ticker_id", ticker_id)
                .eq("date", _jsonable(on_date))
                .not_.is_("price", "null")
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to look up price for {ticker_id} on {on_date}: {e}") from e
        data = response.data or []
        return float(data[0]["price"]) if data else None

    def get_historical_point(self, ticker_id: str, on_date: date) -> Optional[Dict[str, Any]]:
        try:
            response = (
                self._client.table("historical_data")
                .select("*")
                .eq("ticker_id", ticker_id)
                .eq("date", _jsonable(on_date))
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to read historical data: {e}") from e
        data = response.data or []
        return data[0] if data else None

    def list_historical_points(self, ticker_id: str) -> List[Dict[str, Any]]:
        try:
            response = (
                self._client.table("historical_data")
                .select("*")
                .eq("ticker_id", ticker_id)
                .order("date")
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to read historical data: {e}") from e
        return response.data or []

    def update_historical_point(self, ticker_id: str, on_date: date, fields: Dict[str, Any]) -> int:
        """Update only `fields` on the (ticker, date) row; returns matched rows."""
        try:
            response = (
                self._client.table("historical_data")
                .update(_payload(fields))
                .eq("ticker_id", ticker_id)
                .eq("date", _jsonable(on_date))
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to update historical data for {on_date}: {e}") from e
        return len(response.data or [])

    def insert_historical_point(self, ticker_id: str, on_date: date, fields: Dict[str, Any]) -> None:
        payload = _payload({**fields, "ticker_id": ticker_id, "date": on_date})
        try:
            self._client.table("historical_data").insert(payload).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to insert historical data for {on_date}: {e}") from e

    # ------------------------------------------------------------------ #
    # Corporate action helpers
    def insert_corporate_action(self, row: Dict[str, Any]) -> None:
        try:
            self._client.table("corporate_actions").insert(_payload(row)).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to insert corporate action: {e}") from e

    def find_corporate_action(self, ticker_id: str, action_date: date, action_type: str) -> Optional[Dict[str, Any]]:
        try:
            response = (
                self._client.table("corporate_actions")
                .select("*")
                .eq("ticker_id", ticker_id)
                .eq("action_date", _jsonable(action_date))
                .eq("action_type", action_type)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to look up corporate action: {e}") from e
        data = response.data or []
        return data[0] if data else None

    def list_corporate_actions(self, ticker_id: str) -> List[Dict[str, Any]]:
        try:
            response = (
                self._client.table("corporate_actions")
                .select("*")
                .eq("ticker_id", ticker_id)
                .order("action_date", desc=True)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to read corporate actions: {e}") from e
        return response.data or []
