"""
Fundamentals Adapters

Alpha Vantage company overview and Yahoo Finance symbol search.
"""
from typing import Any, Optional

import httpx

from ..core.ports import FinanceDataSource, TickerSearch
from .http import HttpAdapter, get_json

ALPHA_VANTAGE_URL = "https://www.alphavantage.co/query"
YAHOO_SEARCH_URL = "https://query2.finance.yahoo.com/v1/finance/search"


class AlphaVantageAdapter(HttpAdapter, FinanceDataSource):
    """Company overview (ratios, market cap, description) from Alpha Vantage"""

    def __init__(self, api_key: Optional[str], client: Optional[httpx.AsyncClient] = None):
        super().__init__(client=client)
        self.api_key = api_key

    async def fetch_overview(self, symbol: str) -> Optional[dict[str, Any]]:
        if not symbol:
            return None
        data = await get_json(
            self.client,
            ALPHA_VANTAGE_URL,
            params={"function": "OVERVIEW", "symbol": symbol, "apikey": self.api_key or ""}
        )
        # Unknown symbols and quota notes come back without a Symbol field
        if not isinstance(data, dict) or not data.get("Symbol"):
            return None
        return data


class YahooSymbolSearch(HttpAdapter, TickerSearch):
    """Name -> symbol via the Yahoo Finance search endpoint"""

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        super().__init__(client=client, headers={"User-Agent": "Mozilla/5.0"})

    async def search_symbol(self, company_name: str) -> Optional[str]:
        data = await get_json(
            self.client,
            YAHOO_SEARCH_URL,
            params={"q": company_name},
            headers={"User-Agent": "Mozilla/5.0"}
        )
        quotes = data.get("quotes") if isinstance(data, dict) else None
        quotes = [q for q in quotes if isinstance(q, dict)] if isinstance(quotes, list) else []
        if not quotes:
            return None
        return quotes[0].get("symbol") or None
