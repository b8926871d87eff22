"""
Finnhub Adapter

Implements NewsSource: symbol search and company news.
"""
from typing import Optional

import httpx

from ..core.domain import NewsArticle
from ..core.errors import SourceUnavailable
from ..core.ports import NewsSource
from .http import HttpAdapter, get_json

FINNHUB_URL = "https://finnhub.io/api/v1"


class FinnhubAdapter(HttpAdapter, NewsSource):
    """Finnhub symbol lookup + company news"""

    def __init__(self, api_key: Optional[str], client: Optional[httpx.AsyncClient] = None):
        super().__init__(client=client)
        self.api_key = api_key

    async def search_symbol(self, company: str) -> Optional[str]:
        """Prefer a US listing or common stock, else the first result"""
        data = await get_json(
            self.client,
            f"{FINNHUB_URL}/search",
            params={"q": company, "token": self.api_key or ""}
        )
        results = data.get("result") if isinstance(data, dict) else None
        results = [r for r in results if isinstance(r, dict)] if isinstance(results, list) else []
        if not results:
            return None

        match = next(
            (r for r in results if r.get("exchange") == "US" or r.get("type") == "Common Stock"),
            results[0]
        )
        return match.get("symbol") or None

    async def company_news(self, symbol: str, start: str, end: str) -> list[NewsArticle]:
        data = await get_json(
            self.client,
            f"{FINNHUB_URL}/company-news",
            params={"symbol": symbol, "from": start, "to": end, "token": self.api_key or ""}
        )
        if not isinstance(data, list):
            raise SourceUnavailable(f"Unexpected company news payload for {symbol}")

        return [
            NewsArticle(
                headline=item.get("headline", ""),
                summary=item.get("summary", ""),
                source=item.get("source"),
                url=item.get("url"),
                datetime=item.get("datetime")
            )
            for item in data
            if isinstance(item, dict)
        ]
