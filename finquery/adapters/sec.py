"""
SEC EDGAR Adapter

Implements the reference table and per-entity record ports against the
public EDGAR JSON endpoints.
"""
import logging
from typing import Any, Optional

import httpx

from ..core.domain import format_cik
from ..core.errors import SourceUnavailable
from ..core.ports import EntityRecordSource, ReferenceTableSource
from .http import HttpAdapter, get_json

logger = logging.getLogger(__name__)

COMPANY_TICKERS_URL = "https://www.sec.gov/files/company_tickers_exchange.json"
SUBMISSIONS_URL = "https://data.sec.gov/submissions/CIK{cik}.json"

DEFAULT_USER_AGENT = "finquery research finquery@example.com"


class SecEdgarAdapter(HttpAdapter, ReferenceTableSource, EntityRecordSource):
    """EDGAR reference table + submissions fetcher"""

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        client: Optional[httpx.AsyncClient] = None
    ):
        # SEC rejects requests without a descriptive User-Agent
        self.headers = {"User-Agent": user_agent, "Accept": "application/json"}
        super().__init__(client=client, headers=self.headers)

    async def fetch_reference_table(self) -> dict[str, Any]:
        """Company/ticker/exchange table as `{fields, data}`"""
        payload = await get_json(self.client, COMPANY_TICKERS_URL, headers=self.headers)
        if not isinstance(payload, dict) or "fields" not in payload or "data" not in payload:
            raise SourceUnavailable("Unexpected company tickers payload shape")
        return payload

    async def fetch_entity_record(self, cik: str) -> dict[str, Any]:
        """Submissions record for one CIK"""
        try:
            padded = format_cik(cik)
        except ValueError:
            raise SourceUnavailable(f"Invalid CIK: {cik!r}") from None

        payload = await get_json(self.client, SUBMISSIONS_URL.format(cik=padded), headers=self.headers)
        if not isinstance(payload, dict):
            raise SourceUnavailable(f"Unexpected submissions payload for CIK {padded}")
        return payload
