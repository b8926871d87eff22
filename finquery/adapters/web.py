"""
Web Page Adapter

Implements the PageSource port with plain GETs.
"""
import json
import logging

from ..core.ports import PageSource
from .http import HttpAdapter, get

logger = logging.getLogger(__name__)


class WebPageFetcher(HttpAdapter, PageSource):
    """Fetch arbitrary pages for indexing"""

    async def fetch_page(self, url: str) -> str:
        resp = await get(self.client, url)
        if "json" in resp.headers.get("content-type", ""):
            try:
                return json.dumps(resp.json())
            except ValueError:
                logger.warning(f"{url} is labelled JSON but does not parse; indexing raw text")
        return resp.text
