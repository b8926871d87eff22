"""
Azure Cognitive Search Adapter

Implements the SearchIndex port with the async azure-search-documents client.
"""
import logging
from typing import Optional

from azure.core.credentials import AzureKeyCredential
from azure.core.exceptions import AzureError
from azure.search.documents.aio import SearchClient

from ..core.errors import SourceUnavailable
from ..core.ports import SearchIndex

logger = logging.getLogger(__name__)


class AzureSearchIndex(SearchIndex):
    """Upload and query `{id, title, content}` documents in one index"""

    def __init__(
        self,
        endpoint: Optional[str],
        index_name: Optional[str],
        api_key: Optional[str],
        client: Optional[SearchClient] = None
    ):
        self.endpoint = endpoint
        self.index_name = index_name
        self.api_key = api_key
        self._client = client

    @property
    def client(self) -> SearchClient:
        if self._client is None:
            if not (self.endpoint and self.index_name and self.api_key):
                raise SourceUnavailable("Azure Search is not configured")
            self._client = SearchClient(self.endpoint, self.index_name, AzureKeyCredential(self.api_key))
        return self._client

    async def upload(self, documents: list[dict[str, str]]) -> None:
        try:
            results = await self.client.upload_documents(documents=documents)
        except AzureError as e:
            raise SourceUnavailable(f"Azure Search upload failed: {e}") from None
        failed = [r.key for r in results if not r.succeeded]
        if failed:
            raise SourceUnavailable(f"Azure Search rejected {len(failed)} document(s)")

    async def search(self, query: str, top: int = 3) -> list[str]:
        contents = []
        try:
            results = await self.client.search(search_text=query, top=top)
            async for result in results:
                content = result.get("content")
                if content:
                    contents.append(content)
        except AzureError as e:
            raise SourceUnavailable(f"Azure Search query failed: {e}") from None
        logger.debug("Search %r matched %d document(s)", query, len(contents))
        return contents

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
