"""
Microsoft Graph Adapter

Implements DocumentIndex: SharePoint driveItem search and content download.
The caller's bearer token is forwarded as-is.
"""
from typing import Optional

import httpx

from ..core.domain import Candidate
from ..core.errors import SourceUnavailable
from ..core.ports import DocumentIndex
from .http import HttpAdapter

DEFAULT_GRAPH_URL = "https://graph.microsoft.com/v1.0"


class GraphDocumentIndex(HttpAdapter, DocumentIndex):
    """SharePoint search via Microsoft Graph"""

    def __init__(self, base_url: str = DEFAULT_GRAPH_URL, client: Optional[httpx.AsyncClient] = None):
        super().__init__(client=client)
        self.base_url = base_url.rstrip("/")

    @staticmethod
    def _auth(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    async def search(self, query_string: str, token: str, size: int = 15) -> list[Candidate]:
        body = {
            "requests": [
                {
                    "entityTypes": ["driveItem"],
                    "query": {"queryString": query_string},
                    "from": 0,
                    "size": size,
                }
            ]
        }
        try:
            resp = await self.client.post(f"{self.base_url}/search/query", json=body, headers=self._auth(token))
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise SourceUnavailable(f"Graph search failed: HTTP {e.response.status_code}") from None
        except (httpx.HTTPError, ValueError) as e:
            raise SourceUnavailable(f"Graph search failed: {e}") from None

        try:
            hits = data["value"][0]["hitsContainers"][0].get("hits") or []
        except (KeyError, IndexError, TypeError):
            hits = []

        candidates = []
        for hit in hits if isinstance(hits, list) else []:
            resource = hit.get("resource") if isinstance(hit, dict) else None
            if not isinstance(resource, dict) or not resource.get("id"):
                continue
            parent = resource.get("parentReference")
            candidates.append(Candidate(
                id=resource["id"],
                name=resource.get("name") or "",
                drive_id=parent.get("driveId") if isinstance(parent, dict) else None,
                web_url=resource.get("webUrl")
            ))
        return candidates

    async def download(self, drive_id: Optional[str], item_id: str, token: str) -> tuple[bytes, str]:
        url = f"{self.base_url}/drives/{drive_id}/items/{item_id}/content"
        try:
            resp = await self.client.get(url, headers=self._auth(token))
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SourceUnavailable(f"Could not read {item_id}: HTTP {e.response.status_code}") from None
        except httpx.HTTPError as e:
            raise SourceUnavailable(f"Could not read {item_id}: {e}") from None

        return resp.content, resp.headers.get("content-type", "").lower()
