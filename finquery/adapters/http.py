"""
Shared httpx helpers for adapters

Translate transport and decoding failures into SourceUnavailable.
"""
from typing import Any, Optional

import httpx

from ..core.errors import SourceUnavailable

DEFAULT_TIMEOUT = 30.0


async def get(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[dict[str, Any]] = None,
    headers: Optional[dict[str, str]] = None
) -> httpx.Response:
    """GET a URL, raising SourceUnavailable on transport or status errors"""
    try:
        resp = await client.get(url, params=params, headers=headers)
        resp.raise_for_status()
        return resp
    except httpx.TimeoutException as e:
        raise SourceUnavailable(f"Timeout fetching {url}: {e}") from None
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        if status == 429:
            raise SourceUnavailable(f"Rate limited by {e.request.url.host} (429)") from None
        raise SourceUnavailable(f"HTTP {status} from {url}") from None
    except httpx.HTTPError as e:
        raise SourceUnavailable(f"Failed to fetch {url}: {e}") from None


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[dict[str, Any]] = None,
    headers: Optional[dict[str, str]] = None
) -> Any:
    """GET a JSON document"""
    resp = await get(client, url, params=params, headers=headers)
    try:
        return resp.json()
    except ValueError as e:
        raise SourceUnavailable(f"Invalid JSON from {url}: {e}") from None


class HttpAdapter:
    """Base for adapters that own (or borrow) an httpx.AsyncClient"""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, headers: Optional[dict[str, str]] = None):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            headers=headers or {},
            timeout=DEFAULT_TIMEOUT,
            follow_redirects=True
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
