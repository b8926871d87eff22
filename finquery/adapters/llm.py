"""
Azure OpenAI Adapter

Implements the Summarizer port with chat completions.
"""
import logging
from typing import Optional

from openai import AsyncAzureOpenAI

from ..core.ports import Summarizer

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "2024-02-15-preview"


class AzureOpenAISummarizer(Summarizer):
    """Single-turn chat completion against an Azure OpenAI deployment"""

    def __init__(
        self,
        endpoint: Optional[str],
        api_key: Optional[str],
        deployment: Optional[str],
        api_version: str = DEFAULT_API_VERSION,
        client: Optional[AsyncAzureOpenAI] = None
    ):
        self.deployment = deployment
        self._client = client
        self._config = {"azure_endpoint": endpoint, "api_key": api_key, "api_version": api_version}

    @property
    def client(self) -> AsyncAzureOpenAI:
        # Built lazily so the server starts without credentials
        if self._client is None:
            self._client = AsyncAzureOpenAI(azure_deployment=self.deployment, **self._config)
        return self._client

    async def summarize(self, prompt: str, max_tokens: int = 500, temperature: float = 0.2) -> str:
        completion = await self.client.chat.completions.create(
            model=self.deployment,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
            temperature=temperature
        )
        if not completion.choices:
            logger.warning("Model returned no choices")
            return ""
        return (completion.choices[0].message.content or "").strip()
