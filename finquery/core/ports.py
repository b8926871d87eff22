"""
Ports - Interfaces for external dependencies

These define HOW the core interacts with the outside world,
but NOT the implementation details. Every network-facing method is a
coroutine and a suspension point.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional

from .domain import Candidate, NewsArticle


class ReferenceTableSource(ABC):
    """Port for the full-universe company/ticker/CIK table"""

    @abstractmethod
    async def fetch_reference_table(self) -> dict[str, Any]:
        """Return the raw `{fields, data}` payload; raise SourceUnavailable on failure"""
        pass


class EntityRecordSource(ABC):
    """Port for per-entity filing records"""

    @abstractmethod
    async def fetch_entity_record(self, cik: str) -> dict[str, Any]:
        """Return `{name, filings: {recent: {...parallel arrays}}}` for a CIK"""
        pass


class FinanceDataSource(ABC):
    """Port for a stock-fundamentals provider"""

    @abstractmethod
    async def fetch_overview(self, symbol: str) -> Optional[dict[str, Any]]:
        """Return the company overview, or None when the provider has none"""
        pass


class TickerSearch(ABC):
    """Port for resolving a company name to a trading symbol"""

    @abstractmethod
    async def search_symbol(self, company_name: str) -> Optional[str]:
        """Return the best symbol for a company name, or None"""
        pass


class NewsSource(ABC):
    """Port for a company news provider"""

    @abstractmethod
    async def search_symbol(self, company: str) -> Optional[str]:
        """Return the provider symbol for a company name or ticker"""
        pass

    @abstractmethod
    async def company_news(self, symbol: str, start: str, end: str) -> list[NewsArticle]:
        """Return news for a symbol between two YYYY-MM-DD dates"""
        pass


class DocumentIndex(ABC):
    """Port for the document search index (SharePoint via Microsoft Graph)"""

    @abstractmethod
    async def search(self, query_string: str, token: str, size: int = 15) -> list[Candidate]:
        """Return up to `size` candidate files for a search string"""
        pass

    @abstractmethod
    async def download(self, drive_id: Optional[str], item_id: str, token: str) -> tuple[bytes, str]:
        """Return (raw bytes, content type) for one item"""
        pass


class ContentExtractor(ABC):
    """Port for turning a binary document into text"""

    @staticmethod
    def kind_of(content_type: Optional[str], filename: Optional[str] = None) -> str:
        """Declared kind from a content type, falling back to the file suffix"""
        content_type = (content_type or "").lower()
        filename = (filename or "").lower()
        if "wordprocessingml.document" in content_type or filename.endswith(".docx"):
            return "docx"
        if "pdf" in content_type or filename.endswith(".pdf"):
            return "pdf"
        if "spreadsheetml.sheet" in content_type or filename.endswith(".xlsx"):
            return "xlsx"
        if "text" in content_type or filename.endswith((".txt", ".csv", ".md")):
            return "text"
        return content_type or "unknown"

    @abstractmethod
    def extract(self, blob: bytes, kind_hint: str) -> str:
        """Extract text; unsupported kinds yield an empty string"""
        pass


class PageSource(ABC):
    """Port for fetching a web page by URL"""

    @abstractmethod
    async def fetch_page(self, url: str) -> str:
        """Return the page body as text (JSON bodies serialized)"""
        pass


class SearchIndex(ABC):
    """Port for a full-text search index of uploaded pages"""

    @abstractmethod
    async def upload(self, documents: list[dict[str, str]]) -> None:
        """Upload `{id, title, content}` documents; raise SourceUnavailable on failure"""
        pass

    @abstractmethod
    async def search(self, query: str, top: int = 3) -> list[str]:
        """Return the content of the `top` best-matching documents"""
        pass


class Summarizer(ABC):
    """Port for the language model"""

    @abstractmethod
    async def summarize(self, prompt: str, max_tokens: int = 500, temperature: float = 0.2) -> str:
        """Return the model's text answer for a prompt"""
        pass
