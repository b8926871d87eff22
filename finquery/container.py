"""
Dependency Injection Container

Wires together the hexagonal architecture by creating and injecting dependencies.
Caches live here so their lifetime is the container's lifetime.
"""
from typing import Optional

from .adapters import (
    AlphaVantageAdapter,
    AzureOpenAISummarizer,
    AzureSearchIndex,
    DocumentTextExtractor,
    FinnhubAdapter,
    GraphDocumentIndex,
    SecEdgarAdapter,
    YahooSymbolSearch,
    WebPageFetcher,
)
from .config import Settings
from .core import (
    BatchFetcher,
    CandidateRanker,
    DocumentQueryService,
    FilingRetrievalService,
    FilingSummaryService,
    FinanceQueryService,
    FinanceSecQueryService,
    IdentifierResolver,
    NewsQueryService,
    ReferenceTableCache,
    ResolutionCache,
    SecQueryService,
    Summarizer,
    UrlSearchService,
)


class Container:
    """Dependency injection container for the application"""

    def __init__(self, settings: Optional[Settings] = None, summarizer: Optional[Summarizer] = None):
        self.settings = settings or Settings()
        s = self.settings

        # Adapters (infrastructure)
        self.sec = SecEdgarAdapter(user_agent=s.sec_user_agent)
        self.finance = AlphaVantageAdapter(api_key=s.alpha_vantage_key)
        self.ticker_search = YahooSymbolSearch()
        self.news = FinnhubAdapter(api_key=s.finnhub_api_key)
        self.documents = GraphDocumentIndex(base_url=s.graph_api_url)
        self.extractor = DocumentTextExtractor()
        self.pages = WebPageFetcher()
        self.search_index = AzureSearchIndex(
            endpoint=s.azure_search_endpoint,
            index_name=s.azure_search_index,
            api_key=s.azure_search_api_key
        )
        self.summarizer = summarizer or AzureOpenAISummarizer(
            endpoint=s.azure_openai_endpoint,
            api_key=s.azure_openai_api_key,
            deployment=s.azure_openai_deployment,
            api_version=s.openai_api_version
        )

        # Resolution pipeline
        self.reference_table = ReferenceTableCache(self.sec, ttl_seconds=s.reference_table_ttl)
        self.resolution_cache = ResolutionCache()
        self.resolver = IdentifierResolver(self.reference_table, self.resolution_cache)
        self.batch_fetcher = BatchFetcher(
            batch_size=s.sec_batch_size,
            inter_batch_delay=s.sec_batch_delay_ms / 1000
        )

        # Services (use cases)
        self.filings = FilingRetrievalService(
            records=self.sec,
            resolver=self.resolver,
            fetcher=self.batch_fetcher
        )
        self.filing_summary = FilingSummaryService(self.summarizer)

        self.sec_query = SecQueryService(
            summarizer=self.summarizer,
            resolver=self.resolver,
            filings=self.filings,
            filing_summary=self.filing_summary
        )

        self.finance_query = FinanceQueryService(
            summarizer=self.summarizer,
            finance=self.finance,
            ticker_search=self.ticker_search
        )

        self.finance_sec_query = FinanceSecQueryService(
            summarizer=self.summarizer,
            resolver=self.resolver,
            filings=self.filings,
            filing_summary=self.filing_summary,
            finance=self.finance,
            ticker_search=self.ticker_search
        )

        self.news_query = NewsQueryService(
            summarizer=self.summarizer,
            news=self.news
        )

        self.document_query = DocumentQueryService(
            summarizer=self.summarizer,
            index=self.documents,
            extractor=self.extractor,
            ranker=CandidateRanker()
        )

        self.url_search = UrlSearchService(
            summarizer=self.summarizer,
            pages=self.pages,
            index=self.search_index
        )

    async def aclose(self) -> None:
        """Close the HTTP clients owned by adapters"""
        for adapter in (
            self.sec, self.finance, self.ticker_search, self.news, self.documents,
            self.pages, self.search_index
        ):
            await adapter.aclose()
