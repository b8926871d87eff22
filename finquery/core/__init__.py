"""
Core - Domain logic and ports

This package contains:
- domain.py: Pure domain models
- errors.py: Failure taxonomy
- ports.py: Port interfaces (abstractions for external dependencies)
- resolver.py: Reference table cache and identifier resolution
- batching.py: Rate-limited batch fetching and filing aggregation
- ranking.py: Keyword extraction and candidate ranking
- prompts.py: Model prompts and tolerant output parsing
- services.py: Application services (use cases)
"""
from .domain import Filing, Candidate, ReferenceRow, ReferenceTable, QueryEntities, NewsArticle, format_cik
from .errors import FinqueryError, SourceUnavailable, NotFound, MalformedModelOutput
from .ports import (
    ReferenceTableSource,
    EntityRecordSource,
    FinanceDataSource,
    TickerSearch,
    NewsSource,
    DocumentIndex,
    ContentExtractor,
    PageSource,
    SearchIndex,
    Summarizer
)
from .resolver import ReferenceTableCache, ResolutionCache, IdentifierResolver, NOT_FOUND
from .batching import BatchFetcher, aggregate, collect_latest
from .ranking import CandidateRanker, extract_keywords, select_top
from .services import (
    FilingRetrievalService,
    FilingSummaryService,
    SecQueryService,
    FinanceQueryService,
    FinanceSecQueryService,
    NewsQueryService,
    DocumentQueryService,
    UrlSearchService
)

__all__ = [
    # Domain models
    "Filing",
    "Candidate",
    "ReferenceRow",
    "ReferenceTable",
    "QueryEntities",
    "NewsArticle",
    "format_cik",
    # Errors
    "FinqueryError",
    "SourceUnavailable",
    "NotFound",
    "MalformedModelOutput",
    # Ports
    "ReferenceTableSource",
    "EntityRecordSource",
    "FinanceDataSource",
    "TickerSearch",
    "NewsSource",
    "DocumentIndex",
    "ContentExtractor",
    "PageSource",
    "SearchIndex",
    "Summarizer",
    # Pipeline
    "ReferenceTableCache",
    "ResolutionCache",
    "IdentifierResolver",
    "NOT_FOUND",
    "BatchFetcher",
    "aggregate",
    "collect_latest",
    "CandidateRanker",
    "extract_keywords",
    "select_top",
    # Services
    "FilingRetrievalService",
    "FilingSummaryService",
    "SecQueryService",
    "FinanceQueryService",
    "FinanceSecQueryService",
    "NewsQueryService",
    "DocumentQueryService",
    "UrlSearchService",
]
