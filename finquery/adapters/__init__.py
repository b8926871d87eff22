"""
Adapters - External implementations of ports

This package contains implementations of the core ports:
- sec.py: SEC EDGAR reference table and submissions
- alpha_vantage.py: Fundamentals overview and symbol search
- finnhub.py: Company news
- graph.py: SharePoint search via Microsoft Graph
- extract.py: Word/PDF/Excel/text extraction
- llm.py: Azure OpenAI summarizer
- web.py: Plain page fetches for URL search
- azure_search.py: Azure Cognitive Search index
"""
from .sec import SecEdgarAdapter
from .alpha_vantage import AlphaVantageAdapter, YahooSymbolSearch
from .finnhub import FinnhubAdapter
from .graph import GraphDocumentIndex
from .extract import DocumentTextExtractor
from .llm import AzureOpenAISummarizer
from .web import WebPageFetcher
from .azure_search import AzureSearchIndex

__all__ = [
    "SecEdgarAdapter",
    "AlphaVantageAdapter",
    "YahooSymbolSearch",
    "FinnhubAdapter",
    "GraphDocumentIndex",
    "DocumentTextExtractor",
    "AzureOpenAISummarizer",
    "WebPageFetcher",
    "AzureSearchIndex",
]
