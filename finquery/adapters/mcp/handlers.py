"""
Tool Handlers

Shared handlers used by the MCP tools, the HTTP endpoints and the CLI.
Every handler returns a dict with a `success` flag; failures carry an
`error` message and an HTTP-style `status`.
"""
import logging
from typing import Any, Optional

from ...container import Container
from ...core.domain import format_cik
from ...core.errors import NotFound

logger = logging.getLogger(__name__)


def _failure(message: str, status: int = 500) -> dict[str, Any]:
    return {"success": False, "error": message, "status": status}


class MCPHandlers:
    """Handlers for tools using dependency injection"""

    def __init__(self, container: Container):
        self.container = container

    async def resolve_company(
        self,
        name: Optional[str] = None,
        ticker: Optional[str] = None
    ) -> dict[str, Any]:
        """Resolve a company name or ticker to a CIK (and the CIK back to a ticker)"""
        if not (name or "").strip() and not (ticker or "").strip():
            return _failure("Provide a company name or ticker", 400)

        try:
            cik = await self.container.resolver.resolve(name, ticker)
            if not cik:
                return _failure(f"CIK not found for {ticker or name}", 404)

            resolved_ticker = await self.container.resolver.ticker_for_cik(cik)
            return {
                "success": True,
                "query": {"name": name, "ticker": ticker},
                "cik": cik,
                "ticker": resolved_ticker,
            }

        except Exception as e:
            logger.error(f"resolve_company failed: {e}")
            return _failure(f"Failed to resolve company: {str(e)}")

    async def list_filings(
        self,
        form_type: Optional[str] = None,
        name: Optional[str] = None,
        ticker: Optional[str] = None,
        cik: Optional[str] = None,
        limit: int = 10
    ) -> dict[str, Any]:
        """List filings for one company, or the latest filings of a form across all companies"""
        if cik:
            try:
                cik = format_cik(cik)
            except ValueError:
                return _failure(f"Invalid CIK: {cik}", 400)

        try:
            if not cik and (name or ticker):
                cik = await self.container.resolver.resolve(name, ticker)
                if not cik:
                    return _failure(f"CIK not found for {ticker or name}", 404)

            if cik:
                filings = await self.container.filings.for_cik(cik, limit, form_type)
            elif form_type:
                filings = await self.container.filings.latest_by_form(form_type, limit)
            else:
                return _failure("Provide a company, a CIK or a form type", 400)

            return {
                "success": True,
                "cik": cik,
                "form_type": form_type,
                "filings": [dict(f.to_dict(), secUrl=f.sec_url) for f in filings],
                "count": len(filings),
            }

        except Exception as e:
            logger.error(f"list_filings failed: {e}")
            return _failure(f"Failed to list filings: {str(e)}")

    async def sec_query(self, query: str) -> dict[str, Any]:
        """Answer a question about SEC filings"""
        if not query:
            return _failure("Query is required.", 400)
        try:
            result = await self.container.sec_query.execute(query)
            return {
                "success": True,
                "answer": result.answer,
                "grounded_context": [f.to_dict() for f in result.filings],
            }
        except Exception as e:
            logger.error(f"sec_query failed: {e}")
            return _failure("Internal server error.")

    async def finance_query(self, query: str) -> dict[str, Any]:
        """Summarize fundamentals for a company named in the query"""
        if not query:
            return _failure("Query is required.", 400)
        try:
            result = await self.container.finance_query.execute(query)
            return {
                "success": True,
                "sourceUsed": "finance",
                "companyName": result.company_name,
                "ticker": result.ticker,
                "aiSummary": result.summary,
                "financeData": result.finance_data or {},
            }
        except Exception as e:
            logger.error(f"finance_query failed: {e}")
            return _failure("Internal server error.")

    async def finance_sec_query(self, query: str) -> dict[str, Any]:
        """Unified fundamentals + filings answer"""
        if not query:
            return _failure("Query is required.", 400)
        try:
            result = await self.container.finance_sec_query.execute(query)
            return {
                "success": True,
                "sourceUsed": result.source,
                "companyName": result.company_name,
                "ticker": result.ticker,
                "cik": result.cik,
                "aiSummary": result.summary,
                "financeData": result.finance_data or {},
                "secFilings": [f.to_dict() for f in result.filings],
                "answer": result.insights,
            }
        except Exception as e:
            logger.error(f"finance_sec_query failed: {e}")
            return _failure("Internal server error.")

    async def company_news(self, query: str) -> dict[str, Any]:
        """Summarize the last month of news for the company in the query"""
        if not query:
            return _failure("Query is required", 400)
        try:
            result = await self.container.news_query.execute(query)
            return {
                "success": True,
                "company": result.company,
                "ticker": result.ticker,
                "answer": result.answer,
                "topNews": [a.to_dict() for a in result.articles],
            }
        except NotFound as e:
            return _failure(str(e), 404)
        except Exception as e:
            logger.error(f"company_news failed: {e}")
            return _failure("Failed to process company news query")

    async def document_query(self, query: str, token: Optional[str]) -> dict[str, Any]:
        """Answer from the best-ranked SharePoint documents"""
        if not query or not token:
            return _failure("Query and Bearer token required", 400)
        try:
            result = await self.container.document_query.execute(query, token)
            return {
                "success": True,
                "answer": result.answer,
                "sources": [c.to_source() for c in result.sources],
            }
        except NotFound as e:
            return _failure(str(e), 404)
        except Exception as e:
            logger.error(f"document_query failed: {e}")
            return _failure(str(e))

    async def url_search(self, query: str, urls: Any) -> dict[str, Any]:
        """Index the given pages and answer from the best matches"""
        if not query or not isinstance(urls, list) or not urls \
                or not all(isinstance(u, str) and u.strip() for u in urls):
            return _failure("Query and URLs array required.", 400)
        try:
            result = await self.container.url_search.execute(query, [u.strip() for u in urls])
            return {
                "success": True,
                "answer": result.answer,
                "grounded_context": result.context,
            }
        except Exception as e:
            logger.error(f"url_search failed: {e}")
            return _failure("Internal server error.")
