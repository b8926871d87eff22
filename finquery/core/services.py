"""
Application Services - Use cases that orchestrate domain logic

These are the entry points to the core. They coordinate between
domain models and ports, but contain no infrastructure concerns.
"""
import asyncio
import base64
import logging
from datetime import date, timedelta
from typing import Any, Callable, Optional

from .batching import BatchFetcher, collect_latest
from .domain import (
    Candidate,
    DocumentQueryResult,
    FinanceQueryResult,
    FinanceSecQueryResult,
    Filing,
    NewsQueryResult,
    QueryEntities,
    SecQueryResult,
    UrlSearchResult,
    format_cik,
)
from .errors import NotFound, SourceUnavailable
from .ports import (
    ContentExtractor,
    DocumentIndex,
    EntityRecordSource,
    FinanceDataSource,
    NewsSource,
    PageSource,
    SearchIndex,
    Summarizer,
    TickerSearch,
)
from .prompts import (
    combined_summary_prompt,
    company_prompt,
    document_answer_prompt,
    entities_from_json,
    filing_insights_prompt,
    filings_summary_prompt,
    finance_intent_prompt,
    finance_summary_prompt,
    news_summary_prompt,
    parse_model_json,
    query_intent_prompt,
    sec_entities_prompt,
    strip_code_fences,
    url_search_prompt,
)
from .ranking import CandidateRanker, extract_keywords, keywords_to_search_string, select_top
from .resolver import IdentifierResolver

logger = logging.getLogger(__name__)

CIK_NOT_FOUND_ANSWER = "CIK not found. Provide valid company name, ticker, or form."
NO_SUMMARY = "No summary generated."
SUMMARY_BATCH_SIZE = 2
SUMMARY_SEPARATOR = "\n\n---\n\n"


def filings_from_record(
    cik: str,
    record: Any,
    ticker: str = "",
    limit: int = 50,
    form_filter: Optional[str] = None
) -> list[Filing]:
    """
    Convert a submissions record (parallel arrays) into Filings.

    Only the first `limit` slots are considered; the form filter is a
    case-insensitive substring match. A record without the filings shape
    has no filings.
    """
    if not isinstance(record, dict):
        return []
    recent = (record.get("filings") or {}).get("recent")
    if not isinstance(recent, dict) or not isinstance(recent.get("accessionNumber"), list):
        return []

    accessions = recent["accessionNumber"]
    dates = recent.get("filingDate") or []
    forms = recent.get("form") or []
    documents = recent.get("primaryDocument") or []

    def slot(values: list, i: int) -> str:
        return str(values[i]) if i < len(values) and values[i] is not None else ""

    filings = []
    for i in range(min(len(accessions), limit)):
        form = slot(forms, i)
        if form_filter and form_filter.upper() not in form.upper():
            continue
        filings.append(Filing(
            cik=cik,
            company_name=record.get("name") or "",
            ticker=ticker or "",
            accession_number=slot(accessions, i),
            filing_date=slot(dates, i),
            form=form,
            primary_document=slot(documents, i)
        ))
    return filings


class FilingRetrievalService:
    """Use case: Filings for one CIK, or the latest filings across all CIKs"""

    def __init__(
        self,
        records: EntityRecordSource,
        resolver: IdentifierResolver,
        fetcher: BatchFetcher,
        scan_slots: int = 10
    ):
        self.records = records
        self.resolver = resolver
        self.fetcher = fetcher
        self.scan_slots = scan_slots

    async def _fetch_entity(self, cik: str, limit: int, form: Optional[str]) -> list[Filing]:
        record = await self.records.fetch_entity_record(cik)
        ticker = await self.resolver.ticker_for_cik(cik) or ""
        return filings_from_record(cik, record, ticker=ticker, limit=limit, form_filter=form)

    async def for_cik(self, cik: str, limit: int = 10, form: Optional[str] = None) -> list[Filing]:
        """Filings among the `limit` most recent submissions of one CIK"""
        try:
            return await self._fetch_entity(format_cik(cik), limit, form)
        except ValueError:
            logger.warning(f"Invalid CIK {cik!r}")
            return []
        except SourceUnavailable as e:
            logger.warning(f"Filings unavailable for CIK {cik}: {e}")
            return []

    async def latest_by_form(self, form: Optional[str], limit: int = 10) -> list[Filing]:
        """Scan the CIK universe in rate-limited windows until `limit` filings are found"""
        ciks = await self.resolver.all_ciks()
        if not ciks:
            return []

        async def fetch(cik: str) -> list[Filing]:
            return await self._fetch_entity(cik, self.scan_slots, form)

        return await collect_latest(self.fetcher, ciks, fetch, limit)


class FilingSummaryService:
    """Use case: Ask the model about filings, two at a time"""

    def __init__(self, summarizer: Summarizer, batch_size: int = SUMMARY_BATCH_SIZE):
        self.summarizer = summarizer
        self.batch_size = batch_size

    def _batches(self, filings: list[Filing]):
        for i in range(0, len(filings), self.batch_size):
            yield filings[i:i + self.batch_size]

    async def narrative(self, filings: list[Filing], query: str) -> str:
        """Readable text summary, one section per batch"""
        sections = []
        for batch in self._batches(filings):
            text = await self.summarizer.summarize(
                filings_summary_prompt(batch, query), max_tokens=2000, temperature=0.3
            )
            sections.append(strip_code_fences(text))
        return SUMMARY_SEPARATOR.join(sections)

    async def insights(self, filings: list[Filing], query: str) -> list[dict[str, Any]]:
        """Structured per-filing insights; malformed batches are skipped"""
        insights: list[dict[str, Any]] = []
        for batch in self._batches(filings):
            text = await self.summarizer.summarize(
                filing_insights_prompt(batch, query), max_tokens=1500, temperature=0.2
            )
            parsed = parse_model_json(text, default=[], expect=list)
            insights.extend(item for item in parsed if isinstance(item, dict))
        return insights


class SecQueryService:
    """Use case: Answer a free-text question about SEC filings"""

    def __init__(
        self,
        summarizer: Summarizer,
        resolver: IdentifierResolver,
        filings: FilingRetrievalService,
        filing_summary: FilingSummaryService,
        limit: int = 10
    ):
        self.summarizer = summarizer
        self.resolver = resolver
        self.filings = filings
        self.filing_summary = filing_summary
        self.limit = limit

    async def extract_entities(self, query: str) -> QueryEntities:
        text = await self.summarizer.summarize(sec_entities_prompt(query), max_tokens=150, temperature=0)
        data = parse_model_json(text, default={}, expect=dict)
        return QueryEntities(**entities_from_json(data, default_source="sec"))

    async def execute(self, query: str) -> SecQueryResult:
        entities = await self.extract_entities(query)

        cik = entities.cik
        if not cik and (entities.company_name or entities.ticker):
            cik = await self.resolver.resolve(entities.company_name, entities.ticker)
            entities.cik = cik

        if cik:
            filings = await self.filings.for_cik(cik, self.limit, entities.form)
        elif entities.form:
            filings = await self.filings.latest_by_form(entities.form, self.limit)
        else:
            return SecQueryResult(answer=CIK_NOT_FOUND_ANSWER, filings=[], entities=entities)

        answer = await self.filing_summary.narrative(filings, query)
        return SecQueryResult(answer=answer, filings=filings, entities=entities)


class FinanceQueryService:
    """Use case: Summarize company fundamentals for a free-text question"""

    def __init__(
        self,
        summarizer: Summarizer,
        finance: FinanceDataSource,
        ticker_search: TickerSearch
    ):
        self.summarizer = summarizer
        self.finance = finance
        self.ticker_search = ticker_search

    async def execute(self, query: str) -> FinanceQueryResult:
        text = await self.summarizer.summarize(finance_intent_prompt(query), max_tokens=150, temperature=0)
        entities = QueryEntities(**entities_from_json(
            parse_model_json(text, default={}, expect=dict), default_source="finance"
        ))

        ticker = entities.ticker
        if entities.company_name and not ticker:
            ticker = await _search_symbol(self.ticker_search, entities.company_name)

        finance_data = await _fetch_overview(self.finance, ticker) if ticker else None

        summary = await self.summarizer.summarize(
            finance_summary_prompt(query, finance_data), max_tokens=400, temperature=0.3
        )
        return FinanceQueryResult(
            company_name=entities.company_name or (finance_data or {}).get("Name"),
            ticker=ticker,
            summary=summary or NO_SUMMARY,
            finance_data=finance_data
        )


class FinanceSecQueryService:
    """Use case: Unified fundamentals + SEC filings answer"""

    def __init__(
        self,
        summarizer: Summarizer,
        resolver: IdentifierResolver,
        filings: FilingRetrievalService,
        filing_summary: FilingSummaryService,
        finance: FinanceDataSource,
        ticker_search: TickerSearch,
        limit: int = 10,
        form_slots: int = 50
    ):
        self.summarizer = summarizer
        self.resolver = resolver
        self.filings = filings
        self.filing_summary = filing_summary
        self.finance = finance
        self.ticker_search = ticker_search
        self.limit = limit
        self.form_slots = form_slots

    async def extract_intent(self, query: str) -> QueryEntities:
        text = await self.summarizer.summarize(query_intent_prompt(query), max_tokens=150, temperature=0)
        data = parse_model_json(text, default={}, expect=dict)
        return QueryEntities(**entities_from_json(data, default_source="both"))

    async def _resolve_identifiers(self, entities: QueryEntities) -> tuple[Optional[str], Optional[str]]:
        """Fill in (ticker, cik) from whatever the query named"""
        ticker = entities.ticker
        cik = entities.cik

        if entities.company_name and not ticker:
            cik = cik or await self.resolver.resolve(entities.company_name, None)
            if cik:
                ticker = await self.resolver.ticker_for_cik(cik)
            if not ticker:
                ticker = await _search_symbol(self.ticker_search, entities.company_name)

        if not cik and (ticker or entities.company_name):
            cik = await self.resolver.resolve(entities.company_name, ticker)

        return ticker, cik

    async def _retrieve_filings(self, cik: Optional[str], form: Optional[str]) -> list[Filing]:
        if cik:
            if form:
                filings = await self.filings.for_cik(cik, self.form_slots, form)
                if not filings:
                    filings = await self.filings.latest_by_form(form, self.limit)
                return filings
            return await self.filings.for_cik(cik, self.limit, None)
        if form:
            return await self.filings.latest_by_form(form, self.limit)
        return []

    async def execute(self, query: str) -> FinanceSecQueryResult:
        entities = await self.extract_intent(query)
        source = entities.source
        ticker, cik = await self._resolve_identifiers(entities)
        company_name = entities.company_name

        finance_data = None
        if source in ("finance", "both") and ticker:
            finance_data = await _fetch_overview(self.finance, ticker)
            if not company_name and finance_data:
                company_name = finance_data.get("Name")

        filings: list[Filing] = []
        if source in ("sec", "both"):
            filings = await self._retrieve_filings(cik, entities.form)

        summary = await self.summarizer.summarize(
            combined_summary_prompt(query, finance_data, filings), max_tokens=500, temperature=0.3
        )

        insights: list[dict[str, Any]] = []
        if source in ("sec", "both") and filings:
            insights = await self.filing_summary.insights(filings, query)

        if not company_name and filings:
            company_name = filings[0].company_name or None

        return FinanceSecQueryResult(
            source=source,
            company_name=company_name,
            ticker=ticker,
            cik=cik,
            summary=summary or NO_SUMMARY,
            finance_data=finance_data,
            filings=filings,
            insights=insights
        )


class NewsQueryService:
    """Use case: Summarize recent company news"""

    def __init__(
        self,
        summarizer: Summarizer,
        news: NewsSource,
        lookback_days: int = 30,
        max_articles: int = 10,
        summarize_articles: int = 5,
        today: Callable[[], date] = date.today
    ):
        self.summarizer = summarizer
        self.news = news
        self.lookback_days = lookback_days
        self.max_articles = max_articles
        self.summarize_articles = summarize_articles
        self.today = today

    async def execute(self, query: str) -> NewsQueryResult:
        company = strip_code_fences(
            await self.summarizer.summarize(company_prompt(query), max_tokens=20, temperature=0.3)
        ).strip('"\' ')
        if not company:
            raise NotFound("Could not extract company name or ticker")

        try:
            ticker = await self.news.search_symbol(company)
        except SourceUnavailable as e:
            logger.warning(f"Symbol search failed for {company!r}: {e}")
            ticker = None
        if not ticker:
            raise NotFound(f'Ticker not found for "{company}"')

        end = self.today()
        start = end - timedelta(days=self.lookback_days)
        try:
            articles = await self.news.company_news(ticker, start.isoformat(), end.isoformat())
        except SourceUnavailable as e:
            logger.warning(f"News unavailable for {ticker}: {e}")
            articles = []
        articles = articles[:self.max_articles]

        answer = await self.summarizer.summarize(
            news_summary_prompt(company, articles[:self.summarize_articles]), max_tokens=150, temperature=0.5
        )
        return NewsQueryResult(company=company, ticker=ticker, answer=answer.strip(), articles=articles)


class DocumentQueryService:
    """Use case: Answer a question from the best-matching SharePoint documents"""

    def __init__(
        self,
        summarizer: Summarizer,
        index: DocumentIndex,
        extractor: ContentExtractor,
        ranker: Optional[CandidateRanker] = None,
        candidate_count: int = 15,
        top_n: int = 3
    ):
        self.summarizer = summarizer
        self.index = index
        self.extractor = extractor
        self.ranker = ranker or CandidateRanker()
        self.candidate_count = candidate_count
        self.top_n = top_n

    async def read_text(self, candidate: Candidate, token: str, max_chars: Optional[int] = None) -> str:
        """Download and extract a document; unreadable documents yield ''"""
        try:
            blob, content_type = await self.index.download(candidate.drive_id, candidate.id, token)
        except SourceUnavailable as e:
            logger.warning(f"Could not read content of {candidate.name}: {e}")
            return ""

        kind = self.extractor.kind_of(content_type, candidate.name)
        text = await asyncio.to_thread(self.extractor.extract, blob, kind)
        if max_chars is not None and len(text) > max_chars:
            return text[:max_chars]
        return text

    async def execute(self, query: str, token: str) -> DocumentQueryResult:
        keywords = extract_keywords(query)
        search_string = keywords_to_search_string(keywords, query)
        logger.info(f"Document search: keywords={keywords} search={search_string!r}")

        try:
            candidates = await self.index.search(search_string, token, size=self.candidate_count)
        except SourceUnavailable as e:
            logger.warning(f"Document search failed: {e}")
            candidates = []
        if not candidates:
            raise NotFound("No files found in SharePoint")

        async def preview(candidate: Candidate, max_chars: Optional[int]) -> str:
            return await self.read_text(candidate, token, max_chars)

        ranked = await self.ranker.rank(candidates, keywords, preview)

        top = select_top(ranked, self.top_n)
        contents = await asyncio.gather(*(self.read_text(c, token) for c in top))
        combined = "\n".join(f"\n---\nFile: {c.name}\n{text}" for c, text in zip(top, contents))
        if not any(text.strip() for text in contents):
            raise NotFound("No readable content found in top files")

        answer = await self.summarizer.summarize(
            document_answer_prompt(query, combined), max_tokens=500, temperature=0.2
        )
        return DocumentQueryResult(answer=answer, sources=ranked, keywords=keywords)


class UrlSearchService:
    """Use case: Index caller-supplied pages, then answer from the best matches"""

    def __init__(
        self,
        summarizer: Summarizer,
        pages: PageSource,
        index: SearchIndex,
        top: int = 3,
        max_content_chars: int = 32_000
    ):
        self.summarizer = summarizer
        self.pages = pages
        self.index = index
        self.top = top
        self.max_content_chars = max_content_chars

    @staticmethod
    def document_id(url: str) -> str:
        # Index keys allow letters, digits, "_", "-" and "="
        return base64.urlsafe_b64encode(url.encode("utf-8")).decode("ascii")

    async def ensure_indexed(self, urls: list[str]) -> int:
        """Fetch and upload each page; returns how many were uploaded"""
        uploaded = 0
        for url in urls:
            try:
                content = await self.pages.fetch_page(url)
            except SourceUnavailable as e:
                logger.warning(f"Skipping {url}: {e}")
                continue

            document = {
                "id": self.document_id(url),
                "title": url,
                "content": content[:self.max_content_chars],
            }
            try:
                await self.index.upload([document])
                uploaded += 1
            except SourceUnavailable as e:
                # Usually a page that is already indexed
                logger.warning(f"Upload failed for {url}: {e}")
        return uploaded

    async def execute(self, query: str, urls: list[str]) -> UrlSearchResult:
        uploaded = await self.ensure_indexed(urls)
        logger.info(f"Indexed {uploaded}/{len(urls)} pages for {query!r}")

        documents = await self.index.search(query, top=self.top)
        answer = await self.summarizer.summarize(
            url_search_prompt(query, documents), max_tokens=300, temperature=0.2
        )
        return UrlSearchResult(answer=answer.strip(), context=documents)


async def _search_symbol(ticker_search: TickerSearch, company_name: str) -> Optional[str]:
    try:
        return await ticker_search.search_symbol(company_name)
    except SourceUnavailable as e:
        logger.warning(f"Ticker search failed for {company_name!r}: {e}")
        return None


async def _fetch_overview(finance: FinanceDataSource, ticker: str) -> Optional[dict[str, Any]]:
    try:
        return await finance.fetch_overview(ticker)
    except SourceUnavailable as e:
        logger.warning(f"Finance data unavailable for {ticker}: {e}")
        return None
