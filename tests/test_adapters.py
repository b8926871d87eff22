"""
Tests for HTTP adapters and document extraction

HTTP adapters run against httpx.MockTransport; no network access.
"""
import asyncio
import io
from types import SimpleNamespace

import httpx
import pandas as pd
import pytest
from azure.core.exceptions import AzureError
from docx import Document

from finquery.adapters.alpha_vantage import AlphaVantageAdapter, YahooSymbolSearch
from finquery.adapters.azure_search import AzureSearchIndex
from finquery.adapters.extract import DocumentTextExtractor
from finquery.adapters.finnhub import FinnhubAdapter
from finquery.adapters.graph import GraphDocumentIndex
from finquery.adapters.http import get_json
from finquery.adapters.sec import COMPANY_TICKERS_URL, SecEdgarAdapter
from finquery.adapters.web import WebPageFetcher
from finquery.core.errors import SourceUnavailable
from finquery.core.ports import ContentExtractor


def run_with_client(handler, call):
    """Run `call(client)` with a client backed by `handler`"""
    async def main():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await call(client)
    return asyncio.run(main())


class TestGetJson:
    """Test error translation."""

    def test_rate_limited(self):
        """Test a 429 becomes SourceUnavailable."""
        def handler(request):
            return httpx.Response(429)

        with pytest.raises(SourceUnavailable, match="429"):
            run_with_client(handler, lambda c: get_json(c, "https://example.com/x"))

    def test_server_error(self):
        """Test other HTTP errors become SourceUnavailable."""
        def handler(request):
            return httpx.Response(503)

        with pytest.raises(SourceUnavailable, match="HTTP 503"):
            run_with_client(handler, lambda c: get_json(c, "https://example.com/x"))

    def test_invalid_json(self):
        """Test an undecodable body becomes SourceUnavailable."""
        def handler(request):
            return httpx.Response(200, text="<html>")

        with pytest.raises(SourceUnavailable, match="Invalid JSON"):
            run_with_client(handler, lambda c: get_json(c, "https://example.com/x"))

    def test_timeout(self):
        """Test a timeout becomes SourceUnavailable."""
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(SourceUnavailable, match="Timeout"):
            run_with_client(handler, lambda c: get_json(c, "https://example.com/x"))


class TestSecEdgarAdapter:
    """Test the EDGAR endpoints."""

    def test_reference_table(self):
        """Test the table payload is returned and the User-Agent sent."""
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["ua"] = request.headers.get("user-agent")
            return httpx.Response(200, json={"fields": ["cik", "name", "ticker"], "data": []})

        payload = run_with_client(
            handler,
            lambda c: SecEdgarAdapter(user_agent="Research test@example.com", client=c).fetch_reference_table()
        )
        assert payload["fields"] == ["cik", "name", "ticker"]
        assert seen["url"] == COMPANY_TICKERS_URL
        assert seen["ua"] == "Research test@example.com"

    def test_reference_table_bad_shape(self):
        """Test a payload without fields/data is rejected."""
        def handler(request):
            return httpx.Response(200, json={"0": {"cik_str": 320193}})

        with pytest.raises(SourceUnavailable):
            run_with_client(handler, lambda c: SecEdgarAdapter(client=c).fetch_reference_table())

    def test_entity_record_pads_cik(self):
        """Test the submissions URL uses the padded CIK."""
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            return httpx.Response(200, json={"name": "Apple Inc.", "filings": {"recent": {}}})

        record = run_with_client(handler, lambda c: SecEdgarAdapter(client=c).fetch_entity_record("320193"))
        assert record["name"] == "Apple Inc."
        assert seen["path"] == "/submissions/CIK0000320193.json"

    def test_entity_record_not_found(self):
        """Test a 404 becomes SourceUnavailable."""
        def handler(request):
            return httpx.Response(404)

        with pytest.raises(SourceUnavailable):
            run_with_client(handler, lambda c: SecEdgarAdapter(client=c).fetch_entity_record("1"))


class TestFundamentalsAdapters:
    """Test Alpha Vantage and Yahoo symbol search."""

    def test_overview(self):
        """Test the overview is returned for a known symbol."""
        def handler(request):
            assert request.url.params["function"] == "OVERVIEW"
            assert request.url.params["symbol"] == "AAPL"
            return httpx.Response(200, json={"Symbol": "AAPL", "Name": "Apple Inc"})

        data = run_with_client(handler, lambda c: AlphaVantageAdapter("key", client=c).fetch_overview("AAPL"))
        assert data["Name"] == "Apple Inc"

    def test_overview_unknown_symbol(self):
        """Test a payload without Symbol means no overview."""
        def handler(request):
            return httpx.Response(200, json={"Note": "rate limit"})

        data = run_with_client(handler, lambda c: AlphaVantageAdapter("key", client=c).fetch_overview("ZZZZ"))
        assert data is None

    def test_yahoo_first_quote(self):
        """Test the first quote symbol is used."""
        def handler(request):
            return httpx.Response(200, json={"quotes": [{"symbol": "TSLA"}, {"symbol": "TL0.DE"}]})

        symbol = run_with_client(handler, lambda c: YahooSymbolSearch(client=c).search_symbol("Tesla"))
        assert symbol == "TSLA"

    def test_yahoo_no_quotes(self):
        """Test an empty search returns None."""
        def handler(request):
            return httpx.Response(200, json={"quotes": []})

        assert run_with_client(handler, lambda c: YahooSymbolSearch(client=c).search_symbol("zz")) is None

    def test_yahoo_skips_malformed_quotes(self):
        """Test non-object quotes are ignored."""
        def handler(request):
            return httpx.Response(200, json={"quotes": ["TSLA", None, {"symbol": "TSLA"}]})

        symbol = run_with_client(handler, lambda c: YahooSymbolSearch(client=c).search_symbol("Tesla"))
        assert symbol == "TSLA"


class TestFinnhubAdapter:
    """Test symbol search and company news."""

    def test_prefers_us_listing(self):
        """Test a US or common-stock result beats the first result."""
        def handler(request):
            return httpx.Response(200, json={"result": [
                {"symbol": "APC.DE", "exchange": "XETRA", "type": "EQS"},
                {"symbol": "AAPL", "type": "Common Stock"},
            ]})

        symbol = run_with_client(handler, lambda c: FinnhubAdapter("key", client=c).search_symbol("Apple"))
        assert symbol == "AAPL"

    def test_falls_back_to_first(self):
        """Test the first result is used without a preferred listing."""
        def handler(request):
            return httpx.Response(200, json={"result": [{"symbol": "APC.DE", "type": "EQS"}]})

        symbol = run_with_client(handler, lambda c: FinnhubAdapter("key", client=c).search_symbol("Apple"))
        assert symbol == "APC.DE"

    def test_skips_malformed_results(self):
        """Test non-object results are ignored instead of failing the search."""
        def handler(request):
            return httpx.Response(200, json={"result": ["AAPL", 7, None, {"symbol": "APC.DE", "type": "EQS"}]})

        symbol = run_with_client(handler, lambda c: FinnhubAdapter("key", client=c).search_symbol("Apple"))
        assert symbol == "APC.DE"

    def test_only_malformed_results(self):
        """Test a result list with no objects finds nothing."""
        def handler(request):
            return httpx.Response(200, json={"result": ["AAPL", []]})

        assert run_with_client(handler, lambda c: FinnhubAdapter("key", client=c).search_symbol("Apple")) is None

    def test_company_news(self):
        """Test news items become NewsArticles and the window is sent."""
        def handler(request):
            assert request.url.params["from"] == "2024-03-01"
            assert request.url.params["to"] == "2024-03-31"
            return httpx.Response(200, json=[
                {"headline": "Apple ships", "summary": "Details", "source": "Reuters", "url": "u", "datetime": 1}
            ])

        news = run_with_client(
            handler,
            lambda c: FinnhubAdapter("key", client=c).company_news("AAPL", "2024-03-01", "2024-03-31")
        )
        assert news[0].headline == "Apple ships"
        assert news[0].to_dict()["source"] == "Reuters"

    def test_company_news_error_payload(self):
        """Test an error object instead of a list is unavailable."""
        def handler(request):
            return httpx.Response(200, json={"error": "Invalid API key"})

        with pytest.raises(SourceUnavailable):
            run_with_client(handler, lambda c: FinnhubAdapter("bad", client=c).company_news("AAPL", "a", "b"))


class TestGraphDocumentIndex:
    """Test SharePoint search and download."""

    def test_search_parses_hits(self):
        """Test driveItem hits become candidates and the token is forwarded."""
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("authorization")
            seen["path"] = request.url.path
            return httpx.Response(200, json={"value": [{"hitsContainers": [{"hits": [
                {"resource": {
                    "id": "item1",
                    "name": "budget.xlsx",
                    "webUrl": "https://sp/budget.xlsx",
                    "parentReference": {"driveId": "drive1"}
                }},
                {"resource": {"name": "no id"}},
            ]}]}]})

        found = run_with_client(
            handler, lambda c: GraphDocumentIndex(client=c).search("budget", "tok", size=15)
        )
        assert seen["auth"] == "Bearer tok"
        assert seen["path"] == "/v1.0/search/query"
        assert len(found) == 1
        assert (found[0].id, found[0].name, found[0].drive_id) == ("item1", "budget.xlsx", "drive1")

    def test_search_no_hits(self):
        """Test an empty response yields no candidates."""
        def handler(request):
            return httpx.Response(200, json={"value": [{"hitsContainers": [{"total": 0}]}]})

        assert run_with_client(handler, lambda c: GraphDocumentIndex(client=c).search("x", "tok")) == []

    def test_search_skips_malformed_hits(self):
        """Test non-object hits and resources are skipped."""
        def handler(request):
            return httpx.Response(200, json={"value": [{"hitsContainers": [{"hits": [
                "item0",
                None,
                {"resource": "item1"},
                {"resource": {"id": "item2", "name": "plan.docx", "parentReference": "drive"}},
            ]}]}]})

        found = run_with_client(handler, lambda c: GraphDocumentIndex(client=c).search("plan", "tok"))
        assert [(c.id, c.drive_id) for c in found] == [("item2", None)]

    def test_search_unauthorized(self):
        """Test a rejected token is unavailable."""
        def handler(request):
            return httpx.Response(401)

        with pytest.raises(SourceUnavailable, match="401"):
            run_with_client(handler, lambda c: GraphDocumentIndex(client=c).search("x", "tok"))

    def test_download(self):
        """Test download returns bytes and a lower-cased content type."""
        def handler(request):
            assert request.url.path == "/v1.0/drives/drive1/items/item1/content"
            return httpx.Response(200, content=b"hello", headers={"Content-Type": "Text/Plain"})

        blob, content_type = run_with_client(
            handler, lambda c: GraphDocumentIndex(client=c).download("drive1", "item1", "tok")
        )
        assert blob == b"hello"
        assert content_type == "text/plain"


class TestDocumentTextExtractor:
    """Test document text extraction."""

    def test_kind_of(self):
        """Test kinds come from the content type, then the file suffix."""
        docx_type = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
        assert ContentExtractor.kind_of(docx_type) == "docx"
        assert ContentExtractor.kind_of("application/pdf") == "pdf"
        assert ContentExtractor.kind_of("application/octet-stream", "q3.xlsx") == "xlsx"
        assert ContentExtractor.kind_of("text/csv") == "text"
        assert ContentExtractor.kind_of("image/png") == "image/png"
        assert ContentExtractor.kind_of(None) == "unknown"

    def test_text(self):
        """Test plain text is decoded as UTF-8."""
        assert DocumentTextExtractor().extract("café".encode("utf-8"), "text") == "café"

    def test_unknown_kind(self):
        """Test unsupported kinds yield an empty string."""
        assert DocumentTextExtractor().extract(b"\x89PNG", "image/png") == ""

    def test_corrupt_document(self):
        """Test a corrupt document yields an empty string."""
        assert DocumentTextExtractor().extract(b"not a pdf", "pdf") == ""

    def test_docx(self):
        """Test Word paragraphs are joined by newlines."""
        document = Document()
        document.add_paragraph("Budget overview")
        document.add_paragraph("Marketing: 2M")
        buffer = io.BytesIO()
        document.save(buffer)

        text = DocumentTextExtractor().extract(buffer.getvalue(), "docx")
        assert "Budget overview\nMarketing: 2M" in text

    def test_xlsx(self):
        """Test every sheet is rendered as CSV under its name."""
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            pd.DataFrame([["Region", "Budget"], ["EMEA", 100]]).to_excel(
                writer, sheet_name="Q3", index=False, header=False
            )
        text = DocumentTextExtractor().extract(buffer.getvalue(), "xlsx")
        assert text.startswith("Sheet: Q3\n")
        assert "EMEA,100" in text


class TestWebPageFetcher:
    """Test page fetches for URL search."""

    def test_html_page(self):
        """Test an HTML page is returned as text."""
        def handler(request):
            return httpx.Response(200, text="<h1>Results</h1>", headers={"Content-Type": "text/html"})

        page = run_with_client(handler, lambda c: WebPageFetcher(client=c).fetch_page("https://example.com/ir"))
        assert page == "<h1>Results</h1>"

    def test_json_page(self):
        """Test a JSON body is serialized back to a string."""
        def handler(request):
            return httpx.Response(200, json={"revenue": 10})

        page = run_with_client(handler, lambda c: WebPageFetcher(client=c).fetch_page("https://example.com/api"))
        assert page == '{"revenue": 10}'

    def test_missing_page(self):
        """Test a 404 is unavailable."""
        def handler(request):
            return httpx.Response(404)

        with pytest.raises(SourceUnavailable, match="404"):
            run_with_client(handler, lambda c: WebPageFetcher(client=c).fetch_page("https://example.com/gone"))


class FakeSearchResults:
    def __init__(self, documents):
        self.documents = documents

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for document in self.documents:
            yield document


class FakeSearchClient:
    """Records calls the way the async SearchClient receives them"""

    def __init__(self, documents=(), succeeded=True, error=None):
        self.documents = list(documents)
        self.succeeded = succeeded
        self.error = error
        self.uploaded = []
        self.searches = []
        self.closed = False

    async def upload_documents(self, documents):
        if self.error:
            raise self.error
        self.uploaded.extend(documents)
        return [SimpleNamespace(key=d["id"], succeeded=self.succeeded) for d in documents]

    async def search(self, search_text, top):
        if self.error:
            raise self.error
        self.searches.append((search_text, top))
        return FakeSearchResults(self.documents[:top])

    async def close(self):
        self.closed = True


class TestAzureSearchIndex:
    """Test the Azure Cognitive Search adapter."""

    def test_upload(self):
        """Test documents are uploaded as given."""
        client = FakeSearchClient()
        index = AzureSearchIndex("https://search", "pages", "key", client=client)
        document = {"id": "aHR0cHM6Ly9h", "title": "https://a", "content": "text"}

        asyncio.run(index.upload([document]))
        assert client.uploaded == [document]

    def test_rejected_upload(self):
        """Test a document the index rejects is unavailable."""
        index = AzureSearchIndex("https://search", "pages", "key", client=FakeSearchClient(succeeded=False))

        with pytest.raises(SourceUnavailable, match="rejected"):
            asyncio.run(index.upload([{"id": "a", "title": "a", "content": ""}]))

    def test_service_error(self):
        """Test SDK errors are unavailable."""
        index = AzureSearchIndex("https://search", "pages", "key", client=FakeSearchClient(error=AzureError("down")))

        with pytest.raises(SourceUnavailable):
            asyncio.run(index.upload([{"id": "a", "title": "a", "content": ""}]))
        with pytest.raises(SourceUnavailable):
            asyncio.run(index.search("revenue"))

    def test_search_returns_content(self):
        """Test the top hits' content is returned in rank order."""
        client = FakeSearchClient([{"content": "first"}, {"content": ""}, {"content": "third"}, {"content": "fourth"}])
        index = AzureSearchIndex("https://search", "pages", "key", client=client)

        assert asyncio.run(index.search("revenue", top=3)) == ["first", "third"]
        assert client.searches == [("revenue", 3)]

    def test_unconfigured(self):
        """Test a missing endpoint is unavailable rather than a crash."""
        with pytest.raises(SourceUnavailable, match="not configured"):
            asyncio.run(AzureSearchIndex(None, None, None).search("revenue"))

    def test_aclose(self):
        """Test the client is closed, and an unbuilt client is left alone."""
        client = FakeSearchClient()
        asyncio.run(AzureSearchIndex("https://search", "pages", "key", client=client).aclose())
        assert client.closed
        asyncio.run(AzureSearchIndex(None, None, None).aclose())
