"""
Domain Models - Pure business entities

No external dependencies. These represent the core business concepts.
"""
from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import SourceUnavailable


def format_cik(value: Any) -> str:
    """Normalize a numeric CIK to its 10-digit zero-padded form"""
    return str(int(str(value).strip())).zfill(10)


@dataclass(frozen=True)
class ReferenceRow:
    """One listed entity from the SEC company/ticker table"""
    cik: str  # 10-digit zero-padded
    name: str
    ticker: str
    exchange: Optional[str] = None


@dataclass(frozen=True)
class ReferenceTable:
    """Full-universe identifier table, in source order"""
    rows: tuple[ReferenceRow, ...]

    def __len__(self) -> int:
        return len(self.rows)

    @classmethod
    def from_payload(cls, payload: Any) -> "ReferenceTable":
        """
        Build a table from the SEC `{fields, data}` payload.

        Columns are located by name. Rows with a non-numeric CIK are skipped.
        """
        if not isinstance(payload, dict):
            raise SourceUnavailable("Reference table payload is not an object")

        fields = payload.get("fields")
        data = payload.get("data")
        if not isinstance(fields, list) or not isinstance(data, list):
            raise SourceUnavailable("Reference table payload is missing fields/data")

        try:
            cik_index = fields.index("cik")
            name_index = fields.index("name")
            ticker_index = fields.index("ticker")
        except ValueError as e:
            raise SourceUnavailable(f"Reference table is missing a column: {e}") from None
        exchange_index = fields.index("exchange") if "exchange" in fields else None

        rows = []
        for row in data:
            try:
                cik = format_cik(row[cik_index])
            except (TypeError, ValueError, IndexError):
                continue
            rows.append(ReferenceRow(
                cik=cik,
                name=str(row[name_index] or ""),
                ticker=str(row[ticker_index] or ""),
                exchange=row[exchange_index] if exchange_index is not None else None
            ))
        return cls(rows=tuple(rows))


@dataclass(frozen=True)
class Filing:
    """A SEC submission"""
    cik: str
    company_name: str
    ticker: str  # empty when the CIK has no known ticker
    accession_number: str
    filing_date: str  # YYYY-MM-DD format
    form: str
    primary_document: str

    @property
    def key(self) -> tuple[str, str]:
        """Identity used for deduplication"""
        return (self.cik, self.accession_number)

    @property
    def sec_url(self) -> str:
        cik_num = self.cik.lstrip("0") or "0"
        acc_no_dashes = self.accession_number.replace("-", "")
        return f"https://www.sec.gov/Archives/edgar/data/{cik_num}/{acc_no_dashes}/{self.primary_document}"

    def to_dict(self) -> dict[str, str]:
        return {
            "cik": self.cik,
            "companyName": self.company_name,
            "ticker": self.ticker,
            "accessionNumber": self.accession_number,
            "filingDate": self.filing_date,
            "form": self.form,
            "primaryDocument": self.primary_document,
        }


@dataclass
class Candidate:
    """A document under consideration for ranking"""
    id: str
    name: str
    drive_id: Optional[str] = None
    web_url: Optional[str] = None
    name_matches: int = 0
    content_matches: int = 0
    score: int = 0

    def to_source(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "url": self.web_url,
            "score": self.score,
            "nameMatches": self.name_matches,
            "contentMatches": self.content_matches,
        }


@dataclass
class QueryEntities:
    """Identifiers the model extracted from a free-text query"""
    company_name: Optional[str] = None
    ticker: Optional[str] = None
    cik: Optional[str] = None
    form: Optional[str] = None
    source: str = "both"  # "finance", "sec" or "both"


@dataclass(frozen=True)
class NewsArticle:
    """A company news item"""
    headline: str
    summary: str
    source: Optional[str] = None
    url: Optional[str] = None
    datetime: Optional[int] = None  # unix seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "headline": self.headline,
            "source": self.source,
            "url": self.url,
            "datetime": self.datetime,
        }


@dataclass
class SecQueryResult:
    """Answer and grounding filings for a SEC question"""
    answer: str
    filings: list[Filing] = field(default_factory=list)
    entities: Optional[QueryEntities] = None


@dataclass
class FinanceQueryResult:
    """Fundamentals overview and summary for a finance question"""
    company_name: Optional[str]
    ticker: Optional[str]
    summary: str
    finance_data: Optional[dict[str, Any]] = None


@dataclass
class FinanceSecQueryResult:
    """Combined fundamentals + filings answer"""
    source: str
    company_name: Optional[str]
    ticker: Optional[str]
    cik: Optional[str]
    summary: str
    finance_data: Optional[dict[str, Any]] = None
    filings: list[Filing] = field(default_factory=list)
    insights: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class NewsQueryResult:
    """News summary for a company"""
    company: str
    ticker: str
    answer: str
    articles: list[NewsArticle] = field(default_factory=list)


@dataclass
class DocumentQueryResult:
    """Answer grounded in the top-ranked documents"""
    answer: str
    sources: list[Candidate] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)


@dataclass
class UrlSearchResult:
    """Answer grounded in the indexed pages that best match a question"""
    answer: str
    context: list[str] = field(default_factory=list)
