"""
Prompts - Language model prompt templates and output parsing

The model is an opaque capability; this module only builds the text it
receives and tolerantly parses what comes back.
"""
import json
import logging
import re
from typing import Any, Optional

from .domain import Filing, NewsArticle
from .errors import MalformedModelOutput

logger = logging.getLogger(__name__)

_FENCE_START = re.compile(r"^```(?:json|text)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"```\s*$")
_TRAILING_COMMA = re.compile(r",\s*([\]}])")


def strip_code_fences(text: Optional[str]) -> str:
    """Remove a leading ```json/```text fence and a trailing ``` fence"""
    text = (text or "").strip()
    text = _FENCE_START.sub("", text)
    text = _FENCE_END.sub("", text)
    return text.strip()


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    # Second chance: trailing commas are the most common model slip
    try:
        return json.loads(_TRAILING_COMMA.sub(r"\1", text))
    except json.JSONDecodeError as e:
        raise MalformedModelOutput(str(e)) from None


def parse_model_json(text: Optional[str], default: Any, expect: type = object) -> Any:
    """
    Parse structured model output, falling back to `default`.

    Never raises: a malformed answer is logged and replaced by the default.
    """
    try:
        value = _loads(strip_code_fences(text))
        if not isinstance(value, expect):
            raise MalformedModelOutput(f"expected {expect.__name__}, got {type(value).__name__}")
        return value
    except MalformedModelOutput as e:
        logger.warning(f"Malformed model output, using default: {e}")
        return default


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value if value and value.lower() not in ("null", "none") else None


def entities_from_json(data: dict[str, Any], default_source: str = "both") -> dict[str, Optional[str]]:
    """Normalize an extracted-entities object"""
    source = _clean(data.get("source")) or default_source
    if source not in ("finance", "sec", "both"):
        source = default_source
    return {
        "company_name": _clean(data.get("companyName")),
        "ticker": _clean(data.get("ticker")),
        "cik": _clean(data.get("cik")),
        "form": _clean(data.get("form")),
        "source": source,
    }


def filing_line(f: Filing) -> str:
    return (
        f"Company: {f.company_name}, Ticker: {f.ticker}, Form: {f.form}, "
        f"Date: {f.filing_date}, Accession: {f.accession_number}"
    )


def sec_entities_prompt(query: str) -> str:
    return f"""
You are an AI assistant that extracts structured data from natural language queries.
Given a user's question about SEC filings, extract the following fields:
1. companyName
2. ticker
3. cik
4. form (e.g., 10-K, 8-K, 4, etc.)

Return a JSON object with keys: companyName, ticker, cik, form.
If a field is not mentioned, return null for that field.

Query: "{query}"
JSON:
"""


def finance_intent_prompt(query: str) -> str:
    return f"""
You are a classification AI that determines what type of financial data a user is requesting.

Decide only whether the query is about "finance" (company overview, stock, ratios, earnings, or financial metrics).

Also extract companyName or ticker if mentioned.

Return JSON ONLY:
{{
  "source": "finance",
  "companyName": "string or null",
  "ticker": "string or null"
}}

Query: "{query}"
JSON:
"""


def query_intent_prompt(query: str) -> str:
    return f"""
You are a classification AI that determines what type of financial data a user is requesting.

Decide whether to use:
- "finance" (for company overview, stock, ratios, earnings, financial metrics)
- "sec" (for filings, forms, disclosures, official reports like 10-K, 10-Q)
- "both" (if the query requests both reports/filings and finance details, or the intent is ambiguous)

Also extract companyName, ticker, or form if mentioned.

Return JSON ONLY:
{{
  "source": "finance" | "sec" | "both",
  "companyName": "string or null",
  "ticker": "string or null",
  "form": "string or null"
}}

Be strict:
- If query includes words like "report", "filing", "10-K", "10-Q", "SEC", "statement", "annual report" -> prefer "sec".
- If query includes "finance", "details", "overview", "earnings", "stock", "share price" -> prefer "finance".
- If both appear or query is ambiguous -> return "both".

Query: "{query}"
JSON:
"""


def filings_summary_prompt(filings: list[Filing], query: str) -> str:
    filings_text = "\n".join(filing_line(f) for f in filings)
    return f"""
You are a financial assistant AI.
Use the following SEC filings data to provide a well-formatted summary for the user's question.

SEC Filings:
{filings_text}

User Question: {query}

Format the response as structured readable text with headings and bullet/numbered lists where suitable:
Company, Ticker, Form, Filing Date, Summary, Financial Summary, Key Initiatives.

If multiple filings exist, separate each company's section clearly using a line like:
---
Keep text concise and readable. Return plain text only (no JSON, no code block markers).
"""


def filing_insights_prompt(filings: list[Filing], query: str) -> str:
    filings_text = "\n".join(filing_line(f) for f in filings)
    return f"""
You are a financial insights AI.
Analyze these SEC filings and return structured JSON.

SEC Filings:
{filings_text}

User Query: {query}

Return JSON only (no markdown):
[
  {{
    "companyName": "string",
    "ticker": "string",
    "form": "string",
    "filingDate": "YYYY-MM-DD",
    "accessionNumber": "string",
    "summary": "short insight (max 100 words)",
    "financials": {{ "revenue": "string", "netIncome": "string" }},
    "keyInitiatives": ["string"]
  }}
]
"""


def finance_summary_prompt(query: str, finance_data: Optional[dict[str, Any]]) -> str:
    context = (
        f"Finance Overview:\n{json.dumps(finance_data, indent=2)}"
        if finance_data else "No finance data found."
    )
    return f"""
You are a financial analyst AI.
Analyze the following financial context and answer the user query clearly.

User Query: {query}

Context:
{context}

Provide a concise and clear summary including:
- Key financial metrics (Revenue, PE Ratio, Market Cap, etc.)
- Company performance insights
- Investment outlook or potential risks
"""


def combined_summary_prompt(
    query: str,
    finance_data: Optional[dict[str, Any]],
    filings: list[Filing]
) -> str:
    parts = []
    if finance_data:
        parts.append(f"Finance Overview:\n{json.dumps(finance_data, indent=2)}")
    if filings:
        parts.append(f"SEC Filings:\n{json.dumps([f.to_dict() for f in filings[:5]], indent=2)}")
    context = "\n\n".join(parts) or "No additional context."
    return f"""
You are a financial analyst AI.
Analyze the following context and answer the user query clearly.

User Query: {query}

Context:
{context}

Provide a short structured summary including:
- Key financial metrics
- Important SEC disclosures
- Investment insights or risks
- Relevant company trends or events
"""


def company_prompt(query: str) -> str:
    return f"""
Extract the company name or ticker symbol from this user query:
"{query}"
Respond ONLY with the company name or ticker (e.g., "Apple" or "AAPL").
"""


def news_summary_prompt(company: str, articles: list[NewsArticle]) -> str:
    news_text = "\n".join(f"- {a.headline}: {a.summary}" for a in articles)
    return f"""
Summarize the top finance and company-related news for {company}.
Use the following data:
{news_text}
Provide a short, clear summary (max 100 words).
"""


def document_answer_prompt(query: str, combined_text: str) -> str:
    return f"""
You are an expert assistant that answers the user's question based ONLY on the SharePoint documents below.
Summarize and answer accurately. If information is not found, reply: "No relevant information found in the documents."

Context:
{combined_text}

Question: {query}
Answer:
"""


def url_search_prompt(query: str, documents: list[str]) -> str:
    context = "\n---\n".join(documents)
    return f"""
You are an AI assistant. Use ONLY the following context to answer clearly:

{context}

Question: {query}
Answer:
"""
