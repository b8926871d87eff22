"""
Terminal formatters for tool results

Format handler results as compact, terminal-style text.
Used by both CLI and MCP adapters for consistent presentation.
"""

from typing import Any

RULE = "─" * 70


def _error(result: dict[str, Any]) -> str:
    return f"ERROR: {result.get('error', 'Unknown error')}"


def format_resolve_company(result: dict[str, Any]) -> str:
    """Format resolve_company result.

    Example output:
        AAPL | CIK 0000320193

        Try: list_filings(ticker="AAPL", form_type="10-K")
    """
    if not result.get("success"):
        return _error(result)

    ticker = result.get("ticker") or "N/A"
    lines = [f"{ticker} | CIK {result['cik']}", ""]
    lines.append(f'Try: list_filings(cik="{result["cik"]}", form_type="10-K")')
    return "\n".join(lines)


def format_list_filings(result: dict[str, Any]) -> str:
    """Format list_filings result.

    Example output:
        10-K FILINGS (3)
        ──────────────────────────────────────────────────────────────────────
        TICKER      COMPANY                         FORM      FILED
        ──────────────────────────────────────────────────────────────────────
        AAPL        Apple Inc.                      10-K      2024-11-01
    """
    if not result.get("success"):
        return _error(result)

    filings = result["filings"]
    form_type = (result.get("form_type") or "ALL").upper()

    lines = [f"{form_type} FILINGS ({result['count']})", RULE]
    if not filings:
        lines.append("No filings found")
        return "\n".join(lines)

    lines.append(f"{'TICKER':<10}  {'COMPANY':<30}  {'FORM':<8}  FILED")
    lines.append(RULE)
    for f in filings:
        name = f.get("companyName") or "N/A"
        company = (name[:27] + "...") if len(name) > 30 else name
        lines.append(f"{(f.get('ticker') or '-')[:10]:<10}  {company:<30}  {f['form'][:8]:<8}  {f['filingDate']}")

    lines.append("")
    lines.append(f"Latest: {filings[0]['secUrl']}" if filings[0].get("secUrl") else "")
    return "\n".join(lines).rstrip()


def format_sec_query(result: dict[str, Any]) -> str:
    """Format sec_query result: answer, then the filings it is grounded on."""
    if not result.get("success"):
        return _error(result)

    lines = [result.get("answer") or "(no answer)", ""]
    context = result.get("grounded_context") or []
    if context:
        lines.append(f"SOURCES ({len(context)})")
        lines.append(RULE)
        for f in context:
            lines.append(f"{f['filingDate']}  {f['form']:<8}  {f.get('ticker') or '-':<8}  {f['accessionNumber']}")
    return "\n".join(lines).rstrip()


def format_finance_query(result: dict[str, Any]) -> str:
    """Format finance_sec_query / finance_query result."""
    if not result.get("success"):
        return _error(result)

    header = " | ".join(str(v) for v in (
        result.get("ticker"), result.get("companyName"),
        f"CIK {result['cik']}" if result.get("cik") else None
    ) if v)
    lines = [header or "UNRESOLVED COMPANY", RULE, result.get("aiSummary") or ""]

    filings = result.get("secFilings") or []
    if filings:
        lines.append("")
        lines.append(f"FILINGS ({len(filings)})")
        for f in filings[:10]:
            lines.append(f"  {f['filingDate']}  {f['form']}")
    return "\n".join(lines)


def format_company_news(result: dict[str, Any]) -> str:
    """Format company_news result."""
    if not result.get("success"):
        return _error(result)

    lines = [f"{result['ticker']} NEWS ({result['company']})", RULE, result.get("answer") or "", ""]
    for article in result.get("topNews") or []:
        lines.append(f"- {article['headline']} [{article.get('source') or 'n/a'}]")
    return "\n".join(lines).rstrip()
