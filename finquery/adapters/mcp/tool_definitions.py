"""
MCP Tool Definitions

Single source of truth for tool schemas and descriptions.
Used by the HTTP/SSE server and the CLI.
"""

# Tool schemas for MCP
TOOL_SCHEMAS = {
    "resolve_company": {
        "name": "resolve_company",
        "description": """Resolve a company name or ticker to its SEC CIK. Ticker matches win over name matches.

resolve_company(ticker="AAPL") → {cik: "0000320193", ticker: "AAPL"}
resolve_company(name="tesla") → first company whose name contains "tesla"
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "Company name or part of it (e.g. Apple, tesla)"
                },
                "ticker": {
                    "type": "string",
                    "description": "Stock ticker (e.g. AAPL, TSLA)"
                }
            }
        }
    },
    "list_filings": {
        "name": "list_filings",
        "description": """List SEC filings, newest first. With a company: its recent filings. With only a form: latest filings of that form across all companies (slow, rate-limited scan).

list_filings(ticker="TSLA", form_type="10-K")
list_filings(form_type="8-K", limit=5)
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "form_type": {
                    "type": "string",
                    "description": "Form filter, substring match (e.g. 10-K, 8-K, 4)"
                },
                "name": {
                    "type": "string",
                    "description": "Company name"
                },
                "ticker": {
                    "type": "string",
                    "description": "Stock ticker"
                },
                "cik": {
                    "type": "string",
                    "description": "SEC Central Index Key"
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum filings to return",
                    "default": 10
                }
            }
        }
    },
    "sec_query": {
        "name": "sec_query",
        "description": """Answer a natural-language question about SEC filings. Identifies the company/form, retrieves filings and summarizes them.

sec_query("latest 10-K for Apple")
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Free-text question"
                }
            },
            "required": ["query"]
        }
    },
    "finance_query": {
        "name": "finance_query",
        "description": """Answer a question with company fundamentals and SEC filings (source chosen from the question: finance, sec or both).

finance_query("How is Microsoft valued and what did its last 10-Q say?")
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Free-text question"
                }
            },
            "required": ["query"]
        }
    },
    "company_news": {
        "name": "company_news",
        "description": """Summarize the last 30 days of news for the company named in the question.

company_news("What's the latest news on Nvidia?")
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Free-text question naming a company or ticker"
                }
            },
            "required": ["query"]
        }
    }
}
