#!/usr/bin/env python3
"""
CLI for finquery - run tools without a server

Usage:
  finquery list-tools                       # Show MCP tool definitions
  finquery resolve --ticker AAPL            # Ticker -> CIK
  finquery resolve --name "tesla"           # Company name -> CIK
  finquery filings --ticker TSLA --form 10-K
  finquery filings --form 8-K --limit 5     # Latest 8-Ks across all companies
  finquery ask "latest 10-K for Apple"      # SEC question
  finquery finance "How is MSFT valued?"    # Fundamentals + filings question
  finquery news "Nvidia news"               # Company news summary

Fast iteration: Uses hexagonal core directly (no server layer)
"""

import argparse
import asyncio
import json
import sys
import traceback
from typing import Any, Awaitable, Callable

from .adapters.mcp import TOOL_SCHEMAS, MCPHandlers
from .config import load_settings
from .container import Container
from .formatters import (
    format_company_news,
    format_finance_query,
    format_list_filings,
    format_resolve_company,
    format_sec_query,
)


async def list_tools_command() -> int:
    """Show MCP tool definitions"""
    print("=" * 80)
    print("MCP TOOL DEFINITIONS")
    print("=" * 80)
    print()

    for tool_schema in TOOL_SCHEMAS.values():
        print(f"Tool: {tool_schema['name']}")
        print()
        print("Description:")
        print(tool_schema['description'])
        print()
        print("Input Schema:")
        print(json.dumps(tool_schema['inputSchema'], indent=2))
        print()
        print("-" * 80)
        print()

    return 0


async def run_handler(
    call: Callable[[MCPHandlers], Awaitable[dict[str, Any]]],
    formatter: Callable[[dict[str, Any]], str]
) -> int:
    """Build a container, run one handler, print the formatted result"""
    container = Container(load_settings())
    try:
        result = await call(MCPHandlers(container))
        print(formatter(result))
        return 0 if result["success"] else 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1
    finally:
        await container.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="finquery CLI - resolve companies, list filings, ask questions"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # list-tools command
    subparsers.add_parser("list-tools", help="Show MCP tool definitions")

    # resolve command
    resolve_parser = subparsers.add_parser("resolve", help="Resolve a company to its CIK")
    resolve_parser.add_argument("--name", help="Company name")
    resolve_parser.add_argument("--ticker", help="Stock ticker (e.g., AAPL)")

    # filings command
    filings_parser = subparsers.add_parser("filings", help="List SEC filings")
    filings_parser.add_argument("--form", dest="form_type", help="Form type filter (e.g., 10-K)")
    filings_parser.add_argument("--name", help="Company name")
    filings_parser.add_argument("--ticker", help="Stock ticker")
    filings_parser.add_argument("--cik", help="SEC CIK")
    filings_parser.add_argument("--limit", type=int, default=10, help="Max filings (default: 10)")

    # question commands
    for name, help_text in (
        ("ask", "Ask about SEC filings"),
        ("finance", "Ask about fundamentals and filings"),
        ("news", "Summarize recent company news"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("query", help="Free-text question")

    return parser


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    # Run command
    if args.command == "list-tools":
        return asyncio.run(list_tools_command())
    elif args.command == "resolve":
        return asyncio.run(run_handler(
            lambda h: h.resolve_company(name=args.name, ticker=args.ticker),
            format_resolve_company
        ))
    elif args.command == "filings":
        return asyncio.run(run_handler(
            lambda h: h.list_filings(
                form_type=args.form_type,
                name=args.name,
                ticker=args.ticker,
                cik=args.cik,
                limit=args.limit
            ),
            format_list_filings
        ))
    elif args.command == "ask":
        return asyncio.run(run_handler(lambda h: h.sec_query(args.query), format_sec_query))
    elif args.command == "finance":
        return asyncio.run(run_handler(lambda h: h.finance_sec_query(args.query), format_finance_query))
    elif args.command == "news":
        return asyncio.run(run_handler(lambda h: h.company_news(args.query), format_company_news))
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
