#!/usr/bin/env python3
"""
HTTP Server - JSON endpoints + MCP over SSE

Run with: uvicorn finquery.server_http:app --host 127.0.0.1 --port 3000
(or: python -m finquery.server_http)

Endpoints:
- POST /sec-query           {query}
- POST /api/ai-finance      {query}
- POST /api/ai-finance-sec  {query}
- POST /ai-company-news     {query}
- POST /sharepoint-query    {query} + Authorization: Bearer <token>
- POST /search             {query, urls}
- GET  /ping
- GET  /sse, POST /messages (MCP)

Configuration: see finquery.config (PORT, HOST, SEC_USER_AGENT, ...)
"""

import json
import logging
import signal
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from mcp.server import Server
from mcp.server.sse import SseServerTransport
from mcp.types import TextContent, Tool
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route

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

# Configure logging with millisecond precision
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] %(message)s",
    datefmt="%Y/%m/%d %H:%M:%S"
)


class MillisecondFormatter(logging.Formatter):
    """Custom formatter with milliseconds as :XXXX format"""
    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        """Override formatTime to include milliseconds with : separator"""
        ct = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if datefmt:
            s = ct.strftime("%Y/%m/%d %H:%M:%S")
            ms = int((record.created % 1) * 10000)
            return f"{s}:{ms:04d}"
        return super().formatTime(record, datefmt)


# Apply custom formatter to root logger
for handler in logging.root.handlers:
    handler.setFormatter(MillisecondFormatter(
        "[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%Y/%m/%d %H:%M:%S"
    ))

logger = logging.getLogger(__name__)

FORMATTERS = {
    "resolve_company": format_resolve_company,
    "list_filings": format_list_filings,
    "sec_query": format_sec_query,
    "finance_query": format_finance_query,
    "company_news": format_company_news,
}


def to_response(result: dict[str, Any]) -> JSONResponse:
    """Map a handler result to an HTTP response"""
    if result.get("success"):
        body = {k: v for k, v in result.items() if k != "success"}
        return JSONResponse(body)
    return JSONResponse({"error": result.get("error", "Internal server error.")}, status_code=result.get("status", 500))


async def read_json(request: Request) -> dict[str, Any]:
    """The JSON body as a dict (empty when missing or not an object)"""
    try:
        body = await request.json()
    except (json.JSONDecodeError, ValueError):
        return {}
    return body if isinstance(body, dict) else {}


async def read_query(request: Request) -> Optional[str]:
    """The `query` field of a JSON body, or None"""
    body = await read_json(request)
    query = body.get("query")
    return query.strip() if isinstance(query, str) and query.strip() else None


def bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    parts = header.split(" ", 1)
    if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1].strip():
        return parts[1].strip()
    return None


def build_mcp_server(handlers: MCPHandlers) -> Server:
    """MCP server exposing TOOL_SCHEMAS through the shared handlers"""
    mcp_server = Server("finquery-mcp")

    @mcp_server.list_tools()  # type: ignore[misc,no-untyped-call]
    async def list_tools() -> list[Tool]:
        """List available MCP tools"""
        return [Tool(**schema) for schema in TOOL_SCHEMAS.values()]

    @mcp_server.call_tool()  # type: ignore[misc,no-untyped-call]
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle tool calls"""
        logger.info(f"call_tool: {name} args={arguments}")

        result = await dispatch_tool(handlers, name, arguments)
        formatter = FORMATTERS.get(name)
        formatted_text = formatter(result) if formatter else json.dumps(result, indent=2)

        logger.info(f"call_tool: {name} returning {len(formatted_text)} chars")
        return [TextContent(type="text", text=formatted_text)]

    return mcp_server


async def dispatch_tool(handlers: MCPHandlers, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    """Dispatch tool call to appropriate handler"""
    if name == "resolve_company":
        return await handlers.resolve_company(
            name=arguments.get("name"),
            ticker=arguments.get("ticker")
        )

    elif name == "list_filings":
        return await handlers.list_filings(
            form_type=arguments.get("form_type"),
            name=arguments.get("name"),
            ticker=arguments.get("ticker"),
            cik=arguments.get("cik"),
            limit=arguments.get("limit", 10)
        )

    elif name == "sec_query":
        return await handlers.sec_query(arguments["query"])

    elif name == "finance_query":
        return await handlers.finance_sec_query(arguments["query"])

    elif name == "company_news":
        return await handlers.company_news(arguments["query"])

    else:
        raise ValueError(f"Unknown tool: {name}")


def query_endpoint(handle: Callable[[str], Awaitable[dict[str, Any]]]):
    """POST endpoint that runs one handler on the body's query"""
    async def endpoint(request: Request) -> Response:
        query = await read_query(request)
        logger.info(f"{request.url.path}: {query!r}")
        return to_response(await handle(query))
    return endpoint


def create_app(container: Container, debug: bool = False) -> Starlette:
    """Build the Starlette application around a container"""
    handlers = MCPHandlers(container)
    mcp_server = build_mcp_server(handlers)

    # SSE transport for multi-client support
    sse_transport = SseServerTransport("/messages/")

    async def handle_ping(request: Request) -> Response:
        """Health check endpoint"""
        return JSONResponse({"status": "ok"})

    async def handle_sharepoint(request: Request) -> Response:
        query = await read_query(request)
        logger.info(f"/sharepoint-query: {query!r}")
        return to_response(await handlers.document_query(query, bearer_token(request)))

    async def handle_url_search(request: Request) -> Response:
        body = await read_json(request)
        query = body.get("query")
        query = query.strip() if isinstance(query, str) else None
        logger.info(f"/search: {query!r}")
        return to_response(await handlers.url_search(query, body.get("urls")))

    async def handle_sse(request: Request) -> Response:
        """SSE endpoint for MCP communication"""
        client_addr = request.client.host if request.client else "unknown"
        logger.info(f"SSE connect from {client_addr}")
        async with sse_transport.connect_sse(
            request.scope, request.receive, request._send
        ) as streams:
            await mcp_server.run(
                streams[0], streams[1], mcp_server.create_initialization_options()
            )
            logger.info(f"SSE disconnect from {client_addr}")
        return Response()

    routes = [
        Route("/ping", handle_ping),
        Route("/sec-query", query_endpoint(handlers.sec_query), methods=["POST"]),
        Route("/api/ai-finance", query_endpoint(handlers.finance_query), methods=["POST"]),
        Route("/api/ai-finance-sec", query_endpoint(handlers.finance_sec_query), methods=["POST"]),
        Route("/ai-company-news", query_endpoint(handlers.company_news), methods=["POST"]),
        Route("/sharepoint-query", handle_sharepoint, methods=["POST"]),
        Route("/search", handle_url_search, methods=["POST"]),
        Route("/sse", handle_sse),
        Mount("/messages/", app=sse_transport.handle_post_message),
    ]
    middleware = [
        Middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    ]

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        yield
        await container.aclose()

    app = Starlette(debug=debug, routes=routes, middleware=middleware, lifespan=lifespan)
    app.state.container = container
    return app


settings = load_settings()
app = create_app(Container(settings))


# Graceful shutdown on SIGTERM
def handle_sigterm(signum, frame):
    logger.info("Received SIGTERM, shutting down gracefully...")
    sys.exit(0)


def main() -> None:
    import uvicorn
    signal.signal(signal.SIGTERM, handle_sigterm)
    logger.info(f"Starting finquery HTTP server on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
