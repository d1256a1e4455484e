#!/usr/bin/env python3
"""Entry point for the Intershop Commerce MCP Server.

Starts the FastAPI server (MCP over HTTP + SSE and the chat relay), or the
MCP stdio transport with ``--stdio``.

Usage:
    python main.py
    python main.py --stdio

Environment Variables:
    INTERSHOP_BASE_URL: ICM REST base URL (default: inSPIRED demo shop)
    WEATHER_API_KEY: OpenWeatherMap key for get_weather
    HOST: Server host (default: 0.0.0.0)
    PORT: Server port (default: 8000)
    DEBUG: Enable debug mode (default: false)
    LOG_LEVEL: Logging level (default: INFO)
"""

import argparse
import asyncio
import sys
from typing import List, Optional

import uvicorn

from intershop_mcp.config import get_settings


def run_http() -> None:
    settings = get_settings()

    print(f"""
    ╔══════════════════════════════════════════════════════════════╗
    ║         Intershop Commerce MCP Server                        ║
    ║                                                              ║
    ║  HTTP SSE Transport for Model Context Protocol               ║
    ╠══════════════════════════════════════════════════════════════╣
    ║  Host: {settings.HOST:<52} ║
    ║  Port: {settings.PORT:<52} ║
    ║  Debug: {str(settings.DEBUG):<51} ║
    ╠══════════════════════════════════════════════════════════════╣
    ║  Endpoints:                                                  ║
    ║    GET  /health        - Detailed health status              ║
    ║    GET  /mcp/tools     - List available tools                ║
    ║    POST /mcp           - MCP JSON-RPC endpoint (SSE)         ║
    ║    POST /mcp/stream    - Streaming tool execution            ║
    ║    POST /chat          - Chat relay                          ║
    ║    POST /tools/{{name}}  - Call one tool                       ║
    ║    POST /webhook/{{platform}} - Chat platform webhooks         ║
    ╚══════════════════════════════════════════════════════════════╝
    """, file=sys.stderr)

    uvicorn.run(
        "intershop_mcp.server.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=settings.DEBUG,
    )


def main(argv: Optional[List[str]] = None) -> None:
    """Run the MCP server."""
    parser = argparse.ArgumentParser(description="Intershop Commerce MCP Server")
    parser.add_argument(
        "--stdio",
        action="store_true",
        help="serve MCP over stdin/stdout instead of HTTP",
    )
    args = parser.parse_args(argv)

    if args.stdio:
        from intershop_mcp.server.stdio import run_stdio

        asyncio.run(run_stdio())
    else:
        run_http()


if __name__ == "__main__":
    main()
