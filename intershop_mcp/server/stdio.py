"""MCP stdio transport built on the ``mcp`` SDK low-level server."""

import json
import logging
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from .middleware import setup_logging
from .registry import TOOL_DEFINITIONS, TOOL_REGISTRY, execute_tool

logger = logging.getLogger(__name__)

# MCP Server instance
mcp_server = Server("intershop-mcp")


@mcp_server.list_tools()
async def list_tools() -> List[types.Tool]:
    return [
        types.Tool(name=tool.name, description=tool.description, inputSchema=tool.inputSchema)
        for tool in TOOL_DEFINITIONS
    ]


@mcp_server.call_tool()
async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
    """Run a tool and return its result as pretty-printed JSON text.

    Exceptions propagate to the SDK, which reports them as an ``isError``
    tool result.
    """
    if name not in TOOL_REGISTRY:
        raise ValueError(f"Unknown tool: {name}")

    try:
        result = await execute_tool(name, arguments)
    except Exception as e:
        logger.error(f"Tool execution error: {name} - {e}")
        raise

    return [types.TextContent(type="text", text=json.dumps(result, indent=2))]


async def run_stdio() -> None:
    """Serve MCP over stdin/stdout until the client disconnects."""
    setup_logging()
    logger.info(f"Intershop MCP Server running on stdio with {len(TOOL_DEFINITIONS)} tools")

    async with stdio_server() as (read_stream, write_stream):
        await mcp_server.run(
            read_stream,
            write_stream,
            mcp_server.create_initialization_options(),
        )
