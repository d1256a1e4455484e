"""Main FastAPI application with MCP over HTTP + SSE."""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse

from .. import __version__
from ..config import get_settings
from ..models.schemas import MCPError, MCPRequest, MCPResponse, ToolsList
from .middleware import setup_logging, setup_middleware
from .registry import TOOL_DEFINITIONS, TOOL_REGISTRY, get_tool_definition
from .relay import router as relay_router
from .sse_handler import INVALID_PARAMS, SSEHandler, stream_jsonrpc_tool_call, stream_tool_result

logger = logging.getLogger(__name__)

SERVER_NAME = "intershop-mcp"
SERVER_VERSION = __version__
PROTOCOL_VERSION = "2024-11-05"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

# JSON-RPC error codes
PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging()
    settings = get_settings()
    logger.info(f"Starting Intershop MCP Server against {settings.INTERSHOP_BASE_URL}")
    logger.info(f"{len(TOOL_DEFINITIONS)} tools registered")

    yield

    logger.info("Shutting down Intershop MCP Server")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="Intershop Commerce MCP Server",
        description="MCP server exposing Intershop ICM catalog, pricing and basket tools, "
        "plus generic REST, GraphQL, weather and data-processing integrations.",
        version=SERVER_VERSION,
        lifespan=lifespan,
    )

    setup_middleware(app)
    register_routes(app)
    app.include_router(relay_router)

    return app


def jsonrpc_error(
    code: int,
    message: str,
    request_id: Optional[Any] = None,
    status_code: int = 400,
) -> JSONResponse:
    response = MCPResponse(error=MCPError(code=code, message=message), id=request_id)
    return JSONResponse(status_code=status_code, content=response.model_dump(exclude_none=True))


def sse_error(message: str) -> StreamingResponse:
    async def error_stream():
        yield f"data: {json.dumps({'type': 'error', 'message': message})}\n\n"

    return StreamingResponse(error_stream(), media_type="text/event-stream")


def tool_call_params(request: MCPRequest) -> Tuple[Optional[str], Dict[str, Any]]:
    """Extract the tool name and arguments from a ``tools/call`` request."""
    params = request.params
    if params is None:
        return None, {}
    if isinstance(params, dict):
        return params.get("name"), params.get("arguments") or {}
    return params.name, params.arguments


def register_routes(app: FastAPI) -> None:
    """Register the MCP routes.

    Args:
        app: FastAPI application instance.
    """

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"status": "ok", "service": SERVER_NAME}

    @app.get("/health")
    async def health():
        """Detailed health check."""
        settings = get_settings()
        return {
            "status": "healthy",
            "service": SERVER_NAME,
            "version": SERVER_VERSION,
            "tools_count": len(TOOL_DEFINITIONS),
            "upstream": settings.INTERSHOP_BASE_URL,
        }

    @app.get("/mcp/tools")
    async def list_tools():
        """List all available MCP tools with their schemas."""
        return ToolsList(tools=TOOL_DEFINITIONS).model_dump()

    @app.get("/mcp/tools/{tool_name}")
    async def get_tool(tool_name: str):
        """Get details for a specific tool, or 404."""
        tool = get_tool_definition(tool_name)
        if tool is None:
            return JSONResponse(
                status_code=404,
                content={"error": f"Tool '{tool_name}' not found"},
            )
        return tool.model_dump()

    @app.post("/mcp")
    async def mcp_endpoint(request: Request):
        """MCP over HTTP with Server-Sent Events streaming.

        Accepts JSON-RPC requests. ``initialize`` and ``tools/list`` answer
        with plain JSON; ``tools/call`` streams its response via SSE.
        """
        try:
            body = await request.json()
            mcp_request = MCPRequest(**body)
        except Exception as e:
            return jsonrpc_error(PARSE_ERROR, f"Parse error: {str(e)}")

        if mcp_request.method == "tools/list":
            return await handle_tools_list(mcp_request)

        elif mcp_request.method == "tools/call":
            return await handle_tools_call(mcp_request)

        elif mcp_request.method == "initialize":
            return await handle_initialize(mcp_request)

        return jsonrpc_error(
            METHOD_NOT_FOUND,
            f"Method not found: {mcp_request.method}",
            mcp_request.id,
        )

    @app.post("/mcp/stream")
    async def mcp_stream_endpoint(request: Request):
        """Streaming tool execution with start/progress/result/complete events."""
        try:
            body = await request.json()
            mcp_request = MCPRequest(**body)
        except Exception as e:
            return sse_error(str(e))

        if mcp_request.method != "tools/call":
            return sse_error("Only tools/call supported for streaming")

        tool_name, arguments = tool_call_params(mcp_request)
        if tool_name not in TOOL_REGISTRY:
            return sse_error(f"Tool not found: {tool_name}")

        session = SSEHandler().create_session()
        return StreamingResponse(
            stream_tool_result(tool_name, arguments, TOOL_REGISTRY[tool_name], session),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )


async def handle_initialize(request: MCPRequest) -> JSONResponse:
    """Handle MCP initialize request with the server capabilities."""
    return JSONResponse(
        content={
            "jsonrpc": "2.0",
            "result": {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {
                    "tools": {"listChanged": False},
                },
                "serverInfo": {
                    "name": SERVER_NAME,
                    "version": SERVER_VERSION,
                },
            },
            "id": request.id,
        }
    )


async def handle_tools_list(request: MCPRequest) -> JSONResponse:
    return JSONResponse(
        content={
            "jsonrpc": "2.0",
            "result": ToolsList(tools=TOOL_DEFINITIONS).model_dump(),
            "id": request.id,
        }
    )


async def handle_tools_call(request: MCPRequest) -> StreamingResponse:
    """Handle MCP tools/call request with SSE streaming.

    Args:
        request: MCP request object.

    Returns:
        Streaming response with SSE events.
    """
    tool_name, arguments = tool_call_params(request)

    if tool_name not in TOOL_REGISTRY:
        error = MCPResponse(
            error=MCPError(code=INVALID_PARAMS, message=f"Unknown tool: {tool_name}"),
            id=request.id,
        )

        async def error_stream():
            yield f"data: {json.dumps(error.model_dump(exclude_none=True))}\n\n"

        return StreamingResponse(error_stream(), media_type="text/event-stream")

    return StreamingResponse(
        stream_jsonrpc_tool_call(request.id, tool_name, arguments, TOOL_REGISTRY[tool_name]),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


# Create default app instance
app = create_app()
