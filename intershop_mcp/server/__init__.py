"""Server module: HTTP + SSE app, chat relay and stdio transport."""

from .main import app, create_app
from .registry import TOOL_DEFINITIONS, TOOL_REGISTRY, execute_tool
from .sse_handler import SSEHandler, stream_tool_result
from .stdio import mcp_server, run_stdio

__all__ = [
    "app",
    "create_app",
    "mcp_server",
    "run_stdio",
    "TOOL_DEFINITIONS",
    "TOOL_REGISTRY",
    "execute_tool",
    "SSEHandler",
    "stream_tool_result",
]
