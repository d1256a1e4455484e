"""Server-Sent Events (SSE) handler for streaming MCP responses."""

import json
import logging
import traceback
import uuid
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Callable, Dict, Optional

from ..config import get_settings
from ..tools import ToolError
from ..utils.http_client import UpstreamError, describe_error

logger = logging.getLogger(__name__)

# JSON-RPC error codes
INVALID_PARAMS = -32602
SERVER_ERROR = -32000


@dataclass
class SSEEvent:
    """Represents a Server-Sent Event."""

    type: str
    data: Optional[Any] = None
    tool: Optional[str] = None
    message: Optional[str] = None
    id: Optional[str] = None
    retry: Optional[int] = None

    def format(self) -> str:
        """Format the event for SSE transmission.

        Returns:
            Formatted SSE event string.
        """
        lines = []

        if self.id:
            lines.append(f"id: {self.id}")

        if self.retry:
            lines.append(f"retry: {self.retry}")

        event_data: Dict[str, Any] = {"type": self.type}

        if self.tool:
            event_data["tool"] = self.tool

        if self.message:
            event_data["message"] = self.message

        if self.data is not None:
            event_data["data"] = self.data

        lines.append(f"data: {json.dumps(event_data)}")
        lines.append("")

        return "\n".join(lines) + "\n"


@dataclass
class SSESession:
    """Event ID sequence for one streamed response."""

    session_id: str
    last_event_id: int = 0

    def next_event_id(self) -> str:
        self.last_event_id += 1
        return f"{self.session_id}-{self.last_event_id}"


class SSEHandler:
    """Creates sessions and formats events for one streamed response."""

    def __init__(self):
        self.settings = get_settings()

    def create_session(self) -> SSESession:
        return SSESession(session_id=str(uuid.uuid4()))

    def format_event(
        self,
        event_type: str,
        data: Optional[Any] = None,
        tool: Optional[str] = None,
        message: Optional[str] = None,
        session: Optional[SSESession] = None,
    ) -> str:
        """Format an SSE event.

        Args:
            event_type: Type of event (start, progress, result, error, complete).
            data: Event data payload.
            tool: Tool name (for tool-related events).
            message: Human-readable message.
            session: Optional session for event ID tracking.

        Returns:
            Formatted SSE event string.
        """
        event = SSEEvent(
            type=event_type,
            data=data,
            tool=tool,
            message=message,
            id=session.next_event_id() if session else None,
            retry=self.settings.SSE_RETRY_TIMEOUT,
        )

        return event.format()


def error_code(error: Exception) -> int:
    """JSON-RPC error code for an exception raised by a tool."""
    if isinstance(error, (ToolError, TypeError)):
        return INVALID_PARAMS
    return SERVER_ERROR


def error_data(error: Exception) -> Dict[str, Any]:
    if isinstance(error, UpstreamError):
        return describe_error(error)
    return {"error_type": type(error).__name__}


async def stream_tool_result(
    tool_name: str,
    arguments: Dict[str, Any],
    executor: Callable,
    session: Optional[SSESession] = None,
) -> AsyncGenerator[str, None]:
    """Stream tool execution results via SSE.

    Event types:
    - start: Tool execution beginning
    - progress: Tool is running
    - result: Final tool result
    - error: Error occurred during execution
    - complete: Execution finished

    Args:
        tool_name: Name of the tool being executed.
        arguments: Tool arguments dictionary.
        executor: Async callable that executes the tool.
        session: Optional SSE session for event tracking.

    Yields:
        Formatted SSE event strings.
    """
    handler = SSEHandler()

    yield handler.format_event(
        event_type="start",
        tool=tool_name,
        message=f"Starting execution of {tool_name}",
        session=session,
    )

    try:
        yield handler.format_event(
            event_type="progress",
            tool=tool_name,
            message="Executing tool...",
            session=session,
        )

        result = await executor(**arguments)

        yield handler.format_event(
            event_type="result",
            tool=tool_name,
            data=result,
            message="Tool executed successfully",
            session=session,
        )

    except Exception as e:
        logger.error(f"Tool execution error: {tool_name} - {e}")
        logger.debug(traceback.format_exc())

        yield handler.format_event(
            event_type="error",
            tool=tool_name,
            message=str(e),
            data=error_data(e),
            session=session,
        )

    finally:
        yield handler.format_event(
            event_type="complete",
            tool=tool_name,
            session=session,
        )


async def stream_jsonrpc_tool_call(
    request_id: Optional[Any],
    tool_name: str,
    arguments: Dict[str, Any],
    executor: Callable,
) -> AsyncGenerator[str, None]:
    """Stream a ``tools/call`` JSON-RPC response wrapped in SSE events.

    The result event carries a complete JSON-RPC response whose content is
    the tool result as a JSON text block.
    """
    handler = SSEHandler()
    session = handler.create_session()

    yield handler.format_event(event_type="start", tool=tool_name, session=session)

    try:
        result = await executor(**arguments)
        response = {
            "jsonrpc": "2.0",
            "result": {
                "content": [{"type": "text", "text": json.dumps(result)}],
            },
            "id": request_id,
        }
        yield handler.format_event(event_type="result", data=response, session=session)

    except Exception as e:
        logger.error(f"Tool execution error: {tool_name} - {e}")
        response = {
            "jsonrpc": "2.0",
            "error": {
                "code": error_code(e),
                "message": str(e),
                "data": error_data(e),
            },
            "id": request_id,
        }
        yield handler.format_event(event_type="error", data=response, session=session)

    yield handler.format_event(event_type="complete", session=session)
