"""HTTP relay for chatbot platforms.

Exposes the tool registry over plain REST and answers platform webhooks
(Discord, Slack, Teams, Telegram) with replies in each platform's format.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse

from ..models.schemas import ChatReply, ChatRequest, ToolCallRequest
from .registry import TOOL_REGISTRY, execute_tool

logger = logging.getLogger(__name__)

router = APIRouter(tags=["relay"])

DEFAULT_REPLY = "Hello from MCP Server!"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def process_chat_message(message: str, context: Optional[Dict[str, Any]] = None) -> ChatReply:
    return ChatReply(reply=f"Processed: {message}", context=context or {})


def _reply_text(text: Optional[str]) -> str:
    if not text:
        return DEFAULT_REPLY
    return process_chat_message(text).reply


def discord_reply(payload: Dict[str, Any]) -> Dict[str, Any]:
    # type 4: CHANNEL_MESSAGE_WITH_SOURCE
    return {"type": 4, "data": {"content": _reply_text(payload.get("content"))}}


def slack_reply(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"text": _reply_text(payload.get("text"))}


def teams_reply(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "message", "text": _reply_text(payload.get("text"))}


def telegram_reply(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Telegram ``sendMessage`` answer addressed to the originating chat.

    Raises:
        ValueError: If the update carries no ``message.chat.id``.
    """
    message = payload.get("message") or {}
    chat_id = (message.get("chat") or {}).get("id")
    if chat_id is None:
        raise ValueError("Telegram update is missing message.chat.id")

    return {
        "method": "sendMessage",
        "chat_id": chat_id,
        "text": _reply_text(message.get("text")),
    }


WEBHOOK_HANDLERS: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    "discord": discord_reply,
    "slack": slack_reply,
    "teams": teams_reply,
    "telegram": telegram_reply,
}


@router.post("/chat")
async def chat(request: ChatRequest):
    """Relay a chat message."""
    if not request.message:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Message is required",
                "usage": 'POST /chat with { "message": "your message", "context": {} }',
            },
        )

    reply = process_chat_message(request.message, request.context)
    return {
        "success": True,
        "response": reply.model_dump(),
        "timestamp": _timestamp(),
    }


@router.get("/tools")
async def list_tool_names():
    """List the registered tool names."""
    tools = list(TOOL_REGISTRY)
    return {"success": True, "tools": tools, "count": len(tools)}


@router.post("/tools/{tool_name}")
async def call_tool(tool_name: str, request: Optional[ToolCallRequest] = None):
    """Execute one registered tool with ``parameters`` as its arguments."""
    if tool_name not in TOOL_REGISTRY:
        return JSONResponse(
            status_code=404,
            content={"error": f"Tool '{tool_name}' not found", "available": list(TOOL_REGISTRY)},
        )

    parameters = request.parameters if request else {}
    try:
        result = await execute_tool(tool_name, parameters)
    except Exception as e:
        logger.error(f"Tool {tool_name} error: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Tool execution failed", "message": str(e)},
        )

    return {
        "success": True,
        "tool": tool_name,
        "result": result,
        "timestamp": _timestamp(),
    }


@router.post("/webhook/{platform}")
async def webhook(platform: str, payload: Optional[Dict[str, Any]] = Body(default=None)):
    """Answer a chat platform webhook in that platform's reply format."""
    handler = WEBHOOK_HANDLERS.get(platform)
    if handler is None:
        return JSONResponse(
            status_code=400,
            content={"error": "Unsupported platform", "supported": list(WEBHOOK_HANDLERS)},
        )

    try:
        return handler(payload or {})
    except ValueError as e:
        logger.warning(f"Webhook {platform} rejected: {e}")
        return JSONResponse(
            status_code=400,
            content={"error": "Webhook processing failed", "message": str(e)},
        )
