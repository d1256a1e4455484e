"""Data models and schemas for the Intershop MCP server."""

from .schemas import (
    BasketLine,
    BasketSummary,
    CanonicalPrice,
    ChatReply,
    ChatRequest,
    MCPRequest,
    MCPResponse,
    PricePoint,
    PriceShape,
    ProductImage,
    ProductSummary,
    ToolCallRequest,
    ToolDefinition,
    ToolsList,
)

__all__ = [
    "BasketLine",
    "BasketSummary",
    "CanonicalPrice",
    "ChatReply",
    "ChatRequest",
    "MCPRequest",
    "MCPResponse",
    "PricePoint",
    "PriceShape",
    "ProductImage",
    "ProductSummary",
    "ToolCallRequest",
    "ToolDefinition",
    "ToolsList",
]
