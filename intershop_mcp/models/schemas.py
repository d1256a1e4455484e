"""Pydantic schemas for tool inputs, outputs, and API models."""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


# =============================================================================
# MCP Protocol Models
# =============================================================================


class MCPToolParams(BaseModel):
    """Parameters for MCP tool call."""

    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


class MCPRequest(BaseModel):
    """JSON-RPC request for MCP protocol."""

    jsonrpc: str = "2.0"
    method: str
    params: Optional[Union[MCPToolParams, Dict[str, Any]]] = None
    id: Optional[Union[str, int]] = None


class MCPError(BaseModel):
    """MCP error response."""

    code: int
    message: str
    data: Optional[Any] = None


class MCPResponse(BaseModel):
    """JSON-RPC response for MCP protocol."""

    jsonrpc: str = "2.0"
    result: Optional[Any] = None
    error: Optional[MCPError] = None
    id: Optional[Union[str, int]] = None


# =============================================================================
# Price Models
# =============================================================================


class PriceShape(str, Enum):
    """Known upstream price payload layouts."""

    STRUCTURED = "structured"  # {"prices": {"SalePrice": [...], "ListPrice": [...]}}
    LEGACY = "legacy"  # {"listPrice": {...}, "salesPrice": {...}}
    FLAT = "flat"  # {"value": ..., "currency": ...}


class PricePoint(BaseModel):
    """A single price with optional gross/net split."""

    gross: Optional[float] = None
    net: Optional[float] = None
    currency: str
    formatted: str


class CanonicalPrice(BaseModel):
    """Price representation independent of the upstream shape."""

    shape: PriceShape
    currency: Optional[str] = None
    sale_price: Optional[PricePoint] = None
    list_price: Optional[PricePoint] = None

    @property
    def sale_price_gross(self) -> Optional[float]:
        return self.sale_price.gross if self.sale_price else None

    @property
    def sale_price_net(self) -> Optional[float]:
        return self.sale_price.net if self.sale_price else None

    @property
    def list_price_gross(self) -> Optional[float]:
        return self.list_price.gross if self.list_price else None

    @property
    def list_price_net(self) -> Optional[float]:
        return self.list_price.net if self.list_price else None

    @property
    def formatted_sale(self) -> Optional[str]:
        return self.sale_price.formatted if self.sale_price else None

    @property
    def formatted_list(self) -> Optional[str]:
        return self.list_price.formatted if self.list_price else None


# =============================================================================
# Catalog Models
# =============================================================================


class ProductImage(BaseModel):
    """Product image reference."""

    type: Optional[str] = None
    url: str
    size: Optional[str] = None
    view: Optional[str] = None
    is_primary: bool = False


class ProductSummary(BaseModel):
    """Compact product entry returned by search tools."""

    sku: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Dict[str, Any]] = None
    in_stock: Optional[bool] = None
    image: Optional[str] = None


class BasketLine(BaseModel):
    """Single basket line item."""

    sku: Optional[str] = None
    name: Optional[str] = None
    quantity: Optional[Any] = None
    price: Optional[Dict[str, Any]] = None


class BasketSummary(BaseModel):
    """Basket contents."""

    basket_id: Optional[str] = None
    item_count: int = 0
    total: Optional[Dict[str, Any]] = None
    items: List[BasketLine] = Field(default_factory=list)


# =============================================================================
# Tool Definitions for MCP
# =============================================================================


class ToolDefinition(BaseModel):
    """MCP tool definition."""

    name: str
    description: str
    inputSchema: Dict[str, Any]


class ToolsList(BaseModel):
    """List of available tools."""

    tools: List[ToolDefinition]


# =============================================================================
# Chat Relay Models
# =============================================================================


class ChatRequest(BaseModel):
    """Body of ``POST /chat``."""

    message: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)


class ChatReply(BaseModel):
    """Relay answer to a chat message."""

    reply: str
    context: Dict[str, Any] = Field(default_factory=dict)
    tools_used: List[str] = Field(default_factory=list)


class ToolCallRequest(BaseModel):
    """Body of ``POST /tools/{tool_name}``."""

    parameters: Dict[str, Any] = Field(default_factory=dict)
