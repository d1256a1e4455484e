"""Tool registry shared by the HTTP, relay and stdio transports."""

from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..models.schemas import ToolDefinition
from ..tools import (
    advanced_product_search,
    call_custom_api,
    check_product_availability,
    get_categories,
    get_category_products,
    get_product_details,
    get_product_reviews,
    get_similar_products,
    get_weather,
    graphql_query,
    manage_basket,
    process_data,
    query_database,
    search_products,
    start_checkout,
)

ToolExecutor = Callable[..., Awaitable[Dict[str, Any]]]

# Tool registry mapping tool names to their implementations
TOOL_REGISTRY: Dict[str, ToolExecutor] = {
    # Catalog tools
    "search_products": search_products,
    "advanced_product_search": advanced_product_search,
    "get_product_details": get_product_details,
    "get_product_reviews": get_product_reviews,
    "get_similar_products": get_similar_products,
    "check_product_availability": check_product_availability,
    "get_categories": get_categories,
    "get_category_products": get_category_products,
    # Basket tools
    "manage_basket": manage_basket,
    "start_checkout": start_checkout,
    # Integration tools
    "call_custom_api": call_custom_api,
    "get_weather": get_weather,
    "graphql_query": graphql_query,
    "query_database": query_database,
    "process_data": process_data,
}

_SKU = {"type": "string", "description": "Product SKU, e.g. '201807231-01'"}
_LIMIT = {"type": "integer", "default": 24, "description": "Number of results (1-100)"}
_OFFSET = {"type": "integer", "default": 0, "description": "Pagination offset"}

# Tool definitions for MCP protocol
TOOL_DEFINITIONS: List[ToolDefinition] = [
    # Catalog Tools
    ToolDefinition(
        name="search_products",
        description="Search products in the Intershop catalog. Returns the top 5 results with normalized prices.",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search term (optional)"},
                "category": {"type": "string", "description": "Category ID to list instead of searching (optional)"},
                "limit": _LIMIT,
                "offset": _OFFSET,
            },
        },
    ),
    ToolDefinition(
        name="advanced_product_search",
        description="Search products with price range, brand, category and sorting filters.",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search term"},
                "category": {"type": "string", "description": "Category ID"},
                "min_price": {"type": "number", "description": "Lowest price"},
                "max_price": {"type": "number", "description": "Highest price"},
                "brand": {"type": "string", "description": "Manufacturer"},
                "sort_by": {"type": "string", "default": "relevance", "description": "Sorting key"},
                "limit": _LIMIT,
                "offset": _OFFSET,
            },
        },
    ),
    ToolDefinition(
        name="get_product_details",
        description="Get detailed product information: prices, availability, attributes, images.",
        inputSchema={
            "type": "object",
            "properties": {"sku": _SKU},
            "required": ["sku"],
        },
    ),
    ToolDefinition(
        name="get_product_reviews",
        description="Get customer reviews for a product.",
        inputSchema={
            "type": "object",
            "properties": {"sku": _SKU},
            "required": ["sku"],
        },
    ),
    ToolDefinition(
        name="get_similar_products",
        description="Get product recommendations similar to a product.",
        inputSchema={
            "type": "object",
            "properties": {"sku": _SKU},
            "required": ["sku"],
        },
    ),
    ToolDefinition(
        name="check_product_availability",
        description="Check stock availability of a product.",
        inputSchema={
            "type": "object",
            "properties": {"sku": _SKU},
            "required": ["sku"],
        },
    ),
    ToolDefinition(
        name="get_categories",
        description="List product categories, or show one category.",
        inputSchema={
            "type": "object",
            "properties": {
                "category_id": {"type": "string", "description": "Category ID (optional, lists all when empty)"},
            },
        },
    ),
    ToolDefinition(
        name="get_category_products",
        description="List products of a category with normalized prices.",
        inputSchema={
            "type": "object",
            "properties": {
                "category_id": {"type": "string", "description": "Category ID"},
                "limit": _LIMIT,
                "offset": _OFFSET,
            },
            "required": ["category_id"],
        },
    ),
    # Basket Tools
    ToolDefinition(
        name="manage_basket",
        description="Manage a shopping basket: create, add_product, view, update, remove.",
        inputSchema={
            "type": "object",
            "properties": {
                "action": {
                    "type": "string",
                    "enum": ["create", "add_product", "view", "update", "remove"],
                    "description": "Basket action",
                },
                "basket_id": {"type": "string", "description": "Basket ID (not needed for create)"},
                "sku": {"type": "string", "description": "Product SKU for add_product"},
                "quantity": {"type": "integer", "default": 1, "description": "Quantity"},
                "item_id": {"type": "string", "description": "Line item ID for update and remove"},
            },
            "required": ["action"],
        },
    ),
    ToolDefinition(
        name="start_checkout",
        description="Start the checkout process for a basket.",
        inputSchema={
            "type": "object",
            "properties": {"basket_id": {"type": "string", "description": "Basket ID"}},
            "required": ["basket_id"],
        },
    ),
    # Integration Tools
    ToolDefinition(
        name="call_custom_api",
        description="Call an external HTTP API. Known services get their API keys added automatically.",
        inputSchema={
            "type": "object",
            "properties": {
                "endpoint": {"type": "string", "description": "Absolute API URL"},
                "method": {
                    "type": "string",
                    "enum": ["GET", "POST", "PUT", "DELETE"],
                    "default": "GET",
                    "description": "HTTP method",
                },
                "headers": {"type": "object", "description": "HTTP headers (optional)"},
                "body": {"type": "string", "description": "Request body as JSON string (optional)"},
            },
            "required": ["endpoint"],
        },
    ),
    ToolDefinition(
        name="get_weather",
        description="Current weather or a forecast (up to 5 days) from OpenWeatherMap.",
        inputSchema={
            "type": "object",
            "properties": {
                "city": {"type": "string", "description": "City name"},
                "forecast_days": {"type": "integer", "default": 0, "description": "Forecast days (0 for current weather)"},
            },
            "required": ["city"],
        },
    ),
    ToolDefinition(
        name="graphql_query",
        description="Run a GraphQL query or mutation against an endpoint.",
        inputSchema={
            "type": "object",
            "properties": {
                "endpoint": {"type": "string", "description": "GraphQL endpoint URL"},
                "query": {"type": "string", "description": "GraphQL document"},
                "variables": {"type": "object", "description": "Variables (optional)"},
                "headers": {"type": "object", "description": "HTTP headers (optional)"},
            },
            "required": ["endpoint", "query"],
        },
    ),
    ToolDefinition(
        name="query_database",
        description="Run a SQL query against the demo database.",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "SQL statement"},
                "params": {"type": "array", "description": "Query parameters (optional)"},
            },
            "required": ["query"],
        },
    ),
    ToolDefinition(
        name="process_data",
        description="Filter, transform, aggregate or validate JSON data.",
        inputSchema={
            "type": "object",
            "properties": {
                "data": {"type": "string", "description": "Data as JSON string"},
                "operation": {
                    "type": "string",
                    "enum": ["filter", "transform", "aggregate", "validate"],
                    "description": "Processing operation",
                },
                "options": {"type": "object", "description": "Operation options"},
            },
            "required": ["data", "operation"],
        },
    ),
]


def get_tool_definition(name: str) -> Optional[ToolDefinition]:
    for tool in TOOL_DEFINITIONS:
        if tool.name == name:
            return tool
    return None


async def execute_tool(name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Run a registered tool.

    Raises:
        KeyError: If no tool with that name is registered.
    """
    executor = TOOL_REGISTRY[name]
    return await executor(**(arguments or {}))
