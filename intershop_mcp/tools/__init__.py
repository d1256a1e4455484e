"""MCP tools for the Intershop MCP server."""

from .basket_tools import manage_basket, start_checkout
from .catalog_tools import (
    advanced_product_search,
    check_product_availability,
    get_categories,
    get_category_products,
    get_product_details,
    get_product_reviews,
    get_similar_products,
    search_products,
)
from .errors import ToolError
from .integration_tools import (
    call_custom_api,
    get_weather,
    graphql_query,
    process_data,
    query_database,
)

__all__ = [
    # Catalog tools
    "search_products",
    "advanced_product_search",
    "get_product_details",
    "get_product_reviews",
    "get_similar_products",
    "check_product_availability",
    "get_categories",
    "get_category_products",
    # Basket tools
    "manage_basket",
    "start_checkout",
    # Integration tools
    "call_custom_api",
    "get_weather",
    "graphql_query",
    "query_database",
    "process_data",
    "ToolError",
]
