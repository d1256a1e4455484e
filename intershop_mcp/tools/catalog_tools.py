"""Catalog tools: product search, product details and categories.

Product listings are summarized to the top results and priced through the
:class:`~intershop_mcp.clients.PriceEnricher`.
"""

import logging
from typing import Any, Dict, List, Optional

from ..clients import PriceEnricher, get_intershop_client
from ..clients.enrichment import LISTING_PRICE_FIELD, detail_price_source
from ..models.schemas import ProductSummary
from ..utils.prices import normalize_price, price_to_dict
from ..utils.text import strip_html, truncate
from .errors import ToolError

logger = logging.getLogger(__name__)

TOP_PRODUCTS = 5


def _product_collection(result: Any) -> List[Dict[str, Any]]:
    """Product list from a search or category response."""
    if isinstance(result, list):
        return [p for p in result if isinstance(p, dict)]
    if isinstance(result, dict):
        products = result.get("products") or result.get("elements") or result.get("data") or []
        return [p for p in products if isinstance(p, dict)]
    return []


def _summarize(product: Dict[str, Any]) -> Dict[str, Any]:
    price = product.get("price")
    if price is None:
        raw = product.get(LISTING_PRICE_FIELD)
        if raw is None:
            raw = detail_price_source(product)
        price = price_to_dict(normalize_price(raw))

    images = product.get("images") or []
    image = images[0].get("effectiveUrl") if images and isinstance(images[0], dict) else None

    return ProductSummary(
        sku=product.get("sku"),
        name=product.get("productName") or product.get("name") or product.get("title"),
        description=truncate(strip_html(product.get("shortDescription") or product.get("description"))),
        price=price,
        in_stock=product.get("inStock"),
        image=image,
    ).model_dump()


async def _summarize_listing(result: Any, **search_parameters: Any) -> Dict[str, Any]:
    client = get_intershop_client()
    products = _product_collection(result)
    top = await PriceEnricher(client).enrich(products[:TOP_PRODUCTS])

    total = result.get("total") if isinstance(result, dict) else None
    return {
        "total": total if isinstance(total, int) else len(products),
        "count": len(products),
        "products": [_summarize(product) for product in top],
        "search_parameters": search_parameters,
    }


async def search_products(
    query: str = "",
    category: Optional[str] = None,
    limit: int = 24,
    offset: int = 0,
) -> Dict[str, Any]:
    """Search the product catalog.

    Args:
        query: Search term. Empty lists the whole catalog.
        category: Optional category ID; lists that category instead.
        limit: Page size (1-100).
        offset: Pagination offset.

    Returns:
        Dictionary containing:
        - total: Number of matching products reported by the backend
        - count: Products on this page
        - products: Top 5 products with sku, name, description, price,
          in_stock and image
        - search_parameters: Parameters used for the search

    Example:
        >>> result = await search_products("HP Compaq LA2006x")
        >>> for product in result["products"]:
        ...     print(product["sku"], product["price"])
    """
    limit = max(1, min(100, limit))
    offset = max(0, offset)
    client = get_intershop_client()

    if category:
        result = await client.get_category_products(category, limit=limit, offset=offset)
    else:
        result = await client.search_products(query, limit=limit, offset=offset)

    return await _summarize_listing(
        result, query=query, category=category, limit=limit, offset=offset
    )


async def advanced_product_search(
    query: str = "",
    category: str = "",
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    brand: str = "",
    sort_by: str = "relevance",
    limit: int = 24,
    offset: int = 0,
) -> Dict[str, Any]:
    """Search the catalog with price, brand and category filters."""
    if min_price is not None and max_price is not None and min_price > max_price:
        raise ToolError("min_price must not exceed max_price")

    limit = max(1, min(100, limit))
    client = get_intershop_client()
    result = await client.advanced_product_search(
        query=query,
        category=category,
        min_price=min_price,
        max_price=max_price,
        brand=brand,
        sort_by=sort_by,
        limit=limit,
        offset=max(0, offset),
    )
    return await _summarize_listing(
        result,
        query=query,
        category=category,
        min_price=min_price,
        max_price=max_price,
        brand=brand,
        sort_by=sort_by,
        limit=limit,
        offset=offset,
    )


async def get_product_details(sku: str) -> Dict[str, Any]:
    """Get full product information for one SKU.

    Args:
        sku: Product SKU, e.g. "201807231-01".

    Returns:
        Dictionary with name, descriptions (plain text), canonical price,
        availability, attributes, images, manufacturer and category path.
    """
    if not sku:
        raise ToolError("sku is required")

    client = get_intershop_client()
    product = await client.get_product(sku)

    price = price_to_dict(normalize_price(detail_price_source(product)))
    if price is None:
        enriched = await PriceEnricher(client).enrich([{"sku": sku}])
        price = enriched[0]["price"]

    ship_min = product.get("readyForShipmentMin")
    ship_max = product.get("readyForShipmentMax")
    category = product.get("defaultCategory") or {}

    return {
        "sku": product.get("sku") or sku,
        "name": product.get("productName") or product.get("name"),
        "description": strip_html(product.get("shortDescription")),
        "long_description": strip_html(product.get("longDescription")),
        "price": price,
        "availability": {
            "in_stock": product.get("inStock"),
            "available": product.get("availability"),
            "ready_for_shipment": (
                f"{ship_min}-{ship_max} days" if ship_min is not None and ship_max is not None else None
            ),
        },
        "attributes": client.format_product_attributes(product),
        "images": client.extract_product_images(product),
        "manufacturer": product.get("manufacturer"),
        "categories": category.get("categoryPath") or [],
    }


async def get_product_reviews(sku: str) -> Dict[str, Any]:
    client = get_intershop_client()
    return {"sku": sku, "reviews": await client.get_product_reviews(sku)}


async def get_similar_products(sku: str) -> Dict[str, Any]:
    """Recommendations for a product, summarized and priced."""
    client = get_intershop_client()
    result = await client.get_similar_products(sku)
    listing = await _summarize_listing(result, sku=sku)
    return {"sku": sku, "count": listing["count"], "products": listing["products"]}


async def check_product_availability(sku: str) -> Dict[str, Any]:
    client = get_intershop_client()
    return {"sku": sku, "availability": await client.check_availability(sku)}


async def get_categories(category_id: Optional[str] = None) -> Dict[str, Any]:
    """List top-level categories, or one category when an ID is given."""
    client = get_intershop_client()
    if category_id:
        return {"category": await client.get_category(category_id)}
    return {"categories": await client.get_categories()}


async def get_category_products(
    category_id: str,
    limit: int = 24,
    offset: int = 0,
) -> Dict[str, Any]:
    client = get_intershop_client()
    limit = max(1, min(100, limit))
    result = await client.get_category_products(category_id, limit=limit, offset=max(0, offset))
    return await _summarize_listing(result, category=category_id, limit=limit, offset=offset)
