"""Basket and checkout tools."""

import logging
from typing import Any, Dict, Optional

from ..clients import get_intershop_client
from ..models.schemas import BasketLine, BasketSummary
from ..utils.prices import normalize_price, price_to_dict
from .errors import ToolError

logger = logging.getLogger(__name__)

BASKET_ACTIONS = ("create", "add_product", "view", "update", "remove")


def _unwrap(result: Any) -> Dict[str, Any]:
    """ICM v1 responses nest the resource under ``data``."""
    if isinstance(result, dict) and isinstance(result.get("data"), dict):
        return result["data"]
    return result if isinstance(result, dict) else {}


def _basket_id(result: Dict[str, Any]) -> Optional[str]:
    basket_id = result.get("basketId") or result.get("id")
    return str(basket_id) if basket_id is not None else None


def _quantity(quantity: Any) -> Any:
    # v1 line items report {"value": 2, "unit": ""}
    if isinstance(quantity, dict):
        return quantity.get("value")
    return quantity


def summarize_basket(result: Any, basket_id: Optional[str] = None) -> Dict[str, Any]:
    """Compact basket view with normalized prices."""
    basket = _unwrap(result)
    line_items = basket.get("lineItems") or []
    total = basket.get("total") or (basket.get("totals") or {}).get("grandTotal")

    items = [
        BasketLine(
            sku=item.get("sku") or item.get("product"),
            name=item.get("productName"),
            quantity=_quantity(item.get("quantity")),
            price=price_to_dict(normalize_price(item.get("singleBasePrice"))),
        )
        for item in line_items
        if isinstance(item, dict)
    ]

    return BasketSummary(
        basket_id=_basket_id(basket) or basket_id,
        item_count=len(items),
        total=price_to_dict(normalize_price(total)),
        items=items,
    ).model_dump()


async def manage_basket(
    action: str,
    basket_id: Optional[str] = None,
    sku: Optional[str] = None,
    quantity: int = 1,
    item_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Create, inspect and modify a shopping basket.

    Args:
        action: One of create, add_product, view, update, remove.
        basket_id: Basket ID (required for every action except create).
        sku: Product SKU (add_product).
        quantity: Quantity (add_product, update).
        item_id: Basket line item ID (update, remove).

    Returns:
        Dictionary describing the outcome of the action.

    Raises:
        ToolError: For an unknown action or missing arguments.
    """
    if action not in BASKET_ACTIONS:
        raise ToolError(f"Unknown basket action: {action}. Expected one of {', '.join(BASKET_ACTIONS)}")

    if action != "create" and not basket_id:
        raise ToolError(f"basket_id is required for {action}")

    if quantity < 1 and action in ("add_product", "update"):
        raise ToolError("quantity must be at least 1")

    client = get_intershop_client()

    if action == "create":
        basket = _unwrap(await client.create_basket())
        return {
            "action": action,
            "basket_id": _basket_id(basket),
            "status": basket.get("status") or "new",
        }

    if action == "add_product":
        if not sku:
            raise ToolError("sku is required for add_product")
        result = await client.add_to_basket(basket_id, sku, quantity)
        return {
            "action": action,
            "basket_id": basket_id,
            "sku": sku,
            "quantity": quantity,
            "result": result,
        }

    if action == "view":
        return {"action": action, **summarize_basket(await client.get_basket(basket_id), basket_id)}

    if not item_id:
        raise ToolError(f"item_id is required for {action}")

    if action == "update":
        result = await client.update_basket_item(basket_id, item_id, quantity)
    else:
        result = await client.remove_from_basket(basket_id, item_id)

    logger.info(f"Basket {basket_id}: {action} item {item_id}")
    return {"action": action, "basket_id": basket_id, "item_id": item_id, "result": result}


async def start_checkout(basket_id: str) -> Dict[str, Any]:
    """Start the checkout process for a basket."""
    if not basket_id:
        raise ToolError("basket_id is required")

    client = get_intershop_client()
    result = await client.start_checkout(basket_id)
    return {"basket_id": basket_id, "checkout": result}
