"""Intershop Commerce Management (ICM) REST API client."""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..config import get_settings
from ..models.schemas import ProductImage
from ..utils.http_client import RetryClient
from .base import RestApiClient

logger = logging.getLogger(__name__)


class IntershopClient(RestApiClient):
    """Client for the ICM storefront REST API (products, categories, baskets)."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        retry_client: Optional[RetryClient] = None,
        image_host: Optional[str] = None,
    ):
        settings = get_settings()
        super().__init__(
            base_url=base_url or settings.INTERSHOP_BASE_URL,
            default_headers={
                "Accept": "application/json",
                "Accept-Language": settings.ACCEPT_LANGUAGE,
            },
            retry_client=retry_client,
        )
        self.image_host = (image_host or settings.INTERSHOP_IMAGE_HOST).rstrip("/")
        self.price_accept_header = settings.PRICE_ACCEPT_HEADER

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def get_product(self, sku: str, **options: Any) -> Dict[str, Any]:
        """Get a single product with all images and extended attributes."""
        params = {"allImages": True, "extended": True, **options}
        return await self.get("/products/{sku}", params, {"sku": sku})

    async def search_products(
        self,
        query: str = "",
        limit: int = 24,
        offset: int = 0,
        **options: Any,
    ) -> Dict[str, Any]:
        params = {
            "searchTerm": query or None,
            "limit": limit,
            "offset": offset,
            "allImages": True,
            **options,
        }
        return await self.get("/products", params)

    async def advanced_product_search(
        self,
        query: str = "",
        category: str = "",
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        brand: str = "",
        sort_by: str = "relevance",
        limit: int = 24,
        offset: int = 0,
    ) -> Dict[str, Any]:
        """Product search with optional filters.

        Args:
            query: Search term.
            category: Category ID filter.
            min_price: Lower price bound.
            max_price: Upper price bound.
            brand: Manufacturer filter.
            sort_by: Sorting key understood by ICM.
            limit: Page size.
            offset: Page offset.

        Returns:
            Raw product collection.
        """
        params: Dict[str, Any] = {"limit": limit, "offset": offset, "allImages": True}

        if query:
            params["searchTerm"] = query
        if category:
            params["categoryId"] = category
        if min_price:
            params["priceFrom"] = min_price
        if max_price:
            params["priceTo"] = max_price
        if brand:
            params["manufacturer"] = brand
        if sort_by:
            params["sorting"] = sort_by

        return await self.get("/products", params)

    async def get_product_prices(self, skus: Sequence[str]) -> Any:
        """Bulk price lookup: ``GET /productprices?sku=..&sku=..``."""
        return await self.request(
            "GET",
            "/productprices",
            params=[("sku", sku) for sku in skus],
            headers={"Accept": self.price_accept_header},
        )

    async def get_product_reviews(self, sku: str) -> Any:
        return await self.get("/products/{sku}/reviews", path_params={"sku": sku})

    async def get_similar_products(self, sku: str) -> Any:
        return await self.get("/products/{sku}/recommendations", path_params={"sku": sku})

    async def check_availability(self, sku: str) -> Any:
        return await self.get("/products/{sku}/availability", path_params={"sku": sku})

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def get_categories(self) -> Any:
        return await self.get("/categories")

    async def get_category(self, category_id: str) -> Any:
        return await self.get("/categories/{id}", path_params={"id": category_id})

    async def get_category_products(
        self,
        category_id: str,
        limit: int = 24,
        offset: int = 0,
        **options: Any,
    ) -> Dict[str, Any]:
        params = {"limit": limit, "offset": offset, "allImages": True, **options}
        return await self.get("/categories/{id}/products", params, {"id": category_id})

    # ------------------------------------------------------------------
    # Baskets and checkout
    # ------------------------------------------------------------------

    async def create_basket(self) -> Dict[str, Any]:
        return await self.post("/baskets")

    async def get_basket(self, basket_id: str) -> Dict[str, Any]:
        return await self.get("/baskets/{id}", path_params={"id": basket_id})

    async def add_to_basket(self, basket_id: str, sku: str, quantity: int = 1) -> Any:
        return await self.post(
            "/baskets/{id}/items",
            {"sku": sku, "quantity": quantity},
            {"id": basket_id},
        )

    async def update_basket_item(self, basket_id: str, item_id: str, quantity: int) -> Any:
        return await self.put(
            "/baskets/{id}/items/{item}",
            {"quantity": quantity},
            {"id": basket_id, "item": item_id},
        )

    async def remove_from_basket(self, basket_id: str, item_id: str) -> Any:
        return await self.delete(
            "/baskets/{id}/items/{item}",
            {"id": basket_id, "item": item_id},
        )

    async def start_checkout(self, basket_id: str) -> Any:
        return await self.post("/baskets/{id}/checkout", path_params={"id": basket_id})

    # ------------------------------------------------------------------
    # Payload helpers
    # ------------------------------------------------------------------

    def extract_product_images(self, product: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Absolute image references for a product payload."""
        images = []
        for image in product.get("images") or []:
            url = image.get("effectiveUrl") or ""
            if url.startswith("/"):
                url = f"{self.image_host}{url}"

            width = image.get("imageActualWidth")
            height = image.get("imageActualHeight")
            images.append(
                ProductImage(
                    type=image.get("typeID"),
                    url=url,
                    size=f"{width}x{height}" if width and height else None,
                    view=image.get("viewID"),
                    is_primary=bool(image.get("primaryImage")),
                ).model_dump()
            )
        return images

    @staticmethod
    def format_product_attributes(product: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        """Attribute list as ``{name: {type, value}}``."""
        formatted = {}
        attributes = product.get("attributes")
        if not isinstance(attributes, list):
            return formatted

        for attribute in attributes:
            if not isinstance(attribute, Mapping):
                continue
            name = attribute.get("name")
            if name:
                formatted[name] = {
                    "type": attribute.get("type"),
                    "value": attribute.get("value"),
                }
        return formatted
