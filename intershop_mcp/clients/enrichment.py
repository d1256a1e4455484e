"""Best-effort price enrichment for catalog items.

Prices are looked up in one bulk ``/productprices`` call. If that call is
unusable for any reason, a bounded number of items is priced through
individual product detail requests instead. Failures never reach the caller:
an item that cannot be priced is returned with ``price`` set to None.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..config import get_settings
from ..utils.http_client import describe_error
from ..utils.prices import normalize_price, price_to_dict
from .intershop import IntershopClient

logger = logging.getLogger(__name__)

PRODUCT_URI_PATTERN = re.compile(r"/products/([^/?#;]+)/?(?:[?#].*)?$")

URI_FIELDS = ("uri", "link", "href")
LEGACY_PRICE_FIELDS = ("listPrice", "salesPrice", "salePrice")

# Raw price sub-object an item carried before enrichment
LISTING_PRICE_FIELD = "listing_price"


def extract_sku(item: Mapping[str, Any]) -> Optional[str]:
    """Derive the SKU of a catalog item.

    Uses the ``sku`` field, or the trailing segment of a ``.../products/{sku}``
    resource URI.

    Args:
        item: Catalog entry.

    Returns:
        SKU string or None.
    """
    sku = item.get("sku")
    if sku not in (None, ""):
        return str(sku)

    for field in URI_FIELDS:
        uri = item.get(field)
        if isinstance(uri, Mapping):
            uri = uri.get("uri") or uri.get("href")
        if isinstance(uri, str):
            match = PRODUCT_URI_PATTERN.search(uri)
            if match:
                return match.group(1)

    return None


def flatten_price_records(
    body: Any,
    requested_skus: Sequence[str],
) -> List[Tuple[str, Mapping[str, Any]]]:
    """Turn a bulk price response into ``(sku, record)`` pairs.

    Accepts a ``data`` sequence, an ``elements`` sequence or a bare sequence.
    Records without an SKU of their own are matched by request position.

    Args:
        body: Decoded response body.
        requested_skus: SKUs in the order they were requested.

    Returns:
        List of SKU-tagged raw price records.

    Raises:
        ValueError: If the body matches none of the known containers.
    """
    if isinstance(body, Mapping) and isinstance(body.get("data"), list):
        records = body["data"]
    elif isinstance(body, Mapping) and isinstance(body.get("elements"), list):
        records = body["elements"]
    elif isinstance(body, list):
        records = body
    else:
        raise ValueError(f"Unexpected price response: {type(body).__name__}")

    tagged = []
    for position, record in enumerate(records):
        if not isinstance(record, Mapping):
            continue

        sku = extract_sku(record)
        if sku is None and position < len(requested_skus):
            sku = requested_skus[position]
        if sku is None:
            logger.debug(f"Price record {position} has no SKU, skipping")
            continue

        tagged.append((sku, record))

    return tagged


def detail_price_source(product: Mapping[str, Any]) -> Any:
    """Pick the price payload out of a product detail record."""
    if product.get("price") is not None:
        return product["price"]
    if product.get("prices") is not None:
        return {"prices": product["prices"]}
    legacy = {key: product[key] for key in LEGACY_PRICE_FIELDS if product.get(key) is not None}
    return legacy or None


class PriceEnricher:
    """Attaches canonical prices to catalog items."""

    def __init__(
        self,
        client: IntershopClient,
        bulk_limit: Optional[int] = None,
        fallback_limit: Optional[int] = None,
    ):
        """Initialize the enricher.

        Args:
            client: Intershop client used for price and detail requests.
            bulk_limit: Max SKUs per bulk price request.
            fallback_limit: Max items priced through detail requests when
                the bulk request fails.
        """
        settings = get_settings()
        self.client = client
        self.bulk_limit = bulk_limit if bulk_limit is not None else settings.PRICE_BULK_LIMIT
        self.fallback_limit = (
            fallback_limit if fallback_limit is not None else settings.PRICE_FALLBACK_LIMIT
        )

    async def enrich(self, items: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """Return copies of ``items`` with a ``price`` field attached.

        Output has the same length and order as the input. This method does
        not raise for upstream failures.

        Args:
            items: Catalog entries (dicts with ``sku`` or a product ``uri``).

        Returns:
            Enriched copies of the items.
        """
        enriched: List[Dict[str, Any]] = []
        for item in items:
            copy = dict(item)
            sku = extract_sku(item)
            if sku is not None:
                copy["sku"] = sku
            if copy.get("price") is not None:
                copy[LISTING_PRICE_FIELD] = copy["price"]
            copy["price"] = None
            enriched.append(copy)

        skus: List[str] = []
        for entry in enriched:
            sku = entry.get("sku")
            if sku is not None and sku not in skus:
                skus.append(sku)
        skus = skus[: self.bulk_limit]

        if not skus:
            return enriched

        try:
            body = await self.client.get_product_prices(skus)
            records = flatten_price_records(body, skus)
        except Exception as e:
            logger.warning(
                f"Bulk price lookup failed for {len(skus)} SKUs, "
                f"falling back to product details: {describe_error(e)}"
            )
            return await self._enrich_from_details(enriched)

        prices: Dict[str, Any] = {}
        for sku, record in records:
            prices.setdefault(sku, record)

        for entry in enriched:
            record = prices.get(entry.get("sku"))
            if record is not None:
                entry["price"] = self._safe_normalize(record)

        return enriched

    async def _enrich_from_details(self, enriched: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        indices = [
            index
            for index, entry in enumerate(enriched[: self.fallback_limit])
            if entry.get("sku") is not None
        ]

        details = await asyncio.gather(
            *(self._fetch_detail(enriched[index]["sku"]) for index in indices)
        )

        for index, detail in zip(indices, details):
            if detail is not None:
                enriched[index].update(detail)

        skipped = len(enriched) - len(indices)
        if skipped:
            logger.info(f"{skipped} items left unpriced after bulk price failure")

        return enriched

    async def _fetch_detail(self, sku: str) -> Optional[Dict[str, Any]]:
        try:
            product = await self.client.get_product(sku)
        except Exception as e:
            logger.warning(f"Product detail fallback failed for {sku}: {describe_error(e)}")
            return None

        if not isinstance(product, Mapping):
            logger.warning(f"Unexpected product detail payload for {sku}")
            return None

        try:
            return {
                "price": self._safe_normalize(detail_price_source(product)),
                "availability": {
                    "in_stock": product.get("inStock"),
                    "available": product.get("availability"),
                },
                "manufacturer": product.get("manufacturer"),
                "attributes": self.client.format_product_attributes(product),
            }
        except Exception as e:
            logger.warning(f"Unusable product detail payload for {sku}: {type(e).__name__}: {e}")
            return None

    @staticmethod
    def _safe_normalize(raw: Any) -> Optional[Dict[str, Any]]:
        try:
            return price_to_dict(normalize_price(raw))
        except Exception as e:
            logger.warning(f"Discarding unusable price payload: {type(e).__name__}: {e}")
            return None
