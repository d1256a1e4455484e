"""Price normalization for the Intershop price payloads.

The REST API answers with one of three incompatible price layouts depending on
the endpoint and version. :func:`classify_price` tags a payload with its shape,
:func:`normalize_price` turns any tagged payload into a :class:`CanonicalPrice`.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from ..models.schemas import CanonicalPrice, PricePoint, PriceShape

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY_SYMBOL = "$"

LEGACY_LIST_KEYS = ("listPrice",)
LEGACY_SALE_KEYS = ("salesPrice", "salePrice")


@dataclass(frozen=True)
class StructuredRawPrice:
    """Shape A: ``{"prices": {"SalePrice": [...], "ListPrice": [...]}}``."""

    sale_entry: Optional[Mapping[str, Any]]
    list_entry: Optional[Mapping[str, Any]]
    shape: PriceShape = PriceShape.STRUCTURED


@dataclass(frozen=True)
class LegacyRawPrice:
    """Shape B: ``{"listPrice": {...}, "salesPrice": {...}}``."""

    sale_entry: Optional[Mapping[str, Any]]
    list_entry: Optional[Mapping[str, Any]]
    shape: PriceShape = PriceShape.LEGACY


@dataclass(frozen=True)
class FlatRawPrice:
    """Shape C: a single ``{"value": ..., "currency": ...}`` object."""

    entry: Mapping[str, Any]
    shape: PriceShape = PriceShape.FLAT


RawPrice = Union[StructuredRawPrice, LegacyRawPrice, FlatRawPrice]


def format_amount(value: float, currency: str) -> str:
    """Format a monetary amount with exactly two decimals."""
    return f"{currency} {value:.2f}"


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        logger.warning(f"Failed to parse price value of type {type(value).__name__}")
        return None
    if not math.isfinite(number):
        logger.warning(f"Ignoring non-finite price value: {number}")
        return None
    return number


def _first_entry(entries: Any) -> Optional[Mapping[str, Any]]:
    """First element of a price array; a lone object is accepted too."""
    if isinstance(entries, Mapping):
        return entries
    if isinstance(entries, (list, tuple)) and entries and isinstance(entries[0], Mapping):
        return entries[0]
    return None


def _first_present(raw: Mapping[str, Any], keys) -> Optional[Mapping[str, Any]]:
    for key in keys:
        entry = raw.get(key)
        if isinstance(entry, Mapping):
            return entry
    return None


def classify_price(raw: Any) -> Optional[RawPrice]:
    """Tag a raw price payload with its shape.

    Args:
        raw: Payload as decoded from JSON.

    Returns:
        The tagged payload, or None when there is nothing to classify.
    """
    if raw is None:
        return None

    if not isinstance(raw, Mapping):
        logger.warning(f"Ignoring price payload of type {type(raw).__name__}")
        return None

    if raw.get("prices") is not None:
        prices = raw["prices"]
        if not isinstance(prices, Mapping):
            logger.warning("Structured price payload without a price mapping")
            return StructuredRawPrice(sale_entry=None, list_entry=None)
        return StructuredRawPrice(
            sale_entry=_first_entry(prices.get("SalePrice")),
            list_entry=_first_entry(prices.get("ListPrice")),
        )

    if any(key in raw for key in LEGACY_LIST_KEYS + LEGACY_SALE_KEYS):
        return LegacyRawPrice(
            sale_entry=_first_present(raw, LEGACY_SALE_KEYS),
            list_entry=_first_present(raw, LEGACY_LIST_KEYS),
        )

    return FlatRawPrice(entry=raw)


def _flat_point(entry: Optional[Mapping[str, Any]]) -> Optional[PricePoint]:
    """Price point from a ``{value, currency|currencyMnemonic}`` object."""
    if not entry:
        return None

    value = _to_float(entry.get("value"))
    if value is None:
        return None

    currency = entry.get("currency") or entry.get("currencyMnemonic") or DEFAULT_CURRENCY_SYMBOL
    return PricePoint(gross=value, currency=currency, formatted=format_amount(value, currency))


def _structured_point(entry: Optional[Mapping[str, Any]]) -> Optional[PricePoint]:
    """Price point from a ``{gross: {...}, net: {...}}`` element."""
    if not entry:
        return None

    gross = entry.get("gross") if isinstance(entry.get("gross"), Mapping) else {}
    net = entry.get("net") if isinstance(entry.get("net"), Mapping) else {}

    if not gross and not net:
        # Some elements carry the amount directly
        return _flat_point(entry)

    gross_value = _to_float(gross.get("value"))
    net_value = _to_float(net.get("value"))
    display_value = gross_value if gross_value is not None else net_value
    if display_value is None:
        return None

    currency = (
        gross.get("currency")
        or net.get("currency")
        or entry.get("currency")
        or DEFAULT_CURRENCY_SYMBOL
    )
    return PricePoint(
        gross=gross_value,
        net=net_value,
        currency=currency,
        formatted=format_amount(display_value, currency),
    )


def normalize_price(raw: Any) -> Optional[CanonicalPrice]:
    """Normalize any known upstream price payload.

    Args:
        raw: Price payload in shape A, B or C, or None.

    Returns:
        CanonicalPrice, or None when no price is known.

    Example:
        >>> price = normalize_price({"listPrice": {"value": 5, "currency": "EUR"}})
        >>> price.formatted_list
        'EUR 5.00'
    """
    tagged = classify_price(raw)
    if tagged is None:
        return None

    if isinstance(tagged, StructuredRawPrice):
        sale = _structured_point(tagged.sale_entry)
        listed = _structured_point(tagged.list_entry)
    elif isinstance(tagged, LegacyRawPrice):
        sale = _flat_point(tagged.sale_entry)
        listed = _flat_point(tagged.list_entry)
    else:
        sale = _flat_point(tagged.entry)
        listed = None
        if sale is None:
            return None

    currency = (sale or listed).currency if (sale or listed) else None
    return CanonicalPrice(
        shape=tagged.shape,
        currency=currency,
        sale_price=sale,
        list_price=listed,
    )


def price_to_dict(price: Optional[CanonicalPrice]) -> Optional[dict]:
    """JSON-ready form of a canonical price."""
    return price.model_dump(mode="json") if price else None
