"""Text helpers for product copy returned by the storefront API."""

from typing import Optional

from bs4 import BeautifulSoup


def strip_html(html: Optional[str]) -> Optional[str]:
    """Convert an HTML fragment to plain text.

    Product descriptions from ICM are authored as HTML. Whitespace is
    collapsed and block elements become single spaces.

    Args:
        html: HTML fragment or plain text.

    Returns:
        Plain text, or None for empty input.
    """
    if not html:
        return None

    text = BeautifulSoup(html, "lxml").get_text(" ", strip=True)
    return " ".join(text.split()) or None


def truncate(text: Optional[str], limit: int = 200) -> Optional[str]:
    """Shorten text to ``limit`` characters on a word boundary."""
    if not text or len(text) <= limit:
        return text
    return text[:limit].rsplit(" ", 1)[0] + "..."
