"""Product extraction from a store's own search page."""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import quote, quote_plus, urlparse

import requests
from bs4 import BeautifulSoup
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from instockr.core.config import Settings, get_settings
from instockr.models import ProductMatch
from instockr.vendors import llm

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; InStockrBot/1.0)"
REQUEST_TIMEOUT = 15
HTML_SLICE = 50000
NOISE_TAGS = ("script", "style", "noscript", "svg", "iframe", "head")

SYSTEM_PROMPT = "You extract structured product data from raw HTML pages."

EXTRACTION_PROMPT = """You are a smart product extraction AI. Given the raw HTML content of a search page from an e-commerce website, extract all products clearly matching the term "{product}". Only include products with actual prices.

Return a JSON array of objects like this:
[
  {{
    "name": "iPhone 15 Pro 256GB",
    "price": "1.199,00€",
    "url": "https://...",
    "image": "https://...",
    "availability": "in stock",
    "description": "..."
  }}
]

Here is the page content:

{html}
"""


class ExtractedProduct(BaseModel):
    name: str = Field(min_length=1)
    price: str = Field(min_length=1)
    description: Optional[str] = None
    availability: Optional[str] = None
    url: Optional[str] = None
    image: Optional[str] = None


_PRODUCTS = TypeAdapter(List[ExtractedProduct])


def build_search_url(website: str, product_name: str) -> str:
    """Search page for a store website; raises ``ValueError`` for non-URLs."""
    parsed = urlparse(website.strip() if "://" in website else f"https://{website.strip()}")
    if not parsed.netloc:
        raise ValueError("website must be an absolute URL")

    host = parsed.netloc.lower()
    origin = f"{parsed.scheme}://{parsed.netloc}"
    if "apple.com" in host and "/retail/" in parsed.path:
        return f"https://www.apple.com/de/search/{quote(product_name)}?tab=products"
    if "saturn.de" in host:
        return f"https://www.saturn.de/de/search.html?query={quote_plus(product_name)}"
    if "mediamarkt.de" in host:
        return f"https://www.mediamarkt.de/de/search.html?query={quote_plus(product_name)}"
    if ".de" in host:
        return f"{origin}/de/search?q={quote_plus(product_name)}"
    return f"{origin}/search?q={quote_plus(product_name)}"


def reduce_html(html: str, limit: int = HTML_SLICE) -> str:
    """Drop markup that carries no product data and cap the size sent to the model."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(NOISE_TAGS):
        tag.decompose()
    return str(soup)[:limit]


def parse_products(text: str) -> List[ProductMatch]:
    items = _PRODUCTS.validate_json(llm.extract_json(text, opening="[", closing="]"))
    return [ProductMatch(**item.model_dump()) for item in items]


class ProductCrawler:
    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None) -> None:
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        self.session.headers.setdefault("Accept", "text/html,application/xhtml+xml")

    def _fetch(self, url: str) -> Optional[str]:
        try:
            response = self.session.get(url, timeout=REQUEST_TIMEOUT, allow_redirects=True)
        except requests.RequestException as exc:
            logger.warning("Failed to fetch %s: %s", url, exc)
            return None
        if response.status_code != 200:
            logger.warning("Search page %s returned %s", url, response.status_code)
            return None
        return response.text

    def crawl(self, store_name: Optional[str], website: str, product_name: str) -> List[ProductMatch]:
        """Products on ``website`` matching ``product_name``; ``[]`` when anything fails."""
        if not self.settings.openai_api_key:
            logger.warning("Product crawl skipped: OPENAI_API_KEY missing")
            return []

        url = build_search_url(website, product_name)
        logger.info("Crawling %s for %s at %s", store_name or website, product_name, url)
        html = self._fetch(url)
        if not html:
            return []

        try:
            reply = llm.chat_completion(
                EXTRACTION_PROMPT.format(product=product_name, html=reduce_html(html)),
                api_key=self.settings.openai_api_key,
                model=self.settings.openai_crawl_model,
                system=SYSTEM_PROMPT,
                temperature=0,
                max_tokens=1200,
            )
            products = parse_products(reply)
        except llm.LlmError as exc:
            logger.warning("Product extraction failed for %s: %s", url, exc)
            return []
        except ValidationError as exc:
            logger.warning("Product extraction reply for %s failed validation: %s", url, exc)
            return []

        logger.info("Extracted %d products from %s", len(products), url)
        return products

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "ProductCrawler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
