"""Utilities for transforming provider responses into ``Store`` records.

Each provider gets its own small struct parsed from the raw payload; only the
struct's ``to_store`` crosses into the rest of the pipeline, so provider
specific keys never leak past this module.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from instockr.core.distance import distance_km
from instockr.etl.contacts import extract_address, extract_phones, extract_price
from instockr.models import Coordinates, ProductOffer, Store

logger = logging.getLogger(__name__)

ADDRESS_UNAVAILABLE = "Address not available"
ONLINE_ADDRESS = "Online / Italy"
PRICE_PLACEHOLDER = "Contact store for pricing"
AVAILABILITY_PLACEHOLDER = "Contact store for availability"
WEBSITE_AVAILABILITY = "Check website for availability"

SOURCE_OSM = "OpenStreetMap"
SOURCE_GOOGLE_MAPS = "Google Maps"
SOURCE_GOOGLE_SHOPPING = "Google Shopping"
SOURCE_WEB_SEARCH = "Web Search"
SOURCE_AI_CRAWL = "AI Crawl"

MARKDOWN_PREVIEW_CHARS = 300

_GOOGLE_TYPE_MAP = (
    ("electronics_store", "electronics"),
    ("home_goods_store", "department"),
    ("hardware_store", "department"),
    ("pharmacy", "pharmacy"),
    ("drugstore", "pharmacy"),
    ("grocery_or_supermarket", "grocery"),
    ("supermarket", "grocery"),
)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def domain_of(url: Optional[str]) -> str:
    if not url:
        return ""
    parsed = urlparse(url if "://" in url else f"https://{url}")
    host = (parsed.hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


def online_store_type(url: Optional[str], merchant: Optional[str] = None) -> str:
    haystack = f"{url or ''} {merchant or ''}".lower()
    if any(token in haystack for token in ("amazon", "ebay", "marketplace")):
        return "marketplace"
    if any(token in haystack for token in ("mediaworld", "unieuro", "euronics", "electronics")):
        return "electronics"
    if any(token in haystack for token in ("tim.it", "vodafone", "windtre", "iliad")):
        return "mobile_carrier"
    return "retail"


def google_store_type(types: Iterable[str]) -> str:
    type_set = set(types or [])
    for google_type, store_type in _GOOGLE_TYPE_MAP:
        if google_type in type_set:
            return store_type
    return "retail"


# ---------- OpenStreetMap ----------


@dataclass(slots=True)
class OsmElement:
    osm_type: str
    osm_id: Any
    lat: float
    lng: float
    tags: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, element: Dict[str, Any]) -> Optional["OsmElement"]:
        tags = element.get("tags") or {}
        center = element.get("center") or {}
        lat = _safe_float(element.get("lat", center.get("lat")))
        lng = _safe_float(element.get("lon", center.get("lon")))
        if lat is None or lng is None or not tags.get("name"):
            return None
        return cls(
            osm_type=str(element.get("type") or "node"),
            osm_id=element.get("id"),
            lat=lat,
            lng=lng,
            tags=tags,
        )

    @property
    def key(self) -> str:
        return f"osm-{self.osm_type}-{self.osm_id}"

    def tag_address(self) -> Optional[str]:
        parts: List[str] = []
        street = self.tags.get("addr:street")
        housenumber = self.tags.get("addr:housenumber")
        if street and housenumber:
            parts.append(f"{housenumber} {street}")
        elif street:
            parts.append(street)
        if self.tags.get("addr:city"):
            parts.append(self.tags["addr:city"])
        if self.tags.get("addr:postcode"):
            parts.append(self.tags["addr:postcode"])
        address = ", ".join(parts)
        return address if len(address) >= 5 else None

    def to_store(self, origin: Coordinates, address: str) -> Store:
        hours = self.tags.get("opening_hours")
        return Store(
            id=self.key,
            name=self.tags["name"],
            store_type=self.tags.get("shop") or self.tags.get("amenity") or "unknown",
            address=address,
            source=SOURCE_OSM,
            latitude=self.lat,
            longitude=self.lng,
            distance_km=distance_km(origin.lat, origin.lng, self.lat, self.lng),
            phone=self.tags.get("phone") or self.tags.get("contact:phone"),
            url=self.tags.get("website") or self.tags.get("contact:website"),
            opening_hours=[hours] if hours else [],
            place_id=self.key,
        )


# ---------- Google Maps ----------


@dataclass(slots=True)
class PlaceResult:
    place_id: str
    name: str
    lat: float
    lng: float
    formatted_address: Optional[str] = None
    types: List[str] = field(default_factory=list)
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    photo_reference: Optional[str] = None

    @classmethod
    def from_raw(cls, result: Dict[str, Any]) -> Optional["PlaceResult"]:
        location = (result.get("geometry") or {}).get("location") or {}
        lat = _safe_float(location.get("lat"))
        lng = _safe_float(location.get("lng"))
        name = _strip_or_none(result.get("name"))
        if not name or lat is None or lng is None:
            return None
        photos = result.get("photos") or []
        return cls(
            place_id=str(result.get("place_id") or ""),
            name=name,
            lat=lat,
            lng=lng,
            formatted_address=_strip_or_none(result.get("formatted_address")),
            types=list(result.get("types") or []),
            rating=_safe_float(result.get("rating")),
            user_ratings_total=result.get("user_ratings_total"),
            photo_reference=photos[0].get("photo_reference") if photos and isinstance(photos[0], dict) else None,
        )

    def to_store(
        self,
        origin: Coordinates,
        index: int,
        product_name: str,
        *,
        website: Optional[str] = None,
        phone: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> Store:
        return Store(
            id=f"google-maps-{_now_ms()}-{index}",
            name=self.name,
            store_type=google_store_type(self.types),
            address=self.formatted_address or ADDRESS_UNAVAILABLE,
            source=SOURCE_GOOGLE_MAPS,
            latitude=self.lat,
            longitude=self.lng,
            distance_km=distance_km(origin.lat, origin.lng, self.lat, self.lng),
            phone=phone,
            url=website,
            product=ProductOffer(
                name=product_name,
                price=PRICE_PLACEHOLDER,
                description=f"{product_name} potentially available",
                availability=AVAILABILITY_PLACEHOLDER,
            ),
            rating=self.rating,
            user_ratings_total=self.user_ratings_total,
            place_id=self.place_id or None,
            photo_url=photo_url,
        )


# ---------- Google Shopping ----------


@dataclass(slots=True)
class ShoppingResult:
    title: str
    link: str
    merchant: Optional[str] = None
    price: Optional[str] = None
    snippet: Optional[str] = None

    @classmethod
    def from_raw(cls, item: Dict[str, Any]) -> Optional["ShoppingResult"]:
        title = _strip_or_none(item.get("title"))
        link = _strip_or_none(item.get("link") or item.get("product_link"))
        if not title or not link:
            return None
        snippet = _strip_or_none(item.get("snippet"))
        if not snippet and item.get("extensions"):
            snippet = ", ".join(str(ext) for ext in item["extensions"])
        return cls(
            title=title,
            link=link,
            merchant=_strip_or_none(item.get("source")),
            price=_strip_or_none(item.get("price")),
            snippet=snippet,
        )

    def to_store(self, query: str, index: int) -> Store:
        price = self.price or extract_price(self.snippet) or PRICE_PLACEHOLDER
        return Store(
            id=f"google-shopping-{_now_ms()}-{index}",
            name=self.merchant or self.title,
            store_type=online_store_type(self.link, self.merchant),
            address=ONLINE_ADDRESS,
            source=SOURCE_GOOGLE_SHOPPING,
            url=self.link,
            is_online=True,
            product=ProductOffer(
                name=self.title,
                price=price,
                description=self.snippet or f"{query} available",
                availability=WEBSITE_AVAILABILITY,
            ),
        )


# ---------- Firecrawl online search ----------


@dataclass(slots=True)
class CrawlResult:
    title: str
    url: str
    markdown: Optional[str] = None

    @classmethod
    def from_raw(cls, item: Dict[str, Any]) -> Optional["CrawlResult"]:
        title = _strip_or_none(item.get("title"))
        url = _strip_or_none(item.get("url"))
        if not title or not url:
            return None
        return cls(title=title, url=url, markdown=_strip_or_none(item.get("markdown")))

    def to_store(self, product_name: str, query_label: str, index: int) -> Store:
        if self.markdown:
            description = self.markdown[:MARKDOWN_PREVIEW_CHARS] + "..."
        else:
            description = f"{product_name} available"
        slug = "-".join(query_label.lower().split())
        return Store(
            id=f"{slug}-{index}-{_now_ms()}",
            name=self.title,
            store_type=online_store_type(self.url),
            address=ONLINE_ADDRESS,
            source=SOURCE_AI_CRAWL,
            url=self.url,
            is_online=True,
            product=ProductOffer(
                name=product_name,
                price=extract_price(self.markdown) or PRICE_PLACEHOLDER,
                description=description,
                availability=WEBSITE_AVAILABILITY,
            ),
        )


# ---------- Web search ----------


@dataclass(slots=True)
class WebResult:
    title: str
    link: str
    snippet: str = ""
    display_link: Optional[str] = None

    @classmethod
    def from_raw(cls, item: Dict[str, Any]) -> Optional["WebResult"]:
        title = _strip_or_none(item.get("title"))
        link = _strip_or_none(item.get("link"))
        if not title or not link:
            return None
        return cls(
            title=title,
            link=link,
            snippet=str(item.get("snippet") or ""),
            display_link=_strip_or_none(item.get("displayLink")),
        )

    @property
    def domain(self) -> str:
        return domain_of(self.link) or (self.display_link or "unknown")

    def store_type(self) -> str:
        domain = self.domain
        title = self.title.lower()
        snippet = self.snippet.lower()
        if any(name in domain for name in ("mediaworld", "unieuro", "euronics")) or "electronics" in title or "elettronica" in snippet:
            return "electronics"
        if "farmacia" in domain or "pharmacy" in title or "farmacia" in snippet:
            return "pharmacy"
        if "supermercato" in domain or "grocery" in title or "supermercato" in snippet:
            return "grocery"
        if "department" in title or "grande magazzino" in snippet:
            return "department"
        return "specialty"

    def to_store(self, product_name: str, index: int, default_region: Optional[str] = None) -> Optional[Store]:
        """Build a store only when the snippet carries something locatable."""
        address = extract_address(self.snippet)
        phones = extract_phones(self.snippet, default_region)
        title = self.title.lower()
        if not (address or phones or "store" in title or "negozio" in title):
            return None

        label = self.domain.split(".")[0] or self.title.split(" ")[0]
        return Store(
            id=f"web-store-{_now_ms()}-{index}",
            name=label[:1].upper() + label[1:],
            store_type=self.store_type(),
            address=address or f"Found via web search - {self.domain}",
            source=SOURCE_WEB_SEARCH,
            phone=phones[0] if phones else None,
            url=self.link,
            product=ProductOffer(
                name=product_name,
                price=PRICE_PLACEHOLDER,
                description=f"{product_name} potentially available - found via web search",
                availability=AVAILABILITY_PLACEHOLDER,
            ),
        )
