"""Location resolution on top of Nominatim."""

import logging
import re
from typing import Any, Dict, List, Optional

from instockr.core.config import Settings, get_settings
from instockr.core.rate_limit import RateLimiter
from instockr.models import Coordinates
from instockr.vendors import nominatim

logger = logging.getLogger(__name__)

COORDINATE_PATTERN = re.compile(r"^\s*(-?\d+\.?\d*),\s*(-?\d+\.?\d*)\s*$")
MIN_AUTOCOMPLETE_LENGTH = 3


class LocationNotFound(LookupError):
    """Raised when a free-text location cannot be resolved to coordinates."""

    def __init__(self, location: str) -> None:
        super().__init__(f'Location "{location}" not found. Please try again.')
        self.location = location


def parse_coordinates(text: str) -> Optional[Coordinates]:
    """Parse a literal ``"lat,lng"`` string; ``None`` when it is anything else."""
    match = COORDINATE_PATTERN.match(text or "")
    if not match:
        return None
    lat, lng = float(match.group(1)), float(match.group(2))
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None
    return Coordinates(lat=lat, lng=lng)


def fallback_label(lat: float, lng: float) -> str:
    return f"Location: {lat:.3f}°, {lng:.3f}°"


class Geocoder:
    """Forward/reverse geocoding with Nominatim's one-request-per-second policy."""

    def __init__(self, settings: Optional[Settings] = None, limiter: Optional[RateLimiter] = None) -> None:
        self.settings = settings or get_settings()
        self.limiter = limiter or RateLimiter(self.settings.nominatim_min_interval)

    def geocode(self, location: str) -> Coordinates:
        literal = parse_coordinates(location)
        if literal is not None:
            logger.debug("Using literal coordinates %s", literal)
            return literal

        query = (location or "").strip()
        if not query:
            raise LocationNotFound(location)

        self.limiter.acquire()
        try:
            results = nominatim.search(query, self.settings.nominatim_user_agent, limit=1)
        except nominatim.NominatimError as exc:
            logger.warning("Geocoding %r failed: %s", query, exc)
            raise LocationNotFound(location) from exc

        if not results:
            logger.info("No geocoding results for %r", query)
            raise LocationNotFound(location)

        top = results[0]
        try:
            coords = Coordinates(lat=float(top["lat"]), lng=float(top["lon"]))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed geocoding result for %r: %s", query, top)
            raise LocationNotFound(location) from exc

        logger.info("Geocoded %r to %s (%s)", query, coords, top.get("display_name"))
        return coords

    def reverse_label(self, lat: float, lng: float, store_name: Optional[str] = None) -> str:
        """Short address for a coordinate; never raises."""
        self.limiter.acquire()
        try:
            payload = nominatim.reverse(lat, lng, self.settings.nominatim_user_agent)
        except nominatim.NominatimError as exc:
            logger.warning("Reverse geocoding failed for %s: %s", store_name or "unknown", exc)
            return fallback_label(lat, lng)

        display_name = payload.get("display_name")
        if not display_name:
            return fallback_label(lat, lng)
        parts = str(display_name).split(", ")
        return ", ".join(parts[:4])

    def autocomplete(self, text: str) -> List[Dict[str, Any]]:
        query = (text or "").strip()
        if len(query) < MIN_AUTOCOMPLETE_LENGTH:
            return []

        self.limiter.acquire()
        items = nominatim.autocomplete(query, self.settings.nominatim_user_agent, limit=5)
        return [_to_prediction(item) for item in items[:5]]


def _to_prediction(item: Dict[str, Any]) -> Dict[str, Any]:
    address = item.get("address") or {}
    parts: List[str] = []
    if address.get("house_number") and address.get("road"):
        parts.append(f"{address['house_number']} {address['road']}")
    elif address.get("road"):
        parts.append(address["road"])
    area = address.get("suburb") or address.get("city_district")
    if area:
        parts.append(area)
    city = address.get("city") or address.get("town") or address.get("village")
    if city:
        parts.append(city)
    if address.get("state"):
        parts.append(address["state"])
    if address.get("country"):
        parts.append(address["country"])

    description = ", ".join(parts) or item.get("display_name") or ""
    main_text = address.get("road") or city or item.get("name") or description
    secondary_text = address.get("city") or address.get("state") or address.get("country") or ""
    return {
        "description": description,
        "place_id": f"osm-{item.get('place_id')}",
        "structured_formatting": {"main_text": main_text, "secondary_text": secondary_text},
    }
