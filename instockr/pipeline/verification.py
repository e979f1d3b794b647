"""Confirm that a store exists on Google Maps and pull its opening hours."""

import logging
from typing import Any, Dict, Optional

import requests

from instockr.core.config import Settings, get_settings
from instockr.models import Coordinates
from instockr.vendors import google_places

logger = logging.getLogger(__name__)

VERIFY_BIAS_RADIUS_M = 500


class VerificationUnavailable(RuntimeError):
    """Raised when no Google Maps key is configured."""


def verify_store(
    store_name: str,
    address: str,
    settings: Optional[Settings] = None,
    coords: Optional[Coordinates] = None,
) -> Dict[str, Any]:
    """Look the store up by name and address.

    Known coordinates bias the text search towards the listing's own
    neighbourhood. Text search errors propagate. A failed details lookup
    still counts as verified, carrying only what the search result had.
    """
    settings = settings or get_settings()
    api_key = settings.google_maps_api_key
    if not api_key:
        raise VerificationUnavailable("GOOGLE_MAPS_API_KEY is not configured")

    query = f"{store_name} {address}".strip()
    logger.info("Verifying store: %s", query)
    bias: Dict[str, Any] = {}
    if coords is not None:
        bias = {"lat": coords.lat, "lng": coords.lng, "radius_m": VERIFY_BIAS_RADIUS_M}
    results = google_places.text_search(query, api_key, **bias).get("results") or []
    if not results:
        logger.info("No Google Maps match for %s", query)
        return {"verified": False}

    place = results[0]
    place_id = place.get("place_id")
    try:
        details = google_places.place_details(place_id, api_key, fields=google_places.VERIFY_FIELDS)
    except (google_places.GooglePlacesError, requests.RequestException) as exc:
        logger.warning("Failed to get place details for %s: %s", place_id, exc)
        details = None

    if not details:
        return {
            "verified": True,
            "googlePlaceId": place_id,
            "rating": place.get("rating"),
            "userRatingsTotal": place.get("user_ratings_total"),
        }

    hours = details.get("opening_hours") or {}
    photos = details.get("photos") or []
    reference = photos[0].get("photo_reference") if photos else None
    return {
        "verified": True,
        "googlePlaceId": place_id,
        "rating": details.get("rating"),
        "userRatingsTotal": details.get("user_ratings_total"),
        "openingHours": hours.get("weekday_text"),
        "isOpen": hours.get("open_now"),
        "photoUrl": google_places.photo_url(reference, api_key) if reference else None,
    }
