"""Client utilities for the Google Places API."""

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://maps.googleapis.com/maps/api/place"

DETAIL_FIELDS = "website,formatted_phone_number"
VERIFY_FIELDS = "name,opening_hours,rating,user_ratings_total,photos"


class GooglePlacesError(RuntimeError):
    """Raised when the Places API returns a non-successful response."""


def _checked(payload: Dict[str, Any], operation: str) -> Dict[str, Any]:
    status = payload.get("status")
    if status not in {"OK", "ZERO_RESULTS"}:
        logger.error("%s failed: status=%s, error_message=%s", operation, status, payload.get("error_message"))
        raise GooglePlacesError(payload.get("error_message") or status)
    return payload


def text_search(
    query: str,
    api_key: str,
    *,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
    radius_m: Optional[int] = None,
    pagetoken: Optional[str] = None,
) -> Dict[str, Any]:
    params: Dict[str, Any] = {"query": query, "key": api_key}
    if lat is not None and lng is not None:
        params["location"] = f"{lat},{lng}"
    if radius_m:
        params["radius"] = radius_m
    if pagetoken:
        params["pagetoken"] = pagetoken
    response = _SESSION.get(f"{_BASE_URL}/textsearch/json", params=params, timeout=10)
    response.raise_for_status()
    return _checked(response.json(), "text_search")


def place_details(place_id: str, api_key: str, fields: str = DETAIL_FIELDS) -> Dict[str, Any]:
    params = {"place_id": place_id, "key": api_key, "fields": fields}
    response = _SESSION.get(f"{_BASE_URL}/details/json", params=params, timeout=10)
    response.raise_for_status()
    payload = _checked(response.json(), "place_details")
    return payload.get("result", {})


def autocomplete(text: str, api_key: str, types: str = "(cities)") -> List[Dict[str, Any]]:
    params = {"input": text, "types": types, "key": api_key}
    response = _SESSION.get(f"{_BASE_URL}/autocomplete/json", params=params, timeout=10)
    response.raise_for_status()
    payload = _checked(response.json(), "autocomplete")
    return payload.get("predictions") or []


def photo_url(photo_reference: str, api_key: str, max_width: int = 400) -> str:
    return (
        f"{_BASE_URL}/photo?maxwidth={max_width}"
        f"&photo_reference={photo_reference}&key={api_key}"
    )
