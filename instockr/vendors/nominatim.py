"""Client utilities for the OpenStreetMap Nominatim API."""

import logging
from typing import Any, Dict, List

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://nominatim.openstreetmap.org"


class NominatimError(RuntimeError):
    """Raised when Nominatim cannot be reached or answers with an error."""


def _get(path: str, params: Dict[str, Any], user_agent: str, timeout: float) -> Any:
    try:
        response = _SESSION.get(
            f"{_BASE_URL}/{path}",
            params=params,
            headers={"User-Agent": user_agent},
            timeout=timeout,
        )
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error("Nominatim %s failed: %s", path, exc)
        raise NominatimError(str(exc)) from exc


def search(query: str, user_agent: str, *, limit: int = 1, timeout: float = 10) -> List[Dict[str, Any]]:
    params = {"format": "json", "q": query, "limit": limit, "addressdetails": 1}
    payload = _get("search", params, user_agent, timeout)
    if not isinstance(payload, list):
        raise NominatimError(f"unexpected search payload: {type(payload).__name__}")
    return payload


def autocomplete(text: str, user_agent: str, *, limit: int = 5, timeout: float = 10) -> List[Dict[str, Any]]:
    params = {"format": "json", "q": text, "limit": limit, "addressdetails": 1, "extratags": 1}
    payload = _get("search", params, user_agent, timeout)
    if not isinstance(payload, list):
        raise NominatimError(f"unexpected autocomplete payload: {type(payload).__name__}")
    return payload


def reverse(lat: float, lng: float, user_agent: str, *, timeout: float = 2) -> Dict[str, Any]:
    params = {"format": "json", "lat": lat, "lon": lng, "addressdetails": 1, "accept-language": "en"}
    payload = _get("reverse", params, user_agent, timeout)
    if not isinstance(payload, dict):
        raise NominatimError(f"unexpected reverse payload: {type(payload).__name__}")
    if "error" in payload:
        raise NominatimError(str(payload["error"]))
    return payload
