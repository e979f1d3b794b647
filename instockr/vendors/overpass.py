"""Client utilities for the OpenStreetMap Overpass API."""

import logging
from typing import Any, Dict, List

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()

PRIMARY_URL = "https://overpass-api.de/api/interpreter"
FALLBACK_URL = "https://overpass.kumi.systems/api/interpreter"
PRIMARY_TIMEOUT = 8
FALLBACK_TIMEOUT = 6
MAX_QUERY_RADIUS_M = 3000
RESULT_LIMIT = 30


class OverpassError(RuntimeError):
    """Raised when neither Overpass server returns a usable response."""


def build_query(category: str, lat: float, lng: float, radius_m: float) -> str:
    """Overpass QL for nodes and ways tagged with ``category`` around a point.

    ``category`` is an OSM tag such as ``shop=electronics``; a bare key or
    ``shop=*`` matches any value.
    """
    radius = min(int(radius_m), MAX_QUERY_RADIUS_M)
    key, _, value = category.partition("=")
    if value and value != "*":
        selector = f'["{key}"="{value}"]'
    else:
        selector = f'["{key}"]'
    around = f"(around:{radius},{lat},{lng})"
    return (
        f"[out:json][limit:{RESULT_LIMIT}];("
        f"node{selector}{around};"
        f"way{selector}{around};"
        ");out center tags;"
    )


def _post(url: str, query: str, user_agent: str, timeout: float) -> Dict[str, Any]:
    response = _SESSION.post(
        url,
        data=query.encode("utf-8"),
        headers={"Content-Type": "text/plain", "User-Agent": user_agent},
        timeout=timeout,
    )
    response.raise_for_status()
    payload = response.json()
    if not isinstance(payload, dict):
        raise ValueError("Overpass payload is not an object")
    return payload


def interpreter(query: str, user_agent: str) -> List[Dict[str, Any]]:
    """Run a query on the primary server, retrying once on the mirror."""
    try:
        return _post(PRIMARY_URL, query, user_agent, PRIMARY_TIMEOUT).get("elements") or []
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Primary Overpass server failed (%s); trying mirror", exc)

    try:
        return _post(FALLBACK_URL, query, user_agent, FALLBACK_TIMEOUT).get("elements") or []
    except (requests.RequestException, ValueError) as exc:
        logger.error("Overpass query failed on both servers: %s", exc)
        raise OverpassError(str(exc)) from exc
