"""Client utilities for the Google Custom Search JSON API."""

import logging
from typing import Any, Dict, List

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://www.googleapis.com/customsearch/v1"


class CustomSearchError(RuntimeError):
    """Raised when the Custom Search API rejects a query."""


def search(
    query: str,
    api_key: str,
    cse_id: str,
    *,
    num: int = 5,
    country: str = "it",
    language: str = "it",
) -> List[Dict[str, Any]]:
    params = {"key": api_key, "cx": cse_id, "q": query, "num": num, "gl": country, "hl": language}
    try:
        response = _SESSION.get(_BASE_URL, params=params, timeout=10)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error("Custom search failed for %r: %s", query, exc)
        raise CustomSearchError(str(exc)) from exc

    if "error" in payload:
        message = payload["error"].get("message") if isinstance(payload["error"], dict) else payload["error"]
        raise CustomSearchError(str(message))
    return payload.get("items") or []
