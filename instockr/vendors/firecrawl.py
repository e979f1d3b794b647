"""Client utilities for the Firecrawl search API."""

import logging
from typing import Any, Dict, List

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_SEARCH_URL = "https://api.firecrawl.dev/v1/search"


class FirecrawlError(RuntimeError):
    """Raised when Firecrawl rejects or fails a search."""


def search(query: str, api_key: str, *, limit: int = 3, timeout: int = 30) -> List[Dict[str, Any]]:
    """Run a web search and scrape each hit to markdown.

    Returns the ``data`` list; every item carries ``title``, ``url`` and,
    when the scrape succeeded, ``markdown``.
    """
    body = {"query": query, "limit": limit, "scrapeOptions": {"formats": ["markdown"]}}
    headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
    try:
        response = _SESSION.post(_SEARCH_URL, json=body, headers=headers, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error("Firecrawl search failed for %r: %s", query, exc)
        raise FirecrawlError(str(exc)) from exc

    if not payload.get("success"):
        raise FirecrawlError(str(payload.get("error") or "unsuccessful search"))
    data = payload.get("data")
    return data if isinstance(data, list) else []
