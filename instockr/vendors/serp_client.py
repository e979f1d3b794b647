"""SerpAPI Google Shopping helpers."""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Dict, List, Optional

from serpapi import GoogleSearch

logger = logging.getLogger(__name__)

RETRY_LIMIT = 2
RETRY_DELAY_SECONDS = 1.2


class SerpApiError(RuntimeError):
    """Raised when SerpAPI cannot produce a shopping payload."""


def build_shopping_params(
    query: str,
    api_key: str,
    *,
    limit: Optional[int] = None,
    country: str = "it",
    language: str = "it",
) -> Dict[str, Any]:
    """Construct SerpAPI request parameters for the Google Shopping engine."""
    if not query or not query.strip():
        raise ValueError("Query must be provided for SerpAPI lookups.")
    if not api_key:
        raise SerpApiError("SERPAPI_API_KEY is not configured")

    params: Dict[str, Any] = {
        "engine": "google_shopping",
        "q": query.strip(),
        "api_key": api_key,
        "gl": country,
        "hl": language,
    }
    if limit:
        params["num"] = limit
    return params


def fetch_shopping(query: str, api_key: str, *, limit: Optional[int] = None) -> Dict[str, Any]:
    """Call SerpAPI Google Shopping and return the raw JSON response with retry logic.

    SerpAPI charges per request; every attempt is logged so usage can be
    audited against the billing dashboard.
    """
    params = build_shopping_params(query, api_key, limit=limit)

    attempt = 0
    while True:
        attempt += 1
        try:
            logger.info("Calling SerpAPI google_shopping (attempt %s) for query=%s", attempt, query)
            data = GoogleSearch(params).get_dict()
            if not data:
                raise SerpApiError("SerpAPI returned an empty payload.")
            if "error" in data:
                raise SerpApiError(f"SerpAPI returned an error response: {data.get('error')}")
            return data
        except Exception as exc:  # noqa: BLE001
            logger.warning("SerpAPI request failed (attempt %s/%s): %s", attempt, RETRY_LIMIT + 1, exc)
            if attempt > RETRY_LIMIT:
                logger.error("SerpAPI request exhausted retries for query=%s", query)
                if isinstance(exc, SerpApiError):
                    raise
                raise SerpApiError(str(exc)) from exc
            time.sleep(RETRY_DELAY_SECONDS + random.uniform(0, 0.8))


def extract_shopping_items(data: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """SerpAPI places results under ``shopping_results`` or ``inline_shopping_results``."""
    if not data:
        return []
    for key in ("shopping_results", "inline_shopping_results"):
        items = data.get(key)
        if isinstance(items, list) and items:
            return [item for item in items if isinstance(item, dict)]
    logger.warning("SerpAPI response missing shopping results. keys=%s", list(data.keys())[:10])
    return []
