"""Online listings from Google Shopping via SerpAPI."""

import logging
from typing import List, Optional

from instockr.core.config import Settings, get_settings
from instockr.etl.transform import ShoppingResult
from instockr.fetchers.base import Fetcher, SearchParams
from instockr.models import Store
from instockr.vendors import serp_client

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 5


class GoogleShoppingFetcher(Fetcher):
    name = "Google Shopping"

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def is_configured(self) -> bool:
        return bool(self.settings.serpapi_api_key)

    def search(self, params: SearchParams) -> List[Store]:
        if not self.is_configured():
            logger.warning("Google Shopping search skipped: SERPAPI_API_KEY missing")
            return []
        query = params.product_name.strip()
        if not query:
            return []

        limit = params.limit or DEFAULT_LIMIT
        try:
            data = serp_client.fetch_shopping(query, self.settings.serpapi_api_key, limit=limit)
        except serp_client.SerpApiError as exc:
            logger.warning("Google Shopping search failed for %s: %s", query, exc)
            return []

        results = [item for item in map(ShoppingResult.from_raw, serp_client.extract_shopping_items(data)) if item]
        stores = [result.to_store(query, index) for index, result in enumerate(results[:limit])]
        logger.info("Found %d Google Shopping results", len(stores))
        return stores
