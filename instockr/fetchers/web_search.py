"""Physical stores discovered through Google Custom Search result snippets."""

import logging
import time
from typing import List, Optional

from instockr.core.config import Settings, get_settings
from instockr.etl.transform import WebResult
from instockr.fetchers.base import Fetcher, SearchParams
from instockr.models import Store
from instockr.vendors import custom_search

logger = logging.getLogger(__name__)

QUERY_DELAY_SECONDS = 0.3
RESULTS_PER_QUERY = 5


def build_queries(product_name: str, location: Optional[str]) -> List[str]:
    where = (location or "").strip()
    templates = (
        '"{product}" store locator {where}',
        '"{product}" negozi {where}',
        'buy "{product}" {where} store address',
        'acquista "{product}" {where} negozio',
        '"{product}" retailers {where}',
        '"{product}" rivenditori {where}',
    )
    return [" ".join(template.format(product=product_name, where=where).split()) for template in templates]


def _is_duplicate(candidate: Store, kept: List[Store]) -> bool:
    name = candidate.name.lower()
    street = candidate.address.lower().split(",")[0].strip()
    for existing in kept:
        if existing.name.lower() == name:
            return True
        if street and existing.address and street in existing.address.lower():
            return True
    return False


class WebSearchFetcher(Fetcher):
    name = "Web Search"

    def __init__(self, settings: Optional[Settings] = None, delay: float = QUERY_DELAY_SECONDS) -> None:
        self.settings = settings or get_settings()
        self.delay = delay

    def is_configured(self) -> bool:
        return bool(self.settings.google_cse_api_key and self.settings.google_cse_id)

    def search(self, params: SearchParams) -> List[Store]:
        if not self.is_configured():
            logger.warning("Web search skipped: GOOGLE_CSE_API_KEY/GOOGLE_CSE_ID missing")
            return []
        if not params.product_name.strip():
            return []

        candidates: List[Store] = []
        queries = build_queries(params.product_name.strip(), params.location)
        for position, query in enumerate(queries):
            if position and self.delay:
                time.sleep(self.delay)
            try:
                items = custom_search.search(
                    query,
                    self.settings.google_cse_api_key,
                    self.settings.google_cse_id,
                    num=RESULTS_PER_QUERY,
                )
            except custom_search.CustomSearchError as exc:
                logger.warning("Web search query %r failed: %s", query, exc)
                continue

            for item in items:
                result = WebResult.from_raw(item)
                if result is None:
                    continue
                store = result.to_store(
                    params.product_name,
                    len(candidates),
                    default_region=self.settings.default_phone_region,
                )
                if store is not None:
                    candidates.append(store)

        unique: List[Store] = []
        for store in candidates:
            if not _is_duplicate(store, unique):
                unique.append(store)

        logger.info("Found %d unique potential physical stores via web search", len(unique))
        return unique
