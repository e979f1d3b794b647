"""Online shops found by crawling search results through Firecrawl."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional

from instockr.core.config import Settings, get_settings
from instockr.etl.transform import CrawlResult
from instockr.fetchers.base import Fetcher, SearchParams
from instockr.models import Store
from instockr.vendors import firecrawl

logger = logging.getLogger(__name__)

DEFAULT_WHERE = "Milan Italy"


@dataclass(frozen=True)
class OnlineQuery:
    label: str
    template: str
    limit: int

    def render(self, product_name: str, where: str) -> str:
        return " ".join(self.template.format(product=product_name, where=where).split())


ONLINE_QUERIES = (
    OnlineQuery("General Web Search", "{product} store {where} buy purchase", 3),
    OnlineQuery(
        "E-commerce Sites",
        "{product} site:amazon.it OR site:ebay.it OR site:mediaworld.it OR site:unieuro.it",
        4,
    ),
    OnlineQuery(
        "Price Comparison",
        "{product} prezzo migliore confronto prezzi site:idealo.it OR site:trovaprezzi.it",
        3,
    ),
    OnlineQuery("Electronics Retailers", "{product} elettronica negozio online Italia vendita", 3),
    OnlineQuery("Mobile Carriers", "{product} TIM Vodafone WindTre Iliad negozio cellulare", 2),
)


class OnlineStoreFetcher(Fetcher):
    name = "AI Crawl"

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def is_configured(self) -> bool:
        return bool(self.settings.firecrawl_api_key)

    def _run_query(self, query: OnlineQuery, product_name: str, where: str) -> List[Store]:
        text = query.render(product_name, where)
        try:
            items = firecrawl.search(text, self.settings.firecrawl_api_key, limit=query.limit)
        except firecrawl.FirecrawlError as exc:
            logger.warning("%s search failed: %s", query.label, exc)
            return []

        results = [result for result in map(CrawlResult.from_raw, items) if result]
        logger.info("%s returned %d results", query.label, len(results))
        return [result.to_store(product_name, query.label, index) for index, result in enumerate(results)]

    def search(self, params: SearchParams) -> List[Store]:
        if not self.is_configured():
            logger.warning("Online store search skipped: FIRECRAWL_API_KEY missing")
            return []
        product_name = params.product_name.strip()
        if not product_name:
            return []

        where = (params.location or "").strip() or DEFAULT_WHERE
        with ThreadPoolExecutor(max_workers=len(ONLINE_QUERIES)) as executor:
            batches = list(executor.map(lambda query: self._run_query(query, product_name, where), ONLINE_QUERIES))

        stores = [store for batch in batches for store in batch]
        logger.info("Found %d online results from %d queries", len(stores), len(ONLINE_QUERIES))
        return stores
