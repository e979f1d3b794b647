"""End-to-end store search: geocode, categorize, fetch, merge, rank."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from instockr.core.config import Settings, get_settings
from instockr.core.geocoder import Geocoder
from instockr.fetchers.base import Fetcher, SearchParams
from instockr.fetchers.google_maps import GoogleMapsFetcher
from instockr.fetchers.google_shopping import GoogleShoppingFetcher
from instockr.fetchers.online_stores import OnlineStoreFetcher
from instockr.fetchers.osm import OsmFetcher
from instockr.fetchers.web_search import WebSearchFetcher
from instockr.models import Coordinates, Store
from instockr.pipeline.ai_dedup import AiDeduplicator
from instockr.pipeline.categories import CategoryStrategyGenerator
from instockr.pipeline.dedup import dedupe_by_identity

logger = logging.getLogger(__name__)


@dataclass
class SearchOutcome:
    stores: List[Store] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    origin: Optional[Coordinates] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stores": [store.to_dict() for store in self.stores],
            "totalResults": len(self.stores),
            "categories": list(self.categories),
            "origin": self.origin.to_dict() if self.origin else None,
        }


def rank_stores(stores: Sequence[Store], include_online: bool = True) -> List[Store]:
    """Located stores nearest first, then the rest in their original order."""
    located = sorted((store for store in stores if store.distance_km is not None), key=lambda store: store.distance_km)
    if not include_online:
        return located
    return located + [store for store in stores if store.distance_km is None]


class StoreSearch:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        geocoder: Optional[Geocoder] = None,
        category_generator: Optional[CategoryStrategyGenerator] = None,
        fetchers: Optional[Sequence[Fetcher]] = None,
        ai_deduplicator: Optional[AiDeduplicator] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.geocoder = geocoder or Geocoder(self.settings)
        self.category_generator = category_generator or CategoryStrategyGenerator(self.settings)
        if fetchers is None:
            fetchers = (
                OsmFetcher(self.settings, self.geocoder),
                GoogleMapsFetcher(self.settings),
                GoogleShoppingFetcher(self.settings),
                WebSearchFetcher(self.settings),
                OnlineStoreFetcher(self.settings),
            )
        self.fetchers = list(fetchers)
        self.ai_deduplicator = ai_deduplicator or AiDeduplicator(self.settings)

    def _run_fetcher(self, fetcher: Fetcher, params: SearchParams) -> List[Store]:
        try:
            stores = fetcher.search(params)
        except Exception as exc:  # noqa: BLE001
            logger.exception("%s search failed: %s", fetcher.name, exc)
            return []
        logger.info("%s returned %d stores", fetcher.name, len(stores))
        return stores

    def run(
        self,
        product_name: str,
        location: str,
        radius_m: Optional[int] = None,
        *,
        ai_dedup: Optional[bool] = None,
        include_online: bool = True,
    ) -> SearchOutcome:
        """Raises ``LocationNotFound`` for unknown locations and ``ValueError`` for blank products."""
        origin = self.geocoder.geocode(location)
        strategy = self.category_generator.generate(product_name, location)
        if not strategy.search_terms:
            logger.info("No categories for %r; skipping fetch", product_name)
            return SearchOutcome(origin=origin)

        params = SearchParams(
            product_name=product_name.strip(),
            origin=origin,
            radius_m=radius_m or self.settings.search_radius_m,
            categories=list(strategy.search_terms),
            location=location,
        )
        active = [fetcher for fetcher in self.fetchers if fetcher.is_configured()]
        skipped = [fetcher.name for fetcher in self.fetchers if fetcher not in active]
        if skipped:
            logger.warning("Skipping unconfigured sources: %s", ", ".join(skipped))

        collected: List[Store] = []
        if active:
            with ThreadPoolExecutor(max_workers=len(active)) as executor:
                for stores in executor.map(lambda fetcher: self._run_fetcher(fetcher, params), active):
                    collected.extend(stores)

        merged = dedupe_by_identity(collected, geo_scoped_names=True)
        use_ai = self.settings.ai_dedup_enabled if ai_dedup is None else ai_dedup
        if use_ai:
            merged = self.ai_deduplicator.deduplicate(merged).stores

        ranked = rank_stores(merged, include_online=include_online)
        logger.info(
            "Search for %r near %s: %d collected, %d after dedup",
            product_name,
            location,
            len(collected),
            len(ranked),
        )
        return SearchOutcome(stores=ranked, categories=list(strategy.search_terms), origin=origin)
