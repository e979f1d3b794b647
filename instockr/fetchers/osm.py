"""OpenStreetMap point-of-interest search through Overpass."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from instockr.core.config import Settings, get_settings
from instockr.core.geocoder import Geocoder
from instockr.etl.transform import OsmElement
from instockr.fetchers.base import Fetcher, SearchParams
from instockr.models import Store
from instockr.pipeline.dedup import dedupe_by_address
from instockr.vendors import overpass

logger = logging.getLogger(__name__)

MAX_PARALLEL_QUERIES = 6


class OsmFetcher(Fetcher):
    name = "OpenStreetMap"

    def __init__(self, settings: Optional[Settings] = None, geocoder: Optional[Geocoder] = None) -> None:
        self.settings = settings or get_settings()
        self.geocoder = geocoder or Geocoder(self.settings)

    def _query_category(self, category: str, params: SearchParams) -> List[Dict[str, Any]]:
        origin = params.origin
        query = overpass.build_query(category, origin.lat, origin.lng, params.radius_m)
        try:
            elements = overpass.interpreter(query, self.settings.nominatim_user_agent)
        except overpass.OverpassError as exc:
            logger.warning("Overpass query for %s failed: %s", category, exc)
            return []
        logger.info("Overpass returned %d elements for %s", len(elements), category)
        return elements

    def search(self, params: SearchParams) -> List[Store]:
        if params.origin is None or not params.categories:
            logger.info("OSM search skipped: origin or categories missing")
            return []

        workers = min(MAX_PARALLEL_QUERIES, len(params.categories))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            batches = list(executor.map(lambda category: self._query_category(category, params), params.categories))

        stores: List[Store] = []
        for raw in (element for batch in batches for element in batch):
            element = OsmElement.from_raw(raw)
            if element is None:
                continue
            address = element.tag_address() or self.geocoder.reverse_label(
                element.lat, element.lng, element.tags.get("name")
            )
            stores.append(element.to_store(params.origin, address))

        unique = dedupe_by_address(stores, max_results=self.settings.max_results)
        logger.info("Found %d OSM stores within %.1fkm", len(unique), params.radius_m / 1000)
        return unique
