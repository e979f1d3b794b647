"""Google Maps Places search for physical stores."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

import requests

from instockr.core.config import Settings, get_settings
from instockr.etl.transform import PlaceResult
from instockr.fetchers.base import Fetcher, SearchParams
from instockr.models import Store
from instockr.vendors import google_places

logger = logging.getLogger(__name__)

MAX_DETAIL_WORKERS = 8


class GoogleMapsFetcher(Fetcher):
    name = "Google Maps"

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def is_configured(self) -> bool:
        return bool(self.settings.google_maps_api_key)

    def _contact_details(self, place: PlaceResult) -> Tuple[Optional[str], Optional[str]]:
        if not place.place_id:
            return None, None
        try:
            details = google_places.place_details(place.place_id, self.settings.google_maps_api_key)
        except (google_places.GooglePlacesError, requests.RequestException) as exc:
            logger.warning("Failed to fetch details for %s: %s", place.name, exc)
            return None, None
        return details.get("website"), details.get("formatted_phone_number")

    def search(self, params: SearchParams) -> List[Store]:
        if not self.is_configured():
            logger.warning("Google Maps search skipped: GOOGLE_MAPS_API_KEY missing")
            return []
        if params.origin is None or not params.product_name:
            return []

        api_key = self.settings.google_maps_api_key
        try:
            payload = google_places.text_search(
                f"{params.product_name} store shop negozio",
                api_key,
                lat=params.origin.lat,
                lng=params.origin.lng,
                radius_m=params.radius_m,
            )
        except (google_places.GooglePlacesError, requests.RequestException) as exc:
            logger.warning("Google Maps text search failed: %s", exc)
            return []

        places = [place for place in map(PlaceResult.from_raw, payload.get("results") or []) if place]
        if not places:
            return []

        with ThreadPoolExecutor(max_workers=min(MAX_DETAIL_WORKERS, len(places))) as executor:
            contacts = list(executor.map(self._contact_details, places))

        stores = []
        for index, (place, (website, phone)) in enumerate(zip(places, contacts)):
            photo = google_places.photo_url(place.photo_reference, api_key) if place.photo_reference else None
            stores.append(
                place.to_store(
                    params.origin,
                    index,
                    params.product_name,
                    website=website,
                    phone=phone,
                    photo_url=photo,
                )
            )

        logger.info("Found %d Google Maps results", len(stores))
        return stores
