"""HTTP entrypoint exposing the store-finder functions."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

import requests
from flask import Flask, jsonify, request
from flask_cors import CORS

from instockr.core.config import get_settings
from instockr.core.geocoder import Geocoder, LocationNotFound
from instockr.fetchers.base import SearchParams
from instockr.fetchers.google_maps import GoogleMapsFetcher
from instockr.fetchers.google_shopping import GoogleShoppingFetcher
from instockr.fetchers.online_stores import OnlineStoreFetcher
from instockr.fetchers.osm import OsmFetcher
from instockr.fetchers.web_search import WebSearchFetcher
from instockr.models import Coordinates, Store
from instockr.pipeline.ai_dedup import AiDeduplicator
from instockr.pipeline.categories import CategoryStrategyGenerator
from instockr.pipeline.crawler import ProductCrawler
from instockr.pipeline.dedup import dedupe_by_address, dedupe_by_identity
from instockr.pipeline.search import StoreSearch
from instockr.pipeline.verification import VerificationUnavailable, verify_store
from instockr.vendors import google_places, nominatim

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)
CORS(app)


@lru_cache(maxsize=1)
def _geocoder() -> Geocoder:
    """Shared so every request goes through the same Nominatim rate limiter."""
    return Geocoder(get_settings())


# ---------- Request helpers ----------


def _payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _missing(payload: Dict[str, Any], fields: Tuple[str, ...]) -> List[str]:
    return [name for name in fields if payload.get(name) in (None, "", [])]


def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> Optional[int]:
    number = _to_float(value)
    return int(number) if number is not None else None


def _coords(payload: Dict[str, Any]) -> Optional[Coordinates]:
    """``coords: {lat, lng}`` or top-level ``latitude``/``longitude``; None when incomplete."""
    raw = payload.get("coords")
    if isinstance(raw, dict):
        lat, lng = _to_float(raw.get("lat")), _to_float(raw.get("lng"))
    else:
        lat, lng = _to_float(payload.get("latitude")), _to_float(payload.get("longitude"))
    if lat is None or lng is None:
        return None
    return Coordinates(lat=lat, lng=lng)


def _parse_stores(payload: Dict[str, Any]) -> Optional[List[Store]]:
    raw = payload.get("stores")
    if not isinstance(raw, list) or not all(isinstance(item, dict) for item in raw):
        return None
    return [Store.from_dict(item) for item in raw]


def _store_list(stores: List[Store], **extra: Any) -> Dict[str, Any]:
    return {"stores": [store.to_dict() for store in stores], "totalResults": len(stores), **extra}


def _error(message: str, status: int, **extra: Any):
    return jsonify({"error": message, **extra}), status


# ---------- Routes ----------


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings only."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "port": settings.port,
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.post("/generate-search-strategies")
def generate_search_strategies() -> Any:
    payload = _payload()
    product_name = str(payload.get("productName") or "").strip()
    if not product_name:
        return _error("productName is required", 400)

    try:
        strategy = CategoryStrategyGenerator(get_settings()).generate(product_name, payload.get("location"))
    except ValueError as exc:
        return _error(str(exc), 400)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Category generation failed for %s: %s", product_name, exc)
        return _error("Internal server error", 500)
    return jsonify(strategy.to_dict()), 200


@app.post("/search-osm-stores")
def search_osm_stores() -> Any:
    payload = _payload()
    lat, lng = _to_float(payload.get("userLat")), _to_float(payload.get("userLng"))
    categories = payload.get("categories")
    if lat is None or lng is None or not isinstance(categories, list) or not categories:
        return _error("Missing required parameters: userLat, userLng, categories", 400)

    settings = get_settings()
    params = SearchParams(
        origin=Coordinates(lat=lat, lng=lng),
        radius_m=_to_int(payload.get("radius")) or settings.search_radius_m,
        categories=[str(category) for category in categories if category],
    )
    try:
        stores = OsmFetcher(settings, _geocoder()).search(params)
    except Exception as exc:  # noqa: BLE001
        logger.exception("OSM search failed: %s", exc)
        return _error("Internal server error", 500)
    return jsonify(_store_list(stores)), 200


@app.post("/search-google-maps")
def search_google_maps() -> Any:
    payload = _payload()
    product_name = str(payload.get("productName") or "").strip()
    lat, lng = _to_float(payload.get("userLat")), _to_float(payload.get("userLng"))
    if not product_name or lat is None or lng is None:
        return _error("Missing required parameters: productName, userLat, userLng", 400)

    settings = get_settings()
    fetcher = GoogleMapsFetcher(settings)
    if not fetcher.is_configured():
        return _error("Google Maps API key not configured", 500)

    params = SearchParams(
        product_name=product_name,
        origin=Coordinates(lat=lat, lng=lng),
        radius_m=_to_int(payload.get("radius")) or settings.search_radius_m,
    )
    try:
        stores = fetcher.search(params)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Google Maps search failed: %s", exc)
        return _error("Internal server error", 500)
    return jsonify(_store_list(stores, searchedProduct=product_name)), 200


@app.post("/search-google-shopping")
def search_google_shopping() -> Any:
    payload = _payload()
    query = str(payload.get("query") or "").strip()
    if not query:
        return _error("query is required", 400)

    limit = None
    if payload.get("limit") is not None:
        limit = _to_int(payload.get("limit"))
        if limit is None or limit <= 0:
            return _error("limit must be a positive number", 400)

    fetcher = GoogleShoppingFetcher(get_settings())
    if not fetcher.is_configured():
        return _error("SerpAPI key not configured", 500)

    try:
        stores = fetcher.search(SearchParams(product_name=query, limit=limit))
    except Exception as exc:  # noqa: BLE001
        logger.exception("Google Shopping search failed: %s", exc)
        return _error("Internal server error", 500)
    return jsonify(_store_list(stores, searchedProduct=query)), 200


@app.post("/search-web-stores")
def search_web_stores() -> Any:
    payload = _payload()
    product_name = str(payload.get("productName") or "").strip()
    if not product_name:
        return _error("productName is required", 400)

    fetcher = WebSearchFetcher(get_settings())
    if not fetcher.is_configured():
        return _error("Google API credentials not configured", 500)

    params = SearchParams(product_name=product_name, location=payload.get("location"))
    try:
        stores = fetcher.search(params)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Web store search failed: %s", exc)
        return _error("Internal server error", 500)
    return jsonify(_store_list(stores, searchedProduct=product_name)), 200


@app.post("/search-online-stores")
def search_online_stores() -> Any:
    payload = _payload()
    product_name = str(payload.get("productName") or "").strip()
    if not product_name:
        return _error("Product name is required", 400)

    fetcher = OnlineStoreFetcher(get_settings())
    if not fetcher.is_configured():
        return _error("Firecrawl API key not configured", 500)

    params = SearchParams(product_name=product_name, location=payload.get("location"))
    try:
        stores = fetcher.search(params)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Online store search failed: %s", exc)
        return _error("Internal server error", 500)
    return jsonify(_store_list(stores, searchedProduct=product_name)), 200


@app.post("/simple-deduplication")
def simple_deduplication() -> Any:
    stores = _parse_stores(_payload())
    if stores is None:
        return _error("Invalid input: stores must be an array", 400)

    unique = dedupe_by_address(stores, max_results=max(len(stores), 1))
    return (
        jsonify(
            {
                "deduplicatedStores": [store.to_dict() for store in unique],
                "summary": {
                    "originalCount": len(stores),
                    "deduplicatedCount": len(unique),
                    "removedCount": len(stores) - len(unique),
                },
            }
        ),
        200,
    )


@app.post("/unified-deduplication")
def unified_deduplication() -> Any:
    stores = _parse_stores(_payload())
    if stores is None:
        return _error("Invalid input: stores must be an array", 400)

    merged = dedupe_by_identity(stores)
    return (
        jsonify(
            _store_list(
                merged,
                originalCount=len(stores),
                duplicatesRemoved=len(stores) - len(merged),
            )
        ),
        200,
    )


@app.post("/deduplicate-stores")
def deduplicate_stores() -> Any:
    stores = _parse_stores(_payload())
    if not stores:
        return _error("Stores array is required", 400)

    deduplicator = AiDeduplicator(get_settings())
    if not deduplicator.is_configured():
        return _error("OpenAI API key not configured", 500)

    result = deduplicator.deduplicate(stores)
    return (
        jsonify(
            {
                "deduplicatedStores": [store.to_dict() for store in result.stores],
                "originalCount": len(stores),
                "deduplicatedCount": len(result.stores),
                "groups": result.groups,
            }
        ),
        200,
    )


@app.post("/location-autocomplete")
def location_autocomplete() -> Any:
    text = str(_payload().get("input") or "")
    try:
        predictions = _geocoder().autocomplete(text)
    except nominatim.NominatimError as exc:
        logger.warning("Location autocomplete failed for %r: %s", text, exc)
        return _error("Location autocomplete failed", 500, predictions=[])
    return jsonify({"predictions": predictions, "status": "OK" if predictions else "ZERO_RESULTS"}), 200


@app.post("/verify-store")
def verify_store_route() -> Any:
    payload = _payload()
    missing = _missing(payload, ("storeName", "address"))
    if missing:
        return _error(f"missing fields: {', '.join(missing)}", 400)

    try:
        result = verify_store(
            str(payload["storeName"]),
            str(payload["address"]),
            get_settings(),
            coords=_coords(payload),
        )
    except VerificationUnavailable as exc:
        return _error(str(exc), 500, verified=False)
    except (google_places.GooglePlacesError, requests.RequestException) as exc:
        logger.warning("Store verification failed: %s", exc)
        return _error("Store verification failed", 500, verified=False)
    return jsonify(result), 200


@app.post("/crawl-store-products")
def crawl_store_products() -> Any:
    payload = _payload()
    website = str(payload.get("website") or "").strip()
    product_name = str(payload.get("productName") or "").strip()
    if not website or not product_name:
        return _error("Missing input", 400)

    try:
        with ProductCrawler(get_settings()) as crawler:
            products = crawler.crawl(payload.get("storeName"), website, product_name)
    except ValueError as exc:
        return _error(str(exc), 400)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Crawl failed for %s: %s", website, exc)
        return _error("Internal error", 500, products=[])
    return jsonify({"products": [product.to_dict() for product in products]}), 200


@app.post("/search")
def search() -> Any:
    payload = _payload()
    missing = _missing(payload, ("productName", "location"))
    if missing:
        return _error(f"missing fields: {', '.join(missing)}", 400)

    radius = None
    if payload.get("radius") is not None:
        radius = _to_int(payload.get("radius"))
        if radius is None or radius <= 0:
            return _error("radius must be a positive number", 400)

    ai_dedup = payload.get("aiDedup")
    try:
        outcome = StoreSearch(get_settings(), geocoder=_geocoder()).run(
            str(payload["productName"]),
            str(payload["location"]),
            radius,
            ai_dedup=bool(ai_dedup) if ai_dedup is not None else None,
            include_online=bool(payload.get("includeOnline", True)),
        )
    except LocationNotFound as exc:
        return _error("Invalid Location", 404, message=str(exc))
    except ValueError as exc:
        return _error(str(exc), 400)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Store search failed: %s", exc)
        return _error("Internal server error", 500)
    return jsonify(outcome.to_dict()), 200


def main() -> None:
    port = get_settings().port
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
