import pytest

from instockr.core.geocoder import LocationNotFound
from instockr.jobs import server
from instockr.models import Coordinates, ProductMatch, Store
from instockr.pipeline.ai_dedup import AiDedupResult
from instockr.pipeline.search import SearchOutcome
from instockr.vendors import google_places, llm, nominatim


@pytest.fixture
def settings(make_settings, monkeypatch):
    value = make_settings()
    monkeypatch.setattr(server, "get_settings", lambda: value)
    return value


@pytest.fixture
def client(settings):
    return server.app.test_client()


def _wire_store(store_id, name, address="", url=None, **extra):
    return {"id": store_id, "name": name, "storeType": "retail", "address": address, "source": "test", "url": url, **extra}


def test_health_endpoint(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_cors_preflight(client):
    response = client.options(
        "/search",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "POST"},
    )
    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] in ("*", "http://localhost:5173")


def test_required_fields(client):
    assert client.post("/generate-search-strategies", json={}).status_code == 400
    assert client.post("/search-osm-stores", json={"userLat": 45, "userLng": 9}).status_code == 400
    assert client.post("/search-google-maps", json={"productName": "x", "userLat": "bad", "userLng": 9}).status_code == 400
    assert client.post("/search-google-shopping", json={}).status_code == 400
    assert client.post("/search-google-shopping", json={"query": "x", "limit": -1}).status_code == 400
    assert client.post("/search-web-stores", json={}).status_code == 400
    assert client.post("/search-online-stores", json={"location": "Milano"}).status_code == 400
    assert client.post("/simple-deduplication", json={"stores": "nope"}).status_code == 400
    assert client.post("/unified-deduplication", json={"stores": [1, 2]}).status_code == 400
    assert client.post("/deduplicate-stores", json={"stores": []}).status_code == 400
    assert client.post("/verify-store", json={"storeName": "Acme"}).status_code == 400
    assert client.post("/crawl-store-products", json={"website": "https://x.it"}).status_code == 400
    assert client.post("/search", json={"productName": "iphone"}).status_code == 400
    assert client.post("/search", json={"productName": "iphone", "location": "Milano", "radius": "far"}).status_code == 400


def test_missing_credentials_return_500(client):
    response = client.post("/search-google-maps", json={"productName": "iphone", "userLat": 45.46, "userLng": 9.19})
    assert response.status_code == 500
    assert response.get_json() == {"error": "Google Maps API key not configured"}

    response = client.post("/deduplicate-stores", json={"stores": [_wire_store("1", "A")]})
    assert response.status_code == 500


def test_generate_search_strategies_keyword_fallback(client, monkeypatch):
    from instockr.core import category_cache

    monkeypatch.setattr(category_cache, "_default_cache", category_cache.InMemoryCategoryCache())

    response = client.post("/generate-search-strategies", json={"productName": "Smartphone Samsung"})

    assert response.status_code == 200
    assert response.get_json() == {"searchTerms": ["shop=mobile_phone", "shop=electronics"], "source": "keyword"}


def test_simple_deduplication(client):
    stores = [
        _wire_store("1", "A", "123 Main Street."),
        _wire_store("2", "B", "123 main st"),
        _wire_store("3", "C"),
    ]

    body = client.post("/simple-deduplication", json={"stores": stores}).get_json()

    assert [store["id"] for store in body["deduplicatedStores"]] == ["1", "3"]
    assert body["summary"] == {"originalCount": 3, "deduplicatedCount": 2, "removedCount": 1}


def test_unified_deduplication(client):
    stores = [
        _wire_store("1", "MediaWorld", url="https://www.mediaworld.it/", product={"name": "iPhone", "price": "Contact store for pricing"}),
        _wire_store("2", "MediaWorld", url="http://www.mediaworld.it", product={"name": "iPhone", "price": "€49.99"}),
        _wire_store("3", "Unieuro", url="https://unieuro.it"),
    ]

    body = client.post("/unified-deduplication", json={"stores": stores}).get_json()

    assert body["totalResults"] == 2
    assert body["originalCount"] == 3
    assert body["duplicatesRemoved"] == 1
    merged = body["stores"][0]
    assert merged["product"]["price"] == "€49.99"
    assert merged["sourceCount"] == 2
    assert merged["isConsolidated"] is True


def test_deduplicate_stores(client, settings, monkeypatch, make_settings):
    configured = make_settings(openai_api_key="sk")
    monkeypatch.setattr(server, "get_settings", lambda: configured)
    monkeypatch.setattr(llm, "chat_completion", lambda prompt, **kwargs: "no json at all")

    stores = [_wire_store("1", "A"), _wire_store("2", "B")]
    body = client.post("/deduplicate-stores", json={"stores": stores}).get_json()

    assert body["originalCount"] == 2
    assert body["deduplicatedCount"] == 2
    assert body["groups"] == []


def test_location_autocomplete(client, monkeypatch):
    class StubGeocoder:
        def autocomplete(self, text):
            return [{"description": "Milano", "place_id": "osm-1"}] if len(text) >= 3 else []

    monkeypatch.setattr(server, "_geocoder", lambda: StubGeocoder())

    assert client.post("/location-autocomplete", json={"input": "Mil"}).get_json()["status"] == "OK"
    assert client.post("/location-autocomplete", json={"input": "M"}).get_json() == {"predictions": [], "status": "ZERO_RESULTS"}


def test_location_autocomplete_error(client, monkeypatch):
    class BrokenGeocoder:
        def autocomplete(self, text):
            raise nominatim.NominatimError("down")

    monkeypatch.setattr(server, "_geocoder", lambda: BrokenGeocoder())

    response = client.post("/location-autocomplete", json={"input": "Milano"})
    assert response.status_code == 500
    assert response.get_json()["predictions"] == []


def test_verify_store(client, settings, monkeypatch, make_settings):
    monkeypatch.setattr(server, "get_settings", lambda: make_settings(google_maps_api_key="key"))
    monkeypatch.setattr(google_places, "text_search", lambda query, api_key, **kwargs: {"status": "OK", "results": []})

    response = client.post("/verify-store", json={"storeName": "Acme", "address": "Via Roma 1"})

    assert response.status_code == 200
    assert response.get_json() == {"verified": False}


def test_verify_store_without_key(client):
    response = client.post("/verify-store", json={"storeName": "Acme", "address": "Via Roma 1"})
    assert response.status_code == 500
    assert response.get_json()["verified"] is False


def test_verify_store_forwards_coordinates(client, settings, monkeypatch):
    seen = []

    def fake_verify(store_name, address, settings, coords=None):
        seen.append(coords)
        return {"verified": False}

    monkeypatch.setattr(server, "verify_store", fake_verify)

    client.post("/verify-store", json={"storeName": "Acme", "address": "Via Roma 1", "coords": {"lat": 45.46, "lng": 9.19}})
    client.post("/verify-store", json={"storeName": "Acme", "address": "Via Roma 1", "latitude": "45.5", "longitude": 9.2})
    client.post("/verify-store", json={"storeName": "Acme", "address": "Via Roma 1", "coords": {"lat": 45.46}})

    assert seen == [Coordinates(45.46, 9.19), Coordinates(45.5, 9.2), None]


def test_crawl_store_products(client, monkeypatch):
    class StubCrawler:
        def __init__(self, settings):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def crawl(self, store_name, website, product_name):
            return [ProductMatch(name="iPhone 15", price="799 €")]

    monkeypatch.setattr(server, "ProductCrawler", StubCrawler)

    response = client.post("/crawl-store-products", json={"website": "https://shop.it", "productName": "iPhone 15"})

    assert response.status_code == 200
    assert response.get_json()["products"][0]["price"] == "799 €"


class StubSearch:
    outcome = None
    error = None
    calls = []

    def __init__(self, settings, geocoder=None):
        pass

    def run(self, product_name, location, radius_m=None, *, ai_dedup=None, include_online=True):
        StubSearch.calls.append((product_name, location, radius_m, ai_dedup, include_online))
        if StubSearch.error:
            raise StubSearch.error
        return StubSearch.outcome


@pytest.fixture
def stub_search(monkeypatch):
    StubSearch.outcome = None
    StubSearch.error = None
    StubSearch.calls = []
    monkeypatch.setattr(server, "StoreSearch", StubSearch)
    monkeypatch.setattr(server, "_geocoder", lambda: None)
    return StubSearch


def test_search_success(client, stub_search):
    store = Store(id="1", name="Unieuro", store_type="electronics", address="Via Roma 1", source="Google Maps", distance_km=0.4)
    stub_search.outcome = SearchOutcome(stores=[store], categories=["shop=electronics"], origin=Coordinates(45.46, 9.19))

    response = client.post(
        "/search",
        json={"productName": "iphone", "location": "Milano", "radius": 2000, "aiDedup": True, "includeOnline": False},
    )

    body = response.get_json()
    assert response.status_code == 200
    assert body["totalResults"] == 1
    assert body["stores"][0]["distanceKm"] == 0.4
    assert body["origin"] == {"lat": 45.46, "lng": 9.19}
    assert stub_search.calls == [("iphone", "Milano", 2000, True, False)]


def test_search_invalid_location(client, stub_search):
    stub_search.error = LocationNotFound("Atlantis")

    response = client.post("/search", json={"productName": "iphone", "location": "Atlantis"})

    assert response.status_code == 404
    assert response.get_json() == {
        "error": "Invalid Location",
        "message": 'Location "Atlantis" not found. Please try again.',
    }


def test_search_unexpected_error(client, stub_search):
    stub_search.error = RuntimeError("kaboom")

    response = client.post("/search", json={"productName": "iphone", "location": "Milano"})

    assert response.status_code == 500
    assert response.get_json() == {"error": "Internal server error"}


def test_search_online_stores(client, make_settings, monkeypatch):
    response = client.post("/search-online-stores", json={"productName": "iPhone 15"})
    assert response.status_code == 500
    assert response.get_json() == {"error": "Firecrawl API key not configured"}

    seen = []

    def fake_search(self, params):
        seen.append(params)
        return [Store(id="o1", name="Amazon.it", store_type="marketplace", address="Online / Italy",
                      source="AI Crawl", url="https://www.amazon.it/dp/1", is_online=True)]

    monkeypatch.setattr(server, "get_settings", lambda: make_settings(firecrawl_api_key="fc"))
    monkeypatch.setattr(server.OnlineStoreFetcher, "search", fake_search)

    response = client.post("/search-online-stores", json={"productName": "iPhone 15", "location": "Roma"})

    body = response.get_json()
    assert response.status_code == 200
    assert body["searchedProduct"] == "iPhone 15"
    assert body["totalResults"] == 1
    assert body["stores"][0]["isOnline"] is True
    assert seen[0].location == "Roma"
