import requests

from instockr.fetchers.base import SearchParams
from instockr.fetchers.google_maps import GoogleMapsFetcher
from instockr.fetchers.google_shopping import GoogleShoppingFetcher
from instockr.fetchers.online_stores import ONLINE_QUERIES, OnlineStoreFetcher
from instockr.fetchers.web_search import WebSearchFetcher, build_queries
from instockr.models import Coordinates
from instockr.vendors import custom_search, firecrawl, google_places, serp_client

ORIGIN = Coordinates(45.4642, 9.19)


def _place(place_id, name):
    return {
        "place_id": place_id,
        "name": name,
        "formatted_address": f"{name} street 1, Milano",
        "geometry": {"location": {"lat": 45.465, "lng": 9.191}},
        "types": ["electronics_store"],
    }


def _fail(*args, **kwargs):
    raise AssertionError("provider should not be called")


def test_google_maps_skipped_without_key(make_settings, monkeypatch):
    monkeypatch.setattr(google_places, "text_search", _fail)
    fetcher = GoogleMapsFetcher(make_settings())

    assert fetcher.is_configured() is False
    assert fetcher.search(SearchParams(product_name="iphone", origin=ORIGIN)) == []


def test_google_maps_tolerates_detail_failures(make_settings, monkeypatch):
    queries = []

    def fake_text_search(query, api_key, **kwargs):
        queries.append((query, kwargs))
        return {"status": "OK", "results": [_place("a", "Alpha"), _place("b", "Beta")]}

    def fake_details(place_id, api_key, fields=google_places.DETAIL_FIELDS):
        if place_id == "b":
            raise requests.Timeout("slow")
        return {"website": "https://alpha.it", "formatted_phone_number": "02 1111"}

    monkeypatch.setattr(google_places, "text_search", fake_text_search)
    monkeypatch.setattr(google_places, "place_details", fake_details)

    stores = GoogleMapsFetcher(make_settings(google_maps_api_key="key")).search(
        SearchParams(product_name="iphone", origin=ORIGIN, radius_m=2000)
    )

    assert queries[0][0] == "iphone store shop negozio"
    assert queries[0][1]["radius_m"] == 2000
    assert [(s.name, s.url, s.phone) for s in stores] == [
        ("Alpha", "https://alpha.it", "02 1111"),
        ("Beta", None, None),
    ]


def test_google_maps_search_error_returns_empty(make_settings, monkeypatch):
    def boom(*args, **kwargs):
        raise google_places.GooglePlacesError("REQUEST_DENIED")

    monkeypatch.setattr(google_places, "text_search", boom)

    fetcher = GoogleMapsFetcher(make_settings(google_maps_api_key="key"))
    assert fetcher.search(SearchParams(product_name="iphone", origin=ORIGIN)) == []


def test_google_shopping_limits_results(make_settings, monkeypatch):
    items = [{"title": f"Item {i}", "link": f"https://shop{i}.it/p", "source": f"Shop {i}"} for i in range(8)]
    monkeypatch.setattr(serp_client, "fetch_shopping", lambda query, api_key, limit=None: {"shopping_results": items})

    stores = GoogleShoppingFetcher(make_settings(serpapi_api_key="key")).search(SearchParams(product_name="iphone"))

    assert len(stores) == 5
    assert all(store.is_online for store in stores)


def test_google_shopping_error_returns_empty(make_settings, monkeypatch):
    def boom(*args, **kwargs):
        raise serp_client.SerpApiError("quota")

    monkeypatch.setattr(serp_client, "fetch_shopping", boom)

    fetcher = GoogleShoppingFetcher(make_settings(serpapi_api_key="key"))
    assert fetcher.search(SearchParams(product_name="iphone", limit=3)) == []


def test_build_queries_cover_both_languages():
    queries = build_queries("iPhone 15", "Milano")

    assert len(queries) == 6
    assert queries[0] == '"iPhone 15" store locator Milano'
    assert any("negozio" in query for query in queries)
    assert build_queries("iPhone 15", None)[1] == '"iPhone 15" negozi'


def test_web_search_dedupes_and_survives_failed_queries(make_settings, monkeypatch):
    calls = []

    def fake_search(query, api_key, cse_id, num=5, **kwargs):
        calls.append(query)
        if len(calls) == 2:
            raise custom_search.CustomSearchError("quota")
        return [
            {"title": "Negozio Apple", "link": "https://www.apple.com/it/retail/", "snippet": "Via Roma 1, 20121 Milano"},
            {"title": "A review", "link": "https://blog.example.com/", "snippet": "nothing"},
        ]

    monkeypatch.setattr(custom_search, "search", fake_search)
    settings = make_settings(google_cse_api_key="key", google_cse_id="cx")

    stores = WebSearchFetcher(settings, delay=0).search(SearchParams(product_name="iPhone", location="Milano"))

    assert len(calls) == 6
    assert [store.name for store in stores] == ["Apple"]


def test_web_search_requires_credentials(make_settings):
    fetcher = WebSearchFetcher(make_settings(google_cse_api_key="key"), delay=0)
    assert fetcher.is_configured() is False
    assert fetcher.search(SearchParams(product_name="iPhone")) == []


def test_online_store_search_runs_every_query(make_settings, monkeypatch):
    calls = []

    def fake_search(query, api_key, limit=3, **kwargs):
        calls.append((query, limit))
        if "idealo" in query:
            raise firecrawl.FirecrawlError("timeout")
        if "site:amazon.it" in query:
            return [
                {"title": "Apple iPhone 15 - Amazon.it", "url": "https://www.amazon.it/dp/B0C1", "markdown": "Prezzo: € 799,00"},
                {"title": "", "url": "https://www.ebay.it/itm/1"},
            ]
        if "WindTre" in query:
            return [{"title": "iPhone 15 | WINDTRE", "url": "https://www.windtre.it/iphone-15"}]
        return []

    monkeypatch.setattr(firecrawl, "search", fake_search)

    stores = OnlineStoreFetcher(make_settings(firecrawl_api_key="fc")).search(
        SearchParams(product_name="iPhone 15", location="Roma")
    )

    assert len(calls) == len(ONLINE_QUERIES)
    assert ("iPhone 15 store Roma buy purchase", 3) in calls
    assert [(s.name, s.store_type) for s in stores] == [
        ("Apple iPhone 15 - Amazon.it", "marketplace"),
        ("iPhone 15 | WINDTRE", "mobile_carrier"),
    ]
    amazon, carrier = stores
    assert all(store.is_online and store.source == "AI Crawl" for store in stores)
    assert amazon.address == "Online / Italy"
    assert amazon.product.price == "€ 799,00"
    assert amazon.product.description == "Prezzo: € 799,00..."
    assert carrier.product.price == "Contact store for pricing"
    assert carrier.product.description == "iPhone 15 available"


def test_online_store_search_requires_key(make_settings, monkeypatch):
    monkeypatch.setattr(firecrawl, "search", _fail)
    fetcher = OnlineStoreFetcher(make_settings())

    assert fetcher.is_configured() is False
    assert fetcher.search(SearchParams(product_name="iPhone 15")) == []
