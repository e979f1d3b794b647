import pytest

from instockr.models import Coordinates
from instockr.pipeline import verification
from instockr.vendors import google_places

SEARCH_RESULT = {"status": "OK", "results": [{"place_id": "pid", "name": "Acme", "rating": 4.1, "user_ratings_total": 7}]}


def test_requires_key(make_settings):
    with pytest.raises(verification.VerificationUnavailable):
        verification.verify_store("Acme", "Via Roma 1", make_settings())


def test_no_match_is_unverified(make_settings, monkeypatch):
    monkeypatch.setattr(google_places, "text_search", lambda query, api_key, **kwargs: {"status": "ZERO_RESULTS", "results": []})

    assert verification.verify_store("Acme", "Via Roma 1", make_settings(google_maps_api_key="key")) == {"verified": False}


def test_full_details(make_settings, monkeypatch):
    queries = []

    def fake_search(query, api_key, **kwargs):
        queries.append(query)
        return SEARCH_RESULT

    def fake_details(place_id, api_key, fields=None):
        assert fields == google_places.VERIFY_FIELDS
        return {
            "rating": 4.5,
            "user_ratings_total": 99,
            "opening_hours": {"open_now": True, "weekday_text": ["Monday: 9:00 AM – 7:00 PM"]},
            "photos": [{"photo_reference": "ref"}],
        }

    monkeypatch.setattr(google_places, "text_search", fake_search)
    monkeypatch.setattr(google_places, "place_details", fake_details)

    result = verification.verify_store("Acme", "Via Roma 1", make_settings(google_maps_api_key="key"))

    assert queries == ["Acme Via Roma 1"]
    assert result["verified"] is True
    assert result["googlePlaceId"] == "pid"
    assert result["rating"] == 4.5
    assert result["isOpen"] is True
    assert result["openingHours"] == ["Monday: 9:00 AM – 7:00 PM"]
    assert "photo_reference=ref" in result["photoUrl"]


def test_details_failure_keeps_search_rating(make_settings, monkeypatch):
    def boom(*args, **kwargs):
        raise google_places.GooglePlacesError("NOT_FOUND")

    monkeypatch.setattr(google_places, "text_search", lambda query, api_key, **kwargs: SEARCH_RESULT)
    monkeypatch.setattr(google_places, "place_details", boom)

    result = verification.verify_store("Acme", "Via Roma 1", make_settings(google_maps_api_key="key"))

    assert result == {"verified": True, "googlePlaceId": "pid", "rating": 4.1, "userRatingsTotal": 7}


def test_coordinates_bias_the_text_search(make_settings, monkeypatch):
    calls = []

    def fake_search(query, api_key, **kwargs):
        calls.append(kwargs)
        return {"status": "ZERO_RESULTS", "results": []}

    monkeypatch.setattr(google_places, "text_search", fake_search)
    settings = make_settings(google_maps_api_key="key")

    verification.verify_store("Acme", "Via Roma 1", settings, coords=Coordinates(45.46, 9.19))
    verification.verify_store("Acme", "Via Roma 1", settings)

    assert calls == [{"lat": 45.46, "lng": 9.19, "radius_m": verification.VERIFY_BIAS_RADIUS_M}, {}]
