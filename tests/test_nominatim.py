import pytest
import requests

from instockr.vendors import nominatim


class DummyResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}")

    def json(self):
        return self._payload


class DummySession:
    def __init__(self):
        self.calls = []
        self.response = DummyResponse(payload=[])

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append((url, params, headers, timeout))
        return self.response


@pytest.fixture(autouse=True)
def patch_session(monkeypatch):
    session = DummySession()
    monkeypatch.setattr(nominatim, "_SESSION", session)
    return session


def test_search_sends_user_agent(patch_session):
    patch_session.response = DummyResponse(payload=[{"lat": "1", "lon": "2"}])

    assert nominatim.search("Milano", "agent/1.0") == [{"lat": "1", "lon": "2"}]
    url, params, headers, timeout = patch_session.calls[0]
    assert url.endswith("/search")
    assert params["q"] == "Milano" and params["limit"] == 1
    assert headers == {"User-Agent": "agent/1.0"}
    assert timeout == 10


def test_search_http_error(patch_session):
    patch_session.response = DummyResponse(status_code=503)
    with pytest.raises(nominatim.NominatimError):
        nominatim.search("Milano", "agent")


def test_reverse_error_payload(patch_session):
    patch_session.response = DummyResponse(payload={"error": "Unable to geocode"})
    with pytest.raises(nominatim.NominatimError):
        nominatim.reverse(0.0, 0.0, "agent")


def test_reverse_uses_short_timeout(patch_session):
    patch_session.response = DummyResponse(payload={"display_name": "Milano"})
    assert nominatim.reverse(45.0, 9.0, "agent")["display_name"] == "Milano"
    assert patch_session.calls[0][3] == 2
