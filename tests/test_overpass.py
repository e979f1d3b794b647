import pytest
import requests

from instockr.vendors import overpass


class DummyResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}")

    def json(self):
        return self._payload


class DummySession:
    def __init__(self, responses):
        self.responses = dict(responses)
        self.calls = []

    def post(self, url, data=None, headers=None, timeout=None):
        self.calls.append((url, data, headers, timeout))
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response


def test_build_query_caps_radius_and_limits_results():
    query = overpass.build_query("shop=electronics", 45.46, 9.19, 10000)

    assert query.startswith("[out:json][limit:30];")
    assert 'node["shop"="electronics"](around:3000,45.46,9.19);' in query
    assert 'way["shop"="electronics"](around:3000,45.46,9.19);' in query
    assert query.endswith("out center tags;")


def test_build_query_wildcard_matches_key_only():
    query = overpass.build_query("shop=*", 45.0, 9.0, 1000)
    assert 'node["shop"](around:1000,45.0,9.0);' in query


def test_interpreter_uses_primary(monkeypatch):
    session = DummySession({overpass.PRIMARY_URL: DummyResponse(payload={"elements": [{"id": 1}]})})
    monkeypatch.setattr(overpass, "_SESSION", session)

    assert overpass.interpreter("q", "agent") == [{"id": 1}]
    url, data, headers, timeout = session.calls[0]
    assert data == b"q"
    assert headers["User-Agent"] == "agent"
    assert timeout == overpass.PRIMARY_TIMEOUT


def test_interpreter_falls_back_to_mirror(monkeypatch):
    session = DummySession(
        {
            overpass.PRIMARY_URL: requests.Timeout("slow"),
            overpass.FALLBACK_URL: DummyResponse(payload={"elements": [{"id": 2}]}),
        }
    )
    monkeypatch.setattr(overpass, "_SESSION", session)

    assert overpass.interpreter("q", "agent") == [{"id": 2}]
    assert [call[3] for call in session.calls] == [8, 6]


def test_interpreter_raises_when_both_fail(monkeypatch):
    session = DummySession(
        {
            overpass.PRIMARY_URL: DummyResponse(status_code=504),
            overpass.FALLBACK_URL: DummyResponse(status_code=429),
        }
    )
    monkeypatch.setattr(overpass, "_SESSION", session)

    with pytest.raises(overpass.OverpassError):
        overpass.interpreter("q", "agent")
