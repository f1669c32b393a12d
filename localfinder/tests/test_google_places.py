import pytest
import requests

from localfinder.places import distance_matrix, google_places
from localfinder.places.config import PlacesConfig
from localfinder.search.errors import DiscoveryBranchFailed, GeoDistanceFailed

CONFIG = PlacesConfig(api_key="places-key", distance_api_key="distance-key")
ORIGIN = (37.7749, -122.4194)


class DummyResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


class DummySession:
    def __init__(self):
        self.calls = []
        self.response = DummyResponse()

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


@pytest.fixture
def places_session(monkeypatch):
    session = DummySession()
    monkeypatch.setattr(google_places, "_SESSION", session)
    return session


@pytest.fixture
def distance_session(monkeypatch):
    session = DummySession()
    monkeypatch.setattr(distance_matrix, "_SESSION", session)
    return session


# ── Places text search ───────────────────────────────────────────────────


def test_text_search_success(places_session):
    places_session.response = DummyResponse(payload={"status": "OK", "results": [{"place_id": "p1"}]})
    results = google_places.GooglePlacesClient(CONFIG).text_search("vegan cafe", *ORIGIN)

    assert results == [{"place_id": "p1"}]
    url, params, timeout = places_session.calls[0]
    assert "textsearch" in url
    assert params["query"] == "vegan cafe"
    assert params["location"] == "37.7749,-122.4194"
    assert params["key"] == "places-key"
    assert timeout == CONFIG.search_timeout


def test_text_search_zero_results(places_session):
    places_session.response = DummyResponse(payload={"status": "ZERO_RESULTS", "results": []})
    assert google_places.GooglePlacesClient(CONFIG).text_search("vegan cafe", *ORIGIN) == []


def test_text_search_error_status(places_session):
    places_session.response = DummyResponse(payload={"status": "REQUEST_DENIED", "error_message": "bad key"})
    with pytest.raises(google_places.GooglePlacesError):
        google_places.GooglePlacesClient(CONFIG).text_search("vegan cafe", *ORIGIN)


def test_text_search_network_error_is_a_branch_failure(places_session):
    places_session.response = requests.ConnectionError("unreachable")
    with pytest.raises(DiscoveryBranchFailed):
        google_places.GooglePlacesClient(CONFIG).text_search("vegan cafe", *ORIGIN)


def test_phone_number(places_session):
    places_session.response = DummyResponse(
        payload={"status": "OK", "result": {"formatted_phone_number": "(415) 555-0100"}}
    )
    assert google_places.GooglePlacesClient(CONFIG).phone_number("p1") == "(415) 555-0100"
    _, params, timeout = places_session.calls[0]
    assert params["place_id"] == "p1"
    assert timeout == CONFIG.details_timeout


def test_phone_number_none_on_error(places_session):
    places_session.response = DummyResponse(status_code=500)
    assert google_places.GooglePlacesClient(CONFIG).phone_number("p1") is None

    places_session.response = DummyResponse(payload={"status": "OVER_QUERY_LIMIT"})
    assert google_places.GooglePlacesClient(CONFIG).phone_number("p1") is None


# ── Distance matrix ──────────────────────────────────────────────────────


def test_distances_batches_destinations(distance_session):
    distance_session.response = DummyResponse(payload={
        "status": "OK",
        "rows": [{"elements": [
            {"status": "OK", "distance": {"value": 3218.688}, "duration": {"value": 540}},
            {"status": "NOT_FOUND"},
            {"status": "OK", "distance": {"value": 1609.344}, "duration": {"value": 150}},
        ]}],
    })
    destinations = {"10": (37.78, -122.41), "ai-p1": (0.0, 0.0), "20": (37.77, -122.42)}

    result = distance_matrix.DistanceMatrixClient(CONFIG).distances(ORIGIN, destinations)

    assert result == {"10": (2.0, 9.0), "20": (1.0, 2.5)}
    assert len(distance_session.calls) == 1
    _, params, timeout = distance_session.calls[0]
    assert params["destinations"] == "37.78,-122.41|0.0,0.0|37.77,-122.42"
    assert params["units"] == "imperial"
    assert params["key"] == "distance-key"
    assert timeout == CONFIG.distance_timeout


def test_distances_timeout_is_capped_by_remaining_budget(distance_session):
    distance_session.response = DummyResponse(payload={"status": "OK", "rows": [{"elements": [{"status": "NOT_FOUND"}]}]})
    client = distance_matrix.DistanceMatrixClient(CONFIG)

    client.distances(ORIGIN, {"10": (37.78, -122.41)}, timeout=2.0)
    client.distances(ORIGIN, {"10": (37.78, -122.41)}, timeout=60.0)

    assert [call[2] for call in distance_session.calls] == [2.0, CONFIG.distance_timeout]


def test_distances_empty_destinations_skip_request(distance_session):
    assert distance_matrix.DistanceMatrixClient(CONFIG).distances(ORIGIN, {}) == {}
    assert distance_session.calls == []


def test_distances_top_level_error(distance_session):
    distance_session.response = DummyResponse(payload={"status": "OVER_DAILY_LIMIT"})
    with pytest.raises(GeoDistanceFailed):
        distance_matrix.DistanceMatrixClient(CONFIG).distances(ORIGIN, {"10": (37.78, -122.41)})


def test_distances_http_error(distance_session):
    distance_session.response = DummyResponse(status_code=503)
    with pytest.raises(distance_matrix.DistanceMatrixError):
        distance_matrix.DistanceMatrixClient(CONFIG).distances(ORIGIN, {"10": (37.78, -122.41)})
