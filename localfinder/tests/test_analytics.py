from __future__ import annotations

from localfinder.analytics.aggregator import compute_analytics
from localfinder.analytics.store import clear_events, get_events, record_event


def _search(query, platform=1, discovered=1, ms=100.0, degraded=False, has_origin=False):
    return {
        "type": "search",
        "query": query,
        "platform_results": platform,
        "discovered_results": discovered,
        "results_returned": platform + discovered,
        "response_time_ms": ms,
        "degraded": degraded,
        "has_origin": has_origin,
    }


def test_analytics_empty():
    body = compute_analytics([])
    assert body["total_searches"] == 0
    assert body["avg_response_time_ms"] == 0.0
    assert body["zero_result_rate"] == 0.0
    assert body["result_sources"]["platform_share"] == 0.0


def test_analytics_tracks_searches():
    events = [
        _search("Tacos", platform=3, discovered=1, ms=100.0, has_origin=True),
        _search("tacos", platform=0, discovered=0, ms=300.0, degraded=True),
        _search("sushi", platform=1, discovered=3, ms=200.0),
        {"type": "other", "query": "ignored"},
    ]
    body = compute_analytics(events)

    assert body["total_searches"] == 3
    assert body["avg_response_time_ms"] == 200.0
    assert body["top_queries"][0] == {"query": "tacos", "count": 2}
    assert body["result_sources"] == {"platform": 4, "discovered": 4, "platform_share": 50.0}
    assert body["zero_result_rate"] == 33.3
    assert body["degraded_searches"] == 1
    assert body["location_usage"] == 33.3


def test_store_records_and_clears():
    clear_events()
    record_event("search", {"query": "tacos"})
    [event] = get_events()
    assert event["type"] == "search"
    assert event["query"] == "tacos"
    assert "timestamp" in event

    clear_events()
    assert get_events() == []
