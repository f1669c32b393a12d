from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    searches = [e for e in events if e["type"] == "search"]
    total = len(searches)

    # Average response time
    times = [s["response_time_ms"] for s in searches if "response_time_ms" in s]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Top queries, case-insensitive
    query_counter: Counter[str] = Counter()
    for s in searches:
        query_counter[(s.get("query") or "").lower()] += 1
    top_queries = [{"query": q, "count": c} for q, c in query_counter.most_common(10)]

    # Result mix
    platform = sum(s.get("platform_results", 0) for s in searches)
    discovered = sum(s.get("discovered_results", 0) for s in searches)
    returned = platform + discovered

    zero_results = sum(1 for s in searches if not s.get("results_returned"))
    degraded = sum(1 for s in searches if s.get("degraded"))
    with_location = sum(1 for s in searches if s.get("has_origin"))

    return {
        "total_searches": total,
        "avg_response_time_ms": avg_time,
        "top_queries": top_queries,
        "result_sources": {
            "platform": platform,
            "discovered": discovered,
            "platform_share": round(platform / returned * 100, 1) if returned else 0.0,
        },
        "zero_result_rate": round(zero_results / total * 100, 1) if total else 0.0,
        "degraded_searches": degraded,
        "location_usage": round(with_location / total * 100, 1) if total else 0.0,
    }
