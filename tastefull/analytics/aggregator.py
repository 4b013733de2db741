from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    feeds = [e for e in events if e["type"] == "feed"]
    total = len(feeds)

    # Average response time
    times = [f["response_time_ms"] for f in feeds if "response_time_ms" in f]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Social scopes
    scope_counter: Counter[str] = Counter()
    for f in feeds:
        scope_counter[f.get("social_filter", "everyone")] += 1
    social_usage = [{"name": n, "count": c} for n, c in scope_counter.most_common(10)]

    # Categories
    category_counter: Counter[str] = Counter()
    for f in feeds:
        for c in f.get("categories", []) or []:
            category_counter[c] += 1
    top_categories = [{"name": n, "count": c} for n, c in category_counter.most_common(10)]

    # Filter usage rates
    filter_counts = {"category": 0, "rating": 0, "social": 0, "tag": 0, "cuisine": 0}
    for f in feeds:
        if f.get("categories"):
            filter_counts["category"] += 1
        if f.get("rating_filters"):
            filter_counts["rating"] += 1
        if f.get("social_filter", "everyone") != "everyone":
            filter_counts["social"] += 1
        if f.get("tags"):
            filter_counts["tag"] += 1
        if f.get("cuisines"):
            filter_counts["cuisine"] += 1
    filter_usage = {
        k: round(v / total * 100, 1) if total else 0.0
        for k, v in filter_counts.items()
    }

    empty = sum(1 for f in feeds if f.get("results_returned", 0) == 0)
    signed_in = sum(1 for f in feeds if f.get("signed_in"))
    filtered = sum(1 for f in feeds if f.get("filtered"))

    return {
        "total_feeds": total,
        "avg_response_time_ms": avg_time,
        "social_filter_usage": social_usage,
        "top_categories": top_categories,
        "filter_usage": filter_usage,
        "empty_result_rate": round(empty / total * 100, 1) if total else 0.0,
        "signed_in_rate": round(signed_in / total * 100, 1) if total else 0.0,
        "filtered_rate": round(filtered / total * 100, 1) if total else 0.0,
    }
