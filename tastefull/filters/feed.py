from __future__ import annotations

import time

from ..analytics.store import record_event
from ..domain.models import Organisation, Restaurant
from ..geo.distance import distance_from, format_distance
from ..ratings.labels import rating_class, rating_label
from ..store.data_store import get_graph, get_restaurants, get_reviews, get_tags
from ..visibility.predicate import build_viewer_context, present_review
from .engine import apply_filters, tags_for
from .models import FeedItem, FeedRequest, FeedResponse, RestaurantOut, ReviewOut


def _round(value: float | None) -> float | None:
    return round(value, 2) if value is not None else None


def _restaurant_out(restaurant: Restaurant) -> RestaurantOut:
    return RestaurantOut(**restaurant.model_dump())


def _active_office(
    page_org: Organisation | None, request: FeedRequest, viewer_id: str | None
) -> Organisation | None:
    """The page organisation, else the organisation picked as social scope."""
    if page_org is not None:
        return page_org
    graph = get_graph()
    org = graph.org_by_slug(request.social_filter)
    if org is not None and org.id in graph.org_ids_for(viewer_id):
        return org
    return None


def build_feed(
    request: FeedRequest,
    viewer_id: str | None,
    page_org: Organisation | None = None,
) -> FeedResponse:
    start_time = time.time()

    graph = get_graph()
    viewer = build_viewer_context(graph, viewer_id, page_org.id if page_org else None)
    tags_by_id = {t.id: t for t in get_tags()}

    filtered = apply_filters(get_restaurants(), get_reviews(), request, viewer_id, graph)
    office = _active_office(page_org, request, viewer_id)
    location = office.office_location if office else None

    items: list[FeedItem] = []
    for summary in filtered[: request.limit]:
        r = summary.restaurant
        walking_time = None
        if location is not None:
            walking_time = format_distance(
                distance_from(location.lat, location.lng, r.latitude, r.longitude)
            )
        items.append(FeedItem(
            restaurant=_restaurant_out(r),
            avg_rating=_round(summary.avg_rating),
            avg_value_rating=_round(summary.avg_value_rating),
            avg_taste_rating=_round(summary.avg_taste_rating),
            rating_label=rating_label(summary.avg_rating) if summary.avg_rating is not None else None,
            rating_class=rating_class(summary.avg_rating) if summary.avg_rating is not None else None,
            review_count=summary.relevant_review_count,
            top_tags=tags_for(summary, tags_by_id),
            walking_time=walking_time,
            reviews=[
                ReviewOut(**present_review(rev, viewer, tags_by_id))
                for rev in summary.relevant_reviews
            ],
        ))

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event("feed", {
        "social_filter": request.social_filter,
        "categories": [c.value for c in request.selected_categories],
        "rating_filters": [
            name for name, value in (
                ("overall", request.min_overall_rating),
                ("value", request.min_value_rating),
                ("taste", request.min_taste_rating),
            ) if value is not None
        ],
        "tags": request.selected_tag_ids,
        "cuisines": request.selected_cuisines,
        "organisation": page_org.slug if page_org else None,
        "filtered": request.has_active_filters(),
        "signed_in": viewer.signed_in,
        "total_candidates": len(filtered),
        "results_returned": len(items),
        "response_time_ms": elapsed_ms,
    })

    return FeedResponse(
        items=items,
        total_candidates=len(filtered),
        social_filter=request.social_filter,
        office=office.name if office else None,
    )
