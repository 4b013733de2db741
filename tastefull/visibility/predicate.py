"""
Per-field review visibility.

Ratings are public. A reviewer's name and comment are disclosed only to a
signed-in viewer who shares an organisation with the reviewer (or, on a
single organisation's page, when the reviewer belongs to that organisation),
and, for private accounts, only to the reviewer themself or to someone who
already follows them. Anything that cannot be resolved is hidden.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from ..domain.models import Restaurant, Review, ReviewVisibility, Tag, User
from ..organisations.membership import visible_reviewer_ids
from ..ratings.labels import TOP_RATED_THRESHOLD, average
from ..social.graph import SocialGraph

ANONYMOUS_NAME = "Anonymous"


@dataclass(frozen=True)
class ViewerContext:
    viewer_id: str | None = None
    following_ids: frozenset[str] = frozenset()
    # Users who share an organisation with the viewer, or who belong to the
    # page organisation when one is set.
    org_peer_ids: frozenset[str] = frozenset()
    page_org_id: str | None = None
    users_by_id: dict[str, User] = field(default_factory=dict, compare=False)

    @property
    def signed_in(self) -> bool:
        return bool(self.viewer_id)

    def reviewer(self, user_id: str | None) -> User | None:
        if not user_id:
            return None
        return self.users_by_id.get(user_id)


def build_viewer_context(
    graph: SocialGraph, viewer_id: str | None, page_org_id: str | None = None
) -> ViewerContext:
    return ViewerContext(
        viewer_id=viewer_id or None,
        following_ids=graph.following_ids(viewer_id),
        org_peer_ids=visible_reviewer_ids(graph, viewer_id, page_org_id),
        page_org_id=page_org_id,
        users_by_id={u.id: u for u in graph.users},
    )


def _details_visible(reviewer: User | None, viewer: ViewerContext) -> bool:
    if not viewer.signed_in or reviewer is None:
        return False
    if reviewer.id not in viewer.org_peer_ids:
        return False
    if reviewer.is_private:
        return reviewer.id == viewer.viewer_id or reviewer.id in viewer.following_ids
    return True


def is_review_visible(
    review: Review | None,
    viewer: ViewerContext | None,
    reviewer: User | None = None,
) -> ReviewVisibility:
    """
    Decide which fields of ``review`` ``viewer`` may see.

    ``reviewer`` may be passed explicitly; otherwise it is looked up in the
    viewer context. Never raises.
    """
    if review is None or viewer is None:
        return ReviewVisibility(rating=True, reviewer_name=False, comment=False)

    if reviewer is None:
        reviewer = viewer.reviewer(review.user_id)
    elif reviewer.id != review.user_id:
        reviewer = None

    visible = _details_visible(reviewer, viewer)
    return ReviewVisibility(rating=True, reviewer_name=visible, comment=visible)


def present_review(
    review: Review,
    viewer: ViewerContext,
    tags_by_id: dict[str, Tag] | None = None,
) -> dict[str, Any]:
    """Serialise a review with hidden fields withheld."""
    visibility = is_review_visible(review, viewer)
    reviewer = viewer.reviewer(review.user_id)
    tags_by_id = tags_by_id or {}

    if visibility.reviewer_name and reviewer is not None:
        name = reviewer.display_name or reviewer.email or ANONYMOUS_NAME
        avatar_url = reviewer.avatar_url
        user_id = reviewer.id
    else:
        name, avatar_url, user_id = ANONYMOUS_NAME, None, None

    detail = visibility.comment
    return {
        "id": review.id,
        "restaurant_id": review.restaurant_id,
        "rating": review.rating,
        "value_rating": review.value_rating,
        "taste_rating": review.taste_rating,
        "reviewer_id": user_id,
        "reviewer_name": name,
        "avatar_url": avatar_url,
        "comment": review.comment if detail else None,
        "dish": review.dish if detail else None,
        "photo_url": review.photo_url if detail else None,
        "tags": [
            tags_by_id[t].model_dump() for t in review.tag_ids if t in tags_by_id
        ] if detail else [],
        "visibility": visibility.model_dump(),
    }


def visible_stats(
    restaurants: Iterable[Restaurant],
    reviews: Iterable[Review],
    viewer: ViewerContext,
) -> dict[str, Any]:
    """Dashboard counters computed only from reviews whose details are visible."""
    restaurant_list = list(restaurants)
    by_restaurant: dict[str, list[Review]] = {}
    for review in reviews:
        by_restaurant.setdefault(review.restaurant_id, []).append(review)

    total_visible = 0
    restaurant_averages: list[float] = []
    for restaurant in restaurant_list:
        visible = [
            r for r in by_restaurant.get(restaurant.id, [])
            if is_review_visible(r, viewer).comment
        ]
        total_visible += len(visible)
        avg = average(r.rating for r in visible)
        if avg is not None:
            restaurant_averages.append(avg)

    overall = average(restaurant_averages)
    return {
        "total": len(restaurant_list),
        "reviews": total_visible,
        "avg_rating": round(overall, 2) if overall is not None else 0.0,
        "top_rated": sum(1 for a in restaurant_averages if a >= TOP_RATED_THRESHOLD),
    }
