"""
Feed filter composition.

A restaurant survives when it passes every active filter:

* categories   - OR across the selected categories, empty means no filter
* social scope - only reviews from reviewers in scope count, and a restaurant
                 with no such review drops out while a scope is active
* ratings      - each minimum threshold is compared against the average
                 recomputed over the in-scope reviews only
* cuisines / tags / selected users - supplementary narrowing

Unknown scopes resolve to an empty reviewer set, so the affected restaurants
are excluded instead of raising.
"""
from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..domain.models import (
    RESERVED_SOCIAL_FILTERS,
    FilterState,
    Restaurant,
    Review,
    SocialFilter,
    Tag,
)
from ..ratings.labels import average
from ..social.graph import SocialGraph

TOP_TAG_COUNT = 2


@dataclass(frozen=True)
class SocialScope:
    """Reviewer restriction; ``member_ids is None`` means unrestricted."""

    member_ids: frozenset[str] | None = None

    @property
    def active(self) -> bool:
        return self.member_ids is not None

    def admits(self, review: Review) -> bool:
        if self.member_ids is None:
            return True
        return bool(review.user_id) and review.user_id in self.member_ids


@dataclass(frozen=True)
class FilteredRestaurant:
    restaurant: Restaurant
    avg_rating: float | None
    avg_value_rating: float | None
    avg_taste_rating: float | None
    relevant_review_count: int
    relevant_reviews: tuple[Review, ...] = field(default=(), repr=False)
    top_tag_ids: tuple[str, ...] = ()


def resolve_social_scope(
    social_filter: str | SocialFilter | None,
    viewer_id: str | None,
    graph: SocialGraph,
) -> SocialScope:
    value = social_filter.value if isinstance(social_filter, SocialFilter) else social_filter
    if not value or value == SocialFilter.everyone.value:
        return SocialScope()
    if not viewer_id:
        return SocialScope(frozenset())

    if value == SocialFilter.following.value:
        return SocialScope(graph.following_ids(viewer_id))
    if value == SocialFilter.followers.value:
        return SocialScope(graph.follower_ids(viewer_id))
    if value == SocialFilter.just_me.value:
        return SocialScope(frozenset({viewer_id}))

    # Organisation slug, limited to organisations the viewer belongs to
    org = graph.org_by_slug(value)
    if value in RESERVED_SOCIAL_FILTERS or org is None or org.id not in graph.org_ids_for(viewer_id):
        return SocialScope(frozenset())
    return SocialScope(graph.member_ids(org.id))


def matches_categories(restaurant: Restaurant, selected: Iterable[str]) -> bool:
    wanted = {getattr(c, "value", c) for c in selected}
    if not wanted:
        return True
    return any(getattr(c, "value", c) in wanted for c in restaurant.categories)


def filter_by_categories(
    restaurants: Iterable[Restaurant], selected: Iterable[str]
) -> list[Restaurant]:
    wanted = list(selected)
    return [r for r in restaurants if matches_categories(r, wanted)]


def _top_tags(reviews: Iterable[Review]) -> tuple[str, ...]:
    counts: Counter[str] = Counter()
    for review in reviews:
        counts.update(dict.fromkeys(review.tag_ids, 1))
    return tuple(tag_id for tag_id, _ in counts.most_common(TOP_TAG_COUNT))


def _passes_threshold(avg: float | None, threshold: float | None) -> bool:
    if threshold is None:
        return True
    return avg is not None and avg >= threshold


def summarise(restaurant: Restaurant, relevant: Iterable[Review]) -> FilteredRestaurant:
    relevant = tuple(relevant)
    return FilteredRestaurant(
        restaurant=restaurant,
        avg_rating=average(r.rating for r in relevant),
        avg_value_rating=average(r.value_rating for r in relevant),
        avg_taste_rating=average(r.taste_rating for r in relevant),
        relevant_review_count=len(relevant),
        relevant_reviews=relevant,
        top_tag_ids=_top_tags(relevant),
    )


def apply_filters(
    restaurants: Iterable[Restaurant],
    reviews: Iterable[Review],
    filter_state: FilterState | None,
    viewer_id: str | None,
    graph: SocialGraph | None = None,
) -> list[FilteredRestaurant]:
    """
    Filter and rank restaurants for a viewer.

    Returns one entry per surviving restaurant, ordered by the in-scope
    overall average (highest first, unrated last, ties in input order).
    """
    state = filter_state or FilterState()
    graph = graph or SocialGraph()

    if state.selected_user_ids:
        scope = SocialScope(frozenset(state.selected_user_ids))
    else:
        scope = resolve_social_scope(state.social_filter, viewer_id, graph)

    by_restaurant: dict[str, list[Review]] = {}
    for review in reviews:
        by_restaurant.setdefault(review.restaurant_id, []).append(review)

    wanted_cuisines = {c.strip().lower() for c in state.selected_cuisines if c and c.strip()}
    wanted_tags = set(state.selected_tag_ids)

    results: list[FilteredRestaurant] = []
    seen: set[str] = set()
    for restaurant in restaurants:
        if restaurant.id in seen:
            continue
        seen.add(restaurant.id)

        if not matches_categories(restaurant, state.selected_categories):
            continue

        if wanted_cuisines and (restaurant.cuisine or "").strip().lower() not in wanted_cuisines:
            continue

        all_reviews = by_restaurant.get(restaurant.id, [])
        if wanted_tags:
            restaurant_tags = {t for r in all_reviews for t in r.tag_ids}
            if not wanted_tags <= restaurant_tags:
                continue

        summary = summarise(restaurant, (r for r in all_reviews if scope.admits(r)))

        if scope.active and summary.relevant_review_count == 0:
            continue
        if not _passes_threshold(summary.avg_rating, state.min_overall_rating):
            continue
        if not _passes_threshold(summary.avg_value_rating, state.min_value_rating):
            continue
        if not _passes_threshold(summary.avg_taste_rating, state.min_taste_rating):
            continue

        results.append(summary)

    # sorted() is stable, so equal averages keep input order
    return sorted(
        results,
        key=lambda r: (r.avg_rating is None, -(r.avg_rating or 0.0)),
    )


def tags_for(summary: FilteredRestaurant, tags_by_id: dict[str, Tag]) -> list[Tag]:
    return [tags_by_id[t] for t in summary.top_tag_ids if t in tags_by_id]
