from __future__ import annotations

from pydantic import BaseModel, Field

from ..domain.models import FilterState, RestaurantCategory, Role, Tag


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class FeedRequest(FilterState):
    limit: int = Field(default=50, ge=1, le=200)


class ReviewOut(BaseModel):
    id: str
    restaurant_id: str
    rating: int
    value_rating: int | None
    taste_rating: int | None
    reviewer_id: str | None
    reviewer_name: str
    avatar_url: str | None
    comment: str | None
    dish: str | None
    photo_url: str | None
    tags: list[Tag]
    visibility: dict[str, bool]


class RestaurantOut(BaseModel):
    id: str
    name: str
    cuisine: str | None
    categories: list[RestaurantCategory]
    address: str | None
    latitude: float | None
    longitude: float | None


class FeedItem(BaseModel):
    restaurant: RestaurantOut
    avg_rating: float | None
    avg_value_rating: float | None
    avg_taste_rating: float | None
    rating_label: str | None
    rating_class: str | None
    review_count: int
    top_tags: list[Tag]
    walking_time: str | None = None
    reviews: list[ReviewOut]


class FeedResponse(BaseModel):
    items: list[FeedItem]
    total_candidates: int
    social_filter: str
    office: str | None = None


class RoleUpdateRequest(BaseModel):
    role: Role


class FollowResponse(BaseModel):
    target_id: str
    state: str


class InviteRequest(BaseModel):
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$")


class PrivacyUpdateRequest(BaseModel):
    is_private: bool
