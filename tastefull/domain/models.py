from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    admin = "admin"
    member = "member"


class RestaurantCategory(str, Enum):
    lunch = "lunch"
    dinner = "dinner"
    coffee = "coffee"
    brunch = "brunch"
    pub = "pub"


class SocialFilter(str, Enum):
    """Reserved social scopes. Any other value is read as an organisation slug."""

    everyone = "everyone"
    following = "following"
    followers = "followers"
    just_me = "just_me"


RESERVED_SOCIAL_FILTERS = frozenset(f.value for f in SocialFilter)


class User(BaseModel):
    id: str = Field(..., min_length=1)
    email: str
    display_name: str | None = None
    is_private: bool = False
    avatar_url: str | None = None


class OfficeLocation(BaseModel):
    lat: float
    lng: float


class Organisation(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    slug: str = Field(..., min_length=1)
    tagline: str | None = None
    office_location: OfficeLocation | None = None


class OrganisationMembership(BaseModel):
    id: str = Field(..., min_length=1)
    organisation_id: str
    user_id: str
    role: Role = Role.member


class Follow(BaseModel):
    id: str
    follower_id: str
    following_id: str


class FollowRequest(BaseModel):
    id: str
    requester_id: str
    target_id: str


class OrganisationInvite(BaseModel):
    id: str = Field(..., min_length=1)
    organisation_id: str
    email: str
    token: str = Field(..., min_length=1)
    invited_by: str
    expires_at: datetime


class Restaurant(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    cuisine: str | None = None
    categories: list[RestaurantCategory] = Field(default_factory=list)
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class Tag(BaseModel):
    id: str
    name: str
    icon: str = ""


class Review(BaseModel):
    id: str = Field(..., min_length=1)
    restaurant_id: str
    user_id: str | None = None
    rating: int = Field(..., ge=1, le=10)
    value_rating: int | None = Field(default=None, ge=1, le=10)
    taste_rating: int | None = Field(default=None, ge=1, le=10)
    comment: str | None = None
    dish: str | None = None
    photo_url: str | None = None
    tag_ids: list[str] = Field(default_factory=list)
    # Historical visibility tag; visibility is derived from current membership.
    organisation_id: str | None = None


class FilterState(BaseModel):
    selected_categories: list[RestaurantCategory] = Field(default_factory=list)
    min_overall_rating: float | None = Field(default=None, ge=1, le=10)
    min_value_rating: float | None = Field(default=None, ge=1, le=10)
    min_taste_rating: float | None = Field(default=None, ge=1, le=10)
    social_filter: str = Field(default=SocialFilter.everyone.value, min_length=1)
    selected_user_ids: list[str] = Field(default_factory=list)
    selected_tag_ids: list[str] = Field(default_factory=list)
    selected_cuisines: list[str] = Field(default_factory=list)

    def has_active_filters(self) -> bool:
        return bool(
            self.selected_categories
            or self.min_overall_rating is not None
            or self.min_value_rating is not None
            or self.min_taste_rating is not None
            or self.social_filter != SocialFilter.everyone.value
            or self.selected_user_ids
            or self.selected_tag_ids
            or self.selected_cuisines
        )


class ReviewVisibility(BaseModel):
    rating: bool = True
    reviewer_name: bool = False
    comment: bool = False
