from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..domain.models import (
    Follow,
    FollowRequest,
    Organisation,
    OrganisationMembership,
    User,
)


@dataclass(frozen=True)
class SocialGraph:
    """
    Read-only snapshot of the social collections a viewer has fetched.

    Every query derives its answer from the tuples held here, so two
    graphs built from the same rows always answer the same way.
    """

    users: tuple[User, ...] = ()
    follows: tuple[Follow, ...] = ()
    follow_requests: tuple[FollowRequest, ...] = ()
    organisations: tuple[Organisation, ...] = ()
    memberships: tuple[OrganisationMembership, ...] = ()
    _users_by_id: dict[str, User] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_users_by_id", {u.id: u for u in self.users})

    @classmethod
    def build(
        cls,
        users: Iterable[User] = (),
        follows: Iterable[Follow] = (),
        follow_requests: Iterable[FollowRequest] = (),
        organisations: Iterable[Organisation] = (),
        memberships: Iterable[OrganisationMembership] = (),
    ) -> "SocialGraph":
        return cls(
            users=tuple(users),
            follows=tuple(follows),
            follow_requests=tuple(follow_requests),
            organisations=tuple(organisations),
            memberships=tuple(memberships),
        )

    # ── Users ────────────────────────────────────────────────────────────

    def user(self, user_id: str | None) -> User | None:
        if not user_id:
            return None
        return self._users_by_id.get(user_id)

    def is_private(self, user_id: str | None) -> bool:
        user = self.user(user_id)
        return user.is_private if user else False

    # ── Follows ──────────────────────────────────────────────────────────

    def following_ids(self, user_id: str | None) -> frozenset[str]:
        if not user_id:
            return frozenset()
        return frozenset(f.following_id for f in self.follows if f.follower_id == user_id)

    def follower_ids(self, user_id: str | None) -> frozenset[str]:
        if not user_id:
            return frozenset()
        return frozenset(f.follower_id for f in self.follows if f.following_id == user_id)

    def is_following(self, follower_id: str, target_id: str) -> bool:
        return is_following(self.follows, follower_id, target_id)

    def is_mutual(self, a: str, b: str) -> bool:
        return self.is_following(a, b) and self.is_following(b, a)

    def follower_count(self, user_id: str) -> int:
        return sum(1 for f in self.follows if f.following_id == user_id)

    def following_count(self, user_id: str) -> int:
        return sum(1 for f in self.follows if f.follower_id == user_id)

    # ── Follow requests ──────────────────────────────────────────────────

    def has_pending_request(self, requester_id: str, target_id: str) -> bool:
        return has_pending_request(self.follow_requests, requester_id, target_id)

    def incoming_requests(self, user_id: str) -> list[FollowRequest]:
        return [r for r in self.follow_requests if r.target_id == user_id]

    def outgoing_requests(self, user_id: str) -> list[FollowRequest]:
        return [r for r in self.follow_requests if r.requester_id == user_id]

    # ── Organisations ────────────────────────────────────────────────────

    def members_by_org(self) -> dict[str, frozenset[str]]:
        grouped: dict[str, set[str]] = {}
        for m in self.memberships:
            grouped.setdefault(m.organisation_id, set()).add(m.user_id)
        return {org_id: frozenset(ids) for org_id, ids in grouped.items()}

    def member_ids(self, org_id: str) -> frozenset[str]:
        return frozenset(m.user_id for m in self.memberships if m.organisation_id == org_id)

    def org_ids_for(self, user_id: str | None) -> frozenset[str]:
        if not user_id:
            return frozenset()
        return frozenset(m.organisation_id for m in self.memberships if m.user_id == user_id)

    def orgs_for(self, user_id: str | None) -> list[Organisation]:
        ids = self.org_ids_for(user_id)
        return [o for o in self.organisations if o.id in ids]

    def organisation(self, org_id: str | None) -> Organisation | None:
        return next((o for o in self.organisations if o.id == org_id), None) if org_id else None

    def org_by_slug(self, slug: str | None) -> Organisation | None:
        if not slug:
            return None
        for org in self.organisations:
            if org.slug == slug:
                return org
        return None


def is_following(follows: Iterable[Follow], follower_id: str, target_id: str) -> bool:
    return any(f.follower_id == follower_id and f.following_id == target_id for f in follows)


def has_pending_request(
    requests: Iterable[FollowRequest], requester_id: str, target_id: str
) -> bool:
    return any(r.requester_id == requester_id and r.target_id == target_id for r in requests)
