"""
Follow / follow-request transitions.

Each (follower, target) pair moves through ``none -> requested -> following``
when the target is private and ``none -> following`` when it is public.
Every function here takes the current rows and returns new tuples; the input
collections are never mutated, and a call that does not apply returns the
rows unchanged rather than raising.
"""
from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from ..domain.models import Follow, FollowRequest, User
from .graph import has_pending_request, is_following


class FollowState(str, Enum):
    none = "none"
    requested = "requested"
    following = "following"


def _follow_id(follower_id: str, target_id: str) -> str:
    return f"follow:{follower_id}:{target_id}"


def _request_id(requester_id: str, target_id: str) -> str:
    return f"request:{requester_id}:{target_id}"


def follow_state(
    follows: Iterable[Follow],
    requests: Iterable[FollowRequest],
    follower_id: str,
    target_id: str,
) -> FollowState:
    if is_following(follows, follower_id, target_id):
        return FollowState.following
    if has_pending_request(requests, follower_id, target_id):
        return FollowState.requested
    return FollowState.none


def follow_user(
    follows: Iterable[Follow], follower_id: str, target_id: str
) -> tuple[Follow, ...]:
    current = tuple(follows)
    if follower_id == target_id:
        return current
    if is_following(current, follower_id, target_id):
        return current
    return current + (
        Follow(
            id=_follow_id(follower_id, target_id),
            follower_id=follower_id,
            following_id=target_id,
        ),
    )


def unfollow_user(
    follows: Iterable[Follow], follower_id: str, target_id: str
) -> tuple[Follow, ...]:
    return tuple(
        f for f in follows
        if not (f.follower_id == follower_id and f.following_id == target_id)
    )


def request_to_follow(
    requests: Iterable[FollowRequest],
    follows: Iterable[Follow],
    users: Iterable[User],
    requester_id: str,
    target_id: str,
) -> tuple[FollowRequest, ...]:
    """Add a pending request, but only for a private target not yet followed."""
    current = tuple(requests)
    if requester_id == target_id:
        return current

    target = next((u for u in users if u.id == target_id), None)
    if target is None or not target.is_private:
        return current
    if has_pending_request(current, requester_id, target_id):
        return current
    if is_following(follows, requester_id, target_id):
        return current

    return current + (
        FollowRequest(
            id=_request_id(requester_id, target_id),
            requester_id=requester_id,
            target_id=target_id,
        ),
    )


def accept_follow_request(
    follows: Iterable[Follow],
    requests: Iterable[FollowRequest],
    request_id: str,
) -> tuple[tuple[Follow, ...], tuple[FollowRequest, ...]]:
    current_follows = tuple(follows)
    current_requests = tuple(requests)

    request = next((r for r in current_requests if r.id == request_id), None)
    if request is None:
        return current_follows, current_requests

    new_requests = tuple(r for r in current_requests if r.id != request_id)
    new_follows = follow_user(current_follows, request.requester_id, request.target_id)
    return new_follows, new_requests


def decline_follow_request(
    requests: Iterable[FollowRequest], request_id: str
) -> tuple[FollowRequest, ...]:
    return tuple(r for r in requests if r.id != request_id)


def cancel_follow_request(
    requests: Iterable[FollowRequest], requester_id: str, target_id: str
) -> tuple[FollowRequest, ...]:
    return tuple(
        r for r in requests
        if not (r.requester_id == requester_id and r.target_id == target_id)
    )


def follow_or_request(
    follows: Iterable[Follow],
    requests: Iterable[FollowRequest],
    users: Iterable[User],
    follower_id: str,
    target_id: str,
) -> tuple[tuple[Follow, ...], tuple[FollowRequest, ...]]:
    """Follow a public user directly, or file a request with a private one."""
    current_follows = tuple(follows)
    current_requests = tuple(requests)
    user_list = tuple(users)

    target = next((u for u in user_list if u.id == target_id), None)
    if target is None:
        return current_follows, current_requests

    if target.is_private:
        return current_follows, request_to_follow(
            current_requests, current_follows, user_list, follower_id, target_id,
        )
    return follow_user(current_follows, follower_id, target_id), current_requests
