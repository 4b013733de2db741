from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException, Request
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .auth.dependencies import get_viewer_id, require_admin, require_user
from .auth.users import authenticate
from .config import DEFAULT_APP_CONFIG
from .domain.models import (
    RESERVED_SOCIAL_FILTERS,
    FollowRequest,
    OrganisationInvite,
    OrganisationMembership,
    RestaurantCategory,
    Role,
)
from .filters.feed import build_feed
from .filters.models import (
    FeedRequest,
    FeedResponse,
    FollowResponse,
    InviteRequest,
    LoginRequest,
    PrivacyUpdateRequest,
    ReviewOut,
    RoleUpdateRequest,
)
from .organisations.invites import (
    accept_invite,
    can_accept_invite,
    create_invite,
    decline_invite,
    is_invite_expired,
    pending_invites_for,
)
from .organisations.membership import (
    can_leave_organisation,
    is_org_admin,
    is_sole_admin,
    leave_organisation,
    set_member_role,
    transfer_admin,
)
from .social.follows import (
    accept_follow_request,
    cancel_follow_request,
    decline_follow_request,
    follow_or_request,
    follow_state,
    unfollow_user,
)
from .social.privacy import set_privacy
from .store.data_store import (
    get_follow_requests,
    get_follows,
    get_graph,
    get_invites,
    get_memberships,
    get_organisations,
    get_restaurants,
    get_reviews,
    get_tags,
    get_users,
    replace_follow_requests,
    replace_follows,
    replace_invites,
    replace_memberships,
    replace_organisations,
    replace_users,
)
from .visibility.predicate import build_viewer_context, present_review, visible_stats

logger = logging.getLogger(__name__)

app = FastAPI(title="Tastefull API", version="1.0.0")
app.add_middleware(SessionMiddleware, secret_key=DEFAULT_APP_CONFIG.session_secret)


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    cuisines = sorted({r.cuisine for r in get_restaurants() if r.cuisine})
    return {
        "categories": [c.value for c in RestaurantCategory],
        "cuisines": cuisines,
        "tags": [t.model_dump() for t in get_tags()],
        "social_filters": sorted(RESERVED_SOCIAL_FILTERS),
    }


@app.post("/feed", response_model=FeedResponse)
def feed(body: FeedRequest, viewer_id: str | None = Depends(get_viewer_id)) -> FeedResponse:
    return build_feed(body, viewer_id)


@app.get("/restaurants/{restaurant_id}")
def restaurant_detail(
    restaurant_id: str, viewer_id: str | None = Depends(get_viewer_id)
) -> dict:
    restaurant = next((r for r in get_restaurants() if r.id == restaurant_id), None)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")

    viewer = build_viewer_context(get_graph(), viewer_id)
    tags_by_id = {t.id: t for t in get_tags()}
    reviews = [
        ReviewOut(**present_review(rev, viewer, tags_by_id))
        for rev in get_reviews() if rev.restaurant_id == restaurant_id
    ]
    return {"restaurant": restaurant.model_dump(), "reviews": [r.model_dump() for r in reviews]}


@app.get("/stats")
def stats(viewer_id: str | None = Depends(get_viewer_id)) -> dict:
    viewer = build_viewer_context(get_graph(), viewer_id)
    return visible_stats(get_restaurants(), get_reviews(), viewer)


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.email, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    graph = get_graph()
    profile = graph.user(user["id"])
    return {
        **user,
        "is_private": profile.is_private if profile else False,
        "organisations": [
            {"id": o.id, "name": o.name, "slug": o.slug}
            for o in graph.orgs_for(user["id"])
        ],
    }


@app.patch("/auth/me/privacy")
def update_privacy(body: PrivacyUpdateRequest, user: dict = Depends(require_user)) -> dict:
    replace_users(set_privacy(get_users(), user["id"], body.is_private))
    logger.info("User %s set private=%s", user["id"], body.is_private)
    return {"status": "updated", "is_private": body.is_private}


# ── Organisation pages ───────────────────────────────────────────────────


@app.post("/organisations/{slug}/feed", response_model=FeedResponse)
def organisation_feed(
    slug: str,
    body: FeedRequest,
    user: dict = Depends(require_user),
) -> FeedResponse:
    org = get_graph().org_by_slug(slug)
    if org is None:
        raise HTTPException(status_code=404, detail="Organisation not found")
    return build_feed(body, user["id"], page_org=org)


def _membership_or_404(membership_id: str) -> OrganisationMembership:
    membership = next((m for m in get_memberships() if m.id == membership_id), None)
    if membership is None:
        raise HTTPException(status_code=404, detail="Membership not found")
    return membership


@app.delete("/organisations/memberships/{membership_id}")
def remove_membership(membership_id: str, user: dict = Depends(require_user)) -> dict:
    memberships = get_memberships()
    membership = _membership_or_404(membership_id)
    if membership.user_id != user["id"]:
        if not is_org_admin(memberships, membership.organisation_id, user["id"]):
            raise HTTPException(status_code=403, detail="Organisation admin access required")
        if membership.role == Role.admin:
            raise HTTPException(status_code=403, detail="Admins cannot be removed by other members")

    allowed, reason = can_leave_organisation(memberships, membership_id)
    if not allowed:
        raise HTTPException(status_code=409, detail=reason)

    new_memberships, new_orgs = leave_organisation(
        memberships, get_organisations(), membership_id,
    )
    replace_memberships(new_memberships)
    replace_organisations(new_orgs)
    logger.info("Membership %s removed by %s", membership_id, user["id"])
    return {
        "status": "removed",
        "organisation_deleted": not any(o.id == membership.organisation_id for o in new_orgs),
    }


@app.patch("/organisations/memberships/{membership_id}")
def update_membership_role(
    membership_id: str,
    body: RoleUpdateRequest,
    user: dict = Depends(require_user),
) -> dict:
    memberships = get_memberships()
    membership = _membership_or_404(membership_id)
    if not is_org_admin(memberships, membership.organisation_id, user["id"]):
        raise HTTPException(status_code=403, detail="Organisation admin access required")
    if body.role != Role.admin and is_sole_admin(memberships, membership_id):
        raise HTTPException(status_code=409, detail="Transfer admin role before stepping down")

    replace_memberships(set_member_role(memberships, membership_id, body.role))
    logger.info("Membership %s set to %s by %s", membership_id, body.role.value, user["id"])
    return {"status": "updated", "role": body.role.value}


@app.post("/organisations/memberships/{membership_id}/transfer-admin")
def transfer_admin_role(membership_id: str, user: dict = Depends(require_user)) -> dict:
    memberships = get_memberships()
    membership = _membership_or_404(membership_id)
    if not is_org_admin(memberships, membership.organisation_id, user["id"]):
        raise HTTPException(status_code=403, detail="Organisation admin access required")
    if membership.user_id == user["id"]:
        raise HTTPException(status_code=409, detail="Already an admin")

    replace_memberships(transfer_admin(memberships, user["id"], membership_id))
    logger.info("Admin of %s transferred from %s to %s",
                membership.organisation_id, user["id"], membership.user_id)
    return {"status": "transferred", "admin_user_id": membership.user_id}


# ── Invites ──────────────────────────────────────────────────────────────


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _invite_out(invite: OrganisationInvite) -> dict:
    org = get_graph().organisation(invite.organisation_id)
    return {
        **invite.model_dump(mode="json"),
        "organisation": {"name": org.name, "slug": org.slug} if org else None,
    }


def _invite_by_token(token: str) -> OrganisationInvite:
    invite = next((i for i in get_invites() if i.token == token), None)
    if invite is None:
        raise HTTPException(status_code=404, detail="This invite link is invalid or has expired.")
    return invite


@app.post("/organisations/{slug}/invites")
def invite_member(slug: str, body: InviteRequest, user: dict = Depends(require_user)) -> dict:
    graph = get_graph()
    org = graph.org_by_slug(slug)
    if org is None:
        raise HTTPException(status_code=404, detail="Organisation not found")
    if not is_org_admin(graph.memberships, org.id, user["id"]):
        raise HTTPException(status_code=403, detail="Organisation admin access required")

    invitee = next(
        (u for u in graph.users if u.email.lower() == body.email.strip().lower()), None
    )
    if invitee is not None and invitee.id in graph.member_ids(org.id):
        raise HTTPException(status_code=409, detail="Already a member")

    invites = create_invite(
        get_invites(), org.id, body.email, user["id"], secrets.token_urlsafe(16), _now(),
    )
    replace_invites(invites)
    invite = next(
        i for i in invites
        if i.organisation_id == org.id and i.email == body.email.strip().lower()
    )
    logger.info("Invite to %s sent to %s by %s", org.slug, invite.email, user["id"])
    return _invite_out(invite)


@app.get("/invites")
def my_invites(user: dict = Depends(require_user)) -> dict:
    return {
        "invites": [
            _invite_out(i) for i in pending_invites_for(get_invites(), user["email"], _now())
        ]
    }


@app.post("/invites/{token}/accept")
def accept_invite_route(token: str, user: dict = Depends(require_user)) -> dict:
    invite = _invite_by_token(token)
    if is_invite_expired(invite, _now()):
        raise HTTPException(status_code=410, detail="This invite has expired.")
    if not can_accept_invite(invite, user["email"]):
        raise HTTPException(
            status_code=403,
            detail=f"This invite was sent to {invite.email}. Please sign in with that email address.",
        )

    memberships, invites = accept_invite(
        get_memberships(), get_invites(), invite.id, user["id"], user["email"], _now(),
    )
    replace_memberships(memberships)
    replace_invites(invites)
    logger.info("Invite %s accepted by %s", invite.id, user["id"])
    return {"status": "joined", "organisation_id": invite.organisation_id}


@app.post("/invites/{token}/decline")
def decline_invite_route(token: str, user: dict = Depends(require_user)) -> dict:
    invite = _invite_by_token(token)
    # the invitee declines; an admin of the organisation cancels
    if not can_accept_invite(invite, user["email"]) and not is_org_admin(
        get_memberships(), invite.organisation_id, user["id"]
    ):
        raise HTTPException(status_code=403, detail="Not your invite")

    replace_invites(decline_invite(get_invites(), invite.id))
    return {"status": "declined"}


# ── Social endpoints ─────────────────────────────────────────────────────


@app.get("/users/{user_id}/social")
def user_social(user_id: str, viewer_id: str | None = Depends(get_viewer_id)) -> dict:
    graph = get_graph()
    target = graph.user(user_id)
    if target is None:
        raise HTTPException(status_code=404, detail="User not found")
    state = None
    if viewer_id and viewer_id != user_id:
        state = follow_state(graph.follows, graph.follow_requests, viewer_id, user_id).value
    return {
        "id": target.id,
        "display_name": target.display_name,
        "is_private": target.is_private,
        "followers": graph.follower_count(user_id),
        "following": graph.following_count(user_id),
        "follow_state": state,
        "mutual": bool(viewer_id) and graph.is_mutual(viewer_id, user_id),
    }


@app.post("/users/{user_id}/follow", response_model=FollowResponse)
def follow(user_id: str, user: dict = Depends(require_user)) -> FollowResponse:
    if not any(u.id == user_id for u in get_users()):
        raise HTTPException(status_code=404, detail="User not found")

    follows, requests = follow_or_request(
        get_follows(), get_follow_requests(), get_users(), user["id"], user_id,
    )
    replace_follows(follows)
    replace_follow_requests(requests)

    state = follow_state(follows, requests, user["id"], user_id)
    logger.info("Follow %s -> %s is now %s", user["id"], user_id, state.value)
    return FollowResponse(target_id=user_id, state=state.value)


@app.delete("/users/{user_id}/follow", response_model=FollowResponse)
def unfollow(user_id: str, user: dict = Depends(require_user)) -> FollowResponse:
    follows = unfollow_user(get_follows(), user["id"], user_id)
    requests = cancel_follow_request(get_follow_requests(), user["id"], user_id)
    replace_follows(follows)
    replace_follow_requests(requests)
    return FollowResponse(target_id=user_id, state=follow_state(follows, requests, user["id"], user_id).value)


@app.get("/follow-requests")
def follow_requests(user: dict = Depends(require_user)) -> dict:
    graph = get_graph()
    return {
        "incoming": [r.model_dump() for r in graph.incoming_requests(user["id"])],
        "outgoing": [r.model_dump() for r in graph.outgoing_requests(user["id"])],
    }


def _own_incoming_request(request_id: str, user: dict) -> FollowRequest:
    request = next((r for r in get_follow_requests() if r.id == request_id), None)
    if request is None:
        raise HTTPException(status_code=404, detail="Follow request not found")
    if request.target_id != user["id"]:
        raise HTTPException(status_code=403, detail="Not your follow request")
    return request


@app.post("/follow-requests/{request_id}/accept")
def accept_request(request_id: str, user: dict = Depends(require_user)) -> dict:
    _own_incoming_request(request_id, user)
    follows, requests = accept_follow_request(get_follows(), get_follow_requests(), request_id)
    replace_follows(follows)
    replace_follow_requests(requests)
    logger.info("Follow request %s accepted by %s", request_id, user["id"])
    return {"status": "accepted", "pending": len([r for r in requests if r.target_id == user["id"]])}


@app.post("/follow-requests/{request_id}/decline")
def decline_request(request_id: str, user: dict = Depends(require_user)) -> dict:
    _own_incoming_request(request_id, user)
    requests = decline_follow_request(get_follow_requests(), request_id)
    replace_follow_requests(requests)
    return {"status": "declined", "pending": len([r for r in requests if r.target_id == user["id"]])}


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/analytics")
def analytics(user: dict = Depends(require_admin)) -> dict:
    return compute_analytics(get_events())
