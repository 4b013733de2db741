from __future__ import annotations

from datetime import datetime, timedelta, timezone

from tastefull.domain.models import OrganisationInvite, OrganisationMembership, Role, User
from tastefull.organisations.invites import (
    INVITE_TTL,
    accept_invite,
    can_accept_invite,
    create_invite,
    decline_invite,
    is_invite_expired,
    pending_invites_for,
)
from tastefull.social.privacy import set_privacy

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

MEMBERSHIPS = (
    OrganisationMembership(id="member-1", organisation_id="stackone-org", user_id="admin-user", role=Role.admin),
)

INVITES = (
    OrganisationInvite(
        id="invite-1", organisation_id="stackone-org", email="newbie@example.com",
        token="tok-1", invited_by="admin-user", expires_at=NOW + timedelta(days=3),
    ),
    OrganisationInvite(
        id="invite-expired", organisation_id="stackone-org", email="expired@example.com",
        token="tok-2", invited_by="admin-user", expires_at=datetime(2020, 1, 1, tzinfo=timezone.utc),
    ),
)


# ── Creating ─────────────────────────────────────────────────────────────


def test_create_invite_expires_after_a_week():
    invites = create_invite(INVITES, "stackone-org", "Someone@Example.com", "admin-user", "tok-3", NOW)
    assert len(invites) == len(INVITES) + 1
    created = invites[-1]
    assert created.email == "someone@example.com"
    assert created.expires_at == NOW + INVITE_TTL
    assert created.token == "tok-3"


def test_one_invite_per_org_and_email():
    again = create_invite(INVITES, "stackone-org", "NEWBIE@example.com", "admin-user", "tok-9", NOW)
    assert again == INVITES
    # same address, different organisation
    other = create_invite(INVITES, "acme-org", "newbie@example.com", "admin-user", "tok-9", NOW)
    assert len(other) == len(INVITES) + 1


def test_reinviting_replaces_an_expired_invite():
    invites = create_invite(INVITES, "stackone-org", "expired@example.com", "admin-user", "tok-new", NOW)
    renewed = [i for i in invites if i.email == "expired@example.com"]
    assert len(renewed) == 1
    assert renewed[0].token == "tok-new"
    assert not is_invite_expired(renewed[0], NOW)


# ── Email matching and expiry ────────────────────────────────────────────


def test_email_must_match_to_accept():
    assert can_accept_invite(INVITES[0], "newbie@example.com")
    assert can_accept_invite(INVITES[0], "NewBie@Example.com")
    assert not can_accept_invite(INVITES[0], "other@example.com")
    assert not can_accept_invite(INVITES[0], None)


def test_expiry():
    assert not is_invite_expired(INVITES[0], NOW)
    assert is_invite_expired(INVITES[1], NOW)
    assert is_invite_expired(INVITES[0], NOW + timedelta(days=4))


def test_naive_timestamps_are_treated_as_utc():
    assert is_invite_expired(INVITES[1], datetime(2026, 1, 1))


def test_pending_invites_skip_expired_and_foreign():
    assert [i.id for i in pending_invites_for(INVITES, "newbie@example.com", NOW)] == ["invite-1"]
    assert pending_invites_for(INVITES, "expired@example.com", NOW) == []
    assert pending_invites_for(INVITES, None, NOW) == []


# ── Accepting and declining ──────────────────────────────────────────────


def test_accept_adds_member_and_consumes_invite():
    memberships, invites = accept_invite(MEMBERSHIPS, INVITES, "invite-1", "new-user", "newbie@example.com", NOW)
    assert [i.id for i in invites] == ["invite-expired"]
    joined = memberships[-1]
    assert joined.user_id == "new-user"
    assert joined.organisation_id == "stackone-org"
    assert joined.role == Role.member


def test_accept_with_wrong_email_is_a_no_op():
    result = accept_invite(MEMBERSHIPS, INVITES, "invite-1", "other-user", "other@acme.com", NOW)
    assert result == (MEMBERSHIPS, INVITES)


def test_accept_expired_invite_is_a_no_op():
    result = accept_invite(MEMBERSHIPS, INVITES, "invite-expired", "late-user", "expired@example.com", NOW)
    assert result == (MEMBERSHIPS, INVITES)


def test_accept_when_already_member_keeps_one_row():
    memberships, invites = accept_invite(
        MEMBERSHIPS + (OrganisationMembership(id="member-2", organisation_id="stackone-org", user_id="new-user"),),
        INVITES, "invite-1", "new-user", "newbie@example.com", NOW,
    )
    assert sum(1 for m in memberships if m.user_id == "new-user") == 1
    assert len(invites) == 1


def test_decline_removes_invite():
    invites = decline_invite(INVITES, "invite-1")
    assert [i.id for i in invites] == ["invite-expired"]
    assert decline_invite(invites, "invite-1") == invites


# ── Privacy ──────────────────────────────────────────────────────────────


USERS = (
    User(id="user-1", email="james@example.com", is_private=False),
    User(id="user-2", email="sarah@example.com", is_private=True),
)


def test_switch_private_and_public():
    private = set_privacy(USERS, "user-1", True)
    assert private[0].is_private is True
    assert private[1].is_private is True
    public = set_privacy(private, "user-2", False)
    assert public[1].is_private is False
    # input rows untouched
    assert USERS[0].is_private is False


def test_privacy_for_unknown_user_is_a_no_op():
    assert set_privacy(USERS, "ghost", True) == USERS
