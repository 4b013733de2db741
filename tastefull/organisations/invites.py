"""
Organisation invites.

An admin invites an email address; whoever signs in with that address can
accept (joining as a member) or decline. Invites expire after
``INVITE_TTL`` and there is at most one per (organisation, email). Like the
membership transitions, these functions return new tuples and leave the
rows unchanged when a transition does not apply.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from ..domain.models import OrganisationInvite, OrganisationMembership, Role
from .membership import add_member

INVITE_TTL = timedelta(days=7)


def _normalise_email(email: str) -> str:
    return email.strip().lower()


def _invite_id(org_id: str, email: str) -> str:
    return f"invite:{org_id}:{_normalise_email(email)}"


def _aware(moment: datetime) -> datetime:
    # naive timestamps are read as UTC
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def is_invite_expired(invite: OrganisationInvite, now: datetime) -> bool:
    return _aware(invite.expires_at) < _aware(now)


def can_accept_invite(invite: OrganisationInvite, email: str | None) -> bool:
    """Only the invited address may accept; comparison ignores case."""
    if not email:
        return False
    return _normalise_email(invite.email) == _normalise_email(email)


def pending_invites_for(
    invites: Iterable[OrganisationInvite], email: str | None, now: datetime
) -> list[OrganisationInvite]:
    if not email:
        return []
    return [
        i for i in invites
        if can_accept_invite(i, email) and not is_invite_expired(i, now)
    ]


def create_invite(
    invites: Iterable[OrganisationInvite],
    org_id: str,
    email: str,
    invited_by: str,
    token: str,
    now: datetime,
) -> tuple[OrganisationInvite, ...]:
    """Invite ``email`` to an organisation; an expired invite for the same address is replaced."""
    current = tuple(invites)
    address = _normalise_email(email)
    if not address:
        return current
    existing = next(
        (i for i in current
         if i.organisation_id == org_id and _normalise_email(i.email) == address),
        None,
    )
    if existing is not None:
        if not is_invite_expired(existing, now):
            return current
        current = tuple(i for i in current if i.id != existing.id)
    return current + (
        OrganisationInvite(
            id=_invite_id(org_id, address),
            organisation_id=org_id,
            email=address,
            token=token,
            invited_by=invited_by,
            expires_at=now + INVITE_TTL,
        ),
    )


def accept_invite(
    memberships: Iterable[OrganisationMembership],
    invites: Iterable[OrganisationInvite],
    invite_id: str,
    user_id: str,
    email: str,
    now: datetime,
) -> tuple[tuple[OrganisationMembership, ...], tuple[OrganisationInvite, ...]]:
    """Join the invite's organisation as a member and consume the invite."""
    current_members = tuple(memberships)
    current_invites = tuple(invites)

    invite = next((i for i in current_invites if i.id == invite_id), None)
    if invite is None or not can_accept_invite(invite, email) or is_invite_expired(invite, now):
        return current_members, current_invites

    new_members = add_member(current_members, invite.organisation_id, user_id, Role.member)
    return new_members, tuple(i for i in current_invites if i.id != invite_id)


def decline_invite(
    invites: Iterable[OrganisationInvite], invite_id: str
) -> tuple[OrganisationInvite, ...]:
    return tuple(i for i in invites if i.id != invite_id)
