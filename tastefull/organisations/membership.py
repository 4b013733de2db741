from __future__ import annotations

from collections.abc import Iterable

from ..domain.models import Organisation, OrganisationMembership, Role
from ..social.graph import SocialGraph

SOLE_ADMIN_REASON = "Cannot leave as sole admin. Transfer admin role first."
NOT_A_MEMBER_REASON = "Not a member"


def _membership_id(org_id: str, user_id: str) -> str:
    return f"member:{org_id}:{user_id}"


def is_org_admin(
    memberships: Iterable[OrganisationMembership], org_id: str, user_id: str | None
) -> bool:
    if not user_id:
        return False
    return any(
        m.organisation_id == org_id and m.user_id == user_id and m.role == Role.admin
        for m in memberships
    )


def is_sole_admin(
    memberships: Iterable[OrganisationMembership], membership_id: str
) -> bool:
    """
    True when ``membership_id`` is the only admin of an organisation that
    still has other members.

    The last remaining member may always leave; the organisation is then
    deleted.
    """
    current = tuple(memberships)
    row = next((m for m in current if m.id == membership_id), None)
    if row is None or row.role != Role.admin:
        return False
    org_rows = [m for m in current if m.organisation_id == row.organisation_id]
    admins = [m for m in org_rows if m.role == Role.admin]
    return len(admins) == 1 and len(org_rows) > 1


def can_leave_organisation(
    memberships: Iterable[OrganisationMembership], membership_id: str
) -> tuple[bool, str | None]:
    current = tuple(memberships)
    if not any(m.id == membership_id for m in current):
        return False, NOT_A_MEMBER_REASON
    if is_sole_admin(current, membership_id):
        return False, SOLE_ADMIN_REASON
    return True, None


def add_member(
    memberships: Iterable[OrganisationMembership],
    org_id: str,
    user_id: str,
    role: Role = Role.member,
) -> tuple[OrganisationMembership, ...]:
    current = tuple(memberships)
    # one row per (org, user)
    if any(m.organisation_id == org_id and m.user_id == user_id for m in current):
        return current
    return current + (
        OrganisationMembership(
            id=_membership_id(org_id, user_id),
            organisation_id=org_id,
            user_id=user_id,
            role=role,
        ),
    )


def set_member_role(
    memberships: Iterable[OrganisationMembership], membership_id: str, role: Role
) -> tuple[OrganisationMembership, ...]:
    """Change one row's role. Demoting an organisation's sole admin is refused (no-op)."""
    current = tuple(memberships)
    if role != Role.admin and is_sole_admin(current, membership_id):
        return current
    return tuple(
        m.model_copy(update={"role": role}) if m.id == membership_id else m
        for m in current
    )


def transfer_admin(
    memberships: Iterable[OrganisationMembership],
    from_user_id: str,
    to_membership_id: str,
) -> tuple[OrganisationMembership, ...]:
    """
    Hand admin rights to another member of the same organisation.

    The target is promoted first and the current admin demoted to member
    afterwards, so the organisation never lacks an admin. Returns the rows
    unchanged when ``from_user_id`` is not an admin there or the target is
    not a different member of that organisation.
    """
    current = tuple(memberships)
    target = next((m for m in current if m.id == to_membership_id), None)
    if target is None or target.user_id == from_user_id:
        return current
    source = next(
        (m for m in current
         if m.organisation_id == target.organisation_id and m.user_id == from_user_id),
        None,
    )
    if source is None or source.role != Role.admin:
        return current

    promoted = set_member_role(current, target.id, Role.admin)
    return set_member_role(promoted, source.id, Role.member)


def leave_organisation(
    memberships: Iterable[OrganisationMembership],
    organisations: Iterable[Organisation],
    membership_id: str,
) -> tuple[tuple[OrganisationMembership, ...], tuple[Organisation, ...]]:
    """
    Remove a membership row.

    An organisation whose last member leaves is removed as well. Unknown
    membership ids and a sole admin with members left behind leave both
    collections unchanged.
    """
    current_members = tuple(memberships)
    current_orgs = tuple(organisations)

    allowed, _ = can_leave_organisation(current_members, membership_id)
    if not allowed:
        return current_members, current_orgs

    leaving = next(m for m in current_members if m.id == membership_id)
    remaining = tuple(m for m in current_members if m.id != membership_id)
    if any(m.organisation_id == leaving.organisation_id for m in remaining):
        return remaining, current_orgs
    return remaining, tuple(o for o in current_orgs if o.id != leaving.organisation_id)


def visible_reviewer_ids(
    graph: SocialGraph, viewer_id: str | None, page_org_id: str | None = None
) -> frozenset[str]:
    """
    Users whose review details a viewer may see through organisation membership.

    On a single organisation's page this is that organisation's member set,
    and only when the viewer is a member there too; outsiders get nothing.
    In the global view it is the union of the members of every organisation
    the viewer belongs to.
    """
    if not viewer_id:
        return frozenset()
    viewer_orgs = graph.org_ids_for(viewer_id)
    if page_org_id:
        if page_org_id not in viewer_orgs:
            return frozenset()
        return graph.member_ids(page_org_id)

    by_org = graph.members_by_org()
    ids: set[str] = set()
    for org_id in viewer_orgs:
        ids |= by_org.get(org_id, frozenset())
    return frozenset(ids)
