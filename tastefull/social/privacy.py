from __future__ import annotations

from collections.abc import Iterable

from ..domain.models import User


def set_privacy(
    users: Iterable[User], user_id: str, is_private: bool
) -> tuple[User, ...]:
    """
    Switch an account between private and public.

    Existing follows and pending requests are kept: a user who goes public
    can still accept or decline requests already filed, and new followers
    follow directly.
    """
    return tuple(
        u.model_copy(update={"is_private": is_private}) if u.id == user_id else u
        for u in users
    )
