from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any, TypeVar

import pandas as pd
from pydantic import BaseModel, ValidationError

from ..config import DEFAULT_APP_CONFIG
from ..domain.models import (
    Follow,
    FollowRequest,
    Organisation,
    OrganisationInvite,
    OrganisationMembership,
    Restaurant,
    Review,
    Tag,
    User,
)
from ..social.graph import SocialGraph

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Columns holding "|"-separated lists
_LIST_COLUMNS = {"categories", "tag_ids"}

_SEED_FILES: dict[str, type[BaseModel]] = {
    "users": User,
    "organisations": Organisation,
    "memberships": OrganisationMembership,
    "follows": Follow,
    "follow_requests": FollowRequest,
    "invites": OrganisationInvite,
    "restaurants": Restaurant,
    "reviews": Review,
    "tags": Tag,
}

_state: dict[str, tuple[Any, ...]] | None = None


def _clean_row(row: dict[str, str]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for key, raw in row.items():
        value = raw.strip()
        if key in _LIST_COLUMNS:
            cleaned[key] = [v.strip() for v in value.split("|") if v.strip()]
        elif key in ("office_lat", "office_lng"):
            continue
        else:
            cleaned[key] = value or None
    if row.get("office_lat") and row.get("office_lng"):
        cleaned["office_location"] = {"lat": row["office_lat"], "lng": row["office_lng"]}
    return cleaned


def load_csv(path: Path, model: type[ModelT]) -> tuple[ModelT, ...]:
    """Read one seed CSV into validated records, skipping rows that fail validation."""
    if not path.exists():
        logger.warning("Seed file %s missing, starting with no rows", path)
        return ()

    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    rows: list[ModelT] = []
    for record in df.to_dict(orient="records"):
        try:
            rows.append(model.model_validate(_clean_row(record)))
        except ValidationError:
            logger.warning("Skipping invalid %s row in %s: %s", model.__name__, path.name, record)
    return tuple(rows)


def _load(seed_dir: Path) -> dict[str, tuple[Any, ...]]:
    state = {
        name: load_csv(seed_dir / f"{name}.csv", model)
        for name, model in _SEED_FILES.items()
    }
    logger.info(
        "Loaded %d restaurants and %d reviews from %s",
        len(state["restaurants"]), len(state["reviews"]), seed_dir,
    )
    return state


def _get_state() -> dict[str, tuple[Any, ...]]:
    global _state
    if _state is None:
        _state = _load(DEFAULT_APP_CONFIG.seed_dir)
    return _state


def reset_store(seed_dir: Path | None = None) -> None:
    """Reload every collection from the seed directory."""
    global _state
    _state = _load(seed_dir or DEFAULT_APP_CONFIG.seed_dir)


# ── Readers ──────────────────────────────────────────────────────────────


def get_users() -> tuple[User, ...]:
    return _get_state()["users"]


def get_organisations() -> tuple[Organisation, ...]:
    return _get_state()["organisations"]


def get_memberships() -> tuple[OrganisationMembership, ...]:
    return _get_state()["memberships"]


def get_follows() -> tuple[Follow, ...]:
    return _get_state()["follows"]


def get_follow_requests() -> tuple[FollowRequest, ...]:
    return _get_state()["follow_requests"]


def get_invites() -> tuple[OrganisationInvite, ...]:
    return _get_state()["invites"]


def get_restaurants() -> tuple[Restaurant, ...]:
    return _get_state()["restaurants"]


def get_reviews() -> tuple[Review, ...]:
    return _get_state()["reviews"]


def get_tags() -> tuple[Tag, ...]:
    return _get_state()["tags"]


def get_graph() -> SocialGraph:
    """Snapshot of the social collections as they stand right now."""
    state = _get_state()
    return SocialGraph.build(
        users=state["users"],
        follows=state["follows"],
        follow_requests=state["follow_requests"],
        organisations=state["organisations"],
        memberships=state["memberships"],
    )


# ── Writers (last write wins) ────────────────────────────────────────────


def replace_users(rows: Iterable[User]) -> None:
    _get_state()["users"] = tuple(rows)


def replace_follows(rows: Iterable[Follow]) -> None:
    _get_state()["follows"] = tuple(rows)


def replace_follow_requests(rows: Iterable[FollowRequest]) -> None:
    _get_state()["follow_requests"] = tuple(rows)


def replace_memberships(rows: Iterable[OrganisationMembership]) -> None:
    _get_state()["memberships"] = tuple(rows)


def replace_organisations(rows: Iterable[Organisation]) -> None:
    _get_state()["organisations"] = tuple(rows)


def replace_invites(rows: Iterable[OrganisationInvite]) -> None:
    _get_state()["invites"] = tuple(rows)
