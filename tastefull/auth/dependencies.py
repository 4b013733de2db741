from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request


def _session_user(request: Request) -> dict[str, Any] | None:
    return request.session.get("user")


def get_viewer_id(request: Request) -> str | None:
    """Signed-in user's id, or ``None`` for anonymous viewers."""
    user = _session_user(request)
    return user.get("id") if user else None


def require_user(request: Request) -> dict[str, Any]:
    """Session user; 401 for anonymous viewers."""
    user = _session_user(request)
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_admin(request: Request) -> dict[str, Any]:
    """Session user with the site admin role; 401 anonymous, 403 otherwise."""
    user = require_user(request)
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
