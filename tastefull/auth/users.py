from __future__ import annotations

from typing import Any

import bcrypt

from ..config import DEFAULT_APP_CONFIG, AppConfig
from ..store.data_store import get_users

# Demo password hash, keyed by the plain password it was made from
_password_hashes: dict[str, str] = {}


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def _demo_hash(config: AppConfig) -> str:
    if config.demo_password not in _password_hashes:
        _password_hashes[config.demo_password] = _hash_password(config.demo_password)
    return _password_hashes[config.demo_password]


def authenticate(
    email: str, password: str, config: AppConfig = DEFAULT_APP_CONFIG
) -> dict[str, Any] | None:
    """
    Verify credentials against the users currently in the store.

    Every stored user signs in with the demo password; addresses listed in
    ``config.admin_emails`` get the admin role. Returns ``{id, email, role}``
    or ``None``.
    """
    address = email.strip().lower()
    user = next((u for u in get_users() if u.email.strip().lower() == address), None)
    if user is None or not _verify_password(password, _demo_hash(config)):
        return None
    role = "admin" if address in config.admin_emails else "user"
    return {"id": user.id, "email": address, "role": role}
