from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


def _csv_env(name: str, default: str) -> tuple[str, ...]:
    return tuple(v.strip().lower() for v in os.getenv(name, default).split(",") if v.strip())


@dataclass(frozen=True)
class AppConfig:
    session_secret: str = os.getenv("SESSION_SECRET", "tastefull-secret-change-in-production")
    seed_dir: Path = Path(
        os.getenv("TASTEFULL_SEED_DIR", str(Path(__file__).resolve().parent / "data" / "seed"))
    )
    demo_password: str = os.getenv("TASTEFULL_DEMO_PASSWORD", "tastefull123")
    admin_emails: tuple[str, ...] = field(
        default_factory=lambda: _csv_env("TASTEFULL_ADMIN_EMAILS", "james@example.com")
    )


DEFAULT_APP_CONFIG = AppConfig()
