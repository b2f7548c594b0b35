from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _resolve_project_root() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]


PROJECT_ROOT = _resolve_project_root()


def load_env() -> None:
    env_name = os.getenv("APP_ENV", "development")
    candidates = [Path.cwd(), PROJECT_ROOT]
    for base in candidates:
        env_path = base / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            break

    for base in candidates:
        env_specific = base / f".env.{env_name}"
        if env_specific.exists():
            load_dotenv(env_specific, override=True)
            break


@dataclass(frozen=True)
class Settings:
    database_url: str
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    auth_redirect_url: str = "eyetracktask://auth/callback"
    avatar_bucket: str = "Avatar_Profile"
    icon_bucket: str = "project_icons"
    session_file: str = ".session.json"
    http_timeout: float = 15.0
    image_max_dimension: int = 400
    image_quality: int = 70
    log_level: str = "INFO"
    log_dir: str = "logs"

    @property
    def remote_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)


load_env()

DATABASE_URL = os.getenv("DATABASE_URL", "").strip() or f"sqlite:///{PROJECT_ROOT / 'eyetracktask.db'}"

SETTINGS = Settings(
    database_url=DATABASE_URL,
    supabase_url=os.getenv("SUPABASE_URL", "").strip().rstrip("/") or None,
    supabase_anon_key=os.getenv("SUPABASE_ANON_KEY", "").strip() or None,
    auth_redirect_url=os.getenv("AUTH_REDIRECT_URL", "eyetracktask://auth/callback"),
    avatar_bucket=os.getenv("AVATAR_BUCKET", "Avatar_Profile"),
    icon_bucket=os.getenv("ICON_BUCKET", "project_icons"),
    session_file=os.getenv("SESSION_FILE", ".session.json"),
    http_timeout=float(os.getenv("HTTP_TIMEOUT", "15")),
    image_max_dimension=int(os.getenv("IMAGE_MAX_DIMENSION", "400")),
    image_quality=int(os.getenv("IMAGE_QUALITY", "70")),
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_dir=os.getenv("LOG_DIR", "logs"),
)
