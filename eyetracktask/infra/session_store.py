from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    refresh_token: str
    expires_at: float
    user: dict = field(default_factory=dict)

    @property
    def user_id(self) -> str:
        return self.user.get("id", "")

    @property
    def email(self) -> str:
        return self.user.get("email") or ""

    def is_expired(self, now: Optional[float] = None, leeway: float = 30.0) -> bool:
        return (now if now is not None else time.time()) >= self.expires_at - leeway

    @classmethod
    def from_token_response(cls, payload: dict) -> "AuthSession":
        expires_at = payload.get("expires_at")
        if expires_at is None:
            expires_at = time.time() + float(payload.get("expires_in", 3600))
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token", ""),
            expires_at=float(expires_at),
            user=payload.get("user") or {},
        )


class SessionStore:
    """Persists the signed-in session and the pending PKCE verifier to a JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable session file %s", self.path)
            return {}

    def _write(self, payload: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload), encoding="utf-8")

    def load(self) -> AuthSession | None:
        raw = self._read().get("session")
        if not raw:
            return None
        try:
            return AuthSession(**raw)
        except TypeError:
            logger.warning("Discarding malformed session in %s", self.path)
            return None

    def save(self, session: AuthSession) -> None:
        payload = self._read()
        payload["session"] = asdict(session)
        self._write(payload)

    def clear(self) -> None:
        payload = self._read()
        payload.pop("session", None)
        self._write(payload)

    def save_code_verifier(self, verifier: str) -> None:
        payload = self._read()
        payload["code_verifier"] = verifier
        self._write(payload)

    def pop_code_verifier(self) -> str | None:
        payload = self._read()
        verifier = payload.pop("code_verifier", None)
        if verifier is not None:
            self._write(payload)
        return verifier
