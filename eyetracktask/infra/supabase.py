from __future__ import annotations

import base64
import hashlib
import logging
import secrets
from typing import Iterable, Optional
from urllib.parse import quote

import requests

from .errors import AuthError, NotAuthenticatedError, StoreError
from .session_store import AuthSession, SessionStore

logger = logging.getLogger(__name__)


def eq(value) -> str:
    return f"eq.{value}"


def in_(values: Iterable) -> str:
    quoted = ",".join(f'"{value}"' for value in values)
    return f"in.({quoted})"


def not_null() -> str:
    return "not.is.null"


def _pkce_pair() -> tuple[str, str]:
    verifier = secrets.token_urlsafe(64)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason
    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return response.text or response.reason


class SupabaseClient:
    def __init__(
        self,
        url: str,
        anon_key: str,
        session_store: SessionStore,
        timeout: float = 15.0,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout
        self._store = session_store
        self._http = http or requests.Session()
        self._session = session_store.load()

    @property
    def session(self) -> AuthSession | None:
        return self._session

    def _headers(self, authenticated: bool, extra: Optional[dict] = None) -> dict:
        token = self._session.access_token if authenticated and self._session else self.anon_key
        headers = {"apikey": self.anon_key, "Authorization": f"Bearer {token}"}
        if extra:
            headers.update(extra)
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: object = None,
        data: Optional[bytes] = None,
        headers: Optional[dict] = None,
        authenticated: bool = True,
        auth_endpoint: bool = False,
    ) -> requests.Response:
        if authenticated and not auth_endpoint:
            self._ensure_fresh_session()
        try:
            response = self._http.request(
                method,
                f"{self.url}{path}",
                params=params,
                json=json,
                data=data,
                headers=self._headers(authenticated, headers),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise StoreError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning("%s %s -> %s %s", method, path, response.status_code, message)
            if auth_endpoint:
                raise AuthError(message)
            if response.status_code in (401, 403):
                raise NotAuthenticatedError(message)
            raise StoreError(f"{method} {path} -> {response.status_code} {message}")
        return response

    # auth

    def _store_session(self, payload: dict) -> AuthSession:
        self._session = AuthSession.from_token_response(payload)
        self._store.save(self._session)
        return self._session

    def _ensure_fresh_session(self) -> None:
        if self._session is None or not self._session.is_expired():
            return
        try:
            self.refresh_session()
        except AuthError as exc:
            self._session = None
            self._store.clear()
            raise NotAuthenticatedError("Session expired, please sign in again") from exc

    def sign_up(self, email: str, password: str, redirect_to: str) -> dict:
        verifier, challenge = _pkce_pair()
        self._store.save_code_verifier(verifier)
        response = self._request(
            "POST",
            "/auth/v1/signup",
            params={"redirect_to": redirect_to},
            json={
                "email": email,
                "password": password,
                "code_challenge": challenge,
                "code_challenge_method": "s256",
            },
            authenticated=False,
            auth_endpoint=True,
        )
        payload = response.json()
        if payload.get("access_token"):
            self._store_session(payload)
        return payload.get("user") or payload

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        response = self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            authenticated=False,
            auth_endpoint=True,
        )
        return self._store_session(response.json())

    def refresh_session(self) -> AuthSession:
        if self._session is None or not self._session.refresh_token:
            raise AuthError("No session to refresh")
        response = self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": self._session.refresh_token},
            authenticated=False,
            auth_endpoint=True,
        )
        return self._store_session(response.json())

    def exchange_code_for_session(self, auth_code: str) -> AuthSession:
        verifier = self._store.pop_code_verifier()
        if not verifier:
            raise AuthError("No pending sign-up for this confirmation link")
        response = self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "pkce"},
            json={"auth_code": auth_code, "code_verifier": verifier},
            authenticated=False,
            auth_endpoint=True,
        )
        return self._store_session(response.json())

    def get_user(self) -> dict | None:
        if self._session is None:
            return None
        try:
            response = self._request("GET", "/auth/v1/user")
        except NotAuthenticatedError:
            return None
        return response.json()

    def require_user(self) -> dict:
        if self._session is None:
            raise NotAuthenticatedError()
        self._ensure_fresh_session()
        return self._session.user or {"id": self._session.user_id}

    def sign_out(self) -> None:
        try:
            if self._session is not None:
                self._request("POST", "/auth/v1/logout")
        finally:
            self._session = None
            self._store.clear()

    # tables

    def select(self, table: str, filters: Optional[dict] = None, order: Optional[str] = None) -> list[dict]:
        params = {"select": "*", **(filters or {})}
        if order:
            params["order"] = order
        return self._request("GET", f"/rest/v1/{table}", params=params).json()

    def insert(self, table: str, rows: list[dict]) -> list[dict]:
        response = self._request(
            "POST",
            f"/rest/v1/{table}",
            json=rows,
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    def update(self, table: str, values: dict, filters: dict) -> list[dict]:
        response = self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params=filters,
            json=values,
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    def delete(self, table: str, filters: dict) -> None:
        self._request("DELETE", f"/rest/v1/{table}", params=filters)

    # storage

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.url}/storage/v1/object/public/{bucket}/{quote(path)}"

    def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        self._request(
            "POST",
            f"/storage/v1/object/{bucket}/{quote(path)}",
            data=data,
            headers={"Content-Type": content_type, "x-upsert": "true"},
        )
        return self.public_url(bucket, path)
