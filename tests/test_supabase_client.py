from __future__ import annotations

import json
import time

import pytest
import requests

from eyetracktask.infra.errors import AuthError, NotAuthenticatedError, StoreError
from eyetracktask.infra.session_store import AuthSession, SessionStore
from eyetracktask.infra.supabase import SupabaseClient, eq, in_

BASE_URL = "https://demo.supabase.co"
ANON_KEY = "anon-key"


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = json.dumps(payload) if payload is not None else ""
        self.reason = "Error"

    def json(self):
        if self._payload is None:
            raise ValueError("no body")
        return self._payload


class FakeHttp:
    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.requests: list[dict] = []

    def request(self, method, url, **kwargs):
        self.requests.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _token(access: str = "access-1", expires_in: int = 3600) -> dict:
    return {
        "access_token": access,
        "refresh_token": "refresh-1",
        "expires_in": expires_in,
        "user": {"id": "user-1", "email": "ada@example.com"},
    }


def _client(tmp_path, *responses, session: AuthSession | None = None) -> tuple[SupabaseClient, FakeHttp, SessionStore]:
    store = SessionStore(tmp_path / "session.json")
    if session is not None:
        store.save(session)
    http = FakeHttp(*responses)
    return SupabaseClient(BASE_URL, ANON_KEY, store, timeout=5, http=http), http, store


def _signed_in(expires_at: float | None = None) -> AuthSession:
    return AuthSession(
        access_token="access-1",
        refresh_token="refresh-1",
        expires_at=expires_at if expires_at is not None else time.time() + 3600,
        user={"id": "user-1", "email": "ada@example.com"},
    )


def test_filter_helpers() -> None:
    assert eq("abc") == "eq.abc"
    assert in_(["a", "b"]) == 'in.("a","b")'


def test_sign_in_persists_the_session(tmp_path) -> None:
    client, http, store = _client(tmp_path, FakeResponse(200, _token()))

    session = client.sign_in_with_password("ada@example.com", "secret")

    sent = http.requests[0]
    assert sent["url"] == f"{BASE_URL}/auth/v1/token"
    assert sent["params"] == {"grant_type": "password"}
    assert sent["headers"]["apikey"] == ANON_KEY
    assert sent["headers"]["Authorization"] == f"Bearer {ANON_KEY}"
    assert session.user_id == "user-1"
    assert store.load().access_token == "access-1"


def test_bad_credentials_raise_auth_error(tmp_path) -> None:
    client, _, store = _client(
        tmp_path, FakeResponse(400, {"error_description": "Invalid login credentials"})
    )

    with pytest.raises(AuthError, match="Invalid login credentials"):
        client.sign_in_with_password("ada@example.com", "wrong")
    assert store.load() is None


def test_select_sends_filters_with_the_user_token(tmp_path) -> None:
    client, http, _ = _client(tmp_path, FakeResponse(200, [{"id": "p1"}]), session=_signed_in())

    rows = client.select("projects", {"user_id": eq("user-1")}, order="created_at.asc")

    sent = http.requests[0]
    assert rows == [{"id": "p1"}]
    assert sent["method"] == "GET"
    assert sent["url"] == f"{BASE_URL}/rest/v1/projects"
    assert sent["params"] == {"select": "*", "user_id": "eq.user-1", "order": "created_at.asc"}
    assert sent["headers"]["Authorization"] == "Bearer access-1"


def test_insert_asks_for_the_created_rows(tmp_path) -> None:
    client, http, _ = _client(tmp_path, FakeResponse(201, [{"id": "t1"}]), session=_signed_in())

    client.insert("tasks", [{"title": "Ship"}])

    sent = http.requests[0]
    assert sent["json"] == [{"title": "Ship"}]
    assert sent["headers"]["Prefer"] == "return=representation"


def test_http_errors_are_mapped(tmp_path) -> None:
    client, _, _ = _client(
        tmp_path,
        FakeResponse(401, {"message": "JWT expired"}),
        FakeResponse(500, {"message": "boom"}),
        requests.ConnectionError("offline"),
        session=_signed_in(),
    )

    with pytest.raises(NotAuthenticatedError):
        client.select("projects")
    with pytest.raises(StoreError, match=r"GET /rest/v1/projects -> 500 boom"):
        client.select("projects")
    with pytest.raises(StoreError, match="offline"):
        client.select("projects")


def test_expired_session_is_refreshed_first(tmp_path) -> None:
    client, http, store = _client(
        tmp_path,
        FakeResponse(200, _token("access-2")),
        FakeResponse(200, []),
        session=_signed_in(expires_at=time.time() - 10),
    )

    client.select("projects")

    assert http.requests[0]["params"] == {"grant_type": "refresh_token"}
    assert http.requests[1]["headers"]["Authorization"] == "Bearer access-2"
    assert store.load().access_token == "access-2"


def test_failed_refresh_signs_the_user_out(tmp_path) -> None:
    client, _, store = _client(
        tmp_path,
        FakeResponse(400, {"msg": "Invalid Refresh Token"}),
        session=_signed_in(expires_at=time.time() - 10),
    )

    with pytest.raises(NotAuthenticatedError):
        client.select("projects")
    assert client.session is None
    assert store.load() is None


def test_sign_up_then_confirm_with_code(tmp_path) -> None:
    client, http, store = _client(
        tmp_path,
        FakeResponse(200, {"id": "user-1", "email": "ada@example.com"}),
        FakeResponse(200, _token()),
    )

    client.sign_up("ada@example.com", "secret", "eyetracktask://auth/callback")
    signup = http.requests[0]
    assert signup["params"] == {"redirect_to": "eyetracktask://auth/callback"}
    assert signup["json"]["code_challenge_method"] == "s256"
    assert client.session is None

    client.exchange_code_for_session("code-123")
    exchange = http.requests[1]
    assert exchange["params"] == {"grant_type": "pkce"}
    assert exchange["json"]["auth_code"] == "code-123"
    assert exchange["json"]["code_verifier"]
    assert store.load().user_id == "user-1"
    assert store.pop_code_verifier() is None


def test_code_exchange_without_pending_sign_up_fails(tmp_path) -> None:
    client, http, _ = _client(tmp_path)

    with pytest.raises(AuthError):
        client.exchange_code_for_session("code-123")
    assert http.requests == []


def test_sign_out_clears_even_when_the_server_fails(tmp_path) -> None:
    client, _, store = _client(tmp_path, FakeResponse(500, {"message": "down"}), session=_signed_in())

    with pytest.raises(StoreError):
        client.sign_out()
    assert client.session is None
    assert store.load() is None


def test_require_user_without_session(tmp_path) -> None:
    client, _, _ = _client(tmp_path)

    with pytest.raises(NotAuthenticatedError, match="User not authenticated"):
        client.require_user()


def test_upload_returns_public_url(tmp_path) -> None:
    client, http, _ = _client(tmp_path, FakeResponse(200, {"Key": "x"}), session=_signed_in())

    url = client.upload("Avatar_Profile", "user-1/profile-1.jpg", b"jpeg", "image/jpeg")

    sent = http.requests[0]
    assert sent["url"] == f"{BASE_URL}/storage/v1/object/Avatar_Profile/user-1/profile-1.jpg"
    assert sent["data"] == b"jpeg"
    assert sent["headers"]["x-upsert"] == "true"
    assert url == f"{BASE_URL}/storage/v1/object/public/Avatar_Profile/user-1/profile-1.jpg"
