from __future__ import annotations

import logging
from urllib.parse import parse_qs, urlparse

from eyetracktask.config import SETTINGS, Settings
from eyetracktask.infra.errors import NotAuthenticatedError, StoreError
from eyetracktask.infra.session_store import AuthSession
from eyetracktask.infra.supabase import SupabaseClient

logger = logging.getLogger(__name__)

BOARD_ROUTE = "board"
LOGIN_ROUTE = "login"
AUTH_CODE_ERROR_ROUTE = "auth/code-error"

SIGN_UP_MESSAGE = "Account created! Check your email to confirm your address."


def is_public_route(route: str) -> bool:
    return route == LOGIN_ROUTE or route.split("/", 1)[0] == "auth"


def resolve_route(route: str, authenticated: bool) -> str:
    if authenticated and is_public_route(route):
        return BOARD_ROUTE
    if not authenticated and not is_public_route(route):
        return LOGIN_ROUTE
    return route


class AuthService:
    def __init__(self, client: SupabaseClient, settings: Settings = SETTINGS) -> None:
        self._client = client
        self._settings = settings

    @property
    def session(self) -> AuthSession | None:
        return self._client.session

    def is_authenticated(self) -> bool:
        try:
            self._client.require_user()
        except NotAuthenticatedError:
            return False
        except StoreError as exc:
            logger.warning("Could not validate stored session: %s", exc)
            return False
        return True

    def current_user(self) -> dict | None:
        return self._client.get_user()

    def sign_in(self, email: str, password: str) -> AuthSession:
        session = self._client.sign_in_with_password(email.strip(), password)
        logger.info("Signed in as %s", session.email or email)
        return session

    def sign_up(self, email: str, password: str) -> str:
        self._client.sign_up(email.strip(), password, self._settings.auth_redirect_url)
        logger.info("Sign-up requested for %s", email)
        return SIGN_UP_MESSAGE

    def sign_out(self) -> None:
        self._client.sign_out()
        logger.info("Signed out")

    def handle_callback(self, url: str) -> str:
        query = parse_qs(urlparse(url).query)
        code = (query.get("code") or [None])[0]
        next_route = ((query.get("next") or ["/"])[0]).strip("/") or BOARD_ROUTE
        if not code:
            return AUTH_CODE_ERROR_ROUTE
        try:
            self._client.exchange_code_for_session(code)
        except StoreError as exc:
            logger.warning("Confirmation code rejected: %s", exc)
            return AUTH_CODE_ERROR_ROUTE
        return next_route
