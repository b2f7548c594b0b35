from __future__ import annotations


class StoreError(RuntimeError):
    """A read or write against the backing store failed."""


class RecordNotFoundError(StoreError):
    pass


class NotAuthenticatedError(StoreError):
    def __init__(self, message: str = "User not authenticated") -> None:
        super().__init__(message)


class AuthError(StoreError):
    """Sign-in, sign-up or token exchange was refused by the auth service."""
