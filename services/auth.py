"""Bearer token lifecycle against the identity endpoint."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Callable

import httpx

from models.records import AuthSession
from models.schemas import LoginRequest, TokenResponse
from services.errors import AuthenticationError
from services.transport import bearer, decode, send

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_REVOKED_STATUSES = {401, 403}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenManager:
    """Owns the single ``AuthSession`` shared by every HTTP-calling component.

    ``ensure_valid_token`` is safe to call from several threads: the
    check-then-login/refresh sequence runs under one lock, so concurrent
    callers collapse into a single network round trip.
    """

    def __init__(
        self,
        client: httpx.Client,
        identity_url: str,
        username: str,
        password: str,
        clock: Clock = utcnow,
    ) -> None:
        self._client = client
        self._identity_url = identity_url.rstrip("/")
        self._username = username
        self._password = password
        self._clock = clock
        self._session = AuthSession()
        self._lock = Lock()

    @property
    def session(self) -> AuthSession:
        with self._lock:
            return AuthSession(self._session.bearer_token, self._session.expires_at)

    def ensure_valid_token(self) -> str:
        """Return a token usable for at least one more request."""
        with self._lock:
            if self._session.is_empty:
                self._login()
            elif self._session.is_expired(self._clock()):
                self._refresh()
            return self._session.bearer_token

    def _login(self) -> None:
        url = f"{self._identity_url}/oauth/login"
        body = LoginRequest(email=self._username, password=self._password)
        response = send(
            self._client,
            "POST",
            url,
            json=body.model_dump(),
            error_cls=AuthenticationError,
        )
        self._store(decode(response, TokenResponse))
        logger.info("Logged in to identity endpoint", extra={"url": url})

    def _refresh(self) -> None:
        url = f"{self._identity_url}/oauth/refresh"
        try:
            response = send(
                self._client,
                "POST",
                url,
                headers=bearer(self._session.bearer_token),
                error_cls=AuthenticationError,
            )
        except AuthenticationError as exc:
            if exc.status_code not in _REVOKED_STATUSES:
                raise
            logger.warning(
                "Token refresh rejected; falling back to a fresh login",
                extra={"status_code": exc.status_code},
            )
            self._session = AuthSession()
            self._login()
            return
        self._store(decode(response, TokenResponse))
        logger.debug("Refreshed bearer token", extra={"url": url})

    def _store(self, payload: TokenResponse) -> None:
        issued_at = self._clock()
        self._session = AuthSession(
            bearer_token=payload.access_token,
            expires_at=issued_at + timedelta(seconds=payload.expires_in),
        )
