"""
Anonymous per-browser identity issued by the platform's auth service.

An identity is created once, handed to the browser as a session token, and
reused for every later request. There is no password and no profile.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Protocol

import requests

from airfryhub.errors import RemoteCallFailed

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10  # seconds
SESSION_LIFETIME = timedelta(hours=1)
MALFORMED_RESPONSE = "Authentication failed: malformed response"


@dataclass
class AuthSession:
    user_id: str
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    is_anonymous: bool = True

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) >= self.expires_at


class AuthClient(Protocol):
    def sign_in_anonymously(self) -> AuthSession:
        ...

    def get_user(self, access_token: str) -> Optional[AuthSession]:
        ...


@dataclass
class InMemoryAuthClient:
    """Issues throwaway identities; used for development and tests."""

    sessions: Dict[str, AuthSession] = field(default_factory=dict)

    def sign_in_anonymously(self) -> AuthSession:
        session = AuthSession(
            user_id=str(uuid.uuid4()),
            access_token=secrets.token_urlsafe(32),
            refresh_token=secrets.token_urlsafe(16),
            expires_at=datetime.now(timezone.utc) + SESSION_LIFETIME,
        )
        self.sessions[session.access_token] = session
        return session

    def get_user(self, access_token: str) -> Optional[AuthSession]:
        session = self.sessions.get(access_token)
        if not session or session.is_expired():
            return None
        return session

    def reset(self) -> None:
        self.sessions.clear()


class GoTrueAuthClient:
    """
    Talks to the platform's GoTrue auth endpoint over HTTP.
    """

    def __init__(self, auth_url: str, api_key: str):
        if not auth_url or not api_key:
            raise ValueError("auth_url and api_key are required for GoTrueAuthClient")
        self.auth_url = auth_url.rstrip("/")
        self.api_key = api_key

    def _headers(self, access_token: Optional[str] = None) -> dict:
        headers = {"apikey": self.api_key, "Content-Type": "application/json"}
        headers["Authorization"] = f"Bearer {access_token or self.api_key}"
        return headers

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        return (
            payload.get("msg")
            or payload.get("error_description")
            or payload.get("message")
            or payload.get("error")
            or f"HTTP {response.status_code}"
        )

    def sign_in_anonymously(self) -> AuthSession:
        try:
            response = requests.post(
                f"{self.auth_url}/signup",
                json={"data": {}},
                headers=self._headers(),
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            logger.exception("Anonymous sign-in request failed")
            raise RemoteCallFailed(f"Authentication failed: {exc}") from exc
        if not response.ok:
            message = self._error_message(response)
            logger.error("Anonymous sign-in error: %s", message)
            raise RemoteCallFailed(message)

        try:
            payload = response.json()
            user = payload.get("user") or {}
            expires_in = payload.get("expires_in")
            return AuthSession(
                user_id=user["id"],
                access_token=payload["access_token"],
                refresh_token=payload.get("refresh_token"),
                expires_at=(
                    datetime.now(timezone.utc) + timedelta(seconds=int(expires_in))
                    if expires_in
                    else None
                ),
                is_anonymous=bool(user.get("is_anonymous", True)),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.error("Malformed anonymous sign-in response: %r", exc)
            raise RemoteCallFailed(MALFORMED_RESPONSE) from exc

    def get_user(self, access_token: str) -> Optional[AuthSession]:
        try:
            response = requests.get(
                f"{self.auth_url}/user",
                headers=self._headers(access_token),
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            logger.exception("Session lookup failed")
            raise RemoteCallFailed(f"Authentication failed: {exc}") from exc
        if response.status_code in (401, 403):
            return None
        if not response.ok:
            message = self._error_message(response)
            logger.error("Session error: %s", message)
            raise RemoteCallFailed(message)
        try:
            user = response.json()
            return AuthSession(
                user_id=user["id"],
                access_token=access_token,
                is_anonymous=bool(user.get("is_anonymous", True)),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.error("Malformed session response: %r", exc)
            raise RemoteCallFailed(MALFORMED_RESPONSE) from exc


def resolve_owner(token: Optional[str], client: AuthClient) -> Optional[AuthSession]:
    """Return the session behind ``token``, or None when absent or no longer valid."""
    if not token:
        return None
    return client.get_user(token)


def bootstrap(token: Optional[str], client: AuthClient) -> AuthSession:
    """
    Reuse the existing session when the token still resolves, otherwise sign
    in anonymously once. Failures are not retried here; the caller exposes a
    manual retry.
    """
    try:
        session = resolve_owner(token, client)
    except RemoteCallFailed as exc:
        logger.warning("Session error, signing in again: %s", exc.message)
        session = None
    if session:
        return session
    session = client.sign_in_anonymously()
    logger.info("Issued anonymous identity %s", session.user_id)
    return session
