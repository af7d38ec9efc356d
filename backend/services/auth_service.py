"""Admin token authentication for operator endpoints."""

from __future__ import annotations

import secrets
import time
from threading import RLock
from typing import Callable, Optional

from backend.utils.config import Settings, get_settings


class AuthenticationError(Exception):
    """Base authentication failure."""


class AdminTokenNotConfiguredError(AuthenticationError):
    """Raised when ADMIN_TOKEN is missing."""


class InvalidAdminTokenError(AuthenticationError):
    """Raised when a provided token or session is invalid."""


class AuthService:
    """Exchanges the configured admin token for short-lived bearer sessions.

    Authentication is disabled entirely when ADMIN_TOKEN is unset.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings or get_settings()
        self._monotonic = monotonic
        self._lock = RLock()
        self._sessions: dict[str, float] = {}

    @property
    def auth_enabled(self) -> bool:
        return bool(self._settings.admin_token)

    @property
    def session_ttl_seconds(self) -> int:
        return self._settings.admin_session_ttl_seconds

    def _expected_token(self) -> str:
        if not self._settings.admin_token:
            raise AdminTokenNotConfiguredError(
                "ADMIN_TOKEN is not configured. Set ADMIN_TOKEN in environment variables."
            )
        return self._settings.admin_token

    def _purge_expired(self, now: float) -> None:
        expired = [token for token, expires_at in self._sessions.items() if expires_at <= now]
        for token in expired:
            del self._sessions[token]

    def login(self, provided_admin_token: str) -> str:
        expected = self._expected_token()
        if not secrets.compare_digest(provided_admin_token, expected):
            raise InvalidAdminTokenError("Invalid admin token")
        session_token = secrets.token_urlsafe(32)
        now = self._monotonic()
        with self._lock:
            self._purge_expired(now)
            self._sessions[session_token] = now + self._settings.admin_session_ttl_seconds
        return session_token

    def logout(self, bearer_token: str) -> None:
        with self._lock:
            self._sessions.pop(bearer_token, None)

    def validate_bearer_token(self, bearer_token: str) -> None:
        if not self.auth_enabled:
            return
        now = self._monotonic()
        with self._lock:
            self._purge_expired(now)
            for session_token in self._sessions:
                if secrets.compare_digest(bearer_token, session_token):
                    return
        raise InvalidAdminTokenError("Invalid or expired bearer token. Login first.")
