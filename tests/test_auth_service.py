from __future__ import annotations

from dataclasses import replace

import pytest

from backend.services.auth_service import (
    AdminTokenNotConfiguredError,
    AuthService,
    InvalidAdminTokenError,
)
from backend.utils.config import get_settings


class FakeMonotonic:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _build_service(admin_token: str | None = "admin-secret", ttl: int = 60):
    get_settings.cache_clear()
    settings = replace(get_settings(), admin_token=admin_token, admin_session_ttl_seconds=ttl)
    clock = FakeMonotonic()
    return AuthService(settings=settings, monotonic=clock), clock


def test_login_issues_distinct_session_tokens() -> None:
    service, _ = _build_service()
    first = service.login("admin-secret")
    second = service.login("admin-secret")

    assert first != second
    assert first != "admin-secret"
    service.validate_bearer_token(first)
    service.validate_bearer_token(second)


def test_raw_admin_token_is_not_a_bearer_token() -> None:
    service, _ = _build_service()
    with pytest.raises(InvalidAdminTokenError):
        service.validate_bearer_token("admin-secret")


def test_wrong_admin_token_is_rejected() -> None:
    service, _ = _build_service()
    with pytest.raises(InvalidAdminTokenError):
        service.login("guess")


def test_session_expires_after_ttl() -> None:
    service, clock = _build_service(ttl=60)
    token = service.login("admin-secret")

    clock.now += 59
    service.validate_bearer_token(token)

    clock.now += 1
    with pytest.raises(InvalidAdminTokenError):
        service.validate_bearer_token(token)


def test_logout_revokes_session() -> None:
    service, _ = _build_service()
    token = service.login("admin-secret")
    service.logout(token)

    with pytest.raises(InvalidAdminTokenError):
        service.validate_bearer_token(token)


def test_login_without_configured_token_fails() -> None:
    service, _ = _build_service(admin_token=None)
    assert service.auth_enabled is False
    with pytest.raises(AdminTokenNotConfiguredError):
        service.login("anything")
    service.validate_bearer_token("anything")
