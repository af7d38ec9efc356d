from __future__ import annotations

from dataclasses import replace
from datetime import date

from fastapi import FastAPI
from fastapi.testclient import TestClient

from backend.domain.models import ListingCategory, ListingType, UnavailabilityWindow
from backend.main import create_app
from backend.repository.data_repository import DataRepository, RepositoryError
from backend.utils.config import get_settings


TODAY = date(2025, 6, 12)


def _build_test_settings(tmp_path, filename: str, admin_token: str | None):
    get_settings.cache_clear()
    base = get_settings()
    return replace(
        base,
        database_path=tmp_path / filename,
        admin_token=admin_token,
        seed_demo_data=False,
        sweep_interval_seconds=0,
    )


def _build_test_app(tmp_path, admin_token: str | None = "secret-admin-token") -> tuple[FastAPI, DataRepository]:
    settings = _build_test_settings(tmp_path, "dashboard_flow.db", admin_token)
    app = create_app(settings=settings, clock=lambda: TODAY)
    return app, app.state.repository


def _seed_listings(repository: DataRepository) -> dict[str, int]:
    city_id = repository.create_city("Sousse", "SOUSSE")
    windows = {
        "free": UnavailabilityWindow(),
        "expired": UnavailabilityWindow(date(2025, 6, 1), date(2025, 6, 10)),
        "current": UnavailabilityWindow(date(2025, 6, 10), date(2025, 6, 20)),
        "indefinite": UnavailabilityWindow(start_date=date(2025, 1, 1)),
        "malformed": UnavailabilityWindow(date(2025, 7, 1), date(2025, 6, 15)),
    }
    return {
        name: repository.create_listing(
            title=name,
            description="",
            category=ListingCategory.RENT,
            listing_type=ListingType.HOUSE,
            rooms=3,
            bathrooms=1,
            area=None,
            price_min=None,
            price_max=None,
            city_id=city_id,
            governorate="SOUSSE",
            address=None,
            admin_id=None,
            phone_numbers=[],
            window=window,
        )
        for name, window in windows.items()
    }


def _login(client: TestClient, admin_token: str) -> dict[str, str]:
    response = client.post("/login", json={"admin_token": admin_token})
    assert response.status_code == 200
    payload = response.json()
    assert payload["token_type"] == "bearer"
    assert payload["expires_in"] > 0
    return {"Authorization": f"Bearer {payload['access_token']}"}


def test_dashboard_end_to_end_flow(tmp_path):
    admin_token = "secret-admin-token"
    app, repository = _build_test_app(tmp_path, admin_token)

    with TestClient(app) as client:
        ids = _seed_listings(repository)

        unauth = client.get("/dashboard/availability")
        assert unauth.status_code == 401
        assert client.post("/maintenance/sweep").status_code == 401

        headers = _login(client, admin_token)

        overview = client.get("/dashboard/availability", headers=headers)
        assert overview.status_code == 200
        payload = overview.json()
        assert payload["as_of"] == TODAY.isoformat()
        assert payload["sweep"]["cleared_ids"] == [ids["expired"]]
        assert {row["id"] for row in payload["available"]} == {ids["free"], ids["expired"]}
        assert {row["id"] for row in payload["occupied"]} == {
            ids["current"],
            ids["indefinite"],
            ids["malformed"],
        }
        assert payload["malformed_count"] == 1

        occupied = {row["id"]: row for row in payload["occupied"]}
        assert occupied[ids["current"]]["available_from"] == "2025-06-21"
        assert occupied[ids["current"]]["label"] == "Available from 2025-06-21"
        assert occupied[ids["indefinite"]]["available_from"] is None
        assert occupied[ids["indefinite"]]["label"] == "Occupied until further notice"

        sweep = client.post("/maintenance/sweep", headers=headers)
        assert sweep.status_code == 200
        assert sweep.json() == {
            "reference_date": TODAY.isoformat(),
            "cleared_count": 0,
            "cleared_ids": [],
        }

        later = client.post("/maintenance/sweep", json={"as_of": "2025-06-21"}, headers=headers)
        assert later.status_code == 200
        assert later.json()["cleared_ids"] == [ids["current"], ids["malformed"]]

        health = client.get("/health")
        assert health.status_code == 200
        assert health.json()["auth_enabled"] is True
        assert health.json()["last_sweep"]["reference_date"] == "2025-06-21"

        assert client.post("/logout", headers=headers).status_code == 204
        assert client.get("/dashboard/availability", headers=headers).status_code == 401


def test_login_rejects_invalid_admin_token(tmp_path):
    app, _ = _build_test_app(tmp_path, "real-admin-token")
    with TestClient(app) as client:
        response = client.post("/login", json={"admin_token": "wrong-token"})
        assert response.status_code == 401


def test_admin_routes_open_when_token_unset(tmp_path):
    app, _ = _build_test_app(tmp_path, admin_token=None)
    with TestClient(app) as client:
        assert client.get("/dashboard/availability").status_code == 200
        assert client.post("/login", json={"admin_token": "anything"}).status_code == 401
        assert client.get("/health").json()["auth_enabled"] is False


def test_sweep_failure_does_not_block_reads(tmp_path, monkeypatch):
    app, repository = _build_test_app(tmp_path, admin_token=None)

    with TestClient(app) as client:
        ids = _seed_listings(repository)

        def broken_lookup(reference_date):
            raise RepositoryError("database is locked")

        monkeypatch.setattr(repository, "find_entities_with_expired_window", broken_lookup)

        overview = client.get("/dashboard/availability")
        assert overview.status_code == 200
        payload = overview.json()
        assert payload["sweep"] is None
        assert ids["expired"] in {row["id"] for row in payload["available"]}

        assert client.get("/listings").status_code == 200

        sweep = client.post("/maintenance/sweep")
        assert sweep.status_code == 503
        assert "database is locked" in sweep.json()["detail"]


def test_dashboard_as_of_only_moves_classification(tmp_path):
    app, repository = _build_test_app(tmp_path, admin_token=None)

    with TestClient(app) as client:
        ids = _seed_listings(repository)

        overview = client.get("/dashboard/availability", params={"as_of": "2025-07-01"})
        assert overview.status_code == 200
        payload = overview.json()
        assert payload["as_of"] == "2025-07-01"
        assert payload["sweep"]["cleared_ids"] == [ids["expired"]]
        assert ids["current"] in {row["id"] for row in payload["available"]}

        current = repository.get_listing(ids["current"])
        assert current.window == UnavailabilityWindow(date(2025, 6, 10), date(2025, 6, 20))
