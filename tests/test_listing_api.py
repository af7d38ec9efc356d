from __future__ import annotations

from dataclasses import replace
from datetime import date

from fastapi.testclient import TestClient

from backend.main import create_app
from backend.repository.data_repository import RepositoryError
from backend.utils.config import get_settings


TODAY = date(2025, 6, 5)


def _build_test_client(tmp_path, **overrides) -> TestClient:
    get_settings.cache_clear()
    settings = replace(
        get_settings(),
        database_path=tmp_path / "listings_api.db",
        admin_token=None,
        seed_demo_data=False,
        sweep_interval_seconds=0,
        **overrides,
    )
    return TestClient(create_app(settings=settings, clock=lambda: TODAY))


def _create_city(client: TestClient, name: str = "Sousse") -> int:
    response = client.post("/cities", json={"name": name, "governorate": "sousse"})
    assert response.status_code == 201
    return response.json()["id"]


def _create_listing(client: TestClient, city_id: int, **fields) -> dict:
    payload = {
        "title": "Sea view flat",
        "category": "HOLIDAY_RENT",
        "listing_type": "APARTMENT",
        "city_id": city_id,
        "rooms": 2,
        "bathrooms": 1,
        "area": 75.0,
        "price_min": 400.0,
        "price_max": 650.0,
        "phone_numbers": [" 21612345678 "],
    }
    payload.update(fields)
    response = client.post("/listings", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_listing_lifecycle(tmp_path):
    with _build_test_client(tmp_path) as client:
        city_id = _create_city(client)

        created = _create_listing(
            client,
            city_id,
            start_date="2025-06-01",
            end_date="2025-06-10",
        )
        assert created["governorate"] == "SOUSSE"
        assert created["city_name"] == "Sousse"
        assert created["phone_numbers"] == ["21612345678"]
        assert created["availability"] == {
            "status": "OCCUPIED",
            "available_from": "2025-06-11",
            "label": "Available from 2025-06-11",
        }

        later = client.get(f"/listings/{created['id']}", params={"as_of": "2025-06-11"})
        assert later.status_code == 200
        assert later.json()["availability"]["status"] == "AVAILABLE"

        patched = client.patch(
            f"/listings/{created['id']}",
            json={"start_date": None, "end_date": None, "rooms": 3},
        )
        assert patched.status_code == 200
        body = patched.json()
        assert body["start_date"] is None and body["end_date"] is None
        assert body["rooms"] == 3
        assert body["availability"]["status"] == "AVAILABLE"

        deleted = client.delete(f"/listings/{created['id']}")
        assert deleted.status_code == 204
        assert client.get(f"/listings/{created['id']}").status_code == 404
        assert client.delete(f"/listings/{created['id']}").status_code == 404


def test_search_filters_by_requested_dates(tmp_path):
    with _build_test_client(tmp_path) as client:
        city_id = _create_city(client)
        free = _create_listing(client, city_id, title="No window")
        booked = _create_listing(
            client,
            city_id,
            title="Booked",
            start_date="2025-06-10",
            end_date="2025-06-20",
        )
        open_ended = _create_listing(client, city_id, title="Closed", start_date="2025-07-01")

        overlapping = client.get(
            "/listings",
            params={"start_date": "2025-06-15", "end_date": "2025-06-18"},
        )
        assert overlapping.status_code == 200
        ids = {row["id"] for row in overlapping.json()["listings"]}
        assert ids == {free["id"], open_ended["id"]}

        after = client.get("/listings", params={"start_date": "2025-06-21"})
        ids = {row["id"] for row in after.json()["listings"]}
        assert ids == {free["id"], booked["id"]}

        unfiltered = client.get("/listings")
        assert unfiltered.json()["pagination"]["total_count"] == 3

        inverted = client.get(
            "/listings",
            params={"start_date": "2025-06-20", "end_date": "2025-06-10"},
        )
        assert inverted.status_code == 200
        assert inverted.json()["listings"] == []
        assert inverted.json()["pagination"]["total_count"] == 0


def test_search_paginates_newest_first(tmp_path):
    with _build_test_client(tmp_path) as client:
        city_id = _create_city(client)
        ids = [_create_listing(client, city_id, title=f"Listing {n}")["id"] for n in range(5)]

        first = client.get("/listings", params={"page": 1, "limit": 2}).json()
        assert [row["id"] for row in first["listings"]] == [ids[4], ids[3]]
        assert first["pagination"] == {
            "page": 1,
            "limit": 2,
            "total_count": 5,
            "total_pages": 3,
            "has_more": True,
        }

        last = client.get("/listings", params={"page": 3, "limit": 2}).json()
        assert [row["id"] for row in last["listings"]] == [ids[0]]
        assert last["pagination"]["has_more"] is False

        too_large = client.get("/listings", params={"limit": 1000})
        assert too_large.status_code == 400


def test_search_applies_catalog_filters(tmp_path):
    with _build_test_client(tmp_path) as client:
        city_id = _create_city(client)
        other_city_id = _create_city(client, "Monastir")
        villa = _create_listing(
            client,
            city_id,
            category="SALE",
            listing_type="VILLA",
            rooms=5,
            price_min=900.0,
            price_max=1500.0,
        )
        _create_listing(client, other_city_id)

        assert [row["id"] for row in client.get("/listings", params={"category": "SALE"}).json()["listings"]] == [
            villa["id"]
        ]
        assert client.get("/listings", params={"rooms": 5}).json()["pagination"]["total_count"] == 1
        assert client.get("/listings", params={"min_price": 800}).json()["pagination"]["total_count"] == 1
        assert client.get("/listings", params={"city_id": other_city_id}).json()["pagination"]["total_count"] == 1
        assert client.get("/listings", params={"governorate": "sousse"}).json()["pagination"]["total_count"] == 2


def test_search_sweeps_expired_windows_first(tmp_path):
    with _build_test_client(tmp_path) as client:
        city_id = _create_city(client)
        expired = _create_listing(
            client,
            city_id,
            start_date="2025-05-01",
            end_date="2025-06-01",
        )

        assert client.get("/listings").status_code == 200

        stored = client.get(f"/listings/{expired['id']}").json()
        assert stored["start_date"] is None
        assert stored["end_date"] is None


def test_search_can_skip_sweep_on_read(tmp_path):
    with _build_test_client(tmp_path, sweep_on_read=False) as client:
        city_id = _create_city(client)
        expired = _create_listing(client, city_id, end_date="2025-06-01")

        client.get("/listings")

        stored = client.get(f"/listings/{expired['id']}").json()
        assert stored["end_date"] == "2025-06-01"
        assert stored["availability"]["status"] == "AVAILABLE"


def test_listing_validation_errors(tmp_path):
    with _build_test_client(tmp_path) as client:
        city_id = _create_city(client)

        unknown_city = client.post(
            "/listings",
            json={"title": "x", "category": "RENT", "listing_type": "HOUSE", "city_id": 999},
        )
        assert unknown_city.status_code == 404

        bad_prices = client.post(
            "/listings",
            json={
                "title": "x",
                "category": "RENT",
                "listing_type": "HOUSE",
                "city_id": city_id,
                "price_min": 900,
                "price_max": 100,
            },
        )
        assert bad_prices.status_code == 400

        bad_enum = client.post(
            "/listings",
            json={"title": "x", "category": "LEASE", "listing_type": "HOUSE", "city_id": city_id},
        )
        assert bad_enum.status_code == 422

        created = _create_listing(client, city_id)
        null_title = client.patch(f"/listings/{created['id']}", json={"title": None})
        assert null_title.status_code == 400
        assert client.patch("/listings/999", json={"rooms": 1}).status_code == 404


def test_malformed_window_is_stored_and_shown_occupied(tmp_path, caplog):
    with _build_test_client(tmp_path) as client:
        city_id = _create_city(client)
        with caplog.at_level("WARNING"):
            created = _create_listing(
                client,
                city_id,
                start_date="2025-06-10",
                end_date="2025-06-01",
            )

        assert created["availability"] == {
            "status": "OCCUPIED",
            "available_from": None,
            "label": "Occupied until further notice",
        }
        assert "start date 2025-06-10 after end date 2025-06-01" in caplog.text


def test_city_management(tmp_path):
    with _build_test_client(tmp_path) as client:
        city_id = _create_city(client)
        empty_city_id = _create_city(client, "Akouda")

        duplicate = client.post("/cities", json={"name": " Sousse ", "governorate": "SOUSSE"})
        assert duplicate.status_code == 409

        names = [city["name"] for city in client.get("/cities").json()]
        assert names == ["Akouda", "Sousse"]

        _create_listing(client, city_id)
        assert client.delete(f"/cities/{city_id}").status_code == 409
        assert client.delete(f"/cities/{empty_city_id}").status_code == 204
        assert client.delete(f"/cities/{empty_city_id}").status_code == 404


def test_hard_delete_removes_favorites(tmp_path):
    with _build_test_client(tmp_path) as client:
        city_id = _create_city(client)
        listing = _create_listing(client, city_id)
        client.post("/favorites", json={"email": "amira@example.com", "listing_id": listing["id"]})

        response = client.delete(f"/listings/{listing['id']}", params={"hard": True})
        assert response.status_code == 204

        favorites = client.get("/favorites", params={"email": "amira@example.com"})
        assert favorites.json() == []


def test_favorites_flow(tmp_path):
    with _build_test_client(tmp_path) as client:
        city_id = _create_city(client)
        listing = _create_listing(client, city_id, start_date="2025-06-01", end_date="2025-06-10")

        first = client.post(
            "/favorites",
            json={"email": "Amira@Example.com", "listing_id": listing["id"], "name": "Amira"},
        )
        assert first.status_code == 201
        assert first.json()["email"] == "amira@example.com"

        again = client.post("/favorites", json={"email": "amira@example.com", "listing_id": listing["id"]})
        assert again.status_code == 201
        assert again.json()["id"] == first.json()["id"]

        favorites = client.get("/favorites", params={"email": "amira@example.com"})
        assert favorites.status_code == 200
        rows = favorites.json()
        assert [row["id"] for row in rows] == [listing["id"]]
        assert rows[0]["availability"]["available_from"] == "2025-06-11"

        assert client.get("/favorites", params={"email": "nobody@example.com"}).json() == []
        assert client.get("/favorites", params={"email": "not-an-email"}).status_code == 400
        assert (
            client.post("/favorites", json={"email": "amira@example.com", "listing_id": 999}).status_code
            == 404
        )

        removed = client.delete(f"/favorites/{listing['id']}", params={"email": "amira@example.com"})
        assert removed.status_code == 204
        missing = client.delete(f"/favorites/{listing['id']}", params={"email": "amira@example.com"})
        assert missing.status_code == 404


def test_future_as_of_does_not_sweep_current_windows(tmp_path):
    with _build_test_client(tmp_path) as client:
        city_id = _create_city(client)
        upcoming = _create_listing(client, city_id, start_date="2025-07-01", end_date="2025-07-10")

        response = client.get("/listings", params={"as_of": "2030-01-01"})
        assert response.status_code == 200
        row = next(item for item in response.json()["listings"] if item["id"] == upcoming["id"])
        assert row["availability"]["status"] == "AVAILABLE"

        stored = client.get(f"/listings/{upcoming['id']}").json()
        assert stored["start_date"] == "2025-07-01"
        assert stored["end_date"] == "2025-07-10"
        assert stored["availability"]["status"] == "AVAILABLE"


def test_duplicate_city_insert_race_is_a_conflict(tmp_path, monkeypatch):
    with _build_test_client(tmp_path) as client:
        _create_city(client)
        # Simulate a concurrent insert landing between the lookup and the INSERT.
        monkeypatch.setattr(client.app.state.repository, "find_city", lambda name, governorate: None)

        duplicate = client.post("/cities", json={"name": "Sousse", "governorate": "sousse"})
        assert duplicate.status_code == 409
        assert "already exists" in duplicate.json()["detail"]
        assert [city["name"] for city in client.get("/cities").json()] == ["Sousse"]


def test_city_store_failure_is_logged_as_server_error(tmp_path, monkeypatch, caplog):
    def broken_count(city_id):
        raise RepositoryError("database is locked")

    with _build_test_client(tmp_path) as client:
        city_id = _create_city(client)
        monkeypatch.setattr(client.app.state.repository, "count_listings_in_city", broken_count)

        with caplog.at_level("ERROR"):
            response = client.delete(f"/cities/{city_id}")

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to delete city"
        assert "Unexpected city deletion failure" in caplog.text
