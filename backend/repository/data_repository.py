"""Repository layer responsible for all database access."""

from __future__ import annotations

import json
import random
import sqlite3
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from backend.domain.models import (
    City,
    Favorite,
    Listing,
    ListingCategory,
    ListingFilters,
    ListingPage,
    ListingType,
    QueryRange,
    UnavailabilityWindow,
    WindowedEntity,
)
from backend.utils.clock import utc_today
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class RepositoryError(RuntimeError):
    """Raised when the underlying store fails."""


class DuplicateRowError(RepositoryError):
    """Raised when an insert violates a uniqueness constraint."""


_LISTING_SELECT = """
    SELECT
        l.id,
        l.title,
        l.description,
        l.category,
        l.listing_type,
        l.rooms,
        l.bathrooms,
        l.area,
        l.price_min,
        l.price_max,
        l.city_id,
        c.name AS city_name,
        l.governorate,
        l.address,
        l.admin_id,
        l.phone_numbers,
        l.start_date,
        l.end_date,
        l.is_deleted,
        l.created_at
    FROM Listings AS l
    LEFT JOIN Cities AS c ON c.id = l.city_id
"""

_UPDATABLE_LISTING_COLUMNS = (
    "title",
    "description",
    "category",
    "listing_type",
    "rooms",
    "bathrooms",
    "area",
    "price_min",
    "price_max",
    "city_id",
    "governorate",
    "address",
    "admin_id",
    "phone_numbers",
    "start_date",
    "end_date",
)

_MALFORMED_WINDOW_SQL = (
    "(l.start_date IS NOT NULL AND l.end_date IS NOT NULL AND l.start_date > l.end_date)"
)


def _iso_or_none(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_day(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    return date.fromisoformat(str(value)[:10])


def _row_to_city(row: sqlite3.Row) -> City:
    return City(
        city_id=int(row["id"]),
        name=str(row["name"]),
        governorate=str(row["governorate"]),
    )


def window_filter_clause(query_range: QueryRange) -> tuple[Optional[str], list[str]]:
    """Translate the range-exclusion rule into a WHERE fragment over ``Listings AS l``.

    The fragment keeps exactly the rows for which
    ``backend.domain.availability.excluded_by_range`` is False.
    Returns ``(None, [])`` when the range places no constraint.
    """
    if query_range.is_inverted:
        return "0 = 1", []
    if query_range.is_unbounded:
        return None, []

    overlap_parts: list[str] = []
    params: list[str] = []
    if query_range.end is not None:
        overlap_parts.append("(l.start_date IS NULL OR l.start_date <= ?)")
        params.append(query_range.end.isoformat())
    if query_range.start is not None:
        overlap_parts.append("(l.end_date IS NULL OR l.end_date >= ?)")
        params.append(query_range.start.isoformat())

    overlap = f"({_MALFORMED_WINDOW_SQL} OR ({' AND '.join(overlap_parts)}))"
    clause = f"((l.start_date IS NULL AND l.end_date IS NULL) OR NOT {overlap})"
    return clause, params


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Cities (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        governorate TEXT NOT NULL,
                        UNIQUE (name, governorate)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Listings (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        title TEXT NOT NULL,
                        description TEXT NOT NULL DEFAULT '',
                        category TEXT NOT NULL,
                        listing_type TEXT NOT NULL,
                        rooms INTEGER NOT NULL DEFAULT 0 CHECK (rooms >= 0),
                        bathrooms INTEGER NOT NULL DEFAULT 0 CHECK (bathrooms >= 0),
                        area REAL,
                        price_min REAL,
                        price_max REAL,
                        city_id INTEGER NOT NULL,
                        governorate TEXT NOT NULL,
                        address TEXT,
                        admin_id TEXT,
                        phone_numbers TEXT NOT NULL DEFAULT '[]',
                        start_date TEXT,
                        end_date TEXT,
                        is_deleted INTEGER NOT NULL DEFAULT 0 CHECK (is_deleted IN (0,1)),
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        FOREIGN KEY (city_id) REFERENCES Cities(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Clients (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        email TEXT NOT NULL UNIQUE,
                        name TEXT,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Favorites (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        client_id INTEGER NOT NULL,
                        listing_id INTEGER NOT NULL,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        UNIQUE (client_id, listing_id),
                        FOREIGN KEY (client_id) REFERENCES Clients(id),
                        FOREIGN KEY (listing_id) REFERENCES Listings(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_listings_deleted_end_date
                    ON Listings(is_deleted, end_date);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_listings_city
                    ON Listings(city_id, is_deleted);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RepositoryError(f"Database initialization failed: {exc}") from exc

    def seed_synthetic_data(self) -> int:
        """Seed deterministic demo cities and listings only when tables are empty."""
        rng = random.Random(self._settings.synthetic_random_seed)
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute("SELECT COUNT(*) AS count FROM Listings;")
                if int(cursor.fetchone()["count"]) > 0:
                    logger.info("Demo listings already present; skipping seed")
                    return 0

                cities = [
                    ("Sousse", "SOUSSE"),
                    ("Hammam Sousse", "SOUSSE"),
                    ("Kantaoui", "SOUSSE"),
                    ("Akouda", "SOUSSE"),
                ]
                cursor.executemany(
                    "INSERT OR IGNORE INTO Cities (name, governorate) VALUES (?, ?);",
                    cities,
                )
                cursor.execute("SELECT id, governorate FROM Cities ORDER BY id ASC;")
                city_rows = [(int(row["id"]), str(row["governorate"])) for row in cursor.fetchall()]

                today = utc_today()
                categories = list(ListingCategory)
                listing_types = list(ListingType)
                rows = []
                for index in range(self._settings.synthetic_listing_count):
                    city_id, governorate = city_rows[index % len(city_rows)]
                    start_date, end_date = self._synthetic_window(rng, today, index)
                    price_min = float(rng.randrange(400, 2000, 50))
                    rows.append(
                        (
                            f"Listing {index + 1}",
                            "Demo listing",
                            categories[index % len(categories)].value,
                            listing_types[rng.randrange(len(listing_types))].value,
                            rng.randint(1, 6),
                            rng.randint(1, 3),
                            float(rng.randrange(45, 400, 5)),
                            price_min,
                            price_min + float(rng.randrange(0, 800, 50)),
                            city_id,
                            governorate,
                            None,
                            None,
                            "[]",
                            _iso_or_none(start_date),
                            _iso_or_none(end_date),
                        )
                    )

                cursor.executemany(
                    """
                    INSERT INTO Listings (
                        title, description, category, listing_type, rooms, bathrooms,
                        area, price_min, price_max, city_id, governorate, address,
                        admin_id, phone_numbers, start_date, end_date
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    rows,
                )
                conn.commit()
            logger.info("Demo seed completed with %s listings", len(rows))
            return len(rows)
        except sqlite3.Error as exc:
            raise RepositoryError(f"Demo data seeding failed: {exc}") from exc

    @staticmethod
    def _synthetic_window(
        rng: random.Random,
        today: date,
        index: int,
    ) -> tuple[Optional[date], Optional[date]]:
        # No window, expired, current, start-only, future, end-only.
        shape = index % 6
        offset = rng.randint(1, 20)
        length = rng.randint(2, 14)
        if shape == 0:
            return None, None
        if shape == 1:
            end = today - timedelta(days=offset)
            return end - timedelta(days=length), end
        if shape == 2:
            start = today - timedelta(days=offset % length)
            return start, start + timedelta(days=length)
        if shape == 3:
            return today + timedelta(days=offset), None
        if shape == 4:
            start = today + timedelta(days=offset)
            return start, start + timedelta(days=length)
        return None, today + timedelta(days=offset)

    # --- Cities -----------------------------------------------------------

    def list_cities(self) -> list[City]:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT id, name, governorate FROM Cities ORDER BY name ASC, id ASC;")
                return [_row_to_city(row) for row in cursor.fetchall()]
        except sqlite3.Error as exc:
            raise RepositoryError(f"Listing cities failed: {exc}") from exc

    def get_city(self, city_id: int) -> Optional[City]:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "SELECT id, name, governorate FROM Cities WHERE id = ?;",
                    (city_id,),
                )
                row = cursor.fetchone()
                return _row_to_city(row) if row is not None else None
        except sqlite3.Error as exc:
            raise RepositoryError(f"City {city_id} lookup failed: {exc}") from exc

    def find_city(self, name: str, governorate: str) -> Optional[City]:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    SELECT id, name, governorate
                    FROM Cities
                    WHERE lower(name) = lower(?) AND governorate = ?;
                    """,
                    (name, governorate),
                )
                row = cursor.fetchone()
                return _row_to_city(row) if row is not None else None
        except sqlite3.Error as exc:
            raise RepositoryError(f"City lookup failed: {exc}") from exc

    def create_city(self, name: str, governorate: str) -> int:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "INSERT INTO Cities (name, governorate) VALUES (?, ?);",
                    (name, governorate),
                )
                conn.commit()
                return int(cursor.lastrowid)
        except sqlite3.IntegrityError as exc:
            raise DuplicateRowError(f"City {name!r} already exists in {governorate}") from exc
        except sqlite3.Error as exc:
            raise RepositoryError(f"Creating city {name!r} failed: {exc}") from exc

    def count_listings_in_city(self, city_id: int) -> int:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "SELECT COUNT(*) AS count FROM Listings WHERE city_id = ?;",
                    (city_id,),
                )
                return int(cursor.fetchone()["count"])
        except sqlite3.Error as exc:
            raise RepositoryError(f"Counting listings of city {city_id} failed: {exc}") from exc

    def delete_city(self, city_id: int) -> bool:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM Cities WHERE id = ?;", (city_id,))
                conn.commit()
                return cursor.rowcount > 0
        except sqlite3.Error as exc:
            raise RepositoryError(f"Deleting city {city_id} failed: {exc}") from exc

    # --- Listings ---------------------------------------------------------

    @staticmethod
    def _row_to_listing(row: sqlite3.Row) -> Listing:
        return Listing(
            listing_id=int(row["id"]),
            title=str(row["title"]),
            description=str(row["description"]),
            category=ListingCategory(row["category"]),
            listing_type=ListingType(row["listing_type"]),
            rooms=int(row["rooms"]),
            bathrooms=int(row["bathrooms"]),
            area=float(row["area"]) if row["area"] is not None else None,
            price_min=float(row["price_min"]) if row["price_min"] is not None else None,
            price_max=float(row["price_max"]) if row["price_max"] is not None else None,
            city_id=int(row["city_id"]),
            city_name=str(row["city_name"]) if row["city_name"] is not None else None,
            governorate=str(row["governorate"]),
            address=row["address"],
            admin_id=row["admin_id"],
            phone_numbers=list(json.loads(row["phone_numbers"] or "[]")),
            window=UnavailabilityWindow(
                start_date=_parse_day(row["start_date"]),
                end_date=_parse_day(row["end_date"]),
            ),
            is_deleted=bool(row["is_deleted"]),
            created_at=str(row["created_at"]),
        )

    def create_listing(
        self,
        *,
        title: str,
        description: str,
        category: ListingCategory,
        listing_type: ListingType,
        rooms: int,
        bathrooms: int,
        area: Optional[float],
        price_min: Optional[float],
        price_max: Optional[float],
        city_id: int,
        governorate: str,
        address: Optional[str],
        admin_id: Optional[str],
        phone_numbers: Sequence[str],
        window: UnavailabilityWindow,
    ) -> int:
        """Insert a listing row and return the created id."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO Listings (
                        title, description, category, listing_type, rooms, bathrooms,
                        area, price_min, price_max, city_id, governorate, address,
                        admin_id, phone_numbers, start_date, end_date
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    (
                        title,
                        description,
                        category.value,
                        listing_type.value,
                        rooms,
                        bathrooms,
                        area,
                        price_min,
                        price_max,
                        city_id,
                        governorate,
                        address,
                        admin_id,
                        json.dumps(list(phone_numbers)),
                        _iso_or_none(window.start_date),
                        _iso_or_none(window.end_date),
                    ),
                )
                conn.commit()
                return int(cursor.lastrowid)
        except sqlite3.Error as exc:
            raise RepositoryError(f"Creating listing {title!r} failed: {exc}") from exc

    def get_listing(self, listing_id: int, include_deleted: bool = False) -> Optional[Listing]:
        query = _LISTING_SELECT + " WHERE l.id = ?"
        if not include_deleted:
            query += " AND l.is_deleted = 0"
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(query + ";", (listing_id,))
                row = cursor.fetchone()
                return self._row_to_listing(row) if row is not None else None
        except sqlite3.Error as exc:
            raise RepositoryError(f"Listing {listing_id} lookup failed: {exc}") from exc

    def update_listing(self, listing_id: int, changes: Mapping[str, Any]) -> bool:
        """Apply a partial update; unknown columns are rejected."""
        unknown = set(changes) - set(_UPDATABLE_LISTING_COLUMNS)
        if unknown:
            raise ValueError(f"Unsupported listing columns: {sorted(unknown)}")
        if not changes:
            return self.get_listing(listing_id) is not None

        values: list[Any] = []
        assignments: list[str] = []
        for column in _UPDATABLE_LISTING_COLUMNS:
            if column not in changes:
                continue
            value = changes[column]
            if column in ("start_date", "end_date"):
                value = _iso_or_none(value)
            elif column in ("category", "listing_type") and value is not None:
                value = value.value
            elif column == "phone_numbers":
                value = json.dumps(list(value or []))
            assignments.append(f"{column} = ?")
            values.append(value)

        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"""
                    UPDATE Listings
                    SET {", ".join(assignments)}
                    WHERE id = ? AND is_deleted = 0;
                    """,
                    (*values, listing_id),
                )
                conn.commit()
                return cursor.rowcount > 0
        except sqlite3.Error as exc:
            raise RepositoryError(f"Updating listing {listing_id} failed: {exc}") from exc

    def soft_delete_listing(self, listing_id: int) -> bool:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "UPDATE Listings SET is_deleted = 1 WHERE id = ? AND is_deleted = 0;",
                    (listing_id,),
                )
                conn.commit()
                return cursor.rowcount > 0
        except sqlite3.Error as exc:
            raise RepositoryError(f"Soft-deleting listing {listing_id} failed: {exc}") from exc

    def hard_delete_listing(self, listing_id: int) -> bool:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM Favorites WHERE listing_id = ?;", (listing_id,))
                cursor.execute("DELETE FROM Listings WHERE id = ?;", (listing_id,))
                conn.commit()
                return cursor.rowcount > 0
        except sqlite3.Error as exc:
            raise RepositoryError(f"Deleting listing {listing_id} failed: {exc}") from exc

    def list_active_listings(self) -> list[Listing]:
        """Return every non-deleted listing, newest first."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    _LISTING_SELECT
                    + " WHERE l.is_deleted = 0 ORDER BY l.created_at DESC, l.id DESC;"
                )
                return [self._row_to_listing(row) for row in cursor.fetchall()]
        except sqlite3.Error as exc:
            raise RepositoryError(f"Listing active listings failed: {exc}") from exc

    def search_listings(self, filters: ListingFilters) -> ListingPage:
        """Return one page of non-deleted listings matching ``filters``."""
        conditions = ["l.is_deleted = 0"]
        params: list[Any] = []

        if filters.category is not None:
            conditions.append("l.category = ?")
            params.append(filters.category.value)
        if filters.listing_type is not None:
            conditions.append("l.listing_type = ?")
            params.append(filters.listing_type.value)
        if filters.min_price is not None:
            conditions.append("l.price_min >= ?")
            params.append(filters.min_price)
        if filters.max_price is not None:
            conditions.append("l.price_max <= ?")
            params.append(filters.max_price)
        if filters.rooms is not None:
            conditions.append("l.rooms = ?")
            params.append(filters.rooms)
        if filters.admin_id is not None:
            conditions.append("l.admin_id = ?")
            params.append(filters.admin_id)
        if filters.city_id is not None:
            conditions.append("l.city_id = ?")
            params.append(filters.city_id)
        if filters.governorate is not None:
            conditions.append("l.governorate = ?")
            params.append(filters.governorate)
        if filters.min_area is not None:
            conditions.append("(l.area >= ? OR l.area IS NULL)")
            params.append(filters.min_area)

        window_clause, window_params = window_filter_clause(filters.date_range)
        if window_clause is not None:
            conditions.append(window_clause)
            params.extend(window_params)

        where = " AND ".join(conditions)
        offset = (filters.page - 1) * filters.limit
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"SELECT COUNT(*) AS count FROM Listings AS l WHERE {where};",
                    tuple(params),
                )
                total_count = int(cursor.fetchone()["count"])
                cursor.execute(
                    _LISTING_SELECT
                    + f" WHERE {where} ORDER BY l.created_at DESC, l.id DESC LIMIT ? OFFSET ?;",
                    (*params, filters.limit, offset),
                )
                listings = [self._row_to_listing(row) for row in cursor.fetchall()]
        except sqlite3.Error as exc:
            raise RepositoryError(f"Listing search failed: {exc}") from exc

        return ListingPage(
            listings=listings,
            page=filters.page,
            limit=filters.limit,
            total_count=total_count,
        )

    # --- Expiry sweep collaborator ---------------------------------------

    def find_entities_with_expired_window(self, reference_date: date) -> list[WindowedEntity]:
        """Return non-deleted listings whose end date is strictly before ``reference_date``."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    SELECT id, start_date, end_date
                    FROM Listings
                    WHERE is_deleted = 0
                      AND end_date IS NOT NULL
                      AND end_date < ?
                    ORDER BY id ASC;
                    """,
                    (reference_date.isoformat(),),
                )
                return [
                    WindowedEntity(
                        entity_id=int(row["id"]),
                        window=UnavailabilityWindow(
                            start_date=_parse_day(row["start_date"]),
                            end_date=_parse_day(row["end_date"]),
                        ),
                    )
                    for row in cursor.fetchall()
                ]
        except sqlite3.Error as exc:
            raise RepositoryError(f"Expired window lookup failed: {exc}") from exc

    def clear_window(self, entity_id: int) -> None:
        """Set both window bounds of a non-deleted listing to NULL; repeating the call is a no-op."""
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    UPDATE Listings
                    SET start_date = NULL, end_date = NULL
                    WHERE id = ? AND is_deleted = 0;
                    """,
                    (entity_id,),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise RepositoryError(f"Clearing window of listing {entity_id} failed: {exc}") from exc

    # --- Clients & favorites ---------------------------------------------

    def get_or_create_client(self, email: str, name: Optional[str] = None) -> int:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT id, name FROM Clients WHERE email = ?;", (email,))
                row = cursor.fetchone()
                if row is None:
                    cursor.execute(
                        "INSERT INTO Clients (email, name) VALUES (?, ?);",
                        (email, name),
                    )
                    conn.commit()
                    return int(cursor.lastrowid)
                if name and not row["name"]:
                    cursor.execute("UPDATE Clients SET name = ? WHERE id = ?;", (name, row["id"]))
                    conn.commit()
                return int(row["id"])
        except sqlite3.Error as exc:
            raise RepositoryError(f"Client lookup for {email!r} failed: {exc}") from exc

    def find_client_id(self, email: str) -> Optional[int]:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT id FROM Clients WHERE email = ?;", (email,))
                row = cursor.fetchone()
                return int(row["id"]) if row is not None else None
        except sqlite3.Error as exc:
            raise RepositoryError(f"Client lookup for {email!r} failed: {exc}") from exc

    def add_favorite(self, client_id: int, listing_id: int) -> Favorite:
        """Insert the favorite unless it already exists, then return it."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "INSERT OR IGNORE INTO Favorites (client_id, listing_id) VALUES (?, ?);",
                    (client_id, listing_id),
                )
                conn.commit()
                cursor.execute(
                    """
                    SELECT f.id, c.email, f.listing_id, f.created_at
                    FROM Favorites AS f
                    INNER JOIN Clients AS c ON c.id = f.client_id
                    WHERE f.client_id = ? AND f.listing_id = ?;
                    """,
                    (client_id, listing_id),
                )
                row = cursor.fetchone()
        except sqlite3.Error as exc:
            raise RepositoryError(f"Adding favorite {listing_id} failed: {exc}") from exc
        return Favorite(
            favorite_id=int(row["id"]),
            client_email=str(row["email"]),
            listing_id=int(row["listing_id"]),
            created_at=str(row["created_at"]),
        )

    def list_favorite_listings(self, client_id: int) -> list[Listing]:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    _LISTING_SELECT
                    + """
                    INNER JOIN Favorites AS f ON f.listing_id = l.id
                    WHERE f.client_id = ? AND l.is_deleted = 0
                    ORDER BY f.created_at DESC, f.id DESC;
                    """,
                    (client_id,),
                )
                return [self._row_to_listing(row) for row in cursor.fetchall()]
        except sqlite3.Error as exc:
            raise RepositoryError(f"Listing favorites of client {client_id} failed: {exc}") from exc

    def remove_favorite(self, client_id: int, listing_id: int) -> bool:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "DELETE FROM Favorites WHERE client_id = ? AND listing_id = ?;",
                    (client_id, listing_id),
                )
                conn.commit()
                return cursor.rowcount > 0
        except sqlite3.Error as exc:
            raise RepositoryError(f"Removing favorite {listing_id} failed: {exc}") from exc
