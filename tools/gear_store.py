"""Equipment storage abstractions and SQLite implementation."""
from __future__ import annotations

import json
import sqlite3
import threading
import time
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from logic.validation import GearItemInput, GearPerformanceInput, TripInput
from models.gear_item import ChatMessage, GearItem, GearPerformance, Trip
from models.taxonomy import validate_category


R = TypeVar("R")

MAX_ID_ATTEMPTS = 5


class NotFoundError(LookupError):
    """Raised when an update targets an id with no stored row."""


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


class GearStore:
    """Persistence interface for gear, ratings, trips and the chat transcript."""

    def create_gear_item(self, gear: GearItemInput) -> GearItem:
        raise NotImplementedError

    def get_gear_items(self, category: Optional[str] = None) -> List[GearItem]:
        raise NotImplementedError

    def get_gear_item(self, gear_id: str) -> Optional[GearItem]:
        raise NotImplementedError

    def update_gear_item(self, gear_id: str, updates: Dict[str, Any]) -> GearItem:
        raise NotImplementedError

    def delete_gear_item(self, gear_id: str) -> bool:
        raise NotImplementedError

    def create_gear_performance(self, performance: GearPerformanceInput) -> GearPerformance:
        raise NotImplementedError

    def get_gear_performance(self, gear_id: str) -> List[GearPerformance]:
        raise NotImplementedError

    def list_gear_performance(self) -> List[GearPerformance]:
        raise NotImplementedError

    def create_trip(self, trip: TripInput) -> Trip:
        raise NotImplementedError

    def get_trips(self) -> List[Trip]:
        raise NotImplementedError

    def get_trip(self, trip_id: str) -> Optional[Trip]:
        raise NotImplementedError

    def update_trip(self, trip_id: str, updates: Dict[str, Any]) -> Trip:
        raise NotImplementedError

    def create_chat_message(
        self, message: str, response: Optional[str] = None, function_calls: Optional[Dict[str, Any]] = None
    ) -> ChatMessage:
        raise NotImplementedError

    def get_chat_history(self, limit: int = 50) -> List[ChatMessage]:
        raise NotImplementedError

    def close(self) -> None:
        """Release any held resources."""


class SQLiteGearStore(GearStore):
    """Local SQLite-backed store.

    Every operation opens its own connection so the store can be shared by
    worker threads; atomicity is per statement.
    """

    def __init__(self, database_path: str | Path = "data/gear.db") -> None:
        self.database_path = Path(database_path)
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._id_lock = threading.Lock()
        self._last_id = 0
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database_path, timeout=10.0)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_tables(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS gear_items (
                    id TEXT PRIMARY KEY,
                    brand TEXT NOT NULL,
                    model TEXT NOT NULL,
                    category TEXT NOT NULL,
                    subcategory TEXT,
                    size TEXT,
                    purchase_date TEXT,
                    cost REAL,
                    weight_grams INTEGER,
                    status TEXT DEFAULT 'active',
                    specifications TEXT,
                    compatibility TEXT,
                    created_at TEXT
                );
                CREATE TABLE IF NOT EXISTS gear_performance (
                    id TEXT PRIMARY KEY,
                    gear_id TEXT NOT NULL,
                    activity_type TEXT,
                    specific_activity TEXT,
                    conditions TEXT,
                    rating INTEGER NOT NULL,
                    performance_aspects TEXT,
                    notes TEXT,
                    date_logged TEXT,
                    created_at TEXT
                );
                CREATE TABLE IF NOT EXISTS trips (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    location TEXT,
                    start_date TEXT,
                    end_date TEXT,
                    activities TEXT,
                    expected_conditions TEXT,
                    gear_used TEXT,
                    notes TEXT,
                    weather_data TEXT,
                    created_at TEXT
                );
                CREATE TABLE IF NOT EXISTS chat_history (
                    id TEXT PRIMARY KEY,
                    message TEXT NOT NULL,
                    response TEXT,
                    function_calls TEXT,
                    timestamp TEXT
                );
                """
            )
            self._last_id = self._stored_max_id(conn)

    @staticmethod
    def _stored_max_id(conn: sqlite3.Connection) -> int:
        row = conn.execute(
            """
            SELECT MAX(CAST(id AS INTEGER)) AS last_id FROM (
                SELECT id FROM gear_items UNION ALL SELECT id FROM gear_performance
                UNION ALL SELECT id FROM trips UNION ALL SELECT id FROM chat_history
            )
            """
        ).fetchone()
        return int(row["last_id"] or 0)

    def _next_id(self) -> str:
        """Millisecond clock that never repeats or goes backwards within this store."""

        with self._id_lock:
            candidate = max(int(time.time() * 1000), self._last_id + 1)
            self._last_id = candidate
            return str(candidate)

    def _insert_new(self, build: Callable[[str], R], write: Callable[[sqlite3.Connection, R], None]) -> R:
        """Insert a record under a fresh id.

        Another store on the same file may have taken the id; on a primary-key
        conflict the counter is resynced from the database and the insert retried.
        """

        for _ in range(MAX_ID_ATTEMPTS):
            record = build(self._next_id())
            try:
                with self._connect() as conn:
                    write(conn, record)
                return record
            except sqlite3.IntegrityError:
                with self._connect() as conn:
                    stored = self._stored_max_id(conn)
                with self._id_lock:
                    self._last_id = max(self._last_id, stored)
        raise RuntimeError(f"Could not allocate a unique id after {MAX_ID_ATTEMPTS} attempts")

    @staticmethod
    def _serialise(value: Any) -> Optional[str]:
        return json.dumps(value) if value is not None else None

    @staticmethod
    def _deserialise(raw: Optional[str], default: Any) -> Any:
        return json.loads(raw) if raw else default

    # -- gear items -----------------------------------------------------

    def _write_gear_item(self, conn: sqlite3.Connection, item: GearItem, replace: bool = False) -> None:
        verb = "INSERT OR REPLACE" if replace else "INSERT"
        conn.execute(
            f"""
            {verb} INTO gear_items (
                id, brand, model, category, subcategory, size, purchase_date, cost,
                weight_grams, status, specifications, compatibility, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                item.id,
                item.brand,
                item.model,
                item.category,
                item.subcategory,
                item.size,
                item.purchase_date,
                item.cost,
                item.weight_grams,
                item.status,
                self._serialise(item.specifications),
                self._serialise(item.compatibility),
                item.created_at,
            ),
        )

    def _row_to_gear_item(self, row: sqlite3.Row) -> GearItem:
        return GearItem(
            id=row["id"],
            brand=row["brand"],
            model=row["model"],
            category=row["category"],
            subcategory=row["subcategory"],
            size=row["size"],
            purchase_date=row["purchase_date"],
            cost=row["cost"],
            weight_grams=row["weight_grams"],
            status=row["status"] or "active",
            specifications=self._deserialise(row["specifications"], {}),
            compatibility=self._deserialise(row["compatibility"], {}),
            created_at=row["created_at"],
        )

    def create_gear_item(self, gear: GearItemInput) -> GearItem:
        fields = gear.model_dump()
        return self._insert_new(
            lambda new_id: GearItem(id=new_id, created_at=_utc_now(), **fields),
            self._write_gear_item,
        )

    def get_gear_items(self, category: Optional[str] = None) -> List[GearItem]:
        with self._connect() as conn:
            if category:
                cursor = conn.execute(
                    "SELECT * FROM gear_items WHERE category = ? ORDER BY id", (category,)
                )
            else:
                cursor = conn.execute("SELECT * FROM gear_items ORDER BY id")
            return [self._row_to_gear_item(row) for row in cursor.fetchall()]

    def get_gear_item(self, gear_id: str) -> Optional[GearItem]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM gear_items WHERE id = ?", (gear_id,)).fetchone()
            return self._row_to_gear_item(row) if row else None

    def update_gear_item(self, gear_id: str, updates: Dict[str, Any]) -> GearItem:
        current = self.get_gear_item(gear_id)
        if not current:
            raise NotFoundError(f"Gear item with id {gear_id} not found")

        for key, value in updates.items():
            if key in {"id", "created_at"}:
                continue
            if key == "category":
                value = validate_category(value)
            if hasattr(current, key):
                setattr(current, key, value)

        validated = GearItem(**asdict(current))
        with self._connect() as conn:
            self._write_gear_item(conn, validated, replace=True)
        return validated

    def delete_gear_item(self, gear_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM gear_items WHERE id = ?", (gear_id,))
            return cursor.rowcount > 0

    # -- performance ----------------------------------------------------

    def _row_to_performance(self, row: sqlite3.Row) -> GearPerformance:
        return GearPerformance(
            id=row["id"],
            gear_id=row["gear_id"],
            rating=row["rating"],
            activity_type=row["activity_type"],
            specific_activity=row["specific_activity"],
            conditions=self._deserialise(row["conditions"], {}),
            performance_aspects=self._deserialise(row["performance_aspects"], {}),
            notes=row["notes"],
            date_logged=row["date_logged"],
            created_at=row["created_at"],
        )

    def _write_performance(self, conn: sqlite3.Connection, record: GearPerformance) -> None:
        conn.execute(
            """
            INSERT INTO gear_performance (
                id, gear_id, activity_type, specific_activity, conditions, rating,
                performance_aspects, notes, date_logged, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.gear_id,
                record.activity_type,
                record.specific_activity,
                self._serialise(record.conditions),
                record.rating,
                self._serialise(record.performance_aspects),
                record.notes,
                record.date_logged,
                record.created_at,
            ),
        )

    def create_gear_performance(self, performance: GearPerformanceInput) -> GearPerformance:
        created_at = _utc_now()
        fields = performance.model_dump()
        fields["date_logged"] = fields.get("date_logged") or created_at[:10]
        return self._insert_new(
            lambda new_id: GearPerformance(id=new_id, created_at=created_at, **fields),
            self._write_performance,
        )

    def get_gear_performance(self, gear_id: str) -> List[GearPerformance]:
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM gear_performance WHERE gear_id = ? ORDER BY id", (gear_id,)
            )
            return [self._row_to_performance(row) for row in cursor.fetchall()]

    def list_gear_performance(self) -> List[GearPerformance]:
        with self._connect() as conn:
            cursor = conn.execute("SELECT * FROM gear_performance ORDER BY id")
            return [self._row_to_performance(row) for row in cursor.fetchall()]

    # -- trips ----------------------------------------------------------

    def _write_trip(self, conn: sqlite3.Connection, trip: Trip, replace: bool = False) -> None:
        verb = "INSERT OR REPLACE" if replace else "INSERT"
        conn.execute(
            f"""
            {verb} INTO trips (
                id, name, location, start_date, end_date, activities, expected_conditions,
                gear_used, notes, weather_data, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                trip.id,
                trip.name,
                trip.location,
                trip.start_date,
                trip.end_date,
                self._serialise(trip.activities),
                self._serialise(trip.expected_conditions),
                self._serialise(trip.gear_used),
                trip.notes,
                self._serialise(trip.weather_data),
                trip.created_at,
            ),
        )

    def _row_to_trip(self, row: sqlite3.Row) -> Trip:
        return Trip(
            id=row["id"],
            name=row["name"],
            location=row["location"],
            start_date=row["start_date"],
            end_date=row["end_date"],
            activities=self._deserialise(row["activities"], []),
            expected_conditions=self._deserialise(row["expected_conditions"], {}),
            gear_used=self._deserialise(row["gear_used"], []),
            notes=row["notes"],
            weather_data=self._deserialise(row["weather_data"], {}),
            created_at=row["created_at"],
        )

    def create_trip(self, trip: TripInput) -> Trip:
        fields = trip.model_dump()
        return self._insert_new(
            lambda new_id: Trip(id=new_id, created_at=_utc_now(), **fields),
            self._write_trip,
        )

    def get_trips(self) -> List[Trip]:
        with self._connect() as conn:
            cursor = conn.execute("SELECT * FROM trips ORDER BY id")
            return [self._row_to_trip(row) for row in cursor.fetchall()]

    def get_trip(self, trip_id: str) -> Optional[Trip]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM trips WHERE id = ?", (trip_id,)).fetchone()
            return self._row_to_trip(row) if row else None

    def update_trip(self, trip_id: str, updates: Dict[str, Any]) -> Trip:
        current = self.get_trip(trip_id)
        if not current:
            raise NotFoundError(f"Trip with id {trip_id} not found")

        for key, value in updates.items():
            if key in {"id", "created_at"}:
                continue
            if hasattr(current, key):
                setattr(current, key, value)

        validated = Trip(**asdict(current))
        with self._connect() as conn:
            self._write_trip(conn, validated, replace=True)
        return validated

    # -- chat transcript ------------------------------------------------

    def create_chat_message(
        self, message: str, response: Optional[str] = None, function_calls: Optional[Dict[str, Any]] = None
    ) -> ChatMessage:
        if not message:
            raise ValueError("message is required for a transcript entry")

        def write(conn: sqlite3.Connection, record: ChatMessage) -> None:
            conn.execute(
                "INSERT INTO chat_history (id, message, response, function_calls, timestamp) VALUES (?, ?, ?, ?, ?)",
                (
                    record.id,
                    record.message,
                    record.response,
                    self._serialise(record.function_calls or None),
                    record.timestamp,
                ),
            )

        return self._insert_new(
            lambda new_id: ChatMessage(
                id=new_id,
                message=message,
                response=response,
                function_calls=function_calls or {},
                timestamp=_utc_now(),
            ),
            write,
        )

    def get_chat_history(self, limit: int = 50) -> List[ChatMessage]:
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM chat_history ORDER BY timestamp DESC, CAST(id AS INTEGER) DESC LIMIT ?",
                (max(int(limit), 0),),
            )
            rows = cursor.fetchall()
        messages = [
            ChatMessage(
                id=row["id"],
                message=row["message"],
                response=row["response"],
                function_calls=self._deserialise(row["function_calls"], {}),
                timestamp=row["timestamp"],
            )
            for row in rows
        ]
        messages.reverse()
        return messages


__all__ = ["GearStore", "NotFoundError", "SQLiteGearStore"]
