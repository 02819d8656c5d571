"""SQLite database operations for BlackSmith."""

import sqlite3
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from .models import Driver, Expense, Journey, Vehicle


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS drivers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL,
                is_admin INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS vehicles (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                license_plate TEXT NOT NULL UNIQUE,
                model TEXT,
                status TEXT NOT NULL DEFAULT 'available',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        # Amounts are stored as TEXT so Decimal values round-trip exactly
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS journeys (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER,
                vehicle_license_plate TEXT,
                origin TEXT,
                destination TEXT,
                pouch TEXT NOT NULL,
                initial_expense TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'active',
                start_time TIMESTAMP NOT NULL,
                end_time TIMESTAMP
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expenses (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                journey_id INTEGER NOT NULL REFERENCES journeys(id),
                type TEXT NOT NULL,
                amount TEXT NOT NULL,
                notes TEXT,
                timestamp TIMESTAMP NOT NULL
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # Driver operations
    # ========================================================================

    def save_driver(self, driver: Driver) -> int:
        """Save a new driver."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO drivers (username, name, is_admin, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (
                driver.username,
                driver.name,
                int(driver.is_admin),
                driver.created_at.isoformat(),
            ),
        )
        self.conn.commit()
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Failed to insert driver record")
        return row_id

    def get_driver(self, driver_id: int) -> Driver | None:
        """Get a driver by id."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT id, username, name, is_admin, created_at FROM drivers WHERE id = ?",
            (driver_id,),
        )
        row = cursor.fetchone()
        return _row_to_driver(row) if row else None

    def get_driver_by_username(self, username: str) -> Driver | None:
        """Get a driver by username."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, username, name, is_admin, created_at
            FROM drivers WHERE username = ?
            """,
            (username,),
        )
        row = cursor.fetchone()
        return _row_to_driver(row) if row else None

    def get_all_drivers(self) -> list[Driver]:
        """Get all drivers ordered by name."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT id, username, name, is_admin, created_at FROM drivers ORDER BY name"
        )
        return [_row_to_driver(row) for row in cursor.fetchall()]

    # ========================================================================
    # Vehicle operations
    # ========================================================================

    def save_vehicle(self, vehicle: Vehicle) -> int:
        """Save a new vehicle."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO vehicles (license_plate, model, status, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (
                vehicle.license_plate,
                vehicle.model,
                vehicle.status,
                vehicle.created_at.isoformat(),
            ),
        )
        self.conn.commit()
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Failed to insert vehicle record")
        return row_id

    def get_vehicle_by_plate(self, license_plate: str) -> Vehicle | None:
        """Get a vehicle by license plate."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, license_plate, model, status, created_at
            FROM vehicles WHERE license_plate = ?
            """,
            (license_plate,),
        )
        row = cursor.fetchone()
        return _row_to_vehicle(row) if row else None

    def get_all_vehicles(self) -> list[Vehicle]:
        """Get all vehicles ordered by license plate."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, license_plate, model, status, created_at
            FROM vehicles ORDER BY license_plate
            """
        )
        return [_row_to_vehicle(row) for row in cursor.fetchall()]

    def set_vehicle_status(self, license_plate: str, status: str):
        """Update a vehicle's availability."""
        cursor = self.conn.cursor()
        cursor.execute(
            "UPDATE vehicles SET status = ? WHERE license_plate = ?",
            (status, license_plate),
        )
        self.conn.commit()

    # ========================================================================
    # Journey operations
    # ========================================================================

    def save_journey(self, journey: Journey) -> int:
        """Save a new journey."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO journeys (
                user_id, vehicle_license_plate, origin, destination,
                pouch, initial_expense, status, start_time, end_time
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                journey.user_id,
                journey.vehicle_license_plate,
                journey.origin,
                journey.destination,
                str(journey.pouch),
                str(journey.initial_expense),
                journey.status,
                journey.start_time.isoformat(),
                journey.end_time.isoformat() if journey.end_time else None,
            ),
        )
        self.conn.commit()
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Failed to insert journey record")
        return row_id

    def get_journey(self, journey_id: int) -> Journey | None:
        """Get a journey by id."""
        cursor = self.conn.cursor()
        cursor.execute(f"{_JOURNEY_SELECT} WHERE id = ?", (journey_id,))
        row = cursor.fetchone()
        return _row_to_journey(row) if row else None

    def get_all_journeys(self) -> list[Journey]:
        """Get all journeys, most recent first."""
        cursor = self.conn.cursor()
        cursor.execute(f"{_JOURNEY_SELECT} ORDER BY start_time DESC, id DESC")
        return [_row_to_journey(row) for row in cursor.fetchall()]

    def get_active_journeys(self) -> list[Journey]:
        """Get journeys still on the road, most recent first."""
        cursor = self.conn.cursor()
        cursor.execute(
            f"{_JOURNEY_SELECT} WHERE status = 'active' ORDER BY start_time DESC, id DESC"
        )
        return [_row_to_journey(row) for row in cursor.fetchall()]

    def get_journeys_by_driver(self, user_id: int) -> list[Journey]:
        """Get a driver's journeys, most recent first."""
        cursor = self.conn.cursor()
        cursor.execute(
            f"{_JOURNEY_SELECT} WHERE user_id = ? ORDER BY start_time DESC, id DESC",
            (user_id,),
        )
        return [_row_to_journey(row) for row in cursor.fetchall()]

    def get_active_journey_by_vehicle(self, license_plate: str) -> Journey | None:
        """Get the active journey using a vehicle, if any."""
        cursor = self.conn.cursor()
        cursor.execute(
            f"{_JOURNEY_SELECT} WHERE vehicle_license_plate = ? AND status = 'active'",
            (license_plate,),
        )
        row = cursor.fetchone()
        return _row_to_journey(row) if row else None

    def complete_journey(self, journey_id: int, end_time: datetime):
        """Mark a journey completed."""
        cursor = self.conn.cursor()
        cursor.execute(
            "UPDATE journeys SET status = 'completed', end_time = ? WHERE id = ?",
            (end_time.isoformat(), journey_id),
        )
        self.conn.commit()

    # ========================================================================
    # Expense operations (append-only)
    # ========================================================================

    def save_expense(self, expense: Expense) -> int:
        """Append an expense to a journey."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO expenses (journey_id, type, amount, notes, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                expense.journey_id,
                expense.type,
                str(expense.amount),
                expense.notes,
                expense.timestamp.isoformat(),
            ),
        )
        self.conn.commit()
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Failed to insert expense record")
        return row_id

    def get_expenses_by_journey(self, journey_id: int) -> list[Expense]:
        """Get a journey's expenses in insertion order."""
        cursor = self.conn.cursor()
        cursor.execute(
            f"{_EXPENSE_SELECT} WHERE journey_id = ? ORDER BY id",
            (journey_id,),
        )
        return [_row_to_expense(row) for row in cursor.fetchall()]

    def get_all_expenses(self) -> list[Expense]:
        """Get every expense in insertion order."""
        cursor = self.conn.cursor()
        cursor.execute(f"{_EXPENSE_SELECT} ORDER BY id")
        return [_row_to_expense(row) for row in cursor.fetchall()]


_JOURNEY_SELECT = """
    SELECT id, user_id, vehicle_license_plate, origin, destination,
           pouch, initial_expense, status, start_time, end_time
    FROM journeys
"""

_EXPENSE_SELECT = """
    SELECT id, journey_id, type, amount, notes, timestamp
    FROM expenses
"""


def _row_to_driver(row: sqlite3.Row) -> Driver:
    return Driver(
        id=row["id"],
        username=row["username"],
        name=row["name"],
        is_admin=bool(row["is_admin"]),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _row_to_vehicle(row: sqlite3.Row) -> Vehicle:
    return Vehicle(
        id=row["id"],
        license_plate=row["license_plate"],
        model=row["model"],
        status=row["status"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _row_to_journey(row: sqlite3.Row) -> Journey:
    return Journey(
        id=row["id"],
        user_id=row["user_id"],
        vehicle_license_plate=row["vehicle_license_plate"],
        origin=row["origin"],
        destination=row["destination"],
        pouch=Decimal(row["pouch"]),
        initial_expense=Decimal(row["initial_expense"]),
        status=row["status"],
        start_time=datetime.fromisoformat(row["start_time"]),
        end_time=datetime.fromisoformat(row["end_time"]) if row["end_time"] else None,
    )


def _row_to_expense(row: sqlite3.Row) -> Expense:
    return Expense(
        id=row["id"],
        journey_id=row["journey_id"],
        type=row["type"],
        amount=Decimal(row["amount"]),
        notes=row["notes"],
        timestamp=datetime.fromisoformat(row["timestamp"]),
    )
