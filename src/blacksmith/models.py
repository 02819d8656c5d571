"""Pydantic domain models for BlackSmith."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

JourneyStatus = Literal["active", "completed"]
VehicleStatus = Literal["available", "in_use"]
BalanceStyle = Literal["profit", "loss"]

# ============================================================================
# Expense catalog
# ============================================================================

TOP_UP = "topUp"
HYD_INWARD = "hydInward"

# Income tags; everything else (known or not) is a cost.
INCOME_TYPES = frozenset({TOP_UP, HYD_INWARD})

EXPENSE_TYPES = (
    "fuel",
    "toll",
    "loading",
    "weighment",
    "unloading",
    "miscellaneous",
    "rto",
    "rope",
    "food",
    "electrical",
    "mechanical",
    "bodyWorks",
    "tiresAir",
    "tireGreasing",
    "adblue",
    TOP_UP,
    HYD_INWARD,
)

# ============================================================================
# People and vehicles
# ============================================================================


class Driver(BaseModel):
    """A driver account. Admins may record HYD inward cash."""

    id: int | None = None
    username: str
    name: str
    is_admin: bool = False
    created_at: datetime = Field(default_factory=datetime.now)


class Vehicle(BaseModel):
    """A truck identified by its license plate."""

    id: int | None = None
    license_plate: str
    model: str | None = None
    status: VehicleStatus = "available"
    created_at: datetime = Field(default_factory=datetime.now)


# ============================================================================
# Journeys and expenses
# ============================================================================


class Journey(BaseModel):
    """A round trip funded by a cash pouch.

    The security deposit (initial_expense) is held back at the start and only
    returns to the driver's balance once the journey is completed.
    """

    id: int | None = None
    user_id: int | None = None
    vehicle_license_plate: str | None = None
    origin: str | None = None
    destination: str | None = None
    pouch: Decimal = Decimal("0")
    initial_expense: Decimal = Decimal("0")
    status: JourneyStatus = "active"
    start_time: datetime = Field(default_factory=datetime.now)
    end_time: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


class Expense(BaseModel):
    """An entry logged against a journey (cost or income, see INCOME_TYPES)."""

    id: int | None = None
    journey_id: int | None = None
    type: str
    amount: Decimal
    notes: str | None = None
    timestamp: datetime = Field(default_factory=datetime.now)


# ============================================================================
# Derived figures
# ============================================================================


class BalanceSummary(BaseModel):
    """Financial figures derived from a journey and its expenses.

    pending_security and pending_hyd_inward are informational: they hold the
    amounts that will be credited on completion and are zero once credited.
    """

    journey_id: int | None = None
    total_expenses: Decimal
    total_top_ups: Decimal
    total_hyd_inward: Decimal
    working_balance: Decimal
    final_balance: Decimal
    is_completed: bool
    pending_security: Decimal = Decimal("0")
    pending_hyd_inward: Decimal = Decimal("0")


class ExpenseAlert(BaseModel):
    """Raised (as data) when spending approaches the pouch amount."""

    journey_id: int | None = None
    total_expenses: Decimal
    pouch: Decimal
    percentage: int
    message: str


class DriverSummary(BaseModel):
    """Per-driver roll-up used by the admin financial summary."""

    user_id: int | None
    driver_name: str
    total_journeys: int = 0
    active_journeys: int = 0
    completed_journeys: int = 0
    total_pouch: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    total_top_ups: Decimal = Decimal("0")
    total_hyd_inward: Decimal = Decimal("0")
    net_balance: Decimal = Decimal("0")
