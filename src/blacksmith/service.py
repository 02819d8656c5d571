"""Service layer that composes storage and balance calculations.

Drivers start journeys, log expenses and end them; admins register drivers and
vehicles, record HYD inward cash and export reports. Balances are always
computed through the balance module, never stored.
"""

import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from .balance import (
    check_expense_alert,
    compute_balance,
    is_known_type,
    summarize_by_driver,
    to_currency,
)
from .config import Settings
from .db import Database
from .exceptions import (
    DuplicateDriverError,
    DuplicateVehicleError,
    InvalidAmountError,
    JourneyCompletedError,
    PermissionDeniedError,
    UnknownDriverError,
    UnknownJourneyError,
    VehicleInUseError,
)
from .export import write_report
from .models import (
    HYD_INWARD,
    BalanceSummary,
    Driver,
    DriverSummary,
    Expense,
    ExpenseAlert,
    Journey,
    Vehicle,
)

logger = logging.getLogger(__name__)


class JourneyService:
    """Service for journey workflows and their finances."""

    def __init__(self, settings: Settings, database: Database):
        """Initialize the journey service."""
        self.settings = settings
        self.db = database

    # ========================================================================
    # Drivers and vehicles
    # ========================================================================

    def register_driver(self, username: str, name: str, is_admin: bool = False) -> Driver:
        """
        Create a driver account.

        Raises:
            DuplicateDriverError: If the username is already taken
        """
        if self.db.get_driver_by_username(username) is not None:
            raise DuplicateDriverError(username)

        driver = Driver(username=username, name=name, is_admin=is_admin)
        driver.id = self.db.save_driver(driver)
        logger.info(f"Registered driver {username} (id: {driver.id}, admin: {is_admin})")
        return driver

    def register_vehicle(self, license_plate: str, model: str | None = None) -> Vehicle:
        """
        Add a vehicle to the fleet.

        Raises:
            DuplicateVehicleError: If the license plate is already registered
        """
        if self.db.get_vehicle_by_plate(license_plate) is not None:
            raise DuplicateVehicleError(license_plate)

        vehicle = Vehicle(license_plate=license_plate, model=model)
        vehicle.id = self.db.save_vehicle(vehicle)
        logger.info(f"Registered vehicle {license_plate}")
        return vehicle

    def get_driver(self, driver_id: int) -> Driver:
        """Fetch a driver or raise UnknownDriverError."""
        driver = self.db.get_driver(driver_id)
        if driver is None:
            raise UnknownDriverError(f"Driver {driver_id} not found")
        return driver

    def list_vehicles(self) -> list[Vehicle]:
        """All vehicles in the fleet, ordered by license plate."""
        return self.db.get_all_vehicles()

    def get_driver_names(self) -> dict[int, str]:
        """Map driver ids to display names."""
        return {d.id: d.name for d in self.db.get_all_drivers() if d.id is not None}

    # ========================================================================
    # Journey lifecycle
    # ========================================================================

    def get_journey(self, journey_id: int) -> Journey:
        """Fetch a journey or raise UnknownJourneyError."""
        journey = self.db.get_journey(journey_id)
        if journey is None:
            raise UnknownJourneyError(journey_id)
        return journey

    def start_journey(
        self,
        user_id: int,
        vehicle_license_plate: str,
        destination: str,
        pouch: Decimal,
        initial_expense: Decimal = Decimal("0"),
        origin: str | None = None,
    ) -> Journey:
        """
        Start a journey for a driver.

        Args:
            user_id: Driver starting the journey
            vehicle_license_plate: Vehicle used; registered if new
            destination: Where the load is going
            pouch: Cash handed to the driver
            initial_expense: Security deposit held back until completion
            origin: Optional starting point

        Returns:
            The stored journey

        Raises:
            UnknownDriverError: If the driver does not exist
            InvalidAmountError: If pouch or security deposit is negative
            VehicleInUseError: If the vehicle is already on an active journey
        """
        self.get_driver(user_id)

        pouch = to_currency(pouch)
        initial_expense = to_currency(initial_expense)
        if pouch < 0:
            raise InvalidAmountError(pouch, f"Pouch must not be negative: {pouch}")
        if initial_expense < 0:
            raise InvalidAmountError(
                initial_expense,
                f"Security deposit must not be negative: {initial_expense}",
            )

        active = self.db.get_active_journey_by_vehicle(vehicle_license_plate)
        if active is not None:
            raise VehicleInUseError(vehicle_license_plate, active.id)

        if self.db.get_vehicle_by_plate(vehicle_license_plate) is None:
            self.register_vehicle(vehicle_license_plate)

        journey = Journey(
            user_id=user_id,
            vehicle_license_plate=vehicle_license_plate,
            origin=origin,
            destination=destination,
            pouch=pouch,
            initial_expense=initial_expense,
        )
        journey.id = self.db.save_journey(journey)
        self.db.set_vehicle_status(vehicle_license_plate, "in_use")

        logger.info(
            f"Started journey {journey.id} for driver {user_id} "
            f"({vehicle_license_plate} -> {destination}, pouch: {pouch})"
        )
        return journey

    def add_expense(
        self,
        journey_id: int,
        expense_type: str,
        amount: Decimal,
        actor_id: int,
        notes: str | None = None,
    ) -> tuple[Expense, ExpenseAlert | None]:
        """
        Append an expense to a journey on behalf of a driver or admin.

        Permissions come from the stored account of actor_id: drivers may only
        log against their own journeys, HYD inward entries are admin-only, and
        drivers cannot add entries once the journey is completed. Admins can
        (e.g. HYD inward collected later).

        Returns:
            Tuple of (stored expense, expense alert or None)

        Raises:
            UnknownJourneyError: If the journey does not exist
            UnknownDriverError: If the actor does not exist
            InvalidAmountError: If amount <= 0
            PermissionDeniedError: If a driver logs against someone else's
                                   journey or records HYD inward
            JourneyCompletedError: If a driver adds to a completed journey
        """
        journey = self.get_journey(journey_id)
        actor = self.get_driver(actor_id)

        if not actor.is_admin and journey.user_id != actor.id:
            raise PermissionDeniedError(
                f"Driver {actor.username} is not authorized to add expenses "
                f"to journey {journey_id}"
            )

        amount = to_currency(amount)
        if amount <= 0:
            raise InvalidAmountError(amount, f"Expense amount must be positive: {amount}")

        if expense_type == HYD_INWARD and not actor.is_admin:
            raise PermissionDeniedError("Only admins can record HYD inward")

        if journey.is_completed and not actor.is_admin:
            raise JourneyCompletedError(
                f"Journey {journey_id} is completed; expenses can no longer be added"
            )

        if not is_known_type(expense_type):
            logger.warning(
                f"Unknown expense type '{expense_type}'; it will count as a regular cost"
            )

        expense = Expense(
            journey_id=journey_id, type=expense_type, amount=amount, notes=notes
        )
        expense.id = self.db.save_expense(expense)
        logger.info(
            f"Added {expense_type} {amount} to journey {journey_id} "
            f"(by {actor.username})"
        )

        alert = None
        if expense_type != HYD_INWARD:
            summary = compute_balance(journey, self.db.get_expenses_by_journey(journey_id))
            alert = check_expense_alert(
                journey, summary, self.settings.expense_alert_ratio
            )
            if alert:
                logger.warning(alert.message)

        return expense, alert

    def complete_journey(self, journey_id: int) -> Journey:
        """
        End a journey. This is one-way: the security deposit and HYD inward
        are credited to the final balance from now on.

        Raises:
            UnknownJourneyError: If the journey does not exist
            JourneyCompletedError: If it was already completed
        """
        journey = self.get_journey(journey_id)
        if journey.is_completed:
            raise JourneyCompletedError(f"Journey {journey_id} is already completed")

        end_time = datetime.now()
        self.db.complete_journey(journey_id, end_time)
        if journey.vehicle_license_plate:
            self.db.set_vehicle_status(journey.vehicle_license_plate, "available")

        journey.status = "completed"
        journey.end_time = end_time
        logger.info(f"Completed journey {journey_id}")
        return journey

    # ========================================================================
    # Finances
    # ========================================================================

    def get_balance(self, journey_id: int) -> BalanceSummary:
        """Compute the current balance of a journey."""
        journey = self.get_journey(journey_id)
        return compute_balance(journey, self.db.get_expenses_by_journey(journey_id))

    def list_active_journeys(self) -> list[tuple[Journey, BalanceSummary]]:
        """Active journeys with their balances, most recent first."""
        return [
            (j, compute_balance(j, self.db.get_expenses_by_journey(j.id)))
            for j in self.db.get_active_journeys()
            if j.id is not None
        ]

    def journey_history(self, user_id: int) -> list[tuple[Journey, BalanceSummary]]:
        """
        A driver's journeys with their balances, most recent first.

        Raises:
            UnknownDriverError: If the driver does not exist
        """
        self.get_driver(user_id)
        return [
            (j, compute_balance(j, self.db.get_expenses_by_journey(j.id)))
            for j in self.db.get_journeys_by_driver(user_id)
            if j.id is not None
        ]

    def driver_summaries(self) -> list[DriverSummary]:
        """Per-driver financial roll-up across all journeys."""
        return summarize_by_driver(
            self.db.get_all_journeys(),
            self.db.get_all_expenses(),
            self.get_driver_names(),
        )

    def export_report(self, path: Path | None = None) -> Path:
        """
        Export all journeys to an .xlsx report.

        Args:
            path: Destination file; defaults to a timestamped file in export_dir

        Returns:
            The path written
        """
        if path is None:
            stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
            path = self.settings.export_dir / f"blacksmith_expense_report_{stamp}.xlsx"

        return write_report(
            path,
            self.db.get_all_journeys(),
            self.db.get_all_expenses(),
            driver_names=self.get_driver_names(),
            home_base=self.settings.home_base,
        )
