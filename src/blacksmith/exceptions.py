"""Custom exceptions for BlackSmith."""


class BlackSmithError(Exception):
    """Base exception for all BlackSmith errors."""

    pass


class ConfigurationError(BlackSmithError):
    """Raised when configuration is invalid or missing."""

    pass


class InvalidAmountError(BlackSmithError):
    """Raised when a monetary amount is out of range (never coerced to 0)."""

    def __init__(self, amount: object, message: str | None = None):
        self.amount = amount
        super().__init__(message or f"Invalid amount: {amount}")


class UnknownJourneyError(BlackSmithError):
    """Raised when a journey does not exist or was not supplied."""

    def __init__(self, journey_id: int | None, message: str | None = None):
        self.journey_id = journey_id
        super().__init__(message or f"Unknown journey: {journey_id}")


class UnknownDriverError(BlackSmithError):
    """Raised when a driver does not exist."""

    pass


class DuplicateDriverError(BlackSmithError):
    """Raised when registering a username that is already taken."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Driver username '{username}' is already registered")


class DuplicateVehicleError(BlackSmithError):
    """Raised when registering a license plate that is already in the fleet."""

    def __init__(self, license_plate: str):
        self.license_plate = license_plate
        super().__init__(f"Vehicle {license_plate} is already registered")


class VehicleInUseError(BlackSmithError):
    """Raised when starting a journey with a vehicle that is already on the road."""

    def __init__(self, license_plate: str, journey_id: int | None = None):
        self.license_plate = license_plate
        self.journey_id = journey_id
        super().__init__(
            f"Vehicle {license_plate} is already in use by journey {journey_id}"
        )


class JourneyCompletedError(BlackSmithError):
    """Raised when changing a journey that has already been completed."""

    pass


class PermissionDeniedError(BlackSmithError):
    """Raised when a driver attempts an admin-only operation."""

    pass


class ExportError(BlackSmithError):
    """Raised when a report cannot be written."""

    pass
