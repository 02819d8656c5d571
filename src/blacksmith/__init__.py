"""BlackSmith - Journey pouch, expense and balance tracking for BlackSmith Traders."""

__version__ = "0.1.0"

from .balance import (
    classify_balance,
    compute_balance,
    compute_balances,
    summarize_by_driver,
    to_currency,
)
from .config import Settings, load_settings
from .db import Database
from .exceptions import InvalidAmountError, UnknownJourneyError
from .models import BalanceSummary, Expense, Journey
from .service import JourneyService

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "BalanceSummary",
    "Expense",
    "Journey",
    "InvalidAmountError",
    "UnknownJourneyError",
    "classify_balance",
    "compute_balance",
    "compute_balances",
    "summarize_by_driver",
    "to_currency",
    "JourneyService",
]
