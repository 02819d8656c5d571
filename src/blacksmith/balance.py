"""Core balance calculation for journeys and their expenses.

Every screen and report that shows journey finances goes through
compute_balance; nothing else derives totals on its own.
"""

import logging
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .exceptions import InvalidAmountError, UnknownJourneyError
from .models import (
    EXPENSE_TYPES,
    HYD_INWARD,
    INCOME_TYPES,
    TOP_UP,
    BalanceStyle,
    BalanceSummary,
    DriverSummary,
    Expense,
    ExpenseAlert,
    Journey,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_currency(amount: Decimal | int | float | str) -> Decimal:
    """
    Convert an amount to a Decimal rounded to 2 places.
    Uses ROUND_HALF_UP for consistency.

    Floats go through str() so 0.1 stays 0.10 rather than 0.1000000000000000055.
    """
    if isinstance(amount, float):
        amount = str(amount)
    try:
        value = Decimal(amount)
    except InvalidOperation as e:
        raise InvalidAmountError(amount) from e
    if not value.is_finite():
        raise InvalidAmountError(amount)
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def is_income_type(expense_type: str) -> bool:
    """True for entries that add cash (top-ups and HYD inward)."""
    return expense_type in INCOME_TYPES


def is_known_type(expense_type: str) -> bool:
    """True if the tag is part of the expense catalog."""
    return expense_type in EXPENSE_TYPES


def _require_non_negative(amount: Decimal, label: str) -> None:
    if amount < 0:
        raise InvalidAmountError(amount, f"{label} must not be negative: {amount}")


def compute_balance(journey: Journey, expenses: Iterable[Expense]) -> BalanceSummary:
    """
    Compute the financial figures for one journey.

    Formula:
        working_balance = pouch + top-ups - regular expenses
        final_balance   = working_balance                          (active)
                        = working_balance + security + HYD inward  (completed)

    Args:
        journey: The journey the expenses belong to
        expenses: Expense entries in any order

    Returns:
        Balance summary for the journey

    Raises:
        InvalidAmountError: If an expense amount is <= 0, or the pouch or
                            security deposit is negative
        UnknownJourneyError: If an expense belongs to a different journey
    """
    pouch = to_currency(journey.pouch)
    security = to_currency(journey.initial_expense)
    _require_non_negative(pouch, "Pouch")
    _require_non_negative(security, "Security deposit")

    total_expenses = Decimal("0")
    total_top_ups = Decimal("0")
    total_hyd_inward = Decimal("0")

    for expense in expenses:
        if expense.journey_id is not None and expense.journey_id != journey.id:
            raise UnknownJourneyError(
                expense.journey_id,
                f"Expense {expense.id} references journey {expense.journey_id}, "
                f"not journey {journey.id}",
            )

        amount = to_currency(expense.amount)
        if amount <= 0:
            raise InvalidAmountError(
                expense.amount,
                f"Expense {expense.id} ({expense.type}) has non-positive "
                f"amount {expense.amount}",
            )

        if expense.type == TOP_UP:
            total_top_ups += amount
        elif expense.type == HYD_INWARD:
            total_hyd_inward += amount
        else:
            if not is_known_type(expense.type):
                logger.warning(
                    f"Unknown expense type '{expense.type}' on journey "
                    f"{journey.id}; counting it as a regular cost"
                )
            total_expenses += amount

    working_balance = pouch + total_top_ups - total_expenses

    if journey.is_completed:
        final_balance = working_balance + security + total_hyd_inward
        pending_security = Decimal("0")
        pending_hyd_inward = Decimal("0")
    else:
        final_balance = working_balance
        pending_security = security
        pending_hyd_inward = total_hyd_inward

    return BalanceSummary(
        journey_id=journey.id,
        total_expenses=total_expenses,
        total_top_ups=total_top_ups,
        total_hyd_inward=total_hyd_inward,
        working_balance=working_balance,
        final_balance=final_balance,
        is_completed=journey.is_completed,
        pending_security=pending_security,
        pending_hyd_inward=pending_hyd_inward,
    )


def group_expenses(
    journeys: Iterable[Journey], expenses: Iterable[Expense]
) -> dict[int | None, list[Expense]]:
    """
    Group a flat expense list by journey id.

    Raises:
        UnknownJourneyError: If an expense references a journey not supplied
    """
    grouped: dict[int | None, list[Expense]] = {j.id: [] for j in journeys}
    for expense in expenses:
        if expense.journey_id not in grouped:
            raise UnknownJourneyError(expense.journey_id)
        grouped[expense.journey_id].append(expense)
    return grouped


def compute_balances(
    journeys: Iterable[Journey], expenses: Iterable[Expense]
) -> dict[int | None, BalanceSummary]:
    """Compute balances for many journeys from one flat expense list."""
    journeys = list(journeys)
    grouped = group_expenses(journeys, expenses)
    return {j.id: compute_balance(j, grouped[j.id]) for j in journeys}


def classify_balance(amount: Decimal) -> BalanceStyle:
    """Zero and above render as profit, anything below as loss."""
    return "profit" if amount >= 0 else "loss"


def check_expense_alert(
    journey: Journey, summary: BalanceSummary, ratio: float = 0.8
) -> ExpenseAlert | None:
    """
    Check whether spending is approaching the pouch amount.

    Args:
        journey: The journey to check
        summary: Its current balance summary
        ratio: Share of the pouch that triggers the alert

    Returns:
        An alert if total expenses reached pouch * ratio, None otherwise
    """
    pouch = to_currency(journey.pouch)
    if pouch <= 0:
        return None

    threshold = pouch * Decimal(str(ratio))
    if summary.total_expenses < threshold:
        return None

    percentage = int(
        (summary.total_expenses * 100 / pouch).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
    )
    return ExpenseAlert(
        journey_id=journey.id,
        total_expenses=summary.total_expenses,
        pouch=pouch,
        percentage=percentage,
        message=(
            f"Expenses ({summary.total_expenses}) are approaching the pouch "
            f"amount ({pouch}): {percentage}% used"
        ),
    )


def summarize_by_driver(
    journeys: Iterable[Journey],
    expenses: Iterable[Expense],
    driver_names: Mapping[int, str] | None = None,
) -> list[DriverSummary]:
    """
    Roll up journey finances per driver.

    Net balance is the sum of each journey's final balance, so security and
    HYD inward only count for completed journeys.
    """
    journeys = list(journeys)
    driver_names = driver_names or {}
    balances = compute_balances(journeys, expenses)

    summaries: dict[int | None, DriverSummary] = {}
    for journey in journeys:
        summary = summaries.get(journey.user_id)
        if summary is None:
            name = (
                driver_names.get(journey.user_id, "Unknown")
                if journey.user_id is not None
                else "Unknown"
            )
            summary = DriverSummary(user_id=journey.user_id, driver_name=name)
            summaries[journey.user_id] = summary

        balance = balances[journey.id]
        summary.total_journeys += 1
        if journey.is_completed:
            summary.completed_journeys += 1
        else:
            summary.active_journeys += 1
        summary.total_pouch += to_currency(journey.pouch)
        summary.total_expenses += balance.total_expenses
        summary.total_top_ups += balance.total_top_ups
        summary.total_hyd_inward += balance.total_hyd_inward
        summary.net_balance += balance.final_balance

    return list(summaries.values())
