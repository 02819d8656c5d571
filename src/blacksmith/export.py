"""Spreadsheet report builders for BlackSmith.

The row builders are pure functions over journeys and expenses; all totals come
from compute_balance. write_report turns the rows into an .xlsx workbook.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from .balance import (
    classify_balance,
    compute_balances,
    group_expenses,
    is_income_type,
    to_currency,
)
from .exceptions import ExportError
from .models import Expense, Journey

logger = logging.getLogger(__name__)

REPORT_TITLE = "BLACKSMITH"

REPORT_COLUMNS = [
    "S.NO",
    "DATE",
    "LOAD FROM",
    "LOAD TO",
    "LOADAMT",
    "RENT CASH",
    "LOAD",
    "ROPE",
    "DIESEL",
    "RTO",
    "TOLL",
    "WT.",
    "UNLOAD",
    "DRIVER",
    "EMI",
    "HOME",
    "ROAD TAX INSURANCE",
    "FINE",
    "OTHER",
    "EXPENSE",
]

# Non-money columns; everything else in REPORT_COLUMNS is summed
LABEL_COLUMNS = ("S.NO", "DATE", "LOAD FROM", "LOAD TO")

CATCH_ALL_COLUMN = "OTHER"

EXPENSE_COLUMN_MAP = {
    "fuel": "DIESEL",
    "toll": "TOLL",
    "loading": "LOAD",
    "weighment": "WT.",
    "unloading": "UNLOAD",
    "rto": "RTO",
    "rope": "ROPE",
    "food": "DRIVER",
    "electrical": "HOME",
    "mechanical": "HOME",
    "bodyWorks": "HOME",
    "tiresAir": "HOME",
    "tireGreasing": "HOME",
    "adblue": "HOME",
    "miscellaneous": CATCH_ALL_COLUMN,
}


def column_for_expense(expense_type: str) -> str:
    """Map an expense type to its report column (unknown types -> OTHER)."""
    return EXPENSE_COLUMN_MAP.get(expense_type, CATCH_ALL_COLUMN)


def format_report_date(value: datetime) -> str:
    """Format a date as DD.MM.YYYY."""
    return value.strftime("%d.%m.%Y")


def _empty_row() -> dict[str, Any]:
    return {col: "" for col in REPORT_COLUMNS}


def _add(row: dict[str, Any], column: str, amount: Decimal):
    row[column] = (row[column] or Decimal("0")) + amount


def build_category_rows(
    journeys: Iterable[Journey],
    expenses: Iterable[Expense],
    home_base: str = "Mk",
) -> list[dict[str, Any]]:
    """
    Build the expense-category report rows.

    Each journey produces an outbound row (pouch + security as LOADAMT, costs
    spread over their columns) and a return-leg row that is only filled in
    once the journey is completed (HYD inward as LOADAMT, top-ups as RENT CASH).
    A blank row, a TOTALS row and a PROFIT row close the report.

    Args:
        journeys: Journeys to report on
        expenses: Their expenses, in one flat list
        home_base: Depot name used for LOAD FROM / LOAD TO

    Returns:
        List of rows keyed by REPORT_COLUMNS
    """
    journeys = sorted(journeys, key=lambda j: (j.start_time, j.id or 0))
    expenses = list(expenses)
    grouped = group_expenses(journeys, expenses)
    balances = compute_balances(journeys, expenses)

    totals = {col: Decimal("0") for col in REPORT_COLUMNS if col not in LABEL_COLUMNS}
    rows: list[dict[str, Any]] = []

    for index, journey in enumerate(journeys, start=1):
        summary = balances[journey.id]

        outbound = _empty_row()
        outbound["S.NO"] = index
        outbound["DATE"] = format_report_date(journey.start_time)
        outbound["LOAD FROM"] = home_base
        outbound["LOAD TO"] = journey.destination or ""
        outbound["LOADAMT"] = to_currency(journey.pouch) + to_currency(
            journey.initial_expense
        )

        for expense in grouped[journey.id]:
            if is_income_type(expense.type):
                continue
            _add(outbound, column_for_expense(expense.type), to_currency(expense.amount))

        outbound["EXPENSE"] = summary.total_expenses

        return_leg = _empty_row()
        if journey.is_completed and journey.end_time:
            return_leg["DATE"] = format_report_date(journey.end_time)
            return_leg["LOAD FROM"] = journey.destination or ""
            return_leg["LOAD TO"] = home_base
            if summary.total_hyd_inward > 0:
                return_leg["LOADAMT"] = summary.total_hyd_inward
            if summary.total_top_ups > 0:
                return_leg["RENT CASH"] = summary.total_top_ups

        for row in (outbound, return_leg):
            for col in totals:
                if row[col] != "":
                    totals[col] += row[col]
            rows.append(row)

    rows.append({})

    totals_row = _empty_row()
    totals_row.update(totals)
    totals_row["S.NO"] = "TOTALS"
    rows.append(totals_row)

    profit_row = _empty_row()
    profit_row["S.NO"] = "PROFIT"
    profit_row["LOADAMT"] = totals["LOADAMT"]
    profit_row["EXPENSE"] = totals["LOADAMT"] - totals["EXPENSE"]
    rows.append(profit_row)

    return rows


def build_journey_rows(
    journeys: Iterable[Journey],
    expenses: Iterable[Expense],
    driver_names: Mapping[int, str] | None = None,
) -> list[dict[str, Any]]:
    """Build one summary row per journey, most recent first."""
    journeys = sorted(journeys, key=lambda j: (j.start_time, j.id or 0), reverse=True)
    balances = compute_balances(journeys, expenses)
    driver_names = driver_names or {}

    rows = []
    for journey in journeys:
        summary = balances[journey.id]
        driver = "Unknown"
        if journey.user_id is not None:
            driver = driver_names.get(journey.user_id, "Unknown")
        rows.append(
            {
                "Journey ID": journey.id,
                "Driver": driver,
                "Vehicle": journey.vehicle_license_plate or "",
                "Destination": journey.destination or "",
                "Status": journey.status,
                "Start Time": journey.start_time.strftime("%Y-%m-%d %H:%M:%S"),
                "End Time": (
                    journey.end_time.strftime("%Y-%m-%d %H:%M:%S")
                    if journey.end_time
                    else "N/A"
                ),
                "Pouch": to_currency(journey.pouch),
                "Security": to_currency(journey.initial_expense),
                "Total Expenses": summary.total_expenses,
                "Total Top-ups": summary.total_top_ups,
                "HYD Inward": summary.total_hyd_inward,
                "Working Balance": summary.working_balance,
                "Final Balance": summary.final_balance,
                "Result": classify_balance(summary.final_balance),
            }
        )
    return rows


def _write_category_sheet(ws, rows: list[dict[str, Any]]):
    ws.append([REPORT_TITLE])
    ws.append([])
    ws.append(REPORT_COLUMNS)

    ws["A1"].font = Font(bold=True, size=16)
    ws["A1"].alignment = Alignment(horizontal="center")
    header_fill = PatternFill(start_color="E0E0E0", end_color="E0E0E0", fill_type="solid")
    for cell in ws[3]:
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal="center")
        cell.fill = header_fill

    for row in rows:
        ws.append([row.get(col, "") for col in REPORT_COLUMNS])
        if row.get("S.NO") in ("TOTALS", "PROFIT"):
            color = "008000" if row["S.NO"] == "PROFIT" else None
            for cell in ws[ws.max_row]:
                cell.font = Font(bold=True, color=color)

    money_columns = {
        idx for idx, col in enumerate(REPORT_COLUMNS, start=1) if col not in LABEL_COLUMNS
    }
    for excel_row in ws.iter_rows(min_row=4):
        for cell in excel_row:
            if cell.column in money_columns and isinstance(cell.value, (int, Decimal)):
                cell.number_format = "#,##0"

    for idx, col in enumerate(REPORT_COLUMNS, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = max(len(col) + 2, 12)
    ws.freeze_panes = "A4"


def _write_journey_sheet(ws, rows: list[dict[str, Any]]):
    if not rows:
        return
    headers = list(rows[0].keys())
    ws.append(headers)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in rows:
        ws.append([row[h] for h in headers])
    for excel_row in ws.iter_rows(min_row=2):
        for cell in excel_row:
            if isinstance(cell.value, Decimal):
                cell.number_format = "#,##0.00"
    for idx, header in enumerate(headers, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = max(len(header), 10) + 2
    ws.freeze_panes = "A2"


def write_report(
    path: Path,
    journeys: Iterable[Journey],
    expenses: Iterable[Expense],
    driver_names: Mapping[int, str] | None = None,
    home_base: str = "Mk",
) -> Path:
    """
    Write the BlackSmith workbook.

    Args:
        path: Destination .xlsx file
        journeys: Journeys to include
        expenses: Their expenses
        driver_names: Optional user_id -> name lookup
        home_base: Depot name for the category sheet

    Returns:
        The path written

    Raises:
        ExportError: If there is nothing to export or the file cannot be saved
    """
    journeys = list(journeys)
    expenses = list(expenses)
    if not journeys:
        raise ExportError("No journeys to export")

    category_rows = build_category_rows(journeys, expenses, home_base=home_base)
    journey_rows = build_journey_rows(journeys, expenses, driver_names)

    wb = Workbook()
    ws = wb.active
    ws.title = "BlackSmith"
    _write_category_sheet(ws, category_rows)
    _write_journey_sheet(wb.create_sheet("Journeys"), journey_rows)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(path)
    except OSError as e:
        raise ExportError(f"Failed to write report to {path}: {e}") from e

    logger.info(f"Exported {len(journeys)} journeys to {path}")
    return path
