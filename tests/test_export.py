"""Tests for the BlackSmith spreadsheet report."""

from datetime import datetime
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from blacksmith.exceptions import ExportError, InvalidAmountError, UnknownJourneyError
from blacksmith.export import (
    REPORT_COLUMNS,
    build_category_rows,
    build_journey_rows,
    column_for_expense,
    write_report,
)
from blacksmith.models import Expense, Journey


def make_journey(id: int, status: str = "active", day: int = 1) -> Journey:
    """Create a journey with pouch 1000 and security 100."""
    return Journey(
        id=id,
        user_id=7,
        vehicle_license_plate=f"TS09AB{id:04d}",
        destination="Hyderabad",
        pouch=Decimal("1000"),
        initial_expense=Decimal("100"),
        status=status,
        start_time=datetime(2025, 3, day, 8, 0),
        end_time=datetime(2025, 3, day + 3, 18, 0) if status == "completed" else None,
    )


def make_expense(journey_id: int, type: str, amount: str) -> Expense:
    return Expense(journey_id=journey_id, type=type, amount=Decimal(amount))


@pytest.fixture
def journeys():
    return [make_journey(2, status="active", day=5), make_journey(1, status="completed")]


@pytest.fixture
def expenses():
    return [
        make_expense(1, "fuel", "200"),
        make_expense(1, "fuel", "50"),
        make_expense(1, "electrical", "30"),
        make_expense(1, "topUp", "150"),
        make_expense(1, "hydInward", "300"),
        make_expense(1, "parking", "20"),
        make_expense(2, "toll", "80"),
        make_expense(2, "topUp", "40"),
    ]


class TestColumnMapping:
    """Expense type to report column lookup."""

    def test_known_types(self):
        assert column_for_expense("fuel") == "DIESEL"
        assert column_for_expense("weighment") == "WT."
        assert column_for_expense("adblue") == "HOME"
        assert column_for_expense("food") == "DRIVER"

    def test_unknown_type_goes_to_catch_all(self):
        assert column_for_expense("parking") == "OTHER"
        assert column_for_expense("miscellaneous") == "OTHER"


class TestCategoryRows:
    """Outbound/return rows, totals and profit."""

    def test_layout(self, journeys, expenses):
        """Two rows per journey sorted by start date, then blank, totals, profit."""
        rows = build_category_rows(journeys, expenses)

        assert len(rows) == 2 * 2 + 3
        assert rows[0]["S.NO"] == 1
        assert rows[0]["DATE"] == "01.03.2025"
        assert rows[2]["S.NO"] == 2
        assert rows[4] == {}
        assert rows[5]["S.NO"] == "TOTALS"
        assert rows[6]["S.NO"] == "PROFIT"
        assert set(rows[0].keys()) == set(REPORT_COLUMNS)

    def test_outbound_row(self, journeys, expenses):
        """LOADAMT folds pouch and security; costs land in mapped columns."""
        outbound = build_category_rows(journeys, expenses, home_base="Mk")[0]

        assert outbound["LOAD FROM"] == "Mk"
        assert outbound["LOAD TO"] == "Hyderabad"
        assert outbound["LOADAMT"] == Decimal("1100")
        assert outbound["DIESEL"] == Decimal("250")
        assert outbound["HOME"] == Decimal("30")
        assert outbound["OTHER"] == Decimal("20")
        assert outbound["RENT CASH"] == ""
        assert outbound["EXPENSE"] == Decimal("300")

    def test_return_row_for_completed_journey(self, journeys, expenses):
        """HYD inward and top-ups appear on the return leg."""
        return_leg = build_category_rows(journeys, expenses)[1]

        assert return_leg["DATE"] == "04.03.2025"
        assert return_leg["LOAD FROM"] == "Hyderabad"
        assert return_leg["LOAD TO"] == "Mk"
        assert return_leg["LOADAMT"] == Decimal("300")
        assert return_leg["RENT CASH"] == Decimal("150")

    def test_return_row_blank_for_active_journey(self, journeys, expenses):
        return_leg = build_category_rows(journeys, expenses)[3]

        assert all(value == "" for value in return_leg.values())

    def test_totals_and_profit(self, journeys, expenses):
        rows = build_category_rows(journeys, expenses)
        totals, profit = rows[5], rows[6]

        assert totals["LOADAMT"] == Decimal("2500")  # 1100 + 300 + 1100
        assert totals["EXPENSE"] == Decimal("380")
        assert totals["TOLL"] == Decimal("80")
        assert totals["RENT CASH"] == Decimal("150")
        assert profit["LOADAMT"] == Decimal("2500")
        assert profit["EXPENSE"] == Decimal("2120")

    def test_rejects_invalid_amount(self, journeys):
        """Export goes through the calculator, so bad data is rejected."""
        with pytest.raises(InvalidAmountError):
            build_category_rows(journeys, [make_expense(1, "fuel", "-50")])

    def test_rejects_orphan_expense(self, journeys):
        with pytest.raises(UnknownJourneyError):
            build_category_rows(journeys, [make_expense(9, "fuel", "5")])


class TestJourneyRows:
    """One summary row per journey."""

    def test_rows(self, journeys, expenses):
        rows = build_journey_rows(journeys, expenses, {7: "Ravi"})

        assert [r["Journey ID"] for r in rows] == [2, 1]
        completed = rows[1]
        assert completed["Driver"] == "Ravi"
        assert completed["Working Balance"] == Decimal("850")
        assert completed["Final Balance"] == Decimal("1250")
        assert completed["Result"] == "profit"
        assert rows[0]["End Time"] == "N/A"


class TestWriteReport:
    """Workbook output."""

    def test_writes_both_sheets(self, tmp_path, journeys, expenses):
        path = write_report(tmp_path / "report.xlsx", journeys, expenses, {7: "Ravi"})

        wb = load_workbook(path)
        assert wb.sheetnames == ["BlackSmith", "Journeys"]

        ws = wb["BlackSmith"]
        assert ws["A1"].value == "BLACKSMITH"
        assert [cell.value for cell in ws[3]] == REPORT_COLUMNS
        assert ws["A4"].value == 1
        assert ws["E4"].value == 1100

        journeys_ws = wb["Journeys"]
        assert journeys_ws["A1"].value == "Journey ID"
        assert journeys_ws.max_row == 3

    def test_no_journeys(self, tmp_path):
        with pytest.raises(ExportError):
            write_report(tmp_path / "report.xlsx", [], [])
