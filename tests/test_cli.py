"""Tests for the BlackSmith CLI."""

from decimal import Decimal

import pytest
from typer.testing import CliRunner

from blacksmith import cli
from blacksmith.cli import app, format_money
from blacksmith.exceptions import UnknownJourneyError

runner = CliRunner()

START_ARGS = ["start", "--driver", "1", "--vehicle", "TS09AB1234", "--to", "Hyderabad"]


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point the CLI at a temporary database and export directory."""
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "cli.db"))
    monkeypatch.setenv("EXPORT_DIR", str(tmp_path / "exports"))
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli.console, "width", 200)


@pytest.fixture
def started():
    """Register a driver (id 1) and an admin (id 2), then start journey 1."""
    runner.invoke(app, ["driver-add", "ravi", "Ravi"])
    runner.invoke(app, ["driver-add", "office", "Office", "--admin"])
    result = runner.invoke(app, START_ARGS + ["--pouch", "1000", "--security", "100"])
    assert result.exit_code == 0


class TestFormatMoney:
    """Profit/loss rendering."""

    def test_profit_is_green(self):
        assert format_money(Decimal("950")) == " [green]₹950.00[/green] "

    def test_zero_counts_as_profit(self):
        assert "[green]" in format_money(Decimal("0"))

    def test_loss_in_parentheses(self):
        assert format_money(Decimal("-50"), use_color=False) == "(₹50.00)"


class TestJourneyFlow:
    """End-to-end flow through the commands."""

    def test_start_expense_complete(self, tmp_path):
        assert runner.invoke(app, ["driver-add", "ravi", "Ravi"]).exit_code == 0
        assert (
            runner.invoke(app, ["driver-add", "office", "Office", "--admin"]).exit_code
            == 0
        )
        result = runner.invoke(app, START_ARGS + ["--pouch", "1000", "--security", "100"])
        assert result.exit_code == 0
        assert "Journey 1 started" in result.output

        assert runner.invoke(app, ["expense", "1", "fuel", "200", "--by", "1"]).exit_code == 0
        assert runner.invoke(app, ["expense", "1", "topUp", "150", "--by", "1"]).exit_code == 0
        assert (
            runner.invoke(app, ["expense", "1", "hydInward", "300", "--by", "2"]).exit_code
            == 0
        )

        result = runner.invoke(app, ["balance", "1"])
        assert result.exit_code == 0
        assert "950.00" in result.output

        result = runner.invoke(app, ["complete", "1"])
        assert result.exit_code == 0
        assert "1,350.00" in result.output

        result = runner.invoke(app, ["export", "--output", str(tmp_path / "r.xlsx")])
        assert result.exit_code == 0
        assert (tmp_path / "r.xlsx").exists()

    def test_driver_cannot_record_hyd_inward(self, started):
        result = runner.invoke(app, ["expense", "1", "hydInward", "300", "--by", "1"])

        assert result.exit_code == 1
        assert "Only admins" in result.output

    def test_expense_requires_actor(self, started):
        result = runner.invoke(app, ["expense", "1", "fuel", "200"])

        assert result.exit_code != 0

    def test_unparseable_amount(self):
        runner.invoke(app, ["driver-add", "ravi", "Ravi"])

        result = runner.invoke(app, START_ARGS + ["--pouch", "abc"])

        assert result.exit_code == 1
        assert "Invalid amount: abc" in result.output

    def test_unknown_journey_exits_with_error(self):
        result = runner.invoke(app, ["balance", "42"])

        assert result.exit_code == 1
        assert "Unknown journey" in result.output

    def test_verbose_reraises(self):
        """--verbose lets the original exception through for debugging."""
        result = runner.invoke(app, ["balance", "42", "--verbose"])

        assert result.exit_code == 1
        assert isinstance(result.exception, UnknownJourneyError)


class TestRegistrationCommands:
    """driver-add, vehicle-add and vehicles."""

    def test_duplicate_driver(self):
        runner.invoke(app, ["driver-add", "ravi", "Ravi"])

        result = runner.invoke(app, ["driver-add", "ravi", "Ravi Again"])

        assert result.exit_code == 1
        assert "already registered" in result.output

    def test_vehicle_add_and_list(self):
        result = runner.invoke(app, ["vehicle-add", "AP01X0001", "--model", "Tata"])
        assert result.exit_code == 0
        assert "Vehicle AP01X0001 registered" in result.output

        result = runner.invoke(app, ["vehicles"])
        assert result.exit_code == 0
        assert "AP01X0001" in result.output
        assert "available" in result.output

    def test_duplicate_vehicle(self):
        runner.invoke(app, ["vehicle-add", "AP01X0001"])

        result = runner.invoke(app, ["vehicle-add", "AP01X0001"])

        assert result.exit_code == 1
        assert "already registered" in result.output

    def test_no_vehicles(self):
        result = runner.invoke(app, ["vehicles"])

        assert result.exit_code == 0
        assert "No vehicles registered" in result.output


class TestListingCommands:
    """active, drivers-summary and history."""

    def test_active_empty(self):
        result = runner.invoke(app, ["active"])

        assert result.exit_code == 0
        assert "No active journeys" in result.output

    def test_active_lists_journey(self, started):
        result = runner.invoke(app, ["active"])

        assert result.exit_code == 0
        assert "Active Journeys" in result.output
        assert "Ravi" in result.output
        assert "TS09AB1234" in result.output

    def test_drivers_summary_empty(self):
        result = runner.invoke(app, ["drivers-summary"])

        assert result.exit_code == 0
        assert "No journeys recorded" in result.output

    def test_drivers_summary(self, started):
        runner.invoke(app, ["expense", "1", "fuel", "200", "--by", "1"])

        result = runner.invoke(app, ["drivers-summary"])

        assert result.exit_code == 0
        assert "Driver Summary" in result.output
        assert "Ravi" in result.output
        assert "800.00" in result.output

    def test_history(self, started):
        result = runner.invoke(app, ["history", "1"])

        assert result.exit_code == 0
        assert "Journeys for driver 1" in result.output
        assert "Hyderabad" in result.output

    def test_history_unknown_driver(self):
        result = runner.invoke(app, ["history", "99"])

        assert result.exit_code == 1
        assert "Driver 99 not found" in result.output


class TestConfiguration:
    """Settings problems surface as CLI errors."""

    def test_invalid_setting_exits_with_error(self, monkeypatch):
        monkeypatch.setenv("EXPENSE_ALERT_RATIO", "lots")

        result = runner.invoke(app, ["active"])

        assert result.exit_code == 1
        assert "Failed to load settings" in result.output
