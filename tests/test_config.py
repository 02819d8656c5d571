"""Tests for settings loading."""

from pathlib import Path

import pytest

from blacksmith.config import Settings, load_settings
from blacksmith.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "data" / "blacksmith.db"))
    monkeypatch.chdir(tmp_path)


def test_reads_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME_BASE", "Hyd")
    monkeypatch.setenv("EXPENSE_ALERT_RATIO", "0.9")

    settings = load_settings()

    assert settings.database_path == tmp_path / "data" / "blacksmith.db"
    assert settings.home_base == "Hyd"
    assert settings.expense_alert_ratio == 0.9
    assert settings.currency_symbol == "₹"


def test_creates_database_directory(tmp_path):
    Settings()

    assert (tmp_path / "data").is_dir()


def test_invalid_value_raises_configuration_error(monkeypatch):
    monkeypatch.setenv("EXPENSE_ALERT_RATIO", "lots")

    with pytest.raises(ConfigurationError) as exc_info:
        load_settings()

    assert "Failed to load settings" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, Exception)


def test_explicit_values_override_environment(tmp_path):
    settings = Settings(database_path=tmp_path / "other.db", home_base="Nzb")

    assert settings.database_path == Path(tmp_path / "other.db")
    assert settings.home_base == "Nzb"
