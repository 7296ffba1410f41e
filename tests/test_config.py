"""Tests for configuration loading and validation."""

import logging
import pytest
import tempfile
from datetime import date
from pathlib import Path

from store_shift.config import (
    ConfigLoader,
    ConfigurationError,
    InvalidDateFormatError,
)

MINIMAL = """
period:
  month: 3
  year: 2025

stores:
  - id: central
    name: Central
    working_hours:
      monday: 8
      tuesday: 8
      wednesday: 8
      thursday: 8
      friday: 8
      saturday: 4

employees:
  - id: anna
    name: Anna
"""


def write_yaml(content: str) -> Path:
    """Write YAML content to a temporary file and return the path."""
    f = tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False)
    f.write(content)
    f.close()
    return Path(f.name)


class TestConfigLoaderBasics:
    """Basic config loading tests."""

    def test_file_not_found_raises_error(self):
        """Loading non-existent file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            ConfigLoader("/nonexistent/path.yaml")

    def test_load_minimal_valid_config(self):
        """Minimal valid YAML config loads successfully."""
        config = ConfigLoader(write_yaml(MINIMAL)).load()

        assert config.month == 2
        assert config.external_month == 3
        assert config.year == 2025
        assert len(config.stores) == 1
        assert config.employees[0].name == "Anna"
        assert config.days_off == {"anna": set()}

    def test_missing_weekdays_default_to_zero(self):
        config = ConfigLoader(write_yaml(MINIMAL)).load()

        hours = config.get_store("central").working_hours
        assert hours["saturday"] == 4
        assert hours["sunday"] == 0

    def test_default_settings(self):
        config = ConfigLoader(write_yaml(MINIMAL)).load()

        assert config.settings.max_daily_hours == 12
        assert config.settings.max_retries == 3
        assert config.settings.log_level == "INFO"

    def test_config_before_load_raises(self):
        loader = ConfigLoader(write_yaml(MINIMAL))

        with pytest.raises(RuntimeError):
            loader.config

    def test_full_config(self):
        yaml = """
period: {month: 2, year: 2024}
settings:
  max_daily_hours: 10
  max_retries: 1
  log_level: debug
stores:
  - {id: c, name: Central, code: CEN, working_hours: {Monday: 8}}
  - {id: h, name: Harbour, active: false, working_hours: {sunday: 4}}
employees:
  - {id: 1, name: Anna, admin: true, chat_id: 555, days_off: [2024-02-29]}
  - {id: 2, name: Boris, active: false}
"""
        config = ConfigLoader(write_yaml(yaml)).load()

        assert config.month == 1
        assert config.settings.max_daily_hours == 10
        assert config.settings.log_level == "DEBUG"
        assert config.get_store("c").label == "CEN"
        assert [s.id for s in config.active_stores] == ["c"]
        anna = config.get_employee("1")
        assert anna.is_admin
        assert anna.chat_id == "555"
        assert config.days_off["1"] == {date(2024, 2, 29)}
        assert [e.name for e in config.active_employees] == ["Anna"]


class TestDateParsing:
    """Tests for date format validation."""

    def test_iso8601_date_accepted(self):
        """ISO 8601 dates (YYYY-MM-DD) are accepted."""
        yaml = MINIMAL + "    days_off: [2025-03-03, 2025-03-04]\n"

        config = ConfigLoader(write_yaml(yaml)).load()

        assert config.days_off["anna"] == {date(2025, 3, 3), date(2025, 3, 4)}

    def test_non_iso_date_rejected(self):
        """Dates in other formats raise InvalidDateFormatError."""
        yaml = MINIMAL + '    days_off: ["03/03/2025"]\n'

        with pytest.raises(InvalidDateFormatError):
            ConfigLoader(write_yaml(yaml)).load()

    def test_day_off_outside_month_warns(self, caplog):
        yaml = MINIMAL + "    days_off: [2025-04-01]\n"

        with caplog.at_level(logging.WARNING):
            ConfigLoader(write_yaml(yaml)).load()

        assert "outside the planning period 03/2025" in caplog.text


class TestConfigValidation:
    """Tests for configuration validation."""

    @pytest.mark.parametrize(
        "period",
        ["{month: 0, year: 2025}", "{month: 13, year: 2025}", "{month: 3, year: 1999}", "{year: 2025}"],
    )
    def test_invalid_period(self, period):
        yaml = MINIMAL.replace("period:\n  month: 3\n  year: 2025", f"period: {period}")

        with pytest.raises(ConfigurationError, match="period"):
            ConfigLoader(write_yaml(yaml)).load()

    def test_invalid_day_name(self):
        yaml = MINIMAL.replace("saturday: 4", "caturday: 4")

        with pytest.raises(ConfigurationError, match="caturday"):
            ConfigLoader(write_yaml(yaml)).load()

    def test_invalid_hours(self):
        yaml = MINIMAL.replace("saturday: 4", "saturday: 25")

        with pytest.raises(ConfigurationError, match="central"):
            ConfigLoader(write_yaml(yaml)).load()

    def test_duplicate_employee_id(self):
        yaml = MINIMAL + "  - id: anna\n    name: Anna Again\n"

        with pytest.raises(ConfigurationError, match="Duplicate employee"):
            ConfigLoader(write_yaml(yaml)).load()

    def test_missing_employee_name(self):
        yaml = MINIMAL + "  - id: ghost\n"

        with pytest.raises(ConfigurationError, match="name"):
            ConfigLoader(write_yaml(yaml)).load()

    def test_no_active_store(self):
        yaml = MINIMAL.replace("    name: Central\n", "    name: Central\n    active: false\n")

        with pytest.raises(ConfigurationError, match="active store"):
            ConfigLoader(write_yaml(yaml)).load()

    def test_no_employees(self):
        yaml = MINIMAL.split("employees:")[0]

        with pytest.raises(ConfigurationError, match="active employee"):
            ConfigLoader(write_yaml(yaml)).load()

    def test_invalid_settings(self):
        yaml = MINIMAL + "settings:\n  max_daily_hours: 0\n"

        with pytest.raises(ConfigurationError, match="settings"):
            ConfigLoader(write_yaml(yaml)).load()

    def test_root_must_be_mapping(self):
        with pytest.raises(ConfigurationError):
            ConfigLoader(write_yaml("- just\n- a list\n")).load()


class TestSummary:
    """Tests for the human readable summary."""

    def test_get_summary(self):
        loader = ConfigLoader(write_yaml(MINIMAL + "    days_off: [2025-03-03]\n"))
        loader.load()

        summary = loader.get_summary()

        assert "Planning Period: 2025-03-01 to 2025-03-31" in summary
        assert "Central: 44h per week" in summary
        assert "Anna: 1 days off" in summary
