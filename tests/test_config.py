"""
Tests for configuration loading.
"""

import pytest

from slotbooking.config import AppConfig
from slotbooking.domain.exceptions import ConfigError

CONFIG_YAML = """
account_id: 42
timezone: Europe/London
api:
  base_url: https://booking.example.com
services:
  - id: 12
    name: Manicure
    duration: 30
    price: 25
  - id: 15
    name: Massage
    duration: 2
    duration_unit: hours
employees:
  - id: 1
    name: Alice
    service_ids: [12, 15]
  - id: 2
    name: Bianca
    service_ids: ["12"]
"""


class TestAppConfig:
    """Tests for AppConfig."""

    def test_load_from_yaml(self, tmp_path):
        """A full config loads with defaults filled in."""
        path = tmp_path / "config.yaml"
        path.write_text(CONFIG_YAML)

        config = AppConfig.load_from_yaml(path)

        assert config.account_id == 42
        assert config.api.timeout_seconds == 30
        assert [service.duration_minutes for service in config.to_catalog()] == [30, 120]
        assert config.find_service("15").name == "Massage"
        assert config.find_employee("alice").id == 1

    def test_eligible_employees(self, tmp_path):
        """The roster matches int and str service ids."""
        path = tmp_path / "config.yaml"
        path.write_text(CONFIG_YAML)
        config = AppConfig.load_from_yaml(path)

        assert config.eligible_employee_ids(12) == [1, 2]
        assert config.eligible_employee_ids(15) == [1]
        assert config.eligible_employee_ids(99) == []

    def test_missing_file(self, tmp_path):
        """A missing config is reported clearly."""
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            AppConfig.load_from_yaml(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Broken YAML raises ConfigError."""
        path = tmp_path / "config.yaml"
        path.write_text("account_id: [unclosed")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            AppConfig.load_from_yaml(path)

    def test_root_must_be_mapping(self, tmp_path):
        """A list at the root is rejected."""
        path = tmp_path / "config.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ConfigError, match="mapping"):
            AppConfig.load_from_yaml(path)

    def test_duplicate_service_ids(self):
        """Service ids must be unique."""
        with pytest.raises(ValueError, match="Duplicate service id"):
            AppConfig(
                account_id=1,
                services=[{"id": 1, "name": "A"}, {"id": "1", "name": "B"}],
            )

    def test_invalid_duration_unit(self):
        """Only mins and hours are understood."""
        with pytest.raises(ValueError):
            AppConfig(account_id=1, services=[{"id": 1, "name": "A", "duration_unit": "days"}])

    def test_non_positive_timeout(self):
        """Timeouts must be positive."""
        with pytest.raises(ValueError, match="timeout_seconds"):
            AppConfig(account_id=1, api={"timeout_seconds": 0})
