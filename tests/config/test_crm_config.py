"""
Tests for configuration loading and validation.

Covers:
- The shipped default set
- Deterministic checksums
- Rejection of invalid values with the offending key named
- The CRM_CONFIG_TRACE audit record
"""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from crm_config import CrmConfig, get_active_config
from crm_config.loader import compute_checksum, parse_config
from crm_kernel.exceptions import ConfigurationError
from crm_modules.project.config import ProjectConfig


def _write_set(directory: Path, data: dict, name: str = "default") -> Path:
    path = directory / f"{name}.yaml"
    path.write_text(yaml.safe_dump(data))
    return directory


def _valid() -> dict:
    return {
        "config_id": "test",
        "version": 2,
        "budget": {
            "currency": "EUR",
            "contingency_percentage": "5",
            "overhead_percentage": "12.5",
            "project_length_days": 30,
        },
        "database": {"url": "sqlite://", "max_overflow": 0},
        "logging": {"level": "debug"},
    }


class TestDefaultConfig:

    def test_loads_shipped_defaults(self):
        config = get_active_config()

        assert isinstance(config, CrmConfig)
        assert config.config_id == "default"
        assert config.budget.currency == "USD"
        assert config.budget.contingency_percentage == Decimal("10")
        assert config.budget.overhead_percentage == Decimal("15")
        assert config.budget.project_length_days == 90
        assert config.database.url == "sqlite:///crm.db"
        assert config.logging.level == "INFO"

    def test_checksum_is_stable(self):
        assert get_active_config().checksum == get_active_config().checksum
        assert len(get_active_config().checksum) == 64

    def test_project_config_from_defaults(self):
        project_config = ProjectConfig.from_crm_config(get_active_config())

        assert project_config == ProjectConfig()

    def test_emits_config_trace(self, captured_logs):
        config = get_active_config()

        traces = [r for r in captured_logs() if r["message"] == "CRM_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["checksum"] == config.checksum
        assert traces[0]["config_id"] == "default"


class TestCustomSets:

    def test_custom_directory(self, tmp_path):
        config = get_active_config(_write_set(tmp_path, _valid()))

        assert config.config_id == "test"
        assert config.version == 2
        assert config.budget.currency == "EUR"
        assert config.budget.overhead_percentage == Decimal("12.5")
        assert config.database.max_overflow == 0
        assert config.logging.level == "DEBUG"

    def test_named_set(self, tmp_path):
        _write_set(tmp_path, _valid(), name="staging")

        assert get_active_config(tmp_path, config_name="staging").config_id == "test"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path, config_name="absent")

    def test_missing_sections_take_defaults(self):
        config = parse_config({"config_id": "bare"})

        assert config.budget.project_length_days == 90
        assert config.database.pool_size == 10

    def test_checksum_changes_with_content(self):
        changed = _valid()
        changed["budget"]["overhead_percentage"] = "13"

        assert compute_checksum(_valid()) != compute_checksum(changed)
        assert compute_checksum(_valid()) == compute_checksum(dict(reversed(list(_valid().items()))))


class TestValidation:

    @pytest.mark.parametrize("section,key,value,error_key", [
        ("budget", "contingency_percentage", "101", "budget.contingency_percentage"),
        ("budget", "overhead_percentage", "-1", "budget.overhead_percentage"),
        ("budget", "overhead_percentage", 12.5, "budget.overhead_percentage"),
        ("budget", "contingency_percentage", "ten", "budget.contingency_percentage"),
        ("budget", "currency", "usd", "budget.currency"),
        ("budget", "project_length_days", 0, "budget.project_length_days"),
        ("database", "url", "", "database.url"),
        ("database", "pool_size", 0, "database.pool_size"),
        ("database", "max_overflow", -1, "database.max_overflow"),
        ("logging", "level", "chatty", "logging.level"),
    ])
    def test_invalid_value(self, section, key, value, error_key):
        data = _valid()
        data[section][key] = value

        with pytest.raises(ConfigurationError) as exc_info:
            parse_config(data)
        assert exc_info.value.key == error_key

    def test_missing_config_id(self):
        data = _valid()
        del data["config_id"]

        with pytest.raises(ConfigurationError, match="config_id"):
            parse_config(data)

    def test_boolean_is_not_an_integer(self):
        data = _valid()
        data["version"] = True

        with pytest.raises(ConfigurationError):
            parse_config(data)
